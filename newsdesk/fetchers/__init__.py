"""Content fetching layer: section feeds, article pages and fixture sources."""

from .rss import fetch_section, parse_feed, resolve_section
from .http import FetchSession, parse_article
from .source import ArticleSource, ReaderSource, create_source

__all__ = [
    "fetch_section",
    "parse_feed",
    "resolve_section",
    "FetchSession",
    "parse_article",
    "ArticleSource",
    "ReaderSource",
    "create_source",
]
