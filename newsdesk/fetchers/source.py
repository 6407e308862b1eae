from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Optional, Tuple

from ..models import Article, FeedItem
from ..utils.config_loader import DEFAULT_FEED_URL_TEMPLATE
from .rss import fetch_section

if TYPE_CHECKING:
    from ..orchestrator import FetchOrchestrator


class ArticleSource(ABC):
    """Where section listings and article bodies come from."""

    @abstractmethod
    def section(self, name: str) -> Tuple[str, List[FeedItem]]:
        """Return ``(title, items)`` for a section, items in display order."""

    @abstractmethod
    def article(self, url: str) -> Article:
        """Return the full article behind a feed item's link."""


class ReaderSource(ArticleSource):
    """Live feeds for listings; articles through the fetch orchestrator."""

    def __init__(
        self,
        orchestrator: "FetchOrchestrator",
        *,
        feed_url_template: str = DEFAULT_FEED_URL_TEMPLATE,
        max_items: int = 50,
    ) -> None:
        self.orchestrator = orchestrator
        self.feed_url_template = feed_url_template
        self.max_items = max_items

    def section(self, name: str) -> Tuple[str, List[FeedItem]]:
        return fetch_section(name, template=self.feed_url_template, limit=self.max_items)

    def article(self, url: str) -> Article:
        return self.orchestrator.fetch_article(url)


def create_source(
    *,
    demo: bool = False,
    orchestrator: Optional["FetchOrchestrator"] = None,
    feed_url_template: str = DEFAULT_FEED_URL_TEMPLATE,
    max_items: int = 50,
) -> ArticleSource:
    """Create the article source for this run: offline fixtures or live feeds."""
    if demo:
        from .demo import DemoSource  # lazy import

        return DemoSource()
    if orchestrator is None:
        raise ValueError("a live source requires a FetchOrchestrator")
    return ReaderSource(orchestrator, feed_url_template=feed_url_template, max_items=max_items)
