"""Local persistence: the article cache."""

from .article_cache import ARTICLE_TTL, ArticleCache

__all__ = ["ARTICLE_TTL", "ArticleCache"]
