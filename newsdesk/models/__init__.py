"""Typed models used across the application."""

from .feed_item import FeedItem
from .article import Article

__all__ = ["FeedItem", "Article"]
