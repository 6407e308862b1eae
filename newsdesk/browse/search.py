from __future__ import annotations

from typing import Iterable, List

from ..models import FeedItem


def is_subsequence(token: str, text: str) -> bool:
    """True when every character of ``token`` appears in ``text`` in order."""
    position = 0
    for char in token:
        position = text.find(char, position)
        if position < 0:
            return False
        position += 1
    return True


def matches(text: str, query: str) -> bool:
    """Fuzzy match: every whitespace-separated query token is a subsequence of ``text``."""
    tokens = query.lower().split()
    if not tokens:
        return True
    haystack = text.lower()
    return all(is_subsequence(token, haystack) for token in tokens)


def filter_items(items: Iterable[FeedItem], query: str) -> List[FeedItem]:
    """Items whose ``title + " " + description`` matches ``query``, order preserved."""
    if not query.strip():
        return list(items)
    return [item for item in items if matches(f"{item.title} {item.description}", query)]
