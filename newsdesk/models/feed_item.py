from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


def ordinal_suffix(day: int) -> str:
    if 11 <= day % 100 <= 13:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")


def format_ordinal_date(value: datetime) -> str:
    """Format as ``Jan 22nd 2026``."""
    return f"{value.strftime('%b')} {value.day}{ordinal_suffix(value.day)} {value.year}"


@dataclass(frozen=True, slots=True)
class FeedItem:
    """A single entry in a section listing. ``link`` is its identity."""

    title: str
    link: str
    description: str = ""
    published_at: Optional[datetime] = None

    def clean_title(self) -> str:
        return " ".join(self.title.split())

    def clean_description(self) -> str:
        return " ".join(self.description.split())

    def formatted_date(self) -> str:
        if self.published_at is None:
            return ""
        return format_ordinal_date(self.published_at)

    def compact_date(self) -> str:
        if self.published_at is None:
            return ""
        return self.published_at.strftime("%d.%m.%y")
