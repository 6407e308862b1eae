"""Responsive layout: line budgets, wrap widths and column counts.

Everything here is a pure function of terminal size and content, so the same
inputs always produce the same layout.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from ..models import FeedItem
from .text import limit_lines, pad_right, wrap_paragraphs, wrap_text

DEFAULT_WIDTH = 100
DEFAULT_HEIGHT = 24

MIN_READABLE_WIDTH = 45
MAX_READABLE_WIDTH = 72
OUTER_MARGIN = 8

TITLE_MAX_LINES = 2
DESCRIPTION_MAX_LINES = 2
ITEM_GAP_LINES = 1

BROWSE_HEADER_LINES = 4  # blank, section title, rule, search/status line
BROWSE_POSITION_LINES = 1
BROWSE_FOOTER_GAP_LINES = 1
BROWSE_HELP_LINES = 2
FOOTER_PADDING = 1

FULL_DATE_WIDTH = 14
COMPACT_DATE_WIDTH = 10
MIN_TITLE_WIDTH = 30
MIN_COMPACT_TITLE_WIDTH = 20

COLUMN_GAP = 4
MIN_COLUMN_WIDTH = 32
MIN_COLUMN_HEIGHT = 12

ARTICLE_FOOTER_LINES = 2  # scroll hint, help
ARTICLE_GAP_LINES = 1


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


def effective_size(width: int, height: int) -> Tuple[int, int]:
    return (width if width > 0 else DEFAULT_WIDTH, height if height > 0 else DEFAULT_HEIGHT)


def content_width(terminal_width: int) -> int:
    """Readable width: terminal minus margins, clamped to the readable range.

    Terminals narrower than the minimum get their full width.
    """
    if terminal_width <= 0:
        return MAX_READABLE_WIDTH
    available = terminal_width - OUTER_MARGIN
    if available <= 0:
        available = terminal_width
    if available > MAX_READABLE_WIDTH:
        return MAX_READABLE_WIDTH
    if available < MIN_READABLE_WIDTH:
        return terminal_width if terminal_width < MIN_READABLE_WIDTH else MIN_READABLE_WIDTH
    return available


def centered_margin(terminal_width: int, width: int) -> int:
    return max(0, (terminal_width - width) // 2)


# Browse list


@dataclass(frozen=True, slots=True)
class HeadlineLayout:
    width: int
    number_width: int
    prefix_width: int
    title_width: int
    date_width: int
    compact_date: bool


def headline_layout(width: int, item_count: int) -> HeadlineLayout:
    number_width = len(str(max(item_count, 1)))
    prefix_width = number_width + 2
    remaining = width - prefix_width
    if remaining - FULL_DATE_WIDTH >= MIN_TITLE_WIDTH:
        date_width, compact = FULL_DATE_WIDTH, False
    elif remaining - COMPACT_DATE_WIDTH >= MIN_COMPACT_TITLE_WIDTH:
        date_width, compact = COMPACT_DATE_WIDTH, True
    else:
        date_width, compact = 0, True
    return HeadlineLayout(
        width=width,
        number_width=number_width,
        prefix_width=prefix_width,
        title_width=max(1, remaining - date_width),
        date_width=date_width,
        compact_date=compact,
    )


def title_lines(item: FeedItem, layout: HeadlineLayout) -> List[str]:
    wrapped = wrap_text(item.clean_title(), layout.title_width)
    return limit_lines(wrapped, TITLE_MAX_LINES, layout.title_width) or [""]


def description_lines(item: FeedItem, layout: HeadlineLayout) -> List[str]:
    wrapped = wrap_text(item.clean_description(), layout.title_width)
    return limit_lines(wrapped, DESCRIPTION_MAX_LINES, layout.title_width)


def row_height(item: FeedItem, layout: HeadlineLayout) -> int:
    return len(title_lines(item, layout)) + len(description_lines(item, layout)) + ITEM_GAP_LINES


def browse_reserved_lines(show_section_dots: bool) -> int:
    return (
        BROWSE_HEADER_LINES
        + BROWSE_POSITION_LINES
        + BROWSE_FOOTER_GAP_LINES
        + BROWSE_HELP_LINES
        + (1 if show_section_dots else 0)
        + FOOTER_PADDING
    )


def browse_budget(terminal_height: int, show_section_dots: bool) -> int:
    return max(1, terminal_height - browse_reserved_lines(show_section_dots))


def visible_count(heights: Sequence[int], start: int, budget: int) -> int:
    """Rows that fit from ``start``; always at least one when any row exists."""
    total = 0
    count = 0
    for height in heights[start:]:
        if count and total + height > budget:
            break
        total += height
        count += 1
    return count


def fit_viewport(cursor: int, start: int, heights: Sequence[int], budget: int) -> int:
    """Smallest adjustment of ``start`` that keeps ``cursor`` visible.

    Also pulls the window back when rows after it leave unused space, so the
    window never starts later than needed to show the tail of the list.
    """
    n = len(heights)
    if n == 0:
        return 0
    cursor = clamp(cursor, 0, n - 1)
    start = clamp(start, 0, n - 1)
    if cursor < start:
        start = cursor
    while cursor >= start + visible_count(heights, start, budget):
        start += 1
    while start > 0 and sum(heights[start - 1 :]) <= budget:
        start -= 1
    return start


@dataclass(frozen=True, slots=True)
class BrowseLayout:
    terminal_width: int
    terminal_height: int
    width: int
    margin: int
    headline: HeadlineLayout
    heights: Tuple[int, ...]
    budget: int

    def visible_count(self, start: int) -> int:
        return visible_count(self.heights, start, self.budget)


def browse_layout(
    terminal_width: int,
    terminal_height: int,
    items: Sequence[FeedItem],
    total_count: int,
    show_section_dots: bool,
) -> BrowseLayout:
    terminal_width, terminal_height = effective_size(terminal_width, terminal_height)
    width = content_width(terminal_width)
    headline = headline_layout(width, total_count)
    return BrowseLayout(
        terminal_width=terminal_width,
        terminal_height=terminal_height,
        width=width,
        margin=centered_margin(terminal_width, width),
        headline=headline,
        heights=tuple(row_height(item, headline) for item in items),
        budget=browse_budget(terminal_height, show_section_dots),
    )


# Article reader


def article_footer_lines(debug: bool = False) -> int:
    return ARTICLE_FOOTER_LINES + (1 if debug else 0)


def article_view_height(terminal_height: int, debug: bool = False) -> int:
    """Body rows actually drawn; scroll limits are derived from this."""
    _, terminal_height = effective_size(1, terminal_height)
    reserved = article_footer_lines(debug) + ARTICLE_GAP_LINES + FOOTER_PADDING
    return max(1, terminal_height - reserved)


def article_footer_budget(terminal_height: int, debug: bool = False) -> int:
    """Footer lines that fit below ``article_view_height`` rows.

    Short terminals drop footer lines (debug, then help, then the scroll
    hint) before the body loses a row.
    """
    _, terminal_height = effective_size(1, terminal_height)
    room = terminal_height - FOOTER_PADDING - article_view_height(terminal_height, debug)
    return clamp(room, 0, article_footer_lines(debug))


def article_page_size(view_height: int) -> int:
    return max(1, view_height - 2)


def max_scroll(total_lines: int, view_height: int) -> int:
    return max(0, total_lines - view_height)


def multi_column_width(terminal_width: int) -> int:
    available = terminal_width - OUTER_MARGIN
    return available if available > 0 else terminal_width


def max_columns(width: int) -> int:
    """Largest n with ``n * MIN_COLUMN_WIDTH + (n - 1) * COLUMN_GAP <= width``."""
    return max(1, (width + COLUMN_GAP) // (MIN_COLUMN_WIDTH + COLUMN_GAP))


def column_width(width: int, columns: int) -> int:
    if columns <= 1:
        return width
    return (width - (columns - 1) * COLUMN_GAP) // columns


@dataclass(frozen=True, slots=True)
class ColumnLayout:
    columns: int
    column_width: int
    lines: Tuple[str, ...]


def resolve_columns(content: str, width: int) -> ColumnLayout:
    """Pick the most columns that fit, backing off while columns would be too short."""
    columns = max_columns(width)
    while columns > 1:
        col_width = column_width(width, columns)
        lines = wrap_paragraphs(content, col_width)
        if math.ceil(len(lines) / columns) >= MIN_COLUMN_HEIGHT:
            return ColumnLayout(columns, col_width, tuple(lines))
        columns -= 1
    return ColumnLayout(1, width, tuple(wrap_paragraphs(content, width)))


def _trim_blank_edges(lines: Sequence[str]) -> List[str]:
    start, end = 0, len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return list(lines[start:end])


def columnize(lines: Sequence[str], columns: int, col_width: int) -> List[str]:
    """Split into ``columns`` contiguous runs and interleave them row by row."""
    lines = _trim_blank_edges(lines)
    if columns <= 1 or not lines:
        return lines
    rows = math.ceil(len(lines) / columns)
    gap = " " * COLUMN_GAP
    out: List[str] = []
    for row in range(rows):
        cells = [lines[c * rows + row] for c in range(columns) if c * rows + row < len(lines)]
        padded = [pad_right(cell, col_width) for cell in cells[:-1]] + cells[-1:]
        out.append(gap.join(padded).rstrip())
    return out
