from __future__ import annotations

import re
import textwrap
from typing import List, Sequence

ELLIPSIS = "…"

_paragraph_break_re = re.compile(r"\n\s*\n")


def wrap_text(text: str, width: int) -> List[str]:
    """Word-wrap to ``width`` columns; whitespace runs collapse to one space."""
    text = " ".join(text.split())
    if not text:
        return []
    if width <= 0:
        return [text]
    return textwrap.wrap(text, width=width, break_long_words=True, break_on_hyphens=False)


def truncate(text: str, width: int, ellipsis: str = ELLIPSIS) -> str:
    if width <= 0 or len(text) <= width:
        return text
    if width <= len(ellipsis):
        return text[:width]
    return text[: width - len(ellipsis)].rstrip() + ellipsis


def limit_lines(lines: Sequence[str], max_lines: int, width: int, ellipsis: str = ELLIPSIS) -> List[str]:
    """Keep at most ``max_lines``; the last kept line gets an ellipsis if anything was cut."""
    if max_lines <= 0:
        return []
    if len(lines) <= max_lines:
        return list(lines)
    kept = list(lines[:max_lines])
    last = kept[-1]
    if width > 0 and len(last) + len(ellipsis) > width:
        last = last[: max(0, width - len(ellipsis))].rstrip()
    kept[-1] = last + ellipsis
    return kept


def pad_right(text: str, width: int) -> str:
    pad = width - len(text)
    return text + " " * pad if pad > 0 else text


def split_paragraphs(content: str) -> List[str]:
    return [p.strip() for p in _paragraph_break_re.split(content.strip()) if p.strip()]


def wrap_paragraphs(content: str, width: int) -> List[str]:
    """Wrap each paragraph and separate paragraphs with one blank line."""
    lines: List[str] = []
    for paragraph in split_paragraphs(content):
        if lines:
            lines.append("")
        lines.extend(wrap_text(paragraph, width))
    return lines


def select_hint_line(width: int, options: Sequence[str]) -> str:
    """Return the first option that fits ``width``, else the shortest (last) one."""
    if not options:
        return ""
    if width <= 0:
        return options[0]
    for option in options:
        if len(option) <= width:
            return option
    return options[-1]
