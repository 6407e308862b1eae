"""Styled text produced by the renderer and painted by the terminal.

A span carries a semantic role (``"title"``, ``"dim"`` ...) rather than a
color; the theme chosen at startup maps roles to attributes at paint time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

MARKER = "■"


@dataclass(frozen=True, slots=True)
class Span:
    text: str
    role: str = "body"


Line = Tuple[Span, ...]
Frame = Tuple[Line, ...]

BLANK: Line = ()


def line(text: str, role: str = "body") -> Line:
    if not text:
        return BLANK
    return (Span(text, role),)


def marked_line(text: str, role: str = "body", marker_role: str = "marker") -> Line:
    """Like ``line`` but the end-of-article marker gets its own role."""
    if MARKER not in text:
        return line(text, role)
    spans = []
    head, _, tail = text.rpartition(MARKER)
    if head:
        spans.append(Span(head, role))
    spans.append(Span(MARKER, marker_role))
    if tail:
        spans.append(Span(tail, role))
    return tuple(spans)


def line_text(value: Line) -> str:
    return "".join(span.text for span in value)


def indent_line(value: Line, width: int) -> Line:
    if width <= 0 or not value:
        return value
    return (Span(" " * width, "body"),) + value
