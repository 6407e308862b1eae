"""Color themes.

A theme is picked once at startup from the terminal's color depth and then
passed explicitly to the painter. Roles not listed in a theme render plain.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

# curses color numbers
BLACK, RED, GREEN, YELLOW, BLUE, MAGENTA, CYAN, WHITE = range(8)


@dataclass(frozen=True, slots=True)
class Style:
    fg: Optional[int] = None
    bold: bool = False
    dim: bool = False
    reverse: bool = False
    underline: bool = False


PLAIN = Style()


@dataclass(frozen=True, slots=True)
class Theme:
    name: str
    styles: Mapping[str, Style] = field(default_factory=dict)

    def style(self, role: str) -> Style:
        return self.styles.get(role, PLAIN)


MONO = Theme(
    "mono",
    {
        "header": Style(bold=True),
        "title": Style(bold=True),
        "selected": Style(reverse=True),
        "dim": Style(dim=True),
        "date": Style(dim=True),
        "help": Style(dim=True),
        "subtitle": Style(dim=True),
        "overtitle": Style(dim=True),
        "section": Style(bold=True),
        "search": Style(underline=True),
        "error": Style(bold=True),
        "marker": Style(bold=True),
        "link": Style(underline=True),
    },
)

BASIC = Theme(
    "basic",
    {
        "header": Style(fg=RED, bold=True),
        "rule": Style(fg=RED),
        "title": Style(bold=True),
        "selected": Style(fg=RED, bold=True, reverse=True),
        "dim": Style(dim=True),
        "date": Style(fg=CYAN),
        "help": Style(dim=True),
        "subtitle": Style(fg=WHITE, dim=True),
        "overtitle": Style(fg=CYAN),
        "section": Style(fg=RED, bold=True),
        "search": Style(fg=YELLOW),
        "error": Style(fg=RED, bold=True),
        "marker": Style(fg=RED, bold=True),
        "link": Style(fg=BLUE, underline=True),
    },
)

RICH = Theme(
    "rich",
    {
        "header": Style(fg=160, bold=True),
        "rule": Style(fg=160),
        "title": Style(fg=255, bold=True),
        "selected": Style(fg=160, bold=True, reverse=True),
        "dim": Style(fg=244),
        "date": Style(fg=109),
        "help": Style(fg=242),
        "subtitle": Style(fg=250),
        "overtitle": Style(fg=109),
        "section": Style(fg=160, bold=True),
        "search": Style(fg=221),
        "error": Style(fg=196, bold=True),
        "marker": Style(fg=160, bold=True),
        "link": Style(fg=74, underline=True),
    },
)


def select_theme(colors: int, no_color: bool = False) -> Theme:
    if no_color or colors < 8:
        return MONO
    if colors >= 256:
        return RICH
    return BASIC


def color_disabled(environ: Optional[Mapping[str, str]] = None) -> bool:
    """Honour ``NO_COLOR`` and dumb terminals."""
    env = os.environ if environ is None else environ
    return bool(env.get("NO_COLOR")) or env.get("TERM", "") == "dumb"
