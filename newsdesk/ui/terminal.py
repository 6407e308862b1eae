"""curses driver: reads keys as names and paints frames."""

from __future__ import annotations

import curses
import os
from typing import Dict, Optional, Tuple, Union

from ..utils.logging import get_logger
from .frame import Frame
from .theme import Style, Theme

logger = get_logger("nd.terminal")

KEY_NAMES: Dict[int, str] = {
    curses.KEY_UP: "up",
    curses.KEY_DOWN: "down",
    curses.KEY_LEFT: "left",
    curses.KEY_RIGHT: "right",
    curses.KEY_PPAGE: "pgup",
    curses.KEY_NPAGE: "pgdn",
    curses.KEY_HOME: "home",
    curses.KEY_END: "end",
    curses.KEY_ENTER: "enter",
    curses.KEY_BACKSPACE: "backspace",
    curses.KEY_BTAB: "shift+tab",
    curses.KEY_RESIZE: "resize",
}

CHAR_NAMES: Dict[str, str] = {
    "\n": "enter",
    "\r": "enter",
    "\x1b": "esc",
    "\t": "tab",
    "\x7f": "backspace",
    "\b": "backspace",
    "\x03": "ctrl+c",
    "\x14": "ctrl+t",
    "\x15": "ctrl+u",
    " ": "space",
}


def decode_key(key: Union[int, str]) -> Optional[str]:
    """Map a ``get_wch`` result to a key name, or the printable character itself."""
    if isinstance(key, int):
        return KEY_NAMES.get(key)
    if key in CHAR_NAMES:
        return CHAR_NAMES[key]
    if len(key) == 1 and key.isprintable():
        return key
    return None


class Terminal:
    def __init__(self, stdscr, *, input_timeout_ms: int = 50) -> None:
        self.stdscr = stdscr
        self._pairs: Dict[Tuple[int, int], int] = {}
        self._colors = 0
        stdscr.keypad(True)
        stdscr.timeout(input_timeout_ms)
        try:
            curses.curs_set(0)
        except curses.error:
            pass
        if curses.has_colors():
            curses.start_color()
            try:
                curses.use_default_colors()
            except curses.error:
                pass
            self._colors = curses.COLORS

    @staticmethod
    def configure_escape_delay() -> None:
        """Must run before ``curses.initscr`` to make Esc responsive."""
        os.environ.setdefault("ESCDELAY", "25")

    def color_count(self) -> int:
        return self._colors

    def size(self) -> Tuple[int, int]:
        height, width = self.stdscr.getmaxyx()
        return width, height

    def read_key(self) -> Optional[str]:
        try:
            key = self.stdscr.get_wch()
        except curses.error:
            return None  # input timeout
        return decode_key(key)

    def paint(self, frame: Frame, theme: Theme) -> None:
        width, height = self.size()
        self.stdscr.erase()
        for y, row in enumerate(frame[:height]):
            x = 0
            for span in row:
                room = width - x
                if room <= 0:
                    break
                try:
                    self.stdscr.addnstr(y, x, span.text, room, self._attr(theme.style(span.role)))
                except curses.error:
                    pass  # writing the bottom-right cell moves the cursor off screen
                x += len(span.text)
        self.stdscr.refresh()

    def _attr(self, style: Style) -> int:
        attr = curses.A_NORMAL
        if style.bold:
            attr |= curses.A_BOLD
        if style.dim:
            attr |= curses.A_DIM
        if style.reverse:
            attr |= curses.A_REVERSE
        if style.underline:
            attr |= curses.A_UNDERLINE
        if style.fg is not None and style.fg < self._colors:
            attr |= curses.color_pair(self._pair(style.fg))
        return attr

    def _pair(self, fg: int) -> int:
        key = (fg, -1)
        if key not in self._pairs:
            number = len(self._pairs) + 1
            if number >= curses.COLOR_PAIRS:
                return 0
            try:
                curses.init_pair(number, fg, -1)
            except curses.error as exc:
                logger.debug("init_pair(%d, %d) failed: %s", number, fg, exc)
                return 0
            self._pairs[key] = number
        return self._pairs[key]
