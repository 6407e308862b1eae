from __future__ import annotations

import curses
import time
from typing import Optional, Protocol, Sequence, Tuple

from ..fetchers.rss import resolve_section
from ..fetchers.source import ArticleSource
from ..ui.frame import Frame
from ..ui.render import render_frame
from ..ui.terminal import Terminal
from ..ui.theme import Theme, select_theme
from ..utils.logging import get_logger
from .keys import event_for_key
from .model import initial_state, reduce
from .scheduler import Scheduler
from .state import Event, NavigationState, Resize

logger = get_logger("nd.app")


class Screen(Protocol):
    def read_key(self) -> Optional[str]: ...

    def size(self) -> Tuple[int, int]: ...

    def paint(self, frame: Frame, theme: Theme) -> None: ...


def section_index(sections: Sequence[str], name: str) -> Tuple[Tuple[str, ...], int]:
    """Position of ``name`` among ``sections``, adding it in front when absent."""
    wanted = resolve_section(name)
    for index, candidate in enumerate(sections):
        if resolve_section(candidate) == wanted:
            return tuple(sections), index
    return (name, *sections), 0


def run_loop(state: NavigationState, screen: Screen, scheduler: Scheduler, theme: Theme) -> NavigationState:
    """Read input and completions, reduce them one at a time, repaint on change."""
    screen.paint(render_frame(state), theme)
    while not state.quitting:
        events = []
        try:
            key = screen.read_key()
        except KeyboardInterrupt:
            key = "ctrl+c"
        if key == "resize":
            width, height = screen.size()
            events.append(Resize(width, height))
        elif key:
            event = event_for_key(key, state)
            if event is not None:
                events.append(event)
        events.extend(scheduler.drain())

        changed = False
        for event in events:
            state, changed = _step(state, event, scheduler, changed)
            if state.quitting:
                break
        if changed and not state.quitting:
            start = time.perf_counter()
            screen.paint(render_frame(state), theme)
            logger.debug("paint %.1fms", (time.perf_counter() - start) * 1000)
    return state


def _step(state: NavigationState, event: Event, scheduler: Scheduler, changed: bool) -> Tuple[NavigationState, bool]:
    new_state, effect = reduce(state, event)
    if effect is not None:
        scheduler.submit(effect)
    return new_state, changed or new_state is not state


def run_browser(
    source: ArticleSource,
    *,
    sections: Sequence[str],
    section: str,
    debug: bool = False,
    no_color: bool = False,
) -> None:
    """Load the first section, then hand the terminal to the event loop.

    The first load happens before curses starts so its errors reach the
    caller as ordinary exceptions.
    """
    title, items = source.section(section)
    names, index = section_index(sections, section)
    logger.info("browse: %s (%d items)", title, len(items))

    Terminal.configure_escape_delay()

    def _main(stdscr) -> None:
        terminal = Terminal(stdscr)
        theme = select_theme(terminal.color_count(), no_color)
        width, height = terminal.size()
        state = initial_state(
            sections=names,
            selected_section=index,
            title=title,
            items=items,
            width=width,
            height=height,
            debug=debug,
        )
        scheduler = Scheduler(source)
        try:
            run_loop(state, terminal, scheduler, theme)
        finally:
            scheduler.shutdown()

    curses.wrapper(_main)
