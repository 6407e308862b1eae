"""Key names to events.

The mapping depends on the mode: in browse mode letters feed the search
query, so single-letter commands only exist in article mode (``q`` also
quits browse mode while the query is empty) and the column toggle is
ctrl+t there.
"""

from __future__ import annotations

from typing import Dict, Optional

from .state import (
    Back,
    Backspace,
    ChangeSection,
    ClearSearch,
    End,
    Event,
    Home,
    Mode,
    Move,
    NavigationState,
    Page,
    Quit,
    SelectItem,
    ToggleColumns,
    TypeText,
)

ARTICLE_KEYS: Dict[str, Event] = {
    "q": Quit(),
    "b": Back(),
    "left": Back(),
    "esc": Back(),
    "backspace": Back(),
    "c": ToggleColumns(),
    "up": Move(-1),
    "k": Move(-1),
    "down": Move(1),
    "j": Move(1),
    "pgup": Page(-1),
    "pgdn": Page(1),
    "space": Page(1),
    "home": Home(),
    "g": Home(),
    "end": End(),
    "G": End(),
}

BROWSE_KEYS: Dict[str, Event] = {
    "up": Move(-1),
    "down": Move(1),
    "left": Page(-1),
    "right": Page(1),
    "pgup": Page(-1),
    "pgdn": Page(1),
    "home": Home(),
    "end": End(),
    "enter": SelectItem(),
    "tab": ChangeSection(1),
    "shift+tab": ChangeSection(-1),
    "backspace": Backspace(),
    "ctrl+u": ClearSearch(),
    "ctrl+t": ToggleColumns(),
}


def event_for_key(key: str, state: NavigationState) -> Optional[Event]:
    if key == "ctrl+c":
        return Quit()

    if state.mode is Mode.ARTICLE:
        return ARTICLE_KEYS.get(key)

    if key == "esc":
        return ClearSearch() if state.search_query else Quit()
    if key == "q" and not state.search_query:
        return Quit()
    if key in BROWSE_KEYS:
        return BROWSE_KEYS[key]
    if key == "space":
        return TypeText(" ")
    if len(key) == 1 and key.isprintable():
        return TypeText(key)
    return None
