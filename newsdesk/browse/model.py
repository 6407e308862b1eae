"""The reduction function behind the terminal UI.

``reduce(state, event)`` returns the next state and at most one effect for
the scheduler to run. It never performs I/O. Completions carry the token
they were dispatched with; a completion whose token no longer matches the
pending one is stale and comes back as the very same state object.
Superseded work is not cancelled, it finishes and its result is dropped.
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Callable, Dict, Optional, Sequence, Tuple, Type

from ..models import FeedItem
from ..ui import layout
from ..ui.render import build_article_lines
from ..utils.logging import get_logger
from .search import filter_items
from .state import (
    ArticleLoaded,
    ArticlePhase,
    Back,
    Backspace,
    ChangeSection,
    ClearSearch,
    Effect,
    End,
    Event,
    FetchArticle,
    Home,
    LoadSection,
    Mode,
    Move,
    NavigationState,
    Page,
    Quit,
    Resize,
    SectionLoaded,
    SelectItem,
    ToggleColumns,
    TypeText,
)

logger = get_logger("nd.browse")

Result = Tuple[NavigationState, Optional[Effect]]

_jump_re = re.compile(r"[0-9]+")


def initial_state(
    *,
    sections: Sequence[str],
    selected_section: int,
    title: str,
    items: Sequence[FeedItem],
    width: int,
    height: int,
    debug: bool = False,
) -> NavigationState:
    state = NavigationState(
        sections=tuple(sections),
        selected_section=selected_section,
        section_title=title,
        all_items=tuple(items),
        filtered_items=tuple(items),
        terminal_width=width,
        terminal_height=height,
        debug=debug,
    )
    return _settle(state)


def browse_geometry(state: NavigationState) -> layout.BrowseLayout:
    return layout.browse_layout(
        state.terminal_width,
        state.terminal_height,
        state.filtered_items,
        len(state.all_items),
        len(state.sections) > 1,
    )


def visible_count(state: NavigationState) -> int:
    return browse_geometry(state).visible_count(state.viewport_start)


def _settle(state: NavigationState, cursor: Optional[int] = None) -> NavigationState:
    """Clamp the cursor into the filtered list and bring it into view."""
    count = len(state.filtered_items)
    cursor = state.cursor if cursor is None else cursor
    if count == 0:
        return replace(state, cursor=0, viewport_start=0)
    cursor = layout.clamp(cursor, 0, count - 1)
    geometry = browse_geometry(state)
    start = layout.fit_viewport(cursor, state.viewport_start, geometry.heights, geometry.budget)
    return replace(state, cursor=cursor, viewport_start=start)


def _apply_search(state: NavigationState) -> NavigationState:
    query = state.search_query.strip()
    cursor = state.cursor
    if _jump_re.fullmatch(query):
        filtered = state.all_items
        index = int(query)
        if 1 <= index <= len(filtered):
            cursor = index - 1
    else:
        filtered = tuple(filter_items(state.all_items, query))
    return _settle(replace(state, filtered_items=filtered), cursor)


def _view_height(state: NavigationState) -> int:
    return layout.article_view_height(state.terminal_height, state.debug)


def _scroll_to(state: NavigationState, scroll: int) -> NavigationState:
    limit = layout.max_scroll(len(state.article_lines), _view_height(state))
    return replace(state, scroll=layout.clamp(scroll, 0, limit))


def _relayout_article(state: NavigationState) -> NavigationState:
    if state.loaded_article is None:
        return state
    lines = build_article_lines(state.loaded_article, state.terminal_width, state.multi_column)
    return _scroll_to(replace(state, article_lines=lines), state.scroll)


def _is_reading(state: NavigationState) -> bool:
    return state.article_phase is ArticlePhase.READY


# Handlers


def _on_move(state: NavigationState, event: Move) -> Result:
    if state.mode is Mode.ARTICLE:
        if not _is_reading(state):
            return state, None
        return _scroll_to(state, state.scroll + event.delta), None
    return _settle(state, state.cursor + event.delta), None


def _on_page(state: NavigationState, event: Page) -> Result:
    if state.mode is Mode.ARTICLE:
        if not _is_reading(state):
            return state, None
        step = layout.article_page_size(_view_height(state))
        return _scroll_to(state, state.scroll + event.direction * step), None
    step = max(1, visible_count(state))
    return _settle(state, state.cursor + event.direction * step), None


def _on_home(state: NavigationState, event: Home) -> Result:
    if state.mode is Mode.ARTICLE:
        return _scroll_to(state, 0), None
    return _settle(state, 0), None


def _on_end(state: NavigationState, event: End) -> Result:
    if state.mode is Mode.ARTICLE:
        return _scroll_to(state, len(state.article_lines)), None
    return _settle(state, len(state.filtered_items) - 1), None


def _on_select(state: NavigationState, event: SelectItem) -> Result:
    item = state.selected_item
    if state.mode is not Mode.BROWSE or item is None:
        return state, None
    logger.debug("select: %s", item.link)
    new_state = replace(
        state,
        mode=Mode.ARTICLE,
        pending_article_token=item.link,
        loading_item=item,
        loaded_article=None,
        article_error=None,
        article_lines=(),
        scroll=0,
        fetch_duration=None,
    )
    return new_state, FetchArticle(item.link)


def _on_back(state: NavigationState, event: Back) -> Result:
    if state.mode is not Mode.ARTICLE:
        return state, None
    new_state = replace(
        state,
        mode=Mode.BROWSE,
        pending_article_token=None,
        loading_item=None,
        loaded_article=None,
        article_error=None,
        article_lines=(),
        scroll=0,
    )
    return _settle(new_state), None


def _on_toggle_columns(state: NavigationState, event: ToggleColumns) -> Result:
    new_state = replace(state, multi_column=not state.multi_column)
    if new_state.mode is Mode.ARTICLE:
        return _relayout_article(new_state), None
    return _settle(new_state), None


def _on_change_section(state: NavigationState, event: ChangeSection) -> Result:
    if state.mode is not Mode.BROWSE or len(state.sections) < 2:
        return state, None
    index = (state.selected_section + event.step) % len(state.sections)
    name = state.sections[index]
    logger.debug("section change: %s", name)
    new_state = replace(state, selected_section=index, pending_section_token=name, section_error=None)
    return new_state, LoadSection(name)


def _on_type(state: NavigationState, event: TypeText) -> Result:
    if state.mode is not Mode.BROWSE:
        return state, None
    text = "".join(ch for ch in event.text if ch.isprintable())
    if not state.search_query:
        text = text.lstrip()
    if not text:
        return state, None
    new_state = replace(state, search_query=state.search_query + text, viewport_start=0)
    return _apply_search(new_state), None


def _on_backspace(state: NavigationState, event: Backspace) -> Result:
    if state.mode is not Mode.BROWSE or not state.search_query:
        return state, None
    return _apply_search(replace(state, search_query=state.search_query[:-1])), None


def _on_clear(state: NavigationState, event: ClearSearch) -> Result:
    if state.mode is not Mode.BROWSE or not state.search_query:
        return state, None
    return _apply_search(replace(state, search_query="")), None


def _on_resize(state: NavigationState, event: Resize) -> Result:
    new_state = replace(state, terminal_width=event.width, terminal_height=event.height)
    return _settle(_relayout_article(new_state)), None


def _on_quit(state: NavigationState, event: Quit) -> Result:
    return replace(state, quitting=True), None


def _on_section_loaded(state: NavigationState, event: SectionLoaded) -> Result:
    if state.pending_section_token is None or event.token != state.pending_section_token:
        logger.debug("stale section result discarded: %s", event.token)
        return state, None
    if event.error is not None:
        logger.debug("section %s failed: %s", event.token, event.error)
        return replace(state, pending_section_token=None, section_error=str(event.error)), None
    new_state = replace(
        state,
        pending_section_token=None,
        section_error=None,
        section_title=event.title or event.token,
        all_items=tuple(event.items),
        cursor=0,
        viewport_start=0,
    )
    return _apply_search(new_state), None


def _on_article_loaded(state: NavigationState, event: ArticleLoaded) -> Result:
    if state.pending_article_token is None or event.token != state.pending_article_token:
        logger.debug("stale article result discarded: %s", event.token)
        return state, None
    new_state = replace(state, pending_article_token=None, fetch_duration=event.duration, scroll=0)
    if event.error is not None or event.article is None:
        error = event.error if event.error is not None else RuntimeError("no article returned")
        return replace(new_state, article_error=error, loaded_article=None, article_lines=()), None
    return _relayout_article(replace(new_state, loaded_article=event.article, article_error=None)), None


_HANDLERS: Dict[Type, Callable[[NavigationState, Event], Result]] = {
    Move: _on_move,
    Page: _on_page,
    Home: _on_home,
    End: _on_end,
    SelectItem: _on_select,
    Back: _on_back,
    ToggleColumns: _on_toggle_columns,
    ChangeSection: _on_change_section,
    TypeText: _on_type,
    Backspace: _on_backspace,
    ClearSearch: _on_clear,
    Resize: _on_resize,
    Quit: _on_quit,
    SectionLoaded: _on_section_loaded,
    ArticleLoaded: _on_article_loaded,
}


def reduce(state: NavigationState, event: Event) -> Result:
    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise TypeError(f"unhandled event: {event!r}")
    return handler(state, event)
