"""Navigation state, the events that change it and the effects it requests."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from ..models import Article, FeedItem
from ..ui.frame import Line


class Mode(Enum):
    BROWSE = "browse"
    ARTICLE = "article"


class ArticlePhase(Enum):
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class NavigationState:
    """Everything the UI shows. Replaced, never mutated, by ``reduce``."""

    sections: Tuple[str, ...]
    selected_section: int = 0
    section_title: str = ""
    mode: Mode = Mode.BROWSE
    all_items: Tuple[FeedItem, ...] = ()
    filtered_items: Tuple[FeedItem, ...] = ()
    search_query: str = ""
    cursor: int = 0
    viewport_start: int = 0
    pending_section_token: Optional[str] = None
    section_error: Optional[str] = None
    pending_article_token: Optional[str] = None
    loading_item: Optional[FeedItem] = None
    loaded_article: Optional[Article] = None
    article_error: Optional[BaseException] = None
    article_lines: Tuple[Line, ...] = ()
    scroll: int = 0
    multi_column: bool = False
    fetch_duration: Optional[float] = None
    terminal_width: int = 0
    terminal_height: int = 0
    debug: bool = False
    quitting: bool = False

    @property
    def section_name(self) -> str:
        if not self.sections:
            return ""
        return self.sections[self.selected_section]

    @property
    def article_phase(self) -> Optional[ArticlePhase]:
        if self.mode is not Mode.ARTICLE:
            return None
        if self.pending_article_token is not None:
            return ArticlePhase.LOADING
        if self.article_error is not None:
            return ArticlePhase.ERROR
        if self.loaded_article is not None:
            return ArticlePhase.READY
        return ArticlePhase.LOADING

    @property
    def selected_item(self) -> Optional[FeedItem]:
        if not self.filtered_items:
            return None
        return self.filtered_items[self.cursor]


# Events


@dataclass(frozen=True, slots=True)
class Move:
    """Cursor step in browse mode, line scroll in article mode."""

    delta: int


@dataclass(frozen=True, slots=True)
class Page:
    direction: int


@dataclass(frozen=True, slots=True)
class Home:
    pass


@dataclass(frozen=True, slots=True)
class End:
    pass


@dataclass(frozen=True, slots=True)
class SelectItem:
    pass


@dataclass(frozen=True, slots=True)
class Back:
    pass


@dataclass(frozen=True, slots=True)
class ToggleColumns:
    pass


@dataclass(frozen=True, slots=True)
class ChangeSection:
    step: int


@dataclass(frozen=True, slots=True)
class TypeText:
    text: str


@dataclass(frozen=True, slots=True)
class Backspace:
    pass


@dataclass(frozen=True, slots=True)
class ClearSearch:
    pass


@dataclass(frozen=True, slots=True)
class Resize:
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class Quit:
    pass


@dataclass(frozen=True, slots=True)
class SectionLoaded:
    token: str
    title: str = ""
    items: Tuple[FeedItem, ...] = ()
    error: Optional[BaseException] = None


@dataclass(frozen=True, slots=True)
class ArticleLoaded:
    token: str
    article: Optional[Article] = None
    error: Optional[BaseException] = None
    duration: Optional[float] = None


Event = Union[
    Move,
    Page,
    Home,
    End,
    SelectItem,
    Back,
    ToggleColumns,
    ChangeSection,
    TypeText,
    Backspace,
    ClearSearch,
    Resize,
    Quit,
    SectionLoaded,
    ArticleLoaded,
]


# Effects


@dataclass(frozen=True, slots=True)
class LoadSection:
    name: str


@dataclass(frozen=True, slots=True)
class FetchArticle:
    url: str


Effect = Union[LoadSection, FetchArticle]
