"""Turn navigation state into a frame of styled lines, one per terminal row."""

from __future__ import annotations

from typing import List, Sequence, Tuple

from ..browse.state import ArticlePhase, Mode, NavigationState
from ..errors import describe_error
from ..models import Article, FeedItem
from . import layout
from .frame import BLANK, Frame, Line, Span, indent_line, line, marked_line
from .text import select_hint_line, truncate, wrap_paragraphs, wrap_text

RULE = "─"
LOADING_TEXT = "Loading article…"

BROWSE_HELP_OPTIONS: Tuple[Tuple[str, ...], ...] = (
    (
        "↑/↓ move • ←/→ page • enter read • tab/shift+tab section • type to search",
        "↑/↓ move • ←/→ page • enter read • tab section",
        "↑/↓ • ←/→ • enter • tab",
    ),
    (
        "esc clear search (quit when empty) • backspace delete • q quit",
        "esc clear/quit • q quit",
        "q quit",
    ),
)

ARTICLE_LOADING_HELP = "b back • q quit"


def article_help_options(multi_column: bool) -> Tuple[str, ...]:
    label = "2-col" if multi_column else "1-col"
    return (
        f"b back • c columns ({label}) • ↑/↓ scroll • pgup/pgdn • q quit",
        f"b back • c {label} • ↑/↓ • q quit",
        "b • c • q",
    )


def compose(content: Sequence[Line], footer: Sequence[Line], height: int) -> Frame:
    """Stack content and a bottom-anchored footer into exactly ``height`` rows."""
    room = height - len(footer) - layout.FOOTER_PADDING
    body = list(content[: max(0, room)])
    gap = max(0, room - len(body))
    rows = body + [BLANK] * gap + list(footer) + [BLANK] * layout.FOOTER_PADDING
    return tuple(rows[:height])


def render_frame(state: NavigationState) -> Frame:
    if state.mode is Mode.ARTICLE:
        return render_article(state)
    return render_browse(state)


# Browse


def _status_line(state: NavigationState, width: int) -> Line:
    if state.search_query:
        return line(truncate(f"search: {state.search_query}", width), "search")
    if state.pending_section_token is not None:
        return line(truncate(f"loading {state.pending_section_token}…", width), "dim")
    if state.section_error:
        return line(truncate(f"⚠ {state.section_error}", width), "error")
    return BLANK


def _row_lines(item: FeedItem, number: int, selected: bool, headline: layout.HeadlineLayout) -> List[Line]:
    title_role = "selected" if selected else "title"
    prefix = f"{number:>{headline.number_width}}. "
    pad = " " * headline.prefix_width
    titles = layout.title_lines(item, headline)

    date = ""
    if headline.date_width:
        date = item.compact_date() if headline.compact_date else item.formatted_date()
        date = truncate(date, headline.date_width).rjust(headline.date_width)

    first: List[Span] = [Span(prefix + titles[0].ljust(headline.title_width), title_role)]
    if date:
        first.append(Span(date, "selected" if selected else "date"))
    rows: List[Line] = [tuple(first)]
    rows.extend(line(pad + text, title_role) for text in titles[1:])
    rows.extend(line(pad + text, "subtitle") for text in layout.description_lines(item, headline))
    rows.extend([BLANK] * layout.ITEM_GAP_LINES)
    return rows


def _section_dots(state: NavigationState) -> Line:
    dots = " ".join("●" if i == state.selected_section else "○" for i in range(len(state.sections)))
    return (Span(dots, "section"), Span(f"  {state.section_name}", "dim"))


def render_browse(state: NavigationState) -> Frame:
    show_dots = len(state.sections) > 1
    geometry = layout.browse_layout(
        state.terminal_width,
        state.terminal_height,
        state.filtered_items,
        len(state.all_items),
        show_dots,
    )
    width, margin = geometry.width, geometry.margin

    content: List[Line] = [
        BLANK,
        line(truncate(state.section_title or state.section_name, width), "header"),
        line(RULE * width, "rule"),
        _status_line(state, width),
    ]

    items = state.filtered_items
    visible = geometry.visible_count(state.viewport_start)
    if not items:
        content.append(line("No matching articles", "dim"))
    for index in range(state.viewport_start, state.viewport_start + visible):
        content.extend(_row_lines(items[index], index + 1, index == state.cursor, geometry.headline))

    footer: List[Line] = []
    if items and visible < len(items):
        footer.append(line(f"({state.cursor + 1}/{len(items)})", "dim"))
    else:
        footer.append(BLANK)
    footer.append(BLANK)
    footer.extend(line(select_hint_line(width, options), "help") for options in BROWSE_HELP_OPTIONS)
    if show_dots:
        footer.append(_section_dots(state))

    # The position line belongs to the list area; keep it directly under the rows.
    rows = compose(content + footer[:1], footer[1:], geometry.terminal_height)
    return tuple(indent_line(row, margin) for row in rows)


# Article


def _overtitle_line(text: str) -> Line:
    section, sep, rest = text.partition("|")
    if not sep:
        return line(text, "overtitle")
    return (Span(section.rstrip(), "section"), Span(" | ", "overtitle"), Span(rest.strip(), "overtitle"))


def build_article_lines(article: Article, terminal_width: int, multi_column: bool) -> Tuple[Line, ...]:
    """Precompute the scrollable lines of an article, already centered."""
    terminal_width, _ = layout.effective_size(terminal_width, 1)

    columns = None
    if multi_column:
        width = layout.multi_column_width(terminal_width)
        columns = layout.resolve_columns(article.content, width)
    if columns is None or columns.columns == 1:
        width = layout.content_width(terminal_width)
        body = wrap_paragraphs(article.content, width)
    else:
        body = layout.columnize(columns.lines, columns.columns, columns.column_width)

    header_width = min(width, layout.MAX_READABLE_WIDTH)
    lines: List[Line] = [BLANK]
    if article.overtitle:
        lines.extend(_overtitle_line(text) for text in wrap_text(article.overtitle, header_width))
        lines.append(BLANK)
    lines.extend(line(text, "title") for text in wrap_text(article.title, header_width))
    if article.subtitle:
        lines.append(BLANK)
        lines.extend(line(text, "subtitle") for text in wrap_text(article.subtitle, header_width))
    if article.date_line:
        lines.append(BLANK)
        lines.append(line(truncate(article.date_line, header_width), "date"))
    lines.extend([BLANK, line(RULE * width, "rule"), BLANK])
    lines.extend(marked_line(text) for text in body)
    lines.extend([BLANK, BLANK, line(RULE * width, "rule"), BLANK])
    lines.append(line(truncate(article.url, width), "link"))

    margin = layout.centered_margin(terminal_width, width)
    return tuple(indent_line(row, margin) for row in lines)


def scroll_hint(scroll: int, total: int, view_height: int) -> str:
    if total <= view_height:
        return ""
    end = min(total, scroll + view_height)
    if end >= total:
        return "100% · end"
    percent = max(1, min(99, round(end * 100 / total)))
    return f"{percent}% · more ↓"


def _message_frame(state: NavigationState, messages: List[Line], help_text: str) -> Frame:
    width, height = layout.effective_size(state.terminal_width, state.terminal_height)
    text_width = layout.content_width(width)
    margin = layout.centered_margin(width, text_width)
    footer = [BLANK, line(truncate(help_text, text_width), "help")]
    rows = compose([BLANK] + messages, footer, height)
    return tuple(indent_line(row, margin) for row in rows)


def render_article(state: NavigationState) -> Frame:
    width, height = layout.effective_size(state.terminal_width, state.terminal_height)
    text_width = layout.content_width(width)
    phase = state.article_phase

    if phase is ArticlePhase.LOADING:
        messages = [line(LOADING_TEXT, "dim")]
        if state.loading_item is not None:
            messages.append(BLANK)
            messages.extend(line(text, "title") for text in wrap_text(state.loading_item.clean_title(), text_width))
        return _message_frame(state, messages, ARTICLE_LOADING_HELP)

    if phase is ArticlePhase.ERROR:
        messages = [line(text, "error") for text in wrap_text(describe_error(state.article_error), text_width)]
        return _message_frame(state, messages, ARTICLE_LOADING_HELP)

    view_height = layout.article_view_height(height, state.debug)
    total = len(state.article_lines)
    content = list(state.article_lines[state.scroll : state.scroll + view_height])

    margin = layout.centered_margin(width, text_width)
    hint = scroll_hint(state.scroll, total, view_height)
    footer: List[Line] = [
        indent_line(line(hint, "dim"), margin),
        indent_line(line(select_hint_line(text_width, article_help_options(state.multi_column)), "help"), margin),
    ]
    if state.debug:
        timing = "fetch n/a" if state.fetch_duration is None else f"fetch {state.fetch_duration * 1000:.0f}ms"
        footer.append(indent_line(line(f"{timing} · {total} lines · scroll {state.scroll}", "dim"), margin))
    return compose(content, footer[: layout.article_footer_budget(height, state.debug)], height)
