"""Offline fixture source used by ``--demo``, screenshots and tests."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Tuple

from ..models import Article, FeedItem
from ..models.feed_item import format_ordinal_date
from .rss import resolve_section
from .source import ArticleSource

DEFAULT_SECTION = "leaders"
DEMO_BASE_URL = "https://example.com/demo"
DEMO_BASE_DATE = datetime(2026, 1, 22, 9, 0, 0, tzinfo=timezone.utc)


@dataclass(frozen=True, slots=True)
class _Fixture:
    slug: str
    title: str
    subtitle: str


_FIXTURES: Dict[str, Tuple[str, List[_Fixture]]] = {
    "leaders": (
        "Leaders (Demo)",
        [
            _Fixture("ports", "The quiet revolution in the world's ports", "Automation is reshaping trade, one crane at a time"),
            _Fixture("grids", "Why power grids need a rethink", "Cheap solar is the easy part; moving electrons is not"),
            _Fixture("ai-china", "AI and China", "A race that both sides are running in different directions"),
            _Fixture("housing", "How to fix housing shortages", "Zoning reform beats subsidies, but it is politically harder"),
            _Fixture("pensions", "The pension time bomb is ticking louder", "Ageing populations leave governments few painless options"),
            _Fixture("fisheries", "Saving the oceans' fish stocks", "Quotas work when they are enforced"),
        ],
    ),
    "business": (
        "Business (Demo)",
        [
            _Fixture("bakeries", "Baking bread at industrial scale", "Artisan branding meets factory economics"),
            _Fixture("airlines", "Airlines are flying high again", "Demand is strong, but so are fuel and labour costs"),
            _Fixture("chips", "The chipmakers' capacity crunch", "New fabs take years to build and billions to fill"),
            _Fixture("retail", "Shopping malls reinvent themselves", "Fewer shops, more clinics and climbing walls"),
        ],
    ),
    "finance-and-economics": (
        "Finance & economics (Demo)",
        [
            _Fixture("rates", "Central banks face a difficult descent", "Cutting rates too early risks a second inflation wave"),
            _Fixture("bonds", "The bond market's new normal", "Higher yields are here to stay, investors are told"),
            _Fixture("remittances", "Remittances keep flowing", "Migrant workers send home more than ever"),
        ],
    ),
}


def build_content(title: str) -> str:
    paragraphs = [
        "This demo content is stored locally so screenshots and tests can run without network access.",
        f'The headline "{title}" is a placeholder used to show how headlines wrap and how the reader renders long paragraphs.',
        "Use up and down to scroll, b to go back, and c to toggle columns. Resize the terminal to see the layout adapt.",
        "Demo mode keeps everything local so you can explore the reader without a subscription.",
        "Paragraph lengths are intentionally varied to show line wrapping, spacing, and the feel of the reading "
        "experience when a long paragraph runs across several lines of the terminal and keeps going for a while.",
        "If you are taking screenshots, this page is designed to be safe for public sharing.",
        "End of the sample article ■",
    ]
    return "\n\n".join(paragraphs)


class DemoSource(ArticleSource):
    """Fixture-backed source. Unknown sections fall back to the default one."""

    def __init__(self) -> None:
        self._sections: Dict[str, Tuple[str, List[FeedItem]]] = {}
        self._articles: Dict[str, Article] = {}
        for key, (section_title, fixtures) in _FIXTURES.items():
            self._add_section(key, section_title, fixtures)

    def _add_section(self, key: str, section_title: str, fixtures: List[_Fixture]) -> None:
        items: List[FeedItem] = []
        overtitle = f"{section_title.replace(' (Demo)', '')} | Demo"
        for i, fixture in enumerate(fixtures):
            published = DEMO_BASE_DATE - timedelta(days=i)
            url = f"{DEMO_BASE_URL}/{key}#{fixture.slug}"
            items.append(
                FeedItem(
                    title=fixture.title,
                    link=url,
                    description=fixture.subtitle,
                    published_at=published,
                )
            )
            self._articles[url] = Article(
                title=fixture.title,
                url=url,
                overtitle=overtitle,
                subtitle=fixture.subtitle,
                date_line=format_ordinal_date(published),
                content=build_content(fixture.title),
            )
        items.sort(key=lambda item: item.published_at, reverse=True)
        self._sections[key] = (section_title, items)

    def section(self, name: str) -> Tuple[str, List[FeedItem]]:
        key = resolve_section(name or DEFAULT_SECTION).lower()
        title, items = self._sections.get(key) or self._sections[DEFAULT_SECTION]
        return title, list(items)

    def article(self, url: str) -> Article:
        try:
            return self._articles[url]
        except KeyError:
            raise LookupError(f"demo article not found: {url}") from None
