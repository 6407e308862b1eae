from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

import feedparser
import requests
from bs4 import BeautifulSoup

from ..errors import TransportError
from ..models import FeedItem
from ..utils.config_loader import DEFAULT_FEED_URL_TEMPLATE
from ..utils.logging import get_logger

logger = get_logger("nd.fetchers.rss")

# Aliases to canonical feed paths; unknown names are used verbatim.
SECTIONS: Dict[str, str] = {
    "leaders": "leaders",
    "briefing": "briefing",
    "finance": "finance-and-economics",
    "finance-and-economics": "finance-and-economics",
    "us": "united-states",
    "united-states": "united-states",
    "britain": "britain",
    "europe": "europe",
    "middle-east": "middle-east-and-africa",
    "asia": "asia",
    "china": "china",
    "americas": "the-americas",
    "business": "business",
    "science": "science-and-technology",
    "tech": "science-and-technology",
    "culture": "culture",
    "graphic": "graphic-detail",
    "world-this-week": "the-world-this-week",
}

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/127.0.0.0 Safari/537.36"
)

_DEFAULT_HEADERS = {"User-Agent": USER_AGENT}


def resolve_section(section: str) -> str:
    return SECTIONS.get(section.strip().lower(), section.strip())


def section_url(section: str, template: str = DEFAULT_FEED_URL_TEMPLATE) -> str:
    return template.format(path=resolve_section(section))


def clean_html(raw_html: str) -> str:
    """Strip tags from a feed summary and collapse whitespace."""
    if not raw_html:
        return ""
    text = BeautifulSoup(raw_html, "html.parser").get_text(" ", strip=True)
    return " ".join(text.split())


def _parse_datetime(entry: dict) -> Optional[datetime]:
    # feedparser may provide 'published_parsed' or 'updated_parsed'
    for key in ("published_parsed", "updated_parsed"):
        tm = entry.get(key)
        if tm:
            try:
                return datetime(*tm[:6], tzinfo=timezone.utc)
            except (TypeError, ValueError):
                return None
    return None


def parse_feed(content: bytes | str, *, limit: Optional[int] = None) -> Tuple[str, List[FeedItem]]:
    """Parse RSS/Atom bytes into the channel title and its items, in feed order."""
    parsed = feedparser.parse(content)
    if getattr(parsed, "bozo", False):
        # feedparser sets bozo when it encounters a feed error but may still parse entries
        logger.debug("Feed 'bozo' flagged: %s", getattr(parsed, "bozo_exception", None))

    title = (parsed.feed.get("title") or "").strip() if getattr(parsed, "feed", None) else ""
    items: List[FeedItem] = []
    for entry in getattr(parsed, "entries", []) or []:
        link = (entry.get("link") or entry.get("id") or "").strip()
        if not link:
            continue
        items.append(
            FeedItem(
                title=(entry.get("title") or "").strip(),
                link=link,
                description=clean_html(entry.get("summary") or ""),
                published_at=_parse_datetime(entry),
            )
        )
        if limit is not None and len(items) >= limit:
            break
    return title, items


def fetch_section(
    section: str,
    *,
    template: str = DEFAULT_FEED_URL_TEMPLATE,
    limit: Optional[int] = 50,
    timeout: float = 10,
) -> Tuple[str, List[FeedItem]]:
    """Fetch one section feed and return ``(title, items)``.

    The underlying network request is done with ``requests`` to ensure
    consistent timeouts and headers. The response body is then parsed by
    ``feedparser`` to handle various feed formats.
    """
    url = section_url(section, template)
    logger.debug("Fetching RSS from %s", url)
    try:
        resp = requests.get(url, headers=_DEFAULT_HEADERS, timeout=timeout)
        if resp.status_code >= 400:
            logger.warning("RSS fetch failed (%s): %s", resp.status_code, url)
            resp.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("RSS request error for %s: %s", url, exc)
        raise TransportError(f"failed to fetch {url}: {exc}") from exc

    title, items = parse_feed(resp.content, limit=limit)
    logger.info("Fetched %d RSS entries for section %s", len(items), section)
    return title or section, items
