"""Article page fetching and extraction.

``FetchSession`` is the expensive, warm resource the daemon keeps alive: one
``requests.Session`` with its connection pool and subscriber cookies. It is
not safe for concurrent use, so every fetch runs under the session's lock.
"""

from __future__ import annotations

import tempfile
import threading
import time
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Sequence
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup, Tag

from ..errors import PaywallError, TransportError
from ..models import Article
from ..utils.config_loader import Cookie
from ..utils.logging import get_logger
from .rss import USER_AGENT

logger = get_logger("nd.fetchers.http")

MIN_PARAGRAPH_LEN = 40
MIN_FALLBACK_PARAGRAPH_LEN = 80
MIN_CONTENT_LEN = 500
END_MARKER = "■"

_DEFAULT_HEADERS: Dict[str, str] = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
}

TITLE_SELECTORS = ("h1.article__headline", "[data-test-id='headline']", "article h1", "h1")
SUBTITLE_SELECTORS = (".article__description", "[data-test-id='subheadline']", ".article__subheadline")
FLYTITLE_SELECTORS = (".article__flytitle", "[data-test-id='flytitle']")
BODY_SELECTOR = ".article__body-text p, [data-component='article-body'] p"
FALLBACK_BODY_SELECTOR = "article p, main p"

_RELATED_CLASS_MARKERS = ("related", "teaser", "promo")

BOILERPLATE_PATTERNS = (
    "subscribe",
    "sign up",
    "newsletter",
    "keep reading",
    "this article appeared",
    "reuse this content",
    "more from",
    "advertisement",
    "listen to this story",
    "enjoy more audio",
)

PAYWALL_INDICATORS = (
    "Subscribe to read",
    "Keep reading with a subscription",
    "This article is for subscribers",
    "Sign in to continue",
)


def _validated_url(url: str) -> str:
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Invalid URL for article fetch: {url}")
    return url


def _find_first(soup: BeautifulSoup, selectors: Sequence[str]) -> str:
    for selector in selectors:
        node = soup.select_one(selector)
        if node is not None:
            text = node.get_text(" ", strip=True)
            if text:
                return text
    return ""


def _inside_related_section(node: Tag) -> bool:
    for parent in node.parents:
        classes = parent.get("class") if isinstance(parent, Tag) else None
        if not classes:
            continue
        joined = " ".join(classes).lower()
        if any(marker in joined for marker in _RELATED_CLASS_MARKERS):
            return True
    return False


def is_boilerplate(text: str) -> bool:
    lower = text.lower()
    return any(pattern in lower for pattern in BOILERPLATE_PATTERNS)


def _clean_paragraph(node: Tag, min_len: int) -> str:
    text = " ".join(node.get_text(" ", strip=True).split())
    if len(text) < min_len or is_boilerplate(text):
        return ""
    return text


def trim_trailing_marker(content: str) -> str:
    """Drop anything after the end marker found in the last three paragraphs."""
    if END_MARKER not in content:
        return content
    paragraphs = content.split("\n\n")
    start = max(0, len(paragraphs) - 3)
    for i in range(len(paragraphs) - 1, start - 1, -1):
        idx = paragraphs[i].rfind(END_MARKER)
        if idx == -1:
            continue
        paragraphs[i] = paragraphs[i][: idx + len(END_MARKER)].strip()
        return "\n\n".join(paragraphs[: i + 1]).strip()
    return content


def extract_content(soup: BeautifulSoup) -> str:
    paragraphs: List[str] = []
    for node in soup.select(BODY_SELECTOR):
        if _inside_related_section(node):
            continue
        text = _clean_paragraph(node, MIN_PARAGRAPH_LEN)
        if text:
            paragraphs.append(text)

    if not paragraphs:
        for node in soup.select(FALLBACK_BODY_SELECTOR):
            text = _clean_paragraph(node, MIN_FALLBACK_PARAGRAPH_LEN)
            if text:
                paragraphs.append(text)

    return trim_trailing_marker("\n\n".join(paragraphs).strip())


def check_paywall(html: str, content: str) -> None:
    if len(content) >= MIN_CONTENT_LEN:
        return
    if any(indicator in html for indicator in PAYWALL_INDICATORS):
        raise PaywallError()


def parse_article(html: str, url: str) -> Article:
    """Extract an ``Article`` from page HTML; raises ``PaywallError`` for teaser pages."""
    soup = BeautifulSoup(html, "html.parser")

    section = ""
    meta_section = soup.find("meta", attrs={"property": "article:section"})
    if meta_section and meta_section.get("content"):
        section = meta_section["content"].strip()
    flytitle = _find_first(soup, FLYTITLE_SELECTORS)
    if section and flytitle:
        overtitle = f"{section} | {flytitle}"
    else:
        overtitle = section or flytitle

    time_node = soup.find("time")
    content = extract_content(soup)
    check_paywall(html, content)

    return Article(
        title=_find_first(soup, TITLE_SELECTORS),
        url=url,
        overtitle=overtitle,
        subtitle=_find_first(soup, SUBTITLE_SELECTORS),
        date_line=time_node.get_text(" ", strip=True) if time_node else "",
        content=content,
    )


def write_debug_html(html: str) -> str:
    with tempfile.NamedTemporaryFile(
        "w", prefix="newsdesk-article-", suffix=".html", delete=False, encoding="utf-8"
    ) as fh:
        fh.write(html)
        return fh.name


class FetchSession:
    """A warm HTTP session for article pages.

    Create once, reuse for every fetch, and ``close()`` when done. Calls are
    serialized by an internal lock.
    """

    def __init__(
        self,
        *,
        cookies: Optional[Iterable[Cookie]] = None,
        timeout: float = 45.0,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.timeout = timeout
        self._lock = threading.Lock()
        self._closed = False
        self._session = requests.Session()
        self._session.headers.update({**_DEFAULT_HEADERS, **(headers or {})})
        for cookie in cookies or ():
            self._session.cookies.set(
                cookie.name, cookie.value, domain=cookie.domain or "", path=cookie.path or "/"
            )

    @property
    def closed(self) -> bool:
        return self._closed

    def _get_html(self, url: str) -> str:
        try:
            resp = self._session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransportError(f"failed to load page: {exc}") from exc
        if resp.status_code >= 400:
            logger.warning("Article fetch failed (%s): %s", resp.status_code, url)
            raise TransportError(f"HTTP {resp.status_code} from {url}")
        return resp.text

    def fetch(self, url: str, *, debug: bool = False) -> Article:
        url = _validated_url(url)
        with self._lock:
            if self._closed:
                raise RuntimeError("fetch session is closed")
            start = time.perf_counter()
            html = self._get_html(url)
            logger.debug("Page loaded in %.1fms: %s", (time.perf_counter() - start) * 1000, url)

        debug_path = write_debug_html(html) if debug else None
        if debug_path:
            logger.debug("Saved page HTML to %s", debug_path)
        article = parse_article(html, url)
        if debug_path:
            return replace(article, debug_artifact_path=debug_path)
        return article

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._session.close()

    def __enter__(self) -> "FetchSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
