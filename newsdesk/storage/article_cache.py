from __future__ import annotations

import hashlib
import json
import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional

from ..models import Article
from ..utils.logging import get_logger

logger = get_logger("nd.storage.cache")

ARTICLE_TTL = timedelta(hours=1)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp; naive values are taken as UTC."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ArticleCache:
    """TTL-bounded store of fetched articles, one JSON file per URL.

    Files are named by the SHA-1 of the article URL and hold
    ``{"cached_at": <RFC 3339>, "article": {...}}``. The directory is shared
    by every process; concurrent writers to one key are last-writer-wins.
    """

    def __init__(self, cache_dir: Path | str, *, ttl: timedelta = ARTICLE_TTL, clock: Clock = _utcnow) -> None:
        self.cache_dir = Path(cache_dir)
        self.ttl = ttl
        self._clock = clock

    @staticmethod
    def key_for(url: str) -> str:
        return hashlib.sha1(url.encode("utf-8")).hexdigest()

    def path_for(self, url: str) -> Path:
        return self.cache_dir / f"{self.key_for(url)}.json"

    def _is_expired(self, cached_at: datetime) -> bool:
        return self._clock() - cached_at > self.ttl

    def load(self, url: str) -> Optional[Article]:
        """Return the cached article, or ``None`` on miss, corruption or expiry.

        Expired entries are deleted before returning.
        """
        path = self.path_for(url)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.debug("Cache read failed for %s: %s", path, exc)
            return None

        try:
            data = json.loads(raw)
            cached_at = parse_timestamp(data["cached_at"])
            article = Article.from_payload(data["article"])
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.debug("Ignoring corrupt cache entry %s: %s", path, exc)
            return None

        if self._is_expired(cached_at):
            self._remove(path)
            return None
        return article

    def save(self, article: Article) -> Path:
        """Write an entry atomically with owner-only permissions."""
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        entry = {"cached_at": self._clock().isoformat(), "article": article.to_payload()}
        path = self.path_for(article.url)

        # mkstemp creates the file 0600.
        fd, tmp_name = tempfile.mkstemp(prefix=".tmp-", suffix=".json", dir=self.cache_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(entry, fh)
            os.replace(tmp_name, path)
        except BaseException:
            self._remove(Path(tmp_name))
            raise
        return path

    def purge_expired(self) -> int:
        """Delete expired and corrupt entries; returns how many files were removed."""
        if not self.cache_dir.is_dir():
            return 0

        removed = 0
        for path in self.cache_dir.iterdir():
            if not path.is_file() or path.name.startswith(".tmp-"):
                continue
            try:
                raw = path.read_bytes()
            except OSError:
                continue
            try:
                cached_at = parse_timestamp(json.loads(raw)["cached_at"])
            except (ValueError, KeyError, TypeError, AttributeError):
                removed += self._remove(path)
                continue
            if self._is_expired(cached_at):
                removed += self._remove(path)
        if removed:
            logger.debug("Purged %d cache entr%s", removed, "y" if removed == 1 else "ies")
        return removed

    @staticmethod
    def _remove(path: Path) -> int:
        try:
            path.unlink()
        except FileNotFoundError:
            return 0
        except OSError as exc:
            logger.debug("Could not remove cache file %s: %s", path, exc)
            return 0
        return 1
