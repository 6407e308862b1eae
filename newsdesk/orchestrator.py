from __future__ import annotations

import subprocess
import threading
import time
from typing import Callable, Optional

from .daemon.client import DEFAULT_FETCH_TIMEOUT, DaemonClient
from .errors import ContentMissingError, DaemonNotRunning
from .models import Article
from .storage import ArticleCache
from .utils.logging import get_logger

logger = get_logger("nd.orchestrator")

DirectFetch = Callable[[str, bool], Article]

_purge_lock = threading.Lock()
_purged = False


def _purge_once(cache: ArticleCache) -> None:
    """Sweep expired cache entries at most once per process."""
    global _purged
    with _purge_lock:
        if _purged:
            return
        _purged = True
    try:
        cache.purge_expired()
    except OSError as exc:
        logger.debug("Cache purge error: %s", exc)


def validate_article(article: Article) -> Article:
    if not article.has_content():
        raise ContentMissingError()
    return article


class FetchOrchestrator:
    """Single entry point for obtaining an article.

    Order: fresh cache hit, then the daemon (starting it once if absent),
    then a direct in-process fetch. Successful results are cached.
    """

    def __init__(
        self,
        *,
        cache: ArticleCache,
        daemon: DaemonClient,
        direct_fetch: DirectFetch,
        debug: bool = False,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT,
        ready_timeout: float = 2.0,
        ready_interval: float = 0.2,
        auto_start: bool = True,
    ) -> None:
        self.cache = cache
        self.daemon = daemon
        self.direct_fetch = direct_fetch
        self.debug = debug
        self.fetch_timeout = fetch_timeout
        self.ready_timeout = ready_timeout
        self.ready_interval = ready_interval
        self.auto_start = auto_start
        self._start_lock = threading.Lock()
        self._process: Optional[subprocess.Popen] = None

    def ensure_daemon(self) -> bool:
        """Start the daemon in the background unless it answers or is already starting.

        Returns True when a new process was spawned.
        """
        with self._start_lock:
            return self._spawn_locked()

    def _spawn_locked(self) -> bool:
        if self.daemon.is_running():
            return False
        if self._process is not None and self._process.poll() is None:
            logger.debug("read: daemon process %s still starting", self._process.pid)
            return False
        self._process = self.daemon.start_background()
        return True

    def _start_and_wait(self) -> None:
        # Concurrent callers queue here and share one start attempt.
        with self._start_lock:
            try:
                self._spawn_locked()
            except OSError as exc:
                logger.debug("read: daemon start failed: %s", exc)
                raise DaemonNotRunning(f"could not start daemon: {exc}") from exc
            if not self.daemon.wait_for_ready(self.ready_timeout, self.ready_interval):
                logger.debug("read: daemon not ready after wait")
                raise DaemonNotRunning("daemon did not become ready")

    def fetch_article(self, url: str) -> Article:
        logger.debug("read: start url=%s", url)

        if not self.debug:
            _purge_once(self.cache)
            cached = self.cache.load(url)
            if cached is not None:
                logger.debug("read: cache hit")
                return validate_article(cached)
            logger.debug("read: cache miss")

        try:
            article = self._fetch_via_daemon(url)
            logger.debug("read: daemon fetch ok")
        except DaemonNotRunning:
            logger.debug("read: daemon unavailable, using local fetch")
            article = self.direct_fetch(url, self.debug)

        return self._store(validate_article(article))

    def _fetch_via_daemon(self, url: str) -> Article:
        start = time.perf_counter()
        try:
            article = self.daemon.fetch(url, debug=self.debug, timeout=self.fetch_timeout)
            logger.debug("read: daemon response in %.1fms", (time.perf_counter() - start) * 1000)
            return article
        except DaemonNotRunning:
            if not self.auto_start:
                raise
            logger.debug("read: daemon not running, starting background")

        self._start_and_wait()
        logger.debug("read: daemon ready, retry fetch")
        article = self.daemon.fetch(url, debug=self.debug, timeout=self.fetch_timeout)
        logger.debug("read: daemon response after wait in %.1fms", (time.perf_counter() - start) * 1000)
        return article

    def _store(self, article: Article) -> Article:
        if self.debug:
            return article
        try:
            self.cache.save(article.without_debug())
        except OSError as exc:
            logger.warning("read: cache save error: %s", exc)
        return article
