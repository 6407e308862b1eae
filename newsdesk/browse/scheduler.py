from __future__ import annotations

import queue
import threading
import time
from concurrent.futures import Future
from typing import Callable, List, Optional, Tuple

from ..fetchers.source import ArticleSource
from ..utils.logging import get_logger
from .state import ArticleLoaded, Effect, Event, FetchArticle, LoadSection, SectionLoaded

logger = get_logger("nd.scheduler")

Task = Tuple[Effect, Future]


class Scheduler:
    """Runs effects off the UI thread and queues one completion event per effect.

    Background work never raises into the event loop: failures travel inside
    the completion event. Workers are daemon threads, so a fetch still running
    when the user quits does not keep the process alive.
    """

    def __init__(
        self,
        source: ArticleSource,
        *,
        max_workers: int = 4,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.source = source
        self.clock = clock
        self.events: "queue.Queue[Event]" = queue.Queue()
        self._tasks: "queue.Queue[Optional[Task]]" = queue.Queue()
        self._closed = threading.Event()
        self._workers = [
            threading.Thread(target=self._work, name=f"newsdesk-task-{n}", daemon=True) for n in range(max_workers)
        ]
        for worker in self._workers:
            worker.start()

    def submit(self, effect: Effect) -> Future:
        future: Future = Future()
        if self._closed.is_set():
            future.cancel()
            return future
        self._tasks.put((effect, future))
        return future

    def _work(self) -> None:
        while True:
            task = self._tasks.get()
            if task is None:
                return
            effect, future = task
            if not future.set_running_or_notify_cancel():
                continue
            try:
                event = self.run_effect(effect)
            except Exception as exc:  # noqa: BLE001 - unknown effect types end up on the future
                future.set_exception(exc)
                continue
            if not self._closed.is_set():
                self.events.put(event)
            future.set_result(event)

    def run_effect(self, effect: Effect) -> Event:
        if isinstance(effect, LoadSection):
            return self._load_section(effect)
        if isinstance(effect, FetchArticle):
            return self._fetch_article(effect)
        raise TypeError(f"unknown effect: {effect!r}")

    def _load_section(self, effect: LoadSection) -> SectionLoaded:
        start = self.clock()
        try:
            title, items = self.source.section(effect.name)
        except Exception as exc:  # noqa: BLE001
            logger.warning("section %s failed: %s", effect.name, exc)
            return SectionLoaded(token=effect.name, error=exc)
        logger.debug("section %s: %d items in %.1fms", effect.name, len(items), (self.clock() - start) * 1000)
        return SectionLoaded(token=effect.name, title=title, items=tuple(items))

    def _fetch_article(self, effect: FetchArticle) -> ArticleLoaded:
        start = self.clock()
        try:
            article = self.source.article(effect.url)
        except Exception as exc:  # noqa: BLE001
            logger.warning("article %s failed: %s", effect.url, exc)
            return ArticleLoaded(token=effect.url, error=exc, duration=self.clock() - start)
        return ArticleLoaded(token=effect.url, article=article, duration=self.clock() - start)

    def drain(self) -> List[Event]:
        events: List[Event] = []
        while True:
            try:
                events.append(self.events.get_nowait())
            except queue.Empty:
                return events

    def wait(self, timeout: Optional[float] = None) -> Optional[Event]:
        try:
            return self.events.get(timeout=timeout)
        except queue.Empty:
            return None

    def shutdown(self) -> None:
        """Cancel queued effects and return without waiting for running ones."""
        if self._closed.is_set():
            return
        self._closed.set()
        cancelled = 0
        while True:
            try:
                task = self._tasks.get_nowait()
            except queue.Empty:
                break
            if task is not None and task[1].cancel():
                cancelled += 1
        for _ in self._workers:
            self._tasks.put(None)
        logger.debug("scheduler shutdown: %d queued effects cancelled", cancelled)
