"""Tests for the scheduler, the event loop and the terminal helpers."""

import curses
import os
import subprocess
import sys
import textwrap
import threading
import time
import unittest
from pathlib import Path

from newsdesk.browse import model
from newsdesk.browse.app import run_loop, section_index
from newsdesk.browse.scheduler import Scheduler
from newsdesk.browse.state import ArticleLoaded, FetchArticle, LoadSection, Mode, SectionLoaded
from newsdesk.fetchers.demo import DemoSource
from newsdesk.fetchers.source import ArticleSource
from newsdesk.ui.terminal import decode_key
from newsdesk.ui.theme import BASIC, MONO, RICH, color_disabled, select_theme


class FailingSource(ArticleSource):
    def section(self, name):
        raise RuntimeError(f"cannot load {name}")

    def article(self, url):
        raise RuntimeError("no network")


class GatedSource(ArticleSource):
    """Holds each section load until the test releases it."""

    def __init__(self):
        self.gates = {}
        self.demo = DemoSource()

    def gate(self, name):
        return self.gates.setdefault(name, threading.Event())

    def section(self, name):
        self.gate(name).wait(5)
        return self.demo.section(name)

    def article(self, url):
        return self.demo.article(url)


class FakeScreen:
    """Feeds scripted keys (callables run first), then quits."""

    def __init__(self, keys, width=80, height=24):
        self.keys = list(keys)
        self.width = width
        self.height = height
        self.frames = []

    def read_key(self):
        if self.keys:
            key = self.keys.pop(0)
            if callable(key):
                return key()
            return key
        return "q"

    def size(self):
        return self.width, self.height

    def paint(self, frame, theme):
        self.frames.append(frame)


def wait_for_events(scheduler, count):
    """Block until ``count`` completions are queued, then put them back."""
    events = [scheduler.wait(timeout=5) for _ in range(count)]
    for event in events:
        scheduler.events.put(event)
    return None


def demo_state(source, width=80, height=24):
    title, items = source.section("leaders")
    return model.initial_state(
        sections=("leaders", "business", "finance"),
        selected_section=0,
        title=title,
        items=items,
        width=width,
        height=height,
    )


class TestScheduler(unittest.TestCase):
    def test_section_effect(self):
        scheduler = Scheduler(DemoSource())
        try:
            event = scheduler.run_effect(LoadSection("business"))
        finally:
            scheduler.shutdown()
        self.assertIsInstance(event, SectionLoaded)
        self.assertEqual(event.token, "business")
        self.assertEqual(event.title, "Business (Demo)")
        self.assertIsNone(event.error)

    def test_errors_are_captured(self):
        scheduler = Scheduler(FailingSource())
        try:
            section = scheduler.run_effect(LoadSection("leaders"))
            article = scheduler.run_effect(FetchArticle("https://example.com/a"))
        finally:
            scheduler.shutdown()
        self.assertEqual(str(section.error), "cannot load leaders")
        self.assertIsInstance(article, ArticleLoaded)
        self.assertEqual(str(article.error), "no network")
        self.assertIsNotNone(article.duration)

    def test_submit_posts_completion(self):
        source = DemoSource()
        url = source.section("leaders")[1][0].link
        scheduler = Scheduler(source)
        try:
            scheduler.submit(FetchArticle(url)).result(timeout=5)
            event = scheduler.wait(timeout=5)
        finally:
            scheduler.shutdown()
        self.assertEqual(event.token, url)
        self.assertEqual(event.article.url, url)
        self.assertEqual(scheduler.drain(), [])


class BlockingSource(ArticleSource):
    """Article fetches wait until ``release`` is set."""

    def __init__(self):
        self.release = threading.Event()
        self.entered = threading.Event()

    def section(self, name):
        return "Blocked", []

    def article(self, url):
        self.entered.set()
        self.release.wait(5)
        return DemoSource().article(DemoSource().section("leaders")[1][0].link)


QUIT_WHILE_FETCHING = textwrap.dedent(
    """
    import time
    from newsdesk.browse.scheduler import Scheduler
    from newsdesk.browse.state import FetchArticle
    from newsdesk.fetchers.source import ArticleSource

    class SlowSource(ArticleSource):
        def section(self, name):
            time.sleep(30)

        def article(self, url):
            time.sleep(30)

    scheduler = Scheduler(SlowSource())
    scheduler.submit(FetchArticle("https://example.com/slow"))
    time.sleep(0.2)
    scheduler.shutdown()
    """
)


class TestSchedulerShutdown(unittest.TestCase):
    def test_shutdown_does_not_wait_for_running_effect(self):
        source = BlockingSource()
        scheduler = Scheduler(source, max_workers=1)
        running = scheduler.submit(FetchArticle("https://example.com/running"))
        self.assertTrue(source.entered.wait(5))
        queued = [scheduler.submit(FetchArticle(f"https://example.com/{n}")) for n in range(3)]

        start = time.monotonic()
        scheduler.shutdown()
        self.assertLess(time.monotonic() - start, 1.0)

        self.assertTrue(all(future.cancelled() for future in queued))
        self.assertFalse(running.done())
        self.assertTrue(scheduler.submit(FetchArticle("https://example.com/late")).cancelled())
        self.assertTrue(all(worker.daemon for worker in scheduler._workers))

        source.release.set()
        running.result(timeout=5)
        self.assertEqual(scheduler.drain(), [])

    def test_process_exits_while_effect_runs(self):
        root = Path(__file__).resolve().parents[1]
        env = dict(os.environ, PYTHONPATH=os.pathsep.join(filter(None, [str(root), os.environ.get("PYTHONPATH")])))
        start = time.monotonic()
        result = subprocess.run(
            [sys.executable, "-c", QUIT_WHILE_FETCHING],
            cwd=root,
            env=env,
            capture_output=True,
            timeout=25,
        )
        elapsed = time.monotonic() - start
        self.assertEqual(result.returncode, 0, result.stderr.decode(errors="replace"))
        self.assertLess(elapsed, 10.0)


class TestRunLoop(unittest.TestCase):
    def test_select_article_then_quit(self):
        source = DemoSource()
        scheduler = Scheduler(source)
        keys = ["down", "enter", lambda: wait_for_events(scheduler, 1), "q"]
        screen = FakeScreen(keys)
        try:
            final = run_loop(demo_state(source), screen, scheduler, MONO)
        finally:
            scheduler.shutdown()
        self.assertTrue(final.quitting)
        self.assertIs(final.mode, Mode.ARTICLE)
        self.assertEqual(final.loaded_article.url, source.section("leaders")[1][1].link)
        self.assertTrue(all(len(frame) == 24 for frame in screen.frames))

    def test_superseded_section_never_shown(self):
        source = GatedSource()
        source.gate("leaders").set()
        scheduler = Scheduler(source)

        def release_finance_then_business():
            source.gate("finance").set()
            wait_for_events(scheduler, 1)
            source.gate("business").set()
            wait_for_events(scheduler, 2)
            return None

        keys = ["tab", "tab", release_finance_then_business, None, "q"]
        screen = FakeScreen(keys)
        try:
            final = run_loop(demo_state(source), screen, scheduler, MONO)
        finally:
            scheduler.shutdown()

        self.assertEqual(final.section_title, "Finance & economics (Demo)")
        self.assertEqual(final.section_name, "finance")
        self.assertIsNone(final.pending_section_token)
        self.assertFalse(any("bread" in item.title for item in final.all_items))

    def test_resize_repaints_at_new_size(self):
        source = DemoSource()
        scheduler = Scheduler(source)
        screen = FakeScreen([])

        def shrink():
            screen.width, screen.height = 50, 15
            return "resize"

        screen.keys = [shrink, "q"]
        try:
            final = run_loop(demo_state(source), screen, scheduler, MONO)
        finally:
            scheduler.shutdown()
        self.assertEqual((final.terminal_width, final.terminal_height), (50, 15))
        self.assertEqual(len(screen.frames[-1]), 15)


class TestSectionIndex(unittest.TestCase):
    def test_alias_matches_configured_section(self):
        self.assertEqual(section_index(["leaders", "finance"], "finance-and-economics"), (("leaders", "finance"), 1))

    def test_unknown_section_is_prepended(self):
        self.assertEqual(section_index(["leaders"], "obituary"), (("obituary", "leaders"), 0))


class TestTerminalHelpers(unittest.TestCase):
    def test_decode_special_keys(self):
        self.assertEqual(decode_key(curses.KEY_UP), "up")
        self.assertEqual(decode_key(curses.KEY_BTAB), "shift+tab")
        self.assertEqual(decode_key(curses.KEY_RESIZE), "resize")
        self.assertEqual(decode_key("\n"), "enter")
        self.assertEqual(decode_key("\x1b"), "esc")
        self.assertEqual(decode_key("\x7f"), "backspace")
        self.assertEqual(decode_key(" "), "space")

    def test_decode_printable(self):
        self.assertEqual(decode_key("a"), "a")
        self.assertEqual(decode_key("é"), "é")
        self.assertIsNone(decode_key("\x01"))

    def test_select_theme(self):
        self.assertIs(select_theme(256), RICH)
        self.assertIs(select_theme(8), BASIC)
        self.assertIs(select_theme(2), MONO)
        self.assertIs(select_theme(256, no_color=True), MONO)

    def test_color_disabled(self):
        self.assertTrue(color_disabled({"NO_COLOR": "1"}))
        self.assertTrue(color_disabled({"TERM": "dumb"}))
        self.assertFalse(color_disabled({"TERM": "xterm-256color"}))

    def test_unknown_role_is_plain(self):
        self.assertEqual(RICH.style("nonexistent"), RICH.style("body"))


if __name__ == "__main__":
    unittest.main()
