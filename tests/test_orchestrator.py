"""Unit tests for the fetch orchestrator's fallback chain."""

import tempfile
import threading
import time
import unittest
from unittest.mock import MagicMock, patch

from newsdesk import orchestrator as orchestrator_module
from newsdesk.errors import ContentMissingError, DaemonNotRunning, PaywallError, TransportError
from newsdesk.models import Article
from newsdesk.orchestrator import FetchOrchestrator
from newsdesk.storage import ArticleCache

URL = "https://example.com/story"


def article(content="Body ■", debug_path=None):
    return Article(title="Story", url=URL, content=content, debug_artifact_path=debug_path)


class TestFetchOrchestrator(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.cache = ArticleCache(self._tmp.name)
        self.daemon = MagicMock()
        self.daemon.wait_for_ready.return_value = True
        self.daemon.is_running.return_value = False
        self.direct = MagicMock(return_value=article("Direct body"))
        # purge runs once per process; keep it out of the way here
        patcher = patch.object(orchestrator_module, "_purged", True)
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self):
        self._tmp.cleanup()

    def make(self, **kwargs):
        return FetchOrchestrator(
            cache=self.cache,
            daemon=self.daemon,
            direct_fetch=self.direct,
            ready_interval=0.01,
            **kwargs,
        )

    def test_cache_hit_skips_daemon(self):
        self.cache.save(article("Cached body"))
        result = self.make().fetch_article(URL)
        self.assertEqual(result.content, "Cached body")
        self.daemon.fetch.assert_not_called()
        self.direct.assert_not_called()

    def test_cached_empty_article_is_content_missing(self):
        self.cache.save(article(""))
        with self.assertRaises(ContentMissingError):
            self.make().fetch_article(URL)

    def test_daemon_result_is_cached(self):
        self.daemon.fetch.return_value = article("From daemon")
        result = self.make().fetch_article(URL)
        self.assertEqual(result.content, "From daemon")
        self.daemon.start_background.assert_not_called()
        self.assertEqual(self.cache.load(URL).content, "From daemon")

    def test_starts_daemon_and_retries_once(self):
        self.daemon.fetch.side_effect = [DaemonNotRunning(), article("After start")]
        result = self.make().fetch_article(URL)
        self.assertEqual(result.content, "After start")
        self.daemon.start_background.assert_called_once()
        self.daemon.wait_for_ready.assert_called_once()
        self.assertEqual(self.daemon.fetch.call_count, 2)
        self.direct.assert_not_called()

    def test_falls_back_when_daemon_never_ready(self):
        self.daemon.fetch.side_effect = DaemonNotRunning()
        self.daemon.wait_for_ready.return_value = False
        result = self.make().fetch_article(URL)
        self.assertEqual(result.content, "Direct body")
        self.direct.assert_called_once_with(URL, False)
        self.assertEqual(self.cache.load(URL).content, "Direct body")

    def test_falls_back_when_retry_fails(self):
        self.daemon.fetch.side_effect = [DaemonNotRunning(), DaemonNotRunning()]
        result = self.make().fetch_article(URL)
        self.assertEqual(result.content, "Direct body")

    def test_falls_back_when_daemon_cannot_start(self):
        self.daemon.fetch.side_effect = DaemonNotRunning()
        self.daemon.start_background.side_effect = OSError("no such file")
        result = self.make().fetch_article(URL)
        self.assertEqual(result.content, "Direct body")
        self.daemon.wait_for_ready.assert_not_called()

    def test_no_auto_start(self):
        self.daemon.fetch.side_effect = DaemonNotRunning()
        result = self.make(auto_start=False).fetch_article(URL)
        self.assertEqual(result.content, "Direct body")
        self.daemon.start_background.assert_not_called()

    def test_empty_daemon_content_is_content_missing(self):
        self.daemon.fetch.return_value = article("   ")
        with self.assertRaises(ContentMissingError):
            self.make().fetch_article(URL)
        self.assertIsNone(self.cache.load(URL))

    def test_typed_errors_propagate(self):
        self.daemon.fetch.side_effect = PaywallError()
        with self.assertRaises(PaywallError):
            self.make().fetch_article(URL)
        self.daemon.fetch.side_effect = TransportError("HTTP 500")
        with self.assertRaises(TransportError):
            self.make().fetch_article(URL)
        self.direct.assert_not_called()

    def test_debug_bypasses_cache(self):
        self.cache.save(article("Stale cached"))
        self.daemon.fetch.return_value = article("Fresh", debug_path="/tmp/page.html")
        result = self.make(debug=True).fetch_article(URL)
        self.assertEqual(result.content, "Fresh")
        self.assertEqual(result.debug_artifact_path, "/tmp/page.html")
        self.daemon.fetch.assert_called_once_with(URL, debug=True, timeout=45)
        self.assertEqual(self.cache.load(URL).content, "Stale cached")

    def test_cache_write_failure_is_not_fatal(self):
        cache = MagicMock()
        cache.load.return_value = None
        cache.save.side_effect = OSError("read-only")
        self.daemon.fetch.return_value = article("From daemon")
        orch = FetchOrchestrator(cache=cache, daemon=self.daemon, direct_fetch=self.direct)
        self.assertEqual(orch.fetch_article(URL).content, "From daemon")


class TestDaemonStart(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.daemon = MagicMock()
        self.daemon.is_running.return_value = False
        self.orch = FetchOrchestrator(
            cache=ArticleCache(self._tmp.name),
            daemon=self.daemon,
            direct_fetch=MagicMock(return_value=article("Direct body")),
            ready_interval=0.01,
        )
        patcher = patch.object(orchestrator_module, "_purged", True)
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self):
        self._tmp.cleanup()

    def test_concurrent_misses_start_one_daemon(self):
        both_missed = threading.Barrier(2, timeout=5)
        started = threading.Event()

        def fetch(url, **kwargs):
            if not started.is_set():
                both_missed.wait()
                raise DaemonNotRunning()
            return article(f"Body for {url}")

        def start_background():
            started.set()
            process = MagicMock()
            process.poll.return_value = None
            return process

        def wait_for_ready(timeout, interval):
            time.sleep(0.05)
            return True

        self.daemon.fetch.side_effect = fetch
        self.daemon.start_background.side_effect = start_background
        self.daemon.wait_for_ready.side_effect = wait_for_ready

        results = {}

        def worker(name):
            results[name] = self.orch.fetch_article(f"https://example.com/{name}")

        threads = [threading.Thread(target=worker, args=(name,)) for name in ("a", "b")]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        self.daemon.start_background.assert_called_once()
        self.assertEqual(results["a"].content, "Body for https://example.com/a")
        self.assertEqual(results["b"].content, "Body for https://example.com/b")

    def test_ensure_daemon_skips_running_daemon(self):
        self.daemon.is_running.return_value = True
        self.assertFalse(self.orch.ensure_daemon())
        self.daemon.start_background.assert_not_called()

    def test_ensure_daemon_waits_for_starting_process(self):
        process = MagicMock()
        process.poll.return_value = None
        self.daemon.start_background.return_value = process
        self.assertTrue(self.orch.ensure_daemon())
        self.assertFalse(self.orch.ensure_daemon())
        self.daemon.start_background.assert_called_once()

    def test_ensure_daemon_respawns_after_exit(self):
        process = MagicMock()
        process.poll.return_value = 0
        self.daemon.start_background.return_value = process
        self.assertTrue(self.orch.ensure_daemon())
        self.assertTrue(self.orch.ensure_daemon())
        self.assertEqual(self.daemon.start_background.call_count, 2)


class TestPurgeOnce(unittest.TestCase):
    def test_purges_only_once_per_process(self):
        cache = MagicMock()
        with patch.object(orchestrator_module, "_purged", False):
            orchestrator_module._purge_once(cache)
            orchestrator_module._purge_once(cache)
        cache.purge_expired.assert_called_once()

    def test_purge_errors_are_swallowed(self):
        cache = MagicMock()
        cache.purge_expired.side_effect = OSError("denied")
        with patch.object(orchestrator_module, "_purged", False):
            orchestrator_module._purge_once(cache)


if __name__ == "__main__":
    unittest.main()
