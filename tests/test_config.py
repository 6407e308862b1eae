"""Unit tests for configuration loading."""

import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from newsdesk.utils.app_config import AppConfig
from newsdesk.utils.config_loader import (
    DEFAULT_FEED_URL_TEMPLATE,
    DEFAULT_SECTIONS,
    ConfigError,
    load_user_config,
)


class TestLoadUserConfig(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "config.yaml"

    def tearDown(self):
        self._tmp.cleanup()

    def write(self, text):
        self.path.write_text(text, encoding="utf-8")
        return self.path

    def test_missing_file_gives_defaults(self):
        cfg = load_user_config(self.path)
        self.assertEqual(cfg.sections, DEFAULT_SECTIONS)
        self.assertEqual(cfg.feed_url_template, DEFAULT_FEED_URL_TEMPLATE)
        self.assertFalse(cfg.is_logged_in)

    def test_none_path_gives_defaults(self):
        self.assertEqual(load_user_config(None).default_section, "leaders")

    def test_full_config(self):
        cfg = load_user_config(
            self.write(
                """
cookies:
  - name: session
    value: abc123
    domain: .example.com
sections: [Leaders, business]
default_section: Business
feed_url_template: "https://feeds.example.com/{path}.xml"
unknown_key: ignored
"""
            )
        )
        self.assertTrue(cfg.is_logged_in)
        self.assertEqual(cfg.cookie_dict(), {"session": "abc123"})
        self.assertEqual(cfg.cookies[0].domain, ".example.com")
        self.assertEqual(cfg.cookies[0].path, "/")
        self.assertEqual(cfg.sections, ["leaders", "business"])
        self.assertEqual(cfg.default_section, "business")
        self.assertEqual(cfg.feed_url_template, "https://feeds.example.com/{path}.xml")

    def test_empty_file(self):
        self.assertEqual(load_user_config(self.write("")).sections, DEFAULT_SECTIONS)

    def test_invalid_yaml(self):
        with self.assertRaises(ConfigError):
            load_user_config(self.write("cookies: [unclosed"))

    def test_invalid_shapes(self):
        bad = [
            "- just\n- a list\n",
            "cookies: nope\n",
            "cookies:\n  - name: only\n",
            "cookies:\n  - name: a\n    value: 3\n",
            "sections: []\n",
            "sections: [ok, '']\n",
            "feed_url_template: https://example.com/feed.xml\n",
            "default_section: ''\n",
        ]
        for text in bad:
            with self.assertRaises(ConfigError, msg=text):
                load_user_config(self.write(text))


class TestAppConfig(unittest.TestCase):
    def test_environment_overrides(self):
        env = {
            "NEWSDESK_HOME": "/tmp/newsdesk-test",
            "NEWSDESK_CACHE_TTL": "60",
            "NEWSDESK_FETCH_TIMEOUT": "5",
            "NEWSDESK_MAX_ITEMS": "7",
        }
        with patch.dict(os.environ, env):
            cfg = AppConfig()
        self.assertEqual(cfg.cache_ttl_seconds, 60.0)
        self.assertEqual(cfg.fetch_timeout, 5.0)
        self.assertEqual(cfg.max_items, 7)
        self.assertEqual(cfg.socket_path, Path("/tmp/newsdesk-test/serve.sock"))
        self.assertEqual(cfg.cache_dir, Path("/tmp/newsdesk-test/cache"))
        self.assertEqual(cfg.daemon_log_path, Path("/tmp/newsdesk-test/serve.log"))
        self.assertEqual(cfg.user_config_path, Path("/tmp/newsdesk-test/config.yaml"))

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            cfg = AppConfig(home="~/nd")
        self.assertEqual(cfg.cache_ttl_seconds, 3600.0)
        self.assertEqual(cfg.ready_timeout, 2.0)
        self.assertEqual(cfg.max_items, 50)
        self.assertFalse(str(cfg.home_dir).startswith("~"))


if __name__ == "__main__":
    unittest.main()
