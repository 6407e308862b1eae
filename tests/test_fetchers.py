"""Unit tests for feed parsing, article extraction and sources."""

import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import requests

from newsdesk.errors import PaywallError, TransportError
from newsdesk.fetchers import FetchSession, ReaderSource, create_source, parse_article, parse_feed
from newsdesk.fetchers.demo import DemoSource
from newsdesk.fetchers.http import trim_trailing_marker
from newsdesk.fetchers.rss import fetch_section, resolve_section, section_url
from newsdesk.models import Article

RSS = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Leaders</title>
    <item>
      <title>  First   story </title>
      <link>https://example.com/first</link>
      <description>&lt;p&gt;Some &lt;b&gt;bold&lt;/b&gt; summary&lt;/p&gt;</description>
      <pubDate>Thu, 22 Jan 2026 09:00:00 GMT</pubDate>
    </item>
    <item>
      <title>No link</title>
    </item>
    <item>
      <title>Second story</title>
      <link>https://example.com/second</link>
    </item>
  </channel>
</rss>
"""

LONG_PARAGRAPH = "This is a sufficiently long paragraph of article body text that clears the threshold."


def article_html(body, extra=""):
    return f"""
<html><head><meta property="article:section" content="Leaders"></head>
<body><article>
  <span class="article__flytitle">Trade</span>
  <h1 class="article__headline">The headline</h1>
  <p class="article__description">The standfirst</p>
  <time>Jan 22nd 2026</time>
  <div class="article__body-text">{body}</div>
  {extra}
</article></body></html>
"""


class TestSections(unittest.TestCase):
    def test_aliases(self):
        self.assertEqual(resolve_section("finance"), "finance-and-economics")
        self.assertEqual(resolve_section(" US "), "united-states")
        self.assertEqual(resolve_section("obituary"), "obituary")

    def test_section_url(self):
        self.assertEqual(section_url("tech"), "https://www.economist.com/science-and-technology/rss.xml")


class TestParseFeed(unittest.TestCase):
    def test_items_in_order(self):
        title, items = parse_feed(RSS)
        self.assertEqual(title, "Leaders")
        self.assertEqual([i.link for i in items], ["https://example.com/first", "https://example.com/second"])
        self.assertEqual(items[0].clean_title(), "First story")
        self.assertEqual(items[0].description, "Some bold summary")
        self.assertEqual(items[0].published_at, datetime(2026, 1, 22, 9, 0, tzinfo=timezone.utc))
        self.assertEqual(items[0].formatted_date(), "Jan 22nd 2026")
        self.assertEqual(items[0].compact_date(), "22.01.26")
        self.assertIsNone(items[1].published_at)

    def test_limit(self):
        _, items = parse_feed(RSS, limit=1)
        self.assertEqual(len(items), 1)

    @patch("newsdesk.fetchers.rss.requests.get")
    def test_fetch_section(self, mock_get):
        mock_resp = MagicMock()
        mock_resp.status_code = 200
        mock_resp.content = RSS
        mock_get.return_value = mock_resp

        title, items = fetch_section("leaders", limit=5)

        self.assertEqual(title, "Leaders")
        self.assertEqual(len(items), 2)
        self.assertEqual(mock_get.call_args[0][0], "https://www.economist.com/leaders/rss.xml")

    @patch("newsdesk.fetchers.rss.requests.get")
    def test_fetch_section_network_error(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("offline")
        with self.assertRaises(TransportError):
            fetch_section("leaders")


class TestParseArticle(unittest.TestCase):
    def test_extracts_fields(self):
        body = f"<p>{LONG_PARAGRAPH}</p><p>Short</p><p>{LONG_PARAGRAPH} End ■ Sign up here</p>"
        article = parse_article(article_html(body), "https://example.com/a")
        self.assertEqual(article.title, "The headline")
        self.assertEqual(article.subtitle, "The standfirst")
        self.assertEqual(article.overtitle, "Leaders | Trade")
        self.assertEqual(article.date_line, "Jan 22nd 2026")
        self.assertEqual(article.url, "https://example.com/a")
        paragraphs = article.content.split("\n\n")
        self.assertEqual(len(paragraphs), 1)
        self.assertEqual(paragraphs[0], LONG_PARAGRAPH)

    def test_marker_trims_trailing_text(self):
        body = f"<p>{LONG_PARAGRAPH}</p><p>{LONG_PARAGRAPH} And that is the end ■ then a footer</p>"
        article = parse_article(article_html(body), "https://example.com/a")
        self.assertTrue(article.content.endswith("■"))

    def test_related_sections_skipped(self):
        body = f'<p>{LONG_PARAGRAPH}</p><div class="related-articles"><p>{LONG_PARAGRAPH} related</p></div>'
        article = parse_article(article_html(body), "https://example.com/a")
        self.assertNotIn("related", article.content)

    def test_paywall_detected(self):
        with self.assertRaises(PaywallError):
            parse_article(article_html("", "<div>Subscribe to read this article</div>"), "https://example.com/a")

    def test_long_content_is_not_paywall(self):
        body = "".join(f"<p>{LONG_PARAGRAPH} {n}</p>" for n in range(10))
        article = parse_article(article_html(body, "<div>Subscribe to read</div>"), "https://example.com/a")
        self.assertTrue(article.has_content())

    def test_trim_trailing_marker(self):
        self.assertEqual(trim_trailing_marker("a\n\nb ■ tail"), "a\n\nb ■")
        self.assertEqual(trim_trailing_marker("a ■\n\nnext\n\nmore"), "a ■")
        self.assertEqual(trim_trailing_marker("no marker"), "no marker")


class TestFetchSession(unittest.TestCase):
    def _response(self, status=200, text=""):
        resp = MagicMock()
        resp.status_code = status
        resp.text = text
        return resp

    def test_fetch_parses_page(self):
        session = FetchSession()
        body = f"<p>{LONG_PARAGRAPH}</p>"
        with patch.object(session._session, "get", return_value=self._response(text=article_html(body))):
            article = session.fetch("https://example.com/a")
        self.assertEqual(article.title, "The headline")
        self.assertIsNone(article.debug_artifact_path)
        session.close()

    def test_http_error(self):
        with FetchSession() as session:
            with patch.object(session._session, "get", return_value=self._response(status=503)):
                with self.assertRaises(TransportError):
                    session.fetch("https://example.com/a")

    def test_invalid_url(self):
        with FetchSession() as session:
            with self.assertRaises(ValueError):
                session.fetch("ftp://example.com/a")

    def test_closed_session_rejects_fetch(self):
        session = FetchSession()
        session.close()
        self.assertTrue(session.closed)
        with self.assertRaises(RuntimeError):
            session.fetch("https://example.com/a")

    def test_cookies_loaded(self):
        from newsdesk.utils.config_loader import Cookie

        session = FetchSession(cookies=[Cookie("session", "abc", domain=".example.com")])
        self.assertEqual(session._session.cookies.get("session"), "abc")
        session.close()


class TestDemoSource(unittest.TestCase):
    def test_sections_and_fallback(self):
        source = DemoSource()
        title, items = source.section("leaders")
        self.assertEqual(title, "Leaders (Demo)")
        self.assertIn("AI and China", [i.title for i in items])
        self.assertEqual(source.section("finance")[0], "Finance & economics (Demo)")
        self.assertEqual(source.section("does-not-exist")[0], "Leaders (Demo)")

    def test_items_newest_first(self):
        _, items = DemoSource().section("business")
        dates = [i.published_at for i in items]
        self.assertEqual(dates, sorted(dates, reverse=True))

    def test_article_for_every_item(self):
        source = DemoSource()
        for name in ("leaders", "business", "finance"):
            for item in source.section(name)[1]:
                article = source.article(item.link)
                self.assertEqual(article.url, item.link)
                self.assertTrue(article.content.endswith("■"))

    def test_unknown_article(self):
        with self.assertRaises(LookupError):
            DemoSource().article("https://example.com/nope")


class TestCreateSource(unittest.TestCase):
    def test_demo(self):
        self.assertIsInstance(create_source(demo=True), DemoSource)

    def test_live_requires_orchestrator(self):
        with self.assertRaises(ValueError):
            create_source()

    def test_reader_source_uses_orchestrator(self):
        orchestrator = MagicMock()
        orchestrator.fetch_article.return_value = Article(title="T", url="https://example.com/a", content="x")
        source = create_source(orchestrator=orchestrator)
        self.assertIsInstance(source, ReaderSource)
        self.assertEqual(source.article("https://example.com/a").title, "T")
        orchestrator.fetch_article.assert_called_once_with("https://example.com/a")


if __name__ == "__main__":
    unittest.main()
