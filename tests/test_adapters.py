import unittest
from urllib.parse import parse_qs, urlparse

from prospector.errors import AdapterError, ServerError
from prospector.search.adapters import (
    BingSearchAdapter,
    DevToAdapter,
    DuckDuckGoAdapter,
    GoogleSearchAdapter,
    HackerNewsAdapter,
    MediumAdapter,
    SiteRestrictedAdapter,
    extract_ddg_target,
    normalize_devto_tag,
    parse_ddg_results,
)

from fakes import FakeFetcher


DDG_HTML = """
<html><body>
  <div class="result results_links web-result">
    <h2 class="result__title">
      <a class="result__a" href="//duckduckgo.com/l/?uddg=https%3A%2F%2Fblog.example.com%2Fai-screening%3Fa%3D1&amp;rut=abc">AI Screening Tools Compared</a>
    </h2>
    <a class="result__snippet">A look at five tools for screening candidates.</a>
  </div>
  <div class="result web-result">
    <h2 class="result__title"><a class="result__a" href="https://news.example.org/voice-ai">Voice AI in Hiring</a></h2>
  </div>
  <div class="result web-result">
    <h2 class="result__title"><a class="result__a" href="https://duckduckgo.com/y.js?ad=1">Sponsored</a></h2>
  </div>
</body></html>
"""


class TestDuckDuckGo(unittest.TestCase):
    def test_unwraps_redirect_links(self):
        href = "//duckduckgo.com/l/?uddg=https%3A%2F%2Fexample.com%2Fpost%3Fid%3D3&rut=x"
        self.assertEqual(extract_ddg_target(href), "https://example.com/post?id=3")
        self.assertEqual(extract_ddg_target("/l/?uddg=https%3A%2F%2Fa.com%2F"), "https://a.com/")
        self.assertEqual(extract_ddg_target("https://plain.com/x"), "https://plain.com/x")
        self.assertEqual(extract_ddg_target(""), "")

    def test_parse_results_skips_ddg_hosts(self):
        results = parse_ddg_results(DDG_HTML, limit=10)
        self.assertEqual(
            [r.url for r in results],
            ["https://blog.example.com/ai-screening?a=1", "https://news.example.org/voice-ai"],
        )
        self.assertEqual(results[0].title, "AI Screening Tools Compared")
        self.assertIn("five tools", results[0].snippet)
        self.assertTrue(all(r.source_id == "duckduckgo" for r in results))

    def test_parse_respects_limit(self):
        self.assertEqual(len(parse_ddg_results(DDG_HTML, limit=1)), 1)

    def test_bare_result_links_without_cards(self):
        html = (
            '<html><body>'
            '<a class="result__a" href="//duckduckgo.com/l/?uddg=https%3A%2F%2Fa.example.com%2Fx">A</a>'
            '<a class="result__a" href="https://duckduckgo.com/y.js?ad=1">Ad</a>'
            '<a class="result__a" href="https://b.example.com/y">B</a>'
            '</body></html>'
        )
        results = parse_ddg_results(html, limit=10, source_id="ddg-site")
        self.assertEqual([r.url for r in results], ["https://a.example.com/x", "https://b.example.com/y"])
        self.assertEqual([r.title for r in results], ["A", "B"])
        self.assertTrue(all(r.snippet == "" for r in results))
        self.assertTrue(all(r.source_id == "ddg-site" for r in results))
        self.assertEqual(len(parse_ddg_results(html, limit=1)), 1)

    def test_recent_search_sends_date_filter(self):
        fetcher = FakeFetcher({"https://html.duckduckgo.com/html/": DDG_HTML})
        DuckDuckGoAdapter(fetcher=fetcher).search_recent("ai recruiting", 5, time_range="w")
        qs = parse_qs(urlparse(fetcher.requested[0]).query)
        self.assertEqual(qs["q"], ["ai recruiting"])
        self.assertEqual(qs["df"], ["w"])

    def test_fetch_failure_becomes_adapter_error(self):
        fetcher = FakeFetcher({"https://html.duckduckgo.com/html/": ServerError("boom")})
        with self.assertRaises(AdapterError):
            DuckDuckGoAdapter(fetcher=fetcher).search("x")


class TestCredentialedApis(unittest.TestCase):
    def test_unconfigured_google_returns_nothing_without_fetching(self):
        fetcher = FakeFetcher()
        adapter = GoogleSearchAdapter(fetcher=fetcher)
        self.assertFalse(adapter.is_configured())
        self.assertEqual(adapter.search("anything"), [])
        self.assertEqual(fetcher.requested, [])

    def test_google_paginates_and_skips_items_without_link(self):
        def page(url):
            start = int(parse_qs(urlparse(url).query)["start"][0])
            items = [{"title": f"T{start + i}", "link": f"https://g.com/{start + i}"} for i in range(10)]
            items[0] = {"title": "no link"}
            return {"items": items}

        fetcher = FakeFetcher({"https://www.googleapis.com/customsearch/v1": page})
        adapter = GoogleSearchAdapter(fetcher=fetcher, api_key="k", engine_id="cx")
        results = adapter.search("q", limit=15)
        self.assertEqual(len(results), 15)
        self.assertEqual(len(fetcher.requested), 2)
        self.assertTrue(all(r.url.startswith("https://g.com/") for r in results))

    def test_bing_reads_web_pages(self):
        payload = {"webPages": {"value": [{"name": "A", "url": "https://a.com", "snippet": "s"}, {"name": "B"}]}}
        fetcher = FakeFetcher({"https://api.bing.microsoft.com/": payload})
        results = BingSearchAdapter(fetcher=fetcher, api_key="k").search("q", 10)
        self.assertEqual([(r.title, r.url, r.source_id) for r in results], [("A", "https://a.com", "bing")])


class TestDevTo(unittest.TestCase):
    ARTICLES = [
        {"title": "Voice AI interviews", "url": "https://dev.to/a/1", "description": "", "tag_list": ["ai"], "user": {"name": "Ann"}, "reading_time_minutes": 4},
        {"title": "CSS tricks", "url": "https://dev.to/b/2", "description": "styling", "tag_list": ["css"]},
        {"title": "Hiring engineers", "url": "https://dev.to/c/3", "description": "recruiting tips", "tag_list": ["hiring"]},
    ]

    def test_search_filters_by_terms(self):
        fetcher = FakeFetcher({"https://dev.to/api/articles": self.ARTICLES})
        results = DevToAdapter(fetcher=fetcher).search("voice recruiting", 10)
        self.assertEqual([r.url for r in results], ["https://dev.to/a/1", "https://dev.to/c/3"])
        self.assertEqual(results[0].snippet, "By Ann • 4 min read")

    def test_tag_normalization(self):
        self.assertEqual(normalize_devto_tag("HR Tech!"), "hrtech")

    def test_search_tags_dedupes(self):
        fetcher = FakeFetcher({"https://dev.to/api/articles": self.ARTICLES})
        results = DevToAdapter(fetcher=fetcher).search_tags(["ai", "hiring"], limit=10)
        self.assertEqual(len(results), 3)


class TestHackerNews(unittest.TestCase):
    def test_skips_hits_without_url(self):
        payload = {
            "hits": [
                {"title": "Ask HN: hiring?", "url": None, "points": 3},
                {"title": "AI interviewer", "url": "https://x.com/post", "points": 120, "num_comments": 40, "author": "pg", "created_at": "2026-09-01T00:00:00Z"},
            ]
        }
        fetcher = FakeFetcher({"https://hn.algolia.com/api/v1/search": payload})
        results = HackerNewsAdapter(fetcher=fetcher).search("ai interviewer", 10)
        self.assertEqual([r.url for r in results], ["https://x.com/post"])
        self.assertIn("120 points", results[0].snippet)
        self.assertIn("2026-09-01", results[0].snippet)

    def test_time_range_and_points_filters(self):
        fetcher = FakeFetcher({"https://hn.algolia.com/api/v1/": {"hits": []}})
        adapter = HackerNewsAdapter(fetcher=fetcher, now=lambda: 1_000_000)
        adapter.search_by_date("q", 5, time_range="day")
        adapter.search_popular("q", min_points=75)
        first = urlparse(fetcher.requested[0])
        self.assertTrue(first.path.endswith("/search_by_date"))
        self.assertEqual(parse_qs(first.query)["numericFilters"], [f"created_at_i>{1_000_000 - 86400}"])
        self.assertEqual(parse_qs(urlparse(fetcher.requested[1]).query)["numericFilters"], ["points>=75"])


class TestSiteRestriction(unittest.TestCase):
    def test_wraps_query_with_site_operator(self):
        fetcher = FakeFetcher({"https://html.duckduckgo.com/html/": DDG_HTML})
        ddg = DuckDuckGoAdapter(fetcher=fetcher)
        adapter = SiteRestrictedAdapter(inner=ddg, site="hrdive.com")
        adapter.search("ai screening", 5)
        self.assertEqual(parse_qs(urlparse(fetcher.requested[0]).query)["q"], ["site:hrdive.com ai screening"])
        self.assertEqual(adapter.source_id, "duckduckgo")

    def test_medium_tags_results_and_tolerates_tag_page_failure(self):
        fetcher = FakeFetcher(
            {
                "https://html.duckduckgo.com/html/": DDG_HTML,
                "https://medium.com/tag/": ServerError("down"),
            }
        )
        medium = MediumAdapter(fetcher=fetcher, site_search=DuckDuckGoAdapter(fetcher=fetcher))
        results = medium.search("voice ai", 5)
        self.assertEqual(len(results), 2)
        self.assertTrue(all(r.source_id == "medium" for r in results))


if __name__ == "__main__":
    unittest.main()
