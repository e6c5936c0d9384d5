import threading
import unittest

from prospector.errors import AdapterError
from prospector.ingestion.article_types import SearchResult
from prospector.search.adapters import SearchAdapter
from prospector.search.aggregator import SearchAggregator, fair_share


class StaticAdapter(SearchAdapter):
    def __init__(self, source_id, urls, configured=True):
        self.source_id = source_id
        self.urls = urls
        self.configured = configured
        self.calls = []

    def is_configured(self):
        return self.configured

    def search(self, query, limit=10):
        self.calls.append((query, limit))
        return [SearchResult(title=u, url=u, source_id=self.source_id) for u in self.urls[:limit]]


class FailingAdapter(SearchAdapter):
    source_id = "broken"

    def search(self, query, limit=10):
        raise AdapterError("down", source_id=self.source_id)


class HangingAdapter(SearchAdapter):
    source_id = "slow"

    def __init__(self):
        self.release = threading.Event()

    def search(self, query, limit=10):
        self.release.wait(5)
        return [SearchResult(title="late", url="https://late.com", source_id=self.source_id)]


class TestFairShare(unittest.TestCase):
    def test_web_engines_get_half_apis_a_quarter(self):
        self.assertEqual(fair_share("google", 50), 25)
        self.assertEqual(fair_share("duckduckgo", 15), 8)
        self.assertEqual(fair_share("devto", 50), 13)
        self.assertEqual(fair_share("hackernews", 1), 1)


class TestAggregatorSearch(unittest.TestCase):
    def test_merges_in_dispatch_order_and_dedupes(self):
        google = StaticAdapter("google", ["https://a.com/1", "https://b.com/2"])
        devto = StaticAdapter("devto", ["http://www.a.com/1/", "https://dev.to/x"])
        agg = SearchAggregator({"google": google, "devto": devto})
        results = agg.search("q", limit=10)
        self.assertEqual([r.url for r in results], ["https://a.com/1", "https://b.com/2", "https://dev.to/x"])
        self.assertEqual(google.calls, [("q", 5)])
        self.assertEqual(devto.calls, [("q", 3)])

    def test_partial_failure_keeps_other_results(self):
        ok = StaticAdapter("google", ["https://a.com/1"])
        agg = SearchAggregator({"google": ok, "bing": FailingAdapter()})
        with self.assertLogs("prospector.search.aggregator", level="ERROR"):
            results = agg.search("q", limit=10)
        self.assertEqual([r.url for r in results], ["https://a.com/1"])

    def test_timed_out_adapter_contributes_nothing(self):
        slow = HangingAdapter()
        agg = SearchAggregator(
            {"google": StaticAdapter("google", ["https://a.com/1"]), "bing": slow},
            adapter_timeout=0.05,
        )
        try:
            results = agg.search("q", limit=10)
        finally:
            slow.release.set()
        self.assertEqual([r.url for r in results], ["https://a.com/1"])

    def test_truncates_to_limit(self):
        google = StaticAdapter("google", [f"https://a.com/{i}" for i in range(20)])
        agg = SearchAggregator({"google": google})
        self.assertEqual(len(agg.search("q", limit=4)), 4)

    def test_unconfigured_and_disabled_engines_are_skipped(self):
        google = StaticAdapter("google", ["https://a.com/1"], configured=False)
        bing = StaticAdapter("bing", ["https://b.com/1"])
        devto = StaticAdapter("devto", ["https://dev.to/1"])
        agg = SearchAggregator({"google": google, "bing": bing, "devto": devto}, enabled_engines=("google", "devto"))
        results = agg.search("q", limit=10)
        self.assertEqual([r.url for r in results], ["https://dev.to/1"])
        self.assertEqual(google.calls, [])
        self.assertEqual(bing.calls, [])

    def test_engine_selection(self):
        google = StaticAdapter("google", ["https://a.com/1"])
        devto = StaticAdapter("devto", ["https://dev.to/1"])
        agg = SearchAggregator({"google": google, "devto": devto})
        results = agg.search("q", limit=10, engines=["devto"])
        self.assertEqual([r.source_id for r in results], ["devto"])


class TestSourceSearch(unittest.TestCase):
    def test_explicit_sources_use_site_search_only(self):
        site = StaticAdapter("duckduckgo", ["https://hrdive.com/a", "https://tlnt.com/b"])
        google = StaticAdapter("google", ["https://a.com/1"])
        agg = SearchAggregator({"google": google}, site_search=site)
        results = agg.search("ai screening", limit=10, sources=["hrdive.com", "tlnt.com"])
        self.assertEqual(site.calls, [("site:hrdive.com ai screening", 5), ("site:tlnt.com ai screening", 5)])
        self.assertEqual(google.calls, [])
        self.assertEqual(len(results), 2)


class TestCategorySearch(unittest.TestCase):
    QUERIES = {"voice": ["voice ai", "phone screen"], "hr": ["ats"]}

    def test_by_category_splits_limit_across_queries(self):
        google = StaticAdapter("google", ["https://a.com/1", "https://a.com/2", "https://a.com/3"])
        agg = SearchAggregator({"google": google}, queries=self.QUERIES)
        results = agg.search_by_category("voice", limit=4)
        self.assertEqual([q for q, _ in google.calls], ["voice ai", "phone screen"])
        self.assertEqual([lim for _, lim in google.calls], [1, 1])
        self.assertEqual(len(results), 1)

    def test_unknown_category(self):
        agg = SearchAggregator({}, queries=self.QUERIES)
        with self.assertRaises(KeyError):
            agg.search_by_category("nope")

    def test_comprehensive_covers_every_category(self):
        google = StaticAdapter("google", ["https://a.com/1"])
        agg = SearchAggregator({"google": google}, queries=self.QUERIES)
        agg.comprehensive_search(limit=10)
        self.assertEqual([q for q, _ in google.calls], ["voice ai", "phone screen", "ats"])


if __name__ == "__main__":
    unittest.main()
