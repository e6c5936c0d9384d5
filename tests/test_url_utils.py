import unittest

from prospector.ingestion.article_types import SearchResult
from prospector.ingestion.url_utils import canonicalize_url, dedupe_results, domain_of, normalize_url, url_hash


def _r(url, source="x"):
    return SearchResult(title=url, url=url, source_id=source)


class TestUrlCanonicalization(unittest.TestCase):
    def test_canonicalize_strips_tracking_params(self):
        raw = "https://Example.com/path/to/article?utm_source=x&utm_medium=y&id=123&gclid=AAA#section"
        canon = canonicalize_url(raw)
        self.assertEqual(canon, "https://example.com/path/to/article?id=123")

    def test_hash_is_stable_for_equivalent_urls(self):
        a = "https://example.com/a?utm_source=x&id=1"
        b = "https://example.com/a?id=1&utm_medium=y"
        self.assertEqual(url_hash(a), url_hash(b))


class TestNormalizeUrl(unittest.TestCase):
    def test_scheme_www_case_and_trailing_slash_are_ignored(self):
        variants = [
            "https://www.example.com/post/",
            "http://example.com/post",
            "HTTPS://WWW.EXAMPLE.COM/POST",
            "https://example.com/post/",
        ]
        keys = {normalize_url(v) for v in variants}
        self.assertEqual(keys, {"example.com/post"})

    def test_domain_of(self):
        self.assertEqual(domain_of("https://Blog.Example.com/x"), "blog.example.com")
        self.assertEqual(domain_of("not a url"), "")


class TestDedupeResults(unittest.TestCase):
    def test_first_seen_wins_and_order_is_kept(self):
        results = [
            _r("https://a.com/1", "google"),
            _r("https://b.com/2", "google"),
            _r("http://www.a.com/1/", "bing"),
            _r("https://c.com/3", "bing"),
        ]
        out = dedupe_results(results)
        self.assertEqual([r.url for r in out], ["https://a.com/1", "https://b.com/2", "https://c.com/3"])
        self.assertEqual(out[0].source_id, "google")

    def test_idempotent(self):
        results = [_r("https://a.com/1"), _r("https://A.com/1/"), _r("https://b.com")]
        once = dedupe_results(results)
        self.assertEqual(dedupe_results(once), once)


if __name__ == "__main__":
    unittest.main()
