import unittest
from datetime import datetime, timezone

from bs4 import BeautifulSoup

from prospector.errors import ExtractionError
from prospector.extraction.article_extractor import (
    detect_content_type,
    detect_topics,
    extract_article,
    extract_last_updated,
    mentions_own_product,
    mentions_products,
    parse_article_html,
    parse_date,
    publication_from_domain,
)
from prospector.ingestion.article_types import EXCERPT_MAX_CHARS, ContentType

from fakes import FakeFetcher


PARAGRAPHS = [
    "Recruiting teams spend hours on every phone screen, and most of that time goes to scheduling rather than talking.",
    "In this comparison we looked at how HireVue and Karat handle candidate screening for engineering roles at growing startups.",
    "HireVue relies on one-way video recordings, which many candidates describe as stressful and impersonal during the process.",
    "Karat pairs candidates with human interviewers, which works well but gets expensive once hiring volume climbs past a few dozen roles.",
    "Both tools offer a free trial, and pricing is available on request for teams that need an applicant tracking integration.",
    "Last updated: March 3, 2026. Let us know if we missed a tool and we will review it for the next revision of this list.",
]

ARTICLE_HTML = """
<html>
<head>
  <title>ignored title tag</title>
  <meta property="og:title" content="HireVue vs Karat: Screening Tools Compared">
  <meta property="og:site_name" content="Talent Weekly">
  <meta property="article:published_time" content="2026-01-10T09:00:00+02:00">
</head>
<body>
  <nav>Home | About | Contact</nav>
  <article>
    <h1>HireVue vs Karat: Screening Tools Compared</h1>
    {paragraphs}
  </article>
  <footer>Copyright Talent Weekly</footer>
</body>
</html>
""".replace("{paragraphs}", "\n".join(f"<p>{p}</p>" for p in PARAGRAPHS))


class TestParseArticle(unittest.TestCase):
    def setUp(self):
        self.article = parse_article_html("https://www.talentweekly.com/screening", ARTICLE_HTML)

    def test_metadata(self):
        a = self.article
        self.assertEqual(a.title, "HireVue vs Karat: Screening Tools Compared")
        self.assertEqual(a.publication_name, "Talent Weekly")
        self.assertEqual(a.domain, "www.talentweekly.com")
        self.assertEqual(a.publish_date, datetime(2026, 1, 10, 7, 0, tzinfo=timezone.utc))
        self.assertEqual(a.content_type, ContentType.COMPARISON)

    def test_body_invariants(self):
        a = self.article
        self.assertIn("candidate screening", a.body_text.lower())
        self.assertEqual(a.word_count, len(a.body_text.split()))
        self.assertTrue(a.body_text.startswith(a.excerpt))
        self.assertLessEqual(len(a.excerpt), EXCERPT_MAX_CHARS)

    def test_signals(self):
        a = self.article
        self.assertEqual(a.mentioned_competitors, frozenset({"hirevue", "karat"}))
        self.assertTrue(a.mentions_product)
        self.assertIn("candidate-screening", a.detected_topics)
        self.assertIn("hr-tech", a.detected_topics)

    def test_empty_page_is_an_extraction_error(self):
        with self.assertRaises(ExtractionError):
            parse_article_html("https://x.com/a", "   ")
        with self.assertRaises(ExtractionError):
            parse_article_html("https://x.com/a", "<html><body></body></html>")

    def test_extract_article_goes_through_fetcher(self):
        fetcher = FakeFetcher({"https://www.talentweekly.com/screening": ARTICLE_HTML})
        article, html = extract_article("https://www.talentweekly.com/screening", fetcher)
        self.assertEqual(html, ARTICLE_HTML)
        self.assertEqual(article.url, "https://www.talentweekly.com/screening")


class TestContentType(unittest.TestCase):
    def test_rules_in_order(self):
        cases = {
            "Top 10 AI Recruiting Tools": ContentType.LISTICLE,
            "HireVue vs Karat": ContentType.COMPARISON,
            "The Complete Guide to Phone Screens": ContentType.GUIDE,
            "How Acme achieved 50% faster hiring": ContentType.CASE_STUDY,
            "A step-by-step tutorial for LiveKit agents": ContentType.TUTORIAL,
            "Acme raises $20M for interview software": ContentType.NEWS,
            "Why video interviews feel broken": ContentType.OPINION,
        }
        for title, expected in cases.items():
            self.assertEqual(detect_content_type("", title), expected, msg=title)

    def test_listicle_detected_from_lead(self):
        self.assertEqual(detect_content_type("Here are 7 tools we tested this year.", "Our picks"), ContentType.LISTICLE)


class TestHelpers(unittest.TestCase):
    def test_topics_match_whole_words(self):
        self.assertNotIn("hr-tech", detect_topics("Stats matter for every team", ""))
        self.assertIn("hr-tech", detect_topics("Pick an ATS that scales", ""))

    def test_mentions_products(self):
        self.assertTrue(mentions_products("See the pricing page"))
        self.assertTrue(mentions_products("We compared willo with others"))
        self.assertFalse(mentions_products("Interviews are about people"))
        self.assertTrue(mentions_own_product("We switched to Aligna last spring"))
        self.assertFalse(mentions_own_product("We switched to HireVue last spring"))

    def test_parse_date_normalizes_to_utc(self):
        self.assertEqual(parse_date("2024-03-05T10:00:00+02:00"), datetime(2024, 3, 5, 8, 0, tzinfo=timezone.utc))
        self.assertEqual(parse_date("2024-03-05"), datetime(2024, 3, 5, tzinfo=timezone.utc))
        self.assertIsNone(parse_date("not a date"))
        self.assertIsNone(parse_date(None))

    def test_last_updated_from_text(self):
        soup = BeautifulSoup("<body><p>Last updated: March 3, 2026</p></body>", "html.parser")
        self.assertEqual(extract_last_updated(soup), datetime(2026, 3, 3, tzinfo=timezone.utc))

    def test_publication_from_domain(self):
        self.assertEqual(publication_from_domain("www.hrdive.com"), "Hrdive")
        self.assertEqual(publication_from_domain("blog.example.io"), "Blog Example")


if __name__ == "__main__":
    unittest.main()
