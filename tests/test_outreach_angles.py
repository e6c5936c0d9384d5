import unittest

from prospector.config import ProductProfile
from prospector.ingestion.article_types import ContentType
from prospector.outreach.angles import GENERIC_ANGLE, opportunity_reason, outreach_angle

from fakes import make_article


def _angle(body, **kw):
    return outreach_angle(make_article(body_text=body, **kw))


class TestOutreachAngle(unittest.TestCase):
    def test_async_video_beats_competitor_list(self):
        angle = _angle(
            "HireVue and Karat both push one-way video answers onto candidates.",
            mentioned_competitors=frozenset({"hirevue", "karat"}),
        )
        self.assertIn("async video screening", angle)
        self.assertIn("Aligna", angle)

    def test_competitors_named_in_order(self):
        angle = _angle(
            "We compared Willo and Karat for engineering interviews.",
            mentioned_competitors=frozenset({"willo", "karat"}),
        )
        self.assertTrue(angle.startswith("This article mentions karat, willo but doesn't include voice-first AI"))

    def test_listicle_needs_product_mentions(self):
        body = "Twelve tools with pricing pages, free trial plans and scheduling add-ons."
        listed = _angle(body, content_type=ContentType.LISTICLE, mentions_product=True)
        self.assertTrue(listed.startswith("This list of recruiting tools"))

        unlisted = _angle(body, content_type=ContentType.LISTICLE, mentions_product=False)
        self.assertIn("scheduling challenges", unlisted)

    def test_technical_branches(self):
        self.assertIn("LiveKit in production", _angle("Shipping a WebRTC agent to production."))
        self.assertIn("Azure OpenAI could feature Aligna", _angle("Our stack runs on Azure OpenAI."))

    def test_scheduling_guide(self):
        angle = _angle(
            "Scheduling interviews with Calendly takes a lot of back and forth.",
            title="A guide to interview logistics",
            content_type=ContentType.GUIDE,
        )
        self.assertIn("scheduling", angle)

    def test_later_rules(self):
        cases = {
            "Remote hiring across time zones is hard.": "remote hiring guide",
            "Candidate experience decides who accepts.": "focuses on candidate experience",
            "An MIT spinout is rethinking interviews.": "MIT-founded",
            "Tips for developer hiring at seed stage.": "open-source approach",
        }
        for body, expected in cases.items():
            self.assertIn(expected, _angle(body), msg=body)

    def test_mit_matches_whole_word_only(self):
        self.assertEqual(_angle("Please submit your resume and admit you love interviews."), GENERIC_ANGLE)

    def test_comparison_then_fallback(self):
        body = "Two approaches to first-round interviews, side by side."
        self.assertTrue(_angle(body, content_type=ContentType.COMPARISON).startswith("This comparison could include"))
        fallback = _angle(body)
        self.assertEqual(fallback, GENERIC_ANGLE)
        self.assertIn("voice AI", fallback)

    def test_uses_profile_name(self):
        vox = ProductProfile(name="Vox", url="https://vox.example", aliases=("vox",), competitors=("hirevue",))
        angle = outreach_angle(make_article(body_text="Async video is the default now."), vox)
        self.assertIn("alternatives like Vox", angle)
        self.assertNotIn("Aligna", angle)


class TestOpportunityReason(unittest.TestCase):
    def test_all_reasons(self):
        article = make_article(
            content_type=ContentType.LISTICLE,
            mentioned_competitors=frozenset({"hirevue", "karat"}),
            detected_topics=frozenset({"voice-ai", "candidate-screening"}),
        )
        self.assertEqual(
            opportunity_reason(article, 85),
            "Excellent prospect with high relevance and good contact options. "
            "Listicle format makes adding a new tool straightforward. "
            "Mentions 2 competitor(s) but not Aligna - clear gap opportunity. "
            "Already discusses voice AI - perfect fit for Aligna mention. "
            "Focuses on candidate screening - core Aligna use case.",
        )

    def test_score_band_and_empty(self):
        guide = make_article(content_type=ContentType.GUIDE)
        self.assertEqual(
            opportunity_reason(guide, 65),
            "Strong prospect worth prioritizing. Comprehensive guide could benefit from voice AI perspective.",
        )
        self.assertEqual(opportunity_reason(make_article(), 10), "")


if __name__ == "__main__":
    unittest.main()
