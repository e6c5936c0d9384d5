"""Aspect-level competitor sentiment from keyword rules.

This is a deterministic heuristic, not a model. For every competitor named in
an article we gather the text around each mention, look for whole-word
negative/positive aspect keywords there, and pick a positioning angle from a
per-competitor table.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from prospector.config import ALIGNA, ProductProfile
from prospector.ingestion.article_types import Article


class Sentiment(str, Enum):
    NEGATIVE = "negative"
    MIXED = "mixed"
    NEUTRAL = "neutral"
    POSITIVE = "positive"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Aspect order matters: the first negative aspect found picks the angle.
NEGATIVE_KEYWORDS: Dict[str, List[str]] = {
    "cost": [
        "expensive", "costly", "overpriced", "pricey", "high cost", "not affordable",
        "budget", "pricing concern", "price tag", "cost prohibitive", "enterprise pricing",
    ],
    "experience": [
        "impersonal", "cold", "robotic", "awkward", "uncomfortable", "stressful",
        "intimidating", "nerve-wracking", "anxiety", "anxious", "unnatural", "weird",
        "strange", "off-putting", "frustrating", "annoying", "tedious",
    ],
    "usability": [
        "clunky", "confusing", "difficult", "complicated", "hard to use", "unintuitive",
        "buggy", "glitchy", "slow", "unreliable", "crashes", "technical issues",
        "poor ux", "bad interface", "outdated",
    ],
    "effectiveness": [
        "ineffective", "doesn't work", "failed", "poor results", "inaccurate",
        "unreliable", "misses", "false positive", "false negative", "bias", "biased",
        "unfair", "discriminatory",
    ],
    "support": [
        "poor support", "no support", "unresponsive", "slow response", "bad customer service",
        "lack of documentation", "hard to get help",
    ],
    "limitations": [
        "limited", "lacks", "missing", "doesn't have", "no integration", "can't",
        "unable to", "restricted", "basic", "bare bones",
    ],
}

POSITIVE_KEYWORDS: Dict[str, List[str]] = {
    "cost": ["affordable", "good value", "reasonable", "worth it", "roi", "cost-effective"],
    "experience": [
        "easy", "smooth", "intuitive", "user-friendly", "pleasant", "enjoyable",
        "natural", "comfortable", "seamless",
    ],
    "effectiveness": [
        "effective", "works well", "accurate", "reliable", "great results", "impressive",
        "powerful", "robust",
    ],
    "features": ["feature-rich", "comprehensive", "all-in-one", "integrated", "advanced"],
}

MENTION_WINDOW = 150
QUOTE_WINDOW = 80


@dataclass(frozen=True)
class Positioning:
    negative_angles: Dict[str, str]
    default_angle: str
    advantage: str


COMPETITOR_POSITIONING: Dict[str, Positioning] = {
    "hirevue": Positioning(
        negative_angles={
            "cost": "Article notes HireVue cost concerns - Aligna offers startup-friendly pricing with transparent costs.",
            "experience": "Article mentions HireVue feels impersonal/robotic - Aligna uses live AI conversations that feel more natural than recording videos to a screen.",
            "usability": "Article highlights HireVue usability issues - Aligna is phone-first, requiring no app downloads or video setup.",
            "effectiveness": "Article questions HireVue accuracy/bias - Aligna focuses on conversational assessment with transparent AI.",
            "limitations": "Article notes HireVue limitations - Aligna addresses gaps with real-time voice interaction.",
        },
        default_angle="HireVue mentioned - position Aligna as the live conversation alternative to pre-recorded video screening.",
        advantage="Live voice conversations vs. one-way video recordings",
    ),
    "modern hire": Positioning(
        negative_angles={
            "cost": "Article mentions Modern Hire enterprise pricing - Aligna offers accessible pricing for companies of all sizes.",
            "experience": "Article notes Modern Hire candidate experience issues - Aligna's phone-first approach is more accessible globally.",
            "usability": "Article highlights Modern Hire complexity - Aligna simplifies with a phone-call-based experience.",
        },
        default_angle="Modern Hire mentioned - highlight Aligna's phone-first accessibility vs. video-heavy platforms.",
        advantage="Phone accessibility without video/app requirements",
    ),
    "modernhire": Positioning(
        negative_angles={
            "cost": "Article mentions ModernHire enterprise pricing - Aligna offers accessible pricing for companies of all sizes.",
            "experience": "Article notes ModernHire candidate experience issues - Aligna's phone-first approach is more accessible globally.",
        },
        default_angle="ModernHire mentioned - highlight Aligna's phone-first accessibility vs. video-heavy platforms.",
        advantage="Phone accessibility without video/app requirements",
    ),
    "karat": Positioning(
        negative_angles={
            "cost": "Article notes Karat's high cost for human interviewers - Aligna offers AI-powered screening at a fraction of the cost.",
            "limitations": "Article mentions Karat scalability limits - Aligna's AI scales without human interviewer constraints.",
        },
        default_angle="Karat mentioned - Aligna offers AI-powered screening at scale, complementing or replacing expensive human technical interviews.",
        advantage="AI-powered scalability vs. human interviewer bottlenecks",
    ),
    "willo": Positioning(
        negative_angles={
            "experience": "Article notes Willo's async video anxiety - Aligna's live phone calls feel more natural than recording videos.",
            "limitations": "Article mentions Willo feature gaps - Aligna offers real-time conversation with immediate follow-up questions.",
        },
        default_angle="Willo (async video) mentioned - position Aligna as the real-time conversational alternative.",
        advantage="Real-time conversation vs. pre-recorded responses",
    ),
    "spark hire": Positioning(
        negative_angles={
            "experience": "Article mentions Spark Hire video recording stress - Aligna eliminates camera anxiety with phone-based interviews.",
            "usability": "Article notes Spark Hire technical setup issues - Aligna only requires a phone call.",
        },
        default_angle="Spark Hire mentioned - position Aligna as the phone-first alternative that eliminates video recording anxiety.",
        advantage="No video recording required - just a phone call",
    ),
    "sparkhire": Positioning(
        negative_angles={
            "experience": "Article mentions SparkHire video recording stress - Aligna eliminates camera anxiety with phone-based interviews.",
        },
        default_angle="SparkHire mentioned - position Aligna as the phone-first alternative that eliminates video recording anxiety.",
        advantage="No video recording required - just a phone call",
    ),
    "myinterview": Positioning(
        negative_angles={
            "experience": "Article notes MyInterview async limitations - Aligna offers real-time AI conversation.",
        },
        default_angle="MyInterview mentioned - highlight Aligna's live conversation vs. async video.",
        advantage="Live AI conversation vs. recorded responses",
    ),
    "vidcruiter": Positioning(
        negative_angles={
            "usability": "Article mentions VidCruiter complexity - Aligna simplifies with phone-first experience.",
        },
        default_angle="VidCruiter mentioned - position Aligna as a simpler, phone-first alternative.",
        advantage="Simplified phone experience vs. video platform complexity",
    ),
    "hireflix": Positioning(
        negative_angles={
            "experience": "Article notes Hireflix one-way video limitations - Aligna offers two-way AI conversation.",
        },
        default_angle="Hireflix mentioned - highlight Aligna's interactive conversation vs. one-way video.",
        advantage="Two-way conversation vs. one-way video",
    ),
}

SENTIMENT_PRIORITY = {
    Sentiment.NEGATIVE: 0,
    Sentiment.MIXED: 1,
    Sentiment.NEUTRAL: 2,
    Sentiment.POSITIVE: 3,
}


@dataclass(frozen=True)
class SentimentAspect:
    aspect: str
    sentiment: Sentiment
    matched_keywords: Tuple[str, ...]
    context_quote: Optional[str] = None


@dataclass(frozen=True)
class CompetitorSentimentAnalysis:
    competitor: str
    mentioned: bool
    sentiment: Sentiment
    aspects: Tuple[SentimentAspect, ...] = ()
    positioning_angle: str = ""
    gap_opportunity: str = ""
    confidence: Confidence = Confidence.LOW

    @property
    def negative_aspects(self) -> List[SentimentAspect]:
        return [a for a in self.aspects if a.sentiment == Sentiment.NEGATIVE]

    def keyword_count(self, sentiment: Sentiment) -> int:
        return sum(len(a.matched_keywords) for a in self.aspects if a.sentiment == sentiment)


@dataclass(frozen=True)
class ArticleCompetitorAnalysis:
    competitors: Tuple[CompetitorSentimentAnalysis, ...] = ()
    overall_opportunity: str = ""
    suggested_angles: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def has_competitor_mentions(self) -> bool:
        return bool(self.competitors)

    @property
    def best_angle(self) -> Optional[str]:
        return self.suggested_angles[0] if self.suggested_angles else None


def _word_pattern(keyword: str) -> re.Pattern:
    return re.compile(r"\b" + re.escape(keyword) + r"\b", re.IGNORECASE)


def has_word(text: str, keyword: str) -> bool:
    return bool(_word_pattern(keyword).search(text))


def extract_context(text: str, needle: str, window: int, start: int = 0) -> Optional[str]:
    """Text around the first occurrence of `needle` at or after `start`."""
    idx = text.find(needle, start)
    if idx == -1:
        return None
    lo = max(0, idx - window)
    hi = min(len(text), idx + len(needle) + window)
    context = text[lo:hi]
    # Trim partial words at the edges
    if lo > 0:
        context = "..." + re.sub(r"^\S*\s", "", context, count=1)
    if hi < len(text):
        context = re.sub(r"\s\S*$", "", context, count=1) + "..."
    return context


def mention_windows(text: str, competitor: str, window: int = MENTION_WINDOW) -> List[str]:
    """Context around every occurrence of `competitor` in lowercase `text`."""
    needle = competitor.lower()
    windows = []
    pos = text.find(needle)
    while pos != -1:
        ctx = extract_context(text, needle, window, pos)
        if ctx:
            windows.append(ctx)
        pos = text.find(needle, pos + len(needle))
    return windows


def _match_aspects(context: str, text: str, vocabulary: Dict[str, List[str]], sentiment: Sentiment) -> List[SentimentAspect]:
    aspects = []
    for aspect, keywords in vocabulary.items():
        matched = tuple(kw for kw in keywords if has_word(context, kw))
        if not matched:
            continue
        quote = _quote_for(text, matched[0])
        aspects.append(SentimentAspect(aspect=aspect, sentiment=sentiment, matched_keywords=matched, context_quote=quote))
    return aspects


def _quote_for(text: str, keyword: str) -> Optional[str]:
    m = _word_pattern(keyword).search(text)
    start = m.start() if m else 0
    return extract_context(text, keyword, QUOTE_WINDOW, start)


def classify(negative_count: int, positive_count: int) -> Sentiment:
    if negative_count >= 2 and positive_count >= 2:
        return Sentiment.MIXED
    if negative_count > positive_count:
        return Sentiment.NEGATIVE
    if positive_count > negative_count:
        return Sentiment.POSITIVE
    if negative_count > 0 and positive_count > 0:
        return Sentiment.MIXED
    return Sentiment.NEUTRAL


def positioning_for(competitor: str, profile: ProductProfile = ALIGNA) -> Positioning:
    key = competitor.lower()
    found = COMPETITOR_POSITIONING.get(key) or COMPETITOR_POSITIONING.get(re.sub(r"\s+", "", key))
    if found is not None:
        return found
    return Positioning(
        negative_angles={},
        default_angle=f"{competitor} mentioned - position {profile.name} as a voice-first alternative.",
        advantage="Live voice AI vs. traditional video screening",
    )


def _gap_opportunity(competitor: str, sentiment: Sentiment, negatives: List[SentimentAspect], profile: ProductProfile) -> str:
    if sentiment == Sentiment.NEGATIVE:
        aspects = ", ".join(a.aspect for a in negatives)
        return (
            f"Article expresses concerns about {competitor} ({aspects}) - opportunity to position "
            f"{profile.name} as solving these pain points."
        )
    if sentiment == Sentiment.MIXED:
        return (
            f"Article has mixed views on {competitor} - opportunity to highlight {profile.name}'s "
            f"advantages in areas where {competitor} falls short."
        )
    return f"{competitor} mentioned without strong sentiment - opportunity to introduce {profile.name} as a differentiated alternative."


def analyze_competitor(text: str, competitor: str, profile: ProductProfile = ALIGNA) -> CompetitorSentimentAnalysis:
    lowered = (text or "").lower()
    if competitor.lower() not in lowered:
        return CompetitorSentimentAnalysis(competitor=competitor, mentioned=False, sentiment=Sentiment.NEUTRAL)

    context = " ".join(mention_windows(lowered, competitor))
    aspects = _match_aspects(context, lowered, NEGATIVE_KEYWORDS, Sentiment.NEGATIVE)
    aspects += _match_aspects(context, lowered, POSITIVE_KEYWORDS, Sentiment.POSITIVE)

    negative = sum(len(a.matched_keywords) for a in aspects if a.sentiment == Sentiment.NEGATIVE)
    positive = sum(len(a.matched_keywords) for a in aspects if a.sentiment == Sentiment.POSITIVE)
    sentiment = classify(negative, positive)

    positioning = positioning_for(competitor, profile)
    negatives = [a for a in aspects if a.sentiment == Sentiment.NEGATIVE]
    angle = positioning.default_angle
    if negatives:
        angle = positioning.negative_angles.get(negatives[0].aspect, angle)

    return CompetitorSentimentAnalysis(
        competitor=competitor,
        mentioned=True,
        sentiment=sentiment,
        aspects=tuple(aspects),
        positioning_angle=angle,
        gap_opportunity=_gap_opportunity(competitor, sentiment, negatives, profile),
        confidence=Confidence.HIGH if aspects else Confidence.MEDIUM,
    )


def analyze_text(text: str, profile: ProductProfile = ALIGNA) -> ArticleCompetitorAnalysis:
    found = [analyze_competitor(text, c, profile) for c in profile.competitors]
    mentioned = sorted((a for a in found if a.mentioned), key=lambda a: SENTIMENT_PRIORITY[a.sentiment])

    negative = [a.competitor for a in mentioned if a.sentiment == Sentiment.NEGATIVE]
    mixed = [a.competitor for a in mentioned if a.sentiment == Sentiment.MIXED]
    if negative:
        overall = (
            f"High opportunity: Article expresses negative sentiment about {', '.join(negative)}. "
            f"Strong positioning opportunity for {profile.name}."
        )
    elif mixed:
        overall = f"Good opportunity: Article has mixed views on {', '.join(mixed)}. Highlight {profile.name}'s strengths in weak areas."
    elif mentioned:
        overall = f"Moderate opportunity: Competitors mentioned without strong sentiment. Introduce {profile.name} as a differentiated option."
    else:
        overall = "No competitors mentioned - focus on general voice AI benefits."

    return ArticleCompetitorAnalysis(
        competitors=tuple(mentioned),
        overall_opportunity=overall,
        suggested_angles=tuple(a.positioning_angle for a in mentioned),
    )


def analyze_article(article: Article, profile: ProductProfile = ALIGNA) -> ArticleCompetitorAnalysis:
    return analyze_text(article.body_text, profile)


def sentiment_summary(analysis: ArticleCompetitorAnalysis) -> str:
    if not analysis.has_competitor_mentions:
        return "No competitor mentions detected."
    lines = []
    for comp in analysis.competitors:
        aspects = ""
        if comp.aspects:
            aspects = " (" + ", ".join(f"{a.sentiment.value} on {a.aspect}" for a in comp.aspects) + ")"
        lines.append(f"{comp.competitor}: {comp.sentiment.value}{aspects}")
    return "\n".join(lines)


def enhance_angle(base_angle: str, analysis: ArticleCompetitorAnalysis) -> str:
    """Prefix an outreach angle with the top negative-sentiment positioning, if any."""
    for comp in analysis.competitors:
        if comp.sentiment == Sentiment.NEGATIVE:
            return f"{comp.positioning_angle}\n\n{base_angle}"
    return base_angle
