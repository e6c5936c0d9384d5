"""Article-level scoring: topical relevance, quality, updateability.

All scorers are deterministic and side-effect free. Anything date-relative
takes an explicit `now` so results are reproducible.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from prospector.ingestion.article_types import Article, ContentType


# -----------------------------
# Topical relevance (0-30)
# -----------------------------
PERFECT_KEYWORDS = [
    "conversational ai interview",
    "voice ai recruiting",
    "live ai phone screen",
    "real-time ai interview",
    "livekit",
    "ai phone screening",
    "voice-first recruiting",
    "live voice interview",
    "phone ai interview",
    "conversational recruiter",
]

STRONG_KEYWORDS = [
    "candidate screening ai",
    "interview automation",
    "hirevue alternative",
    "async video alternative",
    "ai recruiter",
    "automated phone screen",
    "phone screen automation",
    "video interview alternative",
    "ai-powered screening",
    "intelligent recruiting",
    "ai assessment tool",
]

MODERATE_KEYWORDS = [
    "recruiting automation",
    "hr tech",
    "talent acquisition",
    "applicant tracking",
    "candidate assessment",
    "interview platform",
    "hiring automation",
    "recruiting tool",
    "technical recruiting",
]

# (keywords, points for a title hit, points for a body hit), strongest first
RELEVANCE_TIERS: List[Tuple[Sequence[str], int, int]] = [
    (PERFECT_KEYWORDS, 30, 25),
    (STRONG_KEYWORDS, 22, 18),
    (MODERATE_KEYWORDS, 15, 12),
]

# Used only when no keyword tier matched; first topic present wins
TOPIC_FALLBACK: List[Tuple[str, int]] = [
    ("voice-ai", 15),
    ("interview-automation", 13),
    ("candidate-screening", 12),
    ("hr-tech", 8),
]
RELEVANT_TOPICS = {"voice-ai", "candidate-screening", "hr-tech", "interview-automation"}

MAX_RELEVANCE = 30


def topical_relevance(article: Article) -> int:
    title = (article.title or "").lower()
    text = (article.body_text or "").lower()

    for keywords, title_points, body_points in RELEVANCE_TIERS:
        if any(kw in title for kw in keywords):
            return min(title_points, MAX_RELEVANCE)
        if any(kw in text for kw in keywords):
            return min(body_points, MAX_RELEVANCE)

    score = 0
    for topic, points in TOPIC_FALLBACK:
        if topic in article.detected_topics:
            score = points
            break

    breadth = len(RELEVANT_TOPICS & set(article.detected_topics))
    if breadth >= 3:
        score += 3
    elif breadth >= 2:
        score += 2
    return min(score, MAX_RELEVANCE)


def relevance_level(score: int) -> str:
    if score >= 25:
        return "Perfect match - explicitly discusses voice/conversational AI in recruiting"
    if score >= 18:
        return "Strong match - covers AI-powered candidate screening"
    if score >= 12:
        return "Moderate match - discusses recruiting automation or HR tech"
    if score >= 5:
        return "Weak match - tangentially related to recruiting technology"
    return "Minimal relevance - general content"


# -----------------------------
# Article quality (0-20)
# -----------------------------
WORD_COUNT_THRESHOLDS: List[Tuple[int, int]] = [
    (2500, 8),
    (1800, 7),
    (1500, 6),
    (1000, 5),
    (800, 4),
    (500, 3),
    (0, 2),
]

CONTENT_TYPE_QUALITY: Dict[ContentType, int] = {
    ContentType.GUIDE: 7,
    ContentType.COMPARISON: 7,
    ContentType.LISTICLE: 6,
    ContentType.CASE_STUDY: 5,
    ContentType.TUTORIAL: 5,
    ContentType.NEWS: 4,
    ContentType.OPINION: 3,
}
DEFAULT_TYPE_QUALITY = 3
PRODUCT_MENTION_POINTS = 5
MAX_QUALITY = 20


def word_count_points(word_count: int) -> int:
    for minimum, points in WORD_COUNT_THRESHOLDS:
        if word_count >= minimum:
            return points
    return 2


def article_quality(article: Article) -> int:
    score = word_count_points(article.word_count)
    score += CONTENT_TYPE_QUALITY.get(article.content_type, DEFAULT_TYPE_QUALITY)
    if article.mentions_product:
        score += PRODUCT_MENTION_POINTS
    return min(score, MAX_QUALITY)


def quality_level(score: int) -> str:
    if score >= 18:
        return "Excellent quality - comprehensive, product-focused content"
    if score >= 14:
        return "High quality - detailed guide or comparison"
    if score >= 10:
        return "Good quality - solid content with useful depth"
    if score >= 6:
        return "Moderate quality - basic but useful content"
    return "Limited quality - short or generic content"


# -----------------------------
# Updateability (0-20)
# -----------------------------
MONTH_NAMES = [
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
]

LAST_UPDATED_RE = re.compile(r"last\s+updated", re.IGNORECASE)

UPDATE_FRIENDLY_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"we'll\s+update\s+this",
        r"we\s+will\s+keep\s+this\s+updated",
        r"periodically\s+updated",
        r"regularly\s+updated",
        r"let\s+us\s+know\s+if\s+we\s+missed",
        r"suggest\s+a\s+tool",
        r"submit\s+a\s+tool",
        r"leave\s+a\s+comment",
        r"share\s+your\s+favorites?",
    )
]

CONTENT_TYPE_UPDATE: Dict[ContentType, int] = {
    ContentType.COMPARISON: 9,
    ContentType.LISTICLE: 8,
    ContentType.GUIDE: 7,
    ContentType.TUTORIAL: 4,
    ContentType.CASE_STUDY: 2,
    ContentType.OPINION: 2,
    ContentType.NEWS: 1,
}
DEFAULT_TYPE_UPDATE = 3

# (months strictly below, points)
FRESHNESS_STEPS: List[Tuple[int, int]] = [(3, 5), (6, 4), (12, 3), (18, 2), (24, 1)]

MAX_UPDATE_SIGNALS = 10
MAX_UPDATEABILITY = 20
STALE_MONTHS = 36
STALE_PENALTY = 10
DAYS_PER_MONTH = 30


def _utc(dt: datetime) -> datetime:
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


def months_since(dt: datetime, now: Optional[datetime] = None) -> float:
    now = _utc(now or datetime.now(timezone.utc))
    return (now - _utc(dt)).total_seconds() / (86400.0 * DAYS_PER_MONTH)


def update_signal_points(text: str, now: Optional[datetime] = None) -> int:
    now = now or datetime.now(timezone.utc)
    score = 0
    if LAST_UPDATED_RE.search(text):
        score += 5
    months = "|".join(MONTH_NAMES)
    for year in (now.year, now.year - 1):
        if re.search(rf"updated[:\s]+({months})\s+\d{{1,2}},?\s+{year}", text, re.IGNORECASE):
            score += 5
            break
    if any(p.search(text) for p in UPDATE_FRIENDLY_PATTERNS):
        score += 3
    return min(score, MAX_UPDATE_SIGNALS)


def freshness_points(publish_date: Optional[datetime], last_updated: Optional[datetime], now: Optional[datetime] = None) -> int:
    reference = last_updated or publish_date
    if reference is None:
        return 0
    age = months_since(reference, now)
    for below, points in FRESHNESS_STEPS:
        if age < below:
            return points
    return 0


def updateability(article: Article, now: Optional[datetime] = None) -> int:
    score = update_signal_points(article.body_text or "", now)
    score += CONTENT_TYPE_UPDATE.get(article.content_type, DEFAULT_TYPE_UPDATE)
    score += freshness_points(article.publish_date, article.last_updated, now)
    score = min(score, MAX_UPDATEABILITY)

    # Old and never updated overrides everything above
    if article.publish_date is not None and article.last_updated is None:
        if months_since(article.publish_date, now) > STALE_MONTHS:
            score = max(0, score - STALE_PENALTY)
    return score


def updateability_level(score: int) -> str:
    if score >= 16:
        return "Highly likely to be updated - active maintenance signals"
    if score >= 12:
        return "Likely to accept updates - fresh, list-type content"
    if score >= 8:
        return "Moderate update potential - content type supports updates"
    if score >= 4:
        return "Low update likelihood - dated or static content type"
    return "Unlikely to be updated - old or static content"
