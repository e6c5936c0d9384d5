"""Prospect-level scoring: the six sub-scores, their total and priority band.

Sub-score caps sum to 100, so a ScoreBreakdown total is always in [0, 100].
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from prospector.config import ALIGNA, PRESTIGE_PUBLICATIONS, ProductProfile
from prospector.ingestion.article_types import Article, AuthorContact, ContentType
from prospector.scoring.article_scoring import (
    article_quality,
    quality_level,
    relevance_level,
    topical_relevance,
    updateability,
    updateability_level,
)


SCORE_CAPS: Dict[str, int] = {
    "topical_relevance": 30,
    "article_quality": 20,
    "updateability": 20,
    "author_credibility": 15,
    "competitive_gap": 10,
    "reachability": 5,
}


@dataclass(frozen=True)
class ScoreBreakdown:
    topical_relevance: int = 0
    article_quality: int = 0
    updateability: int = 0
    author_credibility: int = 0
    competitive_gap: int = 0
    reachability: int = 0

    def __post_init__(self) -> None:
        # Clamp every field into [0, cap]
        for f in fields(self):
            value = int(getattr(self, f.name))
            object.__setattr__(self, f.name, max(0, min(value, SCORE_CAPS[f.name])))

    @property
    def total(self) -> int:
        return sum(getattr(self, f.name) for f in fields(self))

    def as_dict(self) -> Dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


class Priority(str, Enum):
    EXCELLENT = "excellent"
    STRONG = "strong"
    MODERATE = "moderate"
    WEAK = "weak"
    SKIP = "skip"


PRIORITY_BANDS: List[Tuple[int, Priority]] = [
    (80, Priority.EXCELLENT),
    (60, Priority.STRONG),
    (40, Priority.MODERATE),
    (20, Priority.WEAK),
]


def priority_for(total: int) -> Priority:
    for minimum, priority in PRIORITY_BANDS:
        if total >= minimum:
            return priority
    return Priority.SKIP


# -----------------------------
# Author credibility (0-15)
# -----------------------------
def _bio_or_title(bio_words: Tuple[str, ...], title_words: Tuple[str, ...]) -> Callable[[str, str], bool]:
    return lambda bio, title: any(w in bio for w in bio_words) or any(w in title for w in title_words)


# Expertise tiers, first match wins
EXPERTISE_TIERS: List[Tuple[Callable[[str, str], bool], int]] = [
    (_bio_or_title(("hr tech", "recruiting", "talent"), ("hr", "recruiting")), 4),
    (_bio_or_title(("tech", "ai", "software"), ("tech",)), 3),
    (_bio_or_title(("writer", "journalist", "editor"), ()), 2),
]


def role_points(author: AuthorContact) -> int:
    if author.is_freelance:
        return 8
    if author.is_editor:
        return 4
    return 6


def expertise_points(author: AuthorContact) -> int:
    bio = (author.bio or "").lower()
    title = (author.title or "").lower()
    for matches, points in EXPERTISE_TIERS:
        if matches(bio, title):
            return points
    return 0


def publication_points(publication_name: str) -> int:
    name = (publication_name or "").lower()
    return 3 if any(p in name for p in PRESTIGE_PUBLICATIONS) else 1


def author_credibility(author: AuthorContact, article: Article) -> int:
    score = role_points(author) + expertise_points(author) + publication_points(article.publication_name)
    return min(score, SCORE_CAPS["author_credibility"])


# -----------------------------
# Competitive gap (0-10)
# -----------------------------
def _article_text(article: Article) -> str:
    return f"{article.title}\n{article.body_text}".lower()


GAP_RULES: List[Tuple[Callable[[Article, ProductProfile], bool], int]] = [
    (lambda a, p: p.mentioned_in(_article_text(a)), 0),
    (lambda a, p: bool(a.mentioned_competitors) or bool(p.competitors_in(_article_text(a))), 10),
    (lambda a, p: a.content_type == ContentType.COMPARISON, 8),
    (lambda a, p: a.mentions_product, 5),
    (lambda a, p: a.content_type == ContentType.LISTICLE, 4),
]
BASELINE_GAP = 2


def competitive_gap(article: Article, profile: ProductProfile = ALIGNA) -> int:
    for matches, points in GAP_RULES:
        if matches(article, profile):
            return points
    return BASELINE_GAP


# -----------------------------
# Reachability (0-5)
# -----------------------------
REACHABILITY_RULES: List[Tuple[Callable[[AuthorContact], bool], int]] = [
    (lambda a: bool(a.public_email), 5),
    (lambda a: bool(a.contact_form_url), 4),
    (lambda a: bool(a.linkedin), 3),
    (lambda a: bool(a.twitter), 2),
]


def reachability(author: AuthorContact) -> int:
    for matches, points in REACHABILITY_RULES:
        if matches(author):
            return points
    return 0


def score_prospect(
    article: Article,
    author: AuthorContact,
    profile: ProductProfile = ALIGNA,
    now: Optional[datetime] = None,
) -> ScoreBreakdown:
    return ScoreBreakdown(
        topical_relevance=topical_relevance(article),
        article_quality=article_quality(article),
        updateability=updateability(article, now),
        author_credibility=author_credibility(author, article),
        competitive_gap=competitive_gap(article, profile),
        reachability=reachability(author),
    )


def score_explanation(breakdown: ScoreBreakdown, profile: ProductProfile = ALIGNA) -> str:
    gap_note = f" (mentions competitors but not {profile.name}!)" if breakdown.competitive_gap >= 8 else ""
    lines = [
        f"- Topical Relevance: {breakdown.topical_relevance}/30 - {relevance_level(breakdown.topical_relevance)}",
        f"- Article Quality: {breakdown.article_quality}/20 - {quality_level(breakdown.article_quality)}",
        f"- Updateability: {breakdown.updateability}/20 - {updateability_level(breakdown.updateability)}",
        f"- Author Credibility: {breakdown.author_credibility}/15",
        f"- Competitive Gap: {breakdown.competitive_gap}/10{gap_note}",
        f"- Reachability: {breakdown.reachability}/5",
    ]
    return "\n".join(lines)
