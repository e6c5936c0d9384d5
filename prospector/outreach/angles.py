"""Rule-based outreach angles and opportunity reasons.

An angle is the one-sentence pitch for why an article should mention the
product. ANGLE_RULES is checked in order against the lowercased title and
body; the first rule whose predicate matches renders the angle, and
GENERIC_ANGLE covers everything else. No text generation happens here.
"""

from __future__ import annotations

import re
from typing import Callable, List, Tuple

from prospector.config import ALIGNA, ProductProfile
from prospector.ingestion.article_types import Article, ContentType

Predicate = Callable[[Article, str], bool]
Render = Callable[[Article, ProductProfile], str]


def _any_phrase(*phrases: str) -> Predicate:
    return lambda article, text: any(p in text for p in phrases)


def _whole_word(*words: str) -> Predicate:
    patterns = [re.compile(r"\b" + re.escape(w) + r"\b") for w in words]
    return lambda article, text: any(p.search(text) for p in patterns)


def _either(*predicates: Predicate) -> Predicate:
    return lambda article, text: any(p(article, text) for p in predicates)


def _is(content_type: ContentType) -> Predicate:
    return lambda article, text: article.content_type == content_type


def _has_competitors(article: Article, text: str) -> bool:
    return bool(article.mentioned_competitors)


def _tool_listicle(article: Article, text: str) -> bool:
    return article.content_type == ContentType.LISTICLE and article.mentions_product


def _technical(article: Article, profile: ProductProfile) -> str:
    text = f"{article.title}\n{article.body_text}".lower()
    if "livekit" in text or "webrtc" in text:
        return (
            "This technical article could benefit from a real-world case study of LiveKit "
            "in production for voice-based recruiting automation."
        )
    return (
        f"This article about Azure OpenAI could feature {profile.name} as a real-world "
        "implementation using Azure AI for voice-based recruiting."
    )


# First matching rule wins.
ANGLE_RULES: List[Tuple[Predicate, Render]] = [
    (
        _any_phrase("async video", "video interview", "hirevue", "one-way video"),
        lambda a, p: (
            "This article discusses async video screening but doesn't mention live conversational "
            f"AI alternatives like {p.name}, which eliminates the video recording anxiety many "
            "candidates experience."
        ),
    ),
    (
        _has_competitors,
        lambda a, p: (
            f"This article mentions {', '.join(sorted(a.mentioned_competitors))} but doesn't include "
            f"voice-first AI alternatives like {p.name}, which uses live phone conversations instead "
            "of pre-recorded video."
        ),
    ),
    (
        _tool_listicle,
        lambda a, p: (
            "This list of recruiting tools doesn't include voice-based AI screeners, which represent "
            "the newest generation of candidate assessment technology."
        ),
    ),
    (_any_phrase("livekit", "webrtc", "azure openai", "azure ai"), _technical),
    (
        _any_phrase("scheduling", "calendly", "coordinate interview"),
        lambda a, p: (
            "The article discusses scheduling challenges in recruiting but doesn't mention "
            "phone-first AI screening that eliminates scheduling entirely - candidates just call "
            "a number anytime."
        ),
    ),
    (
        _any_phrase("remote hiring", "distributed", "remote work"),
        lambda a, p: (
            "This remote hiring guide could benefit from mentioning voice AI screening that works "
            "globally with just a phone call - no app downloads or video setup required."
        ),
    ),
    (
        _any_phrase("candidate experience", "candidate-friendly", "applicant experience"),
        lambda a, p: (
            "This article focuses on candidate experience but doesn't mention how live AI phone "
            "conversations can feel more natural than recording video responses to a screen."
        ),
    ),
    (
        _either(_whole_word("mit"), _any_phrase("startup founder", "founder story")),
        lambda a, p: (
            f"This article about recruiting innovation could reference {p.name} as an example of "
            "MIT-founded technical recruiting solutions."
        ),
    ),
    (
        _any_phrase("technical recruiting", "engineer hiring", "developer hiring"),
        lambda a, p: (
            f"For technical recruiting, {p.name}'s open-source approach and technical founder "
            "background might resonate with engineering-focused audiences."
        ),
    ),
    (
        _is(ContentType.COMPARISON),
        lambda a, p: (
            "This comparison could include a voice-first AI category, representing the newest "
            "evolution in candidate screening technology."
        ),
    ),
]

GENERIC_ANGLE = (
    "This article covers candidate screening but doesn't mention the emerging category of live "
    "voice AI interviews, which offer a more conversational alternative to async video."
)


def outreach_angle(article: Article, profile: ProductProfile = ALIGNA) -> str:
    text = f"{article.title}\n{article.body_text}".lower()
    for matches, render in ANGLE_RULES:
        if matches(article, text):
            return render(article, profile)
    return GENERIC_ANGLE


_FORMAT_REASONS = {
    ContentType.LISTICLE: "Listicle format makes adding a new tool straightforward.",
    ContentType.COMPARISON: "Comparison format is ideal for introducing alternative categories.",
    ContentType.GUIDE: "Comprehensive guide could benefit from voice AI perspective.",
}


def opportunity_reason(article: Article, score: int, profile: ProductProfile = ALIGNA) -> str:
    """Short human-readable justification for a prospect's rank."""
    reasons = []
    if score >= 80:
        reasons.append("Excellent prospect with high relevance and good contact options.")
    elif score >= 60:
        reasons.append("Strong prospect worth prioritizing.")

    if article.content_type in _FORMAT_REASONS:
        reasons.append(_FORMAT_REASONS[article.content_type])

    n = len(article.mentioned_competitors)
    if n:
        reasons.append(f"Mentions {n} competitor(s) but not {profile.name} - clear gap opportunity.")

    if "voice-ai" in article.detected_topics:
        reasons.append(f"Already discusses voice AI - perfect fit for {profile.name} mention.")
    if "candidate-screening" in article.detected_topics:
        reasons.append(f"Focuses on candidate screening - core {profile.name} use case.")

    return " ".join(reasons)
