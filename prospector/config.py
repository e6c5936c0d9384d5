"""Runtime settings and the product profile the pipeline prospects for.

Settings come from the environment (a local `.env` is honored via python-dotenv).
Everything else here is static vocabulary: canned search queries, source
domains, topic keywords and publication tiers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from dotenv import load_dotenv


DEFAULT_USER_AGENT = "AlignaPRBot/1.0 (+https://www.align-a.com; contact@align-a.com)"
ALL_ENGINES = ("google", "bing", "duckduckgo", "devto", "hackernews")


def _env_int(name: str, default: int) -> int:
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_str(name: str) -> Optional[str]:
    v = (os.environ.get(name) or "").strip()
    return v or None


@dataclass(frozen=True)
class Settings:
    google_search_api_key: Optional[str] = None
    google_search_engine_id: Optional[str] = None
    bing_search_api_key: Optional[str] = None

    database_path: str = "./data/prospects.db"

    max_requests_per_hour: int = 100
    min_delay_ms: int = 2000
    user_agent: str = DEFAULT_USER_AGENT
    # Token matched against robots.txt User-agent groups
    robots_agent: str = "AlignaPRBot"
    robots_fail_open: bool = True
    request_timeout: float = 30.0

    output_format: str = "both"
    output_path: str = "./output/"

    min_score: int = 40
    max_articles_per_query: int = 50
    verbose: bool = False
    enabled_engines: Tuple[str, ...] = ALL_ENGINES

    @property
    def min_delay_seconds(self) -> float:
        return self.min_delay_ms / 1000.0

    @classmethod
    def from_env(cls, *, dotenv: bool = True) -> "Settings":
        if dotenv:
            load_dotenv()
        engines_raw = _env_str("ENABLED_ENGINES")
        engines = ALL_ENGINES
        if engines_raw:
            engines = tuple(e.strip().lower() for e in engines_raw.split(",") if e.strip())
        output_format = (_env_str("OUTPUT_FORMAT") or "both").lower()
        if output_format not in ("json", "csv", "both"):
            output_format = "both"
        return cls(
            google_search_api_key=_env_str("GOOGLE_SEARCH_API_KEY"),
            google_search_engine_id=_env_str("GOOGLE_SEARCH_ENGINE_ID"),
            bing_search_api_key=_env_str("BING_SEARCH_API_KEY"),
            database_path=_env_str("DATABASE_PATH") or "./data/prospects.db",
            max_requests_per_hour=_env_int("MAX_REQUESTS_PER_HOUR", 100),
            min_delay_ms=_env_int("MIN_DELAY_BETWEEN_REQUESTS", 2000),
            user_agent=_env_str("USER_AGENT") or DEFAULT_USER_AGENT,
            robots_agent=_env_str("ROBOTS_AGENT_TOKEN") or "AlignaPRBot",
            robots_fail_open=(os.environ.get("ROBOTS_FAIL_OPEN", "true").strip().lower() != "false"),
            output_format=output_format,
            output_path=_env_str("OUTPUT_PATH") or "./output/",
            min_score=_env_int("MIN_SCORE", 40),
            max_articles_per_query=_env_int("MAX_ARTICLES_PER_QUERY", 50),
            verbose=(os.environ.get("VERBOSE", "").strip().lower() == "true"),
            enabled_engines=engines,
        )


@dataclass(frozen=True)
class ProductProfile:
    """The product being positioned and the rivals it is compared against."""

    name: str
    url: str
    aliases: Tuple[str, ...]
    competitors: Tuple[str, ...]
    differentiators: Tuple[str, ...] = field(default_factory=tuple)

    def mentioned_in(self, text: str) -> bool:
        t = (text or "").lower()
        return any(a in t for a in self.aliases)

    def competitors_in(self, text: str) -> List[str]:
        t = (text or "").lower()
        return [c for c in self.competitors if c in t]


ALIGNA = ProductProfile(
    name="Aligna",
    url="https://www.align-a.com",
    aliases=("aligna", "align-a"),
    competitors=(
        "hirevue",
        "modern hire",
        "modernhire",
        "karat",
        "willo",
        "spark hire",
        "sparkhire",
        "myinterview",
        "vidcruiter",
        "hireflix",
    ),
    differentiators=(
        "Real-time AI phone conversations (not pre-recorded video responses)",
        "Built on LiveKit + Azure OpenAI for voice-first candidate experience",
        "Eliminates scheduling complexity - candidates just call a number",
        "Dual-sided platform: candidates AND employers interact via AI voice",
    ),
)


# Canned query sets, one list per category
SEARCH_QUERIES: Dict[str, List[str]] = {
    "conversational_ai": [
        "conversational AI recruiting",
        "voice AI interviews",
        "AI phone screening tools",
        "automated phone interviews",
        "live AI interviewer",
        "real-time AI recruiting",
        "voice-first recruiting technology",
        "alternatives to HireVue",
        "alternatives to async video interviews",
        "LiveKit recruiting applications",
    ],
    "candidate_screening": [
        "candidate screening automation",
        "AI-powered candidate assessment",
        "phone screen automation",
        "interview scheduling alternatives",
        "pre-screening candidates with AI",
        "technical recruiting tools 2025",
        "technical recruiting tools 2026",
    ],
    "hr_tech": [
        "ATS alternatives",
        "modern applicant tracking",
        "recruiting tech stack",
        "hiring automation tools",
        "best recruiting software for startups",
        "AI recruiting platforms comparison",
    ],
    "remote_work": [
        "remote hiring best practices",
        "async interview tools",
        "phone-first recruiting",
        "eliminating scheduling in hiring",
    ],
    "emerging_tech": [
        "Azure OpenAI applications in HR",
        "GPT-5 use cases recruiting",
        "GPT-4 recruiting",
        "AI voice agents for business",
        "WebRTC recruiting applications",
    ],
}

SEARCH_SOURCES: Dict[str, List[str]] = {
    "tech_blogs": ["dev.to", "medium.com", "hashnode.dev", "substack.com"],
    "hr_publications": [
        "hrtechnologist.com",
        "recruitingdaily.com",
        "ere.net",
        "tlnt.com",
        "hrdive.com",
    ],
    "vc_startup": ["techcrunch.com", "a16z.com", "firstround.com"],
    "comparison": ["g2.com", "capterra.com", "softwareadvice.com"],
    "communities": ["reddit.com", "news.ycombinator.com", "indiehackers.com"],
}

TOPIC_KEYWORDS: Dict[str, List[str]] = {
    "voice-ai": [
        "voice ai",
        "voice assistant",
        "speech recognition",
        "voice interview",
        "phone ai",
        "conversational ai",
        "livekit",
        "webrtc",
    ],
    "candidate-screening": [
        "candidate screening",
        "pre-screening",
        "phone screen",
        "video screen",
        "assessment",
        "evaluation",
    ],
    "hr-tech": [
        "hr tech",
        "recruiting tool",
        "ats",
        "applicant tracking",
        "talent acquisition",
        "hiring software",
    ],
    "interview-automation": [
        "automated interview",
        "interview automation",
        "ai interview",
        "interview scheduling",
        "interview platform",
    ],
    "startup": ["startup", "founder", "funding", "seed", "series a", "yc", "y combinator"],
    "remote-work": ["remote hiring", "remote work", "distributed team", "async work"],
}

PUBLICATION_TIERS: Dict[str, List[str]] = {
    "major": [
        "techcrunch",
        "forbes",
        "wired",
        "venturebeat",
        "theverge",
        "mashable",
        "hbr",
        "harvard business review",
        "mit technology review",
        "fast company",
        "inc.com",
    ],
    "hr_tech": [
        "hrtechnologist",
        "hr technologist",
        "recruiting daily",
        "recruitingdaily",
        "ere",
        "tlnt",
        "hrdive",
        "hr dive",
        "shrm",
        "g2",
        "capterra",
        "software advice",
    ],
    "tech_blogs": [
        "medium",
        "dev.to",
        "hackernoon",
        "towards data science",
        "better programming",
        "freecodecamp",
        "smashing magazine",
    ],
}

# Publications that earn the author-credibility prestige bonus
PRESTIGE_PUBLICATIONS = (
    "techcrunch",
    "medium",
    "dev.to",
    "hackernews",
    "forbes",
    "venture beat",
    "hrtechnologist",
)
