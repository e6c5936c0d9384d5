"""End-to-end prospecting run: search, fetch, extract, score, persist.

One run walks the merged search results in order. Every per-URL failure
(policy refusal, exhausted retries, unusable page) is logged and counted,
never raised; the run always produces a result.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Protocol, Sequence

from prospector.config import ALIGNA, ProductProfile, Settings
from prospector.errors import ExtractionError, PolicyError, TerminalHTTPError, TransientError
from prospector.extraction.article_extractor import extract_article, mentions_own_product
from prospector.extraction.author_extractor import extract_author
from prospector.fetching.policy_fetcher import PolicyFetcher
from prospector.ingestion.article_types import Article, AuthorContact, SearchResult
from prospector.ingestion.url_utils import dedupe_results, url_hash
from prospector.outreach.angles import outreach_angle
from prospector.scoring.prospect_scoring import Priority, ScoreBreakdown, priority_for, score_prospect
from prospector.search.aggregator import SearchAggregator
from prospector.sentiment.competitor_sentiment import ArticleCompetitorAnalysis, analyze_article, enhance_angle

logger = logging.getLogger(__name__)

HIGH_PRIORITY_SCORE = 60


@dataclass(frozen=True)
class Prospect:
    id: str
    article: Article
    author: AuthorContact
    breakdown: ScoreBreakdown
    priority: Priority
    sentiment: ArticleCompetitorAnalysis
    angle: str
    created_at: datetime
    updated_at: datetime

    @property
    def score(self) -> int:
        return self.breakdown.total

    @property
    def url(self) -> str:
        return self.article.url


@dataclass(frozen=True)
class RunMetadata:
    search_date: datetime
    queries: List[str]
    total_found: int = 0
    total_scored: int = 0
    average_score: float = 0.0
    high_priority_count: int = 0
    elapsed_ms: int = 0
    skipped_existing: int = 0
    failed: int = 0


@dataclass(frozen=True)
class ProspectingResult:
    metadata: RunMetadata
    prospects: List[Prospect] = field(default_factory=list)


class ProspectSink(Protocol):
    def has_url(self, url: str) -> bool:
        ...

    def upsert(self, prospect: Prospect) -> None:
        ...


def build_prospect(
    article: Article,
    author: AuthorContact,
    profile: ProductProfile = ALIGNA,
    now: Optional[datetime] = None,
) -> Prospect:
    ts = now or datetime.now(timezone.utc)
    breakdown = score_prospect(article, author, profile, now=ts)
    sentiment = analyze_article(article, profile)
    return Prospect(
        id=url_hash(article.url),
        article=article,
        author=author,
        breakdown=breakdown,
        priority=priority_for(breakdown.total),
        sentiment=sentiment,
        angle=enhance_angle(outreach_angle(article, profile), sentiment),
        created_at=ts,
        updated_at=ts,
    )


class ProspectingEngine:
    def __init__(
        self,
        aggregator: SearchAggregator,
        fetcher: PolicyFetcher,
        sink: ProspectSink,
        profile: ProductProfile = ALIGNA,
        settings: Optional[Settings] = None,
    ):
        self.aggregator = aggregator
        self.fetcher = fetcher
        self.sink = sink
        self.profile = profile
        self.settings = settings or Settings()

    def collect_results(
        self,
        queries: Optional[Sequence[str]] = None,
        engines: Optional[Sequence[str]] = None,
        sources: Optional[Sequence[str]] = None,
        limit: int = 100,
    ) -> List[SearchResult]:
        if not queries:
            if sources:
                logger.info("Source restriction needs explicit queries; running comprehensive search")
            return self.aggregator.comprehensive_search(limit, engines=engines)
        per_query = math.ceil(limit / len(queries))
        merged: List[SearchResult] = []
        for q in queries:
            logger.info("Query: %r", q)
            merged.extend(self.aggregator.search(q, per_query, engines=engines, sources=sources))
        return dedupe_results(merged)

    def process_result(self, result: SearchResult, now: Optional[datetime] = None) -> Optional[Prospect]:
        """Fetch, extract and score one search hit. None means skipped."""
        article, html = extract_article(result.url, self.fetcher, self.profile)
        if mentions_own_product(f"{article.title}\n{article.body_text}", self.profile):
            logger.info("Skipping %s: %s already mentioned", result.url, self.profile.name)
            return None
        author = extract_author(html, result.url, publication=article.publication_name)
        return build_prospect(article, author, self.profile, now)

    def run(
        self,
        queries: Optional[Sequence[str]] = None,
        engines: Optional[Sequence[str]] = None,
        sources: Optional[Sequence[str]] = None,
        limit: int = 100,
        min_score: Optional[int] = None,
        skip_existing: bool = True,
        now: Optional[datetime] = None,
    ) -> ProspectingResult:
        started = time.monotonic()
        search_date = now or datetime.now(timezone.utc)
        threshold = self.settings.min_score if min_score is None else min_score

        results = self.collect_results(queries, engines, sources, limit)
        logger.info("Found %d articles to analyze", len(results))

        prospects: List[Prospect] = []
        skipped = 0
        failed = 0
        for result in results:
            if skip_existing and self.sink.has_url(result.url):
                skipped += 1
                continue
            try:
                prospect = self.process_result(result, now=search_date)
            except (PolicyError, TransientError, TerminalHTTPError) as e:
                logger.warning("Fetch failed for %s: %s", result.url, e)
                failed += 1
                continue
            except ExtractionError as e:
                logger.warning("Could not extract %s: %s", result.url, e)
                failed += 1
                continue
            except Exception as e:
                logger.error("Unexpected error processing %s: %s", result.url, e, exc_info=True)
                failed += 1
                continue
            if prospect is None:
                continue
            logger.debug("Scored %s: %d (%s)", result.url, prospect.score, prospect.priority.value)
            if prospect.score >= threshold:
                self.sink.upsert(prospect)
                prospects.append(prospect)

        prospects.sort(key=lambda p: p.score, reverse=True)
        average = sum(p.score for p in prospects) / len(prospects) if prospects else 0.0

        metadata = RunMetadata(
            search_date=search_date,
            queries=list(queries) if queries else ["comprehensive"],
            total_found=len(results),
            total_scored=len(prospects),
            average_score=round(average, 1),
            high_priority_count=sum(1 for p in prospects if p.score >= HIGH_PRIORITY_SCORE),
            elapsed_ms=int((time.monotonic() - started) * 1000),
            skipped_existing=skipped,
            failed=failed,
        )
        logger.info(
            "Prospecting complete: found=%d qualified=%d high_priority=%d skipped=%d failed=%d",
            metadata.total_found,
            metadata.total_scored,
            metadata.high_priority_count,
            skipped,
            failed,
        )
        return ProspectingResult(metadata=metadata, prospects=prospects)
