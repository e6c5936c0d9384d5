"""Fan a query out to every enabled source and merge the hits.

Results are deduplicated by normalized URL (first seen wins) and truncated
to the requested limit. Order is dispatch order, not relevance; ranking
happens later in scoring.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from prospector.config import ALL_ENGINES, SEARCH_QUERIES, Settings
from prospector.fetching.policy_fetcher import PolicyFetcher
from prospector.ingestion.article_types import SearchResult
from prospector.ingestion.url_utils import dedupe_results
from prospector.search.adapters import (
    BingSearchAdapter,
    DevToAdapter,
    DuckDuckGoAdapter,
    GoogleSearchAdapter,
    HackerNewsAdapter,
    SearchAdapter,
    SiteRestrictedAdapter,
)

logger = logging.getLogger(__name__)

# Broad web engines get half the budget each, niche APIs a quarter
WEB_ENGINES = ("google", "bing", "duckduckgo")
API_ENGINES = ("devto", "hackernews")


def fair_share(engine: str, limit: int) -> int:
    if engine in WEB_ENGINES:
        return math.ceil(limit / 2)
    return math.ceil(limit / 4)


class SearchAggregator:
    def __init__(
        self,
        adapters: Mapping[str, SearchAdapter],
        *,
        site_search: Optional[SearchAdapter] = None,
        enabled_engines: Sequence[str] = ALL_ENGINES,
        adapter_timeout: float = 120.0,
        max_workers: Optional[int] = None,
        queries: Optional[Mapping[str, Sequence[str]]] = None,
    ):
        self.adapters: Dict[str, SearchAdapter] = dict(adapters)
        self.site_search = site_search if site_search is not None else self.adapters.get("duckduckgo")
        self.enabled_engines = tuple(enabled_engines)
        self.adapter_timeout = adapter_timeout
        self.max_workers = max_workers
        self.queries: Mapping[str, Sequence[str]] = queries if queries is not None else SEARCH_QUERIES

    @classmethod
    def from_settings(cls, settings: Settings, fetcher: PolicyFetcher) -> "SearchAggregator":
        ddg = DuckDuckGoAdapter(fetcher=fetcher)
        adapters: Dict[str, SearchAdapter] = {
            "google": GoogleSearchAdapter(
                fetcher=fetcher,
                api_key=settings.google_search_api_key,
                engine_id=settings.google_search_engine_id,
            ),
            "bing": BingSearchAdapter(fetcher=fetcher, api_key=settings.bing_search_api_key),
            "duckduckgo": ddg,
            "devto": DevToAdapter(fetcher=fetcher),
            "hackernews": HackerNewsAdapter(fetcher=fetcher),
        }
        return cls(adapters, site_search=ddg, enabled_engines=settings.enabled_engines)

    def select_engines(self, engines: Optional[Sequence[str]] = None) -> List[str]:
        wanted = [e.lower() for e in (engines or ["all"])]
        use_all = "all" in wanted
        selected = []
        for name, adapter in self.adapters.items():
            if name not in self.enabled_engines:
                continue
            if not use_all and name not in wanted:
                continue
            if not adapter.is_configured():
                logger.debug("Skipping unconfigured engine %s", name)
                continue
            selected.append(name)
        return selected

    def search(
        self,
        query: str,
        limit: int = 50,
        engines: Optional[Sequence[str]] = None,
        sources: Optional[Sequence[str]] = None,
    ) -> List[SearchResult]:
        if sources:
            return self.search_sources(query, sources, limit)

        jobs: List[Tuple[str, SearchAdapter, int]] = [
            (name, self.adapters[name], fair_share(name, limit)) for name in self.select_engines(engines)
        ]
        if not jobs:
            return []

        executor = ThreadPoolExecutor(max_workers=self.max_workers or len(jobs))
        try:
            futures = [executor.submit(adapter.search, query, share) for _, adapter, share in jobs]
            done, _ = wait(futures, timeout=self.adapter_timeout)
            merged: List[SearchResult] = []
            for (name, _, _), future in zip(jobs, futures):
                if future not in done:
                    logger.warning("Search engine %s timed out for %r", name, query)
                    future.cancel()
                    continue
                try:
                    merged.extend(future.result())
                except Exception as e:
                    logger.error("Search engine %s error for %r: %s", name, query, e)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        return dedupe_results(merged)[:limit]

    def search_sources(self, query: str, sources: Sequence[str], limit: int = 50) -> List[SearchResult]:
        """Site-restricted search of each source domain."""
        if self.site_search is None:
            logger.warning("No site search adapter available; skipping source search")
            return []
        per_source = math.ceil(limit / len(sources))
        merged: List[SearchResult] = []
        for site in sources:
            adapter = SiteRestrictedAdapter(inner=self.site_search, site=site)
            try:
                merged.extend(adapter.search(query, per_source))
            except Exception as e:
                logger.error("Site search of %s failed for %r: %s", site, query, e)
        return dedupe_results(merged)[:limit]

    def search_by_category(
        self,
        category: str,
        limit: int = 100,
        engines: Optional[Sequence[str]] = None,
    ) -> List[SearchResult]:
        queries = list(self.queries.get(category) or [])
        if not queries:
            raise KeyError(f"Unknown search category: {category}")
        per_query = math.ceil(limit / len(queries))
        merged: List[SearchResult] = []
        for q in queries:
            logger.info("Searching: %r", q)
            merged.extend(self.search(q, per_query, engines=engines))
        return dedupe_results(merged)[:limit]

    def comprehensive_search(self, limit: int = 200, engines: Optional[Sequence[str]] = None) -> List[SearchResult]:
        categories = list(self.queries.keys())
        if not categories:
            return []
        per_category = math.ceil(limit / len(categories))
        merged: List[SearchResult] = []
        for category in categories:
            logger.info("Searching category: %s", category)
            merged.extend(self.search_by_category(category, per_category, engines=engines))
        return dedupe_results(merged)[:limit]
