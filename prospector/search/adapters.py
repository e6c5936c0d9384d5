"""Search source adapters.

Each adapter turns a query into a list of SearchResult through the shared
PolicyFetcher. Adapters that need credentials report `is_configured() ==
False` and return nothing (with a warning) when called without them.
Network or parse failures surface as AdapterError; the aggregator treats
those as "no results from this source".
"""

from __future__ import annotations

import logging
import math
import re
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence
from urllib.parse import parse_qs, urlencode, urlparse

from bs4 import BeautifulSoup

from prospector.errors import AdapterError, ProspectorError
from prospector.fetching.policy_fetcher import PolicyFetcher
from prospector.ingestion.article_types import SearchResult

logger = logging.getLogger(__name__)


RECRUITING_TAGS = [
    "recruiting",
    "hiring",
    "hr",
    "hrtech",
    "careers",
    "jobs",
    "interview",
    "talentacquisition",
]

AI_TAGS = [
    "ai",
    "artificialintelligence",
    "machinelearning",
    "ml",
    "openai",
    "gpt",
    "llm",
    "voiceai",
    "conversationalai",
]

HN_TIME_RANGES = {
    "day": 24 * 3600,
    "week": 7 * 24 * 3600,
    "month": 30 * 24 * 3600,
    "year": 365 * 24 * 3600,
}


class SearchAdapter:
    source_id: str = "base"

    def is_configured(self) -> bool:
        return True

    def search(self, query: str, limit: int = 10) -> List[SearchResult]:
        raise NotImplementedError

    def _fail(self, what: str, err: Exception) -> AdapterError:
        logger.warning("%s search failed: %s", self.source_id, err)
        return AdapterError(f"{self.source_id} {what} failed: {err}", source_id=self.source_id)


def _text(el: Any) -> str:
    if el is None:
        return ""
    return " ".join(el.get_text(" ", strip=True).split())


def _dedupe_by_url(results: Iterable[SearchResult], limit: int) -> List[SearchResult]:
    seen = set()
    out: List[SearchResult] = []
    for r in results:
        if r.url in seen:
            continue
        seen.add(r.url)
        out.append(r)
        if len(out) >= limit:
            break
    return out


# -----------------------------
# Generic web search
# -----------------------------
@dataclass(frozen=True)
class GoogleSearchAdapter(SearchAdapter):
    """Google Custom Search JSON API; 10 results per page, up to 100."""

    fetcher: PolicyFetcher
    api_key: Optional[str] = None
    engine_id: Optional[str] = None
    date_restrict: Optional[str] = None
    endpoint: str = "https://www.googleapis.com/customsearch/v1"

    source_id: str = "google"

    def is_configured(self) -> bool:
        return bool(self.api_key and self.engine_id)

    def search(self, query: str, limit: int = 10) -> List[SearchResult]:
        if not self.is_configured():
            logger.warning("Google Search API not configured. Skipping Google search.")
            return []
        limit = max(0, limit)
        out: List[SearchResult] = []
        max_pages = math.ceil(min(limit, 100) / 10)
        for page in range(max_pages):
            params: Dict[str, Any] = {
                "key": self.api_key,
                "cx": self.engine_id,
                "q": query,
                "start": page * 10 + 1,
                "num": min(10, limit - len(out)),
            }
            if self.date_restrict:
                params["dateRestrict"] = self.date_restrict
            try:
                data = self.fetcher.fetch_json(f"{self.endpoint}?{urlencode(params)}")
            except ProspectorError as e:
                raise self._fail("page fetch", e) from e
            items = data.get("items") if isinstance(data, dict) else None
            items = items or []
            for item in items:
                if not isinstance(item, dict) or not item.get("link"):
                    continue
                out.append(
                    SearchResult(
                        title=str(item.get("title") or "").strip(),
                        url=str(item["link"]).strip(),
                        snippet=str(item.get("snippet") or "").strip(),
                        source_id=self.source_id,
                    )
                )
                if len(out) >= limit:
                    break
            if len(items) < 10 or len(out) >= limit:
                break
        return out


@dataclass(frozen=True)
class BingSearchAdapter(SearchAdapter):
    """Bing Web Search v7; one request, at most 50 results."""

    fetcher: PolicyFetcher
    api_key: Optional[str] = None
    freshness: Optional[str] = None
    endpoint: str = "https://api.bing.microsoft.com/v7.0/search"

    source_id: str = "bing"

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def search(self, query: str, limit: int = 10) -> List[SearchResult]:
        if not self.is_configured():
            logger.warning("Bing Search API not configured. Skipping Bing search.")
            return []
        params: Dict[str, Any] = {
            "q": query,
            "count": min(max(limit, 1), 50),
            "responseFilter": "Webpages",
            "mkt": "en-US",
        }
        if self.freshness:
            params["freshness"] = self.freshness
        try:
            data = self.fetcher.fetch_json(
                f"{self.endpoint}?{urlencode(params)}",
                headers={"Ocp-Apim-Subscription-Key": str(self.api_key)},
            )
        except ProspectorError as e:
            raise self._fail("query", e) from e
        pages = []
        if isinstance(data, dict):
            pages = (data.get("webPages") or {}).get("value") or []
        out: List[SearchResult] = []
        for page in pages:
            if not isinstance(page, dict) or not page.get("url"):
                continue
            out.append(
                SearchResult(
                    title=str(page.get("name") or "").strip(),
                    url=str(page["url"]).strip(),
                    snippet=str(page.get("snippet") or "").strip(),
                    source_id=self.source_id,
                )
            )
            if len(out) >= limit:
                break
        return out


# -----------------------------
# Tag-indexed API (dev.to / Forem)
# -----------------------------
def normalize_devto_tag(tag: str) -> str:
    return re.sub(r"[^a-z0-9]", "", (tag or "").lower())


@dataclass(frozen=True)
class DevToAdapter(SearchAdapter):
    """dev.to public API. No key needed for reads.

    The API has no free-text search: `search()` filters recent articles by
    query terms, `search_by_tag()` is an exact tag lookup.
    """

    fetcher: PolicyFetcher
    api_base: str = "https://dev.to/api"
    # Article window for tag searches, in days
    top_days: int = 30

    source_id: str = "devto"

    def search(self, query: str, limit: int = 10) -> List[SearchResult]:
        params = {"per_page": 100}
        articles = self._get_articles(params, "query")
        terms = [t for t in (query or "").lower().split() if t]
        out: List[SearchResult] = []
        for a in articles:
            if len(out) >= limit:
                break
            title = str(a.get("title") or "").lower()
            desc = str(a.get("description") or "").lower()
            tags = [str(t).lower() for t in (a.get("tag_list") or [])]
            if any(t in title or t in desc or any(t in tag for tag in tags) for t in terms):
                result = self._to_result(a)
                if result is not None:
                    out.append(result)
        logger.debug("dev.to found %d results for: %s", len(out), query)
        return out

    def search_by_tag(self, tag: str, limit: int = 10) -> List[SearchResult]:
        params = {
            "tag": normalize_devto_tag(tag),
            "per_page": min(max(limit, 1), 100),
            "top": self.top_days,
        }
        out: List[SearchResult] = []
        for a in self._get_articles(params, "tag search"):
            result = self._to_result(a, with_reactions=True)
            if result is not None:
                out.append(result)
            if len(out) >= limit:
                break
        return out

    def search_tags(self, tags: Sequence[str], limit: int = 20) -> List[SearchResult]:
        """Union of several tag searches, deduplicated by URL."""
        if not tags:
            return []
        per_tag = math.ceil(limit / len(tags))
        collected: List[SearchResult] = []
        for tag in tags:
            if len(_dedupe_by_url(collected, limit)) >= limit:
                break
            collected.extend(self.search_by_tag(tag, per_tag))
        return _dedupe_by_url(collected, limit)

    def search_recruiting(self, limit: int = 20) -> List[SearchResult]:
        return self.search_tags(RECRUITING_TAGS, limit)

    def search_ai(self, limit: int = 20) -> List[SearchResult]:
        return self.search_tags(AI_TAGS, limit)

    def _get_articles(self, params: Dict[str, Any], what: str) -> List[Dict[str, Any]]:
        try:
            data = self.fetcher.fetch_json(f"{self.api_base}/articles?{urlencode(params)}")
        except ProspectorError as e:
            raise self._fail(what, e) from e
        if not isinstance(data, list):
            return []
        return [a for a in data if isinstance(a, dict)]

    def _to_result(self, a: Dict[str, Any], *, with_reactions: bool = False) -> Optional[SearchResult]:
        url = a.get("url")
        title = a.get("title")
        if not url or not title:
            return None
        snippet = a.get("description") or ""
        if not snippet:
            user = a.get("user") or {}
            snippet = f"By {user.get('name', 'unknown')} • {a.get('reading_time_minutes', 0)} min read"
            if with_reactions:
                snippet += f" • {a.get('positive_reactions_count', 0)} reactions"
        return SearchResult(title=str(title).strip(), url=str(url).strip(), snippet=str(snippet).strip(), source_id=self.source_id)


# -----------------------------
# Chronological / point-scored discussion search (HN Algolia)
# -----------------------------
@dataclass(frozen=True)
class HackerNewsAdapter(SearchAdapter):
    """Hacker News via the Algolia API. Only stories with external URLs."""

    fetcher: PolicyFetcher
    api_base: str = "https://hn.algolia.com/api/v1"
    now: Callable[[], float] = time.time

    source_id: str = "hackernews"

    def search(self, query: str, limit: int = 10) -> List[SearchResult]:
        return self.search_stories(query, limit)

    def search_stories(self, query: str, limit: int = 10, time_range: str = "all") -> List[SearchResult]:
        """Relevance-ranked story search."""
        return self._query("search", query, limit, self._numeric_filters(time_range))

    def search_by_date(self, query: str, limit: int = 10, time_range: str = "year") -> List[SearchResult]:
        """Most recent stories first."""
        return self._query("search_by_date", query, limit, self._numeric_filters(time_range))

    def search_popular(self, query: str, min_points: int = 50, limit: int = 10) -> List[SearchResult]:
        return self._query("search", query, limit, [f"points>={int(min_points)}"])

    def _numeric_filters(self, time_range: str) -> List[str]:
        seconds = HN_TIME_RANGES.get((time_range or "all").lower())
        if seconds is None:
            return []
        return [f"created_at_i>{int(self.now()) - seconds}"]

    def _query(self, endpoint: str, query: str, limit: int, numeric_filters: List[str]) -> List[SearchResult]:
        params: Dict[str, Any] = {"query": query, "tags": "story", "hitsPerPage": min(max(limit, 1), 100)}
        if numeric_filters:
            params["numericFilters"] = ",".join(numeric_filters)
        try:
            data = self.fetcher.fetch_json(f"{self.api_base}/{endpoint}?{urlencode(params)}")
        except ProspectorError as e:
            raise self._fail(endpoint, e) from e
        hits = data.get("hits") if isinstance(data, dict) else None
        out: List[SearchResult] = []
        for hit in hits or []:
            if not isinstance(hit, dict) or not hit.get("url"):
                continue
            out.append(
                SearchResult(
                    title=str(hit.get("title") or "").strip(),
                    url=str(hit["url"]).strip(),
                    snippet=self._snippet(hit),
                    source_id=self.source_id,
                )
            )
            if len(out) >= limit:
                break
        return out

    @staticmethod
    def _snippet(hit: Dict[str, Any]) -> str:
        created = str(hit.get("created_at") or "")[:10]
        return (
            f"{hit.get('points') or 0} points • {hit.get('num_comments') or 0} comments"
            f" • by {hit.get('author') or 'unknown'} • {created}"
        )


# -----------------------------
# Scraped site search (DuckDuckGo HTML)
# -----------------------------
def extract_ddg_target(href: str) -> str:
    """Unwrap DuckDuckGo's /l/?uddg= redirect links."""
    if not href:
        return ""
    p = urlparse(href if "://" in href or href.startswith("//") else "https://duckduckgo.com" + href)
    uddg = parse_qs(p.query).get("uddg")
    if uddg:
        return uddg[0]
    if href.startswith(("http://", "https://")):
        return href
    return ""


def _is_result_url(url: str) -> bool:
    p = urlparse(url)
    if p.scheme not in ("http", "https"):
        return False
    return "duckduckgo.com" not in (p.hostname or "")


def parse_ddg_results(html: str, limit: int, source_id: str = "duckduckgo") -> List[SearchResult]:
    """Parse result cards, trying progressively looser selectors."""
    soup = BeautifulSoup(html or "", "html.parser")
    out: List[SearchResult] = []
    for card in soup.select(".result, .web-result"):
        if len(out) >= limit:
            break
        link = card.select_one(".result__title a, .result__a, a.result__url")
        if link is None:
            continue
        title = _text(link)
        url = extract_ddg_target(link.get("href") or "")
        if not title or not url or not _is_result_url(url):
            continue
        out.append(SearchResult(title=title, url=url, snippet=_text(card.select_one(".result__snippet, .result__body")), source_id=source_id))
    if out:
        return out
    for link in soup.select("a.result__a"):
        if len(out) >= limit:
            break
        title = _text(link)
        url = extract_ddg_target(link.get("href") or "")
        if title and url and _is_result_url(url):
            out.append(SearchResult(title=title, url=url, snippet="", source_id=source_id))
    return out


@dataclass(frozen=True)
class DuckDuckGoAdapter(SearchAdapter):
    fetcher: PolicyFetcher
    endpoint: str = "https://html.duckduckgo.com/html/"

    source_id: str = "duckduckgo"

    def search(self, query: str, limit: int = 10) -> List[SearchResult]:
        return self.search_recent(query, limit, time_range=None)

    def search_recent(self, query: str, limit: int = 10, time_range: Optional[str] = "m") -> List[SearchResult]:
        """`time_range` is DuckDuckGo's df filter: d, w, m or y."""
        params = {"q": query}
        if time_range:
            params["df"] = time_range
        try:
            html = self.fetcher.fetch(f"{self.endpoint}?{urlencode(params)}", skip_policy_check=True)
        except ProspectorError as e:
            raise self._fail("html query", e) from e
        results = parse_ddg_results(html, limit, self.source_id)
        logger.debug("DuckDuckGo found %d results for: %s", len(results), query)
        return results

    def search_site(self, site: str, query: str, limit: int = 10) -> List[SearchResult]:
        return self.search(f"site:{site} {query}", limit)


# -----------------------------
# Medium (site search + tag pages)
# -----------------------------
def parse_medium_tag_page(html: str, limit: int, base: str = "https://medium.com") -> List[SearchResult]:
    soup = BeautifulSoup(html or "", "html.parser")
    out: List[SearchResult] = []
    seen = set()
    for card in soup.select("article, [data-post-id], .postArticle"):
        if len(out) >= limit:
            break
        title = _text(card.select_one("h2, h3, .graf--title"))
        link = card.select_one('a[href*="medium.com"], a[data-action="open-post"]') or card.select_one("a[href]")
        href = (link.get("href") if link is not None else "") or ""
        if not title or not href:
            continue
        if not href.startswith("http"):
            href = base + href
        href = href.split("?")[0]
        if href in seen:
            continue
        seen.add(href)
        snippet = _text(card.select_one("p, .graf--subtitle"))[:200]
        out.append(SearchResult(title=title, url=href, snippet=snippet, source_id="medium"))
    return out


@dataclass(frozen=True)
class MediumAdapter(SearchAdapter):
    fetcher: PolicyFetcher
    site_search: DuckDuckGoAdapter
    base: str = "https://medium.com"

    source_id: str = "medium"

    def search(self, query: str, limit: int = 10) -> List[SearchResult]:
        results = [
            SearchResult(title=r.title, url=r.url, snippet=r.snippet, source_id=self.source_id)
            for r in self.site_search.search_site("medium.com", query, limit)
        ]
        if len(results) < limit:
            results.extend(self.search_by_tag(query, limit - len(results)))
        return _dedupe_by_url(results, limit)

    def search_by_tag(self, tag: str, limit: int = 10) -> List[SearchResult]:
        slug = re.sub(r"[^a-z0-9-]", "", re.sub(r"\s+", "-", (tag or "").lower()))
        if not slug:
            return []
        try:
            html = self.fetcher.fetch(f"{self.base}/tag/{slug}/latest")
        except ProspectorError as e:
            # Tag pages are a best-effort supplement to the site search
            logger.debug("Medium tag search failed for %s: %s", tag, e)
            return []
        return parse_medium_tag_page(html, limit, self.base)


# -----------------------------
# Site restriction wrapper
# -----------------------------
@dataclass(frozen=True)
class SiteRestrictedAdapter(SearchAdapter):
    inner: SearchAdapter
    site: str

    @property
    def source_id(self) -> str:  # type: ignore[override]
        return self.inner.source_id

    def is_configured(self) -> bool:
        return self.inner.is_configured()

    def search(self, query: str, limit: int = 10) -> List[SearchResult]:
        return self.inner.search(f"site:{self.site} {query}", limit)
