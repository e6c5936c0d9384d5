"""URL helpers for dedup and stable prospect ids."""

from __future__ import annotations

import hashlib
import re
from typing import Iterable, List, Optional, Sequence
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from prospector.ingestion.article_types import SearchResult


DEFAULT_STRIP_QUERY_PARAMS = {
    # tracking
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
    "utm_id",
    "utm_name",
    "utm_reader",
    "utm_referrer",
    # misc common trackers
    "gclid",
    "fbclid",
    "mc_cid",
    "mc_eid",
    "ref",
    "ref_src",
    "source",
}

_SCHEME_WWW_RE = re.compile(r"^https?://(www\.)?")


def canonicalize_url(url: str, *, strip_params: Optional[Iterable[str]] = None) -> str:
    """Canonicalize a URL for stable hashing.

    - Lowercase scheme + hostname
    - Remove fragments
    - Strip common tracking query parameters
    - Sort remaining query params
    """
    if not url:
        return ""
    strip = set(strip_params) if strip_params is not None else set(DEFAULT_STRIP_QUERY_PARAMS)
    p = urlparse(url.strip())
    scheme = (p.scheme or "https").lower()
    netloc = (p.netloc or "").lower()
    path = p.path or "/"

    kept = []
    for k, v in parse_qsl(p.query, keep_blank_values=True):
        if k.lower() in strip:
            continue
        kept.append((k, v))
    kept.sort(key=lambda kv: (kv[0].lower(), kv[1]))
    query = urlencode(kept, doseq=True)

    return urlunparse((scheme, netloc, path, "", query, ""))


def url_hash(url: str) -> str:
    """Stable hash for a canonicalized URL."""
    canon = canonicalize_url(url)
    return hashlib.sha256(canon.encode("utf-8")).hexdigest()


def normalize_url(url: str) -> str:
    """Dedup key: lowercase, no trailing slash, no scheme, no leading `www.`."""
    u = (url or "").strip().lower()
    if u.endswith("/"):
        u = u[:-1]
    return _SCHEME_WWW_RE.sub("", u)


def dedupe_results(results: Sequence[SearchResult]) -> List[SearchResult]:
    """Drop later hits whose normalized URL was already seen. Keeps order."""
    seen = set()
    out: List[SearchResult] = []
    for r in results:
        key = normalize_url(r.url)
        if key in seen:
            continue
        seen.add(key)
        out.append(r)
    return out


def domain_of(url: str) -> str:
    try:
        return (urlparse(url or "").hostname or "").lower()
    except ValueError:
        return ""
