"""Turn a fetched HTML page into an Article.

Main text comes from trafilatura (falling back to the visible text of the
<article>/<main>/<body> element); metadata comes from meta tags and common
blog markup, tried in a fixed preference order.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Callable, FrozenSet, List, Optional, Sequence, Tuple

import trafilatura
from bs4 import BeautifulSoup
from dateutil import parser as date_parser

from prospector.config import ALIGNA, TOPIC_KEYWORDS, ProductProfile
from prospector.errors import ExtractionError
from prospector.fetching.policy_fetcher import PolicyFetcher
from prospector.ingestion.article_types import Article, ContentType, build_article
from prospector.ingestion.url_utils import domain_of

logger = logging.getLogger(__name__)


TITLE_SELECTORS = [
    ('meta[property="og:title"]', "content"),
    ('meta[name="twitter:title"]', "content"),
    ("h1.post-title, h1.article-title, h1.entry-title", None),
    ("h1", None),
    ("title", None),
]

PUBLISH_DATE_SELECTORS = [
    'meta[property="article:published_time"]',
    'meta[name="publication_date"]',
    'meta[name="date"]',
    "time[datetime]",
    ".post-date",
    ".published",
    ".entry-date",
]

UPDATED_DATE_SELECTORS = [
    'meta[property="article:modified_time"]',
    'meta[name="last-modified"]',
    ".updated",
    ".modified-date",
]

UPDATED_TEXT_RE = re.compile(r"(?:last\s+)?updated[:\s]+(\w+\s+\d{1,2},?\s+\d{4})", re.IGNORECASE)

PRODUCT_PATTERNS = [
    re.compile(r"pricing|plans|subscription|free tier|trial", re.IGNORECASE),
    re.compile(r"\$\d+(?:/mo(?:nth)?)?", re.IGNORECASE),
    re.compile(r"sign up|get started|try\s+\w+", re.IGNORECASE),
]

LEAD_CHARS = 500


def _patterns(*raw: str) -> List[re.Pattern]:
    return [re.compile(p, re.IGNORECASE) for p in raw]


def _in_title(patterns: Sequence[re.Pattern]) -> Callable[[str, str], bool]:
    return lambda title, lead: any(p.search(title) for p in patterns)


def _in_title_or_lead(patterns: Sequence[re.Pattern]) -> Callable[[str, str], bool]:
    return lambda title, lead: any(p.search(title) or p.search(lead) for p in patterns)


# First matching rule wins; anything unmatched is opinion.
CONTENT_TYPE_RULES: List[Tuple[Callable[[str, str], bool], ContentType]] = [
    (
        _in_title_or_lead(_patterns(r"\b\d+\s+(best|top|tools|tips|ways|alternatives)", r"\btop\s+\d+", r"\bbest\s+\d+", r"\blist\s+of\s+")),
        ContentType.LISTICLE,
    ),
    (_in_title(_patterns(r"\bvs\.?\b", r"\bversus\b", r"\bcompar", r"\balternatives?\s+to\b")), ContentType.COMPARISON),
    (_in_title(_patterns(r"\bguide\b", r"\bhow\s+to\b", r"\bcomplete\b", r"\bultimate\b", r"\bcomprehensive\b")), ContentType.GUIDE),
    (
        _in_title_or_lead(_patterns(r"\bcase\s+study\b", r"\bsuccess\s+story\b", r"\bhow\s+\w+\s+achieved\b")),
        ContentType.CASE_STUDY,
    ),
    (_in_title(_patterns(r"\btutorial\b", r"\bstep[- ]by[- ]step\b", r"\bwalkthrough\b")), ContentType.TUTORIAL),
    (_in_title(_patterns(r"\bannounces?\b", r"\blaunches?\b", r"\braises?\s+\$", r"\bfunding\b")), ContentType.NEWS),
]


def detect_content_type(text: str, title: str) -> ContentType:
    t = (title or "").lower()
    lead = (text or "")[:LEAD_CHARS].lower()
    for matches, content_type in CONTENT_TYPE_RULES:
        if matches(t, lead):
            return content_type
    return ContentType.OPINION


def detect_topics(text: str, title: str) -> FrozenSet[str]:
    blob = f"{title or ''}\n{text or ''}".lower()
    found = set()
    for topic, keywords in TOPIC_KEYWORDS.items():
        if any(re.search(r"\b" + re.escape(kw) + r"\b", blob) for kw in keywords):
            found.add(topic)
    return frozenset(found)


def mentions_products(text: str, profile: ProductProfile = ALIGNA) -> bool:
    """Whether the text names concrete products or tools."""
    if profile.competitors_in(text):
        return True
    return any(p.search(text or "") for p in PRODUCT_PATTERNS)


def mentions_own_product(text: str, profile: ProductProfile = ALIGNA) -> bool:
    return profile.mentioned_in(text)


def parse_date(raw: Optional[str]) -> Optional[datetime]:
    s = (raw or "").strip()
    if not s:
        return None
    try:
        dt = date_parser.parse(s)
    except (ValueError, OverflowError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _first_date(soup: BeautifulSoup, selectors: Sequence[str]) -> Optional[datetime]:
    for selector in selectors:
        el = soup.select_one(selector)
        if el is None:
            continue
        raw = el.get("content") or el.get("datetime") or el.get_text(" ", strip=True)
        parsed = parse_date(raw)
        if parsed is not None:
            return parsed
    return None


def extract_title(soup: BeautifulSoup) -> str:
    for selector, attr in TITLE_SELECTORS:
        el = soup.select_one(selector)
        if el is None:
            continue
        value = el.get(attr) if attr else el.get_text(" ", strip=True)
        value = " ".join((value or "").split())
        if value:
            return value
    return "Untitled"


def extract_publish_date(soup: BeautifulSoup) -> Optional[datetime]:
    return _first_date(soup, PUBLISH_DATE_SELECTORS)


def extract_last_updated(soup: BeautifulSoup) -> Optional[datetime]:
    found = _first_date(soup, UPDATED_DATE_SELECTORS)
    if found is not None:
        return found
    body = soup.body or soup
    m = UPDATED_TEXT_RE.search(body.get_text(" ", strip=True))
    if m:
        return parse_date(m.group(1))
    return None


def publication_from_domain(domain: str) -> str:
    d = re.sub(r"^www\.", "", domain or "")
    d = re.sub(r"\.(com|org|net|io|co)$", "", d)
    return " ".join(part[:1].upper() + part[1:] for part in d.split(".") if part)


def extract_publication_name(soup: BeautifulSoup, domain: str) -> str:
    for selector, attr in (
        ('meta[property="og:site_name"]', "content"),
        ('meta[name="application-name"]', "content"),
        (".site-title, .blog-title", None),
    ):
        el = soup.select_one(selector)
        if el is None:
            continue
        value = el.get(attr) if attr else el.get_text(" ", strip=True)
        value = (value or "").strip()
        if value:
            return value
    return publication_from_domain(domain)


def extract_main_text(html: str, soup: Optional[BeautifulSoup] = None) -> str:
    text = trafilatura.extract(html, include_comments=False, include_tables=False)
    if text and text.strip():
        return text.strip()
    soup = soup or BeautifulSoup(html, "html.parser")
    container = soup.find("article") or soup.find("main") or soup.body
    if container is None:
        return ""
    for tag in container.find_all(["script", "style", "noscript", "nav", "header", "footer", "aside"]):
        tag.decompose()
    return container.get_text("\n", strip=True)


def parse_article_html(url: str, html: str, profile: ProductProfile = ALIGNA) -> Article:
    """Parse one fetched page. Raises ExtractionError for empty/unusable pages."""
    if not html or not html.strip():
        raise ExtractionError("empty page", url=url)
    soup = BeautifulSoup(html, "html.parser")
    domain = domain_of(url)

    title = extract_title(soup)
    # Date and publication lookups need the untouched tree
    publish_date = extract_publish_date(soup)
    last_updated = extract_last_updated(soup)
    publication_name = extract_publication_name(soup, domain)

    body = extract_main_text(html, BeautifulSoup(html, "html.parser"))
    if not body:
        raise ExtractionError("no extractable text", url=url)

    return build_article(
        title=title,
        url=url,
        publication_name=publication_name,
        body_text=body,
        domain=domain,
        content_type=detect_content_type(body, title),
        publish_date=publish_date,
        last_updated=last_updated,
        detected_topics=detect_topics(body, title),
        mentions_product=mentions_products(body, profile),
        mentioned_competitors=frozenset(profile.competitors_in(f"{title}\n{body}")),
    )


def extract_article(url: str, fetcher: PolicyFetcher, profile: ProductProfile = ALIGNA) -> Tuple[Article, str]:
    """Fetch and parse `url`; returns the article and the raw HTML."""
    html = fetcher.fetch(url)
    return parse_article_html(url, html, profile), html
