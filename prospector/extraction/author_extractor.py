"""Author identity and contact channels from an article page.

Only what the page publishes is collected. Emails in particular come from a
mailto link in the author block, or from a personal (non role-based) address
written in the author bio; nothing is inferred.
"""

from __future__ import annotations

import logging
import re
from typing import Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from prospector.errors import ProspectorError
from prospector.fetching.policy_fetcher import PolicyFetcher
from prospector.ingestion.article_types import AuthorContact
from prospector.ingestion.url_utils import domain_of

logger = logging.getLogger(__name__)


NAME_SELECTORS = [
    'meta[name="author"]',
    'meta[property="article:author"]',
    '[rel="author"]',
    ".author-name",
    ".post-author",
    ".byline",
    ".author a",
    ".entry-author",
    '[itemprop="author"]',
    ".vcard .fn",
]

BIO_SELECTORS = [
    ".author-bio",
    ".author-description",
    ".post-author-bio",
    '[itemprop="description"]',
    ".author-info p",
]

TITLE_SELECTORS = [
    ".author-title",
    ".author-role",
    '[itemprop="jobTitle"]',
    ".author-info .title",
]

FREELANCE_BIO_KEYWORDS = ("freelance", "independent", "contributor")
GENERIC_EMAIL_MARKERS = ("noreply", "info@", "contact@", "support@", "hello@")
CONTACT_PATHS = ("/contact", "/about", "/get-in-touch", "/reach-out")
SOCIAL_DOMAINS = ("twitter.com", "x.com", "linkedin.com", "facebook.com", "github.com", "medium.com")

EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
EMAIL_IN_TEXT_RE = re.compile(r"\b([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})\b")
LINKEDIN_TEXT_RE = re.compile(r"linkedin\.com/in/([\w-]+)", re.IGNORECASE)
TWITTER_HREF_RE = re.compile(r"(?:twitter\.com|x\.com)/(\w+)")
HANDLE_RE = re.compile(r"(?<![\w.])@(\w{2,15})\b")
GITHUB_HREF_RE = re.compile(r"github\.com/([\w-]+)")

TWITTER_RESERVED = {"intent", "share", "search", "home", "i"}
GITHUB_RESERVED = {"topics", "search", "explore", "marketplace"}


def _host_matches(host: str, domain: str) -> bool:
    return host == domain or host.endswith("." + domain)


def extract_author_name(soup: BeautifulSoup) -> str:
    for selector in NAME_SELECTORS:
        el = soup.select_one(selector)
        if el is None:
            continue
        raw = el.get("content") or el.get_text(" ", strip=True)
        name = re.sub(r"^by\s+", "", " ".join((raw or "").split()), flags=re.IGNORECASE)
        if 0 < len(name) < 100:
            return name
    return "Unknown Author"


def extract_author_bio(soup: BeautifulSoup) -> Optional[str]:
    for selector in BIO_SELECTORS:
        el = soup.select_one(selector)
        if el is None:
            continue
        bio = " ".join(el.get_text(" ", strip=True).split())
        if len(bio) > 20:
            return bio[:500]
    return None


def extract_author_title(soup: BeautifulSoup) -> Optional[str]:
    for selector in TITLE_SELECTORS:
        el = soup.select_one(selector)
        if el is None:
            continue
        title = el.get_text(" ", strip=True)
        if title:
            return title
    return None


def extract_linkedin(soup: BeautifulSoup) -> Optional[str]:
    for a in soup.select('a[href*="linkedin.com"]'):
        href = a.get("href") or ""
        if "linkedin.com/in/" in href:
            return href
    body = soup.body or soup
    m = LINKEDIN_TEXT_RE.search(body.get_text(" ", strip=True))
    if m:
        return f"https://www.linkedin.com/in/{m.group(1)}"
    return None


def extract_twitter(soup: BeautifulSoup) -> Optional[str]:
    for a in soup.select('a[href*="twitter.com"], a[href*="x.com"]'):
        href = a.get("href") or ""
        try:
            host = (urlparse(href).hostname or "").lower()
        except ValueError:
            continue
        if not (_host_matches(host, "twitter.com") or _host_matches(host, "x.com")):
            continue
        m = TWITTER_HREF_RE.search(href)
        if m and m.group(1).lower() not in TWITTER_RESERVED:
            return m.group(1)
    author_area = " ".join(el.get_text(" ", strip=True) for el in soup.select(".author, .author-bio, .byline"))
    m = HANDLE_RE.search(author_area)
    if m:
        return m.group(1)
    return None


def extract_github(soup: BeautifulSoup) -> Optional[str]:
    for a in soup.select('a[href*="github.com"]'):
        m = GITHUB_HREF_RE.search(a.get("href") or "")
        if m and m.group(1).lower() not in GITHUB_RESERVED:
            return m.group(1)
    return None


def extract_author_website(soup: BeautifulSoup, article_domain: str) -> Optional[str]:
    skip = SOCIAL_DOMAINS + (article_domain,)
    for a in soup.select(".author a, .author-bio a, .byline a"):
        href = (a.get("href") or "").strip()
        if not href or href.startswith("mailto:"):
            continue
        try:
            host = domain_of(urljoin(f"https://{article_domain}/", href))
        except ValueError:
            continue
        if not host or any(_host_matches(host, d) for d in skip if d):
            continue
        return href
    return None


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email or "")) and len(email) < 100


def is_generic_email(email: str) -> bool:
    e = (email or "").lower()
    return any(marker in e for marker in GENERIC_EMAIL_MARKERS)


def extract_public_email(soup: BeautifulSoup) -> Optional[str]:
    for a in soup.select('.author a[href^="mailto:"], .author-bio a[href^="mailto:"]'):
        email = (a.get("href") or "")[len("mailto:"):].split("?")[0].strip()
        if is_valid_email(email):
            return email
    bio_text = " ".join(el.get_text(" ", strip=True) for el in soup.select(".author-bio, .author-info"))
    m = EMAIL_IN_TEXT_RE.search(bio_text)
    if m and is_valid_email(m.group(1)) and not is_generic_email(m.group(1)):
        return m.group(1)
    return None


def extract_contact_form(soup: BeautifulSoup, article_url: str) -> Optional[str]:
    for a in soup.select('a[href*="contact"], a[href*="about"]'):
        href = (a.get("href") or "").strip()
        if not href or href.startswith("mailto:"):
            continue
        try:
            full = urljoin(article_url, href)
        except ValueError:
            continue
        if any(p in full for p in CONTACT_PATHS):
            return full
    return None


def extract_author(html: str, url: str, publication: Optional[str] = None) -> AuthorContact:
    soup = BeautifulSoup(html or "", "html.parser")
    domain = domain_of(url)

    bio = extract_author_bio(soup)
    title = extract_author_title(soup)
    bio_l = (bio or "").lower()
    title_l = (title or "").lower()

    return AuthorContact(
        name=extract_author_name(soup),
        publication=publication or domain,
        bio=bio,
        title=title,
        website=extract_author_website(soup, domain),
        linkedin=extract_linkedin(soup),
        twitter=extract_twitter(soup),
        github=extract_github(soup),
        public_email=extract_public_email(soup),
        contact_form_url=extract_contact_form(soup, url),
        is_freelance=any(k in bio_l for k in FREELANCE_BIO_KEYWORDS) or "freelance" in title_l,
        is_editor="editor" in title_l or "editor" in bio_l or "managing" in title_l,
    )


def enrich_author_from_profile(author: AuthorContact, profile_url: str, fetcher: PolicyFetcher) -> AuthorContact:
    """Fill missing contact fields from the author's profile page.

    Fetch failures leave the author unchanged.
    """
    try:
        html = fetcher.fetch(profile_url)
    except ProspectorError as e:
        logger.warning("Failed to enrich author from %s: %s", profile_url, e)
        return author
    soup = BeautifulSoup(html or "", "html.parser")
    return author.with_updates(
        public_email=author.public_email or extract_public_email(soup),
        linkedin=author.linkedin or extract_linkedin(soup),
        twitter=author.twitter or extract_twitter(soup),
        github=author.github or extract_github(soup),
        bio=author.bio or extract_author_bio(soup),
    )
