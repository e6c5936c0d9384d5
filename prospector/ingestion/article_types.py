"""Shared record types: search hits, extracted articles, author contacts."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import FrozenSet, List, Optional


class ContentType(str, Enum):
    LISTICLE = "listicle"
    GUIDE = "guide"
    COMPARISON = "comparison"
    CASE_STUDY = "case-study"
    NEWS = "news"
    OPINION = "opinion"
    TUTORIAL = "tutorial"


class ContactMethod(str, Enum):
    EMAIL = "email"
    CONTACT_FORM = "contact-form"
    LINKEDIN_DM = "linkedin-dm"
    TWITTER_DM = "twitter-dm"
    UNKNOWN = "unknown"


def word_tokenize(text: str) -> List[str]:
    return (text or "").split()


@dataclass(frozen=True)
class SearchResult:
    """One hit from a search source. Identity is the URL."""

    title: str
    url: str
    snippet: str = ""
    source_id: str = "unknown"


@dataclass(frozen=True)
class Article:
    """Normalized article extracted from a single fetched page.

    `word_count` is always len(word_tokenize(body_text)) and `excerpt` is a
    prefix of `body_text` no longer than EXCERPT_MAX_CHARS.
    """

    title: str
    url: str
    publication_name: str
    body_text: str
    excerpt: str
    word_count: int
    domain: str
    content_type: ContentType = ContentType.OPINION
    publish_date: Optional[datetime] = None
    last_updated: Optional[datetime] = None
    detected_topics: FrozenSet[str] = field(default_factory=frozenset)
    mentions_product: bool = False
    mentioned_competitors: FrozenSet[str] = field(default_factory=frozenset)


EXCERPT_MAX_CHARS = 200


def make_excerpt(body_text: str, max_chars: int = EXCERPT_MAX_CHARS) -> str:
    if len(body_text) <= max_chars:
        return body_text
    head = body_text[:max_chars]
    # Prefer to stop on a word boundary
    cut = head.rfind(" ")
    if cut > max_chars // 2:
        head = head[:cut]
    return head.rstrip()


def build_article(
    *,
    title: str,
    url: str,
    publication_name: str,
    body_text: str,
    domain: str,
    **kwargs,
) -> Article:
    """Construct an Article with derived fields computed from `body_text`."""
    body = (body_text or "").strip()
    return Article(
        title=title,
        url=url,
        publication_name=publication_name,
        body_text=body,
        excerpt=make_excerpt(body),
        word_count=len(word_tokenize(body)),
        domain=domain,
        **kwargs,
    )


@dataclass(frozen=True)
class AuthorContact:
    """Author identity and public contact channels found on the page.

    `public_email` is only ever copied from the page (mailto link or a
    personal address in the author block), never guessed.
    """

    name: str = "Unknown Author"
    publication: str = ""
    bio: Optional[str] = None
    title: Optional[str] = None
    website: Optional[str] = None
    linkedin: Optional[str] = None
    twitter: Optional[str] = None
    github: Optional[str] = None
    public_email: Optional[str] = None
    contact_form_url: Optional[str] = None
    is_freelance: bool = False
    is_editor: bool = False

    @property
    def best_contact_method(self) -> ContactMethod:
        return determine_contact_method(self)

    @property
    def contact_notes(self) -> str:
        return contact_notes(self)

    def with_updates(self, **changes) -> "AuthorContact":
        return replace(self, **changes)


def determine_contact_method(author: AuthorContact) -> ContactMethod:
    if author.public_email:
        return ContactMethod.EMAIL
    if author.contact_form_url:
        return ContactMethod.CONTACT_FORM
    if author.linkedin and author.is_freelance:
        return ContactMethod.LINKEDIN_DM
    if author.twitter:
        return ContactMethod.TWITTER_DM
    return ContactMethod.UNKNOWN


def contact_notes(author: AuthorContact) -> str:
    notes = []
    if author.public_email:
        notes.append(f"Email available: {author.public_email}")
    if author.linkedin:
        notes.append("LinkedIn profile found")
    if author.twitter:
        notes.append(f"Twitter: @{author.twitter}")
    if author.website:
        notes.append("Personal website available")
    if author.contact_form_url:
        notes.append("Contact form available")
    if author.is_freelance:
        notes.append("Freelance writer - likely more receptive")
    if author.is_editor:
        notes.append("Editor role - may need editorial approval")
    return ". ".join(notes) if notes else "Limited contact info available"
