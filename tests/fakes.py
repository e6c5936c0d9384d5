"""Test doubles shared by the test modules: no network, no real time."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from prospector.errors import ProspectorError
from prospector.ingestion.article_types import AuthorContact, ContentType, build_article


NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.t = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.t

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.t += max(0.0, seconds)

    def advance(self, seconds: float) -> None:
        self.t += seconds


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = ""):
        self.status_code = status_code
        self.text = text


class FakeSession:
    """Serves queued responses per URL; robots.txt is 404 unless routed."""

    def __init__(self, clock: Optional[FakeClock] = None):
        self.clock = clock
        self.routes: Dict[str, List[Any]] = {}
        self.calls: List[Tuple[str, float]] = []

    def route(self, url: str, *responses: Any) -> "FakeSession":
        self.routes.setdefault(url, []).extend(responses)
        return self

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append((url, self.clock() if self.clock else 0.0))
        queue = self.routes.get(url)
        if not queue:
            if url.endswith("/robots.txt"):
                return FakeResponse(404)
            return FakeResponse(200, f"<html><body>{url}</body></html>")
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item

    def page_calls(self) -> List[Tuple[str, float]]:
        return [c for c in self.calls if not c[0].endswith("/robots.txt")]


class FakeFetcher:
    """Stands in for PolicyFetcher in adapter and pipeline tests.

    `pages` maps a URL (or URL prefix) to a body, a JSON-able object, an
    exception instance, or a callable taking the URL.
    """

    def __init__(self, pages: Optional[Dict[str, Any]] = None):
        self.pages: Dict[str, Any] = dict(pages or {})
        self.requested: List[str] = []

    def _lookup(self, url: str) -> Any:
        self.requested.append(url)
        hit = self.pages.get(url)
        if hit is None:
            for prefix, value in self.pages.items():
                if url.startswith(prefix):
                    hit = value
                    break
        if callable(hit):
            hit = hit(url)
        if isinstance(hit, Exception):
            raise hit
        if hit is None:
            raise ProspectorError(f"no fake page for {url}")
        return hit

    def fetch(self, url: str, skip_policy_check: bool = False, *, headers: Optional[Dict[str, str]] = None) -> str:
        return self._lookup(url)

    def fetch_json(self, url: str, skip_policy_check: bool = True, *, headers: Optional[Dict[str, str]] = None) -> Any:
        return self._lookup(url)


def make_article(**overrides: Any):
    fields: Dict[str, Any] = dict(
        title="Screening candidates at scale",
        url="https://blog.example.com/screening",
        publication_name="Example Blog",
        body_text="word " * 600,
        domain="blog.example.com",
        content_type=ContentType.OPINION,
    )
    fields.update(overrides)
    return build_article(**fields)


def make_author(**overrides: Any) -> AuthorContact:
    fields: Dict[str, Any] = dict(name="Jordan Lee", publication="Example Blog")
    fields.update(overrides)
    return AuthorContact(**fields)
