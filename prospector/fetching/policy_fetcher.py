"""The single outbound read path: rate limits, robots.txt, caching, retries.

Every adapter and the page fetch step go through one PolicyFetcher so that
per-domain politeness holds across the whole run:
- at least `min_delay` seconds (or the robots Crawl-delay, if larger) between
  two requests to the same domain
- at most `max_requests_per_hour` live requests per domain per hour window;
  past the ceiling we fail fast instead of waiting for the window to roll
- successful bodies cached by exact URL for `cache_ttl` seconds
- 429 backs off by the domain's request count, 5xx/network errors retry with
  jittered exponential backoff, other 4xx are terminal
"""

from __future__ import annotations

import ipaddress
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple
from urllib.parse import urlparse

import requests
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential, wait_random

from prospector.config import DEFAULT_USER_AGENT, Settings
from prospector.errors import (
    BlockedURLError,
    HourlyLimitExceededError,
    NetworkError,
    ProspectorError,
    RateLimitedError,
    RobotsDisallowedError,
    ServerError,
    TerminalHTTPError,
)
from prospector.fetching.robots import RobotsPolicy

logger = logging.getLogger(__name__)

HOUR_SECONDS = 3600.0

_PRIVATE_NETS = [
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("0.0.0.0/8"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fc00::/7"),
    ipaddress.ip_network("fe80::/10"),
]

_TRANSIENT_REQUEST_ERRORS = (
    requests.ConnectionError,
    requests.Timeout,
    requests.exceptions.ChunkedEncodingError,
)


def _is_private_ip(hostname: str) -> bool:
    try:
        ip = ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return any(ip in net for net in _PRIVATE_NETS)


def validate_fetch_url(url: str) -> Optional[str]:
    """Return an error code if the URL must not be fetched."""
    try:
        p = urlparse(url)
    except ValueError:
        return "invalid_url"
    if p.scheme not in ("http", "https"):
        return "bad_scheme"
    host = (p.hostname or "").strip().lower()
    if not host:
        return "missing_host"
    if host in ("localhost", "localhost.localdomain"):
        return "blocked_host"
    if _is_private_ip(host):
        return "blocked_private_ip"
    return None


@dataclass
class DomainState:
    last_request: Optional[float] = None
    request_count: int = 0
    hour_start: Optional[float] = None
    crawl_delay: Optional[float] = None


@dataclass(frozen=True)
class FetchOutcome:
    body: Optional[str]
    error: Optional[ProspectorError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class PolicyFetcher:
    def __init__(
        self,
        *,
        session: Optional[requests.Session] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        robots_agent: str = "AlignaPRBot",
        min_delay: float = 2.0,
        max_requests_per_hour: int = 100,
        cache_ttl: float = 24 * HOUR_SECONDS,
        timeout: float = 30.0,
        robots_timeout: float = 5.0,
        robots_fail_open: bool = True,
        max_attempts: int = 3,
        max_429_retries: int = 3,
        backoff_429_base: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._session = session or requests.Session()
        self.user_agent = user_agent
        self.min_delay = float(min_delay)
        self.max_requests_per_hour = int(max_requests_per_hour)
        self.cache_ttl = float(cache_ttl)
        self.timeout = timeout
        self.max_attempts = max(1, int(max_attempts))
        self.max_429_retries = max(0, int(max_429_retries))
        self.backoff_429_base = float(backoff_429_base)
        self._clock = clock
        self._sleep = sleep
        self._headers = {
            "User-Agent": user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        }
        self.robots = RobotsPolicy(
            self._session,
            agent=robots_agent,
            user_agent=user_agent,
            timeout=robots_timeout,
            fail_open=robots_fail_open,
        )

        # One lock per domain; the registry lock only guards lock/state creation.
        self._registry_lock = threading.Lock()
        self._domain_locks: Dict[str, threading.Lock] = {}
        self._domains: Dict[str, DomainState] = {}

        self._cache_lock = threading.Lock()
        self._cache: Dict[str, Tuple[float, str]] = {}

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "PolicyFetcher":
        return cls(
            user_agent=settings.user_agent,
            robots_agent=settings.robots_agent,
            min_delay=settings.min_delay_seconds,
            max_requests_per_hour=settings.max_requests_per_hour,
            timeout=settings.request_timeout,
            robots_fail_open=settings.robots_fail_open,
            **kwargs,
        )

    # -----------------------------
    # Public API
    # -----------------------------
    def fetch(self, url: str, skip_policy_check: bool = False, *, headers: Optional[Dict[str, str]] = None) -> str:
        """Fetch `url` and return the body text.

        `skip_policy_check` bypasses robots.txt only (for first-party search
        APIs); rate limiting and caching still apply.
        """
        err = validate_fetch_url(url)
        if err:
            raise BlockedURLError(f"Refusing to fetch {url}: {err}", url=url)
        domain = (urlparse(url).hostname or "").lower()

        if not skip_policy_check:
            self._check_robots(domain, url)

        cached = self._cache_get(url)
        if cached is not None:
            return cached

        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=8) + wait_random(0, 1),
            retry=retry_if_exception_type((ServerError, NetworkError)),
            sleep=self._sleep,
            reraise=True,
        )
        body = retrying(self._request, url, domain, headers)
        self._cache_put(url, body)
        return body

    def fetch_json(self, url: str, skip_policy_check: bool = True, *, headers: Optional[Dict[str, str]] = None) -> Any:
        merged = {"Accept": "application/json"}
        merged.update(headers or {})
        body = self.fetch(url, skip_policy_check, headers=merged)
        try:
            return json.loads(body)
        except ValueError as e:
            raise ServerError(f"Invalid JSON from {url}: {e}", url=url) from e

    def try_fetch(self, url: str, skip_policy_check: bool = False) -> FetchOutcome:
        """Non-raising variant of fetch()."""
        try:
            return FetchOutcome(body=self.fetch(url, skip_policy_check))
        except ProspectorError as e:
            return FetchOutcome(body=None, error=e)

    def rate_limit_status(self, domain: str) -> Dict[str, int]:
        with self._lock_for(domain):
            state = self._state_for(domain)
            return {
                "requests_this_hour": state.request_count,
                "max_per_hour": self.max_requests_per_hour,
            }

    def effective_delay(self, domain: str) -> float:
        with self._lock_for(domain):
            return self._effective_delay(self._state_for(domain))

    def clear_caches(self) -> None:
        with self._cache_lock:
            self._cache.clear()
        self.robots.clear()

    # -----------------------------
    # Policy steps
    # -----------------------------
    def _check_robots(self, domain: str, url: str) -> None:
        rules = self.robots.rules_for(domain)
        delay = rules.crawl_delay(self.robots.agent)
        if delay is not None:
            with self._lock_for(domain):
                self._state_for(domain).crawl_delay = delay
        if not rules.allows(self.robots.agent, url):
            raise RobotsDisallowedError(f"robots.txt disallows {url}", url=url, domain=domain)

    def _lock_for(self, domain: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._domain_locks.get(domain)
            if lock is None:
                lock = threading.Lock()
                self._domain_locks[domain] = lock
            return lock

    def _state_for(self, domain: str) -> DomainState:
        with self._registry_lock:
            state = self._domains.get(domain)
            if state is None:
                state = DomainState()
                self._domains[domain] = state
            return state

    def _effective_delay(self, state: DomainState) -> float:
        return max(self.min_delay, state.crawl_delay or 0.0)

    def _reserve_slot(self, domain: str) -> None:
        """Block until the domain may be hit again, then record the request."""
        with self._lock_for(domain):
            state = self._state_for(domain)
            now = self._clock()
            if state.hour_start is None or now - state.hour_start >= HOUR_SECONDS:
                state.hour_start = now
                state.request_count = 0
            if state.request_count >= self.max_requests_per_hour:
                raise HourlyLimitExceededError(
                    f"Hourly request ceiling ({self.max_requests_per_hour}) reached for {domain}",
                    domain=domain,
                )
            if state.last_request is not None:
                wait = state.last_request + self._effective_delay(state) - now
                if wait > 0:
                    self._sleep(wait)
                    now = self._clock()
            state.last_request = now
            state.request_count += 1

    def _backoff_429(self, domain: str) -> None:
        with self._lock_for(domain):
            count = self._state_for(domain).request_count
        delay = self.backoff_429_base * (2 ** min(count, 5))
        logger.warning("Rate limited by %s, backing off %.1fs", domain, delay)
        self._sleep(delay)

    def _request(self, url: str, domain: str, headers: Optional[Dict[str, str]]) -> str:
        merged = dict(self._headers)
        merged.update(headers or {})
        retries_429 = 0
        while True:
            self._reserve_slot(domain)
            try:
                resp = self._session.get(url, headers=merged, timeout=self.timeout, allow_redirects=True)
            except _TRANSIENT_REQUEST_ERRORS as e:
                logger.debug("Transient error fetching %s: %s", url, e)
                raise NetworkError(f"Network error fetching {url}: {e}", url=url) from e
            except requests.RequestException as e:
                # Redirect loops, invalid URLs and the like will not improve on retry
                raise TerminalHTTPError(f"Request failed for {url}: {e}", url=url) from e

            status = resp.status_code
            if status == 429:
                if retries_429 >= self.max_429_retries:
                    raise RateLimitedError(f"HTTP 429 from {url}", url=url, status_code=429)
                retries_429 += 1
                self._backoff_429(domain)
                continue
            if status >= 500:
                raise ServerError(f"HTTP {status} fetching {url}", url=url, status_code=status)
            if status >= 400:
                raise TerminalHTTPError(f"HTTP {status} fetching {url}", url=url, status_code=status)
            return resp.text or ""

    def _cache_get(self, url: str) -> Optional[str]:
        with self._cache_lock:
            hit = self._cache.get(url)
        if hit is None:
            return None
        stored_at, body = hit
        if self._clock() - stored_at >= self.cache_ttl:
            return None
        return body

    def _cache_put(self, url: str, body: str) -> None:
        with self._cache_lock:
            self._cache[url] = (self._clock(), body)
