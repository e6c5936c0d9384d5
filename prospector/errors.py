"""Exception taxonomy for the prospecting pipeline.

Failures are scoped to one URL (or one adapter) and never abort a run:
- PolicyError: robots disallow, hourly ceiling, blocked host. Not retried.
- TransientError: timeouts, resets, 5xx, 429. Retried, surfaced after the ceiling.
- TerminalHTTPError: any other 4xx. Surfaced immediately.
- ExtractionError: the page could not be turned into an Article.
- AdapterError: a search source failed; the aggregator logs it and moves on.
"""

from __future__ import annotations

from typing import Optional


class ProspectorError(Exception):
    """Base class for pipeline errors."""


class PolicyError(ProspectorError):
    def __init__(self, message: str, *, url: Optional[str] = None, domain: Optional[str] = None):
        super().__init__(message)
        self.url = url
        self.domain = domain


class RobotsDisallowedError(PolicyError):
    pass


class HourlyLimitExceededError(PolicyError):
    pass


class BlockedURLError(PolicyError):
    pass


class TransientError(ProspectorError):
    def __init__(self, message: str, *, url: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class RateLimitedError(TransientError):
    """HTTP 429 after the backoff budget was spent."""


class ServerError(TransientError):
    """HTTP 5xx."""


class NetworkError(TransientError):
    """Connection reset/refused, timeout, broken pipe, DNS failure."""


class TerminalHTTPError(ProspectorError):
    def __init__(self, message: str, *, url: Optional[str] = None, status_code: int = 0):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ExtractionError(ProspectorError):
    def __init__(self, message: str, *, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class AdapterError(ProspectorError):
    def __init__(self, message: str, *, source_id: str = "unknown"):
        super().__init__(message)
        self.source_id = source_id
