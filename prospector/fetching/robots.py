"""robots.txt lookup, cached per domain.

A robots.txt that cannot be fetched (network error, non-200) is treated as
"allow all" unless the policy is built with fail_open=False.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Optional
from urllib.robotparser import RobotFileParser

import requests

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RobotsRules:
    parser: Optional[RobotFileParser]
    # True when robots.txt was unavailable and the fallback decision applies
    unavailable: bool = False
    fallback_allow: bool = True

    def allows(self, agent: str, url: str) -> bool:
        if self.parser is None:
            return self.fallback_allow
        return self.parser.can_fetch(agent, url)

    def crawl_delay(self, agent: str) -> Optional[float]:
        if self.parser is None:
            return None
        delay = self.parser.crawl_delay(agent)
        if delay is None:
            return None
        try:
            return float(delay)
        except (TypeError, ValueError):
            return None


class RobotsPolicy:
    def __init__(
        self,
        session: requests.Session,
        *,
        agent: str,
        user_agent: str,
        timeout: float = 5.0,
        fail_open: bool = True,
    ):
        self._session = session
        self.agent = agent
        self.user_agent = user_agent
        self.timeout = timeout
        self.fail_open = fail_open
        self._rules: Dict[str, RobotsRules] = {}
        self._lock = threading.Lock()

    def rules_for(self, domain: str) -> RobotsRules:
        with self._lock:
            cached = self._rules.get(domain)
        if cached is not None:
            return cached
        # Concurrent misses may both fetch; they compute the same value.
        rules = self._load(domain)
        with self._lock:
            self._rules[domain] = rules
        return rules

    def is_allowed(self, domain: str, url: str) -> bool:
        return self.rules_for(domain).allows(self.agent, url)

    def crawl_delay(self, domain: str) -> Optional[float]:
        return self.rules_for(domain).crawl_delay(self.agent)

    def clear(self) -> None:
        with self._lock:
            self._rules.clear()

    def _load(self, domain: str) -> RobotsRules:
        robots_url = f"https://{domain}/robots.txt"
        try:
            resp = self._session.get(robots_url, headers={"User-Agent": self.user_agent}, timeout=self.timeout)
        except requests.RequestException as e:
            logger.debug("robots.txt unavailable for %s: %s", domain, e)
            return RobotsRules(parser=None, unavailable=True, fallback_allow=self.fail_open)
        if resp.status_code != 200:
            logger.debug("robots.txt for %s returned HTTP %s", domain, resp.status_code)
            return RobotsRules(parser=None, unavailable=True, fallback_allow=self.fail_open)
        parser = RobotFileParser()
        parser.set_url(robots_url)
        parser.parse((resp.text or "").splitlines())
        return RobotsRules(parser=parser)
