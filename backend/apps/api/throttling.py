"""
Client rate limiting for the API.

Rules are configured per endpoint pattern as ``method:path=limit/period``,
e.g. ``*:/api/*=100/1m`` or ``post:/api/products=10/15s``. Every rule whose
pattern matches a request keeps its own sliding window of request timestamps
per client identity in the Django cache. A request is rejected as soon as one
matching window is full; rejected requests are not counted.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Iterable, List, Optional, Sequence, Tuple

from django.conf import settings
from rest_framework.throttling import SimpleRateThrottle

from apps.common import get_logger

logger = get_logger(__name__).bind(component="api", layer="throttling")

PERIOD_UNITS = {"s": 1, "m": 60, "h": 3600, "d": 86400}

_RULE_RE = re.compile(
    r"^\s*(?P<endpoint>[^=\s]+)\s*=\s*(?P<limit>\d+)\s*/\s*(?P<count>\d*)(?P<unit>[smhd])\s*$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class RateLimitRule:
    method: str
    path: str
    limit: int
    period: int

    @property
    def endpoint(self) -> str:
        return f"{self.method}:{self.path}"

    @property
    def scope(self) -> str:
        return f"{self.endpoint}|{self.limit}/{self.period}"

    def matches(self, method: str, path: str) -> bool:
        if self.method != "*" and self.method != method.lower():
            return False
        return fnmatchcase(path.lower(), self.path)


def parse_period(raw: str) -> int:
    """Parse ``<n><s|m|h|d>`` (``n`` defaults to 1) into seconds."""
    match = re.fullmatch(r"\s*(\d*)\s*([smhd])\s*", raw or "", re.IGNORECASE)
    if not match:
        raise ValueError(f"Invalid rate limit period: {raw!r}")
    count = int(match.group(1) or 1)
    if count <= 0:
        raise ValueError(f"Rate limit period must be positive: {raw!r}")
    return count * PERIOD_UNITS[match.group(2).lower()]


def parse_endpoint(raw: str) -> Tuple[str, str]:
    method, sep, path = raw.strip().partition(":")
    if not sep:
        method, path = "*", raw.strip()
    return (method.strip().lower() or "*"), (path.strip().lower() or "*")


def parse_rule(raw: str) -> RateLimitRule:
    match = _RULE_RE.match(raw or "")
    if not match:
        raise ValueError(f"Invalid rate limit rule: {raw!r}")
    method, path = parse_endpoint(match.group("endpoint"))
    limit = int(match.group("limit"))
    period = parse_period(f"{match.group('count')}{match.group('unit')}")
    return RateLimitRule(method=method, path=path, limit=limit, period=period)


def parse_rules(raw: Optional[str]) -> List[RateLimitRule]:
    """Parse a ``;``-separated list of rules, ignoring blank entries."""
    if not raw:
        return []
    return [parse_rule(part) for part in raw.split(";") if part.strip()]


def _split(values: Optional[Iterable[str]]) -> List[str]:
    if values is None:
        return []
    if isinstance(values, str):
        values = values.split(",")
    return [v.strip() for v in values if v and v.strip()]


class EndpointRateThrottle(SimpleRateThrottle):
    """Per-client, per-endpoint sliding-window throttle configured from settings."""

    cache_format = "throttle_%(scope)s_%(ident)s"

    def __init__(self):
        # Rates come from the rules rather than DEFAULT_THROTTLE_RATES.
        config = getattr(settings, "RATE_LIMITING", {}) or {}
        self.enabled = bool(config.get("ENABLED", True))
        rules = config.get("RULES") or []
        self.rules: Sequence[RateLimitRule] = (
            parse_rules(rules)
            if isinstance(rules, str)
            else [parse_rule(r) if isinstance(r, str) else r for r in rules]
        )
        self.ip_whitelist = set(_split(config.get("IP_WHITELIST")))
        self.endpoint_whitelist = [
            parse_endpoint(entry) for entry in _split(config.get("ENDPOINT_WHITELIST"))
        ]
        self._wait: Optional[float] = None

    def cache_key_for(self, rule: RateLimitRule, ident: str) -> str:
        return self.cache_format % {"scope": rule.scope, "ident": ident}

    def allow_request(self, request, view):
        if not self.enabled or not self.rules:
            return True
        ident = self.get_ident(request)
        if ident in self.ip_whitelist:
            return True
        method, path = request.method, request.path
        if self._is_whitelisted_endpoint(method, path):
            return True
        matching = [rule for rule in self.rules if rule.matches(method, path)]
        if not matching:
            return True

        self.now = self.timer()
        windows = []
        for rule in matching:
            key = self.cache_key_for(rule, ident)
            history = [
                ts for ts in self.cache.get(key, []) if ts > self.now - rule.period
            ]
            if len(history) >= rule.limit:
                self._wait = rule.period - (self.now - history[-1])
                logger.info(
                    "Request throttled",
                    ident=ident,
                    endpoint=rule.endpoint,
                    limit=rule.limit,
                    period=rule.period,
                )
                return False
            windows.append((key, history, rule))

        for key, history, rule in windows:
            history.insert(0, self.now)
            self.cache.set(key, history, rule.period)
        return True

    def wait(self):
        return self._wait

    def _is_whitelisted_endpoint(self, method: str, path: str) -> bool:
        method = method.lower()
        path = path.lower()
        return any(
            (allowed_method in ("*", method)) and fnmatchcase(path, allowed_path)
            for allowed_method, allowed_path in self.endpoint_whitelist
        )
