"""Per-caller request allowances.

Each (scope, caller) pair owns a token bucket that refills continuously, so a
caller who pauses gets capacity back gradually rather than all at once when a
window rolls over. Buckets that have refilled completely carry no state worth
keeping and are dropped.

Scopes:

* ``auth.register`` / ``auth.login``: keyed by client address and email.
* ``schedule.write``: admin writes to exams, rooms and class codes, keyed by user.
* ``selection.write``: a student's saved-timetable changes, keyed by user.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import logging
import math
from threading import Lock
import time

from fastapi import Request

from app.core.config import get_settings
from app.core.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)

# Past this many live buckets, refilled ones are swept on the next consume.
PRUNE_THRESHOLD = 1024


@dataclass(frozen=True)
class RateLimitRule:
    limit: int
    window_seconds: int

    @property
    def refill_per_second(self) -> float:
        return self.limit / self.window_seconds


def rule_for(scope: str) -> RateLimitRule:
    settings = get_settings()
    rules = {
        "auth.register": RateLimitRule(
            settings.auth_rate_limit_register_max_requests, settings.auth_rate_limit_window_seconds
        ),
        "auth.login": RateLimitRule(settings.auth_rate_limit_login_max_requests, settings.auth_rate_limit_window_seconds),
        "schedule.write": RateLimitRule(settings.schedule_write_max_requests, settings.write_rate_limit_window_seconds),
        "selection.write": RateLimitRule(
            settings.selection_write_max_requests, settings.write_rate_limit_window_seconds
        ),
    }
    return rules[scope]


@dataclass
class _Bucket:
    rule: RateLimitRule
    tokens: float
    updated: float

    def refill(self, now: float) -> None:
        self.tokens = min(float(self.rule.limit), self.tokens + (now - self.updated) * self.rule.refill_per_second)
        self.updated = now

    def is_full(self, now: float) -> bool:
        elapsed = now - self.updated
        return self.tokens + elapsed * self.rule.refill_per_second >= self.rule.limit


class TokenBucketLimiter:
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._buckets: dict[tuple[str, str], _Bucket] = {}
        self._lock = Lock()
        self._clock = clock

    def consume(self, scope: str, caller: str, rule: RateLimitRule) -> float:
        """Take one token. Returns 0 when allowed, otherwise the seconds until a token is free."""
        now = self._clock()
        key = (scope, caller)
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = self._buckets[key] = _Bucket(rule=rule, tokens=float(rule.limit), updated=now)
            else:
                bucket.refill(now)
            if bucket.tokens < 1:
                return (1 - bucket.tokens) / rule.refill_per_second
            bucket.tokens -= 1
            if len(self._buckets) > PRUNE_THRESHOLD:
                self._prune(now)
        return 0.0

    def _prune(self, now: float) -> None:
        for key in [key for key, bucket in self._buckets.items() if bucket.is_full(now)]:
            del self._buckets[key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)

    def clear(self) -> None:
        with self._lock:
            self._buckets.clear()


_limiter = TokenBucketLimiter()


def client_address(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def enforce_rate_limit(scope: str, caller: str) -> None:
    wait = _limiter.consume(scope, caller, rule_for(scope))
    if not wait:
        return
    retry_after = max(1, math.ceil(wait))
    logger.warning("Rate limit hit for %s by %s; retry in %ss", scope, caller, retry_after)
    raise RateLimitExceededError(scope, retry_after)


def clear_rate_limiter() -> None:
    _limiter.clear()
