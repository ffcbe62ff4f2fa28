"""
In-memory sliding-window rate limiting for the auth endpoints.

Login attempts are counted per client IP and OTP traffic (signup, verify,
resend, forgot/reset password) per normalised email address. State lives
in the process, so limits are per worker.
"""

import math
from collections import deque
from datetime import datetime, timedelta
from threading import Lock

from academy.adapters.clock import SystemClock
from academy.core.ports.time import ClockPort
from academy.rules.models import RateLimitRules, WindowRule

DEFAULT_LOGIN_ATTEMPTS = 10
DEFAULT_OTP_REQUESTS = 5


class RateLimiter:
    def __init__(self, rules: RateLimitRules, clock: ClockPort | None = None):
        self.rules = rules
        self._clock = clock or SystemClock()
        self._hits: dict[str, deque[datetime]] = {}
        self._lock = Lock()

    def _prune(self, key: str, window: timedelta) -> deque[datetime]:
        hits = self._hits.setdefault(key, deque())
        cutoff = self._clock.now_utc() - window
        while hits and hits[0] <= cutoff:
            hits.popleft()
        return hits

    def allow_request(self, key: str, window_seconds: int, limit: int) -> bool:
        """Record a hit for ``key`` unless ``limit`` hits already fall inside the window."""
        if limit <= 0:
            return False
        with self._lock:
            hits = self._prune(key, timedelta(seconds=window_seconds))
            if len(hits) >= limit:
                return False
            hits.append(self._clock.now_utc())
            return True

    def retry_after(self, key: str, window_seconds: int) -> int:
        """Seconds until the oldest hit in the window expires (0 if none)."""
        with self._lock:
            hits = self._prune(key, timedelta(seconds=window_seconds))
            if not hits:
                return 0
            expires = hits[0] + timedelta(seconds=window_seconds)
            return max(1, math.ceil((expires - self._clock.now_utc()).total_seconds()))

    @staticmethod
    def login_key(ip: str) -> str:
        return f"login:{ip}"

    @staticmethod
    def otp_key(email: str) -> str:
        return f"otp:{email.strip().lower()}"

    def check_login(self, ip: str) -> bool:
        rule = self.rules.login
        return self.allow_request(self.login_key(ip), rule.window_seconds, _limit(rule, DEFAULT_LOGIN_ATTEMPTS))

    def check_otp(self, email: str) -> bool:
        rule = self.rules.otp
        return self.allow_request(self.otp_key(email), rule.window_seconds, _limit(rule, DEFAULT_OTP_REQUESTS))

    def login_retry_after(self, ip: str) -> int:
        return self.retry_after(self.login_key(ip), self.rules.login.window_seconds)

    def otp_retry_after(self, email: str) -> int:
        return self.retry_after(self.otp_key(email), self.rules.otp.window_seconds)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


def _limit(rule: WindowRule, default: int) -> int:
    for value in (rule.max_attempts, rule.max_requests):
        if value is not None:
            return value
    return default
