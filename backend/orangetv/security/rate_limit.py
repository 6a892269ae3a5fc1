"""
Rate limiting for login.
Prevents brute-force attacks using exponential backoff.
"""
import time
from collections import defaultdict
from threading import Lock

from orangetv.core.config import settings


class RateLimiter:
    """
    Simple in-memory rate limiter with exponential backoff.
    Tracks failed attempts per key (username).
    """

    def __init__(self, max_attempts: int = 5, base_delay: float = 2.0, max_delay: float = 300.0):
        self._attempts = defaultdict(lambda: {"count": 0, "last_time": 0.0})
        self._lock = Lock()

        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay

    def _required_delay(self, count: int) -> float:
        return min(self.base_delay * (2 ** (count - self.max_attempts)), self.max_delay)

    def is_allowed(self, key: str) -> bool:
        """
        Check if an attempt is allowed for this key.
        Returns False while a backoff period is active.
        """
        with self._lock:
            entry = self._attempts[key]
            now = time.time()

            if entry["count"] < self.max_attempts:
                return True

            if now - entry["last_time"] < self._required_delay(entry["count"]):
                return False

            # backoff served, give one more try at the same level
            return True

    def record_attempt(self, key: str, success: bool = False) -> None:
        """Record an attempt (failed by default). Reset counter on success."""
        with self._lock:
            if success:
                self._attempts.pop(key, None)
                return
            entry = self._attempts[key]
            entry["last_time"] = time.time()
            entry["count"] += 1

    def get_retry_after(self, key: str) -> float:
        """Seconds to wait before next attempt, 0 if allowed."""
        with self._lock:
            entry = self._attempts.get(key)
            if not entry or entry["count"] < self.max_attempts:
                return 0.0
            elapsed = time.time() - entry["last_time"]
            return max(0.0, self._required_delay(entry["count"]) - elapsed)

    def reset(self) -> None:
        with self._lock:
            self._attempts.clear()


# Global instance
_limiter = RateLimiter(
    max_attempts=settings.LOGIN_MAX_ATTEMPTS,
    base_delay=settings.LOGIN_BASE_DELAY,
    max_delay=settings.LOGIN_MAX_DELAY,
)


def get_login_limiter() -> RateLimiter:
    return _limiter


def is_rate_limited(key: str) -> bool:
    """Check if a request should be rate limited."""
    return not _limiter.is_allowed(key)


def record_auth_attempt(key: str, success: bool = False) -> None:
    """Record an auth attempt."""
    _limiter.record_attempt(key, success=success)


def get_rate_limit_delay(key: str) -> float:
    """Get time to wait in seconds."""
    return _limiter.get_retry_after(key)
