# modules/rate_limiter.py

import time
from dataclasses import dataclass
from threading import Lock
from typing import Optional

from modules.logging_manager import get_logger

WINDOW_SECONDS = 60.0


@dataclass
class RateLimitResult:
    """Outcome of a rate limit check."""
    allowed: bool
    remaining: int
    retry_after_seconds: Optional[float] = None

    @property
    def message(self) -> str:
        if self.allowed:
            return ""
        return f"⏳ Too many requests right now. Please try again in {self.retry_after_seconds:.0f} seconds."


class RateLimiter:
    """
    Global request limiter with a fixed one-minute window shared by all users.
    The limit is read from the settings service on every check so admin changes
    apply immediately. Admins bypass the limit without consuming a slot.
    """

    def __init__(self, settings_service, clock=time.monotonic):
        """
        Args:
            settings_service: SettingsService providing rate_limit_per_min
            clock: Monotonic time source in seconds
        """
        self.settings_service = settings_service
        self._clock = clock
        self._window_start = clock()
        self._count = 0
        self._lock = Lock()
        self.logger = get_logger()

    def _current_limit(self) -> int:
        return max(1, self.settings_service.rate_limit_per_min)

    def check_and_consume(self, user_id, command: str, is_admin: bool = False) -> RateLimitResult:
        """
        Checks the limit and consumes one request slot when allowed.

        Args:
            user_id: Discord user ID (for logging)
            command: Command name (for logging)
            is_admin: Whether the user bypasses the limit

        Returns:
            RateLimitResult with status, remaining slots and retry delay
        """
        with self._lock:
            now = self._clock()
            if now - self._window_start >= WINDOW_SECONDS:
                self._window_start = now
                self._count = 0

            limit = self._current_limit()

            if is_admin:
                return RateLimitResult(allowed=True, remaining=limit)

            if self._count >= limit:
                retry_after = WINDOW_SECONDS - (now - self._window_start)
                self.logger.warning(
                    f"Rate limit hit | user={user_id} | command={command} | limit={limit}/min"
                )
                return RateLimitResult(allowed=False, remaining=0, retry_after_seconds=retry_after)

            self._count += 1
            return RateLimitResult(allowed=True, remaining=max(0, limit - self._count))

    def reset(self) -> None:
        """Starts a fresh window."""
        with self._lock:
            self._window_start = self._clock()
            self._count = 0
