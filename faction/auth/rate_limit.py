from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Tuple


class RateLimiter:
    """
    Simple in-memory rate limiter for login attempts.

    Tracks login attempts per client identifier (peer address or forwarded IP).
    Rate limits after max_attempts within window_seconds; a successful login
    resets the identifier.
    """

    def __init__(
        self,
        max_attempts: int = 5,
        window_seconds: int = 300,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize rate limiter.

        Args:
            max_attempts: Maximum attempts before rate limiting (default: 5)
            window_seconds: Time window in seconds (default: 300 = 5 minutes)
            clock: Time source, overridable in tests
        """
        self._attempts: Dict[str, List[datetime]] = defaultdict(list)
        self._max_attempts = max_attempts
        self._window = timedelta(seconds=window_seconds)
        self._clock = clock

    def check_and_increment(self, identifier: str) -> Tuple[bool, int]:
        """
        Check if identifier is rate limited and increment attempt counter.

        Args:
            identifier: Unique client identifier

        Returns:
            Tuple of (is_allowed, attempts_remaining)
            - is_allowed: True if request should be allowed, False if rate limited
            - attempts_remaining: Number of attempts remaining before rate limit
        """
        now = self._clock()

        # Clean old attempts outside the window
        recent = [t for t in self._attempts.get(identifier, []) if now - t < self._window]

        if len(recent) >= self._max_attempts:
            self._attempts[identifier] = recent
            return False, 0

        recent.append(now)
        self._attempts[identifier] = recent
        return True, self._max_attempts - len(recent)

    def reset(self, identifier: str) -> None:
        """Reset attempts for an identifier (e.g., after successful login)."""
        self._attempts.pop(identifier, None)

    def prune(self) -> int:
        """Drop identifiers whose attempts have all aged out. Returns how many were dropped."""
        now = self._clock()
        stale = [k for k, v in self._attempts.items() if not any(now - t < self._window for t in v)]
        for k in stale:
            del self._attempts[k]
        return len(stale)

    def __len__(self) -> int:
        return len(self._attempts)
