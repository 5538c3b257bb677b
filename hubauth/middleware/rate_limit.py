"""
In-memory rate limiting for the public auth endpoints.

Counts are per process. Serverless instances each keep their own window,
which bounds abuse per instance rather than globally.
"""

from __future__ import annotations

from collections import defaultdict, deque
from datetime import UTC, datetime, timedelta

from hubauth.errors import RateLimitedError


class RateLimiter:
    """
    Sliding-window rate limiter.

    Keeps the timestamps of accepted requests per key (e.g. "verify:<ip>").
    """

    def __init__(self):
        self._requests: dict[str, deque[datetime]] = defaultdict(deque)

    def check_rate_limit(self, key: str, max_requests: int, window_minutes: int = 60) -> bool:
        """
        Record a request for key unless the window is already full.

        Args:
            key: Identifier to rate limit
            max_requests: Maximum requests allowed in the window
            window_minutes: Time window in minutes (default 60)

        Returns:
            True if under the limit, False if limit exceeded
        """
        now = datetime.now(UTC)
        cutoff = now - timedelta(minutes=window_minutes)

        window = self._requests[key]
        while window and window[0] <= cutoff:
            window.popleft()

        if len(window) >= max_requests:
            return False

        window.append(now)
        return True

    def enforce(self, key: str, max_requests: int, window_minutes: int = 60) -> None:
        """
        Raise when the key is over its limit.

        Raises:
            RateLimitedError: With Retry-After set to the window length
        """
        if not self.check_rate_limit(key, max_requests, window_minutes):
            raise RateLimitedError(
                f"Too many requests. Maximum {max_requests} per {window_minutes} minute(s).",
                retry_after=window_minutes * 60,
            )

    def cleanup_old_entries(self, max_age_hours: int = 2):
        """
        Drop keys with no request in the last max_age_hours.

        Args:
            max_age_hours: Remove entries older than this many hours
        """
        cutoff = datetime.now(UTC) - timedelta(hours=max_age_hours)
        for key in list(self._requests.keys()):
            window = self._requests[key]
            while window and window[0] <= cutoff:
                window.popleft()
            if not window:
                del self._requests[key]
