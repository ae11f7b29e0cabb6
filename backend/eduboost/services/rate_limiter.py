"""
EduBoost Gateway — Fixed Window Rate Limiter
=============================================

What:  Per-client request counter over fixed, non-overlapping windows.
Why:   Every /api call may cost upstream quota; one browser tab stuck in a
       loop must not drain it for everyone.
How:   One RateBucket {count, reset_at} per client IP, held by a RateLimiter
       instance shared through app.state.

Algorithm: Fixed Window Counter
    1. No bucket, or the bucket's window has elapsed → new bucket (count=1), allow
    2. count < limit → count += 1, allow
    3. count >= limit → deny, retry after ceil(reset_at - now) seconds

    Trade-off vs. sliding window:
    - A client can send up to 2× limit across a window boundary
      (limit at the end of one window, limit at the start of the next)
    - In exchange: O(1) time per request and O(active clients) memory

Concurrency:
    check_and_consume() contains no await, so it is atomic on the event loop.
    A threaded port needs a lock per key or a single lock around the dict.
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class RateBucket:
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_after_seconds: Optional[int] = None


class RateLimiter:
    """
    Fixed-window limiter keyed by client identifier.

    Args:
        max_requests:    Requests allowed per window
        window_seconds:  Window length
        clock:           Returns the current time in seconds (injectable for tests)
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._buckets: Dict[str, RateBucket] = {}

    def __len__(self) -> int:
        return len(self._buckets)

    def check_and_consume(self, client_id: str, now: Optional[float] = None) -> RateLimitDecision:
        now = self._clock() if now is None else now
        bucket = self._buckets.get(client_id)

        # Elapsed windows are replaced, never incremented in place
        if bucket is None or now >= bucket.reset_at:
            self._buckets[client_id] = RateBucket(count=1, reset_at=now + self.window_seconds)
            return RateLimitDecision(allowed=True)

        if bucket.count >= self.max_requests:
            retry_after = max(1, math.ceil(bucket.reset_at - now))
            logger.warning(
                "Rate limit exceeded for %s: %d requests in %.0fs window",
                client_id,
                bucket.count,
                self.window_seconds,
            )
            return RateLimitDecision(allowed=False, retry_after_seconds=retry_after)

        bucket.count += 1
        return RateLimitDecision(allowed=True)

    def sweep(self, now: Optional[float] = None) -> int:
        """Drop buckets whose window has elapsed. Returns how many were removed."""
        now = self._clock() if now is None else now
        stale = [key for key, b in self._buckets.items() if b.reset_at <= now]
        for key in stale:
            del self._buckets[key]
        if stale:
            logger.debug("Swept %d inactive rate buckets", len(stale))
        return len(stale)
