"""Simple in-memory rate limiting utilities."""
from __future__ import annotations

import asyncio
import time
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Deque, DefaultDict


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of consuming one token from a bucket."""

    allowed: bool
    remaining: int
    reset_in_seconds: int


class RateLimiter:
    """Provide sliding-window rate limiting with asyncio locking."""

    def __init__(self) -> None:
        self._attempts: DefaultDict[str, Deque[float]] = defaultdict(deque)
        self._lock = asyncio.Lock()

    async def hit(self, key: str, max_requests: int, window_seconds: int) -> RateLimitDecision:
        """Consume one token for key and report whether the request is allowed."""
        async with self._lock:
            now = time.time()
            window_start = now - window_seconds
            bucket = self._attempts[key]

            while bucket and bucket[0] < window_start:
                bucket.popleft()

            if len(bucket) >= max_requests:
                reset_in = int(bucket[0] + window_seconds - now) + 1
                return RateLimitDecision(False, 0, max(reset_in, 0))

            bucket.append(now)
            return RateLimitDecision(True, max_requests - len(bucket), window_seconds)

    def reset(self) -> None:
        """Forget every recorded attempt."""
        self._attempts.clear()


rate_limiter = RateLimiter()
