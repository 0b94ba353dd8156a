"""
backend/app/services/provider_rate_limiter.py

Purpose:
    Process-local requests-per-minute limiter for outbound provider calls.
    API-Football quotas are per key, so every fixtures/rounds request for a
    provider draws from one shared bucket regardless of endpoint.

Dependencies:
    - asyncio
    - time
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field


@dataclass
class _Bucket:
    capacity: float
    refill_per_second: float
    tokens: float
    updated_at: float
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def refill(self, now: float) -> None:
        elapsed = max(0.0, now - self.updated_at)
        self.tokens = min(self.capacity, self.tokens + elapsed * self.refill_per_second)
        self.updated_at = now

    def reconfigure(self, rpm: int) -> None:
        self.capacity = max(1.0, float(rpm))
        self.refill_per_second = self.capacity / 60.0
        self.tokens = min(self.tokens, self.capacity)


class ProviderRateLimiter:
    """Token bucket per provider; a burst of up to `rpm` requests is allowed."""

    def __init__(self) -> None:
        self._buckets: dict[str, _Bucket] = {}

    def _bucket(self, provider: str, rpm: int) -> _Bucket:
        bucket = self._buckets.get(provider)
        if bucket is None:
            capacity = max(1.0, float(rpm))
            bucket = _Bucket(
                capacity=capacity,
                refill_per_second=capacity / 60.0,
                tokens=capacity,
                updated_at=time.monotonic(),
            )
            self._buckets[provider] = bucket
        elif bucket.capacity != max(1.0, float(rpm)):
            bucket.reconfigure(rpm)
        return bucket

    async def acquire(self, provider: str, rpm: int | None) -> None:
        """Wait until one request for `provider` is allowed. rpm <= 0 disables."""
        if rpm is None or int(rpm) <= 0:
            return
        key = str(provider or "").strip().lower()
        if not key:
            return

        bucket = self._bucket(key, int(rpm))
        while True:
            async with bucket.lock:
                bucket.refill(time.monotonic())
                if bucket.tokens >= 1.0:
                    bucket.tokens -= 1.0
                    return
                wait_seconds = (1.0 - bucket.tokens) / max(bucket.refill_per_second, 1e-9)
            await asyncio.sleep(wait_seconds)

    def available(self, provider: str) -> float | None:
        bucket = self._buckets.get(str(provider or "").strip().lower())
        if bucket is None:
            return None
        bucket.refill(time.monotonic())
        return bucket.tokens

    def reset(self) -> None:
        self._buckets.clear()


provider_rate_limiter = ProviderRateLimiter()
