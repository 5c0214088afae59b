# app/services/stats_cache.py
from __future__ import annotations

import hashlib
import json
import time
from collections.abc import Callable
from datetime import datetime
from typing import Protocol

import redis
import redis.asyncio as aioredis

from app.core.logging import get_logger
from app.schemas.stats import SummaryOptions, SummaryResult

CACHE_PREFIX = "facilitator_activity:stats:"

logger = get_logger(component="stats_cache")


def build_summary_cache_key(
    start: datetime | None,
    end: datetime | None,
    options: SummaryOptions,
) -> str:
    """
    Deterministic fingerprint of a summarize() call.
    """
    payload = {
        "start": start.isoformat() if start else None,
        "end": end.isoformat() if end else None,
        "options": options.model_dump(mode="json"),
    }
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return CACHE_PREFIX + hashlib.sha256(encoded.encode("utf-8")).hexdigest()


class StatsCache(Protocol):
    async def get(self, key: str) -> SummaryResult | None:
        ...

    async def set(self, key: str, value: SummaryResult, ttl_seconds: int) -> None:
        ...


class InMemoryStatsCache:
    """
    Process-local cache with per-entry expiry. Last writer wins.

    Keys come from request parameters, so every write also drops the
    entries that have expired; the map never holds more than the keys
    written within one TTL.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[float, SummaryResult]] = {}

    async def get(self, key: str) -> SummaryResult | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: SummaryResult, ttl_seconds: int) -> None:
        now = self._clock()
        self._purge_expired(now)
        if ttl_seconds <= 0:
            return
        self._entries[key] = (now + ttl_seconds, value)

    def _purge_expired(self, now: float) -> None:
        expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]


def get_redis_client(url: str = "redis://localhost:6379/0") -> aioredis.Redis:
    """Create an asyncio Redis client."""
    return aioredis.Redis.from_url(url, decode_responses=True)


class RedisStatsCache:
    """
    Shared cache storing summaries as JSON with a Redis TTL.

    Redis faults are logged and treated as a miss (on read) or ignored
    (on write); the summary is simply recomputed.
    """

    def __init__(self, client: aioredis.Redis) -> None:
        self.client = client

    async def get(self, key: str) -> SummaryResult | None:
        try:
            raw = await self.client.get(key)
        except redis.RedisError as exc:
            logger.warning("stats_cache_read_failed", key=key, error=str(exc))
            return None
        if raw is None:
            return None
        return SummaryResult.model_validate_json(raw)

    async def set(self, key: str, value: SummaryResult, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        try:
            await self.client.setex(key, ttl_seconds, value.model_dump_json())
        except redis.RedisError as exc:
            logger.warning("stats_cache_write_failed", key=key, error=str(exc))
