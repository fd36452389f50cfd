"""Redis-backed report cache.

The cache is an optimisation only: any Redis error reads as a miss and
is logged, never raised into the engine.
"""

import hashlib
from typing import Any

from loguru import logger
from redis.asyncio import Redis
from redis.exceptions import RedisError


def risk_report_key(chain: str, token: str) -> str:
    return f"risk:{chain}:{token.lower()}"


def pnl_report_key(chain: str, wallet: str, tokens: list[str]) -> str:
    digest = hashlib.sha1(",".join(sorted(t.lower() for t in tokens)).encode()).hexdigest()[:16]
    return f"pnl:{chain}:{wallet.lower()}:{digest}"


class RedisReportCache:
    """ReportCache over SETEX/GET. Values are stored as strings (JSON)."""

    def __init__(self, client: Redis) -> None:
        self._redis = client

    @classmethod
    def from_url(cls, url: str) -> "RedisReportCache":
        return cls(Redis.from_url(url, decode_responses=True))

    async def close(self) -> None:
        await self._redis.aclose()

    async def get(self, key: str) -> tuple[Any, bool]:
        try:
            value = await self._redis.get(key)
        except RedisError as e:
            logger.warning(f"[CACHE] get {key} failed: {e}")
            return None, False
        if value is None:
            return None, False
        logger.debug(f"[CACHE] hit {key}")
        return value, True

    async def put(self, key: str, value: Any, ttl: int) -> None:
        try:
            await self._redis.setex(key, ttl, value)
        except RedisError as e:
            logger.warning(f"[CACHE] put {key} failed: {e}")
