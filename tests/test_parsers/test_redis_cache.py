"""Tests for the Redis report cache."""

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from src.db.redis import RedisReportCache, pnl_report_key, risk_report_key


def test_risk_key_normalizes_address() -> None:
    assert risk_report_key("bsc", "0xABC") == "risk:bsc:0xabc"


def test_pnl_key_independent_of_token_order() -> None:
    a = pnl_report_key("bsc", "0xW", ["0xA", "0xb"])
    b = pnl_report_key("bsc", "0xw", ["0xB", "0xa"])
    assert a == b
    assert a.startswith("pnl:bsc:0xw:")
    assert a != pnl_report_key("bsc", "0xw", ["0xa"])


@pytest.mark.asyncio
async def test_get_hit_and_miss() -> None:
    client = AsyncMock()
    client.get = AsyncMock(side_effect=['{"x": 1}', None])
    cache = RedisReportCache(client)

    assert await cache.get("k") == ('{"x": 1}', True)
    assert await cache.get("k") == (None, False)


@pytest.mark.asyncio
async def test_put_uses_ttl() -> None:
    client = AsyncMock()
    cache = RedisReportCache(client)
    await cache.put("k", "v", 300)
    client.setex.assert_awaited_once_with("k", 300, "v")


@pytest.mark.asyncio
async def test_errors_read_as_miss() -> None:
    client = AsyncMock()
    client.get = AsyncMock(side_effect=RedisConnectionError("down"))
    client.setex = AsyncMock(side_effect=RedisConnectionError("down"))
    cache = RedisReportCache(client)

    assert await cache.get("k") == (None, False)
    await cache.put("k", "v", 60)  # does not raise
