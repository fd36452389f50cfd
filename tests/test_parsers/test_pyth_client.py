"""Tests for the Pyth Hermes price oracle client."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from src.parsers.exceptions import GatewayError
from src.parsers.pyth.client import PythClient

BNB_FEED = "2f95862b045670cd22bee3114c39763a4a08beeb663b145d283c31d7d1101c4f"
USDT_FEED = "2b89b9dc8fdf9f34709a5b106b472f0f39bb6ca9ce04b0fd7f2e971688e2e53b"
WBNB = "0xbb4cdb9cbd36b01bd1cbaebf2de08d9173bc095c"
USDT = "0x55d398326f99059ff775485246999027b3197955"
UNPRICED = "0x" + "1" * 40


def _update(feed: str, price: int, expo: int = -8, conf: int = 100) -> dict:
    return {
        "id": feed,
        "price": {"price": str(price), "conf": str(conf), "expo": expo, "publish_time": 1700000000},
    }


def _client(*responses) -> PythClient:
    client = PythClient({WBNB: "0x" + BNB_FEED, USDT: "0x" + USDT_FEED}, max_rps=100.0)
    client._client = AsyncMock()
    client._client.get = AsyncMock(side_effect=list(responses))
    return client


def _resp(status: int, body=None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = body
    return resp


class TestPythClient:
    @pytest.mark.asyncio
    async def test_get_price(self) -> None:
        client = _client(_resp(200, {"parsed": [_update(BNB_FEED, 60_012_345_678)]}))
        price = await client.get_price(WBNB.upper().replace("0X", "0x"))
        assert price is not None
        assert price.usd == pytest.approx(600.12345678)
        assert price.confidence == pytest.approx(0.000001)
        assert price.publish_time == 1700000000

        params = client._client.get.call_args.kwargs["params"]
        assert params == {"ids[]": [BNB_FEED], "parsed": "true"}

    @pytest.mark.asyncio
    async def test_unpriceable_token_skips_request(self) -> None:
        client = _client()
        assert await client.get_price(UNPRICED) is None
        client._client.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_prices_batch(self) -> None:
        client = _client(_resp(200, {"parsed": [
            _update("0x" + BNB_FEED, 60_000_000_000),
            _update(USDT_FEED, 99_990_000),
        ]}))
        prices = await client.get_prices([WBNB, USDT, UNPRICED])
        assert prices == {WBNB: pytest.approx(600.0), USDT: pytest.approx(0.9999)}
        assert client._client.get.await_count == 1

    @pytest.mark.asyncio
    async def test_non_positive_price_unavailable(self) -> None:
        client = _client(_resp(200, {"parsed": [_update(BNB_FEED, 0)]}))
        assert await client.get_price(WBNB) is None

    @pytest.mark.asyncio
    async def test_http_error(self) -> None:
        client = _client(_resp(404))
        assert await client.get_prices([WBNB]) == {}

    @pytest.mark.asyncio
    async def test_malformed_payload(self) -> None:
        client = _client(_resp(200, {"parsed": [{"id": BNB_FEED, "price": {"price": "x"}}]}))
        with pytest.raises(GatewayError):
            await client.get_price(WBNB)

    @pytest.mark.asyncio
    async def test_rate_limit_retry(self, no_retry_delay) -> None:
        client = _client(_resp(429), _resp(200, {"parsed": [_update(BNB_FEED, 50_000_000_000)]}))
        price = await client.get_price(WBNB)
        assert price.usd == pytest.approx(500.0)

    @pytest.mark.asyncio
    async def test_timeout_handling(self, no_retry_delay) -> None:
        client = _client()
        client._client.get = AsyncMock(side_effect=httpx.ConnectError("down"))
        assert await client.get_price(WBNB) is None
        assert client._client.get.await_count == 3
