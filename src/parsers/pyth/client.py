"""Pyth Hermes price oracle client.

Only tokens with a configured feed id are priceable; everything else
reads as unavailable.
"""

import asyncio

import httpx
from loguru import logger
from pydantic import ValidationError

from src.models.token import OraclePrice
from src.parsers.exceptions import GatewayError
from src.parsers.pyth.models import PythLatestResponse
from src.parsers.rate_limiter import RateLimiter

MAX_RETRIES = 2
RETRY_DELAYS = [1.0, 3.0]


class PythClient:
    """Implements PriceOracleGateway over Hermes /v2/updates/price/latest."""

    def __init__(
        self,
        feed_ids: dict[str, str],
        base_url: str = "https://hermes.pyth.network",
        max_rps: float = 5.0,
    ) -> None:
        self._feed_ids = {k.lower(): v.lower().removeprefix("0x") for k, v in feed_ids.items()}
        self._rate_limiter = RateLimiter(max_rps)
        self._client = httpx.AsyncClient(base_url=base_url, timeout=10.0)

    async def close(self) -> None:
        await self._client.aclose()

    async def _latest(self, feed_ids: list[str]) -> dict[str, OraclePrice]:
        """Fetch latest prices keyed by feed id."""
        for attempt in range(MAX_RETRIES + 1):
            try:
                await self._rate_limiter.acquire()
                resp = await self._client.get(
                    "/v2/updates/price/latest",
                    params={"ids[]": feed_ids, "parsed": "true"},
                )

                if resp.status_code == 429:
                    delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                    logger.debug(f"[PYTH] Rate limited, waiting {delay}s")
                    await asyncio.sleep(delay)
                    continue

                if resp.status_code != 200:
                    logger.debug(f"[PYTH] HTTP {resp.status_code} for {len(feed_ids)} feeds")
                    return {}

                try:
                    body = PythLatestResponse.model_validate(resp.json())
                except ValidationError as e:
                    raise GatewayError(f"malformed Hermes payload: {e}") from e

                return {
                    u.id.lower().removeprefix("0x"): OraclePrice(
                        usd=u.price.usd,
                        confidence=u.price.confidence,
                        publish_time=u.price.publish_time,
                    )
                    for u in body.parsed
                }

            except (httpx.TimeoutException, httpx.ConnectError) as e:
                if attempt < MAX_RETRIES:
                    delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                    logger.debug(f"[PYTH] {type(e).__name__}, retry in {delay}s")
                    await asyncio.sleep(delay)
                else:
                    logger.warning(f"[PYTH] Failed after retries: {e}")
                    return {}

        return {}

    async def get_price(self, address: str) -> OraclePrice | None:
        feed = self._feed_ids.get(address.lower())
        if feed is None:
            return None
        prices = await self._latest([feed])
        price = prices.get(feed)
        if price is None or price.usd <= 0:
            return None
        return price

    async def get_prices(self, addresses: list[str]) -> dict[str, float]:
        """Batch lookup; addresses without a feed or price are omitted."""
        by_feed: dict[str, list[str]] = {}
        for addr in addresses:
            feed = self._feed_ids.get(addr.lower())
            if feed:
                by_feed.setdefault(feed, []).append(addr.lower())
        if not by_feed:
            return {}

        prices = await self._latest(sorted(by_feed))
        result: dict[str, float] = {}
        for feed, addrs in by_feed.items():
            price = prices.get(feed)
            if price is not None and price.usd > 0:
                for addr in addrs:
                    result[addr] = price.usd
        return result
