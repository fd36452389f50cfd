"""Moralis Web3 Data API client (EVM, BSC by default).

Holders, holder count, contract verification / creation time, wallet
and token transfers (cursor-paginated), wallet net worth and 24h token analytics.
Retries 429 / 5xx / transport errors, then gives up with None.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, TypeVar

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError

from src.models.token import HolderBalance, TokenAnalytics, Transfer
from src.parsers.exceptions import GatewayError
from src.parsers.moralis.models import (
    MoralisHistoryItem,
    MoralisNetWorth,
    MoralisTokenAnalytics,
    MoralisTokenMetadata,
    MoralisTokenOwner,
    MoralisTransfer,
)
from src.parsers.rate_limiter import RateLimiter

BASE_URL = "https://deep-index.moralis.io/api/v2.2"
MAX_RETRIES = 2
RETRY_DELAYS = [1.0, 3.0]
TRANSFER_PAGE_LIMIT = 100

T = TypeVar("T", bound=BaseModel)


class MoralisClient:
    """Async client for the Moralis EVM API."""

    def __init__(
        self,
        api_key: str,
        chain: str = "0x38",
        rate_limiter: RateLimiter | None = None,
        max_rps: float = 5.0,
        max_pages: int = 10,
    ) -> None:
        self._chain = chain
        self._max_pages = max_pages
        self._rate_limiter = rate_limiter or RateLimiter(max_rps)
        self._client = httpx.AsyncClient(
            base_url=BASE_URL,
            timeout=15.0,
            headers={"X-API-Key": api_key, "Accept": "application/json"},
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any | None:
        """Rate-limited GET with retry. Returns decoded JSON or None."""
        params = {"chain": self._chain, **(params or {})}

        for attempt in range(MAX_RETRIES + 1):
            await self._rate_limiter.acquire()
            try:
                resp = await self._client.get(path, params=params)

                if resp.status_code == 429 or resp.status_code >= 500:
                    if attempt < MAX_RETRIES:
                        delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                        logger.debug(f"[MORALIS] HTTP {resp.status_code}, retry {attempt + 1} in {delay}s: {path}")
                        await asyncio.sleep(delay)
                        continue
                    logger.warning(f"[MORALIS] HTTP {resp.status_code} after retries: {path}")
                    return None

                if resp.status_code != 200:
                    logger.debug(f"[MORALIS] HTTP {resp.status_code}: {path}")
                    return None

                return resp.json()

            except (httpx.TimeoutException, httpx.ConnectError) as e:
                if attempt < MAX_RETRIES:
                    delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                    logger.debug(f"[MORALIS] {type(e).__name__}, retry in {delay}s: {path}")
                    await asyncio.sleep(delay)
                else:
                    logger.warning(f"[MORALIS] Failed after retries: {path}: {e}")
                    return None

        return None

    async def get_token_owners(self, token: str, limit: int = 10) -> list[HolderBalance]:
        data = await self._get(f"/erc20/{token}/owners", {"limit": limit, "order": "DESC"})
        if not data:
            return []
        try:
            rows = [MoralisTokenOwner.model_validate(r) for r in data.get("result", [])]
        except ValidationError as e:
            raise GatewayError(f"malformed owners payload for {token}: {e}") from e
        return [
            HolderBalance(address=r.owner_address, balance_raw=r.balance, is_contract=r.is_contract)
            for r in rows
        ]

    async def get_holder_count(self, token: str) -> int | None:
        data = await self._get(f"/erc20/{token}/holders")
        if not data:
            return None
        count = data.get("totalHolders")
        return int(count) if count is not None else None

    async def get_token_metadata(self, token: str) -> MoralisTokenMetadata | None:
        data = await self._get("/erc20/metadata", {"addresses[0]": token})
        if not data:
            return None
        try:
            return MoralisTokenMetadata.model_validate(data[0])
        except (ValidationError, IndexError, KeyError) as e:
            raise GatewayError(f"malformed metadata payload for {token}: {e}") from e

    async def _get_pages(
        self, path: str, params: dict[str, Any], model: type[T], label: str
    ) -> list[T]:
        """Follow ``cursor`` across pages, at most ``max_pages`` requests."""
        rows: list[T] = []
        cursor = None
        for _ in range(self._max_pages):
            page_params = {**params, "limit": TRANSFER_PAGE_LIMIT}
            if cursor:
                page_params["cursor"] = cursor
            data = await self._get(path, page_params)
            if not data:
                break
            try:
                rows.extend(model.model_validate(r) for r in data.get("result", []))
            except ValidationError as e:
                raise GatewayError(f"malformed {label} payload: {e}") from e
            cursor = data.get("cursor")
            if not cursor:
                break
        else:
            logger.debug(f"[MORALIS] {label}: stopped after {self._max_pages} pages")
        return rows

    @staticmethod
    def _to_transfers(rows: list[MoralisTransfer], decimals: int) -> list[Transfer]:
        transfers = [
            Transfer(
                tx_hash=r.transaction_hash,
                timestamp=r.block_timestamp,
                from_address=r.from_address,
                to_address=r.to_address,
                amount=r.amount(decimals),
            )
            for r in rows
        ]
        transfers.sort(key=lambda t: (t.timestamp, t.tx_hash))
        return transfers

    async def get_wallet_token_transfers(
        self, wallet: str, token: str, since: datetime, decimals: int = 18
    ) -> list[Transfer]:
        """Transfers of one token touching a wallet, oldest first."""
        rows = await self._get_pages(
            f"/{wallet}/erc20/transfers",
            {
                "contract_addresses[0]": token,
                "from_date": since.astimezone(timezone.utc).isoformat(),
                "order": "ASC",
            },
            MoralisTransfer,
            f"transfers for {wallet}",
        )
        return self._to_transfers(rows, decimals)

    async def get_token_transfers(
        self, token: str, since: datetime, decimals: int = 18
    ) -> list[Transfer]:
        """All transfers of a token since ``since``, oldest first."""
        rows = await self._get_pages(
            f"/erc20/{token}/transfers",
            {"from_date": since.astimezone(timezone.utc).isoformat(), "order": "ASC"},
            MoralisTransfer,
            f"token transfers for {token}",
        )
        return self._to_transfers(rows, decimals)

    async def get_wallet_history(self, wallet: str, since: datetime) -> list[MoralisHistoryItem]:
        """Decoded wallet activity (swaps with native legs), oldest first."""
        return await self._get_pages(
            f"/wallets/{wallet}/history",
            {"from_date": since.astimezone(timezone.utc).isoformat(), "order": "ASC"},
            MoralisHistoryItem,
            f"history for {wallet}",
        )

    async def get_wallet_net_worth(self, wallet: str) -> float | None:
        data = await self._get(
            f"/wallets/{wallet}/net-worth",
            {"chains[0]": "bsc", "exclude_spam": "true"},
        )
        if not data:
            return None
        try:
            return MoralisNetWorth.model_validate(data).total_networth_usd
        except ValidationError as e:
            raise GatewayError(f"malformed net worth payload for {wallet}: {e}") from e

    async def get_token_analytics(self, token: str) -> TokenAnalytics | None:
        data = await self._get(f"/tokens/{token}/analytics")
        if not data:
            return None
        try:
            a = MoralisTokenAnalytics.model_validate(data)
        except ValidationError as e:
            raise GatewayError(f"malformed analytics payload for {token}: {e}") from e

        return TokenAnalytics(
            volume_24h_usd=a.totalBuyVolume.h24 + a.totalSellVolume.h24,
            unique_wallets_24h=int(a.uniqueWallets.h24),
            buyers_24h=int(a.totalBuyers.h24),
            sellers_24h=int(a.totalSellers.h24),
            price_change_24h_pct=a.pricePercentChange.h24 if a.pricePercentChange else None,
            total_liquidity_usd=a.totalLiquidityUsd,
        )
