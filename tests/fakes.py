"""In-memory gateway stubs shared by parser and engine tests."""

import asyncio
from datetime import datetime, timezone
from typing import Any

from config.settings import settings
from src.models.token import (
    HolderBalance,
    OraclePrice,
    PoolReserves,
    TokenAnalytics,
    TokenMetadata,
    Transfer,
)

TOKEN = "0x" + "1" * 40
OWNER = "0x" + "2" * 40
CREATOR = "0x" + "3" * 40
PAIR = "0x" + "a" * 40
V3_POOL = "0x" + "b" * 40
WALLET = "0x" + "c" * 40
WBNB = settings.wrapped_native_address
BUSD = settings.stablecoin_addresses[0]
NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)
E18 = 10**18


def holder_addr(i: int) -> str:
    return "0x" + f"{i:040x}"


def make_metadata(**overrides: Any) -> TokenMetadata:
    fields: dict[str, Any] = {
        "address": TOKEN,
        "name": "Test Token",
        "symbol": "TEST",
        "decimals": 18,
        "total_supply": 1_000_000 * E18,
        "owner_address": None,
        "verified": True,
        "renounced": True,
        "created_at": datetime(2025, 6, 1, tzinfo=timezone.utc),
    }
    fields.update(overrides)
    return TokenMetadata(**fields)


def v2_reserves(
    address: str = PAIR,
    token_units: float = 1_000_000,
    quote_units: float = 100,
    quote: str = WBNB,
    lp_supply: int = 1000 * E18,
) -> PoolReserves:
    return PoolReserves(
        address=address,
        token0=TOKEN,
        token1=quote,
        reserve0=int(token_units * E18),
        reserve1=int(quote_units * E18),
        lp_total_supply=lp_supply,
    )


def transfer(
    ts: datetime,
    *,
    to: str = WALLET,
    frm: str = PAIR,
    amount: float = 1.0,
    base_value: float | None = None,
    value_usd: float | None = None,
    tx: str | None = None,
) -> Transfer:
    return Transfer(
        tx_hash=tx or f"0x{int(ts.timestamp()):064x}",
        timestamp=ts,
        from_address=frm,
        to_address=to,
        amount=amount,
        value_usd=value_usd,
        base_value=base_value,
    )


class FakeChain:
    """ChainDataGateway stub.

    Any method named in ``fail`` raises; methods named in ``slow`` sleep
    for the given seconds instead of ``delay``.
    """

    def __init__(
        self,
        *,
        metadata: TokenMetadata | None = None,
        holders: list[HolderBalance] | None = None,
        holder_count: int | None = None,
        v2_pairs: dict[tuple[str, str], str] | None = None,
        v3_pools: dict[tuple[str, str, int], str] | None = None,
        reserves: dict[str, PoolReserves] | None = None,
        balances: dict[tuple[str, str], int] | None = None,
        transfers: dict[str, list[Transfer]] | None = None,
        trades: dict[tuple[str, str], list[Transfer]] | None = None,
        token_transfers: list[Transfer] | None = None,
        bytecode: bytes = b"",
        net_worth: dict[str, float] | None = None,
        analytics: TokenAnalytics | None = None,
        fail: set[str] | None = None,
        delay: float = 0.0,
        slow: dict[str, float] | None = None,
    ) -> None:
        self.metadata = metadata
        self.holders = holders or []
        self.holder_count = holder_count
        self.v2_pairs = v2_pairs or {}
        self.v3_pools = v3_pools or {}
        self.reserves = reserves or {}
        self.balances = balances or {}
        self.transfers = transfers or {}
        self.trades = trades or {}
        self.token_transfers = token_transfers or []
        self.bytecode = bytecode
        self.net_worth = net_worth or {}
        self.analytics = analytics
        self.fail = fail or set()
        self.delay = delay
        self.slow = slow or {}
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def _enter(self, name: str) -> None:
        self.calls.append(name)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.slow.get(name, self.delay))
        finally:
            self.in_flight -= 1
        if name in self.fail:
            raise RuntimeError(f"{name} unavailable")

    async def get_token_metadata(self, address: str) -> TokenMetadata | None:
        await self._enter("get_token_metadata")
        return self.metadata

    async def get_top_holders(self, address: str, limit: int) -> list[HolderBalance]:
        await self._enter("get_top_holders")
        return self.holders[:limit]

    async def get_holder_count(self, address: str) -> int | None:
        await self._enter("get_holder_count")
        return self.holder_count

    async def find_v2_pair(self, factory: str, token: str, quote: str) -> str | None:
        await self._enter("find_v2_pair")
        return self.v2_pairs.get((token, quote))

    async def find_v3_pool(self, factory: str, token: str, quote: str, fee: int) -> str | None:
        await self._enter("find_v3_pool")
        return self.v3_pools.get((token, quote, fee))

    async def get_pool_reserves(self, pool_address: str) -> PoolReserves | None:
        await self._enter("get_pool_reserves")
        return self.reserves.get(pool_address)

    async def get_balance(self, token: str, holder: str) -> int:
        await self._enter("get_balance")
        return self.balances.get((token, holder), 0)

    async def get_transfer_history(self, wallet: str, token: str, since: datetime) -> list[Transfer]:
        await self._enter("get_transfer_history")
        return [t for t in self.transfers.get(wallet, []) if t.timestamp >= since]

    async def get_trade_history(
        self, wallet: str, tokens: list[str], since: datetime
    ) -> dict[str, list[Transfer]]:
        await self._enter("get_trade_history")
        return {
            token: [t for t in self.trades.get((wallet, token), []) if t.timestamp >= since]
            for token in tokens
        }

    async def get_token_transfers(self, token: str, since: datetime) -> list[Transfer]:
        await self._enter("get_token_transfers")
        return [t for t in self.token_transfers if t.timestamp >= since]

    async def get_contract_bytecode(self, address: str) -> bytes:
        await self._enter("get_contract_bytecode")
        return self.bytecode

    async def get_wallet_net_worth_usd(self, wallet: str) -> float | None:
        await self._enter("get_wallet_net_worth_usd")
        return self.net_worth.get(wallet)

    async def get_token_analytics(self, address: str) -> TokenAnalytics | None:
        await self._enter("get_token_analytics")
        return self.analytics


class FakeOracle:
    """PriceOracleGateway stub keyed by lower-case address."""

    def __init__(self, prices: dict[str, float] | None = None, *, fail: bool = False) -> None:
        self.prices = prices or {}
        self.fail = fail

    async def get_price(self, address: str) -> OraclePrice | None:
        if self.fail:
            raise RuntimeError("oracle unavailable")
        usd = self.prices.get(address)
        return OraclePrice(usd=usd, confidence=0.0) if usd else None

    async def get_prices(self, addresses: list[str]) -> dict[str, float]:
        if self.fail:
            raise RuntimeError("oracle unavailable")
        return {a: self.prices[a] for a in addresses if a in self.prices}


class FakeCache:
    def __init__(self) -> None:
        self.store: dict[str, Any] = {}
        self.puts: list[tuple[str, int]] = []

    async def get(self, key: str) -> tuple[Any, bool]:
        if key in self.store:
            return self.store[key], True
        return None, False

    async def put(self, key: str, value: Any, ttl: int) -> None:
        self.store[key] = value
        self.puts.append((key, ttl))
