"""Collaborator interfaces the engine depends on.

Gateways own retries and rate limiting. After their retry policy is
exhausted they return None / empty, which the engine treats as "no data".
"""

from datetime import datetime
from typing import Any, Protocol

from src.models.token import (
    HolderBalance,
    OraclePrice,
    PoolReserves,
    TokenAnalytics,
    TokenMetadata,
    Transfer,
)


class ChainDataGateway(Protocol):
    async def get_token_metadata(self, address: str) -> TokenMetadata | None: ...

    async def get_top_holders(self, address: str, limit: int) -> list[HolderBalance]: ...

    async def get_holder_count(self, address: str) -> int | None: ...

    async def find_v2_pair(self, factory: str, token: str, quote: str) -> str | None: ...

    async def find_v3_pool(
        self, factory: str, token: str, quote: str, fee: int
    ) -> str | None: ...

    async def get_pool_reserves(self, pool_address: str) -> PoolReserves | None: ...

    async def get_balance(self, token: str, holder: str) -> int: ...

    async def get_transfer_history(
        self, wallet: str, token: str, since: datetime
    ) -> list[Transfer]: ...

    async def get_trade_history(
        self, wallet: str, tokens: list[str], since: datetime
    ) -> dict[str, list[Transfer]]: ...

    async def get_token_transfers(self, token: str, since: datetime) -> list[Transfer]: ...

    async def get_contract_bytecode(self, address: str) -> bytes: ...

    async def get_wallet_net_worth_usd(self, wallet: str) -> float | None: ...

    async def get_token_analytics(self, address: str) -> TokenAnalytics | None: ...


class PriceOracleGateway(Protocol):
    async def get_price(self, address: str) -> OraclePrice | None: ...

    async def get_prices(self, addresses: list[str]) -> dict[str, float]: ...


class ReportCache(Protocol):
    async def get(self, key: str) -> tuple[Any, bool]: ...

    async def put(self, key: str, value: Any, ttl: int) -> None: ...
