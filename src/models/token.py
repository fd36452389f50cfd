"""Normalized records the engine consumes from the chain and price gateways.

Frozen snapshots: fetched once per analysis run, never mutated.
Addresses are lower-cased at the gateway boundary.
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class TokenMetadata:
    address: str
    name: str
    symbol: str
    decimals: int
    total_supply: int  # raw units
    owner_address: str | None = None
    verified: bool = False
    renounced: bool = False
    created_at: datetime | None = None
    creator_address: str | None = None  # deployer

    @property
    def has_active_owner(self) -> bool:
        return self.owner_address is not None and not self.renounced


@dataclass(frozen=True)
class HolderBalance:
    """Raw balance row from the holder list."""

    address: str
    balance_raw: int
    is_contract: bool = False


@dataclass(frozen=True)
class PoolReserves:
    """Reserves and share-token supply of an AMM pool.

    For concentrated-liquidity pools the reserves are the pool's token
    balances and lp_total_supply is 0 (positions are NFTs).
    """

    address: str
    token0: str
    token1: str
    reserve0: int
    reserve1: int
    lp_total_supply: int = 0
    is_v3: bool = False

    def has_token(self, token: str) -> bool:
        token = token.lower()
        return self.token0 == token or self.token1 == token


@dataclass(frozen=True)
class Transfer:
    """Token transfer touching a wallet, ascending by timestamp."""

    tx_hash: str
    timestamp: datetime
    from_address: str
    to_address: str
    amount: float  # token units (decimals applied)
    value_usd: float | None = None  # valued at time of transfer, if known
    base_value: float | None = None  # base-asset value at execution, if known

    def direction(self, wallet: str) -> str:
        wallet = wallet.lower()
        if self.to_address == wallet and self.from_address != wallet:
            return "in"
        if self.from_address == wallet and self.to_address != wallet:
            return "out"
        return "self"


@dataclass(frozen=True)
class OraclePrice:
    usd: float
    confidence: float | None = None
    publish_time: int = 0


@dataclass(frozen=True)
class TokenAnalytics:
    """24h market activity snapshot."""

    volume_24h_usd: float = 0.0
    unique_wallets_24h: int = 0
    buyers_24h: int = 0
    sellers_24h: int = 0
    price_change_24h_pct: float | None = None
    total_liquidity_usd: float | None = None
