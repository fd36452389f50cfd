"""Pydantic models for Moralis Web3 Data API (EVM) responses."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class _Lowered(BaseModel):
    model_config = {"extra": "ignore"}

    @field_validator(
        "owner_address", "address", "from_address", "to_address",
        mode="before", check_fields=False,
    )
    @classmethod
    def _lower(cls, v: str | None) -> str | None:
        return v.lower() if isinstance(v, str) else v


class MoralisTokenOwner(_Lowered):
    """Row of /erc20/{address}/owners."""

    owner_address: str
    balance: int  # raw units
    is_contract: bool = False
    percentage_relative_to_total_supply: float | None = None


class MoralisTokenMetadata(_Lowered):
    """Item of /erc20/metadata."""

    address: str
    name: str = ""
    symbol: str = ""
    decimals: int
    total_supply: int | None = None
    verified_contract: bool = False
    created_at: datetime | None = None
    possible_spam: bool = False


class MoralisTransfer(_Lowered):
    """Item of /{wallet}/erc20/transfers and /erc20/{token}/transfers."""

    transaction_hash: str
    block_timestamp: datetime
    from_address: str
    to_address: str
    value: int  # raw units
    token_decimals: int | None = None
    value_decimal: float | None = None

    def amount(self, decimals: int) -> float:
        if self.value_decimal is not None:
            return self.value_decimal
        return self.value / 10 ** (self.token_decimals or decimals)


class MoralisWindowed(BaseModel):
    """Metric split by time window, e.g. {"5m": .., "24h": ..}."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    h24: float = Field(default=0.0, alias="24h")


class MoralisTokenAnalytics(BaseModel):
    """Response of /tokens/{address}/analytics."""

    model_config = {"extra": "ignore"}

    totalBuyVolume: MoralisWindowed = MoralisWindowed()
    totalSellVolume: MoralisWindowed = MoralisWindowed()
    totalBuyers: MoralisWindowed = MoralisWindowed()
    totalSellers: MoralisWindowed = MoralisWindowed()
    uniqueWallets: MoralisWindowed = MoralisWindowed()
    pricePercentChange: MoralisWindowed | None = None
    totalLiquidityUsd: float | None = None
    usdPrice: float | None = None


class MoralisNetWorth(BaseModel):
    """Response of /wallets/{address}/net-worth."""

    model_config = {"extra": "ignore"}

    total_networth_usd: float = 0.0


class MoralisNativeTransfer(BaseModel):
    model_config = {"extra": "ignore"}

    value_formatted: float | None = None
    value: int = 0
    token_symbol: str | None = None
    address: str | None = None


class MoralisHistoryErc20(_Lowered):
    address: str
    from_address: str
    to_address: str
    value: int = 0
    value_formatted: float | None = None
    token_decimals: int | None = None
    token_symbol: str | None = None


class MoralisHistoryItem(BaseModel):
    """Item of /wallets/{address}/history (decoded wallet activity)."""

    model_config = {"extra": "ignore"}

    hash: str
    block_timestamp: datetime
    value: int = 0  # native wei sent with the tx
    native_transfers: list[MoralisNativeTransfer] = []
    erc20_transfers: list[MoralisHistoryErc20] = []

    def native_value(self, wrapped_native: str) -> float:
        """Base-asset value moved by the tx, in whole native units."""
        for nt in self.native_transfers:
            if nt.token_symbol == "BNB" or (nt.address or "").lower() == wrapped_native:
                if nt.value_formatted is not None:
                    return nt.value_formatted
                return nt.value / 1e18
        return self.value / 1e18
