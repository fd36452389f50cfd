from src.models.token import (
    HolderBalance,
    OraclePrice,
    PoolReserves,
    TokenAnalytics,
    TokenMetadata,
    Transfer,
)

__all__ = [
    "TokenMetadata",
    "HolderBalance",
    "PoolReserves",
    "Transfer",
    "OraclePrice",
    "TokenAnalytics",
]
