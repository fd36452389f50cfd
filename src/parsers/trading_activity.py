"""24h trading activity and liquidity efficiency."""

import math
from dataclasses import dataclass

from src.models.token import TokenAnalytics


@dataclass(frozen=True)
class TradingActivity:
    has_active_trading: bool
    volume_24h_usd: float = 0.0
    unique_wallets_24h: int = 0
    tx_count_24h: int = 0  # buyers + sellers
    price_change_24h_pct: float | None = None
    total_liquidity_usd: float | None = None
    liquidity_to_volume_ratio: float | None = None
    liquidity_efficiency: str | None = None  # EXCELLENT/GOOD/ADEQUATE/POOR/CRITICAL


def liquidity_efficiency(liquidity_usd: float, volume_24h: float) -> tuple[float, str]:
    """(ratio, tier); too much idle liquidity is as unhealthy as too little."""
    if volume_24h == 0:
        return math.inf, "CRITICAL"
    ratio = liquidity_usd / volume_24h
    if ratio >= 50:
        return ratio, "POOR"
    if ratio >= 20:
        return ratio, "ADEQUATE"
    if ratio >= 5:
        return ratio, "GOOD"
    if ratio >= 3:
        return ratio, "EXCELLENT"
    return ratio, "CRITICAL"


def analyze_trading_activity(
    analytics: TokenAnalytics | None,
    *,
    pool_liquidity_usd: float = 0.0,
    tx_count: int | None = None,
    unique_traders: int | None = None,
) -> TradingActivity:
    """Classify activity from indexer analytics.

    Without analytics, falls back to raw counts: more than 10 txs and
    more than 5 distinct traders.
    """
    if analytics is None:
        active = (tx_count or 0) > 10 and (unique_traders or 0) > 5
        return TradingActivity(
            has_active_trading=active,
            unique_wallets_24h=unique_traders or 0,
            tx_count_24h=tx_count or 0,
        )

    volume = analytics.volume_24h_usd
    liquidity = analytics.total_liquidity_usd
    if liquidity is None:
        liquidity = pool_liquidity_usd
    ratio, efficiency = liquidity_efficiency(liquidity, volume)

    return TradingActivity(
        has_active_trading=analytics.unique_wallets_24h > 5 or volume > 1000,
        volume_24h_usd=volume,
        unique_wallets_24h=analytics.unique_wallets_24h,
        tx_count_24h=analytics.buyers_24h + analytics.sellers_24h,
        price_change_24h_pct=analytics.price_change_24h_pct,
        total_liquidity_usd=liquidity,
        liquidity_to_volume_ratio=None if math.isinf(ratio) else ratio,
        liquidity_efficiency=efficiency,
    )
