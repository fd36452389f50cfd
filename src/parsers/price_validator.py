"""Oracle vs pool price validation: detect spot-price manipulation.

Compares the oracle USD price with the spot price implied by the
deepest V2 pool's reserves.
"""

from dataclasses import dataclass

from loguru import logger

TIER_LOW = "low"
TIER_MEDIUM = "medium"
TIER_HIGH = "high"
TIER_CRITICAL = "critical"


@dataclass(frozen=True)
class PriceDeviationResult:
    """Result of oracle/pool price comparison.

    ``has_data`` is False when either price is missing; deviation then
    reads as 0 with no penalty, which is "unknown", not "agreeing".
    """

    oracle_price_usd: float | None
    pool_price_usd: float | None
    deviation_pct: float  # >= 0
    risk_tier: str
    score_penalty: int  # <= 0
    has_data: bool = True

    @property
    def message(self) -> str:
        d = self.deviation_pct
        if not self.has_data:
            return "Unable to calculate price deviation (missing price data)"
        if self.risk_tier == TIER_LOW:
            return f"Price deviation is minimal ({d:.2f}%)"
        if self.risk_tier == TIER_MEDIUM:
            return f"Moderate price deviation detected ({d:.2f}%)"
        if self.risk_tier == TIER_HIGH:
            return (
                f"HIGH PRICE DEVIATION: DEX price differs {d:.2f}% from market price. "
                f"High slippage expected!"
            )
        return (
            f"CRITICAL PRICE DEVIATION: {d:.2f}% difference! Possible liquidity "
            f"manipulation or scam. EXTREME CAUTION ADVISED!"
        )

    @property
    def warning(self) -> str | None:
        """Standalone warning for high / critical deviations."""
        if self.has_data and self.risk_tier in (TIER_HIGH, TIER_CRITICAL):
            return self.message
        return None


def deviation_tier(deviation_pct: float) -> str:
    if deviation_pct < 3:
        return TIER_LOW
    if deviation_pct < 6:
        return TIER_MEDIUM
    if deviation_pct < 10:
        return TIER_HIGH
    return TIER_CRITICAL


def deviation_penalty(deviation_pct: float) -> int:
    if deviation_pct < 3:
        return 0
    if deviation_pct < 6:
        return -5
    if deviation_pct < 10:
        return -15
    if deviation_pct < 20:
        return -30
    return -50


def insufficient_price_data(
    oracle_price: float | None = None, pool_price: float | None = None
) -> PriceDeviationResult:
    return PriceDeviationResult(
        oracle_price_usd=oracle_price,
        pool_price_usd=pool_price,
        deviation_pct=0.0,
        risk_tier=TIER_LOW,
        score_penalty=0,
        has_data=False,
    )


def check_price_deviation(
    oracle_price: float | None,
    pool_price: float | None,
) -> PriceDeviationResult:
    """Compare oracle and pool prices.

    Args:
        oracle_price: USD price from the price oracle.
        pool_price: USD spot price derived from pool reserves.

    Returns:
        PriceDeviationResult; insufficient-data result if either is missing.
    """
    if not oracle_price or oracle_price <= 0 or not pool_price or pool_price <= 0:
        return insufficient_price_data(oracle_price, pool_price)

    # quantized so float error cannot drop an exact breakpoint into the lower tier
    deviation = round(abs(pool_price - oracle_price) / oracle_price * 100, 9)
    tier = deviation_tier(deviation)
    if tier in (TIER_HIGH, TIER_CRITICAL):
        logger.info(
            f"[PRICE] oracle ${oracle_price:.8g} vs pool ${pool_price:.8g}: "
            f"{deviation:.2f}% ({tier})"
        )

    return PriceDeviationResult(
        oracle_price_usd=oracle_price,
        pool_price_usd=pool_price,
        deviation_pct=deviation,
        risk_tier=tier,
        score_penalty=deviation_penalty(deviation),
    )
