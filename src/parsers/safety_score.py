"""Safety score aggregation: weighted buckets -> 0-100 score + narrative.

Buckets (max points): holders 15, liquidity 25 (15 base + 10 LP bonus),
verification 10, ownership 10, trading 10, age 10, honeypot 15
(0 when the check could not run), diamond hands 5, price deviation (penalty only).

Risk factors keep upstream order: holder findings first, then each
bucket's findings in bucket order. The risk tier derives from the score
alone, except that a missing pool or a detected honeypot forces CRITICAL.
"""

from dataclasses import astuple, dataclass
from datetime import datetime, timezone

from loguru import logger

from src.models.token import TokenMetadata
from src.parsers.holder_analyzer import HolderAnalysis
from src.parsers.honeypot_detector import STATUS_UNKNOWN, HoneypotFinding
from src.parsers.lp_security import UNKNOWN, LPSecurityStatus
from src.parsers.pool_locator import PoolDiscovery
from src.parsers.price_validator import (
    TIER_CRITICAL,
    TIER_HIGH,
    TIER_MEDIUM,
    PriceDeviationResult,
)
from src.parsers.trading_activity import TradingActivity

TIER_CRITICAL_RISK = "CRITICAL"
TIER_HIGH_RISK = "HIGH"
TIER_MEDIUM_RISK = "MEDIUM"
TIER_LOW_RISK = "LOW"
TIER_SAFE = "SAFE"


@dataclass(frozen=True)
class SafetyScoreBreakdown:
    holders: int = 0
    liquidity: int = 0
    verification: int = 0
    ownership: int = 0
    trading: int = 0
    age: int = 0
    honeypot: int = 0
    diamond_hands: int = 0
    price_deviation: int = 0  # <= 0

    @property
    def raw_total(self) -> int:
        return sum(astuple(self))

    @property
    def total(self) -> int:
        return max(0, min(100, self.raw_total))


@dataclass(frozen=True)
class SafetyAssessment:
    breakdown: SafetyScoreBreakdown
    total_score: int
    risk_tier: str
    risk_factors: tuple[str, ...]
    recommendations: tuple[str, ...]
    price_deviation_warning: str | None = None


def holder_points(conc_excl_lp: float) -> int:
    if conc_excl_lp <= 20:
        return 15
    if conc_excl_lp <= 40:
        return 12
    if conc_excl_lp <= 60:
        return 8
    if conc_excl_lp <= 80:
        return 4
    return 0


def liquidity_base_points(liquidity_usd: float) -> int:
    if liquidity_usd >= 100_000:
        return 15
    if liquidity_usd >= 50_000:
        return 12
    if liquidity_usd >= 10_000:
        return 8
    if liquidity_usd >= 1_000:
        return 4
    return 0


def age_points(created_at: datetime | None, now: datetime) -> int:
    if created_at is None:
        return 5
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    days = (now - created_at).total_seconds() / 86400
    if days >= 30:
        return 10
    if days >= 7:
        return 7
    if days >= 1:
        return 3
    return 0


def diamond_hands_points(count: int) -> int:
    if count >= 5:
        return 5
    if count >= 3:
        return 3
    if count >= 1:
        return 1
    return 0


def risk_tier(score: int) -> str:
    if score < 20:
        return TIER_CRITICAL_RISK
    if score < 40:
        return TIER_HIGH_RISK
    if score < 60:
        return TIER_MEDIUM_RISK
    if score < 80:
        return TIER_LOW_RISK
    return TIER_SAFE


def score_token(
    metadata: TokenMetadata,
    holders: HolderAnalysis,
    pools: PoolDiscovery,
    lp: LPSecurityStatus,
    honeypot: HoneypotFinding,
    deviation: PriceDeviationResult,
    trading: TradingActivity,
    *,
    now: datetime,
) -> SafetyAssessment:
    factors: list[str] = list(holders.risk_factors)
    liquidity_usd = pools.total_liquidity_usd

    if metadata.verified:
        verification = 10
    else:
        verification = 0
        factors.append("Contract source code not verified")

    if not pools.has_liquidity:
        liquidity = 0
        factors.append("No liquidity pool found")
    else:
        liquidity = liquidity_base_points(liquidity_usd)
        if liquidity == 4:
            factors.append("Very low liquidity (<$10k)")
        elif liquidity == 0:
            factors.append("Extremely low liquidity (<$1k)")

        if lp.is_burned:
            liquidity += 10
        elif lp.is_locked:
            liquidity += 8
        elif lp.status == UNKNOWN:
            factors.append("LP security unknown (concentrated-liquidity positions)")
        else:
            factors.append("LP tokens not secured (not burned or locked)")

    if trading.has_active_trading:
        trading_pts = 10
    else:
        trading_pts = 0
        factors.append("Low or no trading activity")

    if metadata.has_active_owner:
        ownership = 0
        factors.append("Contract ownership not renounced")
    else:
        ownership = 10

    age = age_points(metadata.created_at, now)
    if metadata.created_at is not None:
        if age == 3:
            factors.append("Token created less than 7 days ago")
        elif age == 0:
            factors.append("Token created less than 24 hours ago")

    if honeypot.is_honeypot:
        honeypot_pts = 0
        factors.append(f"HONEYPOT DETECTED: {honeypot.reason or 'Cannot sell token'}")
    elif honeypot.status == STATUS_UNKNOWN:
        honeypot_pts = 0
        factors.append("Honeypot check unavailable - treat contract as unverified")
    else:
        honeypot_pts = 15

    warning = None
    if deviation.has_data:
        pct = deviation.deviation_pct
        if deviation.risk_tier == TIER_CRITICAL:
            factors.append(f"CRITICAL: {pct:.1f}% price deviation from oracle")
        elif deviation.risk_tier == TIER_HIGH:
            factors.append(f"HIGH: {pct:.1f}% price deviation from oracle")
        elif deviation.risk_tier == TIER_MEDIUM:
            factors.append(f"Price deviation detected: {pct:.1f}%")
        warning = deviation.warning

    breakdown = SafetyScoreBreakdown(
        holders=holder_points(holders.top10_concentration_excl_lp_pct),
        liquidity=liquidity,
        verification=verification,
        ownership=ownership,
        trading=trading_pts,
        age=age,
        honeypot=honeypot_pts,
        diamond_hands=diamond_hands_points(holders.diamond_hands_count),
        price_deviation=deviation.score_penalty,
    )
    total = breakdown.total

    tier = risk_tier(total)
    if not pools.has_liquidity or honeypot.is_honeypot:
        tier = TIER_CRITICAL_RISK

    logger.debug(f"[SCORE] {metadata.symbol}: {total}/100 ({tier}), raw {breakdown.raw_total}")

    return SafetyAssessment(
        breakdown=breakdown,
        total_score=total,
        risk_tier=tier,
        risk_factors=tuple(factors),
        recommendations=tuple(
            build_recommendations(metadata, holders, pools, lp, honeypot, total)
        ),
        price_deviation_warning=warning,
    )


def build_recommendations(
    metadata: TokenMetadata,
    holders: HolderAnalysis,
    pools: PoolDiscovery,
    lp: LPSecurityStatus,
    honeypot: HoneypotFinding,
    score: int,
) -> list[str]:
    recs: list[str] = []

    if honeypot.is_honeypot:
        recs.append("HONEYPOT DETECTED - DO NOT BUY THIS TOKEN")
    elif score >= 80:
        recs.append("HIGH SAFETY - Token appears relatively safe based on on-chain analysis")
    elif score >= 60:
        recs.append("MODERATE SAFETY - Token has good fundamentals with some minor concerns")
    elif score >= 40:
        recs.append("MEDIUM RISK - Several risk factors detected, exercise caution")
    elif score >= 20:
        recs.append("HIGH RISK - Multiple red flags detected")
    else:
        recs.append("CRITICAL RISK - Strong indicators of potential rug pull")

    if holders.top10_concentration_excl_lp_pct > 50:
        recs.append("High whale concentration - risk of dumps")
    if holders.creator_pct and holders.creator_pct > 5:
        recs.append(f"Creator holds {holders.creator_pct:.2f}% - can dump on holders")
    if not metadata.verified:
        recs.append("Unverified contract - source code cannot be reviewed")
    if not pools.has_liquidity or pools.total_liquidity_usd < 50_000:
        recs.append("Insufficient liquidity - difficult to exit position")
    if not lp.is_secured:
        recs.append("Liquidity not secured - can be removed anytime")
    if metadata.has_active_owner:
        recs.append("Active ownership - contract can be modified")

    recs.append("Always DYOR and never invest more than you can afford to lose")
    return recs
