"""Top-holder distribution analysis.

Pipeline: percentage per holder -> role (liquidity / creator / owner /
regular) -> LP-first sort -> top 10 -> enrichment of significant regular
wallets (whale, huge-value trader, diamond hands) -> concentration metrics
and risk factors.

Percentages use integer arithmetic (floor to 0.01%) so the sum over any
set of holders never exceeds 100.
"""

import asyncio
from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from loguru import logger

from config.settings import settings
from src.models.token import HolderBalance, TokenMetadata, Transfer
from src.parsers.gateways import ChainDataGateway
from src.parsers.rate_limiter import bounded_gather

ROLE_LIQUIDITY = "liquidity"
ROLE_CREATOR = "creator"
ROLE_OWNER = "owner"
ROLE_REGULAR = "regular"

NO_HOLDER_DATA = "Could not retrieve holder data"


@dataclass(frozen=True)
class Holder:
    address: str
    balance_raw: int
    percentage: float  # 0-100, two decimals
    role: str
    is_contract: bool = False
    is_whale: bool = False
    portfolio_value_usd: float | None = None
    is_huge_value: bool = False
    huge_value_usd: float = 0.0  # largest single transfer
    is_diamond_hands: bool = False
    holding_days: int = 0
    first_acquired_at: datetime | None = None

    @property
    def is_liquidity(self) -> bool:
        return self.role == ROLE_LIQUIDITY


@dataclass(frozen=True)
class HolderAnalysis:
    total_holders: int
    top10_holders: tuple[Holder, ...]
    top10_concentration_pct: float
    top10_concentration_excl_lp_pct: float
    risk_level: str  # LOW / MEDIUM / HIGH / CRITICAL
    risk_factors: tuple[str, ...]
    creator_pct: float | None = None
    owner_pct: float | None = None

    @property
    def diamond_hands_count(self) -> int:
        return sum(1 for h in self.top10_holders if h.is_diamond_hands)

    @property
    def lp_holder_count(self) -> int:
        return sum(1 for h in self.top10_holders if h.is_liquidity)


def empty_holder_analysis(total_holders: int = 0, reason: str = NO_HOLDER_DATA) -> HolderAnalysis:
    """Neutral result when the holder list is unavailable."""
    return HolderAnalysis(
        total_holders=total_holders,
        top10_holders=(),
        top10_concentration_pct=0.0,
        top10_concentration_excl_lp_pct=0.0,
        risk_level="LOW",
        risk_factors=(reason,),
    )


def holder_percentage(balance_raw: int, total_supply: int) -> float:
    if total_supply <= 0:
        return 0.0
    return (balance_raw * 10000 // total_supply) / 100


def classify_role(
    address: str, metadata: TokenMetadata, lp_addresses: frozenset[str]
) -> str:
    if address in lp_addresses:
        return ROLE_LIQUIDITY
    if metadata.creator_address and address == metadata.creator_address.lower():
        return ROLE_CREATOR
    if metadata.owner_address and address == metadata.owner_address.lower():
        return ROLE_OWNER
    return ROLE_REGULAR


def rank_holders(
    balances: list[HolderBalance],
    metadata: TokenMetadata,
    lp_addresses: frozenset[str],
) -> list[Holder]:
    """Classify and order holders: pools first, then by percentage."""
    holders = [
        Holder(
            address=b.address,
            balance_raw=b.balance_raw,
            percentage=holder_percentage(b.balance_raw, metadata.total_supply),
            role=classify_role(b.address, metadata, lp_addresses),
            is_contract=b.is_contract,
        )
        for b in balances
    ]
    holders.sort(key=lambda h: (not h.is_liquidity, -h.percentage, h.address))
    return holders


def check_diamond_hands(
    wallet: str, transfers: list[Transfer], now: datetime
) -> tuple[bool, int, datetime | None]:
    """(is_diamond_hands, holding_days, first_acquired_at) from lookback transfers."""
    if not transfers:
        # still holding with no movement in the whole lookback window
        days = settings.holder_lookback_days
        return True, days, now - timedelta(days=days)

    inbound = [t.timestamp for t in transfers if t.direction(wallet) == "in"]
    if not inbound:
        return False, 0, None

    first = min(inbound)
    days = int((now - first).total_seconds() // 86400)
    return days > settings.diamond_hands_days, days, first


def largest_transfer_usd(transfers: list[Transfer], price_usd: float) -> float:
    """Biggest single transfer, at time-of-transfer value when known."""
    best = 0.0
    for t in transfers:
        value = t.value_usd if t.value_usd is not None else t.amount * price_usd
        best = max(best, value)
    return best


async def _enrich(
    chain: ChainDataGateway,
    holder: Holder,
    metadata: TokenMetadata,
    price_usd: float | None,
    now: datetime,
) -> Holder:
    since = now - timedelta(days=settings.holder_lookback_days)
    transfers = await chain.get_transfer_history(holder.address, metadata.address, since)

    is_whale, portfolio = False, None
    is_huge, huge_value = False, 0.0
    if price_usd:
        portfolio = await chain.get_wallet_net_worth_usd(holder.address)
        token_value = holder.balance_raw / 10**metadata.decimals * price_usd
        is_whale = (portfolio or 0.0) > settings.whale_portfolio_usd or (
            token_value > settings.whale_token_usd
        )
        huge_value = largest_transfer_usd(transfers, price_usd)
        is_huge = huge_value > settings.huge_transfer_usd

    diamond, days, first = check_diamond_hands(holder.address, transfers, now)
    return replace(
        holder,
        is_whale=is_whale,
        portfolio_value_usd=portfolio,
        is_huge_value=is_huge,
        huge_value_usd=huge_value,
        is_diamond_hands=diamond,
        holding_days=days,
        first_acquired_at=first,
    )


def _should_enrich(h: Holder) -> bool:
    return (
        h.role == ROLE_REGULAR
        and not h.is_contract
        and h.percentage > settings.holder_enrich_min_pct
    )


async def analyze_holders(
    chain: ChainDataGateway,
    metadata: TokenMetadata,
    balances: list[HolderBalance],
    lp_addresses: frozenset[str],
    *,
    now: datetime,
    price_usd: float | None = None,
    holder_count: int | None = None,
    semaphore: asyncio.Semaphore | None = None,
    timeout: float | None = None,
) -> HolderAnalysis:
    """Analyze holder distribution.

    Whale and huge-value checks need a valid token price and are skipped
    without one; diamond-hands runs regardless.
    """
    if not balances:
        return empty_holder_analysis(holder_count or 0)

    semaphore = semaphore or asyncio.Semaphore(settings.analysis_max_concurrency)
    ranked = rank_holders(balances, metadata, lp_addresses)
    top = ranked[: settings.top_holders_limit]

    to_enrich = [i for i, h in enumerate(top) if _should_enrich(h)]
    results = await bounded_gather(
        semaphore,
        [_enrich(chain, top[i], metadata, price_usd, now) for i in to_enrich],
        timeout=timeout,
    )
    for i, r in zip(to_enrich, results):
        if isinstance(r, Exception):
            logger.warning(f"[HOLDERS] enrichment failed for {top[i].address[:10]}: {r}")
            continue
        top[i] = r

    conc = round(sum(h.percentage for h in top), 2)
    conc_excl_lp = round(sum(h.percentage for h in top if not h.is_liquidity), 2)

    creator = next((h for h in ranked if h.role == ROLE_CREATOR), None)
    owner = next((h for h in ranked if h.role == ROLE_OWNER), None)
    largest_non_lp = next((h for h in ranked if not h.is_liquidity), None)

    risk_factors: list[str] = []
    risk_level = "LOW"

    if conc_excl_lp > 80:
        risk_factors.append("Extremely high concentration - Top 10 holders (excl. LPs) own >80% of supply")
        risk_level = "CRITICAL"
    elif conc_excl_lp > 60:
        risk_factors.append("Very high concentration - Top 10 holders (excl. LPs) own >60% of supply")
        risk_level = "HIGH"
    elif conc_excl_lp > 40:
        risk_factors.append("High concentration - Top 10 holders (excl. LPs) own >40% of supply")
        risk_level = "MEDIUM"

    diamond_count = sum(1 for h in top if h.is_diamond_hands)
    if diamond_count == 0:
        risk_factors.append("No diamond hands in top 10 holders - all short-term traders")
        if risk_level == "LOW":
            risk_level = "MEDIUM"
    elif diamond_count < 3:
        risk_factors.append(
            f"Only {diamond_count} diamond hands in top 10 - mostly short-term holders"
        )

    if largest_non_lp and largest_non_lp.percentage > settings.single_holder_warn_pct:
        risk_factors.append(f"Single wallet holds {largest_non_lp.percentage:.2f}% of supply")
        if risk_level in ("LOW", "MEDIUM"):
            risk_level = "HIGH"

    if creator and creator.percentage > settings.creator_holding_warn_pct:
        risk_factors.append(f"Creator wallet holds {creator.percentage:.2f}% of supply")
    if owner and owner.percentage > settings.creator_holding_warn_pct:
        risk_factors.append(f"Owner wallet holds {owner.percentage:.2f}% of supply")

    lp_count = sum(1 for h in top if h.is_liquidity)
    if lp_count == 0:
        risk_factors.append("No liquidity pools found in top holders")
        risk_level = "CRITICAL"
    elif lp_count == 1:
        risk_factors.append("Only one liquidity pool found - limited trading options")

    logger.debug(
        f"[HOLDERS] {metadata.symbol}: top10 {conc:.2f}% "
        f"(excl. LP {conc_excl_lp:.2f}%), {diamond_count} diamond hands, {risk_level}"
    )

    return HolderAnalysis(
        total_holders=max(holder_count or 0, len(ranked)),
        top10_holders=tuple(top),
        top10_concentration_pct=conc,
        top10_concentration_excl_lp_pct=conc_excl_lp,
        risk_level=risk_level,
        risk_factors=tuple(risk_factors),
        creator_pct=creator.percentage if creator else None,
        owner_pct=owner.percentage if owner else None,
    )
