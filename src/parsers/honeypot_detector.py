"""Heuristic honeypot detection from bytecode markers and token metrics.

This is NOT a buy/sell simulation. Rules look for restrictive functions
(blacklists, trading toggles, tx limits, cooldowns, pause) in deployed
bytecode and for red-flag metrics (owner share, unverified source, thin
liquidity). "Not flagged" means no heuristic fired, not that the token
is sellable.

Rules are independent objects evaluated in order; pass a custom list to
``detect_honeypot`` to extend or replace them.
"""

from dataclasses import dataclass
from typing import Protocol

from loguru import logger

from config.settings import settings

STATUS_ANALYZED = "analyzed"
STATUS_NO_POOL = "no_pool"
STATUS_UNKNOWN = "unknown"


@dataclass(frozen=True)
class HoneypotContext:
    code_text: str  # lower-cased hex + latin-1 view of the bytecode
    owner_pct: float
    verified: bool
    liquidity_usd: float

    @classmethod
    def build(
        cls, bytecode: bytes, owner_pct: float, verified: bool, liquidity_usd: float
    ) -> "HoneypotContext":
        text = bytecode.hex() + "\n" + bytecode.decode("latin-1")
        return cls(
            code_text=text.lower(),
            owner_pct=owner_pct,
            verified=verified,
            liquidity_usd=liquidity_usd,
        )


@dataclass(frozen=True)
class HoneypotFinding:
    is_honeypot: bool
    indicators: tuple[str, ...] = ()
    sell_tax_pct: float | None = None  # best-effort estimate
    buy_tax_pct: float | None = None
    reason: str | None = None
    status: str = STATUS_ANALYZED


class HoneypotRule(Protocol):
    def evaluate(self, ctx: HoneypotContext) -> list[str]: ...


@dataclass(frozen=True)
class BytecodePatternRule:
    """One indicator per marker found in the bytecode."""

    label: str
    patterns: tuple[str, ...]

    def evaluate(self, ctx: HoneypotContext) -> list[str]:
        return [f"{self.label}: {p}" for p in self.patterns if p in ctx.code_text]


class OwnerConcentrationRule:
    def evaluate(self, ctx: HoneypotContext) -> list[str]:
        if ctx.owner_pct > settings.honeypot_owner_indicator_pct:
            return [f"Owner holds {ctx.owner_pct:.2f}% of supply"]
        return []


class UnverifiedSourceRule:
    def evaluate(self, ctx: HoneypotContext) -> list[str]:
        if not ctx.verified:
            return ["Contract not verified - cannot review code"]
        return []


class LowLiquidityRule:
    def evaluate(self, ctx: HoneypotContext) -> list[str]:
        if 0 < ctx.liquidity_usd < settings.honeypot_low_liquidity_usd:
            return [f"Extremely low liquidity: ${ctx.liquidity_usd:.2f}"]
        return []


class OwnerWithMinimalLiquidityRule:
    def evaluate(self, ctx: HoneypotContext) -> list[str]:
        if (
            ctx.owner_pct > settings.honeypot_owner_pct_with_indicator
            and 0 < ctx.liquidity_usd < settings.honeypot_shortcircuit_max_liquidity_usd
        ):
            return ["Owner holds >95% with minimal liquidity - classic honeypot"]
        return []


BLACKLIST_RULE = BytecodePatternRule(
    "Blacklist function detected",
    ("blacklist", "botblacklist", "isblacklisted", "addbot", "_isblacklisted",
     "isbot", "antibot", "antibotmode", "killbot", "botkiller"),
)
TRADING_CONTROL_RULE = BytecodePatternRule(
    "Trading control detected",
    ("tradingenabled", "tradingactive", "enabletrading", "tradingopen",
     "starttrading", "canswap", "swapandliquifyenabled", "inswapandliquify"),
)
TX_LIMIT_RULE = BytecodePatternRule(
    "Transaction limit detected",
    ("maxtxamount", "maxsellamount", "maxsell", "_maxtxamount",
     "maxtransactionamount", "maxwalletsize", "maxwallet", "_maxwalletsize"),
)
COOLDOWN_RULE = BytecodePatternRule(
    "Cooldown mechanism detected",
    ("cooldown", "buycooldown", "sellcooldown", "timebetweensells",
     "lasttransaction", "transactiondelay"),
)
PAUSE_RULE = BytecodePatternRule(
    "Pause mechanism detected",
    ("pause", "unpause", "paused", "whennotpaused", "whenpaused", "_pause", "_unpause"),
)

DEFAULT_RULES: tuple[HoneypotRule, ...] = (
    BLACKLIST_RULE,
    TRADING_CONTROL_RULE,
    TX_LIMIT_RULE,
    COOLDOWN_RULE,
    OwnerConcentrationRule(),
    UnverifiedSourceRule(),
    LowLiquidityRule(),
    OwnerWithMinimalLiquidityRule(),
    PAUSE_RULE,
)


def classify(indicators: list[str], owner_pct: float, verified: bool) -> bool:
    n = len(indicators)
    return (
        n >= settings.honeypot_min_indicators
        or (n >= 1 and owner_pct > settings.honeypot_owner_pct_with_indicator)
        or (owner_pct > settings.honeypot_owner_pct_unverified and not verified)
    )


def detect_honeypot(
    bytecode: bytes,
    *,
    owner_pct: float,
    verified: bool,
    liquidity_usd: float,
    has_pool: bool = True,
    rules: tuple[HoneypotRule, ...] = DEFAULT_RULES,
) -> HoneypotFinding:
    """Run the heuristic rule set against one token."""
    if not has_pool:
        return HoneypotFinding(
            is_honeypot=False, reason="No liquidity pool found", status=STATUS_NO_POOL
        )

    # Owner in control, nothing to audit, nothing to exit into.
    if (
        owner_pct >= settings.honeypot_shortcircuit_owner_pct
        and not verified
        and 0 < liquidity_usd < settings.honeypot_shortcircuit_max_liquidity_usd
    ):
        reason = (
            f"Owner controls {owner_pct:.2f}% of supply with unverified contract "
            f"and minimal liquidity"
        )
        logger.info(f"[HONEYPOT] short-circuit: {reason}")
        return HoneypotFinding(
            is_honeypot=True, sell_tax_pct=100.0, buy_tax_pct=0.0, reason=reason
        )

    ctx = HoneypotContext.build(bytecode, owner_pct, verified, liquidity_usd)
    indicators: list[str] = []
    for rule in rules:
        indicators.extend(rule.evaluate(ctx))

    is_honeypot = classify(indicators, owner_pct, verified)
    if is_honeypot:
        logger.info(f"[HONEYPOT] flagged with {len(indicators)} indicator(s)")

    return HoneypotFinding(
        is_honeypot=is_honeypot,
        indicators=tuple(indicators),
        sell_tax_pct=0.0,
        buy_tax_pct=0.0,
        reason="; ".join(indicators) if is_honeypot else None,
    )


def unknown_honeypot_finding() -> HoneypotFinding:
    """Neutral result when the detector could not run."""
    return HoneypotFinding(
        is_honeypot=False, reason="Could not analyze contract", status=STATUS_UNKNOWN
    )
