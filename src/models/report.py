"""Serializable report envelopes.

Plain data for callers (CLI, cache, bot/API layers); no formatting or
transport concerns. JSON round-trips through model_dump_json /
model_validate_json.
"""

from datetime import datetime

from pydantic import BaseModel

from src.models.token import TokenMetadata
from src.parsers.holder_analyzer import HolderAnalysis
from src.parsers.honeypot_detector import HoneypotFinding
from src.parsers.lp_security import LPSecurityStatus
from src.parsers.pool_locator import LiquidityPool
from src.parsers.position_ledger import TokenPnL
from src.parsers.price_validator import PriceDeviationResult
from src.parsers.safety_score import SafetyScoreBreakdown
from src.parsers.trading_activity import TradingActivity


class RiskReport(BaseModel):
    chain: str
    generated_at: datetime
    metadata: TokenMetadata
    liquidity_pools: tuple[LiquidityPool, ...]
    total_liquidity_usd: float
    total_liquidity_base: float
    holder_analysis: HolderAnalysis
    lp_security: LPSecurityStatus
    honeypot: HoneypotFinding
    price_deviation: PriceDeviationResult
    trading_activity: TradingActivity
    safety_score_breakdown: SafetyScoreBreakdown
    total_score: int
    risk_tier: str
    risk_factors: tuple[str, ...]
    recommendations: tuple[str, ...]
    price_deviation_warning: str | None = None

    @property
    def main_pool(self) -> LiquidityPool | None:
        return self.liquidity_pools[0] if self.liquidity_pools else None


class PNLReport(BaseModel):
    chain: str
    wallet_address: str
    generated_at: datetime
    lookback_days: int
    per_token: dict[str, TokenPnL]
    total_realized: float
    total_unrealized: float
    total_pnl: float

    @property
    def has_unpriced_positions(self) -> bool:
        return any(p.price_unavailable for p in self.per_token.values())
