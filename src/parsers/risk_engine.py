"""Token risk & position analysis engine.

analyze_token stages:
1. metadata (fatal if missing)
2. parallel fetch: pools, holders, holder count, bytecode, prices,
   analytics, owner balance (24h token transfers when analytics is missing)
3. LP reconciliation against top holders (must precede holder analysis)
4. parallel: holder analysis + LP security; honeypot, price deviation
   and trading activity are pure functions of stage-2 data
5. score aggregation -> RiskReport

Every stage-2/4 failure degrades to a neutral result; only metadata
failure or the overall timeout aborts. Upstream calls share one
semaphore so the total in-flight requests stay bounded, and each call
has its own timeout so one slow upstream cannot stall the report.
"""

import asyncio
from collections.abc import Awaitable
from datetime import datetime, timedelta, timezone
from typing import Any, TypeVar

from loguru import logger

from config.settings import settings
from src.db.redis import pnl_report_key, risk_report_key
from src.models.report import PNLReport, RiskReport
from src.models.token import HolderBalance, OraclePrice, TokenAnalytics, TokenMetadata
from src.parsers.exceptions import AnalysisTimeoutError, TokenNotFoundError
from src.parsers.gateways import ChainDataGateway, PriceOracleGateway, ReportCache
from src.parsers.holder_analyzer import analyze_holders, empty_holder_analysis
from src.parsers.honeypot_detector import (
    DEFAULT_RULES,
    HoneypotFinding,
    HoneypotRule,
    detect_honeypot,
    unknown_honeypot_finding,
)
from src.parsers.lp_security import UNKNOWN, LPSecurityStatus, verify_lp_security
from src.parsers.pool_locator import PoolDiscovery, locate_pools, reconcile_holder_pools
from src.parsers.position_ledger import TokenPnL, compute_token_pnl, trades_from_transfers
from src.parsers.price_validator import check_price_deviation
from src.parsers.safety_score import score_token
from src.parsers.trading_activity import TradingActivity, analyze_trading_activity
from src.utils.address import is_valid_token_address

T = TypeVar("T")


class RiskEngine:
    def __init__(
        self,
        chain: ChainDataGateway,
        oracle: PriceOracleGateway,
        *,
        cache: ReportCache | None = None,
        chain_id: str | None = None,
        max_concurrency: int | None = None,
        timeout_sec: float | None = None,
        subanalysis_timeout_sec: float | None = None,
        honeypot_rules: tuple[HoneypotRule, ...] = DEFAULT_RULES,
    ) -> None:
        self._chain = chain
        self._oracle = oracle
        self._cache = cache
        self._chain_id = chain_id or settings.chain
        self._semaphore = asyncio.Semaphore(max_concurrency or settings.analysis_max_concurrency)
        self._timeout = timeout_sec or settings.analysis_timeout_sec
        self._sub_timeout = subanalysis_timeout_sec or settings.subanalysis_timeout_sec
        self._honeypot_rules = honeypot_rules

    async def _limited(self, coro: Awaitable[T]) -> T:
        async with self._semaphore:
            return await asyncio.wait_for(coro, self._sub_timeout)

    # ------------------------------------------------------------------
    # Risk report
    # ------------------------------------------------------------------

    async def analyze_token(
        self, token: str, *, now: datetime | None = None, use_cache: bool = True
    ) -> RiskReport:
        """Full risk report for one token.

        Raises:
            TokenNotFoundError: invalid address or metadata unavailable.
            AnalysisTimeoutError: analysis exceeded the configured budget;
                no partial report is returned.
        """
        if not is_valid_token_address(token):
            raise TokenNotFoundError(token)
        token = token.lower()
        key = risk_report_key(self._chain_id, token)

        if self._cache is not None and use_cache:
            cached, found = await self._cache.get(key)
            if found:
                return RiskReport.model_validate_json(cached)

        now = now or datetime.now(timezone.utc)
        try:
            report = await asyncio.wait_for(self._analyze(token, now), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            logger.warning(f"[ENGINE] {token[:10]} timed out after {self._timeout}s")
            raise AnalysisTimeoutError(f"analysis of {token} exceeded {self._timeout}s") from e

        if self._cache is not None:
            await self._cache.put(key, report.model_dump_json(), settings.report_cache_ttl_sec)
        return report

    async def _analyze(self, token: str, now: datetime) -> RiskReport:
        metadata = await self._fetch_metadata(token)

        # Stage 2: independent fetches
        (
            discovered,
            token_price,
            balances,
            holder_count,
            bytecode,
            analytics,
            owner_balance,
        ) = await asyncio.gather(
            self._discover_pools(metadata),
            self._limited(self._oracle.get_price(token)),
            self._limited(self._chain.get_top_holders(token, settings.pool_reconcile_holders)),
            self._limited(self._chain.get_holder_count(token)),
            self._limited(self._chain.get_contract_bytecode(token)),
            self._limited(self._chain.get_token_analytics(token)),
            self._owner_balance(metadata),
            return_exceptions=True,
        )
        pools, quote_prices = _ok(
            discovered, (PoolDiscovery(), self._quote_prices(None)), "pool discovery", token
        )
        token_price = _ok(token_price, None, "oracle price", token)
        balances = _ok(balances, [], "holders", token) or []
        holder_count = _ok(holder_count, None, "holder count", token)
        bytecode = _ok(bytecode, None, "bytecode", token)
        analytics = _ok(analytics, None, "analytics", token)
        owner_balance = _ok(owner_balance, 0, "owner balance", token)

        # Stage 3: LP set must be final before holders and scoring
        pools = await self._reconcile(token, metadata, balances, pools, quote_prices)

        oracle_usd = token_price.usd if token_price else None
        price_usd = oracle_usd or pools.spot_price_usd()

        # Stage 4
        holders, lp = await asyncio.gather(
            analyze_holders(
                self._chain, metadata, balances, pools.lp_addresses,
                now=now,
                price_usd=price_usd,
                holder_count=holder_count,
                semaphore=self._semaphore,
                timeout=self._sub_timeout,
            ),
            verify_lp_security(
                self._chain, pools.main_pool,
                semaphore=self._semaphore,
                timeout=self._sub_timeout,
            ),
            return_exceptions=True,
        )
        if isinstance(holders, Exception):
            logger.warning(f"[ENGINE] {token[:10]} holder analysis failed: {holders}")
            holders = empty_holder_analysis(holder_count or 0)
        if isinstance(lp, Exception):
            logger.warning(f"[ENGINE] {token[:10]} LP security failed: {lp}")
            main = pools.main_pool
            lp = LPSecurityStatus(status=UNKNOWN, pool_address=main.address if main else None)

        honeypot = self._honeypot(metadata, bytecode, owner_balance, pools)
        deviation = check_price_deviation(oracle_usd, pools.spot_price_usd())
        trading = await self._trading(token, analytics, pools, now)

        # Stage 5
        assessment = score_token(
            metadata, holders, pools, lp, honeypot, deviation, trading, now=now
        )
        logger.info(
            f"[ENGINE] {metadata.symbol} ({token[:10]}): "
            f"{assessment.total_score}/100 {assessment.risk_tier}, "
            f"{len(pools.pools)} pool(s), honeypot={honeypot.is_honeypot}"
        )

        return RiskReport(
            chain=self._chain_id,
            generated_at=now,
            metadata=metadata,
            liquidity_pools=pools.pools,
            total_liquidity_usd=pools.total_liquidity_usd,
            total_liquidity_base=pools.total_liquidity_base,
            holder_analysis=holders,
            lp_security=lp,
            honeypot=honeypot,
            price_deviation=deviation,
            trading_activity=trading,
            safety_score_breakdown=assessment.breakdown,
            total_score=assessment.total_score,
            risk_tier=assessment.risk_tier,
            risk_factors=assessment.risk_factors,
            recommendations=assessment.recommendations,
            price_deviation_warning=assessment.price_deviation_warning,
        )

    async def _fetch_metadata(self, token: str) -> TokenMetadata:
        try:
            metadata = await self._limited(self._chain.get_token_metadata(token))
        except Exception as e:
            logger.warning(f"[ENGINE] {token[:10]} metadata fetch failed: {e}")
            raise TokenNotFoundError(token) from e
        if metadata is None:
            raise TokenNotFoundError(token)
        return metadata

    async def _discover_pools(
        self, metadata: TokenMetadata
    ) -> tuple[PoolDiscovery, dict[str, float | None]]:
        try:
            native = await self._limited(self._oracle.get_price(settings.wrapped_native_address))
        except Exception as e:
            logger.warning(f"[ENGINE] native price unavailable: {e}")
            native = None
        quote_prices = self._quote_prices(native)
        pools = await locate_pools(
            self._chain, metadata.address,
            token_decimals=metadata.decimals,
            quote_usd_prices=quote_prices,
            semaphore=self._semaphore,
            timeout=self._sub_timeout,
        )
        return pools, quote_prices

    async def _owner_balance(self, metadata: TokenMetadata) -> int:
        if not metadata.has_active_owner:
            return 0
        return await self._limited(
            self._chain.get_balance(metadata.address, metadata.owner_address)
        )

    def _quote_prices(self, native_price: OraclePrice | None) -> dict[str, float | None]:
        prices: dict[str, float | None] = {a: 1.0 for a in settings.stablecoin_addresses}
        prices[settings.wrapped_native_address] = native_price.usd if native_price else None
        return prices

    async def _reconcile(
        self,
        token: str,
        metadata: TokenMetadata,
        balances: list[HolderBalance],
        pools: PoolDiscovery,
        quote_prices: dict[str, float | None],
    ) -> PoolDiscovery:
        try:
            return await reconcile_holder_pools(
                self._chain, token, balances, pools,
                token_decimals=metadata.decimals,
                quote_usd_prices=quote_prices,
                semaphore=self._semaphore,
                timeout=self._sub_timeout,
            )
        except Exception as e:
            logger.warning(f"[ENGINE] {token[:10]} LP reconciliation failed: {e}")
            return pools

    async def _trading(
        self,
        token: str,
        analytics: TokenAnalytics | None,
        pools: PoolDiscovery,
        now: datetime,
    ) -> TradingActivity:
        if analytics is not None:
            return analyze_trading_activity(
                analytics, pool_liquidity_usd=pools.total_liquidity_usd
            )
        # no indexer analytics: fall back to raw 24h transfer counts
        try:
            transfers = await self._limited(
                self._chain.get_token_transfers(token, now - timedelta(days=1))
            )
        except Exception as e:
            logger.warning(f"[ENGINE] {token[:10]} 24h transfers unavailable: {e}")
            transfers = []
        traders = {t.from_address for t in transfers} | {t.to_address for t in transfers}
        return analyze_trading_activity(
            None,
            pool_liquidity_usd=pools.total_liquidity_usd,
            tx_count=len(transfers),
            unique_traders=len(traders),
        )

    def _honeypot(
        self,
        metadata: TokenMetadata,
        bytecode: bytes | None,
        owner_balance: int,
        pools: PoolDiscovery,
    ) -> HoneypotFinding:
        if bytecode is None:
            return unknown_honeypot_finding()
        owner_pct = (
            owner_balance * 100 / metadata.total_supply if metadata.total_supply > 0 else 0.0
        )
        try:
            return detect_honeypot(
                bytecode,
                owner_pct=owner_pct,
                verified=metadata.verified,
                liquidity_usd=pools.total_liquidity_usd,
                has_pool=pools.has_liquidity,
                rules=self._honeypot_rules,
            )
        except Exception as e:
            logger.warning(f"[ENGINE] {metadata.address[:10]} honeypot rules failed: {e}")
            return unknown_honeypot_finding()

    # ------------------------------------------------------------------
    # PNL report
    # ------------------------------------------------------------------

    async def wallet_pnl(
        self,
        wallet: str,
        tokens: list[str],
        *,
        now: datetime | None = None,
        use_cache: bool = True,
    ) -> PNLReport:
        """FIFO PNL of a wallet's trades in the given tokens over the lookback window."""
        wallet = wallet.lower()
        tokens = list(dict.fromkeys(t.lower() for t in tokens if is_valid_token_address(t)))
        key = pnl_report_key(self._chain_id, wallet, tokens)

        if self._cache is not None and use_cache:
            cached, found = await self._cache.get(key)
            if found:
                return PNLReport.model_validate_json(cached)

        now = now or datetime.now(timezone.utc)
        try:
            report = await asyncio.wait_for(self._pnl(wallet, tokens, now), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            logger.warning(f"[ENGINE] PNL for {wallet[:10]} timed out after {self._timeout}s")
            raise AnalysisTimeoutError(f"PNL for {wallet} exceeded {self._timeout}s") from e

        if self._cache is not None:
            await self._cache.put(key, report.model_dump_json(), settings.report_cache_ttl_sec)
        return report

    async def _pnl(self, wallet: str, tokens: list[str], now: datetime) -> PNLReport:
        since = now - timedelta(days=settings.pnl_lookback_days)

        histories, metas, prices = await asyncio.gather(
            self._limited(self._chain.get_trade_history(wallet, tokens, since)),
            asyncio.gather(
                *(self._limited(self._chain.get_token_metadata(t)) for t in tokens),
                return_exceptions=True,
            ),
            self._limited(
                self._oracle.get_prices([settings.wrapped_native_address, *tokens])
            ),
            return_exceptions=True,
        )
        if isinstance(prices, Exception):
            logger.warning(f"[PNL] price batch failed: {prices}")
            prices = {}
        native_usd = prices.get(settings.wrapped_native_address)
        if isinstance(histories, Exception):
            logger.warning(f"[PNL] history for {wallet[:10]} failed: {histories}")
            histories = {}

        per_token: dict[str, TokenPnL] = {}
        for token, meta in zip(tokens, metas):
            symbol = meta.symbol if isinstance(meta, TokenMetadata) else ""

            trades = trades_from_transfers(wallet, histories.get(token, []))
            if not trades:
                continue

            usd = prices.get(token)
            base_price = usd / native_usd if usd and native_usd else None
            per_token[token] = compute_token_pnl(token, trades, base_price, symbol=symbol)

        realized = sum(p.realized_pnl for p in per_token.values())
        unrealized = sum(p.unrealized_pnl for p in per_token.values())
        logger.info(
            f"[PNL] {wallet[:10]}: {len(per_token)} token(s), "
            f"realized {realized:.6f}, unrealized {unrealized:.6f}"
        )

        return PNLReport(
            chain=self._chain_id,
            wallet_address=wallet,
            generated_at=now,
            lookback_days=settings.pnl_lookback_days,
            per_token=per_token,
            total_realized=realized,
            total_unrealized=unrealized,
            total_pnl=sum(p.total_pnl for p in per_token.values()),
        )


def _ok(result: Any, default: Any, label: str, token: str) -> Any:
    """Gather result or the neutral default if the call raised."""
    if isinstance(result, Exception):
        logger.warning(f"[ENGINE] {token[:10]} {label} unavailable: {result}")
        return default
    return result
