"""Liquidity pool discovery across AMM versions.

Factory lookup covers every (quote asset x factory x fee tier) combination.
Holder reconciliation then catches pools the factories don't know about
(third-party DEXes, migrated pools) by probing top holders for pool-shaped
read methods. Reconciliation must finish before holder analysis and
scoring, since both consume the resulting LP address set.
"""

import asyncio
from dataclasses import dataclass, field

from loguru import logger

from config.settings import settings
from src.models.token import HolderBalance, PoolReserves
from src.parsers.gateways import ChainDataGateway
from src.parsers.rate_limiter import bounded_gather

# All BSC quote assets (WBNB, BUSD, USDT) are 18-decimal tokens.
QUOTE_DECIMALS = 18


@dataclass(frozen=True)
class LiquidityPool:
    address: str
    dex: str
    liquidity_usd: float
    liquidity_base: float  # in wrapped-native units
    is_v3: bool
    quote_address: str
    spot_price_usd: float | None = None  # V2 only
    lp_total_supply: int = 0  # share-token supply, V2 only


@dataclass(frozen=True)
class PoolDiscovery:
    """Deduplicated pools for a token, highest liquidity first."""

    pools: tuple[LiquidityPool, ...] = ()
    lp_addresses: frozenset[str] = field(default_factory=frozenset)

    @property
    def has_liquidity(self) -> bool:
        return len(self.pools) > 0

    @property
    def main_pool(self) -> LiquidityPool | None:
        return self.pools[0] if self.pools else None

    @property
    def total_liquidity_usd(self) -> float:
        return sum(p.liquidity_usd for p in self.pools)

    @property
    def total_liquidity_base(self) -> float:
        return sum(p.liquidity_base for p in self.pools)

    def spot_price_usd(self) -> float | None:
        """Spot price from the deepest non-concentrated pool."""
        for pool in self.pools:
            if not pool.is_v3 and pool.spot_price_usd:
                return pool.spot_price_usd
        return None

    def with_pools(self, extra: list[LiquidityPool]) -> "PoolDiscovery":
        merged = {p.address: p for p in self.pools}
        for p in extra:
            merged.setdefault(p.address, p)
        ordered = sorted(merged.values(), key=lambda p: (-p.liquidity_usd, p.address))
        return PoolDiscovery(
            pools=tuple(ordered),
            lp_addresses=frozenset(merged),
        )


def value_pool(
    reserves: PoolReserves,
    token: str,
    token_decimals: int,
    quote_usd_prices: dict[str, float | None],
) -> LiquidityPool:
    """Turn raw reserves into USD / base-asset liquidity and a spot price."""
    token = token.lower()
    if reserves.token0 == token:
        token_reserve, quote_reserve, quote = reserves.reserve0, reserves.reserve1, reserves.token1
    else:
        token_reserve, quote_reserve, quote = reserves.reserve1, reserves.reserve0, reserves.token0

    quote_amount = quote_reserve / 10**QUOTE_DECIMALS
    quote_usd = quote_usd_prices.get(quote)
    native_usd = quote_usd_prices.get(settings.wrapped_native_address)

    liquidity_usd = quote_amount * 2 * quote_usd if quote_usd else 0.0
    if quote == settings.wrapped_native_address:
        liquidity_base = quote_amount * 2
    elif native_usd:
        liquidity_base = liquidity_usd / native_usd
    else:
        liquidity_base = 0.0

    spot_price_usd = None
    if not reserves.is_v3 and token_reserve > 0 and quote_usd:
        token_amount = token_reserve / 10**token_decimals
        spot_price_usd = quote_amount / token_amount * quote_usd

    return LiquidityPool(
        address=reserves.address,
        dex="PancakeSwap V3" if reserves.is_v3 else "PancakeSwap V2",
        liquidity_usd=liquidity_usd,
        liquidity_base=liquidity_base,
        is_v3=reserves.is_v3,
        quote_address=quote,
        spot_price_usd=spot_price_usd,
        lp_total_supply=reserves.lp_total_supply,
    )


async def locate_pools(
    chain: ChainDataGateway,
    token: str,
    *,
    token_decimals: int,
    quote_usd_prices: dict[str, float | None],
    semaphore: asyncio.Semaphore | None = None,
    timeout: float | None = None,
) -> PoolDiscovery:
    """Query V2 and V3 factories for every well-known quote asset."""
    semaphore = semaphore or asyncio.Semaphore(settings.analysis_max_concurrency)
    token = token.lower()
    quotes = [settings.wrapped_native_address, *settings.stablecoin_addresses]

    lookups = []
    for quote in quotes:
        lookups.append(chain.find_v2_pair(settings.v2_factory_address, token, quote))
        for fee in settings.v3_fee_tiers:
            lookups.append(
                chain.find_v3_pool(settings.v3_factory_address, token, quote, fee)
            )

    results = await bounded_gather(semaphore, lookups, timeout=timeout)
    candidates: list[str] = []
    for r in results:
        if isinstance(r, str) and r and r != settings.zero_address and r not in candidates:
            candidates.append(r)

    pools = await _validate_pools(
        chain, token, candidates,
        token_decimals=token_decimals,
        quote_usd_prices=quote_usd_prices,
        semaphore=semaphore,
        timeout=timeout,
    )
    discovery = PoolDiscovery().with_pools(pools)
    logger.debug(
        f"[POOLS] {token[:10]}: {len(candidates)} candidates, "
        f"{len(discovery.pools)} valid, ${discovery.total_liquidity_usd:,.0f}"
    )
    return discovery


async def reconcile_holder_pools(
    chain: ChainDataGateway,
    token: str,
    holders: list[HolderBalance],
    discovery: PoolDiscovery,
    *,
    token_decimals: int,
    quote_usd_prices: dict[str, float | None],
    semaphore: asyncio.Semaphore | None = None,
    timeout: float | None = None,
) -> PoolDiscovery:
    """Probe top holders for pools that factory lookup missed."""
    semaphore = semaphore or asyncio.Semaphore(settings.analysis_max_concurrency)
    unknown = [
        h.address
        for h in holders[: settings.pool_reconcile_holders]
        if h.address not in discovery.lp_addresses
    ]
    if not unknown:
        return discovery

    found = await _validate_pools(
        chain, token, unknown,
        token_decimals=token_decimals,
        quote_usd_prices=quote_usd_prices,
        semaphore=semaphore,
        timeout=timeout,
    )
    if found:
        logger.info(
            f"[POOLS] {token[:10]}: {len(found)} extra pool(s) found among holders"
        )
        return discovery.with_pools(found)
    return discovery


async def _validate_pools(
    chain: ChainDataGateway,
    token: str,
    addresses: list[str],
    *,
    token_decimals: int,
    quote_usd_prices: dict[str, float | None],
    semaphore: asyncio.Semaphore,
    timeout: float | None = None,
) -> list[LiquidityPool]:
    results = await bounded_gather(
        semaphore, [chain.get_pool_reserves(a) for a in addresses], timeout=timeout
    )
    pools = []
    for addr, r in zip(addresses, results):
        if isinstance(r, Exception):
            logger.debug(f"[POOLS] reserves failed for {addr[:10]}: {r}")
            continue
        if r is None or not r.has_token(token):
            continue
        pools.append(value_pool(r, token, token_decimals, quote_usd_prices))
    return pools
