"""LP burn / lock verification for the main (deepest) pool.

Burned: burn + zero address hold > lp_burned_threshold_pct of the pair's
share-token supply. Locked: one allow-listed locker contract holds
> lp_locked_threshold_pct. Concentrated-liquidity positions are NFTs, so
V3 pools are reported as "unknown", never as secured.
"""

import asyncio
from dataclasses import dataclass

from loguru import logger

from config.settings import settings
from src.parsers.gateways import ChainDataGateway
from src.parsers.pool_locator import LiquidityPool
from src.parsers.rate_limiter import bounded_gather

BURNED = "burned"
LOCKED = "locked"
UNSECURED = "unsecured"
UNKNOWN = "unknown"
NO_POOL = "no_pool"


@dataclass(frozen=True)
class LPSecurityStatus:
    status: str
    burned_pct: float = 0.0
    locked_pct: float = 0.0
    lock_platform: str | None = None
    lock_duration_days: int | None = None  # not exposed by locker balances
    pool_address: str | None = None

    @property
    def is_burned(self) -> bool:
        return self.status == BURNED

    @property
    def is_locked(self) -> bool:
        return self.status == LOCKED

    @property
    def is_secured(self) -> bool:
        return self.status in (BURNED, LOCKED)


async def verify_lp_security(
    chain: ChainDataGateway,
    pool: LiquidityPool | None,
    *,
    semaphore: asyncio.Semaphore | None = None,
    timeout: float | None = None,
) -> LPSecurityStatus:
    if pool is None:
        return LPSecurityStatus(status=NO_POOL)
    if pool.is_v3 or pool.lp_total_supply <= 0:
        return LPSecurityStatus(status=UNKNOWN, pool_address=pool.address)

    semaphore = semaphore or asyncio.Semaphore(settings.analysis_max_concurrency)
    supply = pool.lp_total_supply

    burn_holders = [settings.dead_address, settings.zero_address]
    burn_balances = await bounded_gather(
        semaphore,
        [chain.get_balance(pool.address, h) for h in burn_holders],
        timeout=timeout,
    )
    burned_raw = sum(b for b in burn_balances if isinstance(b, int))
    burned_pct = burned_raw * 100 / supply

    if burned_pct > settings.lp_burned_threshold_pct:
        logger.debug(f"[LP] {pool.address[:10]} burned {burned_pct:.2f}%")
        return LPSecurityStatus(status=BURNED, burned_pct=burned_pct, pool_address=pool.address)

    lockers = list(settings.known_lockers.items())
    locker_balances = await bounded_gather(
        semaphore,
        [chain.get_balance(pool.address, addr) for addr, _ in lockers],
        timeout=timeout,
    )

    best_pct, best_platform = 0.0, None
    for (_, platform), bal in zip(lockers, locker_balances):
        if not isinstance(bal, int) or bal <= 0:
            continue
        pct = bal * 100 / supply
        if pct > best_pct:
            best_pct, best_platform = pct, platform

    if best_pct > settings.lp_locked_threshold_pct:
        logger.debug(f"[LP] {pool.address[:10]} locked {best_pct:.2f}% on {best_platform}")
        return LPSecurityStatus(
            status=LOCKED,
            burned_pct=burned_pct,
            locked_pct=best_pct,
            lock_platform=best_platform,
            pool_address=pool.address,
        )

    return LPSecurityStatus(
        status=UNSECURED,
        burned_pct=burned_pct,
        locked_pct=best_pct,
        pool_address=pool.address,
    )
