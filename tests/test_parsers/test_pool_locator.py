"""Tests for pool discovery, valuation and holder reconciliation."""

import pytest

from config.settings import settings
from src.models.token import HolderBalance, PoolReserves
from src.parsers.pool_locator import (
    LiquidityPool,
    PoolDiscovery,
    locate_pools,
    reconcile_holder_pools,
    value_pool,
)
from tests.fakes import BUSD, E18, PAIR, TOKEN, V3_POOL, WBNB, FakeChain, v2_reserves

PRICES = {WBNB: 500.0, BUSD: 1.0}


def _pool(address: str, usd: float, *, is_v3: bool = False, spot: float | None = None) -> LiquidityPool:
    return LiquidityPool(
        address=address,
        dex="PancakeSwap V3" if is_v3 else "PancakeSwap V2",
        liquidity_usd=usd,
        liquidity_base=usd / 500,
        is_v3=is_v3,
        quote_address=WBNB,
        spot_price_usd=spot,
    )


class TestValuePool:
    def test_wbnb_pair(self) -> None:
        pool = value_pool(v2_reserves(token_units=1_000_000, quote_units=100), TOKEN, 18, PRICES)
        assert pool.liquidity_usd == pytest.approx(100_000.0)
        assert pool.liquidity_base == pytest.approx(200.0)
        assert pool.spot_price_usd == pytest.approx(0.05)
        assert pool.dex == "PancakeSwap V2"
        assert pool.quote_address == WBNB

    def test_stable_pair_base_via_native_price(self) -> None:
        reserves = v2_reserves(quote=BUSD, token_units=10_000, quote_units=5_000)
        pool = value_pool(reserves, TOKEN, 18, PRICES)
        assert pool.liquidity_usd == pytest.approx(10_000.0)
        assert pool.liquidity_base == pytest.approx(20.0)
        assert pool.spot_price_usd == pytest.approx(0.5)

    def test_token_as_token1(self) -> None:
        reserves = PoolReserves(
            address=PAIR, token0=WBNB, token1=TOKEN,
            reserve0=10 * E18, reserve1=1000 * E18, lp_total_supply=E18,
        )
        pool = value_pool(reserves, TOKEN, 18, PRICES)
        assert pool.liquidity_usd == pytest.approx(10_000.0)
        assert pool.spot_price_usd == pytest.approx(5.0)

    def test_v3_has_no_spot_price(self) -> None:
        reserves = PoolReserves(
            address=V3_POOL, token0=TOKEN, token1=WBNB,
            reserve0=1000 * E18, reserve1=E18, is_v3=True,
        )
        pool = value_pool(reserves, TOKEN, 18, PRICES)
        assert pool.is_v3
        assert pool.dex == "PancakeSwap V3"
        assert pool.spot_price_usd is None
        assert pool.liquidity_usd == pytest.approx(1000.0)

    def test_missing_quote_price(self) -> None:
        pool = value_pool(v2_reserves(), TOKEN, 18, {})
        assert pool.liquidity_usd == 0.0
        assert pool.liquidity_base == pytest.approx(200.0)
        assert pool.spot_price_usd is None


class TestPoolDiscovery:
    def test_sorted_by_liquidity(self) -> None:
        a = "0x" + "a1" * 20
        b = "0x" + "b1" * 20
        d = PoolDiscovery().with_pools([_pool(a, 10.0), _pool(b, 50.0)])
        assert [p.address for p in d.pools] == [b, a]
        assert d.main_pool.address == b
        assert d.total_liquidity_usd == pytest.approx(60.0)
        assert d.lp_addresses == frozenset({a, b})

    def test_dedupes_keeping_first(self) -> None:
        d = PoolDiscovery().with_pools([_pool(PAIR, 10.0)])
        d = d.with_pools([_pool(PAIR, 999.0)])
        assert len(d.pools) == 1
        assert d.pools[0].liquidity_usd == 10.0

    def test_spot_price_skips_v3(self) -> None:
        d = PoolDiscovery().with_pools([
            _pool(V3_POOL, 100.0, is_v3=True),
            _pool(PAIR, 50.0, spot=0.2),
        ])
        assert d.spot_price_usd() == 0.2

    def test_empty(self) -> None:
        d = PoolDiscovery()
        assert not d.has_liquidity
        assert d.main_pool is None
        assert d.total_liquidity_usd == 0
        assert d.spot_price_usd() is None


class TestLocatePools:
    @pytest.mark.asyncio
    async def test_finds_v2_and_v3(self) -> None:
        fee = settings.v3_fee_tiers[1]
        chain = FakeChain(
            v2_pairs={(TOKEN, WBNB): PAIR},
            v3_pools={(TOKEN, WBNB, fee): V3_POOL},
            reserves={
                PAIR: v2_reserves(quote_units=100),
                V3_POOL: PoolReserves(
                    address=V3_POOL, token0=TOKEN, token1=WBNB,
                    reserve0=E18, reserve1=5 * E18, is_v3=True,
                ),
            },
        )
        d = await locate_pools(chain, TOKEN, token_decimals=18, quote_usd_prices=PRICES)
        assert [p.address for p in d.pools] == [PAIR, V3_POOL]
        assert d.total_liquidity_usd == pytest.approx(100_000.0 + 5_000.0)
        quotes = 1 + len(settings.stablecoin_addresses)
        assert chain.calls.count("find_v2_pair") == quotes
        assert chain.calls.count("find_v3_pool") == quotes * len(settings.v3_fee_tiers)

    @pytest.mark.asyncio
    async def test_no_pools(self) -> None:
        chain = FakeChain()
        d = await locate_pools(chain, TOKEN, token_decimals=18, quote_usd_prices=PRICES)
        assert not d.has_liquidity
        assert d.lp_addresses == frozenset()

    @pytest.mark.asyncio
    async def test_zero_address_and_failed_lookups_ignored(self) -> None:
        chain = FakeChain(
            v2_pairs={(TOKEN, WBNB): settings.zero_address},
            fail={"find_v3_pool"},
        )
        d = await locate_pools(chain, TOKEN, token_decimals=18, quote_usd_prices=PRICES)
        assert not d.has_liquidity
        assert "get_pool_reserves" not in chain.calls

    @pytest.mark.asyncio
    async def test_pool_without_token_rejected(self) -> None:
        other = "0x" + "9" * 40
        chain = FakeChain(
            v2_pairs={(TOKEN, WBNB): PAIR},
            reserves={PAIR: PoolReserves(
                address=PAIR, token0=other, token1=WBNB, reserve0=1, reserve1=1,
            )},
        )
        d = await locate_pools(chain, TOKEN, token_decimals=18, quote_usd_prices=PRICES)
        assert not d.has_liquidity


class TestReconcileHolderPools:
    @pytest.mark.asyncio
    async def test_holder_pool_added(self) -> None:
        extra = "0x" + "e" * 40
        wallet = "0x" + "f" * 40
        chain = FakeChain(reserves={extra: v2_reserves(address=extra, quote_units=1)})
        discovery = PoolDiscovery().with_pools([_pool(PAIR, 100_000.0)])
        holders = [
            HolderBalance(PAIR, 10),
            HolderBalance(extra, 5, is_contract=True),
            HolderBalance(wallet, 1),
        ]
        d = await reconcile_holder_pools(
            chain, TOKEN, holders, discovery,
            token_decimals=18, quote_usd_prices=PRICES,
        )
        assert d.lp_addresses == frozenset({PAIR, extra})
        # known pool is not validated again
        assert chain.calls.count("get_pool_reserves") == 2

    @pytest.mark.asyncio
    async def test_nothing_new(self) -> None:
        chain = FakeChain()
        discovery = PoolDiscovery().with_pools([_pool(PAIR, 1.0)])
        d = await reconcile_holder_pools(
            chain, TOKEN, [HolderBalance(PAIR, 1)], discovery,
            token_decimals=18, quote_usd_prices=PRICES,
        )
        assert d is discovery
        assert chain.calls == []
