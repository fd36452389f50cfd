"""EVM JSON-RPC reads via web3's async provider.

ERC-20 fields, ownership, factory pool lookup, pool reserves and
deployed bytecode. Contract reverts read as "no data"; transport errors
are retried with the same backoff as the REST clients.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from loguru import logger
from web3 import AsyncWeb3
from web3.exceptions import Web3Exception

from src.models.token import PoolReserves
from src.parsers.evm.abi import (
    ERC20_ABI,
    OWNABLE_ABI,
    V2_FACTORY_ABI,
    V2_PAIR_ABI,
    V3_FACTORY_ABI,
    V3_POOL_ABI,
)
from src.parsers.rate_limiter import RateLimiter

MAX_RETRIES = 2
RETRY_DELAYS = [1.0, 3.0]
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

T = TypeVar("T")


class EvmRpcClient:
    def __init__(self, rpc_url: str, max_rps: float = 10.0) -> None:
        self._w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": 15}))
        self._rate_limiter = RateLimiter(max_rps)

    def _contract(self, address: str, abi: list[dict]) -> Any:
        return self._w3.eth.contract(address=AsyncWeb3.to_checksum_address(address), abi=abi)

    async def _call(self, label: str, fn: Callable[[], Awaitable[T]]) -> T | None:
        """Run one RPC read with retry on transport errors."""
        for attempt in range(MAX_RETRIES + 1):
            await self._rate_limiter.acquire()
            try:
                return await fn()
            except (Web3Exception, ValueError) as e:
                # revert / missing method / undecodable output
                logger.debug(f"[RPC] {label} returned no data: {type(e).__name__}")
                return None
            except (asyncio.TimeoutError, OSError) as e:
                if attempt < MAX_RETRIES:
                    delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                    logger.debug(f"[RPC] {label}: {type(e).__name__}, retry in {delay}s")
                    await asyncio.sleep(delay)
                else:
                    logger.warning(f"[RPC] {label} failed after retries: {e}")
                    return None
        return None

    async def erc20_fields(self, token: str) -> dict[str, Any] | None:
        """name/symbol/decimals/totalSupply; None unless decimals and supply read."""
        c = self._contract(token, ERC20_ABI)
        name, symbol, decimals, supply = await asyncio.gather(
            self._call(f"name({token[:10]})", c.functions.name().call),
            self._call(f"symbol({token[:10]})", c.functions.symbol().call),
            self._call(f"decimals({token[:10]})", c.functions.decimals().call),
            self._call(f"totalSupply({token[:10]})", c.functions.totalSupply().call),
        )
        if decimals is None or supply is None:
            return None
        return {
            "name": name or "",
            "symbol": symbol or "",
            "decimals": int(decimals),
            "total_supply": int(supply),
        }

    async def owner_of(self, token: str) -> str | None:
        """owner() or BEP-20 getOwner(); None if the contract has neither."""
        c = self._contract(token, OWNABLE_ABI)
        owner = await self._call(f"owner({token[:10]})", c.functions.owner().call)
        if owner is None:
            owner = await self._call(f"getOwner({token[:10]})", c.functions.getOwner().call)
        return owner.lower() if owner else None

    async def balance_of(self, token: str, holder: str) -> int:
        c = self._contract(token, ERC20_ABI)
        bal = await self._call(
            f"balanceOf({token[:10]}, {holder[:10]})",
            c.functions.balanceOf(AsyncWeb3.to_checksum_address(holder)).call,
        )
        return int(bal or 0)

    async def get_pair(self, factory: str, token: str, quote: str) -> str | None:
        c = self._contract(factory, V2_FACTORY_ABI)
        pair = await self._call(
            f"getPair({token[:10]})",
            c.functions.getPair(
                AsyncWeb3.to_checksum_address(token), AsyncWeb3.to_checksum_address(quote)
            ).call,
        )
        return _non_zero(pair)

    async def get_pool(self, factory: str, token: str, quote: str, fee: int) -> str | None:
        c = self._contract(factory, V3_FACTORY_ABI)
        pool = await self._call(
            f"getPool({token[:10]}, {fee})",
            c.functions.getPool(
                AsyncWeb3.to_checksum_address(token), AsyncWeb3.to_checksum_address(quote), fee
            ).call,
        )
        return _non_zero(pool)

    async def pool_reserves(self, pool: str) -> PoolReserves | None:
        """Reserves if the address behaves like a V2 pair or V3 pool."""
        pair = self._contract(pool, V2_PAIR_ABI)
        token0, token1 = await asyncio.gather(
            self._call(f"token0({pool[:10]})", pair.functions.token0().call),
            self._call(f"token1({pool[:10]})", pair.functions.token1().call),
        )
        if not token0 or not token1:
            return None
        token0, token1 = token0.lower(), token1.lower()

        reserves = await self._call(f"getReserves({pool[:10]})", pair.functions.getReserves().call)
        if reserves is not None:
            supply = await self._call(f"totalSupply({pool[:10]})", pair.functions.totalSupply().call)
            return PoolReserves(
                address=pool.lower(),
                token0=token0,
                token1=token1,
                reserve0=int(reserves[0]),
                reserve1=int(reserves[1]),
                lp_total_supply=int(supply or 0),
            )

        fee = await self._call(
            f"fee({pool[:10]})", self._contract(pool, V3_POOL_ABI).functions.fee().call
        )
        if fee is None:
            return None
        bal0, bal1 = await asyncio.gather(
            self.balance_of(token0, pool), self.balance_of(token1, pool)
        )
        return PoolReserves(
            address=pool.lower(),
            token0=token0,
            token1=token1,
            reserve0=bal0,
            reserve1=bal1,
            is_v3=True,
        )

    async def get_code(self, address: str) -> bytes:
        code = await self._call(
            f"getCode({address[:10]})",
            lambda: self._w3.eth.get_code(AsyncWeb3.to_checksum_address(address)),
        )
        return bytes(code or b"")


def _non_zero(address: str | None) -> str | None:
    if not address or address.lower() == ZERO_ADDRESS:
        return None
    return address.lower()
