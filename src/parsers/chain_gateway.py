"""ChainDataGateway for BNB Smart Chain: RPC reads + Moralis indexing."""

from datetime import datetime

from loguru import logger

from config.settings import settings
from src.models.token import (
    HolderBalance,
    PoolReserves,
    TokenAnalytics,
    TokenMetadata,
    Transfer,
)
from src.parsers.evm.client import EvmRpcClient
from src.parsers.moralis.client import MoralisClient


class BscChainGateway:
    """Token data from contract reads, enriched with Moralis indexer data.

    Contract reads are authoritative for decimals/supply/ownership;
    Moralis supplies verification, creation time, holders and transfers.
    """

    def __init__(self, rpc: EvmRpcClient, moralis: MoralisClient) -> None:
        self._rpc = rpc
        self._moralis = moralis
        self._decimals: dict[str, int] = {}

    @classmethod
    def from_settings(cls) -> "BscChainGateway":
        return cls(
            EvmRpcClient(settings.bsc_rpc_url, max_rps=settings.rpc_max_rps),
            MoralisClient(
                settings.moralis_api_key,
                chain=settings.moralis_chain,
                max_rps=settings.moralis_max_rps,
                max_pages=settings.moralis_max_pages,
            ),
        )

    async def close(self) -> None:
        await self._moralis.close()

    async def get_token_metadata(self, address: str) -> TokenMetadata | None:
        address = address.lower()
        fields = await self._rpc.erc20_fields(address)
        if fields is None:
            logger.debug(f"[RPC] {address[:10]} is not a readable ERC-20")
            return None

        owner = await self._rpc.owner_of(address)
        renounced = owner in (settings.zero_address, settings.dead_address)
        indexed = await self._moralis.get_token_metadata(address)

        self._decimals[address] = fields["decimals"]
        return TokenMetadata(
            address=address,
            name=fields["name"] or (indexed.name if indexed else ""),
            symbol=fields["symbol"] or (indexed.symbol if indexed else ""),
            decimals=fields["decimals"],
            total_supply=fields["total_supply"],
            owner_address=None if renounced else owner,
            verified=indexed.verified_contract if indexed else False,
            renounced=renounced,
            created_at=indexed.created_at if indexed else None,
        )

    async def get_top_holders(self, address: str, limit: int) -> list[HolderBalance]:
        return await self._moralis.get_token_owners(address.lower(), limit=limit)

    async def get_holder_count(self, address: str) -> int | None:
        return await self._moralis.get_holder_count(address.lower())

    async def find_v2_pair(self, factory: str, token: str, quote: str) -> str | None:
        return await self._rpc.get_pair(factory, token, quote)

    async def find_v3_pool(self, factory: str, token: str, quote: str, fee: int) -> str | None:
        return await self._rpc.get_pool(factory, token, quote, fee)

    async def get_pool_reserves(self, pool_address: str) -> PoolReserves | None:
        return await self._rpc.pool_reserves(pool_address)

    async def get_balance(self, token: str, holder: str) -> int:
        return await self._rpc.balance_of(token, holder)

    async def get_transfer_history(
        self, wallet: str, token: str, since: datetime
    ) -> list[Transfer]:
        token = token.lower()
        return await self._moralis.get_wallet_token_transfers(
            wallet.lower(), token, since, decimals=self._decimals.get(token, 18)
        )

    async def get_trade_history(
        self, wallet: str, tokens: list[str], since: datetime
    ) -> dict[str, list[Transfer]]:
        """Per-token transfers of a wallet, each valued by the native leg of its tx.

        The wallet history is fetched once and split by token.
        """
        wanted: dict[str, list[Transfer]] = {t.lower(): [] for t in tokens}
        items = await self._moralis.get_wallet_history(wallet.lower(), since)
        for item in items:
            base_value = item.native_value(settings.wrapped_native_address)
            for t in item.erc20_transfers:
                if t.address not in wanted:
                    continue
                if t.value_formatted is not None:
                    amount = t.value_formatted
                else:
                    decimals = t.token_decimals or self._decimals.get(t.address, 18)
                    amount = t.value / 10**decimals
                wanted[t.address].append(
                    Transfer(
                        tx_hash=item.hash,
                        timestamp=item.block_timestamp,
                        from_address=t.from_address,
                        to_address=t.to_address,
                        amount=amount,
                        base_value=base_value,
                    )
                )
        for transfers in wanted.values():
            transfers.sort(key=lambda t: (t.timestamp, t.tx_hash))
        return wanted

    async def get_token_transfers(self, token: str, since: datetime) -> list[Transfer]:
        token = token.lower()
        return await self._moralis.get_token_transfers(
            token, since, decimals=self._decimals.get(token, 18)
        )

    async def get_contract_bytecode(self, address: str) -> bytes:
        return await self._rpc.get_code(address)

    async def get_wallet_net_worth_usd(self, wallet: str) -> float | None:
        return await self._moralis.get_wallet_net_worth(wallet.lower())

    async def get_token_analytics(self, address: str) -> TokenAnalytics | None:
        return await self._moralis.get_token_analytics(address.lower())
