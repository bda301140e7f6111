"""
Uniswap V2 style chain client.

Every read the decision pipeline needs: pair reserves, router pricing
(getAmountsIn / getAmountsOut), balances and Swap logs. web3 calls are
synchronous, so each one runs in the default thread pool executor to keep
the event loop free while the RPC round trip is in flight.

Pricing deliberately goes through the routers instead of local x*y=k math,
so simulated amounts agree bit for bit with what the contracts will do.
"""

import asyncio
from typing import Callable, Dict, List, Sequence, TypeVar

from web3 import Web3

from ..abi import (
    ERC20_ABI,
    SWAP_EVENT_TOPIC,
    UNISWAP_V2_PAIR_ABI,
    UNISWAP_V2_ROUTER_ABI,
)
from ..exceptions import ChainCallError
from ..types import PoolHandle, Reserves, Token

T = TypeVar("T")


class V2ChainClient:
    """
    Async facade over a synchronous Web3 instance.

    Contract objects are built once per address and reused across cycles;
    no call results are cached.
    """

    def __init__(self, web3: Web3):
        self.web3 = web3
        self._contracts: Dict[tuple, object] = {}

    def _contract(self, address: str, abi: list, kind: str):
        key = (kind, address)
        if key not in self._contracts:
            self._contracts[key] = self.web3.eth.contract(address=address, abi=abi)
        return self._contracts[key]

    async def _call(self, method: str, address: str, fn: Callable[[], T]) -> T:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, fn)
        except Exception as e:
            raise ChainCallError(
                f"{method} failed on {address}: {e}", method=method, address=address
            ) from e

    async def get_block_number(self) -> int:
        return await self._call(
            "eth_blockNumber", "-", lambda: self.web3.eth.block_number
        )

    async def get_reserves(self, pool: PoolHandle) -> Reserves:
        """
        Read the pair's current reserves.

        Raises:
            ChainCallError: If the RPC call fails or the pair does not exist
        """
        pair = self._contract(pool.pair_address, UNISWAP_V2_PAIR_ABI, "pair")

        def read():
            block = self.web3.eth.block_number
            reserve0, reserve1, _ = pair.functions.getReserves().call(
                block_identifier=block
            )
            return Reserves(int(reserve0), int(reserve1), block)

        return await self._call("getReserves", pool.pair_address, read)

    async def get_amounts_in(
        self, pool: PoolHandle, amount_out: int, path: Sequence[str]
    ) -> List[int]:
        """Router quote: input amounts needed to receive ``amount_out``."""
        router = self._contract(pool.router_address, UNISWAP_V2_ROUTER_ABI, "router")
        amounts = await self._call(
            "getAmountsIn",
            pool.router_address,
            router.functions.getAmountsIn(int(amount_out), list(path)).call,
        )
        return [int(a) for a in amounts]

    async def get_amounts_out(
        self, pool: PoolHandle, amount_in: int, path: Sequence[str]
    ) -> List[int]:
        """Router quote: output amounts received for ``amount_in``."""
        router = self._contract(pool.router_address, UNISWAP_V2_ROUTER_ABI, "router")
        amounts = await self._call(
            "getAmountsOut",
            pool.router_address,
            router.functions.getAmountsOut(int(amount_in), list(path)).call,
        )
        return [int(a) for a in amounts]

    async def get_balance(self, account: str) -> int:
        """Native balance in wei."""
        return await self._call(
            "eth_getBalance", account, lambda: self.web3.eth.get_balance(account)
        )

    async def token_balance_of(self, token: Token, account: str) -> int:
        """ERC-20 balance in the token's smallest unit."""
        erc20 = self._contract(token.address, ERC20_ABI, "erc20")
        balance = await self._call(
            "balanceOf", token.address, erc20.functions.balanceOf(account).call
        )
        return int(balance)

    async def get_swap_logs(
        self, pools: Sequence[PoolHandle], from_block: int, to_block: int
    ) -> List[dict]:
        """Raw Swap logs emitted by ``pools`` in [from_block, to_block]."""
        params = {
            "fromBlock": from_block,
            "toBlock": to_block,
            "address": [pool.pair_address for pool in pools],
            "topics": [SWAP_EVENT_TOPIC],
        }
        return await self._call(
            "eth_getLogs", "swap-filter", lambda: list(self.web3.eth.get_logs(params))
        )


def checksum(address: str) -> str:
    """Validate and checksum an address."""
    if not Web3.is_address(address):
        raise ValueError(f"Invalid address: {address}")
    return Web3.to_checksum_address(address)
