"""
Shared fixtures: tokens, pools and an in-memory constant-product chain.

FakeChain reproduces the UniswapV2Library integer formulas (0.3% fee) so
simulations against it behave like the real routers.
"""

import asyncio
from decimal import Decimal

import pytest

from pair_arbitrage.exceptions import ChainCallError
from pair_arbitrage.guard import ExecutionGuard
from pair_arbitrage.orchestrator import Orchestrator
from pair_arbitrage.simulator import ProfitabilitySimulator
from pair_arbitrage.types import GasParams, PoolHandle, Reserves, Token

E18 = 10**18

WETH = Token(
    address="0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
    decimals=18,
    symbol="WETH",
    name="Wrapped Ether",
)
SHIB = Token(
    address="0x95aD61b0a150d79219dCF64E1E6Cc01f0B64C4cE",
    decimals=18,
    symbol="SHIB",
    name="SHIBA INU",
)

POOL_A = PoolHandle(
    exchange="uniswap",
    pair_address="0x811beEd0119b4AfCE20D2583EB608C6F7AF1954f",
    router_address="0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D",
    token0=WETH.address,
    token1=SHIB.address,
)
POOL_B = PoolHandle(
    exchange="sushiswap",
    pair_address="0x24D3dD4a62e29770cf98810b09F89D3A90279E7a",
    router_address="0xd9e1cE17f2641f24aE83637ab66a2cca9C378B9F",
    token0=WETH.address,
    token1=SHIB.address,
)

ACCOUNT = "0x90F79bf6EB2c4f870365E785982E1f101E93b906"


def get_amount_out(amount_in: int, reserve_in: int, reserve_out: int) -> int:
    if amount_in <= 0:
        raise ChainCallError("UniswapV2Library: INSUFFICIENT_INPUT_AMOUNT")
    if reserve_in <= 0 or reserve_out <= 0:
        raise ChainCallError("UniswapV2Library: INSUFFICIENT_LIQUIDITY")
    amount_in_with_fee = amount_in * 997
    numerator = amount_in_with_fee * reserve_out
    denominator = reserve_in * 1000 + amount_in_with_fee
    return numerator // denominator


def get_amount_in(amount_out: int, reserve_in: int, reserve_out: int) -> int:
    if amount_out <= 0:
        raise ChainCallError("UniswapV2Library: INSUFFICIENT_OUTPUT_AMOUNT")
    if reserve_in <= 0 or amount_out >= reserve_out:
        raise ChainCallError("UniswapV2Library: INSUFFICIENT_LIQUIDITY")
    numerator = reserve_in * amount_out * 1000
    denominator = (reserve_out - amount_out) * 997
    return numerator // denominator + 1


class FakeChain:
    """
    Two pools, router pricing and balances held in memory.

    Every call yields to the event loop once, like a real RPC round trip.
    """

    def __init__(
        self, reserves_a, reserves_b, block_number=18_000_000, pools=(POOL_A, POOL_B)
    ):
        pool_a, pool_b = pools
        self.pools = {pool_a.exchange: pool_a, pool_b.exchange: pool_b}
        self.reserves = {
            pool_a.exchange: tuple(reserves_a),
            pool_b.exchange: tuple(reserves_b),
        }
        self.block_number = block_number
        self.native_balance = 2 * E18
        self.token_balances = {WETH.address: 5 * E18, SHIB.address: 0}
        self.fail_reserves = False
        self.fail_pricing = False
        self.reserve_reads = 0
        self.pricing_calls = 0

    def _oriented(self, pool, token_in, token_out):
        r0, r1 = self.reserves[pool.exchange]
        if (token_in, token_out) == (pool.token0, pool.token1):
            return r0, r1
        if (token_in, token_out) == (pool.token1, pool.token0):
            return r1, r0
        raise ChainCallError("UniswapV2Library: INVALID_PATH")

    async def get_block_number(self):
        await asyncio.sleep(0)
        return self.block_number

    async def get_reserves(self, pool):
        await asyncio.sleep(0)
        self.reserve_reads += 1
        if self.fail_reserves:
            raise ChainCallError("execution reverted", method="getReserves")
        r0, r1 = self.reserves[pool.exchange]
        return Reserves(r0, r1, self.block_number)

    async def get_amounts_out(self, pool, amount_in, path):
        await asyncio.sleep(0)
        self.pricing_calls += 1
        if self.fail_pricing:
            raise ChainCallError("execution reverted", method="getAmountsOut")
        reserve_in, reserve_out = self._oriented(pool, path[0], path[1])
        return [amount_in, get_amount_out(amount_in, reserve_in, reserve_out)]

    async def get_amounts_in(self, pool, amount_out, path):
        await asyncio.sleep(0)
        self.pricing_calls += 1
        if self.fail_pricing:
            raise ChainCallError("execution reverted", method="getAmountsIn")
        reserve_in, reserve_out = self._oriented(pool, path[0], path[1])
        return [get_amount_in(amount_out, reserve_in, reserve_out), amount_out]

    async def get_balance(self, account):
        await asyncio.sleep(0)
        return self.native_balance

    async def token_balance_of(self, token, account):
        await asyncio.sleep(0)
        return self.token_balances[token.address]


# Reserves are (WETH, SHIB) since token0 is WETH in both test pools.
# WETH is worth 0.01 SHIB on uniswap and 0.033 SHIB on sushiswap: sell it on
# sushiswap, buy it back on uniswap.
PROFITABLE_A = (1000 * E18, 10 * E18)
PROFITABLE_B = (300 * E18, 10 * E18)


@pytest.fixture
def weth():
    return WETH


@pytest.fixture
def shib():
    return SHIB


@pytest.fixture
def pool_a():
    return POOL_A


@pytest.fixture
def pool_b():
    return POOL_B


@pytest.fixture
def profitable_chain():
    return FakeChain(PROFITABLE_A, PROFITABLE_B)


@pytest.fixture
def make_orchestrator():
    """Build an Orchestrator around a chain with test defaults."""

    def build(
        chain,
        executor=None,
        threshold_pct="0.5",
        account=ACCOUNT,
        pools=(POOL_A, POOL_B),
        **sim_kwargs,
    ):
        gas = GasParams(gas_limit=400_000, gas_price_gwei=Decimal("20"))
        simulator = ProfitabilitySimulator(
            chain,
            WETH,
            SHIB,
            gas_limit=gas.gas_limit,
            gas_price_gwei=gas.gas_price_gwei,
            **sim_kwargs,
        )
        return Orchestrator(
            chain,
            *pools,
            WETH,
            SHIB,
            simulator,
            threshold_pct=Decimal(threshold_pct),
            gas=gas,
            executor=executor,
            account=account,
            guard=ExecutionGuard(),
        )

    return build


@pytest.fixture
def chain_factory():
    """FakeChain constructor: chain_factory(reserves_a, reserves_b)."""
    return FakeChain
