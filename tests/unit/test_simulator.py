"""
Unit tests for pair_arbitrage/simulator.py
"""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from pair_arbitrage.exceptions import ChainCallError
from pair_arbitrage.simulator import (
    REJECT_INSUFFICIENT_LIQUIDITY,
    REJECT_LOSS_AFTER_GAS,
    REJECT_LOSS_BEFORE_GAS,
    REJECT_SIMULATION_FAILED,
    ProfitabilitySimulator,
    apply_slippage_tolerance,
)
from pair_arbitrage.types import DirectionPlan, Rejected, Reserves, TradeSimulation

E18 = 10**18
TRIAL = 5 * E18


@pytest.fixture
def plan(pool_a, pool_b):
    return DirectionPlan(buy_on=pool_b, sell_on=pool_a, pct_diff=Decimal("5.00"))


@pytest.fixture
def reserves(pool_a, pool_b):
    return {
        pool_a.exchange: Reserves(1000 * E18, 10 * E18),
        pool_b.exchange: Reserves(1000 * E18, 10 * E18),
    }


def scripted_chain(amount_out, amount_in=E18):
    """Router mock: TRIAL quote costs amount_in base and buys back amount_out."""
    chain = AsyncMock()
    chain.get_amounts_in.side_effect = [[amount_in, TRIAL]]
    chain.get_amounts_out.side_effect = [
        [TRIAL, amount_out],
        [amount_in, TRIAL],
        [TRIAL, amount_out],
    ]
    return chain


def make_simulator(chain, weth, shib, gas_limit=200_000, gas_price="75", **kwargs):
    return ProfitabilitySimulator(
        chain, weth, shib, gas_limit=gas_limit, gas_price_gwei=gas_price, **kwargs
    )


@pytest.mark.asyncio
async def test_profitable_round_trip_accepted(plan, reserves, weth, shib):
    chain = scripted_chain(amount_out=102 * 10**16)
    simulator = make_simulator(chain, weth, shib)

    result = await simulator.simulate(plan, reserves)

    assert isinstance(result, TradeSimulation)
    assert result.amount_in == Decimal(1)
    assert result.amount_out == Decimal("1.02")
    assert result.estimated_gas_cost == Decimal("0.015")
    assert result.net_profit == Decimal("0.005")
    assert result.gross_profit == Decimal("0.02")
    assert result.amount_in_raw == E18


@pytest.mark.asyncio
async def test_base_sold_on_sell_pool_then_bought_back(plan, reserves, weth, shib):
    chain = scripted_chain(amount_out=102 * 10**16)
    simulator = make_simulator(chain, weth, shib)

    await simulator.simulate(plan, reserves)

    base_to_quote = [weth.address, shib.address]
    quote_to_base = [shib.address, weth.address]
    chain.get_amounts_in.assert_awaited_once_with(plan.sell_on, TRIAL, base_to_quote)
    calls = chain.get_amounts_out.await_args_list
    assert calls[0].args == (plan.buy_on, TRIAL, quote_to_base)
    assert calls[1].args == (plan.sell_on, E18, base_to_quote)
    assert calls[2].args == (plan.buy_on, TRIAL, quote_to_base)


@pytest.mark.asyncio
async def test_loss_before_gas_rejected(plan, reserves, weth, shib):
    chain = scripted_chain(amount_out=99 * 10**16)
    simulator = make_simulator(chain, weth, shib)

    result = await simulator.simulate(plan, reserves)

    assert isinstance(result, Rejected)
    assert result.reason == REJECT_LOSS_BEFORE_GAS
    assert result.simulation.amount_out == Decimal("0.99")


@pytest.mark.asyncio
async def test_gas_eats_the_spread(plan, reserves, weth, shib):
    chain = scripted_chain(amount_out=101 * 10**16)
    simulator = make_simulator(chain, weth, shib)

    result = await simulator.simulate(plan, reserves)

    assert isinstance(result, Rejected)
    assert result.reason == REJECT_LOSS_AFTER_GAS
    assert result.simulation.net_profit == Decimal("-0.005")


@pytest.mark.asyncio
async def test_net_profit_must_exceed_min_profit(plan, reserves, weth, shib):
    chain = scripted_chain(amount_out=102 * 10**16)
    simulator = make_simulator(chain, weth, shib, min_profit="0.005")

    result = await simulator.simulate(plan, reserves)

    assert isinstance(result, Rejected)
    assert result.reason == REJECT_LOSS_AFTER_GAS


@pytest.mark.asyncio
async def test_slippage_tolerance_reduces_amount_out(plan, reserves, weth, shib):
    chain = scripted_chain(amount_out=102 * 10**16)
    simulator = make_simulator(
        chain, weth, shib, gas_price="0", slippage_tolerance_pct="1"
    )

    result = await simulator.simulate(plan, reserves)

    assert isinstance(result, TradeSimulation)
    assert result.amount_out == Decimal("1.0098")
    assert result.net_profit == Decimal("0.0098")


@pytest.mark.asyncio
async def test_router_failure_is_a_rejection(plan, reserves, weth, shib):
    chain = AsyncMock()
    chain.get_amounts_in.side_effect = ChainCallError(
        "execution reverted: UniswapV2Library: INSUFFICIENT_LIQUIDITY"
    )
    simulator = make_simulator(chain, weth, shib)

    result = await simulator.simulate(plan, reserves)

    assert result == Rejected(REJECT_SIMULATION_FAILED)


@pytest.mark.asyncio
async def test_empty_quote_reserve_rejected_without_router_calls(
    plan, pool_a, pool_b, weth, shib
):
    chain = AsyncMock()
    reserves = {
        pool_a.exchange: Reserves(1000 * E18, 1),
        pool_b.exchange: Reserves(1000 * E18, 10 * E18),
    }
    simulator = make_simulator(chain, weth, shib)

    result = await simulator.simulate(plan, reserves)

    assert result.reason == REJECT_INSUFFICIENT_LIQUIDITY
    chain.get_amounts_in.assert_not_called()


def test_trial_is_half_the_smaller_quote_reserve(plan, pool_a, pool_b, weth, shib):
    simulator = make_simulator(AsyncMock(), weth, shib)
    reserves = {
        pool_a.exchange: Reserves(1000 * E18, 8 * E18),
        pool_b.exchange: Reserves(900 * E18, 11 * E18 + 1),
    }

    assert simulator.trial_amount(plan, reserves) == 4 * E18


@pytest.mark.asyncio
async def test_simulation_is_idempotent(profitable_chain, pool_a, pool_b, weth, shib):
    chain = profitable_chain
    # WETH is cheaper on uniswap in the profitable fixture
    plan = DirectionPlan(buy_on=pool_a, sell_on=pool_b, pct_diff=Decimal("-70.00"))
    simulator = make_simulator(chain, weth, shib, gas_limit=400_000, gas_price="20")
    reserves = {
        "uniswap": await chain.get_reserves(pool_a),
        "sushiswap": await chain.get_reserves(pool_b),
    }

    first = await simulator.simulate(plan, reserves)
    second = await simulator.simulate(plan, reserves)

    assert isinstance(first, TradeSimulation)
    assert first == second
    assert Decimal(31) < first.net_profit < Decimal(32)
    assert first.estimated_gas_cost == Decimal("0.008")


class TestSlippageTolerance:
    def test_zero_is_identity(self):
        assert apply_slippage_tolerance(Decimal("1.5"), 0) == Decimal("1.5")

    def test_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            apply_slippage_tolerance(Decimal(1), 100)
        with pytest.raises(ValueError):
            apply_slippage_tolerance(Decimal(1), -1)
