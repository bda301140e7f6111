"""
Profitability simulator for one base -> quote -> base round trip.

Algorithm:
1. Trial size: half of the smaller quote-token reserve of the two pools.
   A conservative upper bound, not an optimum.
2. Ask the sell-side router how much base token must be sold for the trial
   amount of quote token (getAmountsIn), then price the exact round trip
   with getAmountsOut: base -> quote on the sell side, quote -> base back
   on the buy side.
3. net_profit = amount_out - amount_in - gas cost, all three in base-token
   display units.
4. Reject when the round trip loses before gas, when net profit does not
   clear the minimum, or when any router call fails.

Router failures (insufficient liquidity, reverted calls) are expected
steady-state behaviour and come back as ``Rejected`` rather than raising.
"""

from decimal import Decimal, localcontext
from typing import Dict, Union

from .exceptions import ChainCallError
from .types import DirectionPlan, Rejected, Reserves, Token, TradeSimulation
from .units import DECIMAL_CONTEXT, gas_cost_in_base, to_decimal, to_display
from .utils import get_logger

logger = get_logger(__name__)

# Trial size is reserve // TRIAL_DIVISOR
TRIAL_DIVISOR = 2

REJECT_INSUFFICIENT_LIQUIDITY = "insufficient-liquidity"
REJECT_SIMULATION_FAILED = "simulation-failed"
REJECT_LOSS_BEFORE_GAS = "unprofitable-before-gas"
REJECT_LOSS_AFTER_GAS = "unprofitable-after-gas"


def apply_slippage_tolerance(amount: Decimal, tolerance_pct) -> Decimal:
    """Haircut ``amount`` by ``tolerance_pct`` percent."""
    tolerance = to_decimal(tolerance_pct)
    if tolerance < 0 or tolerance >= 100:
        raise ValueError(f"slippage tolerance must be in [0, 100): {tolerance}")
    with localcontext(DECIMAL_CONTEXT):
        return amount - amount * tolerance / Decimal(100)


def net_profit(amount_in: Decimal, amount_out: Decimal, gas_cost: Decimal) -> Decimal:
    """amount_out - amount_in - gas_cost; all in the same display unit."""
    with localcontext(DECIMAL_CONTEXT):
        return amount_out - amount_in - gas_cost


class ProfitabilitySimulator:
    """
    Go/no-go decision for a DirectionPlan.

    Attributes:
        chain: Client exposing get_amounts_in / get_amounts_out
        base: Token held and measured in (ARB_FOR)
        quote: Token traded against (ARB_AGAINST)
        gas_limit: Gas units reserved for executeTrade
        gas_price_gwei: Gas price in gwei
        native_price_in_base: Base-token value of one native token
        slippage_tolerance_pct: Haircut applied to the simulated amount out
        min_profit: Net profit must be strictly greater than this
    """

    def __init__(
        self,
        chain,
        base: Token,
        quote: Token,
        gas_limit: int,
        gas_price_gwei,
        native_price_in_base=1,
        slippage_tolerance_pct=0,
        min_profit=0,
    ):
        self.chain = chain
        self.base = base
        self.quote = quote
        self.gas_limit = gas_limit
        self.gas_price_gwei = to_decimal(gas_price_gwei)
        self.native_price_in_base = to_decimal(native_price_in_base)
        self.slippage_tolerance_pct = to_decimal(slippage_tolerance_pct)
        self.min_profit = to_decimal(min_profit)

    @property
    def estimated_gas_cost(self) -> Decimal:
        return gas_cost_in_base(
            self.gas_limit, self.gas_price_gwei, self.native_price_in_base
        )

    def trial_amount(self, plan: DirectionPlan, reserves: Dict[str, Reserves]) -> int:
        """Half of the smaller quote-token reserve across both pools (raw units)."""
        buy_reserve = reserves[plan.buy_on.exchange].of(plan.buy_on, self.quote)
        sell_reserve = reserves[plan.sell_on.exchange].of(plan.sell_on, self.quote)
        return min(buy_reserve, sell_reserve) // TRIAL_DIVISOR

    async def simulate(
        self, plan: DirectionPlan, reserves: Dict[str, Reserves]
    ) -> Union[TradeSimulation, Rejected]:
        """
        Simulate the round trip for ``plan``.

        Args:
            plan: Buy/sell pools
            reserves: Reserve snapshots for this cycle, keyed by exchange name

        Returns:
            TradeSimulation when profitable, otherwise Rejected(reason)
        """
        trial = self.trial_amount(plan, reserves)
        if trial <= 0:
            return Rejected(REJECT_INSUFFICIENT_LIQUIDITY)

        sell_path = [self.base.address, self.quote.address]
        buy_path = [self.quote.address, self.base.address]

        try:
            estimate = await self.chain.get_amounts_in(plan.sell_on, trial, sell_path)
            estimate_back = await self.chain.get_amounts_out(
                plan.buy_on, estimate[1], buy_path
            )
            logger.info(
                f"Estimated {self.base.symbol} sold for {self.quote.symbol} "
                f"on {plan.sell_on.exchange}: "
                f"{to_display(estimate[0], self.base.decimals)}"
            )
            logger.info(
                f"Estimated {self.base.symbol} bought back with "
                f"{self.quote.symbol} on {plan.buy_on.exchange}: "
                f"{to_display(estimate_back[1], self.base.decimals)}"
            )

            amount_in_raw = estimate[0]
            leg_one = await self.chain.get_amounts_out(
                plan.sell_on, amount_in_raw, sell_path
            )
            leg_two = await self.chain.get_amounts_out(
                plan.buy_on, leg_one[1], buy_path
            )
        except ChainCallError as e:
            logger.warning(
                f"Simulation failed ({e}); this usually means one pool lacks "
                "liquidity for the trial size"
            )
            return Rejected(REJECT_SIMULATION_FAILED)

        amount_in = to_display(leg_one[0], self.base.decimals)
        amount_out = to_display(leg_two[1], self.base.decimals)
        if self.slippage_tolerance_pct:
            amount_out = apply_slippage_tolerance(
                amount_out, self.slippage_tolerance_pct
            )

        gas_cost = self.estimated_gas_cost
        simulation = TradeSimulation(
            amount_in=amount_in,
            amount_out=amount_out,
            estimated_gas_cost=gas_cost,
            net_profit=net_profit(amount_in, amount_out, gas_cost),
            amount_in_raw=leg_one[0],
        )
        logger.info(
            f"Simulated round trip: in={amount_in} out={amount_out} "
            f"gas={gas_cost} net={simulation.net_profit} {self.base.symbol}"
        )

        if amount_out < amount_in:
            return Rejected(REJECT_LOSS_BEFORE_GAS, simulation)
        if simulation.net_profit <= self.min_profit:
            return Rejected(REJECT_LOSS_AFTER_GAS, simulation)
        return simulation
