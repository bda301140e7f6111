"""
Evaluation cycle orchestration.

One cycle: quote both pools -> resolve direction -> simulate -> optionally
execute -> report balance deltas. The ExecutionGuard is acquired before the
first read and released in a ``finally`` block, so every exit path (early
return, rejected simulation, read error, failed execution, unexpected
exception) leaves the bot idle.

Triggers arrive through a bounded queue consumed by a single worker. A
trigger that finds the bot busy, or the queue slot taken, is dropped.
"""

import asyncio
from typing import Optional

from .direction import resolve_direction
from .exceptions import ChainCallError, ReservesUnavailable
from .guard import ExecutionGuard
from .oracle import quote_price
from .report import delta_rows, estimate_rows, read_balances, render_table
from .simulator import ProfitabilitySimulator
from .types import (
    CycleOutcome,
    CycleResult,
    GasParams,
    PoolHandle,
    Rejected,
    Token,
    Trigger,
)
from .units import format_fixed, gas_cost_in_base
from .utils import get_logger

logger = get_logger(__name__)

SEPARATOR = "-" * 41


class Orchestrator:
    """
    Runs evaluation cycles for one token pair on two pools.

    Attributes:
        chain: Chain client (reserves, router pricing, balances)
        pool_a: Pool on exchange A
        pool_b: Pool on exchange B
        base: Token held and measured in
        quote: Token traded against
        simulator: ProfitabilitySimulator for this pair
        threshold_pct: Minimum price divergence in percent
        gas: Gas settings forwarded to execution
        executor: Trade executor, or None when execution is disabled
        account: Address whose balances are reported
        units: Decimal places shown for prices
    """

    def __init__(
        self,
        chain,
        pool_a: PoolHandle,
        pool_b: PoolHandle,
        base: Token,
        quote: Token,
        simulator: ProfitabilitySimulator,
        threshold_pct,
        gas: GasParams,
        executor=None,
        account: Optional[str] = None,
        units: int = 18,
        native_symbol: str = "ETH",
        guard: Optional[ExecutionGuard] = None,
    ):
        self.chain = chain
        self.pool_a = pool_a
        self.pool_b = pool_b
        self.base = base
        self.quote = quote
        self.simulator = simulator
        self.threshold_pct = threshold_pct
        self.gas = gas
        self.executor = executor
        self.account = account
        self.units = units
        self.native_symbol = native_symbol
        self.guard = guard or ExecutionGuard()

        self.queue: "asyncio.Queue[Trigger]" = asyncio.Queue(maxsize=1)
        self.last_result: Optional[CycleResult] = None

    # Trigger channel

    def submit(self, trigger: Trigger) -> bool:
        """
        Offer a trigger to the worker loop.

        Returns:
            True if queued, False if dropped because a cycle is in flight
            or another trigger is already waiting
        """
        if self.guard.busy:
            self.guard.record_drop()
            logger.debug(f"Swap on {trigger.exchange} ignored: cycle in flight")
            return False
        try:
            self.queue.put_nowait(trigger)
        except asyncio.QueueFull:
            self.guard.record_drop()
            logger.debug(f"Swap on {trigger.exchange} ignored: trigger pending")
            return False
        return True

    def _drain(self) -> int:
        dropped = 0
        while True:
            try:
                self.queue.get_nowait()
            except asyncio.QueueEmpty:
                return dropped
            self.queue.task_done()
            self.guard.record_drop()
            dropped += 1

    async def run(self) -> None:
        """Worker loop: one cycle at a time until cancelled."""
        logger.info("Waiting for swap event...")
        while True:
            trigger = await self.queue.get()
            try:
                await self.handle_trigger(trigger)
            finally:
                self.queue.task_done()
            dropped = self._drain()
            if dropped:
                logger.debug(f"Discarded {dropped} trigger(s) queued during cycle")

    # Cycle

    async def handle_trigger(self, trigger: Trigger) -> CycleResult:
        """
        Run one full cycle for ``trigger`` unless one is already in flight.

        Never raises for in-cycle failures; the outcome is in the result.
        """
        if not self.guard.try_acquire():
            logger.debug(f"Swap on {trigger.exchange} dropped: cycle in flight")
            return CycleResult(trigger=trigger, outcome=CycleOutcome.DROPPED)

        result = CycleResult(trigger=trigger, outcome=CycleOutcome.ERROR)
        try:
            logger.info(f"Swap Initiated on {trigger.exchange}, Checking Price...")
            await self._evaluate(result)
        except (ReservesUnavailable, ChainCallError) as e:
            result.outcome = CycleOutcome.ABORTED
            result.error = str(e)
            logger.warning(f"Cycle aborted: {e}")
        except Exception as e:
            result.outcome = CycleOutcome.ERROR
            result.error = str(e)
            logger.error(f"Cycle failed unexpectedly: {e}", exc_info=True)
        finally:
            self.guard.release()
            self.last_result = result
            logger.info(f"Cycle finished: {result.outcome.value}")
            logger.info(SEPARATOR)
        return result

    async def _evaluate(self, result: CycleResult) -> None:
        quote_a = await quote_price(self.chain, self.pool_a, self.base, self.quote)
        quote_b = await quote_price(self.chain, self.pool_b, self.base, self.quote)
        result.quotes = (quote_a, quote_b)
        self._log_prices(quote_a, quote_b)

        plan = resolve_direction(
            quote_a, quote_b, self.threshold_pct, self.pool_a, self.pool_b
        )
        result.plan = plan
        if plan is None:
            logger.info("No Arbitrage Currently Available")
            result.outcome = CycleOutcome.NO_OPPORTUNITY
            return

        reserves = {
            quote_a.exchange: quote_a.reserves,
            quote_b.exchange: quote_b.reserves,
        }
        outcome = await self.simulator.simulate(plan, reserves)
        if isinstance(outcome, Rejected):
            logger.info(f"No Arbitrage Currently Available ({outcome.reason})")
            result.outcome = CycleOutcome.REJECTED
            result.rejection = outcome.reason
            result.simulation = outcome.simulation
            return

        result.simulation = outcome
        before = None
        if self.account:
            before = await read_balances(self.chain, self.account, self.base)
            gas_native = gas_cost_in_base(self.gas.gas_limit, self.gas.gas_price_gwei)
            logger.info(
                render_table(
                    "Projected balances",
                    estimate_rows(
                        before,
                        outcome,
                        gas_native,
                        self.base.symbol,
                        self.native_symbol,
                    ),
                )
            )

        if self.executor is None:
            logger.info("Execution disabled in config. Skipping transaction.")
            result.outcome = CycleOutcome.EXECUTION_DISABLED
            return

        logger.info("Attempting Arbitrage...")
        execution = await self.executor.execute_trade(
            plan, self.base, self.quote, outcome.amount_in_raw, self.gas
        )
        result.execution = execution
        if not execution.success:
            result.outcome = CycleOutcome.EXECUTION_FAILED
            result.error = execution.error
            return

        result.outcome = CycleOutcome.EXECUTED
        if before is not None:
            try:
                after = await read_balances(self.chain, self.account, self.base)
            except ChainCallError as e:
                logger.warning(f"Trade confirmed but balances unavailable: {e}")
                return
            logger.info(
                render_table(
                    "Balances after trade",
                    delta_rows(before, after, self.base.symbol, self.native_symbol),
                )
            )

    def _log_prices(self, quote_a, quote_b) -> None:
        pair = f"{self.quote.symbol}/{self.base.symbol}"
        block = quote_a.block_number or quote_b.block_number
        logger.info(f"Current Block: {block}")
        logger.info(SEPARATOR)
        for quote in (quote_a, quote_b):
            logger.info(
                f"{quote.exchange.upper():<10}| {pair}\t | "
                f"{format_fixed(quote.price, self.units)}"
            )
