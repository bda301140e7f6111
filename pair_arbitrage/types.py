"""
Core data types for the two-pool arbitrage pipeline.

Token and PoolHandle are resolved once at startup. Everything else is built
fresh for every cycle and thrown away when the cycle ends.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple


@dataclass(frozen=True)
class Token:
    """
    An ERC-20 token resolved at startup.

    Attributes:
        address: Checksum address
        decimals: Token decimals
        symbol: Ticker (e.g. "WETH")
        name: Full token name
    """

    address: str
    decimals: int
    symbol: str
    name: str


@dataclass(frozen=True)
class PoolHandle:
    """
    Reference to one Uniswap V2 style pair on one exchange.

    Attributes:
        exchange: Exchange name (e.g. "uniswap")
        pair_address: Checksum address of the pair contract
        router_address: Checksum address of the exchange's router
        token0: Pair token0 (lower address)
        token1: Pair token1
    """

    exchange: str
    pair_address: str
    router_address: str
    token0: str
    token1: str

    def holds(self, token: Token) -> bool:
        return token.address in (self.token0, self.token1)


@dataclass(frozen=True)
class Reserves:
    """Raw reserve snapshot of one pair, in pair token order."""

    reserve0: int
    reserve1: int
    block_number: Optional[int] = None

    def of(self, pool: PoolHandle, token: Token) -> int:
        """Raw reserve of ``token`` in ``pool``."""
        if token.address == pool.token0:
            return self.reserve0
        if token.address == pool.token1:
            return self.reserve1
        raise ValueError(f"{token.symbol} is not held by pair {pool.pair_address}")


@dataclass(frozen=True)
class PriceQuote:
    """
    Spot price of one pool: quote-token amount per one base token.

    Attributes:
        exchange: Exchange the price was sampled on
        price: Full-precision price
        block_number: Block the reserves were read at
        reserves: Snapshot the price was derived from
    """

    exchange: str
    price: Decimal
    block_number: Optional[int]
    reserves: Reserves


@dataclass(frozen=True)
class DirectionPlan:
    """
    Which pool to buy the base token on and which to sell it on.

    The round trip sells base for quote on ``sell_on`` first, then buys the
    base back with that quote on ``buy_on``.

    Attributes:
        buy_on: Pool where base is cheaper; quote is swapped back to base
        sell_on: Pool where base is dearer; base is swapped for quote
        pct_diff: Price divergence rounded to 2 places (reporting only)
    """

    buy_on: PoolHandle
    sell_on: PoolHandle
    pct_diff: Decimal

    @property
    def exchanges(self) -> Tuple[str, str]:
        return self.buy_on.exchange, self.sell_on.exchange


@dataclass(frozen=True)
class TradeSimulation:
    """
    Simulated round trip, in base-token display units.

    Attributes:
        amount_in: Base token sold on the first leg
        amount_out: Base token bought back on the second leg
        estimated_gas_cost: Gas cost converted to base-token units
        net_profit: amount_out - amount_in - estimated_gas_cost
        amount_in_raw: amount_in in on-chain units (execution parameter)
    """

    amount_in: Decimal
    amount_out: Decimal
    estimated_gas_cost: Decimal
    net_profit: Decimal
    amount_in_raw: int

    @property
    def gross_profit(self) -> Decimal:
        return self.amount_out - self.amount_in


@dataclass(frozen=True)
class Rejected:
    """A simulation that must not be executed. A normal outcome, not an error."""

    reason: str
    simulation: Optional[TradeSimulation] = None


@dataclass(frozen=True)
class GasParams:
    """Gas settings forwarded to the execution call."""

    gas_limit: int
    gas_price_gwei: Decimal


@dataclass(frozen=True)
class Trigger:
    """A swap was observed on ``exchange``."""

    exchange: str
    block_number: Optional[int] = None


@dataclass
class ExecutionResult:
    """
    Result of an execution attempt.

    Attributes:
        success: Whether the transaction was mined with status 1
        tx_hash: Transaction hash (if submitted)
        gas_used: Gas consumed according to the receipt
        block_number: Block the transaction was mined in
        error: Error message (if failed)
    """

    success: bool
    tx_hash: Optional[str] = None
    gas_used: Optional[int] = None
    block_number: Optional[int] = None
    error: Optional[str] = None


class CycleOutcome(str, Enum):
    """How an evaluation cycle ended."""

    DROPPED = "dropped"
    NO_OPPORTUNITY = "no_opportunity"
    REJECTED = "rejected"
    EXECUTION_DISABLED = "execution_disabled"
    EXECUTED = "executed"
    EXECUTION_FAILED = "execution_failed"
    ABORTED = "aborted"
    ERROR = "error"


@dataclass
class CycleResult:
    """Everything one cycle produced, returned for logging and tests."""

    trigger: Trigger
    outcome: CycleOutcome
    quotes: Tuple[PriceQuote, ...] = field(default_factory=tuple)
    plan: Optional[DirectionPlan] = None
    simulation: Optional[TradeSimulation] = None
    rejection: Optional[str] = None
    execution: Optional[ExecutionResult] = None
    error: Optional[str] = None
