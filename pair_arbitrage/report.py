"""
Balance-delta reporting for accepted simulations and executed trades.

The format is diagnostic console output only.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Tuple

from tabulate import tabulate

from .types import Token, TradeSimulation
from .units import format_fixed, to_display, wei_to_native

Row = Tuple[str, str]


@dataclass(frozen=True)
class BalanceSnapshot:
    """Native and base-token balances of the trading account, display units."""

    native: Decimal
    base: Decimal


async def read_balances(chain, account: str, base: Token) -> BalanceSnapshot:
    native_wei = await chain.get_balance(account)
    base_raw = await chain.token_balance_of(base, account)
    return BalanceSnapshot(
        native=wei_to_native(native_wei),
        base=to_display(base_raw, base.decimals),
    )


def estimate_rows(
    before: BalanceSnapshot,
    simulation: TradeSimulation,
    gas_cost_native: Decimal,
    base_symbol: str,
    native_symbol: str = "ETH",
    places: int = 18,
) -> List[Row]:
    """Projected balances if the simulated trade executes as priced."""
    gained = simulation.gross_profit
    return [
        (f"{native_symbol} Balance Before", format_fixed(before.native, places)),
        (
            f"{native_symbol} Balance After",
            format_fixed(before.native - gas_cost_native, places),
        ),
        (f"{native_symbol} Spent (gas)", format_fixed(gas_cost_native, places)),
        (f"{base_symbol} Balance Before", format_fixed(before.base, places)),
        (f"{base_symbol} Balance After", format_fixed(before.base + gained, places)),
        (f"{base_symbol} Gained/Lost", format_fixed(gained, places)),
        ("Total Gained/Lost", format_fixed(simulation.net_profit, places)),
    ]


def delta_rows(
    before: BalanceSnapshot,
    after: BalanceSnapshot,
    base_symbol: str,
    native_symbol: str = "ETH",
    places: int = 18,
) -> List[Row]:
    """Actual balances around a confirmed trade."""
    return [
        (f"{base_symbol} Balance Before", format_fixed(before.base, places)),
        (f"{base_symbol} Balance After", format_fixed(after.base, places)),
        (f"{base_symbol} Gained/Lost", format_fixed(after.base - before.base, places)),
        (f"{native_symbol} Balance Before", format_fixed(before.native, places)),
        (f"{native_symbol} Balance After", format_fixed(after.native, places)),
        (
            f"{native_symbol} Spent (gas)",
            format_fixed(before.native - after.native, places),
        ),
    ]


def render_table(title: str, rows: List[Row]) -> str:
    table = tabulate(
        rows,
        headers=["Item", "Value"],
        tablefmt="simple",
        colalign=("left", "right"),
        disable_numparse=True,
    )
    return f"{title}\n{table}"
