"""
Two-pool DEX arbitrage bot.

Watches the same token pair on two Uniswap V2 style exchanges, samples both
prices whenever either pool sees a swap, and executes a round-trip trade
through an on-chain arbitrage contract when a simulated round trip is still
profitable after gas.
"""

from pair_arbitrage.version import __version__

__all__ = ["__version__"]
