"""Version information for the pair arbitrage bot."""

__version__ = "0.1.0"
