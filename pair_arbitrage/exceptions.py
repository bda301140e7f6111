"""
Exception hierarchy for the pair arbitrage bot.

Only configuration problems are fatal. Everything raised during a cycle is
caught by the orchestrator, which aborts that cycle and keeps running.
"""

from typing import Any, Dict, Optional


class ArbitrageBotError(Exception):
    """Base exception for all bot errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(ArbitrageBotError):
    """Raised at startup when configuration or bootstrap data is invalid."""

    pass


class ChainCallError(ArbitrageBotError):
    """Raised when an on-chain read or router call fails."""

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        address: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.method = method
        self.address = address


class ReservesUnavailable(ArbitrageBotError):
    """Raised when a pool's reserves cannot be read or are unusable."""

    def __init__(
        self,
        message: str,
        exchange: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.exchange = exchange


class ExecutionError(ArbitrageBotError):
    """Raised when a trade transaction cannot be built, sent or confirmed."""

    def __init__(
        self,
        message: str,
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.tx_hash = tx_hash
