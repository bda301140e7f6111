"""
Chain adapters for the exchanges the bot trades on.
"""

from .v2 import V2ChainClient, checksum

__all__ = ["V2ChainClient", "checksum"]
