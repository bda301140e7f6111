#!/usr/bin/env python3
"""
Two-pool DEX arbitrage bot runner.
"""
import sys

from pair_arbitrage.cli import main

if __name__ == "__main__":
    sys.exit(main())
