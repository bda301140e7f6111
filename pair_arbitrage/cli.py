"""
Command line entry point for the pair arbitrage bot.

MODES:
  1. Report only (default unless the config enables execution): simulate and
     print projected balances for profitable trades
  2. Live: execute profitable trades through the arbitrage contract
     (execution_enabled: true in config, PRIVATE_KEY in the environment)

Usage:
  pair-arb --config configs/bot.example.yaml
  pair-arb --config configs/bot.example.yaml --dry-run
  pair-arb --config configs/bot.example.yaml --once

Environment Variables (also read from .env):
  RPC_URL, ARB_FOR, ARB_AGAINST, UNITS, PRICE_DIFFERENCE, GAS_LIMIT,
  GAS_PRICE override the config file. PRIVATE_KEY signs transactions.
"""

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

from . import __version__, logging_config
from .bootstrap import build_orchestrator
from .config import load_config
from .events import SwapEventWatcher
from .exceptions import ConfigurationError
from .types import Trigger
from .utils import get_logger

logger = get_logger(__name__)


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Two-pool DEX arbitrage bot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config",
        type=str,
        required=True,
        help="Path to bot config YAML file",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Never submit transactions, even if the config enables execution",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Evaluate a single cycle immediately and exit",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser.parse_args(argv)


async def run(args) -> int:
    config = load_config(args.config)
    if args.dry_run:
        config.execution_enabled = False

    orchestrator = build_orchestrator(config)
    if args.dry_run:
        orchestrator.executor = None

    if args.once:
        result = await orchestrator.handle_trigger(Trigger(exchange="startup"))
        logger.info(f"Single cycle outcome: {result.outcome.value}")
        return 0

    watcher = SwapEventWatcher(
        orchestrator.chain,
        [orchestrator.pool_a, orchestrator.pool_b],
        orchestrator.submit,
        poll_sec=config.poll_sec,
        max_block_range=config.max_block_range,
    )
    worker = asyncio.create_task(orchestrator.run())
    poller = asyncio.create_task(watcher.run())
    try:
        await asyncio.gather(worker, poller)
    finally:
        worker.cancel()
        poller.cancel()
        logger.info(
            f"Cycles run: {orchestrator.guard.cycles_started}, "
            f"triggers dropped: {orchestrator.guard.triggers_dropped}"
        )
    return 0


def main(argv=None) -> int:
    """Main entry point."""
    load_dotenv()
    args = parse_args(argv)
    logging_config.setup(getattr(logging, args.log_level))

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user")
        return 0
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
