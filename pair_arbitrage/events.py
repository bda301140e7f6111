"""
Swap event source.

Polls eth_getLogs for Uniswap V2 Swap events on both pairs and offers one
trigger per pool that saw swaps in the new block range. Whether a trigger
is evaluated or dropped is the orchestrator's decision.

After a long gap (RPC outage, slow node) only the newest MAX_BLOCK_RANGE
blocks are queried. Older swaps are stale: every cycle re-reads reserves.
"""

import asyncio
from typing import Dict, List, Optional

from .exceptions import ChainCallError
from .types import PoolHandle, Trigger
from .utils import get_logger

logger = get_logger(__name__)

MAX_BLOCK_RANGE = 100


class SwapEventWatcher:
    """
    Block-range log poller feeding ``orchestrator.submit``.

    Attributes:
        chain: Client exposing get_block_number / get_swap_logs
        pools: Pools to watch
        submit: Callable receiving each Trigger
        poll_sec: Seconds between polls
        max_block_range: Most blocks requested by one eth_getLogs call
    """

    def __init__(
        self,
        chain,
        pools: List[PoolHandle],
        submit,
        poll_sec: float = 2.0,
        max_block_range: int = MAX_BLOCK_RANGE,
    ):
        if max_block_range < 1:
            raise ValueError(f"max_block_range must be positive: {max_block_range}")
        self.chain = chain
        self.pools = pools
        self.submit = submit
        self.poll_sec = poll_sec
        self.max_block_range = max_block_range
        self._by_address: Dict[str, PoolHandle] = {
            pool.pair_address.lower(): pool for pool in pools
        }
        self.last_block: Optional[int] = None

    def triggers_from_logs(self, logs: List[dict]) -> List[Trigger]:
        """One trigger per pool, tagged with its latest swap block."""
        latest: Dict[str, int] = {}
        for log in logs:
            pool = self._by_address.get(str(log["address"]).lower())
            if pool is None:
                continue
            block = int(log["blockNumber"])
            latest[pool.exchange] = max(block, latest.get(pool.exchange, block))
        return [Trigger(exchange, block) for exchange, block in latest.items()]

    async def poll_once(self) -> List[Trigger]:
        """Fetch logs since the last poll and submit triggers."""
        head = await self.chain.get_block_number()
        if self.last_block is None:
            self.last_block = head
            return []
        if head <= self.last_block:
            return []

        from_block = self.last_block + 1
        if head - from_block + 1 > self.max_block_range:
            skipped = head - self.max_block_range - self.last_block
            from_block = head - self.max_block_range + 1
            logger.warning(
                f"Skipping {skipped} stale blocks; querying swaps from {from_block}"
            )

        logs = await self.chain.get_swap_logs(self.pools, from_block, head)
        self.last_block = head
        triggers = self.triggers_from_logs(logs)
        for trigger in triggers:
            self.submit(trigger)
        return triggers

    async def run(self) -> None:
        """Poll until cancelled. RPC errors skip one poll."""
        while True:
            try:
                await self.poll_once()
            except ChainCallError as e:
                logger.warning(f"Swap log poll failed: {e}")
            await asyncio.sleep(self.poll_sec)
