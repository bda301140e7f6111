"""
Trade execution through the flash-loan arbitrage contract.

Handles:
- Building the executeTrade transaction with the configured gas settings
- Signing with the operator's key and submitting it
- Waiting for the receipt and reporting success or failure

No retries: a failed trade is reported and the next trigger starts over.
The chain guarantees the trade either happens completely or not at all.
"""

import asyncio
import time
from typing import Optional

from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.types import TxParams

from .abi import ARBITRAGE_ABI
from .exceptions import ExecutionError
from .types import DirectionPlan, ExecutionResult, GasParams, Token
from .units import gwei_to_wei
from .utils import get_logger

logger = get_logger(__name__)


class TradeExecutor:
    """
    Signs and submits ``executeTrade`` on the arbitrage contract.

    Attributes:
        web3: Connected Web3 instance
        account: Signing account
        contract_address: Arbitrage contract address
        exchange_a: Name of exchange A; the contract's start flag is True
            when the first leg (base sold for quote) runs there
        receipt_timeout: Seconds to wait for the transaction to be mined
    """

    def __init__(
        self,
        web3: Web3,
        account: LocalAccount,
        contract_address: str,
        exchange_a: str,
        receipt_timeout: int = 120,
    ):
        self.web3 = web3
        self.account = account
        self.contract = web3.eth.contract(address=contract_address, abi=ARBITRAGE_ABI)
        self.exchange_a = exchange_a
        self.receipt_timeout = receipt_timeout

        self.executions_attempted = 0
        self.executions_successful = 0

    def build_transaction(
        self,
        plan: DirectionPlan,
        base: Token,
        quote: Token,
        amount_in: int,
        gas: GasParams,
    ) -> TxParams:
        """Transaction dict for executeTrade(startOnA, base, quote, amount)."""
        start_on_a = plan.sell_on.exchange == self.exchange_a
        return self.contract.functions.executeTrade(
            start_on_a, base.address, quote.address, int(amount_in)
        ).build_transaction(
            {
                "from": self.account.address,
                "gas": gas.gas_limit,
                "gasPrice": gwei_to_wei(gas.gas_price_gwei),
                "nonce": self.web3.eth.get_transaction_count(self.account.address),
                "chainId": self.web3.eth.chain_id,
            }
        )

    def _send(self, tx: TxParams) -> str:
        signed = self.account.sign_transaction(tx)
        tx_hash = self.web3.eth.send_raw_transaction(signed.raw_transaction)
        return self.web3.to_hex(tx_hash)

    def _wait(self, tx_hash: str):
        return self.web3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=self.receipt_timeout
        )

    async def execute_trade(
        self,
        plan: DirectionPlan,
        base: Token,
        quote: Token,
        amount_in: int,
        gas: GasParams,
    ) -> ExecutionResult:
        """
        Submit the trade and wait for confirmation.

        Args:
            plan: Buy/sell pools
            base: Token borrowed and returned
            quote: Token traded against
            amount_in: Flash-loan amount in base-token raw units
            gas: Gas limit and price

        Returns:
            ExecutionResult; failures are reported, not raised
        """
        start_time = time.time()
        self.executions_attempted += 1
        loop = asyncio.get_running_loop()
        tx_hash: Optional[str] = None

        try:
            tx = await loop.run_in_executor(
                None, self.build_transaction, plan, base, quote, amount_in, gas
            )
            tx_hash = await loop.run_in_executor(None, self._send, tx)
            logger.info(f"Transaction Hash: {tx_hash}")

            receipt = await loop.run_in_executor(None, self._wait, tx_hash)
            if receipt["status"] != 1:
                raise ExecutionError("Transaction reverted", tx_hash=tx_hash)
        except Exception as e:
            elapsed_ms = (time.time() - start_time) * 1000
            logger.error(f"Execution failed after {elapsed_ms:.0f}ms: {e!r}")
            return ExecutionResult(success=False, tx_hash=tx_hash, error=str(e))

        self.executions_successful += 1
        logger.info(
            f"Transaction confirmed in block {receipt['blockNumber']} "
            f"(gas used {receipt['gasUsed']})"
        )
        return ExecutionResult(
            success=True,
            tx_hash=tx_hash,
            gas_used=receipt["gasUsed"],
            block_number=receipt["blockNumber"],
        )
