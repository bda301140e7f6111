"""
Startup wiring: connect, resolve tokens and pairs, assemble the orchestrator.

Every failure here is fatal and surfaces as ConfigurationError before any
cycle runs.
"""

from typing import Optional

from eth_account import Account
from web3 import Web3

from .abi import ERC20_ABI, UNISWAP_V2_FACTORY_ABI, UNISWAP_V2_PAIR_ABI
from .adapters.v2 import V2ChainClient, checksum
from .config import BotConfig
from .exceptions import ConfigurationError
from .executor import TradeExecutor
from .orchestrator import Orchestrator
from .simulator import ProfitabilitySimulator
from .types import GasParams, PoolHandle, Token
from .utils import get_logger, short_address

logger = get_logger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def connect(rpc_url: str, timeout: int = 30) -> Web3:
    """Open an HTTP provider and verify the node answers."""
    logger.info(f"Connecting to RPC: {rpc_url}")
    web3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
    try:
        connected = web3.is_connected()
    except Exception as e:
        raise ConfigurationError(f"Could not reach RPC {rpc_url}: {e}") from e
    if not connected:
        raise ConfigurationError(f"Could not reach RPC {rpc_url}")
    logger.info(f"Connected (chain id {web3.eth.chain_id})")
    return web3


def resolve_token(web3: Web3, address: str) -> Token:
    """Read symbol, name and decimals of an ERC-20 token."""
    address = _checksum(address)
    contract = web3.eth.contract(address=address, abi=ERC20_ABI)
    try:
        token = Token(
            address=address,
            decimals=int(contract.functions.decimals().call()),
            symbol=contract.functions.symbol().call(),
            name=contract.functions.name().call(),
        )
    except Exception as e:
        raise ConfigurationError(f"Failed to read token {address}: {e}") from e
    logger.info(
        f"Token resolved: {token.symbol} ({token.name}), {token.decimals} decimals"
    )
    return token


def resolve_pool(
    web3: Web3, exchange: dict, base: Token, quote: Token
) -> PoolHandle:
    """Look up the pair for base/quote through the exchange's factory."""
    factory = web3.eth.contract(
        address=_checksum(exchange["factory"]), abi=UNISWAP_V2_FACTORY_ABI
    )
    try:
        pair_address = factory.functions.getPair(base.address, quote.address).call()
    except Exception as e:
        raise ConfigurationError(
            f"getPair failed on {exchange['name']} factory: {e}"
        ) from e

    pair_address = Web3.to_checksum_address(pair_address)
    if pair_address == ZERO_ADDRESS:
        raise ConfigurationError(
            f"No {base.symbol}/{quote.symbol} pair on {exchange['name']}"
        )

    pair = web3.eth.contract(address=pair_address, abi=UNISWAP_V2_PAIR_ABI)
    try:
        token0 = Web3.to_checksum_address(pair.functions.token0().call())
        token1 = Web3.to_checksum_address(pair.functions.token1().call())
    except Exception as e:
        raise ConfigurationError(f"Failed to read pair {pair_address}: {e}") from e

    logger.info(f"{exchange['name']} pair address: {pair_address}")
    return PoolHandle(
        exchange=exchange["name"],
        pair_address=pair_address,
        router_address=_checksum(exchange["router"]),
        token0=token0,
        token1=token1,
    )


def build_orchestrator(
    config: BotConfig, web3: Optional[Web3] = None
) -> Orchestrator:
    """
    Assemble a ready-to-run Orchestrator from config.

    Args:
        config: Validated BotConfig
        web3: Existing connection (a new one is opened if None)

    Raises:
        ConfigurationError: If any startup lookup fails
    """
    web3 = web3 or connect(config.rpc_url)

    base = resolve_token(web3, config.base_token)
    quote = resolve_token(web3, config.quote_token)
    pool_a = resolve_pool(web3, config.exchange_a, base, quote)
    pool_b = resolve_pool(web3, config.exchange_b, base, quote)

    account = None
    if config.private_key:
        try:
            account = Account.from_key(config.private_key)
        except Exception as e:
            raise ConfigurationError(f"Failed to load private key: {e}") from e
        logger.info(f"Loaded account: {account.address}")

    executor = None
    if config.execution_enabled:
        executor = TradeExecutor(
            web3,
            account,
            _checksum(config.arbitrage_contract),
            exchange_a=pool_a.exchange,
            receipt_timeout=config.receipt_timeout_sec,
        )
        logger.info(
            f"Execution enabled via contract {short_address(config.arbitrage_contract)}"
        )
    else:
        logger.info("Execution disabled: profitable trades are reported only")

    chain = V2ChainClient(web3)
    simulator = ProfitabilitySimulator(
        chain,
        base,
        quote,
        gas_limit=config.gas_limit,
        gas_price_gwei=config.gas_price_gwei,
        native_price_in_base=config.native_price_in_base,
        slippage_tolerance_pct=config.slippage_tolerance_pct,
        min_profit=config.min_profit,
    )
    return Orchestrator(
        chain,
        pool_a,
        pool_b,
        base,
        quote,
        simulator,
        threshold_pct=config.price_difference_pct,
        gas=GasParams(config.gas_limit, config.gas_price_gwei),
        executor=executor,
        account=account.address if account else None,
        units=config.units,
        native_symbol=config.native_symbol,
    )


def _checksum(address: str) -> str:
    try:
        return checksum(address)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e
