"""
Configuration loading and validation for the pair arbitrage bot.

Exchange topology lives in a YAML file; per-run trading parameters can be
overridden from the environment (or a ``.env`` file) using these names:

    RPC_URL, ARB_FOR, ARB_AGAINST, UNITS, PRICE_DIFFERENCE,
    GAS_LIMIT, GAS_PRICE, PRIVATE_KEY

The private key is only ever read from the environment.
"""

import os
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .exceptions import ConfigurationError

# Environment variable -> config key
ENV_OVERRIDES = {
    "RPC_URL": "rpc_url",
    "ARB_FOR": "base_token",
    "ARB_AGAINST": "quote_token",
    "UNITS": "units",
    "PRICE_DIFFERENCE": "price_difference_pct",
    "GAS_LIMIT": "gas_limit",
    "GAS_PRICE": "gas_price_gwei",
}

PRIVATE_KEY_ENV = "PRIVATE_KEY"


class BotConfig:
    """
    Parsed and validated bot configuration.

    Attributes:
        rpc_url: HTTP(S) RPC endpoint
        poll_sec: Seconds between Swap log polls
        max_block_range: Most blocks one Swap log poll may request
        base_token: Address of the token held and measured in (ARB_FOR)
        quote_token: Address of the token traded against (ARB_AGAINST)
        units: Decimal places shown for prices
        price_difference_pct: Minimum price divergence (%) to simulate
        gas_limit: Gas limit for executeTrade
        gas_price_gwei: Gas price in gwei
        execution_enabled: If False, profitable trades are only reported
        arbitrage_contract: Deployed arbitrage contract address
        slippage_tolerance_pct: Haircut on simulated amount out (%)
        min_profit: Net profit (base token) a trade must exceed
        native_price_in_base: Base-token value of one native token
        native_symbol: Symbol of the chain's native token
        receipt_timeout_sec: Seconds to wait for a trade receipt
        exchanges: Exactly two dicts of {name, factory, router}; the first
            is exchange A
        private_key: Signing key from the environment (None if unset)
    """

    def __init__(
        self, config_dict: Dict[str, Any], env: Optional[Mapping[str, str]] = None
    ):
        """
        Parse and validate config, applying environment overrides.

        Args:
            config_dict: Loaded YAML config
            env: Environment mapping (defaults to os.environ)

        Raises:
            ConfigurationError: If required fields are missing or invalid
        """
        env = os.environ if env is None else env
        merged = dict(config_dict)
        for env_name, key in ENV_OVERRIDES.items():
            if env.get(env_name):
                merged[key] = env[env_name]

        self.rpc_url: str = self._get_required(merged, "rpc_url")
        if not self.rpc_url.startswith(("http://", "https://")):
            raise ConfigurationError(f"Invalid RPC URL format: {self.rpc_url}")
        self.poll_sec: float = self._number(merged, "poll_sec", float, 2.0)
        self.max_block_range: int = self._number(merged, "max_block_range", int, 100)
        if self.max_block_range < 1:
            raise ConfigurationError(
                f"max_block_range must be positive, got {self.max_block_range}"
            )

        self.base_token: str = self._get_required(merged, "base_token")
        self.quote_token: str = self._get_required(merged, "quote_token")
        if self.base_token.lower() == self.quote_token.lower():
            raise ConfigurationError("base_token and quote_token must differ")

        self.units: int = self._number(merged, "units", int, 18)
        if self.units < 0:
            raise ConfigurationError(f"units must be non-negative, got {self.units}")

        self.price_difference_pct: Decimal = self._decimal(
            merged, "price_difference_pct", "0.5"
        )
        if self.price_difference_pct < 0:
            raise ConfigurationError(
                f"price_difference_pct must be non-negative, "
                f"got {self.price_difference_pct}"
            )

        self.gas_limit: int = self._number(merged, "gas_limit", int, 400_000)
        self.gas_price_gwei: Decimal = self._decimal(merged, "gas_price_gwei", "20")
        if self.gas_limit <= 0 or self.gas_price_gwei < 0:
            raise ConfigurationError("gas_limit must be positive and gas price >= 0")

        self.execution_enabled: bool = bool(merged.get("execution_enabled", False))
        self.arbitrage_contract: Optional[str] = merged.get("arbitrage_contract")
        self.slippage_tolerance_pct: Decimal = self._decimal(
            merged, "slippage_tolerance_pct", "0"
        )
        if not Decimal(0) <= self.slippage_tolerance_pct < Decimal(100):
            raise ConfigurationError("slippage_tolerance_pct must be in [0, 100)")
        self.min_profit: Decimal = self._decimal(merged, "min_profit", "0")
        self.native_price_in_base: Decimal = self._decimal(
            merged, "native_price_in_base", "1"
        )
        self.native_symbol: str = str(merged.get("native_symbol", "ETH"))
        self.receipt_timeout_sec: int = self._number(
            merged, "receipt_timeout_sec", int, 120
        )

        self.exchanges: List[Dict[str, str]] = self._parse_exchanges(
            merged.get("exchanges", [])
        )

        self.private_key: Optional[str] = env.get(PRIVATE_KEY_ENV) or None

        if self.execution_enabled:
            if not self.arbitrage_contract:
                raise ConfigurationError(
                    "execution_enabled requires arbitrage_contract"
                )
            if not self.private_key:
                raise ConfigurationError(
                    f"execution_enabled requires the {PRIVATE_KEY_ENV} "
                    "environment variable"
                )

    @staticmethod
    def _get_required(d: Dict, key: str) -> str:
        """Get a required, non-empty string field."""
        if key not in d or d[key] in (None, ""):
            raise ConfigurationError(f"Missing required config field: {key}")
        val = d[key]
        if not isinstance(val, str):
            raise ConfigurationError(
                f"Config field '{key}' must be str, got {type(val).__name__}"
            )
        return val

    @staticmethod
    def _number(d: Dict, key: str, kind: type, default):
        val = d.get(key, default)
        try:
            return kind(val)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Config field '{key}' must be {kind.__name__}, got {val!r}"
            ) from e

    @staticmethod
    def _decimal(d: Dict, key: str, default: str) -> Decimal:
        """Parse via str() so YAML floats keep their written digits."""
        val = d.get(key, default)
        if isinstance(val, bool):
            raise ConfigurationError(f"Config field '{key}' must be a number")
        try:
            return Decimal(str(val))
        except InvalidOperation as e:
            raise ConfigurationError(
                f"Config field '{key}' must be a number, got {val!r}"
            ) from e

    @staticmethod
    def _parse_exchanges(exchanges_raw: List[Any]) -> List[Dict[str, str]]:
        """Parse and validate the two exchanges config."""
        if not isinstance(exchanges_raw, list) or len(exchanges_raw) != 2:
            raise ConfigurationError("exchanges must list exactly two exchanges")

        exchanges = []
        for i, exchange in enumerate(exchanges_raw):
            if not isinstance(exchange, dict):
                raise ConfigurationError(f"Exchange config {i} must be a dict")
            missing = [k for k in ("name", "factory", "router") if not exchange.get(k)]
            if missing:
                raise ConfigurationError(
                    f"Exchange config {i} missing {', '.join(missing)}"
                )
            exchanges.append(
                {
                    "name": str(exchange["name"]),
                    "factory": exchange["factory"],
                    "router": exchange["router"],
                }
            )

        if exchanges[0]["name"] == exchanges[1]["name"]:
            raise ConfigurationError("Exchange names must be unique")
        return exchanges

    @property
    def exchange_a(self) -> Dict[str, str]:
        return self.exchanges[0]

    @property
    def exchange_b(self) -> Dict[str, str]:
        return self.exchanges[1]


def load_config(
    config_path: str, env: Optional[Mapping[str, str]] = None
) -> BotConfig:
    """
    Load and validate config from a YAML file.

    Args:
        config_path: Path to config YAML file
        env: Environment mapping for overrides (defaults to os.environ)

    Returns:
        Validated BotConfig instance

    Raises:
        ConfigurationError: If config invalid or file not found
    """
    if not os.path.exists(config_path):
        raise ConfigurationError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse YAML: {e}") from e

    if not isinstance(config_dict, dict):
        raise ConfigurationError("Config file must contain a YAML dictionary")

    return BotConfig(config_dict, env)
