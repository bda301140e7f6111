"""
Fixed-point conversions between on-chain integer units and display values.

On-chain amounts are plain integers scaled by ``10 ** decimals``. Everything
the bot compares, subtracts or prints is a ``Decimal`` in display units. All
conversions live here so that each crossing between the two representations
has one documented rounding rule:

- ``to_display``        integer -> Decimal, exact (no rounding)
- ``to_onchain_units``  Decimal -> integer, ROUND_DOWN (never overspend)
- ``format_fixed``      Decimal -> str, ROUND_HALF_UP (display only)

Gas prices are quoted in gwei of the chain's native token while profit is
measured in the base token, so gas cost must go through
``gas_cost_in_base`` before it is subtracted from a token amount.
"""

from decimal import ROUND_DOWN, ROUND_HALF_UP, Context, Decimal, localcontext
from typing import Union

Number = Union[int, str, Decimal]

# uint256 has 78 decimal digits; the default 28-digit context would truncate
# 18-decimal token amounts with more than 10 integer digits.
DECIMAL_CONTEXT = Context(prec=78, rounding=ROUND_DOWN)

NATIVE_DECIMALS = 18
GWEI_DECIMALS = 9


def to_decimal(value: Number) -> Decimal:
    """Convert int/str/Decimal to Decimal without going through float."""
    if isinstance(value, float):
        raise TypeError("floats are not accepted for token amounts; pass a str")
    if isinstance(value, Decimal):
        return value
    return Decimal(value)


def to_display(raw: int, decimals: int) -> Decimal:
    """
    Convert an on-chain integer amount to display units.

    Exact: scaling by a power of ten only moves the exponent.

    Args:
        raw: Amount in the token's smallest unit
        decimals: Token decimals

    Returns:
        Decimal amount in display units
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative: {decimals}")
    return Decimal(int(raw)).scaleb(-decimals, context=DECIMAL_CONTEXT)


def to_onchain_units(value: Number, decimals: int) -> int:
    """
    Convert a display amount to the token's smallest unit.

    Rounds toward zero, so the integer never exceeds the display value.

    Args:
        value: Amount in display units
        decimals: Token decimals

    Returns:
        Integer amount in the token's smallest unit
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative: {decimals}")
    scaled = to_decimal(value).scaleb(decimals, context=DECIMAL_CONTEXT)
    return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def gwei_to_wei(gwei: Number) -> int:
    """Convert a gas price in gwei to wei (ROUND_DOWN below 1 wei)."""
    return to_onchain_units(gwei, GWEI_DECIMALS)


def wei_to_native(wei: int) -> Decimal:
    """Convert wei to whole native-token units (exact)."""
    return to_display(wei, NATIVE_DECIMALS)


def gas_cost_in_base(
    gas_limit: int, gas_price_gwei: Number, native_price_in_base: Number = 1
) -> Decimal:
    """
    Estimated transaction cost expressed in base-token display units.

    gas_limit * gas_price is in wei; it is converted to native units and
    then priced in the base token. ``native_price_in_base`` is 1 when the
    base token is the wrapped native token (e.g. WETH on Ethereum).

    Args:
        gas_limit: Gas units reserved for the trade
        gas_price_gwei: Gas price in gwei
        native_price_in_base: Base-token value of one native token

    Returns:
        Gas cost as a Decimal in base-token display units
    """
    if gas_limit < 0:
        raise ValueError(f"gas_limit must be non-negative: {gas_limit}")
    price_gwei = to_decimal(gas_price_gwei)
    if price_gwei < 0:
        raise ValueError(f"gas price must be non-negative: {price_gwei}")

    with localcontext(DECIMAL_CONTEXT):
        cost_native = Decimal(gas_limit) * price_gwei.scaleb(-GWEI_DECIMALS)
        return cost_native * to_decimal(native_price_in_base)


def format_fixed(value: Number, places: int) -> str:
    """Render a Decimal with a fixed number of fractional digits."""
    quantum = Decimal(1).scaleb(-places)
    rounded = to_decimal(value).quantize(
        quantum, rounding=ROUND_HALF_UP, context=DECIMAL_CONTEXT
    )
    return f"{rounded:f}"


def ratio(numerator: Number, denominator: Number) -> Decimal:
    """Full-precision Decimal division."""
    with localcontext(DECIMAL_CONTEXT):
        return to_decimal(numerator) / to_decimal(denominator)
