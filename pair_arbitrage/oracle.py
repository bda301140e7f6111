"""
Price oracle: spot price of one pool from a fresh reserve read.
"""

from .exceptions import ChainCallError, ReservesUnavailable
from .types import PoolHandle, PriceQuote, Token
from .units import ratio, to_display
from .utils import get_logger

logger = get_logger(__name__)


async def quote_price(chain, pool: PoolHandle, base: Token, quote: Token) -> PriceQuote:
    """
    Sample the pool's spot price.

    The price is the amount of quote token per one base token, computed from
    display-normalized reserves. With the quote token as token0 this is
    reserve0 / reserve1; otherwise the inverse. Full-precision Decimal
    division, never integer division.

    Args:
        chain: Chain client exposing ``get_reserves(pool)``
        pool: Pool to sample
        base: Base token (ARB_FOR)
        quote: Quote token (ARB_AGAINST)

    Returns:
        PriceQuote tagged with exchange, block and the reserves snapshot

    Raises:
        ReservesUnavailable: If the read fails or the reserves are unusable
    """
    if not (pool.holds(base) and pool.holds(quote)):
        raise ReservesUnavailable(
            f"{pool.exchange} pair {pool.pair_address} does not hold "
            f"{base.symbol}/{quote.symbol}",
            exchange=pool.exchange,
        )

    try:
        reserves = await chain.get_reserves(pool)
    except ChainCallError as e:
        raise ReservesUnavailable(
            f"Could not read reserves on {pool.exchange}: {e}",
            exchange=pool.exchange,
            details={"pair": pool.pair_address},
        ) from e

    reserve_base = reserves.of(pool, base)
    reserve_quote = reserves.of(pool, quote)
    if reserve_base <= 0 or reserve_quote <= 0:
        raise ReservesUnavailable(
            f"{pool.exchange} pair has empty reserves "
            f"({reserves.reserve0}, {reserves.reserve1})",
            exchange=pool.exchange,
        )

    price = ratio(
        to_display(reserve_quote, quote.decimals),
        to_display(reserve_base, base.decimals),
    )
    logger.debug(
        f"{pool.exchange} reserves=({reserves.reserve0}, {reserves.reserve1}) "
        f"block={reserves.block_number} price={price}"
    )
    return PriceQuote(
        exchange=pool.exchange,
        price=price,
        block_number=reserves.block_number,
        reserves=reserves,
    )
