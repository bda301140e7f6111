"""
Direction resolver: turns two spot prices into a buy/sell plan.

Sign convention (fixed, do not invert): a positive divergence means the
base token is dearer (in quote terms) on exchange A, so it is bought on B
and sold on A.
"""

from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Optional

from .types import DirectionPlan, PoolHandle, PriceQuote
from .units import DECIMAL_CONTEXT, to_decimal
from .utils import get_logger

logger = get_logger(__name__)

HUNDRED = Decimal(100)
REPORT_QUANTUM = Decimal("0.01")


def percent_difference(price_a: Decimal, price_b: Decimal) -> Decimal:
    """(A - B) / B * 100 at full precision."""
    if price_b <= 0:
        raise ValueError(f"price_b must be positive: {price_b}")
    with localcontext(DECIMAL_CONTEXT):
        return (price_a - price_b) / price_b * HUNDRED


def round_for_report(pct_diff: Decimal) -> Decimal:
    return pct_diff.quantize(
        REPORT_QUANTUM, rounding=ROUND_HALF_UP, context=DECIMAL_CONTEXT
    )


def resolve_direction(
    quote_a: PriceQuote,
    quote_b: PriceQuote,
    threshold_pct,
    pool_a: PoolHandle,
    pool_b: PoolHandle,
) -> Optional[DirectionPlan]:
    """
    Decide which exchange to buy on and which to sell on.

    The threshold comparison uses the full-precision difference and is
    inclusive at the boundary. A threshold of 0 accepts any nonzero
    divergence; identical prices never produce a plan.

    Args:
        quote_a: Price sampled on exchange A
        quote_b: Price sampled on exchange B
        threshold_pct: Minimum divergence in percent (non-negative)
        pool_a: Pool of exchange A
        pool_b: Pool of exchange B

    Returns:
        DirectionPlan, or None when the divergence is below threshold
    """
    threshold = to_decimal(threshold_pct)
    if threshold < 0:
        raise ValueError(f"threshold_pct must be non-negative: {threshold}")

    pct_diff = percent_difference(quote_a.price, quote_b.price)
    reported = round_for_report(pct_diff)

    if pct_diff == 0:
        return None

    if pct_diff >= threshold:
        logger.info(
            f"Divergence {reported}%: buy on {pool_b.exchange}, "
            f"sell on {pool_a.exchange}"
        )
        return DirectionPlan(buy_on=pool_b, sell_on=pool_a, pct_diff=reported)

    if pct_diff <= -threshold:
        logger.info(
            f"Divergence {reported}%: buy on {pool_a.exchange}, "
            f"sell on {pool_b.exchange}"
        )
        return DirectionPlan(buy_on=pool_a, sell_on=pool_b, pct_diff=reported)

    logger.debug(f"Divergence {reported}% below threshold {threshold}%")
    return None
