"""Price conversions for concentrated liquidity pools."""

from __future__ import annotations

import logging
from decimal import Decimal, localcontext

logger = logging.getLogger(__name__)


def _exponent(value: float) -> int | Decimal:
    return int(value) if float(value).is_integer() else Decimal(str(value))


def from_x64_orca_wp(num: int, decimals_0: float, decimals_1: float) -> Decimal:
    """Convert a Q64.64 square-root price into a price of token A in token B."""
    logger.debug("numX64: %s", num)
    with localcontext() as ctx:
        ctx.prec = 60
        sqrt_price = Decimal(num) * Decimal(2) ** -64
        scale = Decimal(10) ** _exponent(decimals_0 - decimals_1)
        return sqrt_price ** 2 * scale