from __future__ import annotations

from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP


DIM_QUANT = Decimal("0.001")
PCT_QUANT = Decimal("0.01")
ZERO = Decimal("0")


def ceil_decimal(value: Decimal, quant: Decimal) -> Decimal:
    return value.quantize(quant, rounding=ROUND_CEILING)


def round_decimal(value: Decimal, quant: Decimal) -> Decimal:
    return value.quantize(quant, rounding=ROUND_HALF_UP)


def round_pct(value: Decimal) -> Decimal:
    return round_decimal(value, PCT_QUANT)


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("bool is not a dimension")
    return Decimal(str(value))
