from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

__all__ = ["CENT", "ZERO", "money", "to_decimal", "format_money", "format_percent"]

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[Decimal, int, float, str]


def to_decimal(v: Number) -> Decimal:
    """Convierte a Decimal pasando por str (evita artefactos de float)."""
    if isinstance(v, Decimal):
        return v
    return Decimal(str(v))


def money(v: Number) -> Decimal:
    return to_decimal(v).quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(v: Number, symbol: str = "Q") -> str:
    return f"{symbol}{money(v):,.2f}"


def format_percent(v: Number) -> str:
    # 20.00 -> "20", 12.50 -> "12.5"
    d = to_decimal(v)
    s = format(d.normalize(), "f")
    return s
