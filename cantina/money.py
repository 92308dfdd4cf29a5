"""Money helpers: amounts are Decimals with exactly two fractional digits"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Annotated

from pydantic import BeforeValidator, PlainSerializer

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def D(x) -> Decimal:
    return x if isinstance(x, Decimal) else Decimal(str(x or "0"))


def round_money(x) -> Decimal:
    return D(x).quantize(CENT, rounding=ROUND_HALF_UP)


def to_string_money(x) -> str:
    return f"{round_money(x):.2f}"


def parse_money(x) -> Decimal:
    """Validate a wire amount; invalid input raises ValueError"""
    if x is None or (isinstance(x, str) and not x.strip()):
        raise ValueError("amount is required")
    try:
        value = round_money(x)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"invalid money amount: {x!r}")
    if not value.is_finite():
        raise ValueError(f"invalid money amount: {x!r}")
    return value


# Wire type: accepts strings or numbers, always serialized as "12.34"
Money = Annotated[
    Decimal,
    BeforeValidator(parse_money),
    PlainSerializer(to_string_money, return_type=str),
]
