"""Money helpers -- Decimal arithmetic on cents, round-half-up.

All currency values inside the system are `Decimal` quantized to two places.
Floats only appear at the JSON boundary.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Annotated, Any

from pydantic import BeforeValidator, PlainSerializer

CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Convert an int/float/str/Decimal to Decimal without binary float artifacts."""
    if isinstance(value, bool):
        raise ValueError("bool is not a money value")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        # repr() gives the shortest string that round-trips, so 0.1 -> "0.1"
        result = Decimal(repr(value))
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(value)
        except InvalidOperation as exc:
            raise ValueError(f"Not a number: {value!r}") from exc
    else:
        raise ValueError(f"Cannot convert {type(value).__name__} to Decimal")

    if not result.is_finite():
        raise ValueError(f"Money values must be finite, got {value!r}")
    return result


def round2(value: Any) -> Decimal:
    """Round to cents with round-half-up semantics.

    The context precision is raised to fit the value, so amounts wider than
    the default 28 digits quantize instead of raising InvalidOperation.
    """
    amount = to_decimal(value)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, amount.adjusted() + 3)
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def multiply_money(price: Any, quantity: Any) -> Decimal:
    """Exact `price * quantity`, rounded to cents."""
    a, b = to_decimal(price), to_decimal(quantity)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(a.as_tuple().digits) + len(b.as_tuple().digits))
        return round2(a * b)


def add_money(a: Any, b: Any) -> Decimal:
    """Exact `a + b`, rounded to cents. Subtract with `b.copy_negate()`, which is exact."""
    x, y = to_decimal(a), to_decimal(b)
    with localcontext() as ctx:
        # one extra digit for the carry, one for the leading position
        span = max(x.adjusted(), y.adjusted()) - min(x.as_tuple().exponent, y.as_tuple().exponent)
        ctx.prec = max(ctx.prec, span + 2)
        return round2(x + y)


def format_money(value: Decimal) -> str:
    """Display helper: Decimal('8800') -> '$8,800.00'."""
    amount = round2(value)
    if amount < 0:
        return f"-${amount.copy_abs():,.2f}"
    return f"${amount:,.2f}"


def to_json_number(value: Decimal) -> float:
    return float(value)


def to_json_string(value: Decimal) -> str:
    """Exact persisted form: Decimal('8800') -> '8800.00'."""
    return str(round2(value))


# Pydantic field type: any numeric input is rounded to cents, JSON output is a number.
Money = Annotated[
    Decimal,
    BeforeValidator(round2),
    PlainSerializer(to_json_number, return_type=float, when_used="json"),
]
