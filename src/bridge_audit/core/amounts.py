"""
Amount primitives: integer minor units and their Decimal bridges.

- Amounts are plain ints of minor units (1e-6 token); no floats anywhere in core.
- Non-negative domain: negative or non-integer values are rejected at input.
- Decimal is used only at the I/O boundary (ledger JSON values, display).
- Conversions from ledger values floor to whole minor units, the same way
  XRPL drops are floored on the OUT path (never credit more than delivered).
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Union

from .constants import AMOUNT_QUANTUM
from .exc import AmountDomainError

# Debug printing control
DEBUG_AMOUNTS = False

def _dbg(msg: str) -> None:
    if DEBUG_AMOUNTS:
        print(msg)


# ----------------------------
# Integer helpers (centralised)
# ----------------------------

def _floor_div(a: int, b: int) -> int:
    if a < 0 or b <= 0:
        raise AmountDomainError("_floor_div expects a>=0 and b>0")
    return a // b


def require_amount(value: object, what: str = "amount") -> int:
    """Return `value` if it is a non-negative int, else raise AmountDomainError.

    `bool` is rejected even though it subclasses int.
    """
    if value is None:
        raise AmountDomainError(f"{what} is missing")
    if isinstance(value, bool) or not isinstance(value, int):
        raise AmountDomainError(f"{what} must be an int of minor units, got {type(value).__name__}")
    if value < 0:
        raise AmountDomainError(f"{what} must be >= 0, got {value}")
    return value


# ----------------------------
# Decimal bridges (I/O only)
# ----------------------------

DecimalLike = Union[Decimal, int, str]


def to_decimal(x: DecimalLike) -> Decimal:
    """Convert a numeric-like ledger value to Decimal (I/O boundary)."""
    if isinstance(x, Decimal):
        return x
    if isinstance(x, float):
        raise AmountDomainError("float amounts are not accepted; pass str or Decimal")
    try:
        return Decimal(str(x))
    except InvalidOperation:
        raise AmountDomainError(f"not a decimal amount: {x!r}")


def minor_units_from_decimal(x: DecimalLike) -> int:
    """Floor a whole-token Decimal value to integer minor units."""
    d = to_decimal(x)
    if d.is_nan() or d.is_infinite():
        raise AmountDomainError("minor_units_from_decimal: invalid Decimal")
    if d < 0:
        raise AmountDomainError("minor_units_from_decimal: negative not allowed")
    q = (d / AMOUNT_QUANTUM).to_integral_value(rounding=ROUND_DOWN)
    _dbg(f"minor_units_from_decimal: {d} -> {q}")
    return int(q)


def decimal_from_minor_units(units: int) -> Decimal:
    """Return the whole-token Decimal for integer minor units (display only)."""
    require_amount(units, "minor units")
    return Decimal(units) * AMOUNT_QUANTUM


__all__ = [
    "require_amount",
    "to_decimal",
    "minor_units_from_decimal",
    "decimal_from_minor_units",
]
