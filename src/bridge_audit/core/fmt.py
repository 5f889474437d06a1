"""
Formatting helpers (non-core arithmetic).

Core arithmetic uses ints of minor units. Decimal here is only for rendering
amounts in whole tokens for reports and CSV cells.
"""

from datetime import datetime, timedelta
from typing import Optional

from .amounts import decimal_from_minor_units
from .constants import AMOUNT_DECIMALS


def fmt_token_amount(units: Optional[int], places: int = AMOUNT_DECIMALS) -> str:
    """Render minor units as a fixed-point whole-token string.

      1_000_000 -> '1.000000'
      7         -> '0.000007'
      None      -> '0.000000'
    """
    if units is None:
        units = 0
    return format(decimal_from_minor_units(units), f".{places}f")


def fmt_optional_int(value: Optional[int]) -> str:
    """Render an optional integer for a CSV cell; None becomes ''."""
    return "" if value is None else str(value)


def fmt_timestamp(ts: Optional[datetime]) -> str:
    """Render a timestamp as 'YYYY-MM-DD HH:MM:SS +0000 UTC'; None becomes ''."""
    if ts is None:
        return ""
    return ts.strftime("%Y-%m-%d %H:%M:%S %z %Z")


def fmt_duration(delta: timedelta) -> str:
    """Render a duration compactly, e.g. '1h2m3s', '45s', '-5s', '0s'."""
    total = int(delta.total_seconds())
    sign = "-" if total < 0 else ""
    total = abs(total)
    hours, rem = divmod(total, 3600)
    minutes, seconds = divmod(rem, 60)
    out = ""
    if hours:
        out += f"{hours}h"
    if hours or minutes:
        out += f"{minutes}m"
    out += f"{seconds}s"
    return sign + out


__all__ = [
    "fmt_token_amount",
    "fmt_optional_int",
    "fmt_timestamp",
    "fmt_duration",
]
