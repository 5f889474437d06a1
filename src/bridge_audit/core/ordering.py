"""
Ordering utilities for classified records: time window and stable sort.

Key behaviours:
- Sort by the record's sort timestamp (source side, else destination side),
  newest first, with stable tie-breaking on generation order.
- Apply a closed time window: keep a record iff
  `window_start <= timestamp <= window_end`. Either bound may be None (open).

Notes:
- Bounds are keyword-only; a window whose start is after its end is rejected.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterable, List, Optional, TypeVar

from .datatypes import TxDiscrepancy
from .exc import InvalidWindowError

# Debug printing control
DEBUG_ORDERING = False

def _dbg(msg: str) -> None:
    if DEBUG_ORDERING:
        print(msg)

T = TypeVar("T")


def _sort_timestamp(record: TxDiscrepancy) -> datetime:
    return record.sort_timestamp


def check_window(window_start: Optional[datetime], window_end: Optional[datetime]) -> None:
    """Raise InvalidWindowError if both bounds are set and start > end."""
    if window_start is not None and window_end is not None and window_start > window_end:
        raise InvalidWindowError(window_start, window_end)


def apply_time_window(
    items: Iterable[T],
    *,
    window_start: Optional[datetime],
    window_end: Optional[datetime],
    get_time: Callable[[T], datetime],
) -> List[T]:
    """Keep items whose time lies in the closed window [window_start, window_end]."""
    check_window(window_start, window_end)
    kept: List[T] = []
    for x in items:
        ts = get_time(x)
        if window_start is not None and ts < window_start:
            _dbg(f"apply_time_window: drop {ts.isoformat()} (before start)")
            continue
        if window_end is not None and ts > window_end:
            _dbg(f"apply_time_window: drop {ts.isoformat()} (after end)")
            continue
        kept.append(x)
    return kept


def stable_sort_by_time(
    items: Iterable[T],
    *,
    get_time: Callable[[T], datetime],
) -> List[T]:
    """Stable sort by time (descending, newest first).

    Python's built-in sort is stable, so items with equal time retain their
    original insertion order.
    """
    return sorted(items, key=get_time, reverse=True)


def order_and_filter(
    records: Iterable[TxDiscrepancy],
    *,
    window_start: Optional[datetime] = None,
    window_end: Optional[datetime] = None,
) -> List[TxDiscrepancy]:
    """Sort records newest first, then drop those outside the window."""
    ordered = stable_sort_by_time(records, get_time=_sort_timestamp)
    return apply_time_window(
        ordered,
        window_start=window_start,
        window_end=window_end,
        get_time=_sort_timestamp,
    )


__all__ = [
    "check_window",
    "apply_time_window",
    "stable_sort_by_time",
    "order_and_filter",
]
