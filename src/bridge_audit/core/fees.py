"""
Fee schedules: time-scoped bridge fee policy and exact fee arithmetic.

The bridge changed its fee policy several times, so every schedule carries the
instant it became effective. A transaction is priced by the schedule with the
latest `effective_from` that is not after the transaction time; destination
data never influences the choice.

    fee = floor(amount * fee_ratio_per_mille / 1000)
    fee = max(min_fee, min(max_fee, fee))
    amount_after_fee = amount - fee

All arithmetic is integer; fee ratios are per mille to avoid fractions.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from .amounts import _floor_div, require_amount
from .constants import PER_MILLE
from .exc import AmountDomainError, ConfigurationError, FeeScheduleNotFoundError


@dataclass(frozen=True)
class FeeSchedule:
    """One fee policy, effective from `effective_from` until superseded."""

    effective_from: datetime
    fee_ratio_per_mille: int
    min_fee: int
    max_fee: int
    min_amount: int
    max_amount: int

    def __post_init__(self):
        if not isinstance(self.effective_from, datetime) or self.effective_from.tzinfo is None:
            raise ConfigurationError("FeeSchedule.effective_from must be a timezone-aware datetime")
        for name in ("fee_ratio_per_mille", "min_fee", "max_fee", "min_amount", "max_amount"):
            require_amount(getattr(self, name), f"FeeSchedule.{name}")
        if self.min_fee > self.max_fee:
            raise AmountDomainError(f"min_fee={self.min_fee} exceeds max_fee={self.max_fee}")
        if self.min_amount > self.max_amount:
            raise AmountDomainError(f"min_amount={self.min_amount} exceeds max_amount={self.max_amount}")


def select_fee_schedule(schedules: Iterable[FeeSchedule], timestamp: datetime, *, tx_hash=None) -> FeeSchedule:
    """Return the schedule in force at `timestamp`.

    Among schedules with `effective_from <= timestamp` the latest one wins,
    whatever the input order. Raises FeeScheduleNotFoundError when none
    qualifies; callers must not substitute a default.
    """
    best = None
    for schedule in schedules:
        if schedule.effective_from > timestamp:
            continue
        if best is None or schedule.effective_from > best.effective_from:
            best = schedule
    if best is None:
        raise FeeScheduleNotFoundError(timestamp, tx_hash=tx_hash)
    return best


def compute_fee(amount: int, schedule: FeeSchedule) -> int:
    """Proportional fee clamped to [min_fee, max_fee]."""
    require_amount(amount)
    fee = _floor_div(amount * schedule.fee_ratio_per_mille, PER_MILLE)
    return max(schedule.min_fee, min(schedule.max_fee, fee))


def amount_after_fee(amount: int, schedule: FeeSchedule) -> int:
    """Amount the destination should receive for a source `amount`.

    May go negative when the minimum fee exceeds the amount; such amounts are
    outside any sane schedule's eligible range and are filtered before matching.
    """
    return amount - compute_fee(amount, schedule)


def amount_in_range(amount: int, schedule: FeeSchedule) -> bool:
    """True iff `min_amount <= amount <= max_amount`."""
    return schedule.min_amount <= amount <= schedule.max_amount


__all__ = [
    "FeeSchedule",
    "select_fee_schedule",
    "compute_fee",
    "amount_after_fee",
    "amount_in_range",
]
