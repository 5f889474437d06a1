from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional
from unittest.mock import Mock

import pytest

from bridge_audit.core import AuditTx, FeeSchedule


# -----------------------------
# Test helpers (pure functions)
# -----------------------------

BASE_TIME = datetime(2023, 3, 20, 12, 0, 0, tzinfo=timezone.utc)
CHAIN_INDEX = "1007961752909"


def at(minutes: int = 0) -> datetime:
    """BASE_TIME shifted by `minutes`."""
    return BASE_TIME + timedelta(minutes=minutes)


def source_tx(
    hash: str,
    target: str,
    amount: int,
    *,
    ts: Optional[datetime] = None,
) -> AuditTx:
    """XRPL deposit carrying memo `<target>:<chainIndex>`."""
    return AuditTx(
        hash=hash,
        from_address="rSender",
        to_address="rBridge",
        target_address=target,
        amount=amount,
        memo=f"{target}:{CHAIN_INDEX}",
        timestamp=ts or BASE_TIME,
    )


def dest_tx(
    hash: str,
    target: str,
    amount: int,
    *,
    memo: Optional[str] = None,
    source_hash: Optional[str] = None,
    ts: Optional[datetime] = None,
) -> AuditTx:
    """Coreum payout; memo defaults to `<chainIndex>:<source_hash>:0`."""
    if memo is None:
        memo = f"{CHAIN_INDEX}:{source_hash}:0"
    return AuditTx(
        hash=hash,
        from_address="core1bridge",
        to_address=target,
        target_address=target,
        amount=amount,
        memo=memo,
        timestamp=ts or BASE_TIME + timedelta(minutes=1),
    )


def make_response(status_code: int = 200, payload=None, text: str = "") -> Mock:
    """Stand-in for requests.Response with json()/text/status_code."""
    r = Mock()
    r.status_code = status_code
    r.text = text or repr(payload)
    if isinstance(payload, Exception):
        r.json.side_effect = payload
    else:
        r.json.return_value = payload
    return r


# -----------------------------
# Fixtures
# -----------------------------

@pytest.fixture
def zero_fee_schedules():
    """One schedule with no fee and an effectively unbounded amount range."""
    return [
        FeeSchedule(
            effective_from=datetime(2021, 12, 1, tzinfo=timezone.utc),
            fee_ratio_per_mille=0,
            min_fee=0,
            max_fee=0,
            min_amount=0,
            max_amount=10 ** 18,
        )
    ]


@pytest.fixture
def bridge_schedule():
    """0.1% fee clamped to [7000, 50000], amounts in [8000, 100_000_000_000_000]."""
    return FeeSchedule(
        effective_from=datetime(2023, 3, 17, 13, 0, 0, tzinfo=timezone.utc),
        fee_ratio_per_mille=1,
        min_fee=7_000,
        max_fee=50_000,
        min_amount=8_000,
        max_amount=100_000_000_000_000,
    )


@pytest.fixture
def mock_session():
    """A requests.Session double; set `.request.side_effect` per test."""
    return Mock()
