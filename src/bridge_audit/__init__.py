# Top-level API for bridge_audit (integer-domain).
"""
Top-level API for bridge_audit.

This module exposes the stable interface of the XRPL -> Coreum bridge auditor:
  - find_audit_tx_discrepancies: reconcile both ledgers and classify anomalies
  - build_summary: aggregate totals over a full discrepancy list
  - XrplClient / CoreumClient: ledger fetchers producing AuditTx records

Amounts are ints of minor units throughout; Decimal appears only at the I/O
boundary (ledger JSON values and report formatting).
"""

# NOTE:
#   The reconciliation engine (`audit`, `summary`, `core`) is pure and performs
#   no I/O. Network access lives in `xrpl`, `coreum` and `rescan`; files are
#   written only by `export` and `settlement`.

from __future__ import annotations

from .core import (
    AuditTx,
    DiscrepancyKind,
    TxDiscrepancy,
    FeeSchedule,
    select_fee_schedule,
    amount_after_fee,
    AuditError,
    ConfigurationError,
    FeeScheduleNotFoundError,
    InvalidWindowError,
    FetchError,
)
from .audit import decode_correlation_id, match_transactions, find_audit_tx_discrepancies
from .summary import Summary, build_summary
from .config import AuditConfig, DEFAULT_FEE_SCHEDULES, load_config
from .xrpl import XrplClient
from .coreum import CoreumClient

__all__ = [
    # reconciliation
    "decode_correlation_id",
    "match_transactions",
    "find_audit_tx_discrepancies",
    "Summary",
    "build_summary",
    # data types and fee policy
    "AuditTx",
    "DiscrepancyKind",
    "TxDiscrepancy",
    "FeeSchedule",
    "select_fee_schedule",
    "amount_after_fee",
    # configuration
    "AuditConfig",
    "DEFAULT_FEE_SCHEDULES",
    "load_config",
    # ledger clients
    "XrplClient",
    "CoreumClient",
    # errors
    "AuditError",
    "ConfigurationError",
    "FeeScheduleNotFoundError",
    "InvalidWindowError",
    "FetchError",
]
