"""
Bridge Audit Core
=================

Unified exports for integer-domain primitives used by the reconciliation engine.
All arithmetic is exact on ints of minor units. Decimal helpers are provided
*only* for I/O and formatting.
"""

# NOTE:
#   Everything under `core` is pure: no I/O, no logging handlers, no shared
#   mutable state. Ledger fetchers and the CLI live one level up.

# Integer-domain constants
from .constants import (
    AMOUNT_DECIMALS,
    MINOR_UNITS_PER_TOKEN,
    PER_MILLE,
    AMOUNT_QUANTUM,
    MEMO_SEPARATOR,
    DEST_MEMO_FIELDS,
    SOURCE_MEMO_FIELDS,
    RIPPLE_EPOCH,
)

# Amount primitives and bridges
from .amounts import (
    require_amount,
    to_decimal,
    minor_units_from_decimal,
    decimal_from_minor_units,
)

# Formatting helpers (non-core arithmetic)
from .fmt import (
    fmt_token_amount,
    fmt_optional_int,
    fmt_timestamp,
    fmt_duration,
)

# Core datatypes
from .datatypes import (
    AuditTx,
    DiscrepancyKind,
    TxDiscrepancy,
    make_discrepancy,
)

# Fee policy
from .fees import (
    FeeSchedule,
    select_fee_schedule,
    compute_fee,
    amount_after_fee,
    amount_in_range,
)

# Ordering utilities: window, stable sort
from .ordering import (
    check_window,
    apply_time_window,
    stable_sort_by_time,
    order_and_filter,
)

# Core exceptions
from .exc import (
    AuditError,
    AmountDomainError,
    InvalidTransactionError,
    ConfigurationError,
    FeeScheduleNotFoundError,
    InvalidWindowError,
    FetchError,
)

__all__ = [
    # constants
    "AMOUNT_DECIMALS",
    "MINOR_UNITS_PER_TOKEN",
    "PER_MILLE",
    "AMOUNT_QUANTUM",
    "MEMO_SEPARATOR",
    "DEST_MEMO_FIELDS",
    "SOURCE_MEMO_FIELDS",
    "RIPPLE_EPOCH",
    # amounts
    "require_amount",
    "to_decimal",
    "minor_units_from_decimal",
    "decimal_from_minor_units",
    # fmt
    "fmt_token_amount",
    "fmt_optional_int",
    "fmt_timestamp",
    "fmt_duration",
    # datatypes
    "AuditTx",
    "DiscrepancyKind",
    "TxDiscrepancy",
    "make_discrepancy",
    # fees
    "FeeSchedule",
    "select_fee_schedule",
    "compute_fee",
    "amount_after_fee",
    "amount_in_range",
    # ordering
    "check_window",
    "apply_time_window",
    "stable_sort_by_time",
    "order_and_filter",
    # exceptions
    "AuditError",
    "AmountDomainError",
    "InvalidTransactionError",
    "ConfigurationError",
    "FeeScheduleNotFoundError",
    "InvalidWindowError",
    "FetchError",
]
