"""
Bridge Audit Core Constants (integer domain)
============================================

Only integer constants and fixed epochs live here. Display quanta that rely on
Decimal are used by `fmt.py` and the ledger fetchers at the I/O boundary.
"""

# NOTE: every monetary quantity in core is an int of minor units (1e-6 token).

from datetime import datetime, timezone
from decimal import Decimal

# ---------------------------------------------------------------------------
# Minor units and fee ratios
# ---------------------------------------------------------------------------

#: Number of decimal places carried by bridged amounts on both ledgers.
AMOUNT_DECIMALS: int = 6

#: Integer bridge: minor units per whole token (ucore per CORE).
MINOR_UNITS_PER_TOKEN: int = 10 ** AMOUNT_DECIMALS

#: Fee ratios are expressed per mille so fees stay in integer arithmetic.
PER_MILLE: int = 1000

# Minimum quantisation step for display of minor-unit amounts.
AMOUNT_QUANTUM: Decimal = Decimal("1e-6")


# ---------------------------------------------------------------------------
# Memo layout
# ---------------------------------------------------------------------------

#: Separator used by both bridge memo formats.
MEMO_SEPARATOR: str = ":"

#: Destination memo: <bridgeChainIndex>:<sourceTxHash>:<sequence>
DEST_MEMO_FIELDS: int = 3

#: Source memo: <targetAddress>:<bridgeChainIndex>
SOURCE_MEMO_FIELDS: int = 2


# ---------------------------------------------------------------------------
# Epochs
# ---------------------------------------------------------------------------

#: XRPL `date` fields count seconds since 2000-01-01T00:00:00Z.
RIPPLE_EPOCH: datetime = datetime(2000, 1, 1, tzinfo=timezone.utc)


__all__ = [
    "AMOUNT_DECIMALS",
    "MINOR_UNITS_PER_TOKEN",
    "PER_MILLE",
    "AMOUNT_QUANTUM",
    "MEMO_SEPARATOR",
    "DEST_MEMO_FIELDS",
    "SOURCE_MEMO_FIELDS",
    "RIPPLE_EPOCH",
]
