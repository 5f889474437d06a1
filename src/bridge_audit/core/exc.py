"""
Core exception types for bridge_audit.

These are dependency-free and may be imported by all modules. Data-quality
anomalies (orphans, mismatches, bad memos) are never raised: they are returned
as classified records. Exceptions here mean the run itself cannot be trusted.
"""

__all__ = [
    "AuditError",
    "AmountDomainError",
    "InvalidTransactionError",
    "ConfigurationError",
    "FeeScheduleNotFoundError",
    "InvalidWindowError",
    "FetchError",
]


class AuditError(Exception):
    """Base class for every error raised by bridge_audit."""
    pass


class AmountDomainError(AuditError, ValueError):
    """Raised when amounts or fee fields violate the non-negative integer domain."""
    pass


class InvalidTransactionError(AuditError, ValueError):
    """Raised when a transaction record is built from malformed input."""
    pass


class ConfigurationError(AuditError):
    """Raised when run parameters or fee policy are unusable."""
    pass


class FeeScheduleNotFoundError(ConfigurationError):
    """Raised when no fee schedule is effective at a transaction timestamp.

    Attributes
    ----------
    timestamp : datetime
        The transaction time that no schedule covers.
    tx_hash : str | None
        Hash of the transaction being classified, for context.
    """

    def __init__(self, timestamp, *, tx_hash=None):
        where = f" (tx {tx_hash})" if tx_hash else ""
        super().__init__(f"no fee schedule is effective at {timestamp.isoformat()}{where}")
        self.timestamp = timestamp
        self.tx_hash = tx_hash


class InvalidWindowError(ConfigurationError):
    """Raised when the report window starts after it ends."""

    def __init__(self, window_start, window_end):
        super().__init__(
            f"window start {window_start.isoformat()} is after window end {window_end.isoformat()}"
        )
        self.window_start = window_start
        self.window_end = window_end


class FetchError(AuditError):
    """Raised when a remote ledger/API call fails after all retries."""

    def __init__(self, message, *, url=None, attempts=None):
        super().__init__(message)
        self.url = url
        self.attempts = attempts
