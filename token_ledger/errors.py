"""
Ledger Error Taxonomy

Every rejected call raises one of these. They subclass ValueError so the
API layer can keep catching domain rejections the usual way, while callers
that care can match the specific kind.
"""

from typing import Optional


class LedgerError(ValueError):
    """Base class for all ledger rejections"""

    error = "ledger_error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.error.replace("_", " "))


class AlreadyInitialized(LedgerError):
    """initialize() was called on a ledger that already has a supply"""
    error = "already_initialized"


class NotInitialized(LedgerError):
    """Operation needs an initialized ledger"""
    error = "not_initialized"


class Unauthorized(LedgerError):
    """Caller is not the ledger authority"""
    error = "unauthorized"


class Paused(LedgerError):
    """Ledger is paused and the caller holds no admin override"""
    error = "paused"


class Blacklisted(LedgerError):
    """Account is blacklisted"""
    error = "blacklisted"


class InsufficientBalance(LedgerError):
    error = "insufficient_balance"


class InsufficientAllowance(LedgerError):
    error = "insufficient_allowance"


class InvalidFee(LedgerError):
    """Burn fee outside 0..10000 basis points"""
    error = "invalid_fee"


class InvalidAmount(LedgerError):
    error = "invalid_amount"


class StorageFailure(LedgerError):
    """The audit record for a call could not be written; nothing was applied"""
    error = "storage_failure"
