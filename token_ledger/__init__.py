"""
Tiered Burn Ledger

A fungible-token ledger where every transfer burns a share of the amount
according to the sender's tier, with a blacklist, a burn-exempt list and
a ledger-wide pause switch. All amounts are integer base units with 18
implied decimals.
"""

from .errors import (
    LedgerError, AlreadyInitialized, NotInitialized, Unauthorized, Paused,
    Blacklisted, InsufficientBalance, InsufficientAllowance, InvalidFee,
    InvalidAmount, StorageFailure
)
from .tiers import Tier, TierRegistry
from .access import AccessGate
from .ledger import LedgerCore, TransferReceipt
from .admin import AdminController
from .system import TokenLedger

__version__ = "1.0.0"

__all__ = [
    "LedgerError", "AlreadyInitialized", "NotInitialized", "Unauthorized",
    "Paused", "Blacklisted", "InsufficientBalance", "InsufficientAllowance",
    "InvalidFee", "InvalidAmount", "StorageFailure",
    "Tier", "TierRegistry", "AccessGate", "LedgerCore", "TransferReceipt",
    "AdminController", "TokenLedger",
]
