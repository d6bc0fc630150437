"""
Access Gate

Blacklist, burn-exempt (skip) list and the ledger-wide pause switch.
All setters are idempotent and report whether they changed anything.
"""

from typing import Set, FrozenSet

from .errors import Paused, Blacklisted


class AccessGate:
    """Authorizes or rejects transfer attempts"""

    def __init__(self, block_blacklisted_recipients: bool = False):
        self.block_blacklisted_recipients = block_blacklisted_recipients
        self._blacklist: Set[str] = set()
        self._skip_burn_fees: Set[str] = set()
        self._paused = False

    @property
    def paused(self) -> bool:
        return self._paused

    def authorize(self, account: str, is_privileged: bool = False) -> None:
        """
        Check that an account may send.

        Pause is checked before the blacklist; privileged callers bypass
        the pause but not the blacklist.

        Raises:
            Paused: If the ledger is paused and the caller is not privileged
            Blacklisted: If the account is blacklisted
        """
        if self._paused and not is_privileged:
            raise Paused("Ledger is paused")
        if account in self._blacklist:
            raise Blacklisted(f"Account {account} is blacklisted")

    def authorize_recipient(self, account: str) -> None:
        """Reject blacklisted recipients when that policy is enabled"""
        if self.block_blacklisted_recipients and account in self._blacklist:
            raise Blacklisted(f"Recipient {account} is blacklisted")

    def is_blacklisted(self, account: str) -> bool:
        return account in self._blacklist

    def is_skip_burn_fee(self, account: str) -> bool:
        return account in self._skip_burn_fees

    def add_to_blacklist(self, account: str) -> bool:
        if account in self._blacklist:
            return False
        self._blacklist.add(account)
        return True

    def remove_from_blacklist(self, account: str) -> bool:
        if account not in self._blacklist:
            return False
        self._blacklist.discard(account)
        return True

    def add_to_skip_burn_fees_list(self, account: str) -> bool:
        if account in self._skip_burn_fees:
            return False
        self._skip_burn_fees.add(account)
        return True

    def remove_from_skip_burn_fees_list(self, account: str) -> bool:
        if account not in self._skip_burn_fees:
            return False
        self._skip_burn_fees.discard(account)
        return True

    def pause(self) -> bool:
        changed = not self._paused
        self._paused = True
        return changed

    def unpause(self) -> bool:
        changed = self._paused
        self._paused = False
        return changed

    def blacklist(self) -> FrozenSet[str]:
        return frozenset(self._blacklist)

    def skip_burn_fees_list(self) -> FrozenSet[str]:
        return frozenset(self._skip_burn_fees)
