"""
Ledger Core

Balances, total supply and allowances, plus the transfer-and-burn
algorithm. The genesis mint happens once, in initialize(); after that the
supply only ever shrinks, by exactly the fee burned on each transfer.

Every call validates all of its preconditions and writes its audit record
before touching state, so a rejected call, or one whose audit write fails,
leaves balances, supply and allowances exactly as they were.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Any

from .access import AccessGate
from .audit import AuditTrail, AuditEventType
from .errors import (
    LedgerError, AlreadyInitialized, NotInitialized, InsufficientBalance,
    InsufficientAllowance, InvalidAmount, StorageFailure
)
from .events import EventDispatcher, LedgerEvent
from .logging_config import log_action
from .tiers import TierRegistry
from .units import DECIMALS, burn_fee


logger = logging.getLogger("token_ledger.ledger")


@dataclass(frozen=True)
class TransferReceipt:
    """Outcome of an applied transfer"""
    sender: str
    recipient: str
    amount: int       # debited from the sender
    net_amount: int   # credited to the recipient
    fee: int          # burned
    fee_bps: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sender': self.sender,
            'recipient': self.recipient,
            'amount': str(self.amount),
            'net_amount': str(self.net_amount),
            'fee': str(self.fee),
            'fee_bps': self.fee_bps
        }


def _validate_amount(amount) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmount(f"Amount must be an integer number of base units, got {amount!r}")
    if amount < 0:
        raise InvalidAmount(f"Amount must not be negative, got {amount}")


class LedgerCore:
    """
    Token balances and the transfer-with-burn engine

    Consults the AccessGate for pause/blacklist decisions and the
    TierRegistry for the sender's burn fee.
    """

    def __init__(
        self,
        access_gate: AccessGate,
        tier_registry: TierRegistry,
        audit_trail: AuditTrail,
        dispatcher: Optional[EventDispatcher] = None
    ):
        self.access_gate = access_gate
        self.tier_registry = tier_registry
        self.audit_trail = audit_trail
        self.dispatcher = dispatcher or EventDispatcher()

        self.name: Optional[str] = None
        self.symbol: Optional[str] = None
        self.decimals = DECIMALS
        self.authority: Optional[str] = None

        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}
        self._total_supply = 0
        self._burned_total = 0

    @property
    def is_initialized(self) -> bool:
        return self.authority is not None

    def require_initialized(self) -> None:
        if not self.is_initialized:
            raise NotInitialized("Ledger has not been initialized")

    def initialize(self, authority: str, name: str, symbol: str, max_supply: int) -> None:
        """
        Mint the entire supply to the initializing account, which becomes
        the ledger authority. Callable exactly once.

        Raises:
            AlreadyInitialized: On any call after the first successful one
            InvalidAmount: If max_supply is not a non-negative integer
            StorageFailure: If the genesis record could not be audited
        """
        if self.is_initialized:
            raise AlreadyInitialized("Ledger is already initialized")
        _validate_amount(max_supply)

        self.audit_trail.log_event(
            event_type=AuditEventType.LEDGER_INITIALIZED,
            entity_type="ledger",
            entity_id=symbol,
            caller=authority,
            metadata={"name": name, "symbol": symbol, "max_supply": max_supply}
        )

        self.name = name
        self.symbol = symbol
        self.authority = authority
        self._total_supply = max_supply
        self._balances[authority] = max_supply

        log_action(logger, "info", f"Ledger {symbol} initialized with supply {max_supply}",
                   caller=authority, action="initialize", resource=symbol)
        self.dispatcher.publish(LedgerEvent.TRANSFER, sender=None, recipient=authority,
                                amount=max_supply)

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def total_supply(self) -> int:
        return self._total_supply

    def burned_total(self) -> int:
        """Cumulative amount burned since genesis"""
        return self._burned_total

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def fee_bps_for(self, sender: str) -> int:
        """Burn rate applied to transfers from this sender"""
        if self.access_gate.is_skip_burn_fee(sender):
            return 0
        return self.tier_registry.fee_for(sender)

    def quote_transfer(self, sender: str, recipient: str, amount: int) -> TransferReceipt:
        """Compute the outcome of a transfer without applying it"""
        _validate_amount(amount)
        fee_bps = self.fee_bps_for(sender)
        fee = burn_fee(amount, fee_bps)
        return TransferReceipt(sender, recipient, amount, amount - fee, fee, fee_bps)

    def transfer(self, sender: str, recipient: str, amount: int) -> TransferReceipt:
        """
        Move amount out of sender's balance, burning the sender's tier fee.

        The recipient is credited amount - floor(amount * bps / 10000); the
        fee is removed from the total supply.

        Raises:
            NotInitialized, InvalidAmount, Paused, Blacklisted, InsufficientBalance, StorageFailure
        """
        try:
            self.require_initialized()
            _validate_amount(amount)
            self._authorize(sender, recipient)
            self._check_balance(sender, amount)
        except LedgerError as e:
            self._record_rejection(sender, recipient, amount, e)
            raise

        return self.apply_transfer(self.quote_transfer(sender, recipient, amount))

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> TransferReceipt:
        """
        Spend an allowance: move amount from owner to recipient on the
        spender's behalf. The owner's tier and skip-list status decide the
        burn; the allowance is reduced by the full amount.

        Raises:
            NotInitialized, InvalidAmount, Paused, Blacklisted,
            InsufficientBalance, InsufficientAllowance, StorageFailure
        """
        try:
            self.require_initialized()
            _validate_amount(amount)
            self._authorize(owner, recipient)
            if spender != owner:
                self.access_gate.authorize(spender, is_privileged=spender == self.authority)
            self._check_balance(owner, amount)
            if spender != owner and self.allowance(owner, spender) < amount:
                raise InsufficientAllowance(
                    f"Insufficient allowance: {spender} may spend {self.allowance(owner, spender)} of {owner}'s balance, needs {amount}"
                )
        except LedgerError as e:
            self._record_rejection(owner, recipient, amount, e, spender=spender)
            raise

        return self.apply_transfer(self.quote_transfer(owner, recipient, amount), spender=spender)

    def approve(self, owner: str, spender: str, amount: int) -> None:
        """Set (not add to) the amount spender may move out of owner's balance"""
        self.require_initialized()
        _validate_amount(amount)
        self.access_gate.authorize(owner, is_privileged=owner == self.authority)

        self.audit_trail.log_event(
            event_type=AuditEventType.APPROVAL_SET,
            entity_type="account",
            entity_id=owner,
            caller=owner,
            metadata={"spender": spender, "amount": amount}
        )
        self._allowances[(owner, spender)] = amount
        self.dispatcher.publish(LedgerEvent.APPROVAL, owner=owner, spender=spender, amount=amount)

    def apply_transfer(self, receipt: TransferReceipt, spender: Optional[str] = None) -> TransferReceipt:
        """
        Apply a validated transfer. The Transfer record and, for a non-zero
        fee, the Burn record are audited together first; only once both are
        stored are the balances, supply and spender allowance updated and
        the Transfer and Burn logs emitted.

        Raises:
            StorageFailure: If the audit records could not be written
        """
        sender, recipient = receipt.sender, receipt.recipient
        caller = spender or sender
        entries = [{
            'event_type': AuditEventType.TRANSFER_APPLIED,
            'entity_type': "account",
            'entity_id': sender,
            'caller': caller,
            'metadata': receipt.to_dict()
        }]
        if receipt.fee > 0:
            entries.append({
                'event_type': AuditEventType.TOKENS_BURNED,
                'entity_type': "account",
                'entity_id': sender,
                'caller': caller,
                'metadata': {"fee": receipt.fee, "fee_bps": receipt.fee_bps,
                             "total_supply": self._total_supply - receipt.fee}
            })
        self.audit_trail.log_events(entries)

        if spender is not None and spender != sender:
            self._allowances[(sender, spender)] = self.allowance(sender, spender) - receipt.amount
        self._balances[sender] = self.balance_of(sender) - receipt.amount
        self._balances[recipient] = self.balance_of(recipient) + receipt.net_amount
        self._total_supply -= receipt.fee
        self._burned_total += receipt.fee

        log_action(logger, "info", f"Transfer {sender} -> {recipient}: {receipt.net_amount} (burned {receipt.fee})",
                   caller=caller, action="transfer", resource=recipient,
                   extra={"amount": str(receipt.amount), "fee_bps": receipt.fee_bps})
        self.dispatcher.publish(LedgerEvent.TRANSFER, sender=sender, recipient=recipient,
                                amount=receipt.net_amount)
        if receipt.fee > 0:
            self.dispatcher.publish(LedgerEvent.BURN, account=sender, amount=receipt.fee)

        return receipt

    def _authorize(self, sender: str, recipient: str) -> None:
        self.access_gate.authorize(sender, is_privileged=sender == self.authority)
        self.access_gate.authorize_recipient(recipient)

    def _check_balance(self, sender: str, amount: int) -> None:
        balance = self.balance_of(sender)
        if balance < amount:
            raise InsufficientBalance(
                f"Insufficient balance: {sender} holds {balance}, needs {amount}"
            )

    def _record_rejection(self, sender: str, recipient: str, amount, error: LedgerError,
                          spender: Optional[str] = None) -> None:
        log_action(logger, "warning", f"Transfer rejected: {error}",
                   caller=spender or sender, action="transfer", resource=recipient,
                   extra={"error": error.error})
        try:
            self.audit_trail.log_event(
                event_type=AuditEventType.TRANSFER_REJECTED,
                entity_type="account",
                entity_id=sender,
                caller=spender or sender,
                metadata={"recipient": recipient, "amount": str(amount), "error": error.error}
            )
        except StorageFailure:
            # The rejection itself is what the caller must see
            logger.exception(f"Could not audit rejected transfer from {sender}")

    def export_state(self) -> Dict[str, Any]:
        """Serializable view of ledger state; amounts as decimal strings"""
        return {
            'name': self.name,
            'symbol': self.symbol,
            'decimals': self.decimals,
            'authority': self.authority,
            'total_supply': str(self._total_supply),
            'burned_total': str(self._burned_total),
            'balances': {account: str(balance) for account, balance in self._balances.items()},
            'allowances': [
                {'owner': owner, 'spender': spender, 'amount': str(amount)}
                for (owner, spender), amount in self._allowances.items()
            ]
        }

    def restore_state(self, state: Dict[str, Any]) -> None:
        """Replace ledger state with a previously exported one"""
        self.name = state['name']
        self.symbol = state['symbol']
        self.authority = state['authority']
        self._total_supply = int(state['total_supply'])
        self._burned_total = int(state['burned_total'])
        self._balances = {account: int(balance) for account, balance in state['balances'].items()}
        self._allowances = {
            (entry['owner'], entry['spender']): int(entry['amount'])
            for entry in state['allowances']
        }
