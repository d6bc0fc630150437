"""
Admin Controller

Privileged ledger mutations. Every call checks that the caller is the
single ledger authority (the account that initialized the ledger) before
doing anything. A change is audited first and applied only once its audit
record is stored, then logged and published as an event. Repeating a call
that changes nothing is accepted and leaves no audit entry.
"""

import logging
from typing import Optional

from .access import AccessGate
from .audit import AuditTrail, AuditEventType
from .errors import Unauthorized
from .events import EventDispatcher, LedgerEvent
from .ledger import LedgerCore
from .logging_config import log_action
from .tiers import Tier, TierRegistry, validate_fee_bps


logger = logging.getLogger("token_ledger.admin")


class AdminController:
    """Authority-gated admin operations"""

    def __init__(
        self,
        ledger: LedgerCore,
        access_gate: AccessGate,
        tier_registry: TierRegistry,
        audit_trail: AuditTrail,
        dispatcher: EventDispatcher
    ):
        self.ledger = ledger
        self.access_gate = access_gate
        self.tier_registry = tier_registry
        self.audit_trail = audit_trail
        self.dispatcher = dispatcher

    def require_authority(self, caller: str, action: str) -> None:
        """
        Raises:
            NotInitialized: Before the ledger has an authority
            Unauthorized: If caller is not the authority
        """
        self.ledger.require_initialized()
        if caller != self.ledger.authority:
            log_action(logger, "warning", f"Unauthorized {action} attempt",
                       caller=caller, action=action)
            raise Unauthorized(f"Account {caller} is not authorized to {action}")

    def _record(self, caller: str, event_type: AuditEventType, entity_type: str,
                entity_id: str, **metadata) -> None:
        self.audit_trail.log_event(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            caller=caller,
            metadata=metadata
        )

    def _announce(self, caller: str, action: str, entity_id: str,
                  event_type: LedgerEvent, **data) -> None:
        log_action(logger, "info", f"Admin {action} applied", caller=caller,
                   action=action, resource=entity_id)
        self.dispatcher.publish(event_type, **data)

    def pause(self, caller: str) -> None:
        self.require_authority(caller, "pause")
        if self.access_gate.paused:
            return
        self._record(caller, AuditEventType.LEDGER_PAUSED, "ledger", self.ledger.symbol)
        self.access_gate.pause()
        self._announce(caller, "pause", self.ledger.symbol, LedgerEvent.PAUSED, account=caller)

    def unpause(self, caller: str) -> None:
        self.require_authority(caller, "unpause")
        if not self.access_gate.paused:
            return
        self._record(caller, AuditEventType.LEDGER_UNPAUSED, "ledger", self.ledger.symbol)
        self.access_gate.unpause()
        self._announce(caller, "unpause", self.ledger.symbol, LedgerEvent.UNPAUSED, account=caller)

    def add_to_blacklist(self, caller: str, account: str) -> None:
        self.require_authority(caller, "add_to_blacklist")
        if self.access_gate.is_blacklisted(account):
            return
        self._record(caller, AuditEventType.BLACKLIST_ADDED, "account", account)
        self.access_gate.add_to_blacklist(account)
        self._announce(caller, "add_to_blacklist", account, LedgerEvent.BLACKLIST_UPDATED,
                       account=account, blacklisted=True)

    def remove_from_blacklist(self, caller: str, account: str) -> None:
        self.require_authority(caller, "remove_from_blacklist")
        if not self.access_gate.is_blacklisted(account):
            return
        self._record(caller, AuditEventType.BLACKLIST_REMOVED, "account", account)
        self.access_gate.remove_from_blacklist(account)
        self._announce(caller, "remove_from_blacklist", account, LedgerEvent.BLACKLIST_UPDATED,
                       account=account, blacklisted=False)

    def add_to_skip_burn_fees_list(self, caller: str, account: str) -> None:
        self.require_authority(caller, "add_to_skip_burn_fees_list")
        if self.access_gate.is_skip_burn_fee(account):
            return
        self._record(caller, AuditEventType.SKIP_LIST_ADDED, "account", account)
        self.access_gate.add_to_skip_burn_fees_list(account)
        self._announce(caller, "add_to_skip_burn_fees_list", account, LedgerEvent.SKIP_LIST_UPDATED,
                       account=account, skip_burn_fee=True)

    def remove_from_skip_burn_fees_list(self, caller: str, account: str) -> None:
        self.require_authority(caller, "remove_from_skip_burn_fees_list")
        if not self.access_gate.is_skip_burn_fee(account):
            return
        self._record(caller, AuditEventType.SKIP_LIST_REMOVED, "account", account)
        self.access_gate.remove_from_skip_burn_fees_list(account)
        self._announce(caller, "remove_from_skip_burn_fees_list", account, LedgerEvent.SKIP_LIST_UPDATED,
                       account=account, skip_burn_fee=False)

    def set_tier(self, caller: str, account: str, fee_bps: int, name: Optional[str] = None) -> Tier:
        """
        Assign a burn-fee tier to an account

        Raises:
            Unauthorized: If caller is not the authority
            InvalidFee: If fee_bps is outside 0..10000
            StorageFailure: If the change could not be audited
        """
        self.require_authority(caller, "set_tier")
        validate_fee_bps(fee_bps)
        previous = self.tier_registry.get_user_tier(account)
        self._record(caller, AuditEventType.TIER_SET, "tier", account,
                     previous_fee_bps=previous.transaction_burn_fee_bps,
                     transaction_burn_fee_bps=fee_bps, name=name or "custom")
        tier = self.tier_registry.set_tier(account, fee_bps, name)
        self._announce(caller, "set_tier", account, LedgerEvent.TIER_UPDATED, account=account,
                       transaction_burn_fee_bps=tier.transaction_burn_fee_bps, name=tier.name)
        return tier

    def clear_tier(self, caller: str, account: str) -> None:
        """Return an account to the default tier"""
        self.require_authority(caller, "clear_tier")
        if not self.tier_registry.has_explicit_tier(account):
            return
        self._record(caller, AuditEventType.TIER_CLEARED, "tier", account)
        self.tier_registry.clear_tier(account)
        default = self.tier_registry.default_tier
        self._announce(caller, "clear_tier", account, LedgerEvent.TIER_UPDATED, account=account,
                       transaction_burn_fee_bps=default.transaction_burn_fee_bps,
                       name=default.name)
