"""
Token Ledger Facade

Wires TierRegistry, AccessGate, LedgerCore and AdminController into one
ledger instance and exposes the public call surface. The caller identity
that a signed transaction would carry is passed explicitly as `caller`.

All calls on one instance are serialized behind a single lock. Each call
checks its preconditions, then writes its audit records, and only then
changes ledger state, so it is applied as a whole or rejected with no
effect. A failed audit write surfaces as StorageFailure.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Optional

from .access import AccessGate
from .admin import AdminController
from .audit import AuditTrail, AuditEventType
from .config import LedgerConfig, get_config
from .events import EventDispatcher
from .ledger import LedgerCore, TransferReceipt
from .storage import StorageInterface, create_storage
from .tiers import Tier, TierRegistry


logger = logging.getLogger("token_ledger.system")

SNAPSHOT_TABLE = "ledger_snapshots"
SNAPSHOT_ID = "current"
SCHEMA_VERSION = 1


class TokenLedger:
    """Tiered burn ledger with all components initialized"""

    def __init__(
        self,
        config: Optional[LedgerConfig] = None,
        storage: Optional[StorageInterface] = None,
        dispatcher: Optional[EventDispatcher] = None
    ):
        self.config = config or get_config()
        self.storage = storage or create_storage(self.config.storage_backend, self.config.database_path)
        self.dispatcher = dispatcher or EventDispatcher()
        self.audit_trail = AuditTrail(self.storage)

        self.tier_registry = TierRegistry(
            Tier(self.config.default_burn_fee_bps, self.config.default_tier_name)
        )
        self.access_gate = AccessGate(self.config.block_blacklisted_recipients)
        self.ledger = LedgerCore(self.access_gate, self.tier_registry, self.audit_trail, self.dispatcher)
        self.admin = AdminController(
            self.ledger, self.access_gate, self.tier_registry, self.audit_trail, self.dispatcher
        )
        self._lock = threading.RLock()

    # Lifecycle

    def initialize(self, caller: str, name: str, symbol: str, max_supply: int) -> None:
        with self._lock:
            self.ledger.initialize(caller, name, symbol, max_supply)

    @property
    def is_initialized(self) -> bool:
        return self.ledger.is_initialized

    @property
    def authority(self) -> Optional[str]:
        return self.ledger.authority

    @property
    def name(self) -> Optional[str]:
        return self.ledger.name

    @property
    def symbol(self) -> Optional[str]:
        return self.ledger.symbol

    @property
    def decimals(self) -> int:
        return self.ledger.decimals

    # Reads

    def balance_of(self, account: str) -> int:
        with self._lock:
            return self.ledger.balance_of(account)

    def total_supply(self) -> int:
        with self._lock:
            return self.ledger.total_supply()

    def burned_total(self) -> int:
        with self._lock:
            return self.ledger.burned_total()

    def allowance(self, owner: str, spender: str) -> int:
        with self._lock:
            return self.ledger.allowance(owner, spender)

    def get_user_tier(self, account: str) -> Tier:
        with self._lock:
            return self.tier_registry.get_user_tier(account)

    def is_blacklisted(self, account: str) -> bool:
        with self._lock:
            return self.access_gate.is_blacklisted(account)

    def is_skip_burn_fee(self, account: str) -> bool:
        with self._lock:
            return self.access_gate.is_skip_burn_fee(account)

    @property
    def paused(self) -> bool:
        return self.access_gate.paused

    # Transfers

    def transfer(self, caller: str, to: str, amount: int) -> TransferReceipt:
        with self._lock:
            return self.ledger.transfer(caller, to, amount)

    def approve(self, caller: str, spender: str, amount: int) -> None:
        with self._lock:
            self.ledger.approve(caller, spender, amount)

    def transfer_from(self, caller: str, owner: str, to: str, amount: int) -> TransferReceipt:
        with self._lock:
            return self.ledger.transfer_from(caller, owner, to, amount)

    # Admin

    def pause(self, caller: str) -> None:
        with self._lock:
            self.admin.pause(caller)

    def unpause(self, caller: str) -> None:
        with self._lock:
            self.admin.unpause(caller)

    def add_to_blacklist(self, caller: str, account: str) -> None:
        with self._lock:
            self.admin.add_to_blacklist(caller, account)

    def remove_from_blacklist(self, caller: str, account: str) -> None:
        with self._lock:
            self.admin.remove_from_blacklist(caller, account)

    def add_to_skip_burn_fees_list(self, caller: str, account: str) -> None:
        with self._lock:
            self.admin.add_to_skip_burn_fees_list(caller, account)

    def remove_from_skip_burn_fees_list(self, caller: str, account: str) -> None:
        with self._lock:
            self.admin.remove_from_skip_burn_fees_list(caller, account)

    def set_tier(self, caller: str, account: str, fee_bps: int, name: Optional[str] = None) -> Tier:
        with self._lock:
            return self.admin.set_tier(caller, account, fee_bps, name)

    def clear_tier(self, caller: str, account: str) -> None:
        with self._lock:
            self.admin.clear_tier(caller, account)

    # Persistence

    def save(self, storage: Optional[StorageInterface] = None) -> None:
        """
        Write a versioned snapshot of the full ledger state

        Args:
            storage: Target storage; defaults to this ledger's own storage
        """
        target = storage or self.storage
        with self._lock:
            self.ledger.require_initialized()
            snapshot = {
                'id': SNAPSHOT_ID,
                'schema_version': SCHEMA_VERSION,
                'saved_at': datetime.now(timezone.utc).isoformat(),
                'ledger': self.ledger.export_state(),
                'paused': self.access_gate.paused,
                'blacklist': sorted(self.access_gate.blacklist()),
                'skip_burn_fees': sorted(self.access_gate.skip_burn_fees_list()),
                'tiers': {account: tier.to_dict()
                          for account, tier in self.tier_registry.explicit_tiers().items()}
            }
            with target.atomic():
                target.save(SNAPSHOT_TABLE, SNAPSHOT_ID, snapshot)
                self.audit_trail.log_event(
                    event_type=AuditEventType.SNAPSHOT_SAVED,
                    entity_type="ledger",
                    entity_id=self.ledger.symbol,
                    metadata={"schema_version": SCHEMA_VERSION,
                              "accounts": len(snapshot['ledger']['balances'])}
                )
            logger.info(f"Saved ledger snapshot for {self.ledger.symbol}")

    @classmethod
    def load(
        cls,
        storage: StorageInterface,
        config: Optional[LedgerConfig] = None,
        dispatcher: Optional[EventDispatcher] = None
    ) -> 'TokenLedger':
        """
        Rebuild a ledger from the snapshot in storage

        Raises:
            ValueError: If there is no snapshot or its schema version is unknown
        """
        snapshot = storage.load(SNAPSHOT_TABLE, SNAPSHOT_ID)
        if snapshot is None:
            raise ValueError("No ledger snapshot found")
        version = snapshot.get('schema_version')
        if version != SCHEMA_VERSION:
            raise ValueError(f"Unsupported ledger snapshot schema version: {version}")

        instance = cls(config=config, storage=storage, dispatcher=dispatcher)
        instance.ledger.restore_state(snapshot['ledger'])
        if snapshot['paused']:
            instance.access_gate.pause()
        for account in snapshot['blacklist']:
            instance.access_gate.add_to_blacklist(account)
        for account in snapshot['skip_burn_fees']:
            instance.access_gate.add_to_skip_burn_fees_list(account)
        for account, tier in snapshot['tiers'].items():
            instance.tier_registry.set_tier(account, tier['transaction_burn_fee_bps'], tier['name'])

        instance.audit_trail.log_event(
            event_type=AuditEventType.SNAPSHOT_LOADED,
            entity_type="ledger",
            entity_id=instance.ledger.symbol,
            metadata={"schema_version": version, "saved_at": snapshot['saved_at']}
        )
        logger.info(f"Loaded ledger snapshot for {instance.ledger.symbol}")
        return instance
