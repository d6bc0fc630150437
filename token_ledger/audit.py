"""
Audit Trail Module

Hash-chained immutable audit log with SHA-256 for tamper detection.
Every applied ledger mutation, and every rejected transfer, is logged here.
"""

import hashlib
import json
import logging
import threading
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Dict, List, Optional, Any
from enum import Enum
import uuid

from .errors import StorageFailure
from .storage import StorageInterface, StorageRecord


logger = logging.getLogger("token_ledger.audit")


class AuditEventType(Enum):
    """Types of audit events"""
    # Supply events
    LEDGER_INITIALIZED = "ledger_initialized"
    TOKENS_BURNED = "tokens_burned"

    # Transfer events
    TRANSFER_APPLIED = "transfer_applied"
    TRANSFER_REJECTED = "transfer_rejected"
    APPROVAL_SET = "approval_set"

    # Admin events
    LEDGER_PAUSED = "ledger_paused"
    LEDGER_UNPAUSED = "ledger_unpaused"
    BLACKLIST_ADDED = "blacklist_added"
    BLACKLIST_REMOVED = "blacklist_removed"
    SKIP_LIST_ADDED = "skip_list_added"
    SKIP_LIST_REMOVED = "skip_list_removed"
    TIER_SET = "tier_set"
    TIER_CLEARED = "tier_cleared"

    # Persistence events
    SNAPSHOT_SAVED = "snapshot_saved"
    SNAPSHOT_LOADED = "snapshot_loaded"


@dataclass
class AuditEvent(StorageRecord):
    """
    Immutable audit event with hash chaining for tamper detection
    """
    event_type: AuditEventType
    entity_type: str  # ledger, account, tier
    entity_id: str
    previous_hash: str
    current_hash: str
    metadata: Dict[str, Any]
    caller: Optional[str] = None  # Account that initiated the action
    sequence: int = 0

    def __post_init__(self):
        if self.metadata:
            self._serialize_metadata()

    def _serialize_metadata(self) -> None:
        """Convert metadata values to JSON-safe types; ints become strings"""
        def convert_value(value):
            if isinstance(value, bool) or value is None:
                return value
            elif isinstance(value, int):
                # Base-unit amounts exceed JSON's safe integer range
                return str(value)
            elif isinstance(value, datetime):
                return value.isoformat()
            elif isinstance(value, Enum):
                return value.value
            elif isinstance(value, dict):
                return {k: convert_value(v) for k, v in value.items()}
            elif isinstance(value, (list, tuple, set)):
                return [convert_value(v) for v in value]
            else:
                return value

        self.metadata = {k: convert_value(v) for k, v in self.metadata.items()}

    def calculate_hash(self) -> str:
        """
        Calculate SHA-256 hash of this event
        Hash includes all fields except current_hash to prevent circular reference
        """
        hash_data = {
            'id': self.id,
            'created_at': self.created_at.isoformat(),
            'event_type': self.event_type.value,
            'entity_type': self.entity_type,
            'entity_id': self.entity_id,
            'previous_hash': self.previous_hash,
            'caller': self.caller,
            'sequence': self.sequence,
            'metadata': self.metadata
        }

        json_data = json.dumps(hash_data, sort_keys=True, separators=(',', ':'))
        return hashlib.sha256(json_data.encode('utf-8')).hexdigest()

    def verify_hash(self) -> bool:
        """Verify that the current hash is correct"""
        return self.current_hash == self.calculate_hash()

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result['event_type'] = self.event_type.value
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AuditEvent':
        data = dict(data)
        data['created_at'] = datetime.fromisoformat(data['created_at'])
        data['updated_at'] = datetime.fromisoformat(data['updated_at'])
        data['event_type'] = AuditEventType(data['event_type'])
        return cls(**data)


class AuditTrail:
    """
    Hash-chained audit trail for tamper detection
    """

    def __init__(self, storage: StorageInterface, table_name: str = "audit_events"):
        self.storage = storage
        self.table_name = table_name
        self._last_hash: str = ""
        self._sequence = 0
        self._lock = threading.Lock()
        self._load_chain_head()

    def _load_chain_head(self) -> None:
        """Resume the chain from the most recent stored event"""
        events = self.storage.load_all(self.table_name)
        if events:
            head = max(events, key=lambda e: e.get('sequence', 0))
            self._last_hash = head.get('current_hash', "")
            self._sequence = head.get('sequence', 0)

    def log_event(
        self,
        event_type: AuditEventType,
        entity_type: str,
        entity_id: str,
        metadata: Optional[Dict[str, Any]] = None,
        caller: Optional[str] = None
    ) -> AuditEvent:
        """
        Log an audit event with hash chaining

        Args:
            event_type: Type of audit event
            entity_type: Type of entity being audited
            entity_id: ID of the entity
            metadata: Additional event-specific data
            caller: Account that initiated the action

        Returns:
            Created AuditEvent

        Raises:
            StorageFailure: If the event could not be written
        """
        return self.log_events([{
            'event_type': event_type,
            'entity_type': entity_type,
            'entity_id': entity_id,
            'metadata': metadata,
            'caller': caller
        }])[0]

    def log_events(self, entries: List[Dict[str, Any]]) -> List[AuditEvent]:
        """
        Log several chained events as one unit. Either every event is
        stored and the chain head moves past the last one, or none is
        stored and the chain head stays where it was.

        Raises:
            StorageFailure: If any event could not be written
        """
        with self._lock:
            now = datetime.now(timezone.utc)
            previous_hash, sequence = self._last_hash, self._sequence
            events = []
            for entry in entries:
                sequence += 1
                event = AuditEvent(
                    id=str(uuid.uuid4()),
                    created_at=now,
                    updated_at=now,
                    event_type=entry['event_type'],
                    entity_type=entry['entity_type'],
                    entity_id=entry['entity_id'],
                    previous_hash=previous_hash,
                    current_hash="",
                    caller=entry.get('caller'),
                    sequence=sequence,
                    metadata=entry.get('metadata') or {}
                )
                event.current_hash = event.calculate_hash()
                previous_hash = event.current_hash
                events.append(event)

            try:
                with self.storage.atomic():
                    for event in events:
                        self.storage.save(self.table_name, event.id, event.to_dict())
            except Exception as e:
                logger.error(f"Failed to write audit events: {e}")
                raise StorageFailure(f"Audit write failed: {e}") from e

            self._last_hash = previous_hash
            self._sequence = sequence
            return events

    def _load_events(self) -> List[AuditEvent]:
        events = [AuditEvent.from_dict(data) for data in self.storage.load_all(self.table_name)]
        events.sort(key=lambda e: e.sequence)
        return events

    def get_events_for_entity(self, entity_type: str, entity_id: str) -> List[AuditEvent]:
        """Get all audit events for one entity in chain order"""
        filters = {'entity_type': entity_type, 'entity_id': entity_id}
        events = [AuditEvent.from_dict(data) for data in self.storage.find(self.table_name, filters)]
        events.sort(key=lambda e: e.sequence)
        return events

    def get_events_by_type(self, event_type: AuditEventType) -> List[AuditEvent]:
        """Get audit events of one type in chain order"""
        events = [AuditEvent.from_dict(data)
                  for data in self.storage.find(self.table_name, {'event_type': event_type.value})]
        events.sort(key=lambda e: e.sequence)
        return events

    def get_all_events(self, limit: Optional[int] = None) -> List[AuditEvent]:
        events = self._load_events()
        if limit:
            events = events[-limit:]
        return events

    def verify_integrity(self) -> Dict[str, Any]:
        """
        Verify the integrity of the entire audit chain

        Returns:
            Dictionary with integrity check results
        """
        result = {
            'valid': True,
            'total_events': 0,
            'hash_errors': [],
            'chain_breaks': []
        }

        events = self._load_events()
        result['total_events'] = len(events)

        previous_hash = ""
        for position, event in enumerate(events):
            if not event.verify_hash():
                result['valid'] = False
                result['hash_errors'].append({
                    'event_id': event.id,
                    'position': position,
                    'expected_hash': event.calculate_hash(),
                    'actual_hash': event.current_hash
                })
            if event.previous_hash != previous_hash:
                result['valid'] = False
                result['chain_breaks'].append({
                    'event_id': event.id,
                    'position': position,
                    'expected_previous_hash': previous_hash,
                    'actual_previous_hash': event.previous_hash
                })
            previous_hash = event.current_hash

        return result

    def count_events(self) -> int:
        return self.storage.count(self.table_name)

    def get_latest_hash(self) -> str:
        """Get the hash of the most recent audit event"""
        return self._last_hash
