"""
Event System Module

Publish/subscribe dispatcher for the observable side effects of the
ledger: Transfer and Burn logs, approvals, and admin state changes.
Handler failures are logged and never undo the operation that published.
"""

from enum import Enum
from typing import Callable, Dict, List, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime, timezone
import uuid
import logging
from threading import RLock


class LedgerEvent(Enum):
    """Events emitted by the ledger"""
    TRANSFER = "transfer"
    BURN = "burn"
    APPROVAL = "approval"
    PAUSED = "paused"
    UNPAUSED = "unpaused"
    BLACKLIST_UPDATED = "blacklist.updated"
    SKIP_LIST_UPDATED = "skip_list.updated"
    TIER_UPDATED = "tier.updated"


@dataclass
class EventPayload:
    """Payload for ledger events"""
    event_type: LedgerEvent
    data: Dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            'event_type': self.event_type.value,
            'data': self.data,
            'timestamp': self.timestamp.isoformat(),
            'event_id': self.event_id
        }


Handler = Callable[[EventPayload], None]


class EventDispatcher:
    """Central event dispatcher, publish/subscribe pattern"""

    def __init__(self):
        self._handlers: Dict[LedgerEvent, List[Handler]] = {}
        self._global_handlers: List[Handler] = []
        self._lock = RLock()
        self.logger = logging.getLogger("token_ledger.events")

    def subscribe(self, event_type: LedgerEvent, handler: Handler) -> None:
        """Subscribe to a specific event type"""
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)
            self.logger.debug(f"Subscribed handler {getattr(handler, '__name__', repr(handler))} to {event_type.value}")

    def subscribe_all(self, handler: Handler) -> None:
        """Subscribe to ALL events"""
        with self._lock:
            self._global_handlers.append(handler)

    def unsubscribe(self, event_type: LedgerEvent, handler: Handler) -> None:
        with self._lock:
            try:
                self._handlers.get(event_type, []).remove(handler)
            except ValueError:
                self.logger.warning(f"Handler {getattr(handler, '__name__', repr(handler))} was not subscribed to {event_type.value}")

    def publish(self, event_type: LedgerEvent, **data: Any) -> EventPayload:
        """Build an event from keyword data and deliver it to all subscribers"""
        event = EventPayload(event_type=event_type, data=data)
        with self._lock:
            handlers = list(self._handlers.get(event_type, [])) + list(self._global_handlers)

        self.logger.debug(f"Publishing event {event_type.value}")
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                # Log but don't break the main operation
                self.logger.error(f"Error in event handler {getattr(handler, '__name__', repr(handler))} for {event_type.value}: {e}")
        return event

    def clear(self) -> None:
        with self._lock:
            self._handlers.clear()
            self._global_handlers.clear()

    def get_handler_count(self, event_type: Optional[LedgerEvent] = None) -> int:
        with self._lock:
            if event_type:
                return len(self._handlers.get(event_type, []))
            return sum(len(h) for h in self._handlers.values()) + len(self._global_handlers)


class EventRecorder:
    """Subscriber that keeps every event it sees, in order"""

    def __init__(self, dispatcher: Optional[EventDispatcher] = None):
        self.events: List[EventPayload] = []
        if dispatcher is not None:
            dispatcher.subscribe_all(self)

    def __call__(self, event: EventPayload) -> None:
        self.events.append(event)

    def of_type(self, event_type: LedgerEvent) -> List[EventPayload]:
        return [e for e in self.events if e.event_type == event_type]

    def clear(self) -> None:
        self.events.clear()
