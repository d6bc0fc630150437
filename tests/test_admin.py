"""
Test suite for admin operations

Tests authority gating, idempotence, auditing and events for every
privileged mutation.
"""

import pytest

from token_ledger.audit import AuditEventType
from token_ledger.config import LedgerConfig
from token_ledger.errors import Unauthorized, NotInitialized, InvalidFee
from token_ledger.events import EventRecorder, LedgerEvent
from token_ledger.storage import InMemoryStorage
from token_ledger.system import TokenLedger

ADMIN_CALLS = [
    ("pause", ()),
    ("unpause", ()),
    ("add_to_blacklist", ("user1",)),
    ("remove_from_blacklist", ("user1",)),
    ("add_to_skip_burn_fees_list", ("user1",)),
    ("remove_from_skip_burn_fees_list", ("user1",)),
    ("set_tier", ("user1", 50)),
    ("clear_tier", ("user1",)),
]


class TestAuthority:
    """Only the initializing account may call admin operations"""
    
    def setup_method(self):
        self.system = TokenLedger(config=LedgerConfig(), storage=InMemoryStorage())
        self.system.initialize("deployer", "CTX", "CTX", 1_000_000)
    
    @pytest.mark.parametrize("method,args", ADMIN_CALLS)
    def test_non_authority_rejected(self, method, args):
        before_events = self.system.audit_trail.count_events()
        with pytest.raises(Unauthorized, match="not authorized"):
            getattr(self.system, method)("user1", *args)
        assert self.system.audit_trail.count_events() == before_events
        assert not self.system.paused
        assert not self.system.is_blacklisted("user1")
        assert not self.system.is_skip_burn_fee("user1")
        assert self.system.get_user_tier("user1").transaction_burn_fee_bps == 10
    
    @pytest.mark.parametrize("method,args", ADMIN_CALLS)
    def test_authority_accepted(self, method, args):
        getattr(self.system, method)("deployer", *args)
    
    @pytest.mark.parametrize("method,args", ADMIN_CALLS)
    def test_uninitialized_ledger_rejects_admin(self, method, args):
        system = TokenLedger(config=LedgerConfig(), storage=InMemoryStorage())
        with pytest.raises(NotInitialized):
            getattr(system, method)("deployer", *args)
    
    def test_authority_is_fixed(self):
        self.system.transfer("deployer", "user1", 1000)
        with pytest.raises(Unauthorized):
            self.system.pause("user1")
        assert self.system.authority == "deployer"


class TestAdminEffects:
    """Admin calls change state, audit once, and publish events"""
    
    def setup_method(self):
        self.system = TokenLedger(config=LedgerConfig(), storage=InMemoryStorage())
        self.system.initialize("deployer", "CTX", "CTX", 1_000_000)
        self.recorder = EventRecorder(self.system.dispatcher)
    
    def audit_count(self, event_type):
        return len(self.system.audit_trail.get_events_by_type(event_type))
    
    def test_pause_is_idempotent(self):
        self.system.pause("deployer")
        self.system.pause("deployer")
        assert self.system.paused
        assert self.audit_count(AuditEventType.LEDGER_PAUSED) == 1
        assert len(self.recorder.of_type(LedgerEvent.PAUSED)) == 1
        
        self.system.unpause("deployer")
        self.system.unpause("deployer")
        assert not self.system.paused
        assert self.audit_count(AuditEventType.LEDGER_UNPAUSED) == 1
    
    def test_blacklist_twice_same_as_once(self):
        self.system.add_to_blacklist("deployer", "user2")
        state_once = sorted(self.system.access_gate.blacklist())
        self.system.add_to_blacklist("deployer", "user2")
        assert sorted(self.system.access_gate.blacklist()) == state_once
        assert self.audit_count(AuditEventType.BLACKLIST_ADDED) == 1
        assert self.recorder.of_type(LedgerEvent.BLACKLIST_UPDATED)[0].data == {
            "account": "user2", "blacklisted": True
        }
    
    def test_blacklist_round_trip(self):
        self.system.add_to_blacklist("deployer", "user2")
        self.system.remove_from_blacklist("deployer", "user2")
        assert not self.system.is_blacklisted("user2")
        assert self.audit_count(AuditEventType.BLACKLIST_REMOVED) == 1
    
    def test_skip_list(self):
        self.system.add_to_skip_burn_fees_list("deployer", "user1")
        assert self.system.is_skip_burn_fee("user1")
        self.system.remove_from_skip_burn_fees_list("deployer", "user1")
        assert not self.system.is_skip_burn_fee("user1")
        assert self.audit_count(AuditEventType.SKIP_LIST_ADDED) == 1
        assert self.audit_count(AuditEventType.SKIP_LIST_REMOVED) == 1
        assert len(self.recorder.of_type(LedgerEvent.SKIP_LIST_UPDATED)) == 2
    
    def test_set_tier(self):
        tier = self.system.set_tier("deployer", "user1", 250, "silver")
        assert tier.transaction_burn_fee_bps == 250
        assert self.system.get_user_tier("user1").name == "silver"
        
        audit = self.system.audit_trail.get_events_by_type(AuditEventType.TIER_SET)[0]
        assert audit.entity_id == "user1"
        assert audit.caller == "deployer"
        assert audit.metadata["previous_fee_bps"] == "10"
        assert audit.metadata["transaction_burn_fee_bps"] == "250"
        assert self.recorder.of_type(LedgerEvent.TIER_UPDATED)[0].data == {
            "account": "user1", "transaction_burn_fee_bps": 250, "name": "silver"
        }
    
    def test_set_tier_invalid_fee(self):
        with pytest.raises(InvalidFee):
            self.system.set_tier("deployer", "user1", 10001)
        assert self.system.get_user_tier("user1").transaction_burn_fee_bps == 10
        assert self.audit_count(AuditEventType.TIER_SET) == 0
    
    def test_set_tier_changes_burn(self):
        self.system.transfer("deployer", "user1", 100_000)
        self.system.set_tier("deployer", "user1", 100)  # 1%
        receipt = self.system.transfer("user1", "user2", 10_000)
        assert receipt.fee == 100
        assert self.system.balance_of("user2") == 9_900
    
    def test_clear_tier_returns_to_default(self):
        self.system.set_tier("deployer", "user1", 100)
        self.system.clear_tier("deployer", "user1")
        self.system.clear_tier("deployer", "user1")
        assert self.system.get_user_tier("user1").transaction_burn_fee_bps == 10
        assert self.audit_count(AuditEventType.TIER_CLEARED) == 1
    
    def test_admin_calls_bypass_pause(self):
        self.system.pause("deployer")
        self.system.add_to_blacklist("deployer", "user2")
        self.system.set_tier("deployer", "user1", 0)
        assert self.system.is_blacklisted("user2")
