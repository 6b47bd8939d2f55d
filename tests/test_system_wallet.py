"""
Tests for SYSTEM_WALLET constant and its special treatment in the ledger.

The system wallet is exempt from balance validation and can hold any balance,
enabling issuance and redemption of the value players stake on the slot.
"""

import pytest

from adslot import Ledger, Move, build_transaction, ExecuteResult
from adslot.core import SYSTEM_WALLET, DEFAULT_ESCROW_WALLET, EMPTY_HOLDER


class TestConstants:

    def test_system_wallet_constant(self):
        assert SYSTEM_WALLET == "system"

    def test_escrow_and_empty_holder(self):
        assert DEFAULT_ESCROW_WALLET == "slot_escrow"
        assert EMPTY_HOLDER is None


class TestSystemWalletBehavior:

    def test_system_wallet_can_go_negative(self):
        ledger = Ledger("test", verbose=False)
        ledger.register_wallet("treasury")

        tx = build_transaction(ledger, [
            Move(1_000_000, SYSTEM_WALLET, "treasury", "initial_issuance")
        ])
        assert ledger.execute(tx) == ExecuteResult.APPLIED
        assert ledger.get_balance(SYSTEM_WALLET) == -1_000_000
        assert ledger.get_balance("treasury") == 1_000_000

    def test_system_wallet_redemption(self):
        ledger = Ledger("test", verbose=False)
        ledger.register_wallet("alice")
        ledger.issue("alice", 1_000)

        ledger.transfer("alice", SYSTEM_WALLET, 400)

        assert ledger.get_balance(SYSTEM_WALLET) == -600
        assert ledger.get_balance("alice") == 600
        assert ledger.circulating_supply() == 600

    def test_non_system_wallet_respects_limits(self):
        ledger = Ledger("test", verbose=False, test_mode=True)
        ledger.register_wallet("alice")
        ledger.register_wallet("bob")
        ledger.set_balance("alice", 1_000)

        tx = build_transaction(ledger, [Move(1_001, "alice", "bob", "overspend")])
        assert ledger.execute(tx) == ExecuteResult.REJECTED
        assert ledger.get_balance("alice") == 1_000

    def test_cannot_register_system_wallet_twice(self):
        ledger = Ledger("test", verbose=False)
        with pytest.raises(ValueError, match="already registered"):
            ledger.register_wallet(SYSTEM_WALLET)
