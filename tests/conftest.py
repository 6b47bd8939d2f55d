"""
conftest.py - Shared pytest fixtures for ad slot tests

Provides common fixtures used across unit and conformance tests:
- Basic ledgers (empty, funded)
- Slot configuration and a slot attached to a funded ledger
"""

import pytest

from adslot import Ledger, SlotMechanism, SlotConfig

from tests.helpers import RATE_DIVISOR, START_TIME, PLAYERS, content_for


# =============================================================================
# BASIC FIXTURES
# =============================================================================

@pytest.fixture
def empty_ledger():
    """Fresh ledger with no registrations."""
    return Ledger("test", verbose=False, test_mode=True)


@pytest.fixture
def basic_ledger():
    """Ledger at START_TIME with alice and bob registered."""
    ledger = Ledger("test", initial_time=START_TIME, verbose=False, test_mode=True)
    ledger.register_wallet("alice")
    ledger.register_wallet("bob")
    return ledger


@pytest.fixture
def funded_ledger():
    """Ledger at START_TIME with each player holding 10,000 issued units."""
    ledger = Ledger("test", initial_time=START_TIME, verbose=False)
    for wallet in PLAYERS:
        ledger.register_wallet(wallet)
        ledger.issue(wallet, 10_000)
    return ledger


# =============================================================================
# SLOT FIXTURES
# =============================================================================

@pytest.fixture
def slot_config():
    """Default slot configuration."""
    return SlotConfig(rate_divisor=RATE_DIVISOR, admin="admin", tax_collector="treasury")


@pytest.fixture
def slot(funded_ledger, slot_config):
    """Empty slot attached to the funded ledger."""
    return SlotMechanism(funded_ledger, slot_config)


@pytest.fixture
def held_slot(slot):
    """Slot taken by alice at START_TIME with a stake equal to RATE_DIVISOR."""
    slot.set("alice", content_for("alice"), RATE_DIVISOR)
    return slot
