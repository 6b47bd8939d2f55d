"""
helpers.py - Shared constants and helpers for ad slot tests
"""

from typing import Dict, Iterable, Tuple

from adslot import Ledger, SlotContent


# Rate divisor used by most tests: a stake fully decays after 100 clock units.
RATE_DIVISOR = 100

START_TIME = 1_000

PLAYERS = ("alice", "bob", "charlie")


def content_for(wallet: str) -> SlotContent:
    """Distinct display payload per wallet."""
    return SlotContent(f"https://img.example/{wallet}.png", f"https://{wallet}.example")


def snapshot_balances(ledger: Ledger, wallets: Iterable[str] = None) -> Dict[str, int]:
    """Balances of the given wallets (all registered wallets by default)."""
    wallets = sorted(wallets or ledger.registered_wallets)
    return {w: ledger.get_balance(w) for w in wallets}


def balance_deltas(before: Dict[str, int], after: Dict[str, int]) -> Dict[str, int]:
    """Non-zero balance changes between two snapshots."""
    return {
        w: after.get(w, 0) - before.get(w, 0)
        for w in sorted(set(before) | set(after))
        if after.get(w, 0) != before.get(w, 0)
    }


def verify_conservation(ledger: Ledger, expected_circulating: int) -> Tuple[bool, int]:
    """
    Verify the conservation law for the ledger.

    Returns:
        (is_conserved, actual_circulating)
    """
    result = ledger.verify_double_entry(expected_supply=expected_circulating)
    return result['valid'], result['circulating']
