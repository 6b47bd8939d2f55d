"""
fake_view.py - Test Helper for LedgerView

Provides a minimal LedgerView implementation for testing planning functions
without requiring a full Ledger instance.
"""

from __future__ import annotations
from typing import Dict, Set, Optional


class FakeView:
    """
    Minimal LedgerView implementation for testing planning functions.

    Example:
        view = FakeView(balances={'alice': 1000}, time=42)
        view.get_balance('alice')
        # Returns: 1000
    """

    def __init__(
        self,
        balances: Optional[Dict[str, int]] = None,
        time: int = 0,
    ):
        self._balances = balances or {}
        self._time = time

    @property
    def current_time(self) -> int:
        return self._time

    def get_balance(self, wallet: str) -> int:
        return self._balances.get(wallet, 0)

    def list_wallets(self) -> Set[str]:
        return set(self._balances.keys())
