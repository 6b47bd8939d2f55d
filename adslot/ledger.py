"""
ledger.py - In-memory host ledger for the ad slot mechanism

The Ledger class is the host collaborator the slot mechanism settles against.
It is the only module that mutates balances, ensuring controlled and auditable changes.

Key responsibilities:
    - Implements LedgerView protocol for safe read-only access by planning functions
    - Executes transactions atomically (all moves succeed or all fail)
    - Maintains integer wallet balances in a single denomination
    - Provides a monotonically non-decreasing clock
    - Always validates and always logs - no exceptions
"""

from __future__ import annotations
import copy
from typing import Dict, List, Set, Optional, Tuple, Any

from .core import (
    # Types
    Move, Transaction, PendingTransaction,
    ExecuteResult, TransactionOrigin, OriginType,
    BalanceMap, Timestamp,
    # Constants
    SYSTEM_WALLET,
    # Exceptions
    LedgerError, InsufficientFunds, WalletNotRegistered,
    # Helper functions
    build_transaction,
)


class Ledger:
    """
    Double-entry ledger with full validation and audit trail.

    Implements the LedgerView protocol, allowing the ledger to be passed to
    planning functions that access only read-only methods.

    Design Principles:
        - Always validates: Every transaction is validated against wallet
          registration, non-negative balances, deposit acceptance and
          timestamp requirements. No shortcuts.
        - Always logs: Every applied transaction is recorded in the audit trail.

    Thread Safety:
        Not thread-safe. Each thread should maintain its own Ledger instance.

    Example:
        ledger = Ledger("main")
        ledger.register_wallet("alice")
        ledger.register_wallet("bob")
        ledger.issue("alice", 1000)

        tx = build_transaction(ledger, [Move(100, "alice", "bob", "payment_001")])
        result = ledger.execute(tx)
    """

    def __init__(
        self,
        name: str,
        initial_time: Timestamp = 0,
        verbose: bool = True,
        test_mode: bool = False
    ):
        """
        Create a ledger.

        Args:
            name: Ledger identifier
            initial_time: Starting clock reading (default: 0)
            verbose: Print executed and rejected transactions (default: True)
            test_mode: Allow set_balance() calls (default: False)
        """
        self.name = name
        self.balances: BalanceMap = {}
        self.registered_wallets: Set[str] = set()
        self.refusing_wallets: Set[str] = set()
        self.seen_intent_ids: Set[str] = set()
        self.transaction_log: List[Transaction] = []
        self._current_time: Timestamp = initial_time
        self.verbose = verbose
        self._test_mode = test_mode
        self._next_sequence: int = 0

        # Auto-register the system wallet (used for issuance/redemption)
        self.registered_wallets.add(SYSTEM_WALLET)
        self.balances[SYSTEM_WALLET] = 0

    # ========================================================================
    # LedgerView PROTOCOL IMPLEMENTATION (read-only methods)
    # ========================================================================

    @property
    def current_time(self) -> Timestamp:
        """Current host clock reading."""
        return self._current_time

    def get_balance(self, wallet_id: str) -> int:
        """
        Get the balance held by a wallet.

        Raises:
            WalletNotRegistered: If wallet is not registered
        """
        if wallet_id not in self.registered_wallets:
            raise WalletNotRegistered(f"Wallet {wallet_id} not registered")
        return self.balances[wallet_id]

    def list_wallets(self) -> Set[str]:
        """List all registered wallet IDs."""
        return self.registered_wallets.copy()

    def is_registered(self, wallet_id: str) -> bool:
        """Check if a wallet is registered."""
        return wallet_id in self.registered_wallets

    def accepts_deposits(self, wallet_id: str) -> bool:
        """Check if a wallet can currently be credited."""
        return wallet_id not in self.refusing_wallets

    def total_supply(self) -> int:
        """
        Sum of all balances across all wallets, including the system wallet.

        Always zero for a ledger whose value entered through issue().
        """
        return sum(self.balances[w] for w in sorted(self.registered_wallets))

    def circulating_supply(self) -> int:
        """Sum of all balances outside the system wallet."""
        return sum(
            self.balances[w] for w in sorted(self.registered_wallets) if w != SYSTEM_WALLET
        )

    def verify_double_entry(self, expected_supply: Optional[int] = None) -> Dict[str, Any]:
        """
        Check that value was neither created nor destroyed.

        Issued value is mirrored by a negative system wallet balance, so the sum
        over every wallet must be zero. When expected_supply is given, the sum
        outside the system wallet must match it as well.

        Returns:
            {'valid', 'total', 'circulating', 'discrepancies'} where each
            discrepancy is {'check', 'expected', 'actual', 'difference'}.
        """
        total = self.total_supply()
        circulating = self.circulating_supply()
        checks = [('total', 0, total)]
        if expected_supply is not None:
            checks.append(('circulating', expected_supply, circulating))
        discrepancies = [
            {'check': check, 'expected': expected, 'actual': actual,
             'difference': actual - expected}
            for check, expected, actual in checks
            if actual != expected
        ]
        return {
            'valid': not discrepancies,
            'total': total,
            'circulating': circulating,
            'discrepancies': discrepancies,
        }

    # ========================================================================
    # TIME MANAGEMENT
    # ========================================================================

    def advance_time(self, new_time: Timestamp) -> None:
        """
        Advance the ledger's clock to a new reading.

        Time can only move forward, never backward.

        Raises:
            ValueError: If new_time is before the current time
        """
        if new_time < self._current_time:
            raise ValueError(
                f"Cannot move time backwards: {new_time} < {self._current_time}"
            )
        self._current_time = new_time

    def advance_by(self, delta: int) -> Timestamp:
        """Advance the clock by delta units and return the new reading."""
        self.advance_time(self._current_time + delta)
        return self._current_time

    # ========================================================================
    # REGISTRATION (Mutating)
    # ========================================================================

    def register_wallet(self, wallet_id: str, accepts_deposits: bool = True) -> str:
        """
        Register a new wallet in the ledger.

        Args:
            wallet_id: Unique identifier for the wallet
            accepts_deposits: False registers a wallet that refuses every credit,
                so any transaction paying it is rejected

        Returns:
            The wallet_id that was registered

        Raises:
            ValueError: If wallet is already registered or the id is empty
        """
        if not wallet_id or not wallet_id.strip():
            raise ValueError("wallet_id cannot be empty")
        if wallet_id in self.registered_wallets:
            raise ValueError(f"Wallet {wallet_id} already registered")
        self.registered_wallets.add(wallet_id)
        self.balances[wallet_id] = 0
        if not accepts_deposits:
            self.refusing_wallets.add(wallet_id)
        return wallet_id

    def set_accepts_deposits(self, wallet_id: str, accepts: bool) -> None:
        """Toggle whether a registered wallet can be credited."""
        if wallet_id not in self.registered_wallets:
            raise WalletNotRegistered(f"Wallet {wallet_id} not registered")
        if accepts:
            self.refusing_wallets.discard(wallet_id)
        else:
            self.refusing_wallets.add(wallet_id)

    def set_balance(self, wallet_id: str, quantity: int) -> None:
        """
        Set a wallet's balance directly.

        WARNING: This method bypasses double-entry accounting and is only
        available in test mode. For production use, use issue() or
        build_transaction() and execute() instead.

        Raises:
            LedgerError: If called when test_mode is False
        """
        if not self._test_mode:
            raise LedgerError(
                "set_balance() is disabled in production mode. "
                "Use issue() or build_transaction() and execute() to modify balances. "
                "Set test_mode=True when creating Ledger for testing."
            )
        if wallet_id not in self.registered_wallets:
            raise WalletNotRegistered(f"Wallet {wallet_id} not registered")
        self.balances[wallet_id] = int(quantity)

    def issue(self, wallet_id: str, amount: int) -> ExecuteResult:
        """
        Mint value from the system wallet into a registered wallet.

        Raises:
            LedgerError: If the issuance is rejected
        """
        tx = build_transaction(
            self,
            [Move(amount, SYSTEM_WALLET, wallet_id, f"issuance:{wallet_id}:{self._next_sequence}")],
            origin=TransactionOrigin(OriginType.SYSTEM, "issuance"),
        )
        result = self.execute(tx)
        if result != ExecuteResult.APPLIED:
            raise LedgerError(f"Issuance of {amount} to {wallet_id} was {result.value}")
        return result

    # ========================================================================
    # TRANSACTION EXECUTION (Mutating)
    # ========================================================================

    def _generate_exec_id(self, sequence: int) -> str:
        """
        Generate a unique execution ID.

        Format: exec:{ledger_name}:{sequence:012d}:{clock}
        """
        return f"exec:{self.name}:{sequence:012d}:{self._current_time}"

    def execute(self, pending: PendingTransaction) -> ExecuteResult:
        """
        Execute a PendingTransaction atomically.

        All moves succeed together or all fail together.
        Execution is idempotent: a pending transaction with the same intent_id
        will not be applied twice.

        Args:
            pending: PendingTransaction to execute

        Returns:
            ExecuteResult.APPLIED if successful
            ExecuteResult.ALREADY_APPLIED if transaction was already executed
            ExecuteResult.REJECTED if validation failed
        """
        if pending.is_empty():
            return ExecuteResult.APPLIED

        if pending.intent_id in self.seen_intent_ids:
            if self.verbose:
                print(f"⚠ ALREADY_APPLIED: intent_id={pending.intent_id}")
            return ExecuteResult.ALREADY_APPLIED

        valid, reason = self._validate_pending(pending)
        if not valid:
            if self.verbose:
                print(f"✗ REJECTED: {reason}")
            return ExecuteResult.REJECTED

        sequence = self._next_sequence
        self._next_sequence += 1

        tx = Transaction(
            moves=pending.moves,
            state_changes=pending.state_changes,
            origin=pending.origin,
            timestamp=pending.timestamp,
            intent_id=pending.intent_id,
            exec_id=self._generate_exec_id(sequence),
            ledger_name=self.name,
            execution_time=self._current_time,
            sequence_number=sequence,
        )

        self._execute_moves(tx.moves)

        # Log transaction (always - audit trail is mandatory)
        self.transaction_log.append(tx)
        self.seen_intent_ids.add(pending.intent_id)

        if self.verbose:
            self._print_tx_result(tx, "APPLIED", "✓")
        return ExecuteResult.APPLIED

    def _print_tx_result(self, tx: Transaction, result: str, icon: str) -> None:
        """Print the transaction box followed by its outcome."""
        print(f"{tx!r}\n  {icon} {result} #{tx.sequence_number} at t={tx.execution_time}")

    def _validate_pending(self, pending: PendingTransaction) -> Tuple[bool, str]:
        """
        Validate pending transaction against all constraints.

        Checks performed:
        1. Timestamp validation (transaction must not be from the future)
        2. Wallet registration
        3. Deposit acceptance for every credited wallet
        4. Non-negative resulting balances (system wallet exempt)

        Returns:
            Tuple of (success: bool, reason: str)
        """
        if pending.timestamp > self._current_time:
            return False, "future timestamp"

        for move in pending.moves:
            if not self.is_registered(move.source):
                return False, f"wallet not registered: {move.source}"
            if not self.is_registered(move.dest):
                return False, f"wallet not registered: {move.dest}"
            if move.dest in self.refusing_wallets:
                return False, f"{move.dest} refuses deposits"

        for wallet, delta in sorted(pending.net_flows().items()):
            if wallet == SYSTEM_WALLET:
                continue
            proposed = self.balances[wallet] + delta
            if proposed < 0:
                return False, f"{wallet}: {proposed} < 0"

        return True, ""

    def _execute_moves(self, moves) -> None:
        """Apply all moves to wallet balances."""
        for move in moves:
            self.balances[move.source] -= move.quantity
            self.balances[move.dest] += move.quantity

    def transfer(self, source: str, dest: str, amount: int, contract_id: Optional[str] = None) -> None:
        """
        Move value between two wallets as a single transaction.

        Raises:
            InsufficientFunds: If the source cannot cover the amount
            LedgerError: If the transfer is rejected for any other reason
        """
        if source != SYSTEM_WALLET and self.get_balance(source) < amount:
            raise InsufficientFunds(
                f"{source} holds {self.balances[source]}, cannot transfer {amount}"
            )
        contract_id = contract_id or f"transfer:{self._next_sequence}"
        tx = build_transaction(self, [Move(amount, source, dest, contract_id)])
        result = self.execute(tx)
        if result != ExecuteResult.APPLIED:
            raise LedgerError(
                f"Transfer of {amount} from {source} to {dest} was {result.value}"
            )

    # ========================================================================
    # LEDGER OPERATIONS
    # ========================================================================

    def clone(self) -> Ledger:
        """Independent copy of balances, registry, clock and log; logged transactions are shared."""
        cloned = copy.copy(self)
        cloned.balances = dict(self.balances)
        cloned.registered_wallets = set(self.registered_wallets)
        cloned.refusing_wallets = set(self.refusing_wallets)
        cloned.seen_intent_ids = set(self.seen_intent_ids)
        cloned.transaction_log = list(self.transaction_log)
        return cloned
