"""
Core types and pure functions for the ad slot mechanism.

This module provides the foundational data structures and protocols:
1. Protocols: LedgerView for read-only access to the host ledger
2. Immutable data structures: Move, StateChange, PendingTransaction, Transaction
3. Exceptions: LedgerError and the slot-specific error types
4. Type aliases: BalanceMap, Timestamp

All amounts are integers denominated in the host ledger's smallest unit and
all timestamps are integer host clock readings. No function in this module
can mutate ledger state directly.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import copy
import hashlib
from typing import (
    Dict, List, Set, Optional, Any, Protocol,
    Tuple, FrozenSet, runtime_checkable,
)


# ============================================================================
# CONSTANTS
# ============================================================================

# Reserved wallet for issuance and redemption.
# The system wallet is exempt from balance validation and can hold any balance.
SYSTEM_WALLET = "system"

# Default wallet holding the slot's posted stake.
DEFAULT_ESCROW_WALLET = "slot_escrow"

# Holder identity of a slot nobody occupies.
EMPTY_HOLDER: Optional[str] = None


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Mapping from wallet ID to balance.
BalanceMap = Dict[str, int]

# Host clock reading.
Timestamp = int

# Serialized snapshot of a record whose change is logged alongside a transaction.
StateSnapshot = Dict[str, Any]


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class LedgerView(Protocol):
    """
    Read-only interface to host ledger state.

    Planning functions (compute_take_over, compute_reclaim) accept a LedgerView
    to declare that they only read. The Ledger class implements this protocol
    but also provides mutation methods. For testing, FakeView provides a
    truly immutable implementation.
    """

    @property
    def current_time(self) -> Timestamp:
        """Return the current host clock reading."""
        ...

    def get_balance(self, wallet_id: str) -> int:
        """Return the balance held by a wallet."""
        ...

    def list_wallets(self) -> Set[str]:
        """Return the set of all registered wallet IDs."""
        ...


# ============================================================================
# ENUMS
# ============================================================================

class ExecuteResult(Enum):
    """
    Outcome of a transaction execution attempt.

    APPLIED: Transaction was successfully validated and applied to the ledger.
    ALREADY_APPLIED: Intent was previously processed (idempotent behavior).
    REJECTED: Transaction failed validation (insufficient funds, unknown
              wallets, a recipient refusing deposits, future timestamp).
    """
    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    REJECTED = "rejected"


class OriginType(Enum):
    """Classification of where a transaction originated."""
    USER_ACTION = "user_action"           # Caller-initiated slot operation
    ADMIN = "admin"                       # Privileged override
    SYSTEM = "system"                     # Issuance, initial setup


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all ledger-related errors."""
    pass


class InsufficientFunds(LedgerError):
    """Raised when a move would take a wallet balance below zero."""
    pass


class WalletNotRegistered(LedgerError):
    """Raised when operating on a wallet that has not been registered with the ledger."""
    pass


class SlotError(LedgerError):
    """Base exception for failed slot operations. The slot is never partially updated."""
    pass


class InsufficientValue(SlotError):
    """Raised when a take-over payment is below the current price."""

    def __init__(self, payment: int, price: int):
        super().__init__(f"payment {payment} is below current price {price}")
        self.payment = payment
        self.price = price


class Unauthorized(SlotError):
    """Raised when a caller other than the admin attempts a privileged operation."""

    def __init__(self, caller: str, action: str = "reclaim"):
        super().__init__(f"{caller} is not authorized to {action}")
        self.caller = caller
        self.action = action


class TransferFailed(SlotError):
    """Raised when the host ledger refuses to settle a slot operation."""
    pass


# ============================================================================
# TRANSACTION ORIGIN
# ============================================================================

@dataclass(frozen=True, slots=True)
class TransactionOrigin:
    """
    Immutable record of a transaction's origin for audit purposes.

    Attributes:
        origin_type: Classification of the origin source
        source_id: Identifier of the specific source (caller wallet, "issuance", ...)
        slot_name: Name of the slot the transaction settles (if applicable)
        event_type: Specific operation (e.g., "TAKE_OVER", "RECLAIM")
    """
    origin_type: OriginType
    source_id: str
    slot_name: Optional[str] = None
    event_type: Optional[str] = None

    def __repr__(self) -> str:
        parts = [f"{self.origin_type.value}:{self.source_id}"]
        if self.slot_name:
            parts.append(f"slot={self.slot_name}")
        if self.event_type:
            parts.append(f"event={self.event_type}")
        return f"Origin({', '.join(parts)})"


# ============================================================================
# STATE CHANGE
# ============================================================================

@dataclass(frozen=True, slots=True)
class StateChange:
    """
    Record of a slot state change, logged with the transaction that settled it.

    The ledger does not interpret these records; they make the audit trail
    self-describing.

    Attributes:
        key: Name of the record that changed (the slot name)
        old_state: Complete snapshot before the change
        new_state: Complete snapshot after the change
    """
    key: str
    old_state: StateSnapshot
    new_state: StateSnapshot

    def changed_fields(self) -> Dict[str, Tuple[Any, Any]]:
        """Map each field that differs to its (old_value, new_value) pair."""
        changes = {}
        for name in set(self.old_state) | set(self.new_state):
            old_val = self.old_state.get(name)
            new_val = self.new_state.get(name)
            if old_val != new_val:
                changes[name] = (old_val, new_val)
        return changes


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Move:
    """
    A single transfer of value between two wallets.

    Attributes:
        quantity: The amount to transfer (positive integer).
        source: The wallet ID from which value is debited.
        dest: The wallet ID to which value is credited.
        contract_id: Identifier of the operation generating this move.

    All fields are validated in __post_init__.
    """
    quantity: int
    source: str
    dest: str
    contract_id: str

    def __post_init__(self):
        if not self.source or not self.source.strip():
            raise ValueError("Move source cannot be empty")
        if not self.dest or not self.dest.strip():
            raise ValueError("Move dest cannot be empty")
        if not self.contract_id or not self.contract_id.strip():
            raise ValueError("Move contract_id cannot be empty")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise ValueError(f"Move quantity must be int, got {type(self.quantity)}")
        if self.quantity <= 0:
            raise ValueError(f"Move quantity must be positive, got {self.quantity}")
        if self.source == self.dest:
            raise ValueError("Source and dest must be different")

    def __repr__(self) -> str:
        return f"Move({self.quantity}: {self.source}→{self.dest})"


def _snapshot_text(snapshot: StateSnapshot) -> str:
    """Flat snapshot as 'field=repr;...' in field order, independent of dict order."""
    return ";".join(f"{name}={snapshot[name]!r}" for name in sorted(snapshot))


def _compute_intent_id(
    moves: Tuple[Move, ...],
    state_changes: Tuple[StateChange, ...],
    origin: TransactionOrigin,
) -> str:
    """
    Compute a deterministic content hash for a transaction's intent.

    The hash depends only on moves, state changes and origin, never on
    timestamps. Same inputs always produce the same intent_id, which the
    ledger uses to refuse applying one business transaction twice.
    """
    sorted_moves = sorted(moves, key=lambda m: (m.quantity, m.source, m.dest, m.contract_id))

    content_parts = [f"origin:{origin.origin_type.value}:{origin.source_id}"]
    if origin.slot_name:
        content_parts.append(f"slot:{origin.slot_name}")
    if origin.event_type:
        content_parts.append(f"event:{origin.event_type}")

    for m in sorted_moves:
        content_parts.append(f"move:{m.quantity}|{m.source}|{m.dest}|{m.contract_id}")

    for sc in sorted(state_changes, key=lambda s: s.key):
        content_parts.append(
            f"state_change:{sc.key}|{_snapshot_text(sc.old_state)}|{_snapshot_text(sc.new_state)}"
        )

    content = "|".join(content_parts)
    return hashlib.sha256(content.encode()).hexdigest()[:16]


@dataclass(frozen=True, slots=True)
class PendingTransaction:
    """
    A transaction specification before execution - represents INTENT.

    Created by planning functions and submitted to the ledger for execution.

    Attributes:
        moves: Tuple of value transfers between wallets
        state_changes: Tuple of state changes settled by these moves
        origin: Who/what created this transaction and why
        timestamp: Host clock reading when this was planned
        intent_id: Content-addressable hash of the transaction intent (auto-computed)
    """
    moves: Tuple[Move, ...]
    state_changes: Tuple[StateChange, ...]
    origin: TransactionOrigin
    timestamp: Timestamp
    intent_id: str = field(default="")

    def __post_init__(self):
        if not self.intent_id:
            computed_id = _compute_intent_id(self.moves, self.state_changes, self.origin)
            object.__setattr__(self, 'intent_id', computed_id)

    def is_empty(self) -> bool:
        """Return True if this pending transaction has no moves and no state changes."""
        return not self.moves and not self.state_changes

    def net_flows(self) -> BalanceMap:
        """Net balance change per wallet if this transaction were applied."""
        net: BalanceMap = {}
        for move in self.moves:
            net[move.source] = net.get(move.source, 0) - move.quantity
            net[move.dest] = net.get(move.dest, 0) + move.quantity
        return net

    def __repr__(self) -> str:
        return f"PendingTransaction({len(self.moves)} moves, {len(self.state_changes)} changes, {self.origin})"


def build_transaction(
    view: LedgerView,
    moves: List[Move],
    state_changes: Optional[List[StateChange]] = None,
    origin: Optional[TransactionOrigin] = None,
) -> PendingTransaction:
    """
    Build a PendingTransaction from moves and state changes.

    This is the standard way to create transactions.

    Args:
        view: Read-only ledger view (provides current_time)
        moves: List of moves to include in the transaction
        state_changes: Optional list of StateChange records
        origin: Transaction origin (defaults to a SYSTEM origin)

    Returns:
        A PendingTransaction ready for execution

    Example:
        tx = build_transaction(ledger, [Move(100, "alice", "bob", "payment_001")])
        ledger.execute(tx)
    """
    if origin is None:
        origin = TransactionOrigin(
            origin_type=OriginType.SYSTEM,
            source_id="system",
        )

    # Deep copy state changes to prevent mutation
    copied_changes: Tuple[StateChange, ...] = ()
    if state_changes:
        copied_changes = tuple(
            StateChange(
                key=sc.key,
                old_state=copy.deepcopy(sc.old_state),
                new_state=copy.deepcopy(sc.new_state),
            )
            for sc in state_changes
        )

    return PendingTransaction(
        moves=tuple(moves),
        state_changes=copied_changes,
        origin=origin,
        timestamp=view.current_time,
    )


@dataclass(frozen=True, slots=True)
class Transaction:
    """
    An executed, immutable record of ledger state changes - represents FACT.

    Created by the ledger when executing a PendingTransaction.

    Attributes:
        moves: Tuple of value transfers between wallets
        state_changes: Tuple of state changes settled by these moves
        origin: Who/what created this transaction and why
        timestamp: When the PendingTransaction was planned
        intent_id: Content hash from PendingTransaction (for idempotency)
        exec_id: Unique execution identifier (ledger + sequence + time)
        ledger_name: Name of the ledger that executed this
        execution_time: Host clock reading at execution
        sequence_number: Monotonic sequence within the ledger (for ordering)
        contract_ids: Set of contract IDs from moves (auto-populated)
    """
    moves: Tuple[Move, ...]
    state_changes: Tuple[StateChange, ...]
    origin: TransactionOrigin
    timestamp: Timestamp
    intent_id: str
    exec_id: str
    ledger_name: str
    execution_time: Timestamp
    sequence_number: int
    contract_ids: FrozenSet[str] = None

    def __post_init__(self):
        if not self.moves and not self.state_changes:
            raise ValueError("Transaction must have moves or state_changes")
        if self.contract_ids is None:
            object.__setattr__(
                self, 'contract_ids',
                frozenset(m.contract_id for m in self.moves)
            )

    def __repr__(self) -> str:
        lines = [
            f"Transaction {self.exec_id} #{self.sequence_number} on {self.ledger_name}",
            f"  intent {self.intent_id}, planned t={self.timestamp}, "
            f"executed t={self.execution_time}",
            f"  {self.origin}",
        ]
        for i, move in enumerate(self.moves):
            lines.append(f"  [{i}] {move.quantity}: {move.source} → {move.dest}  ({move.contract_id})")
        for sc in self.state_changes:
            lines.append(f"  {sc.key}")
            for name, (old_val, new_val) in sorted(sc.changed_fields().items()):
                lines.append(f"      {name}: {old_val!r} → {new_val!r}")
        return "\n".join(lines)
