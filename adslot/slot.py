"""
slot.py - Harberger-taxed ad slot

This module provides the slot mechanism and its planning functions:
1. SlotContent / SlotState / SlotConfig - immutable records
2. compute_take_over() - Pure function planning a take-over settlement
3. compute_reclaim() - Pure function planning the admin override
4. SlotMechanism - Owns one slot's state and commits plans to a Ledger

Settlement of a take-over at price p with embedded tax t:

    caller  -> escrow          payment
    escrow  -> tax collector   t
    escrow  -> outgoing holder 2 * p      (skipped when the slot is empty)

The escrow starts with the old stake (p + t) and ends with payment - p, the
new stake. Planning functions take a LedgerView (read-only) and return
immutable results; only SlotMechanism mutates anything, and only after the
ledger has applied the whole settlement.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Any

from .core import (
    LedgerView, Move, PendingTransaction, Transaction, StateChange,
    TransactionOrigin, OriginType, ExecuteResult, Timestamp,
    DEFAULT_ESCROW_WALLET, EMPTY_HOLDER, SYSTEM_WALLET,
    InsufficientValue, Unauthorized, TransferFailed,
    build_transaction,
)
from .ledger import Ledger
from .pricing import Quote, compute_quote


EVENT_TAKE_OVER = "TAKE_OVER"
EVENT_RECLAIM = "RECLAIM"


@dataclass(frozen=True, slots=True)
class SlotContent:
    """Display payload of the slot. Both fields are free-form and unvalidated."""
    image_url: str = ""
    link_url: str = ""


@dataclass(frozen=True, slots=True)
class SlotState:
    """
    Occupancy of the slot at a point in time.

    Attributes:
        holder: Wallet of the current occupant, EMPTY_HOLDER when vacant
        stake: Value currently posted by the holder (held by the escrow wallet)
        posted_at: Clock reading when holder and stake were last set
        content: Display payload posted by the holder
    """
    holder: Optional[str] = EMPTY_HOLDER
    stake: int = 0
    posted_at: Timestamp = 0
    content: SlotContent = field(default_factory=SlotContent)

    def __post_init__(self):
        if self.stake < 0:
            raise ValueError(f"stake must be non-negative, got {self.stake}")

    @classmethod
    def empty(cls, posted_at: Timestamp = 0) -> SlotState:
        """The resting state: nobody holds the slot and nothing is at stake."""
        return cls(holder=EMPTY_HOLDER, stake=0, posted_at=posted_at, content=SlotContent())

    @property
    def is_vacant(self) -> bool:
        return self.holder is EMPTY_HOLDER

    def to_dict(self) -> Dict[str, Any]:
        return {
            'holder': self.holder,
            'stake': self.stake,
            'posted_at': self.posted_at,
            'image_url': self.content.image_url,
            'link_url': self.content.link_url,
        }


@dataclass(frozen=True, slots=True)
class SlotConfig:
    """
    Construction-time configuration of a slot. Immutable once the slot exists.

    Attributes:
        rate_divisor: Clock units for a stake to decay fully; larger is slower
        admin: Wallet allowed to reclaim the slot
        tax_collector: Wallet receiving the decayed portion of each stake
        escrow_wallet: Wallet holding the posted stake on the ledger
        name: Label used in contract ids and transaction origins
    """
    rate_divisor: int
    admin: str
    tax_collector: str
    escrow_wallet: str = DEFAULT_ESCROW_WALLET
    name: str = "slot"

    def __post_init__(self):
        if isinstance(self.rate_divisor, bool) or not isinstance(self.rate_divisor, int):
            raise ValueError(f"rate_divisor must be int, got {type(self.rate_divisor)}")
        if self.rate_divisor <= 0:
            raise ValueError(f"rate_divisor must be positive, got {self.rate_divisor}")
        for label in ('admin', 'tax_collector', 'escrow_wallet', 'name'):
            value = getattr(self, label)
            if not value or not value.strip():
                raise ValueError(f"{label} cannot be empty")
        if self.escrow_wallet in (self.admin, self.tax_collector):
            raise ValueError("escrow_wallet must differ from admin and tax_collector")


def _contract_id(config: SlotConfig, sequence: int, leg: str) -> str:
    return f"{config.name}:{sequence}:{leg}"


def compute_take_over(
    view: LedgerView,
    config: SlotConfig,
    slot: SlotState,
    caller: str,
    content: SlotContent,
    payment: int,
    sequence: int = 0,
) -> Tuple[PendingTransaction, SlotState]:
    """
    Plan a take-over of the slot by caller.

    The price is computed against the slot as it stands before the call,
    at view.current_time.

    Args:
        view: Read-only ledger access (provides the clock)
        config: Slot configuration
        slot: Current slot state
        caller: Wallet taking the slot over
        content: New display payload
        payment: Value the caller attaches (non-negative)
        sequence: Operation number, embedded in contract ids so that
            otherwise identical settlements stay distinct

    Returns:
        (pending transaction settling all flows, slot state to install once applied)

    Raises:
        InsufficientValue: If payment is below the current price
        Unauthorized: If caller is the system or escrow wallet
        TransferFailed: If caller does not hold the full payment
        ValueError: If payment is negative or caller is empty

    Example:
        pending, new_slot = compute_take_over(
            ledger, config, slot, "bob", SlotContent("https://img", "https://bob"), 150
        )
        ledger.execute(pending)
    """
    if not caller or not caller.strip():
        raise ValueError("caller cannot be empty")
    if isinstance(payment, bool) or not isinstance(payment, int):
        raise ValueError(f"payment must be int, got {type(payment)}")
    if payment < 0:
        raise ValueError(f"payment must be non-negative, got {payment}")

    now = view.current_time
    price, tax = compute_quote(slot.stake, slot.posted_at, now, config.rate_divisor)
    if payment < price:
        raise InsufficientValue(payment, price)
    if caller in (SYSTEM_WALLET, config.escrow_wallet):
        raise Unauthorized(caller, "take over")
    # Payment is debited in full before any payout reaches the caller
    if payment > 0:
        held = view.get_balance(caller) if caller in view.list_wallets() else 0
        if held < payment:
            raise TransferFailed(f"{caller} holds {held}, cannot attach payment {payment}")

    escrow = config.escrow_wallet
    moves: List[Move] = []
    if payment > 0:
        moves.append(Move(payment, caller, escrow, _contract_id(config, sequence, "payment")))
    if tax > 0:
        moves.append(Move(tax, escrow, config.tax_collector, _contract_id(config, sequence, "tax")))
    if not slot.is_vacant and price > 0:
        moves.append(Move(2 * price, escrow, slot.holder, _contract_id(config, sequence, "buyout")))

    new_slot = SlotState(
        holder=caller,
        stake=payment - price,
        posted_at=max(slot.posted_at, now),
        content=content,
    )
    origin = TransactionOrigin(
        origin_type=OriginType.USER_ACTION,
        source_id=caller,
        slot_name=config.name,
        event_type=EVENT_TAKE_OVER,
    )
    changes = [StateChange(
        key=_contract_id(config, sequence, "state"),
        old_state=slot.to_dict(),
        new_state=new_slot.to_dict(),
    )]
    return build_transaction(view, moves, changes, origin), new_slot


def compute_reclaim(
    view: LedgerView,
    config: SlotConfig,
    slot: SlotState,
    caller: str,
    sequence: int = 0,
) -> Tuple[PendingTransaction, SlotState]:
    """
    Plan the admin override: the full stake goes to the admin and the slot is vacated.

    No tax is computed; elapsed time is irrelevant.

    Raises:
        Unauthorized: If caller is not the configured admin
    """
    if caller != config.admin:
        raise Unauthorized(caller, "reclaim")

    moves: List[Move] = []
    if slot.stake > 0:
        moves.append(Move(slot.stake, config.escrow_wallet, config.admin,
                          _contract_id(config, sequence, "reclaim")))

    new_slot = SlotState.empty(posted_at=max(slot.posted_at, view.current_time))
    origin = TransactionOrigin(
        origin_type=OriginType.ADMIN,
        source_id=caller,
        slot_name=config.name,
        event_type=EVENT_RECLAIM,
    )
    changes = [StateChange(
        key=_contract_id(config, sequence, "state"),
        old_state=slot.to_dict(),
        new_state=new_slot.to_dict(),
    )]
    return build_transaction(view, moves, changes, origin), new_slot


class SlotMechanism:
    """
    A single ad slot governed by a self-assessed Harberger-tax auction.

    Owns the slot's state and settles every operation against a Ledger in one
    atomic transaction. State is replaced only after the ledger applies the
    settlement, so a failed call leaves both the slot and all balances as
    they were.

    Thread Safety:
        Not thread-safe. Operations assume exclusive access to the ledger
        for their duration.

    Example:
        ledger = Ledger("main", verbose=False)
        slot = SlotMechanism(ledger, SlotConfig(rate_divisor=86_400, admin="admin",
                                                tax_collector="treasury"))
        ledger.register_wallet("alice")
        ledger.issue("alice", 1_000)
        slot.set("alice", SlotContent("https://img/a.png", "https://alice"), 500)
        slot.price()  # Quote(price=500, tax=0)
    """

    def __init__(self, ledger: Ledger, config: SlotConfig):
        """
        Attach a fresh, empty slot to a ledger.

        Registers the escrow, admin and tax collector wallets when missing.

        Raises:
            ValueError: If the escrow wallet already holds value
        """
        self.ledger = ledger
        self.config = config
        for wallet in (config.escrow_wallet, config.admin, config.tax_collector):
            if not ledger.is_registered(wallet):
                ledger.register_wallet(wallet)
        if ledger.get_balance(config.escrow_wallet) != 0:
            raise ValueError(
                f"escrow wallet {config.escrow_wallet} must start empty, "
                f"holds {ledger.get_balance(config.escrow_wallet)}"
            )
        self._state = SlotState.empty(posted_at=ledger.current_time)
        self._history: List[Transaction] = []
        self._sequence = 0

    @property
    def state(self) -> SlotState:
        """Current slot state."""
        return self._state

    @property
    def history(self) -> Tuple[Transaction, ...]:
        """Transactions that settled this slot's operations, oldest first."""
        return tuple(self._history)

    def price(self) -> Quote:
        """Current take-over price and the tax embedded in it. No side effects."""
        return compute_quote(
            self._state.stake, self._state.posted_at,
            self.ledger.current_time, self.config.rate_divisor,
        )

    def set(self, caller: str, content: SlotContent, payment: int) -> None:
        """
        Take the slot over.

        Raises:
            InsufficientValue: If payment is below the current price
            Unauthorized: If caller is the system or escrow wallet
            TransferFailed: If caller cannot fund payment or the ledger rejects the settlement
        """
        pending, new_state = compute_take_over(
            self.ledger, self.config, self._state, caller, content, payment, self._sequence
        )
        self._commit(pending, new_state)

    def reclaim(self, caller: str) -> None:
        """
        Vacate the slot and pay its full stake to the admin.

        Raises:
            Unauthorized: If caller is not the admin
            TransferFailed: If the ledger rejects the settlement
        """
        pending, new_state = compute_reclaim(
            self.ledger, self.config, self._state, caller, self._sequence
        )
        self._commit(pending, new_state)

    def verify_escrow(self) -> bool:
        """True when the escrow wallet holds exactly the posted stake."""
        return self.ledger.get_balance(self.config.escrow_wallet) == self._state.stake

    def _commit(self, pending: PendingTransaction, new_state: SlotState) -> None:
        result = self.ledger.execute(pending)
        if result != ExecuteResult.APPLIED:
            raise TransferFailed(
                f"{pending.origin.event_type} on {self.config.name} was {result.value}"
            )
        self._sequence += 1
        self._state = new_state
        self._history.append(self.ledger.transaction_log[-1])

    def __repr__(self) -> str:
        s = self._state
        return (
            f"SlotMechanism({self.config.name}: holder={s.holder}, stake={s.stake}, "
            f"posted_at={s.posted_at})"
        )
