"""
adslot - Harberger-taxed ad slot

A single ad slot whose occupancy is a continuous, self-assessed auction:
the take-over price decays linearly from the holder's posted stake, the
decayed portion is paid as tax, and an admin can reclaim the slot at any time.

Usage:
    from adslot import Ledger, SlotMechanism, SlotConfig, SlotContent

    ledger = Ledger("main", verbose=False)
    slot = SlotMechanism(ledger, SlotConfig(rate_divisor=100, admin="admin",
                                            tax_collector="treasury"))
    ledger.register_wallet("alice")
    ledger.issue("alice", 1000)

    # Free slot: any payment takes it
    slot.set("alice", SlotContent("https://img/alice.png", "https://alice.example"), 100)

    ledger.advance_by(10)
    slot.price()   # Quote(price=90, tax=10)
"""

# Core types
from .core import (
    LedgerView,
    Move,
    StateChange,
    Transaction,
    PendingTransaction,
    TransactionOrigin,
    OriginType,
    build_transaction,
    ExecuteResult,
    LedgerError,
    InsufficientFunds,
    WalletNotRegistered,
    SlotError,
    InsufficientValue,
    Unauthorized,
    TransferFailed,
    SYSTEM_WALLET,
    DEFAULT_ESCROW_WALLET,
    EMPTY_HOLDER,
)

# Ledger
from .ledger import Ledger

# Pricing
from .pricing import (
    Quote,
    compute_quote,
    compute_tax,
    full_decay_time,
)

# Slot
from .slot import (
    SlotContent,
    SlotState,
    SlotConfig,
    SlotMechanism,
    compute_take_over,
    compute_reclaim,
    EVENT_TAKE_OVER,
    EVENT_RECLAIM,
)

__all__ = [
    # Core
    'LedgerView', 'Move', 'StateChange', 'Transaction', 'PendingTransaction',
    'TransactionOrigin', 'OriginType', 'build_transaction', 'ExecuteResult',
    'SYSTEM_WALLET', 'DEFAULT_ESCROW_WALLET', 'EMPTY_HOLDER',
    # Exceptions
    'LedgerError', 'InsufficientFunds', 'WalletNotRegistered',
    'SlotError', 'InsufficientValue', 'Unauthorized', 'TransferFailed',
    # Ledger
    'Ledger',
    # Pricing
    'Quote', 'compute_quote', 'compute_tax', 'full_decay_time',
    # Slot
    'SlotContent', 'SlotState', 'SlotConfig', 'SlotMechanism',
    'compute_take_over', 'compute_reclaim', 'EVENT_TAKE_OVER', 'EVENT_RECLAIM',
]

__version__ = '1.0.0'
