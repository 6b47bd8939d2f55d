#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: The Harberger-Taxed Ad Slot

Walks through one slot's life on an in-memory ledger. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-2:  Setup        - The ledger, the slot, its configuration
  3-4:  Occupancy    - Taking a free slot, watching the price decay
  5-6:  Competition  - Rejected and successful take-overs, settlement flows
  7:    Override     - The admin reclaim
  8:    Proof        - Conservation across the whole history

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
import sys

from adslot import (
    Ledger, SlotMechanism, SlotConfig, SlotContent,
    InsufficientValue, Unauthorized,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    rate_divisor: int = 100
    alice_initial: int = 1_000
    bob_initial: int = 1_000
    alice_stake: int = 100
    decay_steps: int = 10


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with learning objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    """Print a section header within a step."""
    print(f"\n--- {text} ---\n")


def print_balances(ledger: Ledger, wallets):
    for wallet in wallets:
        print(f"  {wallet:<12} {ledger.get_balance(wallet):>8}")


WALLETS = ["alice", "bob", "treasury", "admin", "slot_escrow"]


def step_01_setup():
    step_header(1, "The Ledger",
        "The slot settles against a host ledger that moves value atomically.")

    ledger = Ledger("tutorial", initial_time=0, verbose=not QUICK_MODE)
    ledger.register_wallet("alice")
    ledger.register_wallet("bob")
    ledger.issue("alice", CONFIG.alice_initial)
    ledger.issue("bob", CONFIG.bob_initial)

    section_header("Balances")
    print_balances(ledger, ["alice", "bob"])
    wait_for_enter()
    return ledger


def step_02_slot(ledger: Ledger):
    step_header(2, "The Slot",
        "A slot is configured once: decay speed, admin, tax collector.")

    config = SlotConfig(rate_divisor=CONFIG.rate_divisor, admin="admin", tax_collector="treasury")
    slot = SlotMechanism(ledger, config)
    print(f">>> {slot}")
    print(f"Price of an empty slot: {slot.price()}")
    print("""
    A posted stake decays fully after rate_divisor clock units.
    The decayed part is tax; what remains is the take-over price.
    """)
    wait_for_enter()
    return slot


def step_03_first_take_over(ledger: Ledger, slot: SlotMechanism):
    step_header(3, "Taking a Free Slot",
        "An empty slot costs nothing; the whole payment becomes the stake.")

    content = SlotContent("https://img.example/alice.png", "https://alice.example")
    slot.set("alice", content, CONFIG.alice_stake)
    print(f">>> {slot}")
    print_balances(ledger, WALLETS)
    wait_for_enter()


def step_04_decay(ledger: Ledger, slot: SlotMechanism):
    step_header(4, "Decay",
        "The price falls by stake / rate_divisor per clock unit.")

    for _ in range(CONFIG.decay_steps):
        ledger.advance_by(1)
        quote = slot.price()
        print(f"  t={ledger.current_time:<4} price={quote.price:<6} tax={quote.tax}")
    wait_for_enter()


def step_05_rejected(ledger: Ledger, slot: SlotMechanism):
    step_header(5, "Underpaying",
        "A payment below the price is refused and nothing changes.")

    quote = slot.price()
    try:
        slot.set("bob", SlotContent("https://img.example/bob.png", "https://bob.example"),
                 quote.price - 1)
    except InsufficientValue as e:
        print(f"✗ {e}")
    print_balances(ledger, WALLETS)
    wait_for_enter()


def step_06_take_over(ledger: Ledger, slot: SlotMechanism):
    step_header(6, "Taking Over",
        "The tax goes to the collector; the outgoing holder receives twice the price.")

    quote = slot.price()
    payment = quote.price + 50
    section_header(f"bob pays {payment} against price {quote.price}, tax {quote.tax}")
    slot.set("bob", SlotContent("https://img.example/bob.png", "https://bob.example"), payment)
    print(f">>> {slot}")
    print_balances(ledger, WALLETS)
    wait_for_enter()


def step_07_reclaim(ledger: Ledger, slot: SlotMechanism):
    step_header(7, "Admin Reclaim",
        "Only the admin may vacate the slot; the whole stake moves, untaxed.")

    try:
        slot.reclaim("alice")
    except Unauthorized as e:
        print(f"✗ {e}")
    slot.reclaim("admin")
    print(f">>> {slot}")
    print_balances(ledger, WALLETS)
    wait_for_enter()


def step_08_conservation(ledger: Ledger, slot: SlotMechanism):
    step_header(8, "Conservation",
        "Value is only ever redistributed; the escrow always equals the stake.")

    result = ledger.verify_double_entry(
        expected_supply=CONFIG.alice_initial + CONFIG.bob_initial
    )
    print(f"Double entry valid: {result['valid']} (total={result['total']}, "
          f"circulating={result['circulating']})")
    print(f"Escrow matches stake: {slot.verify_escrow()}")
    print(f"Slot operations settled: {len(slot.history)}")


def main():
    ledger = step_01_setup()
    slot = step_02_slot(ledger)
    step_03_first_take_over(ledger, slot)
    step_04_decay(ledger, slot)
    step_05_rejected(ledger, slot)
    step_06_take_over(ledger, slot)
    step_07_reclaim(ledger, slot)
    step_08_conservation(ledger, slot)


if __name__ == "__main__":
    main()
