"""
pricing.py - Linear decay pricing for the ad slot

The take-over price starts at the holder's posted stake and decays linearly
at stake / rate_divisor per clock unit. The decayed portion is the tax owed
to the tax collector. Integer arithmetic throughout: tax is floored and
clamped to the stake, and price is derived by subtraction so that
price + tax == stake exactly.
"""

from __future__ import annotations
from dataclasses import dataclass

from .core import Timestamp


@dataclass(frozen=True, slots=True)
class Quote:
    """
    Current take-over price of a slot and the tax embedded in it.

    Attributes:
        price: Minimum payment required to take the slot over
        tax: Portion of the posted stake that has decayed away
    """
    price: int
    tax: int

    @property
    def stake(self) -> int:
        """The posted stake this quote was computed from."""
        return self.price + self.tax

    def __iter__(self):
        # Allows `price, tax = quote`
        yield self.price
        yield self.tax


def compute_tax(stake: int, elapsed: int, rate_divisor: int) -> int:
    """
    Decayed portion of a stake after elapsed clock units.

    floor(stake * elapsed / rate_divisor), never more than the stake itself.
    """
    if elapsed <= 0 or stake == 0:
        return 0
    return min(stake, (stake * elapsed) // rate_divisor)


def compute_quote(
    stake: int,
    posted_at: Timestamp,
    now: Timestamp,
    rate_divisor: int,
) -> Quote:
    """
    Price a slot at a given clock reading.

    Args:
        stake: Currently posted stake (non-negative)
        posted_at: Clock reading when the stake was posted
        now: Current clock reading; readings before posted_at count as no elapsed time
        rate_divisor: Decay speed control; the stake fully decays after
            rate_divisor clock units

    Returns:
        Quote with price + tax == stake, both non-negative

    Raises:
        ValueError: If stake is negative or rate_divisor is not positive

    Example:
        >>> compute_quote(100, posted_at=0, now=1, rate_divisor=100)
        Quote(price=99, tax=1)
        >>> compute_quote(100, posted_at=0, now=10_000, rate_divisor=100)
        Quote(price=0, tax=100)
    """
    if stake < 0:
        raise ValueError(f"stake must be non-negative, got {stake}")
    if rate_divisor <= 0:
        raise ValueError(f"rate_divisor must be positive, got {rate_divisor}")

    elapsed = max(0, now - posted_at)
    tax = compute_tax(stake, elapsed, rate_divisor)
    return Quote(price=stake - tax, tax=tax)


def full_decay_time(posted_at: Timestamp, rate_divisor: int) -> Timestamp:
    """Earliest clock reading at which any stake posted at posted_at prices to zero."""
    return posted_at + rate_divisor
