"""
test_pricing.py - Unit tests for the linear decay pricing function

Tests:
- No decay within the same instant
- Linear decay per clock unit
- Floor rounding of fractional tax
- Clamp at full decay
- Clock readings before posted_at
- Input validation
"""

import pytest

from adslot import Quote, compute_quote, compute_tax, full_decay_time


class TestNoDecay:
    """At zero elapsed time the price is the full stake."""

    def test_same_instant(self):
        assert compute_quote(500, posted_at=10, now=10, rate_divisor=100) == Quote(500, 0)

    def test_zero_stake(self):
        assert compute_quote(0, posted_at=0, now=1_000_000, rate_divisor=7) == Quote(0, 0)

    def test_now_before_posted_at_counts_as_zero_elapsed(self):
        assert compute_quote(500, posted_at=10, now=3, rate_divisor=100) == Quote(500, 0)


class TestLinearDecay:
    """Tax grows by stake / rate_divisor per clock unit."""

    def test_one_unit_elapsed(self):
        quote = compute_quote(100, posted_at=0, now=1, rate_divisor=100)
        assert quote.price == 99
        assert quote.tax == 1

    def test_half_way(self):
        quote = compute_quote(1_000, posted_at=50, now=100, rate_divisor=100)
        assert quote == Quote(price=500, tax=500)

    def test_rate_is_relative_to_stake(self):
        small = compute_quote(100, posted_at=0, now=10, rate_divisor=100)
        large = compute_quote(10_000, posted_at=0, now=10, rate_divisor=100)
        assert small.tax * 100 == large.tax

    def test_larger_divisor_decays_slower(self):
        fast = compute_quote(1_000, posted_at=0, now=10, rate_divisor=100)
        slow = compute_quote(1_000, posted_at=0, now=10, rate_divisor=1_000)
        assert slow.price > fast.price


class TestRounding:
    """Tax is floored; price is derived by subtraction."""

    def test_fractional_tax_floors(self):
        # 7 * 1 / 3 = 2.33 -> 2
        assert compute_quote(7, posted_at=0, now=1, rate_divisor=3) == Quote(price=5, tax=2)

    def test_tax_below_one_unit_is_zero(self):
        # 3 * 1 / 100 = 0.03 -> 0
        assert compute_quote(3, posted_at=0, now=1, rate_divisor=100) == Quote(price=3, tax=0)

    def test_price_plus_tax_is_stake(self):
        for now in range(0, 20):
            quote = compute_quote(13, posted_at=0, now=now, rate_divisor=11)
            assert quote.price + quote.tax == 13
            assert quote.stake == 13


class TestFullDecay:
    """Once fully decayed the price stays at zero."""

    def test_exactly_at_divisor(self):
        assert compute_quote(250, posted_at=0, now=100, rate_divisor=100) == Quote(price=0, tax=250)

    def test_far_beyond_divisor(self):
        quote = compute_quote(250, posted_at=0, now=10**18, rate_divisor=100)
        assert quote == Quote(price=0, tax=250)

    def test_full_decay_time(self):
        assert full_decay_time(posted_at=40, rate_divisor=100) == 140
        assert compute_quote(9_999, 40, full_decay_time(40, 100), 100).price == 0
        assert compute_quote(9_999, 40, full_decay_time(40, 100) - 1, 100).price > 0


class TestComputeTax:

    def test_clamped(self):
        assert compute_tax(10, elapsed=1_000, rate_divisor=1) == 10

    def test_no_elapsed(self):
        assert compute_tax(10, elapsed=0, rate_divisor=1) == 0


class TestQuote:

    def test_unpacks_as_price_then_tax(self):
        price, tax = compute_quote(100, posted_at=0, now=5, rate_divisor=100)
        assert (price, tax) == (95, 5)

    def test_is_immutable(self):
        quote = Quote(1, 2)
        with pytest.raises(AttributeError):
            quote.price = 5


class TestValidation:

    def test_negative_stake_raises(self):
        with pytest.raises(ValueError, match="non-negative"):
            compute_quote(-1, posted_at=0, now=0, rate_divisor=1)

    def test_zero_divisor_raises(self):
        with pytest.raises(ValueError, match="positive"):
            compute_quote(1, posted_at=0, now=0, rate_divisor=0)
