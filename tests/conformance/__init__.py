"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the ad slot mechanism.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - Every settlement balances; escrow equals stake
2. atomicity.py - All-or-nothing slot operations
3. temporal.py - Decay over time and clock ordering
4. authorization.py - Admin exclusivity of reclaim

These tests use hypothesis for property-based testing.
"""
