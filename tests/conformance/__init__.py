"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the lending ledger.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. test_accrual_properties.py - Compounding identities, monotonicity, exactness
2. test_projection.py - Regime split at the due period, freeze invariance
3. test_repay_all.py - The repay-all sentinel settles exactly the outstanding balance
4. test_borrower_counters.py - Counters track the borrower's loans
5. test_atomicity.py - All-or-nothing ledger operations
6. test_conservation.py - Token supply and pool accounting
7. test_determinism.py - Reproducible behavior

These tests use hypothesis for property-based testing.
"""
