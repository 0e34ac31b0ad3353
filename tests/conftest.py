"""
conftest.py - Shared pytest fixtures for lending tests

Provides common fixtures used across unit, conformance and functional tests:
- Wired markets under each borrow policy
- A market with one loan already taken
- A FakeMarket for testing collaborators in isolation
"""

import pytest

from lending import BorrowPolicy, Loan

from tests.fake_market import (
    FakeMarket, build_market,
    TOKEN, BORROWER, CREDIT_LINE, POOL, LENDER, START_TIME,
    BORROW_AMOUNT, DURATION_IN_PERIODS, INTEREST_RATE_PRIMARY, INTEREST_RATE_SECONDARY,
)


# =============================================================================
# MARKETS
# =============================================================================

@pytest.fixture
def market():
    """Funded market, MULTIPLE_ACTIVE_LOANS policy, no loans."""
    return build_market()


@pytest.fixture
def single_loan_market():
    """Funded market under SINGLE_ACTIVE_LOAN."""
    return build_market(borrow_policy=BorrowPolicy.SINGLE_ACTIVE_LOAN)


@pytest.fixture
def market_with_loan(market):
    """(market, loan_id) with one loan of BORROW_AMOUNT for DURATION_IN_PERIODS."""
    loan_id = market.take_loan()
    return market, loan_id


# =============================================================================
# FAKE MARKET
# =============================================================================

@pytest.fixture
def fake_market():
    return FakeMarket(time=START_TIME)


@pytest.fixture
def sample_loan():
    """A loan record as the ledger would write it at START_TIME."""
    return Loan(
        token=TOKEN,
        borrower=BORROWER,
        lender=LENDER,
        credit_line=CREDIT_LINE,
        treasury=POOL,
        start_timestamp=START_TIME,
        tracked_timestamp=START_TIME,
        duration_in_periods=DURATION_IN_PERIODS,
        interest_rate_primary=INTEREST_RATE_PRIMARY,
        interest_rate_secondary=INTEREST_RATE_SECONDARY,
        borrow_amount=BORROW_AMOUNT,
        addon_amount=0,
        tracked_balance=BORROW_AMOUNT,
    )
