"""
Atomicity Conformance Tests

INVARIANT: Ledger operations are all-or-nothing.

    ∀ operation O:
        O succeeds ⟹ loan record, hooks, transfers and events all applied
        O fails    ⟹ ledger, token ledger, credit line and pool unchanged

Hook rejections, hook exceptions and failed transfers all roll back.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from lending import (
    FULL_REPAYMENT_AMOUNT, HookRejected, InsufficientBalance, InsufficientFunds, LendingError,
)

from tests.fake_market import build_market, BORROWER, LENDER, TOKEN, BORROW_AMOUNT


def observable_state(market):
    """Everything an operation could change, as comparable values."""
    ledger = market.ledger
    return (
        ledger.loan_counter,
        tuple(ledger.get_loan_state(i) for i in range(ledger.loan_counter + 1)),
        tuple(ledger.event_log),
        tuple(sorted(market.tokens.snapshot()["_balances"][TOKEN].items())),
        tuple(market.tokens.transfer_log),
        market.pool.get_balances(),
        tuple(market.pool.events),
        market.line.get_borrower_state(BORROWER),
        market.line.get_borrower_configuration(BORROWER),
        tuple(market.line.events),
    )


class TestHookFailuresRollBack:
    """Hooks that refuse or raise undo the whole operation."""

    def test_rejecting_after_hook_undoes_origination(self):
        market = build_market()
        before = observable_state(market)
        market.line.on_after_loan_taken = lambda loan_id: False

        with pytest.raises(HookRejected):
            market.take_loan()

        assert observable_state(market) == before

    def test_raising_pool_hook_undoes_repayment(self):
        market = build_market()
        loan_id = market.take_loan()
        market.advance_periods(3)
        before = observable_state(market)

        def explode(loan_id, amount):
            raise InsufficientBalance("pool refused the payment")

        market.pool.on_after_loan_payment = explode
        with pytest.raises(InsufficientBalance):
            market.ledger.repay_loan(BORROWER, loan_id, FULL_REPAYMENT_AMOUNT)

        assert observable_state(market) == before

    def test_rejecting_revocation_hook_undoes_transfer(self):
        market = build_market()
        loan_id = market.take_loan()
        before = observable_state(market)
        market.line.on_after_loan_revocation = lambda loan_id: False

        with pytest.raises(HookRejected):
            market.ledger.revoke_loan(LENDER, loan_id)

        assert observable_state(market) == before


class TestTransferFailuresRollBack:
    """A transfer that cannot be funded undoes the operation."""

    def test_revocation_without_borrower_funds(self):
        market = build_market(borrower_funds=0)
        loan_id = market.take_loan()
        market.tokens.transfer(TOKEN, BORROWER, "elsewhere", BORROW_AMOUNT)
        before = observable_state(market)

        with pytest.raises(InsufficientFunds):
            market.ledger.revoke_loan(LENDER, loan_id)

        assert observable_state(market) == before

    @given(st.integers(min_value=1, max_value=20), st.integers(min_value=1, max_value=500_000))
    @settings(max_examples=50, deadline=None)
    def test_origination_all_or_nothing(self, pool_units, amount_units):
        """PROPERTY: a loan is either fully originated or leaves no trace."""
        market = build_market(pool_funds=pool_units * 250_000_000)
        amount = amount_units * 10_000
        before = observable_state(market)

        try:
            loan_id = market.take_loan(amount=amount)
        except LendingError:
            assert observable_state(market) == before
            return

        assert market.ledger.get_loan_state(loan_id).borrow_amount == amount
        assert market.pool.borrowable_balance == pool_units * 250_000_000 - amount
        assert market.line.get_borrower_state(BORROWER).total_active_loan_amount == amount
        assert market.ledger.event_log[-1].name == "LoanTaken"


class TestLogSnapshots:
    """Append-only logs are rolled back by truncation, not copied."""

    def test_snapshots_hold_log_lengths(self):
        market = build_market()
        for _ in range(20):
            market.ledger.repay_loan(BORROWER, market.take_loan(), FULL_REPAYMENT_AMOUNT)

        assert market.ledger.snapshot()["event_log"] == len(market.ledger.event_log)
        assert market.tokens.snapshot()["transfer_log"] == len(market.tokens.transfer_log)
        assert market.pool.snapshot()["events"] == len(market.pool.events)
        assert market.line.snapshot()["events"] == len(market.line.events)

    def test_failed_operation_keeps_earlier_history(self):
        market = build_market()
        loan_id = market.take_loan()
        events = list(market.ledger.event_log)
        transfers = list(market.tokens.transfer_log)
        line_events = list(market.line.events)
        market.line.on_after_loan_payment = lambda loan_id, amount: False

        with pytest.raises(HookRejected):
            market.ledger.repay_loan(BORROWER, loan_id, FULL_REPAYMENT_AMOUNT)

        assert market.ledger.event_log == events
        assert market.tokens.transfer_log == transfers
        assert market.line.events == line_events


class TestNestedAtomicity:
    """Inner failures inside a batch roll back the whole batch."""

    def test_outer_block_restores_completed_inner_operations(self):
        market = build_market()
        first = market.take_loan()
        second = market.take_loan()
        before = observable_state(market)

        with pytest.raises(HookRejected):
            with market.ledger.atomic():
                market.ledger.repay_loan(BORROWER, first, FULL_REPAYMENT_AMOUNT)
                market.line.on_after_loan_payment = lambda loan_id, amount: False
                market.ledger.repay_loan(BORROWER, second, FULL_REPAYMENT_AMOUNT)

        assert observable_state(market) == before
