"""
fake_market.py - Test Helpers for the Lending Market

Provides:
- FakeMarket: a minimal LoanView for testing credit lines and liquidity
  pools without a full LoanLedger
- build_market(): a fully wired, funded market (ledger, tokens, credit
  line, pool, configured borrower) for ledger-level tests
"""

from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from lending import (
    Loan, LoanLedger, TokenLedger, CreditLine, CreditLineConfig, BorrowerConfig,
    BorrowPolicy, LiquidityPool, DEFAULT_EXPIRATION, NEGATIVE_TIME_OFFSET,
    PERIOD_IN_SECONDS,
)


# =============================================================================
# IDENTITIES AND DEFAULTS
# =============================================================================

TOKEN = "USDC"
OWNER = "owner"
LENDER = "lender"
ADMIN = "admin"
ALIAS = "alias"
BORROWER = "borrower"
ATTACKER = "attacker"
CREDIT_LINE = "credit-line"
POOL = "liquidity-pool"

# First second of a period once the negative time offset is applied.
START_PERIOD = 19_723
START_TIME = START_PERIOD * PERIOD_IN_SECONDS + NEGATIVE_TIME_OFFSET

BORROW_AMOUNT = 1_000_000_000
DURATION_IN_PERIODS = 30
INTEREST_RATE_PRIMARY = 2_500_000
INTEREST_RATE_SECONDARY = 5_000_000
POOL_FUNDS = 100_000_000_000
BORROWER_FUNDS = 50_000_000_000


def default_credit_line_config(**overrides) -> CreditLineConfig:
    values = dict(
        treasury=POOL,
        min_borrow_amount=10_000,
        max_borrow_amount=10_000_000_000,
        min_duration_in_periods=1,
        max_duration_in_periods=365,
        min_interest_rate_primary=0,
        max_interest_rate_primary=100_000_000,
        min_interest_rate_secondary=0,
        max_interest_rate_secondary=200_000_000,
        min_addon_fixed_rate=0,
        max_addon_fixed_rate=50_000_000,
        min_addon_period_rate=0,
        max_addon_period_rate=2_000_000,
    )
    values.update(overrides)
    return CreditLineConfig(**values)


def default_borrower_config(**overrides) -> BorrowerConfig:
    values = dict(
        expiration=DEFAULT_EXPIRATION,
        min_borrow_amount=10_000,
        max_borrow_amount=5_000_000_000,
        min_duration_in_periods=1,
        max_duration_in_periods=365,
        borrow_policy=BorrowPolicy.MULTIPLE_ACTIVE_LOANS,
        interest_rate_primary=INTEREST_RATE_PRIMARY,
        interest_rate_secondary=INTEREST_RATE_SECONDARY,
        addon_fixed_rate=0,
        addon_period_rate=0,
    )
    values.update(overrides)
    return BorrowerConfig(**values)


# =============================================================================
# FAKE MARKET
# =============================================================================

class FakeMarket:
    """
    Minimal LoanView implementation for testing collaborators in isolation.

    Example:
        market = FakeMarket(time=START_TIME)
        market.set_loan(0, Loan(token="USDC", borrower="alice", borrow_amount=100, tracked_balance=100))
        line = CreditLine("line", "lender", market, "USDC")
    """

    def __init__(self, loans: Optional[Dict[int, Loan]] = None, time: int = START_TIME):
        self._loans = dict(loans or {})
        self._time = time
        self.repay_calls: List[Tuple[str, int, int]] = []
        self.atomic_blocks = 0

    @property
    def current_time(self) -> int:
        return self._time

    def advance_time(self, new_time: int) -> None:
        self._time = new_time

    def get_loan_state(self, loan_id: int) -> Loan:
        return self._loans.get(loan_id, Loan())

    def set_loan(self, loan_id: int, loan: Loan) -> None:
        self._loans[loan_id] = loan

    @contextmanager
    def atomic(self):
        self.atomic_blocks += 1
        yield

    def repay_loan(self, caller: str, loan_id: int, amount: int) -> None:
        self.repay_calls.append((caller, loan_id, amount))


# =============================================================================
# WIRED MARKET
# =============================================================================

@dataclass
class MarketSetup:
    """A ledger with one credit line, one pool and one configured borrower."""
    ledger: LoanLedger
    tokens: TokenLedger
    line: CreditLine
    pool: LiquidityPool

    def advance_periods(self, periods: int) -> None:
        self.ledger.advance_time(self.ledger.current_time + periods * PERIOD_IN_SECONDS)

    def take_loan(self, amount: int = BORROW_AMOUNT, duration: int = DURATION_IN_PERIODS) -> int:
        return self.ledger.take_loan(BORROWER, CREDIT_LINE, amount, duration)

    def borrower_balance(self) -> int:
        return self.tokens.balance_of(TOKEN, BORROWER)

    def pool_balance(self) -> int:
        return self.tokens.balance_of(TOKEN, POOL)


def build_market(
    borrow_policy: BorrowPolicy = BorrowPolicy.MULTIPLE_ACTIVE_LOANS,
    line_config: Optional[CreditLineConfig] = None,
    borrower_config: Optional[BorrowerConfig] = None,
    pool_funds: int = POOL_FUNDS,
    borrower_funds: int = BORROWER_FUNDS,
    accuracy_factor: int = 10_000,
    verbose: bool = False,
) -> MarketSetup:
    """Create a funded market with the borrower configured under borrow_policy."""
    tokens = TokenLedger()
    ledger = LoanLedger(OWNER, tokens, initial_time=START_TIME, verbose=verbose, accuracy_factor=accuracy_factor)
    line = CreditLine(CREDIT_LINE, LENDER, ledger, TOKEN, accuracy=accuracy_factor)
    pool = LiquidityPool(POOL, LENDER, ledger, tokens, TOKEN)

    ledger.register_credit_line(LENDER, line)
    ledger.register_liquidity_pool(LENDER, pool)
    ledger.configure_alias(LENDER, ALIAS, True)

    line.configure_credit_line(LENDER, line_config or default_credit_line_config())
    line.grant_admin(LENDER, ADMIN)
    line.configure_borrower(
        ADMIN, BORROWER, borrower_config or default_borrower_config(borrow_policy=borrow_policy)
    )
    pool.grant_admin(LENDER, ADMIN)

    if pool_funds:
        tokens.mint(TOKEN, LENDER, pool_funds)
        pool.deposit(LENDER, pool_funds)
    if borrower_funds:
        tokens.mint(TOKEN, BORROWER, borrower_funds)

    return MarketSetup(ledger=ledger, tokens=tokens, line=line, pool=pool)
