#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Learn the Lending Ledger Step by Step

This is a pedagogical demonstration of how loans are originated, accrue
interest, and settle. Each step builds on the previous one. Press Enter
to advance.

WHAT YOU'LL LEARN:
  1-3:  Setup          - Token ledger, loan ledger, credit line, liquidity pool
  4-6:  Loan Lifecycle - Origination with an addon, accrual, partial repayment
  7-8:  Servicing      - Freezing a loan, late interest, full repayment
  9-10: Safety         - Rejections roll back, revocation, conservation

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
import sys

from lending import (
    # Core classes
    TokenLedger, LoanLedger, CreditLine, LiquidityPool,
    # Configuration
    CreditLineConfig, BorrowerConfig, BorrowPolicy,
    # Queries
    calculate_loan_status,
    # Constants
    FULL_REPAYMENT_AMOUNT, PERIOD_IN_SECONDS, DEFAULT_EXPIRATION,
    # Errors
    LendingError,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    token: str = "USDC"

    # Initial funding (6 decimal places: 1_000_000 = 1 USDC)
    pool_deposit: int = 100_000_000_000
    borrower_wallet: int = 5_000_000_000

    # Loan parameters
    borrow_amount: int = 1_000_000_000
    duration_in_periods: int = 30
    interest_rate_primary: int = 2_500_000    # 0.25% per day
    interest_rate_secondary: int = 5_000_000  # 0.50% per day once overdue
    addon_fixed_rate: int = 10_000_000        # 1% up front
    addon_period_rate: int = 1_000_000        # 0.1% per period of duration


CONFIG = DemoConfig()

# Global state for interactive mode
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


def usdc(amount: int) -> str:
    return f"{amount / 1_000_000:>14,.6f} {CONFIG.token}"


@dataclass
class Market:
    tokens: TokenLedger
    ledger: LoanLedger
    line: CreditLine
    pool: LiquidityPool

    def advance_periods(self, periods: int) -> None:
        self.ledger.advance_time(self.ledger.current_time + periods * PERIOD_IN_SECONDS)


# ============================================================================
# PHASE 1: SETUP (Steps 1-3)
# ============================================================================

def step_01_ledgers():
    """Create the token ledger and the loan ledger."""
    step_header(1, "Two Ledgers",
        "Tokens move through a TokenLedger; loans live in a LoanLedger.")

    print("""
    The lending system keeps two books:

    1. TokenLedger - who holds how many tokens (wallet balances)
    2. LoanLedger  - loan records: borrower, rates, tracked balance

    The loan ledger is the only thing that changes loan records, and it
    moves tokens through the token ledger when loans are taken or repaid.
    """)

    wait_for_enter()

    print('>>> tokens = TokenLedger()')
    print('>>> ledger = LoanLedger("owner", tokens, verbose=True)')
    tokens = TokenLedger()
    ledger = LoanLedger("owner", tokens, verbose=True)

    section_header("Initial State")
    print(f"Current time:  {ledger.current_time}")
    print(f"Loan counter:  {ledger.loan_counter}")
    print(f"Event log:     {len(ledger.event_log)} entries")

    return tokens, ledger


def step_02_credit_line(tokens: TokenLedger, ledger: LoanLedger):
    """Register a credit line and a liquidity pool for the lender."""
    step_header(2, "Credit Line and Liquidity Pool",
        "A lender underwrites with a credit line and funds loans from a pool.")

    print("""
    A lender brings two collaborators:

    - CreditLine:    the underwriting policy (who may borrow, how much, at what rate)
    - LiquidityPool: the treasury that disburses loans and receives repayments

    Registering them makes the caller their lender.
    """)

    wait_for_enter()

    line = CreditLine("line", lender="bank", market=ledger, token=CONFIG.token)
    pool = LiquidityPool("pool", lender="bank", market=ledger, tokens=tokens, token=CONFIG.token)
    ledger.register_credit_line("bank", line)
    ledger.register_liquidity_pool("bank", pool)

    line.configure_credit_line("bank", CreditLineConfig(
        treasury="pool",
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
    ))

    section_header("Funding the Pool")
    tokens.mint(CONFIG.token, "bank", CONFIG.pool_deposit)
    pool.deposit("bank", CONFIG.pool_deposit)
    borrowable, addons = pool.get_balances()
    print(f"Borrowable: {usdc(borrowable)}")
    print(f"Addons:     {usdc(addons)}")

    return Market(tokens, ledger, line, pool)


def step_03_borrower(market: Market):
    """Configure a borrower."""
    step_header(3, "Underwriting a Borrower",
        "Admins grant each borrower limits and rates inside the credit line's ranges.")

    print("""
    A BorrowerConfig says:

    - how much (min/max borrow amount) and for how long (min/max duration)
    - at what rates (primary until due, secondary once overdue)
    - what addon fee is charged up front
    - which BorrowPolicy limits repeated borrowing
    """)

    wait_for_enter()

    market.line.grant_admin("bank", "underwriter")
    market.line.configure_borrower("underwriter", "alice", BorrowerConfig(
        expiration=DEFAULT_EXPIRATION,
        min_borrow_amount=10_000,
        max_borrow_amount=5_000_000_000,
        min_duration_in_periods=1,
        max_duration_in_periods=365,
        borrow_policy=BorrowPolicy.MULTIPLE_ACTIVE_LOANS,
        interest_rate_primary=CONFIG.interest_rate_primary,
        interest_rate_secondary=CONFIG.interest_rate_secondary,
        addon_fixed_rate=CONFIG.addon_fixed_rate,
        addon_period_rate=CONFIG.addon_period_rate,
    ))
    market.tokens.mint(CONFIG.token, "alice", CONFIG.borrower_wallet)

    section_header("Borrower Configuration")
    config = market.line.get_borrower_configuration("alice")
    print(f"Policy:         {config.borrow_policy.value}")
    print(f"Borrow range:   {usdc(config.min_borrow_amount)} .. {usdc(config.max_borrow_amount)}")
    print(f"Primary rate:   {config.interest_rate_primary / 1e9:.4%} per period")
    print(f"Secondary rate: {config.interest_rate_secondary / 1e9:.4%} per period")

    return market


# ============================================================================
# PHASE 2: LOAN LIFECYCLE (Steps 4-6)
# ============================================================================

def step_04_take_loan(market: Market):
    """Originate a loan with an addon."""
    step_header(4, "Taking a Loan",
        "The borrower receives the borrow amount; the debt includes the addon.")

    wait_for_enter()

    print(f'>>> loan_id = ledger.take_loan("alice", "line", {CONFIG.borrow_amount}, {CONFIG.duration_in_periods})')
    loan_id = market.ledger.take_loan("alice", "line", CONFIG.borrow_amount, CONFIG.duration_in_periods)

    loan = market.ledger.get_loan_state(loan_id)
    section_header("Loan Record")
    print(f"Borrow amount:  {usdc(loan.borrow_amount)}")
    print(f"Addon amount:   {usdc(loan.addon_amount)}")
    print(f"Tracked:        {usdc(loan.tracked_balance)}")
    print(f"Due period:     {loan.due_period}")

    section_header("Key Insight")
    print("""
    The pool moves the addon from its borrowable balance into its addon
    balance at origination, so borrowable drops by borrow amount + addon,
    and the borrower owes both.
    """)

    return loan_id


def step_05_accrual(market: Market, loan_id: int):
    """Watch interest compound."""
    step_header(5, "Compound Interest",
        "Balances compound once per whole period, exactly and deterministically.")

    wait_for_enter()

    print("    Period   Outstanding")
    for _ in range(4):
        preview = market.ledger.get_loan_preview(loan_id)
        print(f"    {preview.period_index}    {usdc(preview.outstanding_balance)}")
        market.advance_periods(5)

    section_header("Key Insight")
    print("""
    get_loan_preview() never changes the record: the stored balance is
    only brought forward when a repayment, freeze or revocation happens.
    """)


def step_06_partial_repayment(market: Market, loan_id: int):
    """Repay part of the loan."""
    step_header(6, "Partial Repayment",
        "A repayment brings the balance forward, then reduces it by the amount paid.")

    wait_for_enter()

    before = market.ledger.get_loan_preview(loan_id).outstanding_balance
    market.ledger.repay_loan("alice", loan_id, 400_000_000)
    after = market.ledger.get_loan_preview(loan_id).outstanding_balance

    section_header("Balances")
    print(f"Before:  {usdc(before)}")
    print(f"Paid:    {usdc(400_000_000)}")
    print(f"After:   {usdc(after)}")


# ============================================================================
# PHASE 3: SERVICING (Steps 7-8)
# ============================================================================

def step_07_freeze(market: Market, loan_id: int):
    """Freeze and unfreeze the loan."""
    step_header(7, "Freezing a Loan",
        "A frozen loan stops accruing; unfreezing extends the duration.")

    wait_for_enter()

    market.ledger.freeze("bank", loan_id)
    frozen = market.ledger.get_loan_preview(loan_id).outstanding_balance
    market.advance_periods(10)
    print(f"Outstanding after 10 frozen periods: {usdc(market.ledger.get_loan_preview(loan_id).outstanding_balance)}")
    print(f"Outstanding when frozen:             {usdc(frozen)}")

    market.ledger.unfreeze("bank", loan_id)
    loan = market.ledger.get_loan_state(loan_id)
    print(f"Duration is now {loan.duration_in_periods} periods (was {CONFIG.duration_in_periods})")


def step_08_settle(market: Market, loan_id: int):
    """Let the loan go overdue, then repay in full."""
    step_header(8, "Overdue and Settled",
        "Past the due period the secondary rate applies. FULL_REPAYMENT_AMOUNT settles exactly.")

    wait_for_enter()

    market.advance_periods(40)
    preview = market.ledger.get_loan_preview(loan_id)
    print(f"Outstanding at period {preview.period_index}: {usdc(preview.outstanding_balance)}")

    market.ledger.repay_loan("alice", loan_id, FULL_REPAYMENT_AMOUNT)
    loan = market.ledger.get_loan_state(loan_id)
    print(f"Status:        {calculate_loan_status(loan).value}")
    print(f"Total repaid:  {usdc(loan.repaid_amount)}")


# ============================================================================
# PHASE 4: SAFETY (Steps 9-10)
# ============================================================================

def step_09_rejection_and_revocation(market: Market):
    """Show a rejected repayment and a revocation inside the cooldown."""
    step_header(9, "Rejections and Revocation",
        "Failed operations change nothing. Borrowers may cancel a fresh loan.")

    wait_for_enter()

    loan_id = market.ledger.take_loan("alice", "line", CONFIG.borrow_amount, 10)
    events = len(market.ledger.event_log)

    section_header("Repaying more than is owed")
    try:
        market.ledger.repay_loan("alice", loan_id, 10 * CONFIG.borrow_amount)
    except LendingError as exc:
        print(f"Rejected with {type(exc).__name__}")
    print(f"Event log unchanged: {len(market.ledger.event_log) == events}")

    section_header("Revoking within the cooldown")
    market.advance_periods(1)
    market.ledger.revoke_loan("alice", loan_id)
    print(f"Status: {calculate_loan_status(market.ledger.get_loan_state(loan_id)).value}")


def step_10_conservation(market: Market):
    """Verify that every token is accounted for."""
    step_header(10, "Conservation",
        "Loans move tokens between wallets; the total supply never changes.")

    wait_for_enter()

    supply = market.tokens.total_supply(CONFIG.token)
    alice = market.tokens.balance_of(CONFIG.token, "alice")
    pool = market.tokens.balance_of(CONFIG.token, "pool")
    borrowable, addons = market.pool.get_balances()

    print(f"Alice:    {usdc(alice)}")
    print(f"Pool:     {usdc(pool)}")
    print(f"          {'-'*19}")
    print(f"TOTAL:    {usdc(alice + pool)}")
    print(f"Supply:   {usdc(supply)}")
    print(f"\nPool accounting: borrowable + addons = {usdc(borrowable + addons)}")
    print(f"Lender profit:   {usdc(pool - CONFIG.pool_deposit)}")


def main():
    """Run the complete tutorial."""
    print("=" * 70)
    print("       LENDING LEDGER - INTERACTIVE TUTORIAL")
    print("=" * 70)

    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    else:
        print("Running in INTERACTIVE mode (press Enter to advance)")

    wait_for_enter()

    tokens, ledger = step_01_ledgers()
    market = step_02_credit_line(tokens, ledger)
    market = step_03_borrower(market)

    loan_id = step_04_take_loan(market)
    step_05_accrual(market, loan_id)
    step_06_partial_repayment(market, loan_id)

    step_07_freeze(market, loan_id)
    step_08_settle(market, loan_id)

    step_09_rejection_and_revocation(market)
    step_10_conservation(market)

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    print("""
    Next steps:
      - See lending/*.py for the module documentation
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
