"""
lending - Loan Accounting Engine

Loans as mutable financial records: deterministic compound-interest accrual,
credit-line underwriting policy, and atomic origination, repayment, freeze
and revocation.

Usage:
    from lending import (
        LoanLedger, TokenLedger, CreditLine, CreditLineConfig,
        BorrowerConfig, BorrowPolicy, LiquidityPool, FULL_REPAYMENT_AMOUNT,
    )

    tokens = TokenLedger()
    ledger = LoanLedger("owner", tokens)
    pool = LiquidityPool("pool", lender="bank", market=ledger, tokens=tokens, token="USDC")
    line = CreditLine("line", lender="bank", market=ledger, token="USDC")
    ledger.register_credit_line("bank", line)
    ledger.register_liquidity_pool("bank", pool)

    line.configure_credit_line("bank", CreditLineConfig(treasury="pool", ...))
    line.grant_admin("bank", "underwriter")
    line.configure_borrower("underwriter", "alice", BorrowerConfig(...))

    tokens.mint("USDC", "bank", 10_000_000)
    pool.deposit("bank", 10_000_000)

    loan_id = ledger.take_loan("alice", "line", 1_000_000, 30)
    ledger.get_loan_preview(loan_id)
    ledger.repay_loan("alice", loan_id, FULL_REPAYMENT_AMOUNT)
"""

# Core types
from .core import (
    LoanHooks,
    LoanView,
    Transactional,
    Event,
    ZERO_ADDRESS,
    INTEREST_RATE_FACTOR,
    PERIOD_IN_SECONDS,
    NEGATIVE_TIME_OFFSET,
    ACCURACY_FACTOR,
    COOLDOWN_IN_PERIODS,
    FULL_REPAYMENT_AMOUNT,
    MAX_LOAN_COUNT,
    MAX_LOAN_AMOUNT_TOTAL,
    MAX_DURATION_IN_PERIODS,
    DEFAULT_EXPIRATION,
    # Exceptions
    LendingError,
    InputValidationError,
    ZeroAddress,
    InvalidAmount,
    ArrayLengthMismatch,
    AuthorizationError,
    Unauthorized,
    CooldownPeriodHasPassed,
    AutoRepaymentNotAllowed,
    LoanStateError,
    LoanNotExist,
    LoanAlreadyRepaid,
    LoanAlreadyFrozen,
    LoanNotFrozen,
    AlreadyConfigured,
    EnforcedPause,
    ExpectedPause,
    BusinessRuleViolation,
    InappropriateLoanDuration,
    InappropriateInterestRate,
    InvalidCreditLineConfiguration,
    InvalidBorrowerConfiguration,
    BorrowerConfigurationExpired,
    LoanDurationOutOfRange,
    LimitViolationOnSingleActiveLoan,
    LimitViolationOnTotalActiveAmountLimit,
    CreditLineLenderNotConfigured,
    LiquidityPoolLenderNotConfigured,
    HookRejected,
    ArithmeticBoundError,
    BorrowerStateOverflow,
    InsufficientFunds,
    InsufficientBalance,
)

# Rounding
from .rounding import round_up, round_down, round_math

# Accrual
from .accrual import (
    accrue,
    calculate_outstanding_balance,
    calculate_period_index,
    ACCRUAL_PRECISION,
)

# Loans
from .loan import (
    Loan,
    LoanPreview,
    LoanStatus,
    project_loan,
    calculate_loan_preview,
    calculate_loan_status,
)

# Tokens
from .tokens import Move, TokenLedger

# Credit lines
from .credit_line import (
    BorrowPolicy,
    CreditLineConfig,
    BorrowerConfig,
    BorrowerState,
    LoanTerms,
    CreditLine,
    validate_credit_line_config,
    validate_borrower_config,
    calculate_addon_amount,
    calculate_loan_terms,
    apply_loan_origination,
    apply_loan_settlement,
)

# Liquidity pools
from .liquidity_pool import LiquidityPool

# Ledger
from .ledger import LoanLedger, DEFAULT_INITIAL_TIME


__all__ = [
    # Core
    'LoanHooks', 'LoanView', 'Transactional', 'Event',
    'ZERO_ADDRESS', 'INTEREST_RATE_FACTOR', 'PERIOD_IN_SECONDS', 'NEGATIVE_TIME_OFFSET',
    'ACCURACY_FACTOR', 'COOLDOWN_IN_PERIODS', 'FULL_REPAYMENT_AMOUNT',
    'MAX_LOAN_COUNT', 'MAX_LOAN_AMOUNT_TOTAL', 'MAX_DURATION_IN_PERIODS', 'DEFAULT_EXPIRATION',
    # Exceptions
    'LendingError',
    'InputValidationError', 'ZeroAddress', 'InvalidAmount', 'ArrayLengthMismatch',
    'AuthorizationError', 'Unauthorized', 'CooldownPeriodHasPassed', 'AutoRepaymentNotAllowed',
    'LoanStateError', 'LoanNotExist', 'LoanAlreadyRepaid', 'LoanAlreadyFrozen', 'LoanNotFrozen',
    'AlreadyConfigured', 'EnforcedPause', 'ExpectedPause',
    'BusinessRuleViolation', 'InappropriateLoanDuration', 'InappropriateInterestRate',
    'InvalidCreditLineConfiguration', 'InvalidBorrowerConfiguration',
    'BorrowerConfigurationExpired', 'LoanDurationOutOfRange',
    'LimitViolationOnSingleActiveLoan', 'LimitViolationOnTotalActiveAmountLimit',
    'CreditLineLenderNotConfigured', 'LiquidityPoolLenderNotConfigured', 'HookRejected',
    'ArithmeticBoundError', 'BorrowerStateOverflow',
    'InsufficientFunds', 'InsufficientBalance',
    # Rounding
    'round_up', 'round_down', 'round_math',
    # Accrual
    'accrue', 'calculate_outstanding_balance', 'calculate_period_index', 'ACCRUAL_PRECISION',
    # Loans
    'Loan', 'LoanPreview', 'LoanStatus', 'project_loan', 'calculate_loan_preview',
    'calculate_loan_status',
    # Tokens
    'Move', 'TokenLedger',
    # Credit lines
    'BorrowPolicy', 'CreditLineConfig', 'BorrowerConfig', 'BorrowerState', 'LoanTerms',
    'CreditLine', 'validate_credit_line_config', 'validate_borrower_config',
    'calculate_addon_amount', 'calculate_loan_terms',
    'apply_loan_origination', 'apply_loan_settlement',
    # Liquidity pools
    'LiquidityPool',
    # Ledger
    'LoanLedger', 'DEFAULT_INITIAL_TIME',
]

__version__ = '1.0.0'
