"""
loan.py - Loan Records and Balance Projection

This module holds the loan record and the pure projection logic shared by
previews and repayments.

ARCHITECTURE (Pure Function Pattern):
=====================================

1. FROZEN DATACLASSES:
   - Loan: one record per loan identifier. Mutations replace the record
     (dataclasses.replace); the ledger owns the mapping id -> Loan.
   - LoanPreview: computed view at a timestamp, never stored.

2. PURE CALCULATION FUNCTIONS:
   - project_loan(loan, timestamp) -> (tracked_balance, period_index)
   - calculate_loan_preview(loan, timestamp, accuracy) -> LoanPreview
   - calculate_loan_status(loan) -> LoanStatus

Projection rules:
    frozen loans project to their freeze timestamp
    period_index  = timestamp // period
    tracked       = tracked_timestamp // period
    due           = start_timestamp // period + duration_in_periods

    period_index <= tracked   -> stored balance
    period_index <  due       -> primary rate for the whole span
    tracked      >= due       -> secondary rate for the whole span
    otherwise                 -> primary up to due, then secondary on the result

All timestamps stored on a Loan already include the ledger's negative time offset.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from .core import ZERO_ADDRESS, INTEREST_RATE_FACTOR, PERIOD_IN_SECONDS
from .accrual import accrue, calculate_period_index
from .rounding import round_math


class LoanStatus(Enum):
    """
    Position of a loan in its state machine.

    ABSENT: The identifier was never allocated (token unset).
    ACTIVE: Balance outstanding and accruing.
    FROZEN: Balance outstanding, accrual and tenor suspended.
    SETTLED: Balance zero, either repaid in full or revoked. Terminal.
    """
    ABSENT = "absent"
    ACTIVE = "active"
    FROZEN = "frozen"
    SETTLED = "settled"


@dataclass(frozen=True, slots=True)
class Loan:
    """
    Immutable snapshot of a loan record.

    A record whose token is the zero identity represents a loan that never
    existed; the ledger returns one for unknown identifiers.
    """
    token: str = ZERO_ADDRESS
    borrower: str = ZERO_ADDRESS
    lender: str = ZERO_ADDRESS
    credit_line: str = ZERO_ADDRESS
    treasury: str = ZERO_ADDRESS           # liquidity pool funding the loan
    start_timestamp: int = 0
    tracked_timestamp: int = 0
    freeze_timestamp: int = 0              # 0 when not frozen
    duration_in_periods: int = 0
    interest_rate_primary: int = 0
    interest_rate_secondary: int = 0
    borrow_amount: int = 0
    addon_amount: int = 0
    repaid_amount: int = 0
    tracked_balance: int = 0               # principal + addon + interest as of tracked_timestamp
    period_in_seconds: int = PERIOD_IN_SECONDS
    interest_rate_factor: int = INTEREST_RATE_FACTOR
    auto_repayment: bool = False

    def __post_init__(self):
        for name in (
            "start_timestamp", "tracked_timestamp", "freeze_timestamp",
            "duration_in_periods", "interest_rate_primary", "interest_rate_secondary",
            "borrow_amount", "addon_amount", "repaid_amount", "tracked_balance",
        ):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValueError(f"Loan {name} must be int, got {type(value)}")
            if value < 0:
                raise ValueError(f"Loan {name} cannot be negative, got {value}")
        if self.period_in_seconds <= 0:
            raise ValueError(f"Loan period_in_seconds must be positive, got {self.period_in_seconds}")
        if self.interest_rate_factor <= 0:
            raise ValueError(f"Loan interest_rate_factor must be positive, got {self.interest_rate_factor}")

    @property
    def exists(self) -> bool:
        return self.token != ZERO_ADDRESS

    @property
    def is_frozen(self) -> bool:
        return self.freeze_timestamp != 0

    @property
    def is_settled(self) -> bool:
        return self.exists and self.tracked_balance == 0

    @property
    def start_period(self) -> int:
        return calculate_period_index(self.start_timestamp, self.period_in_seconds)

    @property
    def due_period(self) -> int:
        return self.start_period + self.duration_in_periods


@dataclass(frozen=True, slots=True)
class LoanPreview:
    """
    Balance of a loan projected to a timestamp.

    Attributes:
        period_index: Period of the projection timestamp
        tracked_balance: Exact projected balance
        outstanding_balance: tracked_balance rounded half up to the accuracy factor
    """
    period_index: int = 0
    tracked_balance: int = 0
    outstanding_balance: int = 0


# ============================================================================
# PURE CALCULATION FUNCTIONS
# ============================================================================

def project_loan(loan: Loan, timestamp: int) -> Tuple[int, int]:
    """
    Project the loan's balance forward from tracked_timestamp to timestamp.

    Args:
        loan: Loan record
        timestamp: Target time (offset-adjusted). Replaced by the freeze
            timestamp when the loan is frozen.

    Returns:
        (tracked_balance, period_index) at the target time
    """
    if loan.is_frozen:
        timestamp = loan.freeze_timestamp

    period_index = calculate_period_index(timestamp, loan.period_in_seconds)
    tracked_period = calculate_period_index(loan.tracked_timestamp, loan.period_in_seconds)
    balance = loan.tracked_balance

    if period_index <= tracked_period:
        return balance, period_index

    due_period = loan.due_period
    factor = loan.interest_rate_factor

    if period_index < due_period:
        balance = accrue(balance, period_index - tracked_period, loan.interest_rate_primary, factor)
    elif tracked_period >= due_period:
        balance = accrue(balance, period_index - tracked_period, loan.interest_rate_secondary, factor)
    else:
        balance = accrue(balance, due_period - tracked_period, loan.interest_rate_primary, factor)
        balance = accrue(balance, period_index - due_period, loan.interest_rate_secondary, factor)

    return balance, period_index


def calculate_loan_preview(loan: Loan, timestamp: int, accuracy: int) -> LoanPreview:
    """Preview of the loan at timestamp. An absent loan previews as all zeros."""
    if not loan.exists:
        return LoanPreview()
    tracked_balance, period_index = project_loan(loan, timestamp)
    return LoanPreview(
        period_index=period_index,
        tracked_balance=tracked_balance,
        outstanding_balance=round_math(tracked_balance, accuracy),
    )


def calculate_loan_status(loan: Loan) -> LoanStatus:
    """Derive the state-machine position from the record's fields."""
    if not loan.exists:
        return LoanStatus.ABSENT
    if loan.tracked_balance == 0:
        return LoanStatus.SETTLED
    if loan.is_frozen:
        return LoanStatus.FROZEN
    return LoanStatus.ACTIVE
