"""
Core types, constants and exceptions for the lending ledger.

This module provides the foundational pieces shared by every component:
1. Constants: rate factor, period length, sentinels and counter limits
2. Exceptions: LendingError and the domain-specific error taxonomy
3. Protocols: LoanHooks (treasury / credit-line callbacks), LoanView,
   Transactional (snapshot / restore participants)
4. Immutable records: Event

Nothing in this module mutates ledger state.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Protocol, Tuple, runtime_checkable
import copy


# ============================================================================
# CONSTANTS
# ============================================================================

# The zero identity. Every borrower, lender, alias and collaborator must differ from it.
ZERO_ADDRESS = ""

# Fixed-point denominator for interest and addon rates (rate 10% == INTEREST_RATE_FACTOR // 10).
INTEREST_RATE_FACTOR = 10 ** 9

# Length of one accrual period.
PERIOD_IN_SECONDS = 86400

# Loan timestamps are shifted back so that periods start at 03:00 UTC.
NEGATIVE_TIME_OFFSET = 3 * 60 * 60

# Borrow, repayment and outstanding amounts are multiples of this unit.
ACCURACY_FACTOR = 10_000

# Number of periods after origination during which a borrower may revoke a loan.
COOLDOWN_IN_PERIODS = 3

# Repay-all sentinel accepted by repay_loan().
FULL_REPAYMENT_AMOUNT = 2 ** 256 - 1

# Representable ranges of the per-borrower counters.
MAX_LOAN_COUNT = 2 ** 16 - 1
MAX_LOAN_AMOUNT_TOTAL = 2 ** 64 - 1
MAX_DURATION_IN_PERIODS = 2 ** 32 - 1

# Borrower configurations that never expire in practice.
DEFAULT_EXPIRATION = 2 ** 32 - 1


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LendingError(Exception):
    """Base exception for all lending-ledger errors."""
    pass


# --- (a) input validation ---------------------------------------------------

class InputValidationError(LendingError):
    """Raised when an argument is malformed."""
    pass


class ZeroAddress(InputValidationError):
    """Raised when a required identity is the zero identity."""
    pass


class InvalidAmount(InputValidationError):
    """Raised when an amount is zero, out of range, or not a multiple of the accuracy factor."""
    pass


class ArrayLengthMismatch(InputValidationError):
    """Raised when batch arguments have different lengths."""
    pass


# --- (b) authorization ------------------------------------------------------

class AuthorizationError(LendingError):
    """Raised when the caller may not perform the operation."""
    pass


class Unauthorized(AuthorizationError):
    """Raised when the caller is not the designated borrower, lender, alias, owner or admin."""
    pass


class CooldownPeriodHasPassed(AuthorizationError):
    """Raised when a borrower tries to revoke a loan after the cooldown window."""
    pass


class AutoRepaymentNotAllowed(AuthorizationError):
    """Raised when the treasury triggers a repayment for a loan without auto-repayment."""
    pass


# --- (c) state-inappropriate ------------------------------------------------

class LoanStateError(LendingError):
    """Raised when the current state does not allow the operation."""
    pass


class LoanNotExist(LoanStateError):
    """Raised when the loan identifier was never allocated."""
    pass


class LoanAlreadyRepaid(LoanStateError):
    """Raised when the loan is already settled or revoked."""
    pass


class LoanAlreadyFrozen(LoanStateError):
    """Raised when freezing a loan that is already frozen."""
    pass


class LoanNotFrozen(LoanStateError):
    """Raised when unfreezing a loan that is not frozen."""
    pass


class AlreadyConfigured(LoanStateError):
    """Raised when a registration or alias configuration would not change anything."""
    pass


class EnforcedPause(LoanStateError):
    """Raised when a mutating operation is attempted while paused."""
    pass


class ExpectedPause(LoanStateError):
    """Raised when unpausing something that is not paused."""
    pass


# --- (d) business-rule violation --------------------------------------------

class BusinessRuleViolation(LendingError):
    """Raised when an operation breaks an underwriting or loan-term rule."""
    pass


class InappropriateLoanDuration(BusinessRuleViolation):
    """Raised when a duration update does not extend the loan."""
    pass


class InappropriateInterestRate(BusinessRuleViolation):
    """Raised when a rate update does not lower the rate."""
    pass


class InvalidCreditLineConfiguration(BusinessRuleViolation):
    """Raised when a credit-line configuration is inconsistent or degenerate."""
    pass


class InvalidBorrowerConfiguration(BusinessRuleViolation):
    """Raised when a borrower configuration does not nest inside the credit line."""
    pass


class BorrowerConfigurationExpired(BusinessRuleViolation):
    """Raised when the borrower configuration has expired or was never set."""
    pass


class LoanDurationOutOfRange(BusinessRuleViolation):
    """Raised when the requested duration is outside the borrower's range."""
    pass


class LimitViolationOnSingleActiveLoan(BusinessRuleViolation):
    """Raised when a single-active-loan borrower already has an active loan."""
    pass


class LimitViolationOnTotalActiveAmountLimit(BusinessRuleViolation):
    """Raised when a new loan would push the active amount past the borrower's limit."""
    pass


class CreditLineLenderNotConfigured(BusinessRuleViolation):
    """Raised when the credit line is not registered with the ledger."""
    pass


class LiquidityPoolLenderNotConfigured(BusinessRuleViolation):
    """Raised when the loan's treasury is not a pool registered by the same lender."""
    pass


class HookRejected(BusinessRuleViolation):
    """Raised when a collaborator hook returns failure."""
    pass


# --- (e) arithmetic bounds --------------------------------------------------

class ArithmeticBoundError(LendingError):
    """Raised when a counter or amount would leave its representable range."""
    pass


class BorrowerStateOverflow(ArithmeticBoundError):
    """Raised when a borrower's loan counters would overflow."""
    pass


# --- fund movements ---------------------------------------------------------

class InsufficientFunds(LendingError):
    """Raised when a token transfer exceeds the source wallet's balance."""
    pass


class InsufficientBalance(LendingError):
    """Raised when a liquidity pool's accounted balance cannot cover a debit."""
    pass


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class LoanHooks(Protocol):
    """
    Callback interface implemented by loan collaborators.

    The ledger calls these around every origination, payment and revocation.
    Each hook returns True on success. Returning False, or raising, aborts
    the enclosing ledger operation and rolls it back.
    """

    address: str

    def on_before_loan_taken(self, loan_id: int) -> bool:
        ...

    def on_after_loan_taken(self, loan_id: int) -> bool:
        ...

    def on_before_loan_payment(self, loan_id: int, amount: int) -> bool:
        ...

    def on_after_loan_payment(self, loan_id: int, amount: int) -> bool:
        ...

    def on_before_loan_revocation(self, loan_id: int) -> bool:
        ...

    def on_after_loan_revocation(self, loan_id: int) -> bool:
        ...


@runtime_checkable
class LoanView(Protocol):
    """
    Read-only interface to the loan ledger.

    Collaborators (credit lines, liquidity pools) receive a LoanView so they
    can read loan records and the clock without the ability to mutate them.
    """

    @property
    def current_time(self) -> int:
        """Return the current logical time in seconds."""
        ...

    def get_loan_state(self, loan_id: int) -> Any:
        """Return the Loan record for loan_id (an empty record if absent)."""
        ...


@runtime_checkable
class Transactional(Protocol):
    """Participant in ledger atomicity: can capture and restore its own state."""

    def snapshot(self) -> Dict[str, Any]:
        ...

    def restore(self, snapshot: Dict[str, Any]) -> None:
        ...


class SnapshotMixin:
    """
    Implements Transactional for classes that list their mutable attributes.

    Subclasses set _SNAPSHOT_FIELDS to the attribute names that make up their
    state, and _LOG_FIELDS to append-only lists of immutable records. Logs are
    captured by length and truncated on restore, so a snapshot costs the same
    however long the history is. References to other components are never
    part of a snapshot.
    """

    _SNAPSHOT_FIELDS: Tuple[str, ...] = ()
    _LOG_FIELDS: Tuple[str, ...] = ()

    def snapshot(self) -> Dict[str, Any]:
        state = {name: copy.deepcopy(getattr(self, name)) for name in self._SNAPSHOT_FIELDS}
        state.update({name: len(getattr(self, name)) for name in self._LOG_FIELDS})
        return state

    def restore(self, snapshot: Dict[str, Any]) -> None:
        for name in self._SNAPSHOT_FIELDS:
            setattr(self, name, snapshot[name])
        for name in self._LOG_FIELDS:
            del getattr(self, name)[snapshot[name]:]


# ============================================================================
# EVENTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class Event:
    """
    Immutable record of a committed state change, for the audit trail.

    Attributes:
        name: Event name (e.g., "LoanTaken", "BorrowerConfigured")
        source: Identity of the component that emitted it
        timestamp: Logical clock time at emission
        args: Event payload
    """
    name: str
    source: str
    timestamp: int
    args: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Event name cannot be empty")
        if self.timestamp < 0:
            raise ValueError(f"Event timestamp cannot be negative, got {self.timestamp}")

    def __repr__(self) -> str:
        payload = ", ".join(f"{k}={v}" for k, v in self.args.items())
        return f"{self.name}({payload})"
