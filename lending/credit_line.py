"""
credit_line.py - Credit-Line Underwriting Policy

This module holds a lender's underwriting bounds, the per-borrower
configurations nested inside them, and the borrow-policy state machine that
runs when loans are originated and settled.

ARCHITECTURE (Pure Function Pattern):
=====================================

1. FROZEN DATACLASSES (explicit inputs):
   - CreditLineConfig: global bounds, treasury, period length, rate factor
   - BorrowerConfig: one borrower's sub-range, rates, expiration and policy
   - BorrowerState: per-borrower loan counters
   - LoanTerms: terms for one prospective loan (ephemeral)

2. PURE CALCULATION FUNCTIONS:
   - validate_credit_line_config(), validate_borrower_config()
   - calculate_addon_amount()
   - calculate_loan_terms()
   - apply_loan_origination(), apply_loan_settlement()

3. STATEFUL WRAPPER (CreditLine):
   - Stores the configs and states, checks the caller, emits events
   - Implements the LoanHooks callbacks the loan ledger invokes

Borrow policies (both generations are explicit variants):
    allowance-based:  RESET, KEEP, DECREASE
        RESET     zero the remaining allowance (max_borrow_amount) on origination
        KEEP      leave the allowance untouched
        DECREASE  subtract the borrowed amount from the allowance
        Settlement never restores an allowance.
    counter-based:    SINGLE_ACTIVE_LOAN, MULTIPLE_ACTIVE_LOANS, TOTAL_ACTIVE_AMOUNT_LIMIT
        SINGLE_ACTIVE_LOAN         reject while another loan is active
        MULTIPLE_ACTIVE_LOANS      never reject
        TOTAL_ACTIVE_AMOUNT_LIMIT  reject if active amount + amount > max_borrow_amount

BorrowerState counters are maintained under every policy.

Addon fee:
    addon_rate = addon_period_rate * duration + addon_fixed_rate
    addon      = amount * addon_rate / (rate_factor - addon_rate), rounded up to accuracy
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .core import (
    # Types
    Event, LoanView, SnapshotMixin,
    # Constants
    ZERO_ADDRESS, ACCURACY_FACTOR, INTEREST_RATE_FACTOR, PERIOD_IN_SECONDS,
    MAX_LOAN_COUNT, MAX_LOAN_AMOUNT_TOTAL, MAX_DURATION_IN_PERIODS,
    # Exceptions
    ZeroAddress, InvalidAmount, ArrayLengthMismatch, Unauthorized, EnforcedPause, ExpectedPause,
    InvalidCreditLineConfiguration, InvalidBorrowerConfiguration,
    BorrowerConfigurationExpired, LoanDurationOutOfRange,
    LimitViolationOnSingleActiveLoan, LimitViolationOnTotalActiveAmountLimit,
    BorrowerStateOverflow,
)
from .rounding import round_up


# ============================================================================
# ENUMS
# ============================================================================

class BorrowPolicy(str, Enum):
    """How originating and settling loans affects a borrower's capacity."""
    # Allowance-based
    RESET = "RESET"
    KEEP = "KEEP"
    DECREASE = "DECREASE"
    # Counter-based
    SINGLE_ACTIVE_LOAN = "SINGLE_ACTIVE_LOAN"
    MULTIPLE_ACTIVE_LOANS = "MULTIPLE_ACTIVE_LOANS"
    TOTAL_ACTIVE_AMOUNT_LIMIT = "TOTAL_ACTIVE_AMOUNT_LIMIT"

    @property
    def is_allowance_based(self) -> bool:
        return self in (BorrowPolicy.RESET, BorrowPolicy.KEEP, BorrowPolicy.DECREASE)


def _check_non_negative_ints(obj, names: Sequence[str]) -> None:
    for name in names:
        value = getattr(obj, name)
        if not isinstance(value, int) or isinstance(value, bool):
            raise ValueError(f"{type(obj).__name__} {name} must be int, got {type(value)}")
        if value < 0:
            raise ValueError(f"{type(obj).__name__} {name} cannot be negative, got {value}")


# ============================================================================
# FROZEN DATACLASSES
# ============================================================================

@dataclass(frozen=True, slots=True)
class CreditLineConfig:
    """
    Global underwriting bounds of a credit line, set by its lender.

    Every borrower configuration must nest inside these ranges. The treasury
    is the liquidity pool that funds loans under this line.
    """
    treasury: str = ZERO_ADDRESS
    min_borrow_amount: int = 0
    max_borrow_amount: int = 0
    min_duration_in_periods: int = 0
    max_duration_in_periods: int = 0
    min_interest_rate_primary: int = 0
    max_interest_rate_primary: int = 0
    min_interest_rate_secondary: int = 0
    max_interest_rate_secondary: int = 0
    min_addon_fixed_rate: int = 0
    max_addon_fixed_rate: int = 0
    min_addon_period_rate: int = 0
    max_addon_period_rate: int = 0
    period_in_seconds: int = PERIOD_IN_SECONDS
    interest_rate_factor: int = INTEREST_RATE_FACTOR

    def __post_init__(self):
        _check_non_negative_ints(self, _CREDIT_LINE_INT_FIELDS)


_CREDIT_LINE_INT_FIELDS = (
    "min_borrow_amount", "max_borrow_amount",
    "min_duration_in_periods", "max_duration_in_periods",
    "min_interest_rate_primary", "max_interest_rate_primary",
    "min_interest_rate_secondary", "max_interest_rate_secondary",
    "min_addon_fixed_rate", "max_addon_fixed_rate",
    "min_addon_period_rate", "max_addon_period_rate",
    "period_in_seconds", "interest_rate_factor",
)


@dataclass(frozen=True, slots=True)
class BorrowerConfig:
    """
    One borrower's underwriting configuration under a credit line.

    An expired configuration (expiration < now) disables the borrower.
    Under allowance-based policies max_borrow_amount is the remaining
    allowance and is mutated as loans are taken.
    """
    expiration: int = 0
    min_borrow_amount: int = 0
    max_borrow_amount: int = 0
    min_duration_in_periods: int = 0
    max_duration_in_periods: int = 0
    borrow_policy: BorrowPolicy = BorrowPolicy.SINGLE_ACTIVE_LOAN
    interest_rate_primary: int = 0
    interest_rate_secondary: int = 0
    addon_fixed_rate: int = 0
    addon_period_rate: int = 0
    auto_repayment: bool = False

    def __post_init__(self):
        _check_non_negative_ints(self, (
            "expiration", "min_borrow_amount", "max_borrow_amount",
            "min_duration_in_periods", "max_duration_in_periods",
            "interest_rate_primary", "interest_rate_secondary",
            "addon_fixed_rate", "addon_period_rate",
        ))
        if not isinstance(self.borrow_policy, BorrowPolicy):
            object.__setattr__(self, 'borrow_policy', BorrowPolicy(self.borrow_policy))


@dataclass(frozen=True, slots=True)
class BorrowerState:
    """Aggregate loan counters of one borrower under a credit line."""
    active_loan_count: int = 0
    closed_loan_count: int = 0
    total_active_loan_amount: int = 0
    total_closed_loan_amount: int = 0

    def __post_init__(self):
        _check_non_negative_ints(self, (
            "active_loan_count", "closed_loan_count",
            "total_active_loan_amount", "total_closed_loan_amount",
        ))


@dataclass(frozen=True, slots=True)
class LoanTerms:
    """Terms of one prospective loan, copied into the Loan record at origination."""
    token: str
    treasury: str
    duration_in_periods: int
    interest_rate_primary: int
    interest_rate_secondary: int
    addon_amount: int
    period_in_seconds: int = PERIOD_IN_SECONDS
    interest_rate_factor: int = INTEREST_RATE_FACTOR
    auto_repayment: bool = False


# ============================================================================
# PURE CALCULATION FUNCTIONS
# ============================================================================

def validate_credit_line_config(config: CreditLineConfig) -> None:
    """
    Check a credit-line configuration for consistency.

    Raises:
        InvalidCreditLineConfiguration: On an inverted range, a zero treasury,
            period or rate factor, a rate at or above the rate factor, or an
            addon rate that could reach the rate factor
    """
    if config.treasury == ZERO_ADDRESS:
        raise InvalidCreditLineConfiguration("treasury is the zero identity")
    if config.period_in_seconds == 0:
        raise InvalidCreditLineConfiguration("period_in_seconds is zero")
    if config.interest_rate_factor == 0:
        raise InvalidCreditLineConfiguration("interest_rate_factor is zero")

    for low, high in (
        ("min_borrow_amount", "max_borrow_amount"),
        ("min_duration_in_periods", "max_duration_in_periods"),
        ("min_interest_rate_primary", "max_interest_rate_primary"),
        ("min_interest_rate_secondary", "max_interest_rate_secondary"),
        ("min_addon_fixed_rate", "max_addon_fixed_rate"),
        ("min_addon_period_rate", "max_addon_period_rate"),
    ):
        if getattr(config, low) > getattr(config, high):
            raise InvalidCreditLineConfiguration(
                f"{low}={getattr(config, low)} exceeds {high}={getattr(config, high)}"
            )

    if config.max_duration_in_periods > MAX_DURATION_IN_PERIODS:
        raise InvalidCreditLineConfiguration("max_duration_in_periods exceeds its range")
    factor = config.interest_rate_factor
    if config.max_interest_rate_primary >= factor or config.max_interest_rate_secondary >= factor:
        raise InvalidCreditLineConfiguration("interest rate must be below the rate factor")
    worst_addon_rate = (
        config.max_addon_period_rate * config.max_duration_in_periods + config.max_addon_fixed_rate
    )
    if worst_addon_rate >= factor:
        raise InvalidCreditLineConfiguration(
            f"addon rate {worst_addon_rate} can reach the rate factor {factor}"
        )


def validate_borrower_config(config: BorrowerConfig, line: Optional[CreditLineConfig]) -> None:
    """
    Check that a borrower configuration nests inside the credit line's bounds.

    Expiration is not checked: an expired configuration is a valid way to
    disable a borrower.

    Raises:
        InvalidCreditLineConfiguration: If the credit line is not configured yet
        InvalidBorrowerConfiguration: On an inverted or non-nesting range
    """
    if line is None:
        raise InvalidCreditLineConfiguration("credit line is not configured")

    if config.min_borrow_amount > config.max_borrow_amount:
        raise InvalidBorrowerConfiguration("min_borrow_amount exceeds max_borrow_amount")
    if config.min_duration_in_periods > config.max_duration_in_periods:
        raise InvalidBorrowerConfiguration("min_duration_in_periods exceeds max_duration_in_periods")

    checks: List[Tuple[str, int, int, int]] = [
        ("min_borrow_amount", config.min_borrow_amount, line.min_borrow_amount, line.max_borrow_amount),
        ("max_borrow_amount", config.max_borrow_amount, line.min_borrow_amount, line.max_borrow_amount),
        ("min_duration_in_periods", config.min_duration_in_periods,
         line.min_duration_in_periods, line.max_duration_in_periods),
        ("max_duration_in_periods", config.max_duration_in_periods,
         line.min_duration_in_periods, line.max_duration_in_periods),
        ("interest_rate_primary", config.interest_rate_primary,
         line.min_interest_rate_primary, line.max_interest_rate_primary),
        ("interest_rate_secondary", config.interest_rate_secondary,
         line.min_interest_rate_secondary, line.max_interest_rate_secondary),
        ("addon_fixed_rate", config.addon_fixed_rate,
         line.min_addon_fixed_rate, line.max_addon_fixed_rate),
        ("addon_period_rate", config.addon_period_rate,
         line.min_addon_period_rate, line.max_addon_period_rate),
    ]
    for name, value, low, high in checks:
        if value < low or value > high:
            raise InvalidBorrowerConfiguration(f"{name}={value} outside credit line range [{low}, {high}]")


def calculate_addon_amount(
    amount: int,
    duration_in_periods: int,
    addon_fixed_rate: int,
    addon_period_rate: int,
    interest_rate_factor: int,
    accuracy: int = ACCURACY_FACTOR
) -> int:
    """
    Upfront fee such that fee == (amount + fee) * addon_rate / interest_rate_factor.

    Solved for fee with a single division at the end, then rounded up to a
    multiple of accuracy. The result is the smallest multiple of accuracy
    that is not below the exact fee.

    Raises:
        InvalidCreditLineConfiguration: If addon_rate >= interest_rate_factor
    """
    addon_rate = addon_period_rate * duration_in_periods + addon_fixed_rate
    if addon_rate == 0:
        return 0
    if addon_rate >= interest_rate_factor:
        raise InvalidCreditLineConfiguration(
            f"addon rate {addon_rate} is not below the rate factor {interest_rate_factor}"
        )
    numerator = amount * addon_rate
    denominator = (interest_rate_factor - addon_rate) * accuracy
    return -(-numerator // denominator) * accuracy


def calculate_loan_terms(
    line: Optional[CreditLineConfig],
    config: BorrowerConfig,
    token: str,
    borrower: str,
    amount: int,
    duration_in_periods: int,
    now: int,
    accuracy: int = ACCURACY_FACTOR
) -> LoanTerms:
    """
    Validate a loan request against the borrower's configuration and build its terms.

    Raises:
        ZeroAddress: If borrower is the zero identity
        InvalidAmount: If amount is zero or outside the borrower's range
        InvalidCreditLineConfiguration: If the credit line is not configured
        BorrowerConfigurationExpired: If the configuration expired or was never set
        LoanDurationOutOfRange: If the duration is outside the borrower's range
    """
    if borrower == ZERO_ADDRESS:
        raise ZeroAddress("borrower is the zero identity")
    if amount == 0:
        raise InvalidAmount("borrow amount is zero")
    if line is None:
        raise InvalidCreditLineConfiguration("credit line is not configured")
    if now > config.expiration:
        raise BorrowerConfigurationExpired(f"borrower {borrower} configuration expired at {config.expiration}")
    if amount < config.min_borrow_amount or amount > config.max_borrow_amount:
        raise InvalidAmount(
            f"amount {amount} outside [{config.min_borrow_amount}, {config.max_borrow_amount}]"
        )
    if (duration_in_periods < config.min_duration_in_periods
            or duration_in_periods > config.max_duration_in_periods):
        raise LoanDurationOutOfRange(
            f"duration {duration_in_periods} outside "
            f"[{config.min_duration_in_periods}, {config.max_duration_in_periods}]"
        )

    addon_amount = calculate_addon_amount(
        amount,
        duration_in_periods,
        config.addon_fixed_rate,
        config.addon_period_rate,
        line.interest_rate_factor,
        accuracy,
    )
    return LoanTerms(
        token=token,
        treasury=line.treasury,
        duration_in_periods=duration_in_periods,
        interest_rate_primary=config.interest_rate_primary,
        interest_rate_secondary=config.interest_rate_secondary,
        addon_amount=addon_amount,
        period_in_seconds=line.period_in_seconds,
        interest_rate_factor=line.interest_rate_factor,
        auto_repayment=config.auto_repayment,
    )


def apply_loan_origination(
    config: BorrowerConfig,
    state: BorrowerState,
    amount: int
) -> Tuple[BorrowerConfig, BorrowerState]:
    """
    Borrower configuration and state after a loan of amount is originated.

    Raises:
        LimitViolationOnSingleActiveLoan: SINGLE_ACTIVE_LOAN with a loan already active
        LimitViolationOnTotalActiveAmountLimit: TOTAL_ACTIVE_AMOUNT_LIMIT exceeded
        BorrowerStateOverflow: If a counter would leave its representable range
    """
    policy = config.borrow_policy
    if policy == BorrowPolicy.SINGLE_ACTIVE_LOAN and state.active_loan_count > 0:
        raise LimitViolationOnSingleActiveLoan("borrower already has an active loan")
    if (policy == BorrowPolicy.TOTAL_ACTIVE_AMOUNT_LIMIT
            and state.total_active_loan_amount + amount > config.max_borrow_amount):
        raise LimitViolationOnTotalActiveAmountLimit(
            f"active amount {state.total_active_loan_amount} + {amount} exceeds {config.max_borrow_amount}"
        )

    if state.active_loan_count + state.closed_loan_count + 1 > MAX_LOAN_COUNT:
        raise BorrowerStateOverflow("loan count overflow")
    if state.total_active_loan_amount + state.total_closed_loan_amount + amount > MAX_LOAN_AMOUNT_TOTAL:
        raise BorrowerStateOverflow("loan amount overflow")

    new_state = replace(
        state,
        active_loan_count=state.active_loan_count + 1,
        total_active_loan_amount=state.total_active_loan_amount + amount,
    )

    if policy == BorrowPolicy.RESET:
        config = replace(config, max_borrow_amount=0)
    elif policy == BorrowPolicy.DECREASE:
        config = replace(config, max_borrow_amount=max(config.max_borrow_amount - amount, 0))

    return config, new_state


def apply_loan_settlement(state: BorrowerState, amount: int) -> BorrowerState:
    """Borrower state after a loan of amount settles (repaid in full or revoked)."""
    if state.active_loan_count == 0 or state.total_active_loan_amount < amount:
        raise ValueError("settlement without a matching active loan")
    return replace(
        state,
        active_loan_count=state.active_loan_count - 1,
        closed_loan_count=state.closed_loan_count + 1,
        total_active_loan_amount=state.total_active_loan_amount - amount,
        total_closed_loan_amount=state.total_closed_loan_amount + amount,
    )


# ============================================================================
# CREDIT LINE
# ============================================================================

class CreditLine(SnapshotMixin):
    """
    A lender's credit line: underwriting policy plus the LoanHooks the ledger calls.

    Roles:
        lender (owner): configures the credit line and grants admins
        admins (policy authority): configure borrowers
        market: the loan ledger, read through LoanView

    Example:
        line = CreditLine("line-1", lender="bank", market=ledger, token="USDC")
        line.configure_credit_line("bank", CreditLineConfig(treasury="pool-1", ...))
        line.grant_admin("bank", "underwriter")
        line.configure_borrower("underwriter", "alice", BorrowerConfig(...))
    """

    _SNAPSHOT_FIELDS = ("_config", "_admins", "_paused", "_borrower_configs", "_borrower_states")
    _LOG_FIELDS = ("events",)

    def __init__(
        self,
        address: str,
        lender: str,
        market: LoanView,
        token: str,
        accuracy: int = ACCURACY_FACTOR,
        verbose: bool = False
    ):
        if address == ZERO_ADDRESS or lender == ZERO_ADDRESS or token == ZERO_ADDRESS:
            raise ZeroAddress("credit line address, lender and token are required")
        if market is None:
            raise ZeroAddress("credit line market is required")
        self.address = address
        self.lender = lender
        self.market = market
        self.token = token
        self.accuracy = accuracy
        self.verbose = verbose
        self._config: Optional[CreditLineConfig] = None
        self._admins: Set[str] = set()
        self._borrower_configs: Dict[str, BorrowerConfig] = {}
        self._borrower_states: Dict[str, BorrowerState] = {}
        self._paused = False
        self.events: List[Event] = []

    # ========================================================================
    # READ-ONLY
    # ========================================================================

    @property
    def credit_line_configuration(self) -> Optional[CreditLineConfig]:
        """Current configuration, or None before configure_credit_line()."""
        return self._config

    def get_borrower_configuration(self, borrower: str) -> BorrowerConfig:
        """Borrower's configuration (an expired all-zero config if never set)."""
        return self._borrower_configs.get(borrower, BorrowerConfig())

    def get_borrower_state(self, borrower: str) -> BorrowerState:
        return self._borrower_states.get(borrower, BorrowerState())

    def is_admin(self, account: str) -> bool:
        return account in self._admins

    @property
    def paused(self) -> bool:
        return self._paused

    def determine_loan_terms(self, borrower: str, amount: int, duration_in_periods: int) -> LoanTerms:
        """Terms for a prospective loan, validated against the borrower's configuration."""
        return calculate_loan_terms(
            self._config,
            self.get_borrower_configuration(borrower),
            self.token,
            borrower,
            amount,
            duration_in_periods,
            self.market.current_time,
            self.accuracy,
        )

    # ========================================================================
    # CONFIGURATION (Mutating)
    # ========================================================================

    def _only_lender(self, caller: str) -> None:
        if caller != self.lender:
            raise Unauthorized(f"{caller} is not the lender of credit line {self.address}")

    def _only_admin(self, caller: str) -> None:
        if caller not in self._admins:
            raise Unauthorized(f"{caller} is not an admin of credit line {self.address}")

    def _when_not_paused(self) -> None:
        if self._paused:
            raise EnforcedPause(f"credit line {self.address} is paused")

    def pause(self, caller: str) -> None:
        """Stop borrower configuration and loan hooks until unpause()."""
        self._only_lender(caller)
        if self._paused:
            raise EnforcedPause(f"credit line {self.address} is already paused")
        self._paused = True
        self._emit("Paused")

    def unpause(self, caller: str) -> None:
        self._only_lender(caller)
        if not self._paused:
            raise ExpectedPause(f"credit line {self.address} is not paused")
        self._paused = False
        self._emit("Unpaused")

    def grant_admin(self, caller: str, account: str) -> None:
        self._only_lender(caller)
        if account == ZERO_ADDRESS:
            raise ZeroAddress("admin is the zero identity")
        self._admins.add(account)
        self._emit("AdminGranted", account=account)

    def revoke_admin(self, caller: str, account: str) -> None:
        self._only_lender(caller)
        self._admins.discard(account)
        self._emit("AdminRevoked", account=account)

    def configure_credit_line(self, caller: str, config: CreditLineConfig) -> None:
        """
        Replace the credit line's configuration.

        Raises:
            Unauthorized: If caller is not the lender
            InvalidCreditLineConfiguration: If the configuration is inconsistent
        """
        self._only_lender(caller)
        validate_credit_line_config(config)
        self._config = config
        self._emit("CreditLineConfigured", treasury=config.treasury)

    def configure_borrower(self, caller: str, borrower: str, config: BorrowerConfig) -> None:
        """
        Set a borrower's configuration.

        Raises:
            Unauthorized: If caller is not an admin
            EnforcedPause: If the credit line is paused
            ZeroAddress: If borrower is the zero identity
            InvalidBorrowerConfiguration: If the ranges do not nest inside the credit line
        """
        self._only_admin(caller)
        self._when_not_paused()
        self._configure_borrower(borrower, config)

    def configure_borrowers(
        self,
        caller: str,
        borrowers: Sequence[str],
        configs: Sequence[BorrowerConfig]
    ) -> None:
        """Batch form of configure_borrower(); all or nothing."""
        self._only_admin(caller)
        self._when_not_paused()
        if len(borrowers) != len(configs):
            raise ArrayLengthMismatch(f"{len(borrowers)} borrowers, {len(configs)} configs")
        # validate everything first so a bad entry leaves no partial update
        for borrower, config in zip(borrowers, configs):
            if borrower == ZERO_ADDRESS:
                raise ZeroAddress("borrower is the zero identity")
            validate_borrower_config(config, self._config)
        for borrower, config in zip(borrowers, configs):
            self._configure_borrower(borrower, config)

    def _configure_borrower(self, borrower: str, config: BorrowerConfig) -> None:
        if borrower == ZERO_ADDRESS:
            raise ZeroAddress("borrower is the zero identity")
        validate_borrower_config(config, self._config)
        self._borrower_configs[borrower] = config
        self._emit("BorrowerConfigured", borrower=borrower, borrow_policy=config.borrow_policy.value)

    # ========================================================================
    # POLICY STATE TRANSITIONS
    # ========================================================================

    def on_loan_originated(self, borrower: str, amount: int) -> None:
        """Apply the borrower's policy to a new loan of amount."""
        config, state = apply_loan_origination(
            self.get_borrower_configuration(borrower),
            self.get_borrower_state(borrower),
            amount,
        )
        self._borrower_configs[borrower] = config
        self._borrower_states[borrower] = state

    def on_loan_settled(self, borrower: str, amount: int) -> None:
        """Move a loan of amount from the borrower's active to closed counters."""
        self._borrower_states[borrower] = apply_loan_settlement(self.get_borrower_state(borrower), amount)

    # ========================================================================
    # LoanHooks
    # ========================================================================

    def on_before_loan_taken(self, loan_id: int) -> bool:
        self._when_not_paused()
        loan = self.market.get_loan_state(loan_id)
        self.on_loan_originated(loan.borrower, loan.borrow_amount)
        return True

    def on_after_loan_taken(self, loan_id: int) -> bool:
        return True

    def on_before_loan_payment(self, loan_id: int, amount: int) -> bool:
        return True

    def on_after_loan_payment(self, loan_id: int, amount: int) -> bool:
        self._when_not_paused()
        loan = self.market.get_loan_state(loan_id)
        if loan.tracked_balance == 0:
            self.on_loan_settled(loan.borrower, loan.borrow_amount)
        return True

    def on_before_loan_revocation(self, loan_id: int) -> bool:
        return True

    def on_after_loan_revocation(self, loan_id: int) -> bool:
        self._when_not_paused()
        loan = self.market.get_loan_state(loan_id)
        self.on_loan_settled(loan.borrower, loan.borrow_amount)
        return True

    # ========================================================================
    # EVENTS
    # ========================================================================

    def _emit(self, name: str, **args) -> None:
        event = Event(name, self.address, self.market.current_time, args)
        self.events.append(event)
        if self.verbose:
            print(f"📝 {self.address}: {event!r}")
