"""
ledger.py - Loan Ledger (State Machine Orchestrator)

The LoanLedger is the central state manager of the lending system.
It is the only module that mutates loan records.

Key responsibilities:
    - Implements the LoanView protocol for collaborators
    - Drives the loan state machine: take, repay, freeze, unfreeze, update, revoke
    - Asks the credit line for terms and calls the treasury/credit-line hooks
    - Moves funds through the TokenLedger
    - Executes every operation atomically (all effects apply or none do)
    - Always validates and always logs (event_log)

State machine per loan:

    ABSENT --take--> ACTIVE <--freeze/unfreeze--> FROZEN
    ACTIVE/FROZEN --repay in full--> SETTLED
    ACTIVE/FROZEN --revoke--> SETTLED (net settlement transfer)
"""

from __future__ import annotations
from contextlib import contextmanager
from dataclasses import replace
from typing import Callable, Dict, Iterator, List, Optional, Set, Tuple
import copy

from .core import (
    # Types
    Event, LoanHooks, Transactional,
    # Constants
    ZERO_ADDRESS, NEGATIVE_TIME_OFFSET, ACCURACY_FACTOR, COOLDOWN_IN_PERIODS,
    FULL_REPAYMENT_AMOUNT, MAX_DURATION_IN_PERIODS,
    # Exceptions
    ZeroAddress, InvalidAmount, Unauthorized, CooldownPeriodHasPassed,
    AutoRepaymentNotAllowed, LoanNotExist, LoanAlreadyRepaid, LoanAlreadyFrozen,
    LoanNotFrozen, AlreadyConfigured, EnforcedPause, ExpectedPause,
    InappropriateLoanDuration, InappropriateInterestRate,
    CreditLineLenderNotConfigured, LiquidityPoolLenderNotConfigured, HookRejected,
)
from .accrual import accrue, calculate_period_index
from .loan import Loan, LoanPreview, project_loan, calculate_loan_preview
from .rounding import round_math
from .tokens import TokenLedger


# Default starting clock: 2024-01-01T00:00:00Z.
DEFAULT_INITIAL_TIME = 1_704_067_200


class LoanLedger:
    """
    Lending ledger with atomic operations and a full audit trail.

    Implements the LoanView protocol, so credit lines and pools can read
    loans and the clock through it.

    Design Principles:
        - Always validates: every operation checks existence, state and caller
          identity before touching anything.
        - Atomic: each public mutating operation snapshots every participant
          (ledger, token ledger, registered collaborators) and restores them
          if any step raises, including hooks and transfers.
        - Always logs: committed operations append an Event to event_log.

    Thread Safety:
        Not thread-safe. Callers serialize operations against one ledger.

    Example:
        tokens = TokenLedger()
        ledger = LoanLedger("owner", tokens)
        ledger.register_credit_line("bank", line)
        ledger.register_liquidity_pool("bank", pool)
        loan_id = ledger.take_loan("alice", line.address, 1_000_000, 30)
        ledger.repay_loan("alice", loan_id, FULL_REPAYMENT_AMOUNT)
    """

    def __init__(
        self,
        owner: str,
        tokens: TokenLedger,
        initial_time: int = DEFAULT_INITIAL_TIME,
        verbose: bool = True,
        negative_time_offset: int = NEGATIVE_TIME_OFFSET,
        accuracy_factor: int = ACCURACY_FACTOR,
        cooldown_in_periods: int = COOLDOWN_IN_PERIODS
    ):
        """
        Create a loan ledger.

        Args:
            owner: Identity allowed to pause and unpause the ledger
            tokens: Token ledger all funds move through
            initial_time: Starting logical time in seconds
            verbose: Print one line per committed or rejected operation
            negative_time_offset: Shift applied to loan timestamps
            accuracy_factor: Unit that borrow, repayment and outstanding amounts are multiples of
            cooldown_in_periods: Window in which a borrower may revoke their loan
        """
        if owner == ZERO_ADDRESS:
            raise ZeroAddress("ledger owner is the zero identity")
        if initial_time <= negative_time_offset:
            raise ValueError(
                f"initial_time must be after the negative time offset, got {initial_time}"
            )
        if accuracy_factor <= 0:
            raise ValueError(f"accuracy_factor must be positive, got {accuracy_factor}")
        self.owner = owner
        self.tokens = tokens
        self.verbose = verbose
        self.negative_time_offset = negative_time_offset
        self.accuracy_factor = accuracy_factor
        self.cooldown_in_periods = cooldown_in_periods
        self._current_time = initial_time
        self._loans: Dict[int, Loan] = {}
        self._loan_counter = 0
        self._credit_lines: Dict[str, LoanHooks] = {}
        self._credit_line_lenders: Dict[str, str] = {}
        self._liquidity_pools: Dict[str, LoanHooks] = {}
        self._liquidity_pool_lenders: Dict[str, str] = {}
        self._aliases: Set[Tuple[str, str]] = set()   # (lender, alias)
        self._paused = False
        self.event_log: List[Event] = []
        self._atomic_depth = 0

    # ========================================================================
    # LoanView PROTOCOL IMPLEMENTATION (read-only methods)
    # ========================================================================

    @property
    def current_time(self) -> int:
        """Current logical time of the ledger, in seconds."""
        return self._current_time

    def get_loan_state(self, loan_id: int) -> Loan:
        """Loan record for loan_id, or an empty record if it never existed."""
        return self._loans.get(loan_id, Loan())

    # ========================================================================
    # READ-ONLY QUERIES
    # ========================================================================

    @property
    def loan_counter(self) -> int:
        """Number of loan identifiers allocated so far (the next id)."""
        return self._loan_counter

    @property
    def paused(self) -> bool:
        return self._paused

    def get_loan_preview(self, loan_id: int, timestamp: int = 0) -> LoanPreview:
        """
        Project a loan's balance to timestamp (0 means now).

        Args:
            loan_id: Loan identifier
            timestamp: Clock time (without the negative offset)

        Returns:
            LoanPreview; all zeros for a loan that never existed
        """
        if timestamp == 0:
            timestamp = self._current_time
        return calculate_loan_preview(
            self.get_loan_state(loan_id),
            timestamp - self.negative_time_offset,
            self.accuracy_factor,
        )

    def is_lender_or_alias(self, loan_id: int, account: str) -> bool:
        lender = self.get_loan_state(loan_id).lender
        return lender != ZERO_ADDRESS and (account == lender or (lender, account) in self._aliases)

    def has_alias(self, lender: str, account: str) -> bool:
        return (lender, account) in self._aliases

    def get_credit_line_lender(self, credit_line: str) -> str:
        return self._credit_line_lenders.get(credit_line, ZERO_ADDRESS)

    def get_liquidity_pool_lender(self, liquidity_pool: str) -> str:
        return self._liquidity_pool_lenders.get(liquidity_pool, ZERO_ADDRESS)

    @staticmethod
    def calculate_outstanding_balance(
        original_balance: int,
        number_of_periods: int,
        interest_rate: int,
        interest_rate_factor: int
    ) -> int:
        return accrue(original_balance, number_of_periods, interest_rate, interest_rate_factor)

    @staticmethod
    def calculate_period_index(timestamp: int, period_in_seconds: int) -> int:
        return calculate_period_index(timestamp, period_in_seconds)

    # ========================================================================
    # TIME MANAGEMENT
    # ========================================================================

    def advance_time(self, new_time: int) -> None:
        """
        Advance the ledger's logical clock.

        Raises:
            ValueError: If new_time is before the current time
        """
        if new_time < self._current_time:
            raise ValueError(f"Cannot move time backwards: {new_time} < {self._current_time}")
        self._current_time = new_time

    def _loan_timestamp(self) -> int:
        return self._current_time - self.negative_time_offset

    # ========================================================================
    # ATOMICITY
    # ========================================================================

    def snapshot(self) -> Dict[str, object]:
        # Loan records and events are immutable; shallow copies suffice.
        # The event log only grows, so its length is enough to roll it back.
        return {
            "_loans": dict(self._loans),
            "_loan_counter": self._loan_counter,
            "_credit_lines": dict(self._credit_lines),
            "_credit_line_lenders": dict(self._credit_line_lenders),
            "_liquidity_pools": dict(self._liquidity_pools),
            "_liquidity_pool_lenders": dict(self._liquidity_pool_lenders),
            "_aliases": set(self._aliases),
            "_paused": self._paused,
            "event_log": len(self.event_log),
        }

    def restore(self, snapshot: Dict[str, object]) -> None:
        for name, value in snapshot.items():
            if name == "event_log":
                del self.event_log[value:]
            else:
                setattr(self, name, copy.copy(value))

    def _participants(self) -> List[Transactional]:
        participants: List[Transactional] = [self]
        seen = {id(self)}
        candidates = [self.tokens, *self._credit_lines.values(), *self._liquidity_pools.values()]
        for candidate in candidates:
            if id(candidate) not in seen and isinstance(candidate, Transactional):
                seen.add(id(candidate))
                participants.append(candidate)
        return participants

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """
        Run a block as one all-or-nothing unit.

        Every participant is snapshotted on entry. If anything raises, all
        participants are restored and the exception propagates. Blocks nest.
        """
        snapshots = [(p, p.snapshot()) for p in self._participants()]
        self._atomic_depth += 1
        try:
            yield
        except Exception as exc:
            for participant, snapshot in reversed(snapshots):
                participant.restore(snapshot)
            if self.verbose and self._atomic_depth == 1:
                print(f"✗ REJECTED: {type(exc).__name__}: {exc}")
            raise
        finally:
            self._atomic_depth -= 1

    # ========================================================================
    # AUTHORIZATION
    # ========================================================================

    def _when_not_paused(self) -> None:
        if self._paused:
            raise EnforcedPause("ledger is paused")

    def _require_loan(self, loan_id: int) -> Loan:
        loan = self.get_loan_state(loan_id)
        if not loan.exists:
            raise LoanNotExist(f"loan {loan_id} does not exist")
        if loan.tracked_balance == 0:
            raise LoanAlreadyRepaid(f"loan {loan_id} is already repaid")
        return loan

    def _require_lender_or_alias(self, loan_id: int, caller: str) -> None:
        if not self.is_lender_or_alias(loan_id, caller):
            raise Unauthorized(f"{caller} is not the lender or an alias for loan {loan_id}")

    def _call_hook(self, hook: Callable[..., bool], *args) -> None:
        if not hook(*args):
            raise HookRejected(f"{getattr(hook, '__qualname__', hook)} rejected {args}")

    # ========================================================================
    # ADMINISTRATION (Mutating)
    # ========================================================================

    def pause(self, caller: str) -> None:
        if caller != self.owner:
            raise Unauthorized(f"{caller} is not the ledger owner")
        if self._paused:
            raise EnforcedPause("ledger is already paused")
        self._paused = True
        self._emit("Paused", account=caller)

    def unpause(self, caller: str) -> None:
        if caller != self.owner:
            raise Unauthorized(f"{caller} is not the ledger owner")
        if not self._paused:
            raise ExpectedPause("ledger is not paused")
        self._paused = False
        self._emit("Unpaused", account=caller)

    def register_credit_line(self, caller: str, credit_line: LoanHooks) -> None:
        """
        Register a credit line; the caller becomes its lender.

        Raises:
            ZeroAddress: If the credit line identity is zero
            AlreadyConfigured: If it is already registered
        """
        with self.atomic():
            self._when_not_paused()
            address = getattr(credit_line, "address", ZERO_ADDRESS)
            if address == ZERO_ADDRESS:
                raise ZeroAddress("credit line is the zero identity")
            if address in self._credit_line_lenders:
                raise AlreadyConfigured(f"credit line {address} is already registered")
            self._credit_lines[address] = credit_line
            self._credit_line_lenders[address] = caller
            self._emit("CreditLineRegistered", lender=caller, credit_line=address)

    def register_liquidity_pool(self, caller: str, liquidity_pool: LoanHooks) -> None:
        """
        Register a liquidity pool; the caller becomes its lender.

        Raises:
            ZeroAddress: If the pool identity is zero
            AlreadyConfigured: If it is already registered
        """
        with self.atomic():
            self._when_not_paused()
            address = getattr(liquidity_pool, "address", ZERO_ADDRESS)
            if address == ZERO_ADDRESS:
                raise ZeroAddress("liquidity pool is the zero identity")
            if address in self._liquidity_pool_lenders:
                raise AlreadyConfigured(f"liquidity pool {address} is already registered")
            self._liquidity_pools[address] = liquidity_pool
            self._liquidity_pool_lenders[address] = caller
            self._emit("LiquidityPoolRegistered", lender=caller, liquidity_pool=address)

    def configure_alias(self, caller: str, alias: str, is_alias: bool) -> None:
        """
        Allow or disallow alias to act as caller's lender identity.

        Raises:
            ZeroAddress: If alias is the zero identity
            AlreadyConfigured: If the alias already has the requested status
        """
        with self.atomic():
            self._when_not_paused()
            if alias == ZERO_ADDRESS:
                raise ZeroAddress("alias is the zero identity")
            key = (caller, alias)
            if (key in self._aliases) == is_alias:
                raise AlreadyConfigured(f"alias {alias} of {caller} is already {is_alias}")
            if is_alias:
                self._aliases.add(key)
            else:
                self._aliases.discard(key)
            self._emit("AliasConfigured", lender=caller, account=alias, is_alias=is_alias)

    # ========================================================================
    # ORIGINATION (Mutating)
    # ========================================================================

    def take_loan(self, caller: str, credit_line: str, borrow_amount: int, duration_in_periods: int) -> int:
        """
        Originate a loan for the caller under credit_line.

        Returns:
            The new loan identifier

        Raises:
            ZeroAddress, InvalidAmount: On malformed input
            CreditLineLenderNotConfigured: If credit_line is not registered
            LiquidityPoolLenderNotConfigured: If the terms' treasury is not the lender's pool
            Any credit-line, hook or transfer error (the loan is not created)
        """
        with self.atomic():
            self._when_not_paused()
            return self._take_loan(caller, credit_line, borrow_amount, None, duration_in_periods)

    def take_loan_for(
        self,
        caller: str,
        borrower: str,
        credit_line: str,
        borrow_amount: int,
        addon_amount: int,
        duration_in_periods: int
    ) -> int:
        """
        Originate a loan on behalf of borrower with an explicit addon.

        The caller must be the credit line's lender or one of its aliases.
        The credit line still validates the borrower and supplies rates.
        """
        with self.atomic():
            self._when_not_paused()
            lender = self._credit_line_lenders.get(credit_line)
            if lender is None:
                raise CreditLineLenderNotConfigured(f"credit line {credit_line} is not registered")
            if caller != lender and (lender, caller) not in self._aliases:
                raise Unauthorized(f"{caller} is not the lender or an alias for credit line {credit_line}")
            if addon_amount % self.accuracy_factor != 0:
                raise InvalidAmount(f"addon amount {addon_amount} is not a multiple of {self.accuracy_factor}")
            return self._take_loan(borrower, credit_line, borrow_amount, addon_amount, duration_in_periods)

    def _take_loan(
        self,
        borrower: str,
        credit_line: str,
        borrow_amount: int,
        addon_amount: Optional[int],
        duration_in_periods: int
    ) -> int:
        if credit_line == ZERO_ADDRESS:
            raise ZeroAddress("credit line is the zero identity")
        if borrower == ZERO_ADDRESS:
            raise ZeroAddress("borrower is the zero identity")
        if borrow_amount == 0 or borrow_amount % self.accuracy_factor != 0:
            raise InvalidAmount(
                f"borrow amount {borrow_amount} must be a positive multiple of {self.accuracy_factor}"
            )

        lender = self._credit_line_lenders.get(credit_line)
        if lender is None:
            raise CreditLineLenderNotConfigured(f"credit line {credit_line} is not registered")
        line = self._credit_lines[credit_line]

        terms = line.determine_loan_terms(borrower, borrow_amount, duration_in_periods)
        if addon_amount is not None:
            terms = replace(terms, addon_amount=addon_amount)

        if self._liquidity_pool_lenders.get(terms.treasury) != lender:
            raise LiquidityPoolLenderNotConfigured(
                f"treasury {terms.treasury} is not a pool registered by {lender}"
            )
        pool = self._liquidity_pools[terms.treasury]

        loan_id = self._loan_counter
        self._loan_counter += 1
        now = self._loan_timestamp()
        self._loans[loan_id] = Loan(
            token=terms.token,
            borrower=borrower,
            lender=lender,
            credit_line=credit_line,
            treasury=terms.treasury,
            start_timestamp=now,
            tracked_timestamp=now,
            duration_in_periods=terms.duration_in_periods,
            interest_rate_primary=terms.interest_rate_primary,
            interest_rate_secondary=terms.interest_rate_secondary,
            borrow_amount=borrow_amount,
            addon_amount=terms.addon_amount,
            tracked_balance=borrow_amount + terms.addon_amount,
            period_in_seconds=terms.period_in_seconds,
            interest_rate_factor=terms.interest_rate_factor,
            auto_repayment=terms.auto_repayment,
        )

        self._call_hook(line.on_before_loan_taken, loan_id)
        self._call_hook(pool.on_before_loan_taken, loan_id)
        self.tokens.transfer(terms.token, terms.treasury, borrower, borrow_amount, memo=f"loan:{loan_id}:take")
        self._call_hook(pool.on_after_loan_taken, loan_id)
        self._call_hook(line.on_after_loan_taken, loan_id)

        self._emit(
            "LoanTaken",
            loan_id=loan_id,
            borrower=borrower,
            borrow_amount=borrow_amount,
            addon_amount=terms.addon_amount,
            duration_in_periods=terms.duration_in_periods,
        )
        return loan_id

    # ========================================================================
    # REPAYMENT (Mutating)
    # ========================================================================

    def repay_loan(self, caller: str, loan_id: int, repay_amount: int) -> None:
        """
        Repay part or all of a loan.

        FULL_REPAYMENT_AMOUNT, or an amount equal to the rounded outstanding
        balance, settles the loan. The caller pays, except when the caller is
        the loan's treasury (auto-repayment): then the borrower pays.

        Raises:
            LoanNotExist, LoanAlreadyRepaid: If the loan is absent or settled
            AutoRepaymentNotAllowed: Treasury-triggered repayment of a loan without auto-repayment
            InvalidAmount: Not positive, not a multiple of the accuracy factor, or above the outstanding balance
        """
        with self.atomic():
            self._when_not_paused()
            loan = self._require_loan(loan_id)
            if repay_amount <= 0:
                raise InvalidAmount(f"repayment amount must be positive, got {repay_amount}")

            if caller == loan.treasury:
                if not loan.auto_repayment:
                    raise AutoRepaymentNotAllowed(f"loan {loan_id} does not allow auto-repayment")
                payer = loan.borrower
            else:
                payer = caller

            timestamp = self._loan_timestamp()
            tracked_balance, _ = project_loan(loan, timestamp)
            outstanding = round_math(tracked_balance, self.accuracy_factor)

            if repay_amount == FULL_REPAYMENT_AMOUNT or repay_amount == outstanding:
                repay_amount = outstanding
                new_balance = 0
            else:
                if repay_amount % self.accuracy_factor != 0:
                    raise InvalidAmount(
                        f"repayment {repay_amount} is not a multiple of {self.accuracy_factor}"
                    )
                if repay_amount > outstanding:
                    raise InvalidAmount(f"repayment {repay_amount} exceeds outstanding {outstanding}")
                new_balance = tracked_balance - repay_amount

            # A frozen loan's projection stops at its freeze time; never move tracking past it.
            projected_at = loan.freeze_timestamp if loan.is_frozen else timestamp
            self._loans[loan_id] = replace(
                loan,
                repaid_amount=loan.repaid_amount + repay_amount,
                tracked_balance=new_balance,
                tracked_timestamp=max(loan.tracked_timestamp, projected_at),
            )

            line = self._credit_lines[loan.credit_line]
            pool = self._liquidity_pools[loan.treasury]
            self._call_hook(pool.on_before_loan_payment, loan_id, repay_amount)
            self._call_hook(line.on_before_loan_payment, loan_id, repay_amount)
            if repay_amount > 0:
                self.tokens.transfer(loan.token, payer, loan.treasury, repay_amount, memo=f"loan:{loan_id}:repay")
            self._call_hook(pool.on_after_loan_payment, loan_id, repay_amount)
            self._call_hook(line.on_after_loan_payment, loan_id, repay_amount)

            self._emit(
                "LoanRepayment",
                loan_id=loan_id,
                repayer=payer,
                borrower=loan.borrower,
                repay_amount=repay_amount,
                outstanding_balance=round_math(new_balance, self.accuracy_factor),
            )

    # ========================================================================
    # FREEZE (Mutating)
    # ========================================================================

    def freeze(self, caller: str, loan_id: int) -> None:
        """
        Suspend accrual and tenor countdown of a loan.

        Raises:
            LoanNotExist, LoanAlreadyRepaid, Unauthorized, LoanAlreadyFrozen
        """
        with self.atomic():
            self._when_not_paused()
            loan = self._require_loan(loan_id)
            self._require_lender_or_alias(loan_id, caller)
            if loan.is_frozen:
                raise LoanAlreadyFrozen(f"loan {loan_id} is already frozen")
            self._loans[loan_id] = replace(loan, freeze_timestamp=self._loan_timestamp())
            self._emit("LoanFrozen", loan_id=loan_id)

    def unfreeze(self, caller: str, loan_id: int) -> None:
        """
        Resume a frozen loan as if the frozen periods had not passed.

        The tracked timestamp and the duration both move forward by the
        number of whole periods the loan spent frozen.

        Raises:
            LoanNotExist, LoanAlreadyRepaid, Unauthorized, LoanNotFrozen
        """
        with self.atomic():
            self._when_not_paused()
            loan = self._require_loan(loan_id)
            self._require_lender_or_alias(loan_id, caller)
            if not loan.is_frozen:
                raise LoanNotFrozen(f"loan {loan_id} is not frozen")

            period = loan.period_in_seconds
            frozen_periods = (
                calculate_period_index(self._loan_timestamp(), period)
                - calculate_period_index(loan.freeze_timestamp, period)
            )
            if frozen_periods > 0:
                loan = replace(
                    loan,
                    tracked_timestamp=loan.tracked_timestamp + frozen_periods * period,
                    duration_in_periods=loan.duration_in_periods + frozen_periods,
                )
            self._loans[loan_id] = replace(loan, freeze_timestamp=0)
            self._emit("LoanUnfrozen", loan_id=loan_id, frozen_periods=max(frozen_periods, 0))

    # ========================================================================
    # TERM UPDATES (Mutating)
    # ========================================================================

    def update_loan_duration(self, caller: str, loan_id: int, new_duration_in_periods: int) -> None:
        """Extend a loan's duration. Shortening it is rejected."""
        with self.atomic():
            self._when_not_paused()
            loan = self._require_loan(loan_id)
            self._require_lender_or_alias(loan_id, caller)
            old = loan.duration_in_periods
            if new_duration_in_periods <= old or new_duration_in_periods > MAX_DURATION_IN_PERIODS:
                raise InappropriateLoanDuration(f"duration {new_duration_in_periods} does not extend {old}")
            self._loans[loan_id] = replace(loan, duration_in_periods=new_duration_in_periods)
            self._emit("LoanDurationUpdated", loan_id=loan_id, new_duration=new_duration_in_periods, old_duration=old)

    def update_loan_interest_rate_primary(self, caller: str, loan_id: int, new_rate: int) -> None:
        """Lower a loan's primary rate. Raising it is rejected."""
        self._update_rate(caller, loan_id, new_rate, "interest_rate_primary", "LoanInterestRatePrimaryUpdated")

    def update_loan_interest_rate_secondary(self, caller: str, loan_id: int, new_rate: int) -> None:
        """Lower a loan's secondary rate. Raising it is rejected."""
        self._update_rate(caller, loan_id, new_rate, "interest_rate_secondary", "LoanInterestRateSecondaryUpdated")

    def _update_rate(self, caller: str, loan_id: int, new_rate: int, field_name: str, event_name: str) -> None:
        with self.atomic():
            self._when_not_paused()
            loan = self._require_loan(loan_id)
            self._require_lender_or_alias(loan_id, caller)
            old = getattr(loan, field_name)
            if new_rate < 0 or new_rate >= old:
                raise InappropriateInterestRate(f"{field_name} {new_rate} does not lower {old}")
            self._loans[loan_id] = replace(loan, **{field_name: new_rate})
            self._emit(event_name, loan_id=loan_id, new_rate=new_rate, old_rate=old)

    # ========================================================================
    # REVOCATION (Mutating)
    # ========================================================================

    def revoke_loan(self, caller: str, loan_id: int) -> None:
        """
        Cancel a loan and settle the difference between repaid and borrowed amounts.

        The borrower may revoke within the cooldown window after origination;
        the lender or an alias may revoke at any time. If the borrower repaid
        more than they borrowed, the treasury refunds the excess; otherwise
        the borrower returns the shortfall.

        Raises:
            LoanNotExist, LoanAlreadyRepaid, CooldownPeriodHasPassed, Unauthorized
        """
        with self.atomic():
            self._when_not_paused()
            loan = self._require_loan(loan_id)

            if not self.is_lender_or_alias(loan_id, caller):
                if caller != loan.borrower:
                    raise Unauthorized(f"{caller} may not revoke loan {loan_id}")
                elapsed = (
                    calculate_period_index(self._loan_timestamp(), loan.period_in_seconds)
                    - loan.start_period
                )
                if elapsed >= self.cooldown_in_periods:
                    raise CooldownPeriodHasPassed(f"loan {loan_id} is past its revocation cooldown")

            self._loans[loan_id] = replace(loan, tracked_balance=0, tracked_timestamp=self._loan_timestamp())

            line = self._credit_lines[loan.credit_line]
            pool = self._liquidity_pools[loan.treasury]
            self._call_hook(pool.on_before_loan_revocation, loan_id)
            self._call_hook(line.on_before_loan_revocation, loan_id)

            net_to_borrower = loan.repaid_amount - loan.borrow_amount
            if net_to_borrower > 0:
                self.tokens.transfer(
                    loan.token, loan.treasury, loan.borrower, net_to_borrower, memo=f"loan:{loan_id}:revoke"
                )
            elif net_to_borrower < 0:
                self.tokens.transfer(
                    loan.token, loan.borrower, loan.treasury, -net_to_borrower, memo=f"loan:{loan_id}:revoke"
                )

            self._call_hook(pool.on_after_loan_revocation, loan_id)
            self._call_hook(line.on_after_loan_revocation, loan_id)
            self._emit("LoanRevoked", loan_id=loan_id)

    # ========================================================================
    # EVENTS
    # ========================================================================

    def _emit(self, name: str, **args) -> None:
        event = Event(name, "ledger", self._current_time, args)
        self.event_log.append(event)
        if self.verbose:
            print(f"✓ {event!r}")
