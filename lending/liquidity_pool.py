"""
liquidity_pool.py - Lender Liquidity Pool (Treasury Collaborator)

The pool holds a lender's funds and is the treasury loans are paid out of
and repaid into. Only its interface matters to the loan ledger: the six
LoanHooks callbacks and its identity as a wallet in the TokenLedger.

Accounting:
    borrowable_balance  funds available for new loans
    addons_balance      addon fees earned on originated loans

    loan taken       borrowable -= borrow + addon, addons += addon
    loan payment     borrowable += payment
    loan revocation  borrowable += borrow - repaid + addon, addons -= addon

With every token movement going through the ledger, borrowable_balance +
addons_balance equals the pool's token balance.
"""

from __future__ import annotations
from typing import Any, List, Sequence, Set

from .core import (
    Event, SnapshotMixin,
    ZERO_ADDRESS,
    ZeroAddress, InvalidAmount, ArrayLengthMismatch, Unauthorized,
    EnforcedPause, ExpectedPause, InsufficientBalance,
)
from .tokens import TokenLedger


class LiquidityPool(SnapshotMixin):
    """
    A lender's pool of funds, accounted separately for borrowable funds and addons.

    Roles:
        lender (owner): deposits, withdraws, pauses, grants admins
        admins: trigger auto-repayments
        market: the loan ledger; the only caller of the hooks

    Example:
        pool = LiquidityPool("pool-1", lender="bank", market=ledger, tokens=tokens, token="USDC")
        pool.deposit("bank", 1_000_000)
    """

    _SNAPSHOT_FIELDS = ("_borrowable_balance", "_addons_balance", "_admins", "_paused")
    _LOG_FIELDS = ("events",)

    def __init__(
        self,
        address: str,
        lender: str,
        market: Any,
        tokens: TokenLedger,
        token: str,
        verbose: bool = False
    ):
        if address == ZERO_ADDRESS or lender == ZERO_ADDRESS or token == ZERO_ADDRESS:
            raise ZeroAddress("liquidity pool address, lender and token are required")
        if market is None:
            raise ZeroAddress("liquidity pool market is required")
        self.address = address
        self.lender = lender
        self.market = market
        self.tokens = tokens
        self.token = token
        self.verbose = verbose
        self._borrowable_balance = 0
        self._addons_balance = 0
        self._admins: Set[str] = set()
        self._paused = False
        self.events: List[Event] = []

    # ========================================================================
    # READ-ONLY
    # ========================================================================

    @property
    def borrowable_balance(self) -> int:
        return self._borrowable_balance

    @property
    def addons_balance(self) -> int:
        return self._addons_balance

    @property
    def paused(self) -> bool:
        return self._paused

    def get_balances(self):
        """(borrowable_balance, addons_balance)"""
        return self._borrowable_balance, self._addons_balance

    def is_admin(self, account: str) -> bool:
        return account in self._admins

    # ========================================================================
    # OWNER OPERATIONS (Mutating)
    # ========================================================================

    def _only_lender(self, caller: str) -> None:
        if caller != self.lender:
            raise Unauthorized(f"{caller} is not the lender of pool {self.address}")

    def grant_admin(self, caller: str, account: str) -> None:
        self._only_lender(caller)
        if account == ZERO_ADDRESS:
            raise ZeroAddress("admin is the zero identity")
        self._admins.add(account)

    def revoke_admin(self, caller: str, account: str) -> None:
        self._only_lender(caller)
        self._admins.discard(account)

    def pause(self, caller: str) -> None:
        self._only_lender(caller)
        if self._paused:
            raise EnforcedPause(f"pool {self.address} is already paused")
        self._paused = True
        self._emit("Paused")

    def unpause(self, caller: str) -> None:
        self._only_lender(caller)
        if not self._paused:
            raise ExpectedPause(f"pool {self.address} is not paused")
        self._paused = False
        self._emit("Unpaused")

    def deposit(self, caller: str, amount: int) -> None:
        """
        Move amount from the lender into the pool's borrowable balance.

        Raises:
            Unauthorized: If caller is not the lender
            InvalidAmount: If amount is not positive
            InsufficientFunds: If the lender holds less than amount
        """
        self._only_lender(caller)
        if amount <= 0:
            raise InvalidAmount(f"deposit amount must be positive, got {amount}")
        self.tokens.transfer(self.token, self.lender, self.address, amount, memo="pool:deposit")
        self._borrowable_balance += amount
        self._emit("Deposit", amount=amount)

    def withdraw(self, caller: str, borrowable_amount: int, addon_amount: int) -> None:
        """
        Return funds from the pool to the lender.

        Raises:
            Unauthorized: If caller is not the lender
            InvalidAmount: If either amount is negative or both are zero
            InsufficientBalance: If either amount exceeds its accounted balance
        """
        self._only_lender(caller)
        if borrowable_amount < 0 or addon_amount < 0:
            raise InvalidAmount(f"withdrawal amounts cannot be negative, got {borrowable_amount}, {addon_amount}")
        if borrowable_amount == 0 and addon_amount == 0:
            raise InvalidAmount("withdrawal amounts are zero")
        if borrowable_amount > self._borrowable_balance or addon_amount > self._addons_balance:
            raise InsufficientBalance(
                f"pool {self.address} holds {self._borrowable_balance} borrowable "
                f"and {self._addons_balance} addons"
            )
        self.tokens.transfer(
            self.token, self.address, self.lender, borrowable_amount + addon_amount, memo="pool:withdraw"
        )
        self._borrowable_balance -= borrowable_amount
        self._addons_balance -= addon_amount
        self._emit("Withdrawal", borrowable_amount=borrowable_amount, addon_amount=addon_amount)

    def auto_repay(self, caller: str, loan_ids: Sequence[int], amounts: Sequence[int]) -> None:
        """
        Repay a batch of loans from their borrowers' funds, all or nothing.

        Raises:
            Unauthorized: If caller is not an admin
            ArrayLengthMismatch: If loan_ids and amounts differ in length
        """
        if caller not in self._admins:
            raise Unauthorized(f"{caller} is not an admin of pool {self.address}")
        if len(loan_ids) != len(amounts):
            raise ArrayLengthMismatch(f"{len(loan_ids)} loans, {len(amounts)} amounts")
        with self.market.atomic():
            for loan_id, amount in zip(loan_ids, amounts):
                self.market.repay_loan(self.address, loan_id, amount)
            self._emit("AutoRepayment", count=len(loan_ids))

    # ========================================================================
    # LoanHooks
    # ========================================================================

    def _when_not_paused(self) -> None:
        if self._paused:
            raise EnforcedPause(f"pool {self.address} is paused")

    def on_before_loan_taken(self, loan_id: int) -> bool:
        self._when_not_paused()
        loan = self.market.get_loan_state(loan_id)
        required = loan.borrow_amount + loan.addon_amount
        if required > self._borrowable_balance:
            raise InsufficientBalance(
                f"pool {self.address} has {self._borrowable_balance} borrowable, loan needs {required}"
            )
        self._borrowable_balance -= required
        self._addons_balance += loan.addon_amount
        return True

    def on_after_loan_taken(self, loan_id: int) -> bool:
        self._when_not_paused()
        return True

    def on_before_loan_payment(self, loan_id: int, amount: int) -> bool:
        self._when_not_paused()
        return True

    def on_after_loan_payment(self, loan_id: int, amount: int) -> bool:
        self._when_not_paused()
        self._borrowable_balance += amount
        return True

    def on_before_loan_revocation(self, loan_id: int) -> bool:
        self._when_not_paused()
        return True

    def on_after_loan_revocation(self, loan_id: int) -> bool:
        self._when_not_paused()
        loan = self.market.get_loan_state(loan_id)
        borrowable = self._borrowable_balance + loan.borrow_amount - loan.repaid_amount + loan.addon_amount
        if borrowable < 0 or loan.addon_amount > self._addons_balance:
            raise InsufficientBalance(f"pool {self.address} cannot absorb revocation of loan {loan_id}")
        self._borrowable_balance = borrowable
        self._addons_balance -= loan.addon_amount
        return True

    # ========================================================================
    # EVENTS
    # ========================================================================

    def _emit(self, name: str, **args) -> None:
        event = Event(name, self.address, self.market.current_time, args)
        self.events.append(event)
        if self.verbose:
            print(f"🏦 {self.address}: {event!r}")
