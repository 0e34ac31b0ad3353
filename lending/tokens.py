"""
tokens.py - Token Balances and the Transfer Primitive

TokenLedger is the fund-movement primitive the loan ledger settles through.
It keeps integer balances per (token, wallet) and applies transfers as
validated Move records.

Key responsibilities:
    - transfer(): the only way value moves between wallets after minting
    - Rejects transfers that exceed the source balance (InsufficientFunds)
    - Logs every applied move (transfer_log)
    - Participates in loan-ledger atomicity via snapshot()/restore()
"""

from __future__ import annotations
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional

from .core import InsufficientFunds, SnapshotMixin


@dataclass(frozen=True, slots=True)
class Move:
    """
    A single transfer of a token between two wallets.

    Attributes:
        amount: Scaled token units to transfer (positive int)
        token: Token identity
        source: Wallet debited
        dest: Wallet credited
        memo: Optional reason (e.g., "loan:3:take")

    All fields are validated in __post_init__.
    """
    amount: int
    token: str
    source: str
    dest: str
    memo: Optional[str] = None

    def __post_init__(self):
        if not self.source or not self.source.strip():
            raise ValueError("Move source cannot be empty")
        if not self.dest or not self.dest.strip():
            raise ValueError("Move dest cannot be empty")
        if not self.token or not self.token.strip():
            raise ValueError("Move token cannot be empty")
        if not isinstance(self.amount, int) or isinstance(self.amount, bool):
            raise ValueError(f"Move amount must be int, got {type(self.amount)}")
        if self.amount <= 0:
            raise ValueError(f"Move amount must be positive, got {self.amount}")
        if self.source == self.dest:
            raise ValueError("Source and dest must be different")

    def __repr__(self) -> str:
        return f"Move({self.amount} {self.token}: {self.source}→{self.dest})"


class TokenLedger(SnapshotMixin):
    """
    In-memory token balances with an append-only transfer log.

    Not thread-safe. The loan ledger serializes all calls.

    Example:
        tokens = TokenLedger()
        tokens.mint("USDC", "lender", 1_000_000)
        tokens.transfer("USDC", "lender", "pool", 400_000)
        tokens.balance_of("USDC", "pool")   # 400_000
    """

    _SNAPSHOT_FIELDS = ("_balances",)
    _LOG_FIELDS = ("transfer_log",)

    def __init__(self, verbose: bool = False):
        self._balances: Dict[str, Dict[str, int]] = defaultdict(lambda: defaultdict(int))
        self.transfer_log: List[Move] = []
        self.verbose = verbose

    def balance_of(self, token: str, wallet: str) -> int:
        """Balance of token held by wallet (0 if never funded)."""
        if token not in self._balances:
            return 0
        return self._balances[token].get(wallet, 0)

    def total_supply(self, token: str) -> int:
        """Sum of all balances of a token."""
        return sum(self._balances[token].values()) if token in self._balances else 0

    def mint(self, token: str, wallet: str, amount: int) -> None:
        """
        Create amount of token in wallet.

        Used to bootstrap balances. Loans never mint; they only transfer.

        Raises:
            ValueError: If token or wallet is empty, or amount is not positive
        """
        if not token or not wallet:
            raise ValueError("mint requires a token and a wallet")
        if amount <= 0:
            raise ValueError(f"mint amount must be positive, got {amount}")
        self._balances[token][wallet] += amount
        if self.verbose:
            print(f"🪙 Minted: {amount} {token} → {wallet}")

    def transfer(self, token: str, source: str, dest: str, amount: int, memo: Optional[str] = None) -> Move:
        """
        Move amount of token from source to dest.

        Returns:
            The applied Move

        Raises:
            ValueError: If the move is malformed
            InsufficientFunds: If source holds less than amount
        """
        move = Move(amount, token, source, dest, memo)
        available = self.balance_of(token, source)
        if available < amount:
            if self.verbose:
                print(f"✗ REJECTED: {move} (balance {available})")
            raise InsufficientFunds(
                f"{source} holds {available} {token}, cannot transfer {amount}"
            )
        self._balances[token][source] = available - amount
        self._balances[token][dest] += amount
        self.transfer_log.append(move)
        if self.verbose:
            print(f"✓ {move}")
        return move

