"""Credit ledger interface and an in-memory ledger."""

import asyncio
from typing import Protocol

from snowscribe.utils.logging import get_logger

logger = get_logger(__name__)


class CreditLedgerError(Exception):
    """Base class for ledger failures."""


class InvalidDebitAmountError(CreditLedgerError):
    """Raised when a debit amount is not positive."""


class InsufficientCreditsError(CreditLedgerError):
    """Raised when a balance cannot cover a debit or a minimum."""


class CreditLedger(Protocol):
    """Atomic balance operations owned by the billing backend."""

    async def debit(self, user_id: str, amount: float, source: str) -> float:
        """Subtract ``amount`` and return the new balance."""
        ...

    async def get_balance(self, user_id: str) -> float: ...


class InMemoryCreditLedger:
    """Ledger kept in process memory.

    A single lock makes each read-modify-write atomic. Users without a balance
    start at ``starting_credits``.
    """

    def __init__(self, starting_credits: float = 100.0, allow_negative: bool = True):
        self.starting_credits = starting_credits
        # Usage is billed after the answer is delivered, so balances may dip below zero
        self.allow_negative = allow_negative
        self.balances: dict[str, float] = {}
        self.transactions: list[tuple[str, float, str]] = []
        self._lock = asyncio.Lock()

    async def get_balance(self, user_id: str) -> float:
        async with self._lock:
            return self.balances.get(user_id, self.starting_credits)

    async def credit(self, user_id: str, amount: float, source: str) -> float:
        """Add ``amount`` credits and return the new balance."""
        if amount <= 0:
            raise InvalidDebitAmountError("Credit amount must be positive.")
        async with self._lock:
            balance = self.balances.get(user_id, self.starting_credits) + amount
            self.balances[user_id] = balance
            self.transactions.append((user_id, amount, source))
            return balance

    async def debit(self, user_id: str, amount: float, source: str) -> float:
        """Subtract ``amount`` credits and return the new balance.

        Raises:
            InvalidDebitAmountError: If amount is not positive
            InsufficientCreditsError: If negative balances are disallowed and the
                balance cannot cover the amount
        """
        if amount <= 0:
            raise InvalidDebitAmountError("Deduction amount must be positive.")
        async with self._lock:
            balance = self.balances.get(user_id, self.starting_credits)
            if not self.allow_negative and balance < amount:
                raise InsufficientCreditsError(f"Balance {balance} cannot cover {amount} credits for {source}")
            balance -= amount
            self.balances[user_id] = balance
            self.transactions.append((user_id, -amount, source))
            logger.debug(f"Debited {amount} credits from {user_id} for {source}, balance {balance}")
            return balance
