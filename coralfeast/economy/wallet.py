"""The player's coin balance as seen by the pond engine."""

from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class InsufficientFunds(Exception):
    """A debit exceeds the available balance."""


class Wallet(Protocol):
    """Balance collaborator used by harvests and purchases."""

    def credit(self, amount: int) -> int:
        """Add ``amount`` coins and return the new balance."""
        ...

    def debit(self, amount: int) -> int:
        """Remove ``amount`` coins and return the new balance."""
        ...


class LocalWallet:
    """In-process wallet holding an integer coin balance.

    Attributes:
        balance: Current coins.
        history: ``(amount, reason)`` for every applied change.
    """

    def __init__(self, balance: int = 0) -> None:
        self.balance = balance
        self.history: list[tuple[int, str]] = []

    def credit(self, amount: int, reason: str = "credit") -> int:
        """Add ``amount`` coins.

        Raises:
            ValueError: If ``amount`` is negative.
        """
        if amount < 0:
            msg = f"cannot credit a negative amount ({amount})"
            raise ValueError(msg)
        self.balance += amount
        self.history.append((amount, reason))
        logger.debug("Wallet +%d (%s) -> %d", amount, reason, self.balance)
        return self.balance

    def debit(self, amount: int, reason: str = "debit") -> int:
        """Remove ``amount`` coins.

        Raises:
            ValueError: If ``amount`` is negative.
            InsufficientFunds: If the balance is too low.
        """
        if amount < 0:
            msg = f"cannot debit a negative amount ({amount})"
            raise ValueError(msg)
        if amount > self.balance:
            msg = f"balance {self.balance} cannot cover {amount}"
            raise InsufficientFunds(msg)
        self.balance -= amount
        self.history.append((-amount, reason))
        logger.debug("Wallet -%d (%s) -> %d", amount, reason, self.balance)
        return self.balance
