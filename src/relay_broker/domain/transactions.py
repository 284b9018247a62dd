"""Transaction records and their status state machine."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class TransactionStatus(StrEnum):
    """Lifecycle states of a transaction."""

    PENDING = "pending"
    PENDING_PAYMENT = "pending_payment"
    SUCCESS = "success"
    FRAUD = "fraud"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL

    def can_transition_to(self, target: "TransactionStatus") -> bool:
        """Return true when moving to ``target`` is a legal state change.

        ``pending`` may move anywhere, ``pending_payment`` may repeat or
        settle, and terminal states only accept themselves.
        """
        if self is TransactionStatus.PENDING:
            return True
        if self is TransactionStatus.PENDING_PAYMENT:
            return target is not TransactionStatus.PENDING
        return target is self


_TERMINAL = frozenset(
    {TransactionStatus.SUCCESS, TransactionStatus.FRAUD, TransactionStatus.FAILED}
)


@dataclass(frozen=True)
class Transaction:
    """A paid booking between one user and one admin."""

    id: int
    user_id: int
    admin_id: int
    price: float
    status: TransactionStatus
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def is_active(self, now: datetime) -> bool:
        """Active means non-terminal and not yet expired."""
        return not self.status.is_terminal and not self.is_expired(now)
