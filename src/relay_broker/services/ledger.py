"""Transaction ledger and payment status state machine."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol

from relay_broker.domain.errors import NotFoundError, UnknownStatusError
from relay_broker.domain.transactions import Transaction, TransactionStatus
from relay_broker.services.tokens import TokenService

logger = logging.getLogger(__name__)

DEFAULT_TRANSACTION_TTL = timedelta(minutes=10)


class TransactionRepository(Protocol):
    """Persistence interface for transactions."""

    def reserve_transaction(
        self,
        user_id: int,
        admin_id: int,
        price: float,
        now: datetime,
        expires_at: datetime,
    ) -> Transaction:
        """Atomically validate the pair and store a new pending transaction."""

    def get_transaction(self, transaction_id: int) -> Transaction | None:
        """Return a transaction by id, if present."""

    def transition(
        self, transaction_id: int, target: TransactionStatus
    ) -> tuple[Transaction, Transaction]:
        """Atomically apply a legal status change and return (before, after)."""


class PaymentGateway(Protocol):
    """Interface for the external checkout provider."""

    async def create_checkout(
        self, transaction_id: int, price: float, payer_ref: str
    ) -> str:
        """Create a checkout session and return its reference."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class TransactionLedger:
    """Owns transaction creation, gateway confirmations and credential hand-out."""

    repository: TransactionRepository
    gateway: PaymentGateway
    token_service: TokenService
    ttl: timedelta = DEFAULT_TRANSACTION_TTL
    clock: Callable[[], datetime] = field(default=_utcnow)

    async def create_transaction(
        self, user_id: int, admin_id: int, price: float
    ) -> tuple[Transaction, str]:
        """Create a transaction and return it with the gateway checkout reference.

        The record is reserved as ``pending`` before the gateway call and the
        store lock is not held while the gateway responds. A failed or cancelled
        gateway call leaves the record ``failed`` so it no longer blocks the pair.
        """
        now = self.clock()
        transaction = self.repository.reserve_transaction(
            user_id=user_id,
            admin_id=admin_id,
            price=price,
            now=now,
            expires_at=now + self.ttl,
        )
        logger.info(
            "Transaction reserved",
            extra={"transaction_id": transaction.id, "user_id": user_id},
        )
        try:
            checkout_ref = await self.gateway.create_checkout(
                transaction_id=transaction.id,
                price=price,
                payer_ref=str(user_id),
            )
        except BaseException:
            self.repository.transition(transaction.id, TransactionStatus.FAILED)
            logger.exception(
                "Checkout creation failed",
                extra={"transaction_id": transaction.id},
            )
            raise

        _, committed = self.repository.transition(
            transaction.id, TransactionStatus.PENDING_PAYMENT
        )
        return committed, checkout_ref

    def apply_gateway_notification(
        self, order_id: str, transaction_status: str, fraud_status: str
    ) -> Transaction:
        """Apply a payment gateway notification to the matching transaction."""
        transaction_id = _parse_order_id(order_id)
        target = resolve_notification_status(transaction_status, fraud_status)
        before, after = self.repository.transition(transaction_id, target)
        if after.status is not target:
            logger.warning(
                "Ignoring notification for settled transaction",
                extra={
                    "transaction_id": transaction_id,
                    "status": before.status.value,
                    "requested": target.value,
                },
            )
        return after

    def get_transaction(self, transaction_id: int) -> tuple[Transaction, str | None]:
        """Return a transaction and, once paid, a fresh relay credential."""
        transaction = self.repository.get_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError("transaction not found")
        if transaction.status is not TransactionStatus.SUCCESS:
            return transaction, None
        credential = self.token_service.issue(
            user_id=transaction.user_id,
            admin_id=transaction.admin_id,
            transaction_id=transaction.id,
        )
        return transaction, credential

    def find_transaction(self, transaction_id: int) -> Transaction | None:
        return self.repository.get_transaction(transaction_id)


def resolve_notification_status(
    transaction_status: str, fraud_status: str
) -> TransactionStatus:
    """Map gateway status fields onto a transaction status."""
    status = transaction_status.lower()
    fraud = fraud_status.lower()
    if status == "capture":
        if fraud == "accept":
            return TransactionStatus.SUCCESS
        return TransactionStatus.FRAUD
    if status == "settlement":
        return TransactionStatus.SUCCESS
    if status in {"deny", "cancel", "expire"}:
        return TransactionStatus.FAILED
    if status == "pending":
        return TransactionStatus.PENDING_PAYMENT
    raise UnknownStatusError(f"unknown transaction status: {transaction_status}")


def _parse_order_id(order_id: str) -> int:
    cleaned = order_id.strip()
    if not (cleaned.isascii() and cleaned.isdecimal()):
        raise NotFoundError("transaction not found")
    return int(cleaned)
