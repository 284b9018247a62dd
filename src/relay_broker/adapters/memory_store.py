"""In-memory identity and transaction store."""

import threading
from dataclasses import replace
from datetime import datetime

from relay_broker.domain.errors import AlreadyExistsError, ConflictError, NotFoundError
from relay_broker.domain.models import Admin, User
from relay_broker.domain.transactions import Transaction, TransactionStatus


class InMemoryLedgerStore:
    """Volatile store for users, admins and transactions.

    Every public method is atomic under a single internal lock, so callers
    never combine a read and a write across the boundary. State is lost when
    the process exits.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._users: dict[int, User] = {}
        self._admins: dict[int, Admin] = {}
        self._transactions: dict[int, Transaction] = {}
        self._last_transaction_id = 0

    def add_user(self, user: User) -> User:
        with self._lock:
            if user.id in self._users:
                raise AlreadyExistsError("user already exists")
            self._users[user.id] = user
            return user

    def get_user(self, user_id: int) -> User | None:
        with self._lock:
            return self._users.get(user_id)

    def add_admin(self, admin: Admin) -> Admin:
        with self._lock:
            if admin.id in self._admins:
                raise AlreadyExistsError("admin already exists")
            self._admins[admin.id] = admin
            return admin

    def get_admin(self, admin_id: int) -> Admin | None:
        with self._lock:
            return self._admins.get(admin_id)

    def list_admins(self) -> list[Admin]:
        with self._lock:
            return sorted(self._admins.values(), key=lambda admin: admin.id)

    def reserve_transaction(
        self,
        user_id: int,
        admin_id: int,
        price: float,
        now: datetime,
        expires_at: datetime,
    ) -> Transaction:
        """Validate the pair and insert a ``pending`` transaction in one step."""
        with self._lock:
            if user_id not in self._users:
                raise NotFoundError("user not found")
            if admin_id not in self._admins:
                raise NotFoundError("admin not found")
            for existing in self._transactions.values():
                if (
                    existing.user_id == user_id
                    and existing.admin_id == admin_id
                    and existing.is_active(now)
                ):
                    raise ConflictError(
                        "user and admin already have an active transaction"
                    )
            self._last_transaction_id += 1
            transaction = Transaction(
                id=self._last_transaction_id,
                user_id=user_id,
                admin_id=admin_id,
                price=price,
                status=TransactionStatus.PENDING,
                expires_at=expires_at,
            )
            self._transactions[transaction.id] = transaction
            return transaction

    def get_transaction(self, transaction_id: int) -> Transaction | None:
        with self._lock:
            return self._transactions.get(transaction_id)

    def transition(
        self, transaction_id: int, target: TransactionStatus
    ) -> tuple[Transaction, Transaction]:
        """Apply a status change if legal and return ``(before, after)``.

        Illegal changes leave the record untouched, so ``before == after``.
        """
        with self._lock:
            current = self._transactions.get(transaction_id)
            if current is None:
                raise NotFoundError("transaction not found")
            if not current.status.can_transition_to(target):
                return current, current
            updated = replace(current, status=target)
            self._transactions[transaction_id] = updated
            return current, updated
