"""Authorization and message relay between paired parties."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol

from relay_broker.domain.errors import (
    ConnectionClosedError,
    ExpiredError,
    InvalidCredentialError,
    NotFoundError,
)
from relay_broker.domain.relay import Role
from relay_broker.domain.transactions import Transaction
from relay_broker.services.sessions import Connection, SessionRegistry
from relay_broker.services.tokens import TokenService

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL = timedelta(minutes=10)
CLOSE_NORMAL = 1000
CLOSE_POLICY_VIOLATION = 1008


class TransactionLookup(Protocol):
    """Read access to transactions needed by the relay."""

    def find_transaction(self, transaction_id: int) -> Transaction | None:
        """Return a transaction by id, if present."""


@dataclass(frozen=True)
class RelaySession:
    """A registered connection ready to relay."""

    role: Role
    user_id: int
    admin_id: int
    transaction_id: int
    connection: Connection

    @property
    def party_id(self) -> int:
        return self.user_id if self.role is Role.USER else self.admin_id

    @property
    def peer_id(self) -> int:
        return self.admin_id if self.role is Role.USER else self.user_id


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class RelayEngine:
    """Validates relay connections and forwards messages between the pair.

    Forwarding is best effort: a message that arrives while the peer is not
    connected, or whose delivery fails, is dropped. Both deadlines are
    checked when a message arrives, not by a timer, so an idle connection
    stays open until its next read returns.
    """

    token_service: TokenService
    transactions: TransactionLookup
    registry: SessionRegistry
    session_ttl: timedelta = DEFAULT_SESSION_TTL
    clock: Callable[[], datetime] = field(default=_utcnow)

    def connect(
        self, credential: str, role: str, connection: Connection
    ) -> RelaySession:
        """Authorize a connection and claim its party slot.

        Raises a domain error without touching the registry when the
        credential, role or transaction is not acceptable. The caller is
        responsible for closing the connection on failure.
        """
        try:
            resolved_role = Role(role)
        except ValueError as exc:
            raise InvalidCredentialError(f"unknown role: {role}") from exc

        claims = self.token_service.verify(credential)
        transaction = self.transactions.find_transaction(claims.transaction_id)
        if transaction is None:
            raise NotFoundError("transaction not found")
        if transaction.is_expired(self.clock()):
            raise ExpiredError("transaction expired")
        if (transaction.user_id, transaction.admin_id) != (
            claims.user_id,
            claims.admin_id,
        ):
            raise InvalidCredentialError("credential does not match transaction")

        session = RelaySession(
            role=resolved_role,
            user_id=claims.user_id,
            admin_id=claims.admin_id,
            transaction_id=claims.transaction_id,
            connection=connection,
        )
        self.registry.try_register(
            resolved_role, session.party_id, connection, session.transaction_id
        )
        logger.info(
            "Relay session opened",
            extra={
                "role": resolved_role.value,
                "party_id": session.party_id,
                "transaction_id": session.transaction_id,
            },
        )
        return session

    async def serve(self, session: RelaySession) -> None:
        """Run the receive loop until disconnect or session expiry."""
        deadline = self.clock() + self.session_ttl
        reason: str | None = None
        try:
            await session.connection.accept()
            while True:
                try:
                    message = await session.connection.receive()
                except ConnectionClosedError:
                    break
                if self.clock() > deadline:
                    reason = "session expired"
                    logger.info(
                        "Relay session expired",
                        extra={
                            "role": session.role.value,
                            "party_id": session.party_id,
                        },
                    )
                    break
                await self._forward(session, message)
        finally:
            self.registry.unregister(
                session.role, session.party_id, session.connection
            )
            logger.info(
                "Relay session closed",
                extra={"role": session.role.value, "party_id": session.party_id},
            )
            await session.connection.close(code=CLOSE_NORMAL, reason=reason)

    async def _forward(self, session: RelaySession, message: str | bytes) -> None:
        peer = self.registry.lookup_peer(
            session.role.opposite, session.peer_id, session.transaction_id
        )
        if peer is None:
            logger.debug(
                "Peer not connected, dropping message",
                extra={"role": session.role.value, "party_id": session.party_id},
            )
            return
        try:
            await peer.send(message)
        except ConnectionClosedError:
            logger.debug(
                "Peer closed during send, dropping message",
                extra={"role": session.role.value, "party_id": session.party_id},
            )
