"""Registry of live relay connections per party."""

import threading
from dataclasses import dataclass
from typing import Protocol

from relay_broker.domain.errors import SessionAlreadyActiveError
from relay_broker.domain.relay import Role


class Connection(Protocol):
    """Duplex transport used by the relay.

    ``receive`` and ``send`` raise ``ConnectionClosedError`` once the
    transport has ended. ``send`` must be safe to call from several tasks.
    """

    async def accept(self) -> None:
        """Complete the transport handshake."""

    async def send(self, message: str | bytes) -> None:
        """Write one message to the peer."""

    async def receive(self) -> str | bytes:
        """Block until the next inbound message."""

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        """Close the transport, ignoring an already closed one."""


@dataclass(frozen=True)
class _Slot:
    connection: Connection
    transaction_id: int | None


class SessionRegistry:
    """At most one live connection per (role, party id).

    Each slot remembers the transaction it was opened for, so a peer is only
    resolved for the same transaction. The registry lock only guards the
    mapping. Serializing writes to a connection is the connection's own job.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sessions: dict[Role, dict[int, _Slot]] = {
            Role.USER: {},
            Role.ADMIN: {},
        }

    def try_register(
        self,
        role: Role,
        party_id: int,
        connection: Connection,
        transaction_id: int | None = None,
    ) -> None:
        """Claim the slot for a party, failing if it is already taken."""
        with self._lock:
            slots = self._sessions[role]
            if party_id in slots:
                raise SessionAlreadyActiveError(
                    f"{role.value} already in an active session"
                )
            slots[party_id] = _Slot(connection, transaction_id)

    def lookup_peer(
        self, role: Role, party_id: int, transaction_id: int | None = None
    ) -> Connection | None:
        """Return the connection registered for a party, if any.

        With ``transaction_id`` a slot opened for another transaction counts
        as absent.
        """
        with self._lock:
            slot = self._sessions[role].get(party_id)
        if slot is None:
            return None
        if transaction_id is not None and slot.transaction_id != transaction_id:
            return None
        return slot.connection

    def unregister(
        self, role: Role, party_id: int, connection: Connection | None = None
    ) -> None:
        """Release a party's slot.

        When ``connection`` is given the slot is only released if it still
        belongs to that connection. Releasing a free slot is a no-op.
        """
        with self._lock:
            slots = self._sessions[role]
            current = slots.get(party_id)
            if current is None:
                return
            if connection is not None and current.connection is not connection:
                return
            del slots[party_id]

    def active_count(self, role: Role) -> int:
        with self._lock:
            return len(self._sessions[role])
