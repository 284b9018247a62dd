"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest

from relay_broker.adapters.memory_store import InMemoryLedgerStore
from relay_broker.config import Settings
from relay_broker.containers import AppContainer
from relay_broker.domain.errors import ConnectionClosedError, UpstreamFailureError
from relay_broker.services.identities import IdentityService
from relay_broker.services.ledger import PaymentGateway, TransactionLedger
from relay_broker.services.relay import RelayEngine
from relay_broker.services.sessions import SessionRegistry
from relay_broker.services.tokens import TokenService

TEST_SECRET = "test-secret"


@dataclass
class FakeClock:
    """Manually advanced clock."""

    now: datetime = field(
        default_factory=lambda: datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
    )

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@dataclass
class FakePaymentGateway(PaymentGateway):
    """Fake gateway that records checkout requests."""

    calls: list[tuple[int, float, str]] = field(default_factory=list)
    fail: bool = False
    closed: bool = False

    async def create_checkout(
        self, transaction_id: int, price: float, payer_ref: str
    ) -> str:
        self.calls.append((transaction_id, price, payer_ref))
        if self.fail:
            raise UpstreamFailureError("gateway unavailable")
        return f"https://checkout.test/{transaction_id}"

    async def close(self) -> None:
        self.closed = True


@dataclass(eq=False)
class FakeConnection:
    """Queue-backed connection; push ``None`` to simulate a disconnect."""

    inbound: asyncio.Queue = field(default_factory=asyncio.Queue)
    delivered: asyncio.Queue = field(default_factory=asyncio.Queue)
    accepted: bool = False
    closed: bool = False
    close_code: int | None = None
    close_reason: str | None = None

    async def accept(self) -> None:
        self.accepted = True

    async def send(self, message: str | bytes) -> None:
        if self.closed:
            raise ConnectionClosedError("connection closed")
        await self.delivered.put(message)

    async def receive(self) -> str | bytes:
        message = await self.inbound.get()
        if message is None:
            raise ConnectionClosedError("connection closed")
        return message

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        if self.closed:
            return
        self.closed = True
        self.close_code = code
        self.close_reason = reason

    def push(self, message: str | bytes | None) -> None:
        self.inbound.put_nowait(message)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        credential_secret=TEST_SECRET,
        midtrans_server_key="server-key",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture
def gateway() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture
def token_service(clock: FakeClock) -> TokenService:
    return TokenService(secret=TEST_SECRET, clock=clock)


@pytest.fixture
def ledger(
    store: InMemoryLedgerStore,
    gateway: FakePaymentGateway,
    token_service: TokenService,
    clock: FakeClock,
) -> TransactionLedger:
    return TransactionLedger(
        repository=store,
        gateway=gateway,
        token_service=token_service,
        clock=clock,
    )


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def relay_engine(
    token_service: TokenService,
    ledger: TransactionLedger,
    registry: SessionRegistry,
    clock: FakeClock,
) -> RelayEngine:
    return RelayEngine(
        token_service=token_service,
        transactions=ledger,
        registry=registry,
        clock=clock,
    )


@pytest.fixture
def container(
    settings: Settings,
    store: InMemoryLedgerStore,
    gateway: FakePaymentGateway,
) -> AppContainer:
    token_service = TokenService(secret=settings.credential_secret)
    ledger = TransactionLedger(
        repository=store,
        gateway=gateway,
        token_service=token_service,
    )
    registry = SessionRegistry()
    relay_engine = RelayEngine(
        token_service=token_service,
        transactions=ledger,
        registry=registry,
    )

    async def close_resources() -> None:
        await gateway.close()

    return AppContainer(
        settings=settings,
        identity_service=IdentityService(store),
        token_service=token_service,
        ledger=ledger,
        session_registry=registry,
        relay_engine=relay_engine,
        close_resources=close_resources,
    )


def create_paid_transaction(
    ledger: TransactionLedger,
    store: InMemoryLedgerStore,
    user_id: int = 1,
    admin_id: int = 2,
) -> str:
    """Register a pair, settle a transaction for it and return its credential."""
    identities = IdentityService(store)
    if store.get_user(user_id) is None:
        identities.create_user(user_id)
    if store.get_admin(admin_id) is None:
        identities.create_admin(admin_id)
    transaction, _ = asyncio.run(
        ledger.create_transaction(user_id=user_id, admin_id=admin_id, price=1000)
    )
    ledger.apply_gateway_notification(str(transaction.id), "settlement", "accept")
    _, credential = ledger.get_transaction(transaction.id)
    assert credential is not None
    return credential
