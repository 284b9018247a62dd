"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta

from relay_broker.adapters.memory_store import InMemoryLedgerStore
from relay_broker.adapters.midtrans_client import HttpxMidtransClient
from relay_broker.config import Settings
from relay_broker.services.identities import IdentityService
from relay_broker.services.ledger import TransactionLedger
from relay_broker.services.relay import RelayEngine
from relay_broker.services.sessions import SessionRegistry
from relay_broker.services.tokens import TokenService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    identity_service: IdentityService
    token_service: TokenService
    ledger: TransactionLedger
    session_registry: SessionRegistry
    relay_engine: RelayEngine
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    store = InMemoryLedgerStore()
    gateway = HttpxMidtransClient.create(
        server_key=resolved_settings.midtrans_server_key,
        snap_url=resolved_settings.midtrans_snap_url,
        payer_email_domain=resolved_settings.payer_email_domain,
    )
    token_service = TokenService(
        secret=resolved_settings.credential_secret,
        ttl=timedelta(seconds=resolved_settings.credential_ttl_seconds),
    )
    ledger = TransactionLedger(
        repository=store,
        gateway=gateway,
        token_service=token_service,
        ttl=timedelta(seconds=resolved_settings.transaction_ttl_seconds),
    )
    session_registry = SessionRegistry()
    relay_engine = RelayEngine(
        token_service=token_service,
        transactions=ledger,
        registry=session_registry,
        session_ttl=timedelta(seconds=resolved_settings.relay_session_ttl_seconds),
    )

    async def close_resources() -> None:
        await gateway.close()

    return AppContainer(
        settings=resolved_settings,
        identity_service=IdentityService(store),
        token_service=token_service,
        ledger=ledger,
        session_registry=session_registry,
        relay_engine=relay_engine,
        close_resources=close_resources,
    )
