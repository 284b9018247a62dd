"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from relay_broker.api.models import (
    AdminResponse,
    CreateAdminRequest,
    CreateTransactionRequest,
    CreateUserRequest,
    PaymentNotification,
    TransactionResponse,
    UserResponse,
)
from relay_broker.api.relay import router as relay_router
from relay_broker.app_logging import configure_logging
from relay_broker.containers import AppContainer
from relay_broker.domain.errors import (
    AlreadyExistsError,
    ConflictError,
    NotFoundError,
    UnknownStatusError,
    UpstreamFailureError,
)


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "Relay broker starting",
            extra={"environment": app.state.container.settings.environment},
        )
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(relay_router)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, _format_validation_error(exc))

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/users", status_code=status.HTTP_201_CREATED, response_model=None)
    async def create_user(
        body: CreateUserRequest, request: Request
    ) -> UserResponse | JSONResponse:
        """Register a user."""
        state_container: AppContainer = request.app.state.container
        try:
            user = state_container.identity_service.create_user(body.id)
        except AlreadyExistsError as exc:
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))
        return UserResponse.from_domain(user)

    @app.get("/users/{user_id}", response_model=None)
    async def get_user(user_id: int, request: Request) -> UserResponse | JSONResponse:
        """Return a user by id."""
        state_container: AppContainer = request.app.state.container
        try:
            user = state_container.identity_service.get_user(user_id)
        except NotFoundError as exc:
            return _error(status.HTTP_404_NOT_FOUND, str(exc))
        return UserResponse.from_domain(user)

    @app.post("/admins", status_code=status.HTTP_201_CREATED, response_model=None)
    async def create_admin(
        body: CreateAdminRequest, request: Request
    ) -> AdminResponse | JSONResponse:
        """Register an admin."""
        state_container: AppContainer = request.app.state.container
        try:
            admin = state_container.identity_service.create_admin(body.id)
        except AlreadyExistsError as exc:
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))
        return AdminResponse.from_domain(admin)

    @app.get("/admins")
    async def list_admins(request: Request) -> list[AdminResponse]:
        """Return all admins."""
        state_container: AppContainer = request.app.state.container
        return [
            AdminResponse.from_domain(admin)
            for admin in state_container.identity_service.list_admins()
        ]

    @app.get("/admins/{admin_id}", response_model=None)
    async def get_admin(
        admin_id: int, request: Request
    ) -> AdminResponse | JSONResponse:
        """Return an admin by id."""
        state_container: AppContainer = request.app.state.container
        try:
            admin = state_container.identity_service.get_admin(admin_id)
        except NotFoundError as exc:
            return _error(status.HTTP_404_NOT_FOUND, str(exc))
        return AdminResponse.from_domain(admin)

    @app.post(
        "/transactions", status_code=status.HTTP_201_CREATED, response_model=None
    )
    async def create_transaction(
        body: CreateTransactionRequest, request: Request
    ) -> dict[str, object] | JSONResponse:
        """Create a transaction and hand back the checkout reference."""
        state_container: AppContainer = request.app.state.container
        try:
            transaction, checkout_ref = (
                await state_container.ledger.create_transaction(
                    user_id=body.user_id,
                    admin_id=body.admin_id,
                    price=body.price,
                )
            )
        except NotFoundError as exc:
            return _error(status.HTTP_400_BAD_REQUEST, str(exc))
        except (ConflictError, UpstreamFailureError) as exc:
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))
        return {
            "transaction": TransactionResponse.from_domain(transaction),
            "checkout_ref": checkout_ref,
        }

    @app.get("/transactions/{transaction_id}", response_model=None)
    async def get_transaction(
        transaction_id: int, request: Request
    ) -> dict[str, object] | JSONResponse:
        """Return a transaction, with a relay credential once it is paid."""
        state_container: AppContainer = request.app.state.container
        try:
            transaction, credential = state_container.ledger.get_transaction(
                transaction_id
            )
        except NotFoundError as exc:
            return _error(status.HTTP_404_NOT_FOUND, str(exc))
        response: dict[str, object] = {
            "transaction": TransactionResponse.from_domain(transaction),
        }
        if credential:
            response["credential"] = credential
        return response

    @app.post("/payment-webhook", response_model=None)
    async def payment_webhook(
        notification: PaymentNotification, request: Request
    ) -> dict[str, str] | JSONResponse:
        """Apply a payment gateway notification."""
        state_container: AppContainer = request.app.state.container
        try:
            state_container.ledger.apply_gateway_notification(
                order_id=notification.order_id,
                transaction_status=notification.transaction_status,
                fraud_status=notification.fraud_status,
            )
        except NotFoundError as exc:
            return _error(status.HTTP_404_NOT_FOUND, str(exc))
        except UnknownStatusError as exc:
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))
        return {"status": "success"}

    return app


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _format_validation_error(exc: RequestValidationError) -> str:
    """Flatten pydantic validation errors into one message."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts) or "invalid request"
