"""Pydantic models for HTTP request and response payloads."""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from relay_broker.domain.models import Admin, User
from relay_broker.domain.transactions import Transaction


class CreateUserRequest(BaseModel):
    """Body for user registration."""

    id: int


class CreateAdminRequest(BaseModel):
    """Body for admin registration."""

    id: int


class UserResponse(BaseModel):
    id: int

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        return cls(id=user.id)


class AdminResponse(BaseModel):
    id: int

    @classmethod
    def from_domain(cls, admin: Admin) -> "AdminResponse":
        return cls(id=admin.id)


class CreateTransactionRequest(BaseModel):
    """Body for transaction creation."""

    user_id: int = Field(validation_alias=AliasChoices("user_id", "userID"))
    admin_id: int = Field(validation_alias=AliasChoices("admin_id", "adminID"))
    price: float = Field(gt=0)


class TransactionResponse(BaseModel):
    """Serialized transaction record."""

    id: int
    user_id: int
    admin_id: int
    price: float
    status: str
    expires_at: datetime

    @classmethod
    def from_domain(cls, transaction: Transaction) -> "TransactionResponse":
        return cls(
            id=transaction.id,
            user_id=transaction.user_id,
            admin_id=transaction.admin_id,
            price=transaction.price,
            status=transaction.status.value,
            expires_at=transaction.expires_at,
        )


class PaymentNotification(BaseModel):
    """Payment gateway notification; only the fields the ledger reads."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    order_id: str = Field(min_length=1)
    transaction_status: str = Field(min_length=1)
    fraud_status: str = Field(min_length=1)

    @field_validator("order_id")
    @classmethod
    def _order_id_is_numeric(cls, value: str) -> str:
        cleaned = value.strip()
        if not (cleaned.isascii() and cleaned.isdecimal()):
            raise ValueError("order_id must be a transaction id")
        return cleaned
