"""Credential payload models."""

from pydantic import BaseModel, ConfigDict


class CredentialClaims(BaseModel):
    """Identity claims carried by a relay credential."""

    model_config = ConfigDict(strict=True, frozen=True, extra="ignore")

    user_id: int
    admin_id: int
    transaction_id: int
