"""Signed relay credentials."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import jwt
from pydantic import ValidationError

from relay_broker.domain.credentials import CredentialClaims
from relay_broker.domain.errors import (
    CredentialExpiredError,
    InvalidSignatureError,
    MalformedCredentialError,
)

ALGORITHM = "HS256"
DEFAULT_TTL = timedelta(hours=1)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class TokenService:
    """Issue and verify HS256 credentials binding a user, admin and transaction.

    Both operations are pure computations over the secret and the token, so
    they can run without holding any store or registry lock. The credential
    lifetime is independent of the transaction's own expiry.
    """

    secret: str
    ttl: timedelta = DEFAULT_TTL
    clock: Callable[[], datetime] = field(default=_utcnow)

    def issue(self, user_id: int, admin_id: int, transaction_id: int) -> str:
        """Return a signed credential for the given parties."""
        now = self.clock()
        payload = {
            "user_id": user_id,
            "admin_id": admin_id,
            "transaction_id": transaction_id,
            "iat": int(now.timestamp()),
            "exp": int((now + self.ttl).timestamp()),
        }
        return jwt.encode(payload, self.secret, algorithm=ALGORITHM)

    def verify(self, credential: str) -> CredentialClaims:
        """Validate a credential and return its typed claims."""
        try:
            payload = jwt.decode(
                credential,
                self.secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp"], "verify_exp": False, "verify_iat": False},
            )
        except jwt.InvalidSignatureError as exc:
            raise InvalidSignatureError("credential signature mismatch") from exc
        except jwt.InvalidTokenError as exc:
            raise MalformedCredentialError(f"malformed credential: {exc}") from exc

        expires_at = payload.get("exp")
        if not isinstance(expires_at, int) or isinstance(expires_at, bool):
            raise MalformedCredentialError("malformed credential: bad exp claim")
        if self.clock().timestamp() >= expires_at:
            raise CredentialExpiredError("credential has expired")

        try:
            return CredentialClaims.model_validate(payload)
        except ValidationError as exc:
            raise MalformedCredentialError(f"malformed credential: {exc}") from exc
