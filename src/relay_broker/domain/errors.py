"""Domain error hierarchy."""


class RelayBrokerError(Exception):
    """Base class for all domain errors."""


class NotFoundError(RelayBrokerError):
    """Raised when an identity or transaction does not exist."""


class AlreadyExistsError(RelayBrokerError):
    """Raised when registering a duplicate identity."""


class ConflictError(RelayBrokerError):
    """Raised when an operation collides with active state."""


class SessionAlreadyActiveError(ConflictError):
    """Raised when a party already holds a live relay connection."""


class InvalidCredentialError(RelayBrokerError):
    """Raised when a credential cannot be trusted."""


class InvalidSignatureError(InvalidCredentialError):
    """Raised when a credential signature does not verify."""


class MalformedCredentialError(InvalidCredentialError):
    """Raised when a credential is missing fields or has mistyped fields."""


class CredentialExpiredError(InvalidCredentialError):
    """Raised when a credential's embedded expiry has passed."""


class ExpiredError(RelayBrokerError):
    """Raised when a transaction or relay session is past its deadline."""


class UnknownStatusError(RelayBrokerError):
    """Raised for unrecognized payment gateway notification values."""


class UpstreamFailureError(RelayBrokerError):
    """Raised when the payment gateway call fails."""


class ConnectionClosedError(RelayBrokerError):
    """Raised by transports when the underlying connection has ended."""
