"""Domain errors raised by services and mapped to HTTP responses by the API."""


class KithuError(Exception):
    """Base class for errors whose message is safe to show to API clients."""

    default_message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class DuplicateUser(KithuError):
    """Raised when registering an email that already has an account."""

    default_message = "User already exists"


class InvalidCredentials(KithuError):
    """Raised on unknown email or wrong password; never says which."""

    default_message = "Invalid credentials"


class InvalidOrExpiredToken(KithuError):
    """Raised when a refresh or access token is unknown, revoked, rotated or expired."""

    default_message = "Invalid or expired token"


class StoreUnavailable(KithuError):
    """Raised when the database cannot be reached or a store call times out."""

    default_message = "Service temporarily unavailable"


class NotFound(KithuError):
    """Raised when a requested resource does not exist."""

    default_message = "Not found"


class ConfigurationError(Exception):
    """Raised at startup when required settings are missing or invalid."""
