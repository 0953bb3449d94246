"""SaferPlace store exception hierarchy."""


class StoreError(Exception):
    """Base exception for all persistence errors."""

    def __init__(self, message: str, *, operation: str | None = None, entity_id: str | None = None):
        self.operation = operation
        self.entity_id = entity_id
        context = ", ".join(
            f"{k}={v!r}" for k, v in (("operation", operation), ("id", entity_id)) if v is not None
        )
        super().__init__(f"{message} ({context})" if context else message)


class AlreadyExists(StoreError):
    """Raised when creating an entity whose id is already taken."""


class DoesNotExist(StoreError):
    """Raised when operating on an incident that is not stored."""


class SessionNotFound(DoesNotExist):
    """Raised when a session token was never saved."""


class Expired(StoreError):
    """Raised when a session is past its expiry."""


class TransientStoreFailure(StoreError):
    """Raised when the underlying store fails (connection, transaction, driver errors)."""


class Cancelled(StoreError):
    """Raised when an operation's deadline fires before it completes."""


class ProviderNotFound(StoreError):
    """Raised when the configured provider or driver is unknown."""


class BadAuthorizationFormat(StoreError):
    """Raised when an authorization value is not in `Bearer <token>` form."""
