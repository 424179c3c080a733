"""Domain-level exceptions.

Services raise these errors to express business rule violations.
Route handlers catch them and map to appropriate HTTP status codes.
"""


class DomainError(Exception):
    """Base class for all domain errors."""


class AuthenticationError(DomainError):
    """Credentials were missing, wrong, or could not be verified."""


class DuplicateError(DomainError):
    """Entity with the same unique key already exists."""


class ValidationError(DomainError):
    """Input violates a business validation rule."""


class RateLimitError(DomainError):
    """Caller exceeded the allowed number of requests for a window."""


class InternalError(DomainError):
    """Unexpected failure. The message is always safe to show to callers."""


class ConfigurationError(InternalError):
    """Required configuration is missing."""


# ── Store errors ─────────────────────────────────────────────
# Raised by repository adapters. Not DomainErrors: services decide
# what each one means for the caller.


class StorageError(Exception):
    """The backing store failed."""


class UniqueViolationError(StorageError):
    """A write collided with a unique index."""


class SchemaViolationError(StorageError):
    """A write was rejected by the store's document validation."""
