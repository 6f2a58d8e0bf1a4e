class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class ConflictError(DomainError):
    """Raised when a write collides with existing data (e.g. overlapping duty hours)."""


class StaleRecordError(ConflictError):
    """Raised when the stored version moved on since the document was read."""


class NotFoundError(DomainError):
    """Raised when a record, entry or duty window does not exist."""


class ImmutableStateError(DomainError):
    """Raised when mutating a record that is approved or finally rejected."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""
