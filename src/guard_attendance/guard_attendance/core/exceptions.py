class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a referenced guard/shift/attendance/exception is absent."""


class DuplicateClockIn(ValidationError):
    """Raised when the shift already has an open attendance."""


class AlreadyClosed(ValidationError):
    """Raised when clocking out an attendance that already has a clock-out."""


class ClockOutBeforeClockIn(ValidationError):
    """Raised when a clock-out would precede (or lacks) the clock-in."""


class InvalidTransition(ValidationError):
    """Raised when an exception review moves to a disallowed status."""


class AuthenticationError(DomainError):
    """Raised when there is no session or login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class PersistenceError(DomainError):
    """Raised when the store is unavailable or rejects a write."""
