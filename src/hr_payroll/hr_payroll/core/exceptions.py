class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""

    status_code = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""

    status_code = 404


class ConflictError(DomainError):
    """Raised when the requested transition is invalid for the current state."""


class DuplicateRecordError(ConflictError):
    pass


class AlreadyReviewedError(ConflictError):
    pass


class OverlappingRequestError(ConflictError):
    pass


class InsufficientBalanceError(ConflictError):
    pass


class AlreadyCheckedInError(ConflictError):
    pass


class AlreadyCheckedOutError(ConflictError):
    pass


class NoCheckInError(NotFoundError):
    pass
