class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """A referenced class, session or token does not exist."""


class ClassNotFoundError(NotFoundError):
    pass


class SessionNotFoundError(NotFoundError):
    pass


class InvalidTokenError(NotFoundError):
    """No session matches the presented token."""


class ConflictError(DomainError):
    """Someone else already did this; callers should not retry."""


class AlreadyActiveError(ConflictError):
    pass


class AlreadyRecordedError(ConflictError):
    pass


class TokenCollisionError(ConflictError):
    """The store rejected a generated token as a duplicate."""


class ExpiredError(DomainError):
    """Time-based rejection; the caller should ask for a fresh token."""


class SessionExpiredError(ExpiredError):
    pass


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotEnrolledError(AuthorizationError):
    pass
