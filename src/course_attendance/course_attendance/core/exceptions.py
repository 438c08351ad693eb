class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a course, student or attendance reference does not resolve."""


class PreconditionFailedError(DomainError):
    """Raised when an administrative switch blocks a mutation."""
