class AppException(Exception):
    """Base application exception."""

    pass


class NotFoundError(AppException):
    """Resource not found exception."""

    pass


class InvalidArgumentError(AppException):
    """Caller supplied a value the operation cannot accept (e.g. non-positive amount)."""

    pass


class BadStateError(AppException):
    """Operation is not allowed in the current state of the resource."""

    pass


class InternalError(AppException):
    """Persistence failure. The surrounding transaction has been rolled back."""

    pass
