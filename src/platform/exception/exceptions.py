from http import HTTPStatus


class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    def __init__(self, message: str, status_code: int) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    @property
    def error(self) -> str:
        return HTTPStatus(self.status_code).phrase


class ValidationError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 400)


class AuthError(CustomBaseError):
    """Missing, invalid, expired, restricted or over-quota license key"""


class AuthenticationError(AuthError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 401)


class ForbiddenError(AuthError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 403)


class QuotaExceededError(AuthError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 429)


class NotFoundError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class StorageError(CustomBaseError):
    """Database failure. The message is safe to return; driver detail is chained, never rendered."""

    def __init__(self, message: str = 'An unexpected database error occurred') -> None:
        super().__init__(message, 500)


class PayloadTooLargeError(CustomBaseError):
    """Request body over the configured limit; `received` holds the bytes read before giving up."""

    def __init__(self, limit: int, received: bytes = b'') -> None:
        super().__init__(f'Request body exceeds the limit of {limit} bytes.', 413)
        self.received = received
