from typing import Any


class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    def __init__(self, message: str, status_code: int) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class StorageError(CustomBaseError):
    """Raised by repositories when the data store fails (connection, constraint, driver)."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 500)


class TechnicalError(CustomBaseError):
    """Raised by use cases when an operation cannot complete for non-business reasons."""

    def __init__(self, message: str = 'A technical error occurred, please retry later') -> None:
        super().__init__(message, 500)


class BookingRejectedError(CustomBaseError):
    """A business rejection crossing the HTTP boundary, carrying its structured fields."""

    def __init__(self, message: str, status_code: int, *, code: str, **fields: Any) -> None:
        self.code = code
        self.fields = fields
        super().__init__(message, status_code)
