from typing import TypeVar

from returns.result import Failure, Result

from src.platform.exception.exceptions import BookingRejectedError
from src.service.shared_kernel.domain.booking_error import BookingError


_T = TypeVar('_T')


def to_rejection(error: BookingError) -> BookingRejectedError:
    return BookingRejectedError(
        error.message, error.status_code, code=error.code, **error.to_fields()
    )


def unwrap_or_reject(result: Result[_T, BookingError]) -> _T:
    """Success value, or raise the failure as an HTTP rejection."""
    if isinstance(result, Failure):
        raise to_rejection(result.failure())
    return result.unwrap()
