"""
Business outcomes that are not successes.

Use cases return these on the failure side of ``returns.result.Result`` rather
than raising them: a sold-out tier or a closed booking window is an expected
answer, not an exceptional one. Infrastructure failures stay exceptions
(see ``src.platform.exception.exceptions``).
"""

from datetime import datetime
from enum import StrEnum
from typing import Any, ClassVar

import attrs

from src.service.shared_kernel.domain.enum import ReservationStatus, TicketTier


@attrs.frozen
class BookingError:
    code: ClassVar[str] = 'booking_error'
    status_code: ClassVar[int] = 400

    @property
    def message(self) -> str:
        raise NotImplementedError

    def to_fields(self) -> dict[str, Any]:
        return attrs.asdict(self, recurse=True)


@attrs.frozen
class ValidationError(BookingError):
    code: ClassVar[str] = 'validation_error'
    status_code: ClassVar[int] = 400

    reason: str

    @property
    def message(self) -> str:
        return self.reason


@attrs.frozen
class InsufficientCapacity(BookingError):
    code: ClassVar[str] = 'insufficient_capacity'
    status_code: ClassVar[int] = 409

    tier: TicketTier
    requested: int
    available: int

    @property
    def message(self) -> str:
        return (
            f'Not enough {self.tier} tickets: {self.requested} requested, '
            f'{self.available} available'
        )


class WindowClosedReason(StrEnum):
    EVENT_STARTED = 'event_started'
    WITHIN_CUTOFF = 'within_cutoff'
    EVENT_INACTIVE = 'event_inactive'


@attrs.frozen
class BookingWindowClosed(BookingError):
    code: ClassVar[str] = 'booking_window_closed'
    status_code: ClassVar[int] = 409

    reason: WindowClosedReason
    starts_at: datetime

    @property
    def message(self) -> str:
        return {
            WindowClosedReason.EVENT_STARTED: 'The event has already started',
            WindowClosedReason.WITHIN_CUTOFF: 'Bookings are closed for this event',
            WindowClosedReason.EVENT_INACTIVE: 'The event is not open for booking',
        }[self.reason]


@attrs.frozen
class LateCancellation(BookingError):
    code: ClassVar[str] = 'late_cancellation'
    status_code: ClassVar[int] = 409

    starts_at: datetime
    cutoff_hours: int

    @property
    def message(self) -> str:
        return f'Reservations cannot be cancelled less than {self.cutoff_hours}h before the event'


@attrs.frozen
class Unauthorized(BookingError):
    code: ClassVar[str] = 'unauthorized'
    status_code: ClassVar[int] = 403

    reason: str

    @property
    def message(self) -> str:
        return self.reason


@attrs.frozen
class NotFound(BookingError):
    code: ClassVar[str] = 'not_found'
    status_code: ClassVar[int] = 404

    resource: str
    identifier: str

    @property
    def message(self) -> str:
        return f'{self.resource.capitalize()} not found'


@attrs.frozen
class InvalidReservationState(BookingError):
    code: ClassVar[str] = 'invalid_reservation_state'
    status_code: ClassVar[int] = 409

    status: ReservationStatus
    reason: str

    @property
    def message(self) -> str:
        return self.reason


@attrs.frozen
class PaymentInvalid(BookingError):
    code: ClassVar[str] = 'payment_invalid'
    status_code: ClassVar[int] = 400

    reason: str

    @property
    def message(self) -> str:
        return self.reason


@attrs.frozen
class PaymentDeclined(BookingError):
    code: ClassVar[str] = 'payment_declined'
    status_code: ClassVar[int] = 402

    payment_id: str
    reason: str

    @property
    def message(self) -> str:
        return f'Payment declined: {self.reason}'


@attrs.frozen
class PaymentUnavailable(BookingError):
    """The payment could not be recorded or settled; nothing was confirmed."""

    code: ClassVar[str] = 'payment_unavailable'
    status_code: ClassVar[int] = 503

    reason: str

    @property
    def message(self) -> str:
        return f'Payment could not be processed: {self.reason}'
