from typing import Optional

import attrs

from src.service.payment.domain.entity.payment_entity import Payment
from src.service.reservation.domain.entity.reservation_entity import Reservation
from src.service.shared_kernel.domain.booking_error import BookingError


@attrs.frozen
class ReservationReceipt:
    """
    Outcome of a successful create.

    When payment was requested up front, exactly one of ``payment`` (it went
    through) or ``payment_error`` (it did not; the reservation stays pending)
    is set.
    """

    reservation: Reservation
    payment: Optional[Payment] = None
    payment_error: Optional[BookingError] = None


@attrs.frozen
class ReservationDetails:
    reservation: Reservation
    payments: list[Payment] = attrs.field(factory=list)
