from enum import StrEnum


class ReservationStatus(StrEnum):
    PENDING_PAYMENT = 'pending_payment'
    CONFIRMED = 'confirmed'
    CANCELLED = 'cancelled'
