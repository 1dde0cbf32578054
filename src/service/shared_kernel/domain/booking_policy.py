from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Self

import attrs

from src.platform.config.core_setting import Settings


Clock = Callable[[], datetime]

_CENTS = Decimal('0.01')


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_money(value: Decimal | int | str) -> Decimal:
    return Decimal(value).quantize(_CENTS, rounding=ROUND_HALF_UP)


@attrs.frozen
class BookingPolicy:
    """Time windows and limits applied to reservations."""

    max_tickets_per_reservation: int = 10
    booking_cutoff: timedelta = timedelta(minutes=30)
    cancellation_cutoff: timedelta = timedelta(hours=24)

    @classmethod
    def from_settings(cls, settings: Settings) -> Self:
        return cls(
            max_tickets_per_reservation=settings.MAX_TICKETS_PER_RESERVATION,
            booking_cutoff=timedelta(minutes=settings.BOOKING_CUTOFF_MINUTES),
            cancellation_cutoff=timedelta(hours=settings.CANCELLATION_CUTOFF_HOURS),
        )

    def booking_closes_at(self, starts_at: datetime) -> datetime:
        return starts_at - self.booking_cutoff

    def cancellation_closes_at(self, starts_at: datetime) -> datetime:
        return starts_at - self.cancellation_cutoff

    @property
    def cancellation_cutoff_hours(self) -> int:
        return int(self.cancellation_cutoff.total_seconds() // 3600)
