from decimal import Decimal

import pytest

from src.service.reservation.domain.entity.reservation_entity import (
    InvalidTransition,
    Reservation,
    ReservationLineItem,
)
from src.service.shared_kernel.domain.enum import ReservationStatus, TicketTier


pytestmark = pytest.mark.unit

PRICES = {
    TicketTier.STANDARD: Decimal('10.00'),
    TicketTier.VIP: Decimal('25.00'),
    TicketTier.PREMIUM: Decimal('80.00'),
}


@pytest.fixture
def reservation(now) -> Reservation:
    return Reservation.create(
        client_id=42,
        event_id=1,
        quantities={TicketTier.STANDARD: 2, TicketTier.VIP: 1},
        prices=PRICES,
        created_at=now,
    )


class TestReservationCreate:
    def test_total_is_sum_of_line_items(self, reservation):
        """
        Given: 2 standard at 10.00 and 1 vip at 25.00
        When: creating the reservation
        Then: total is 45.00 and it awaits payment
        """
        assert reservation.total == Decimal('45.00')
        assert reservation.status is ReservationStatus.PENDING_PAYMENT
        assert reservation.ticket_count == 3

    def test_one_line_item_per_purchased_tier(self, reservation):
        assert [(item.tier, item.quantity) for item in reservation.line_items] == [
            (TicketTier.STANDARD, 2),
            (TicketTier.VIP, 1),
        ]
        assert all(item.reservation_id == reservation.id for item in reservation.line_items)

    def test_zero_quantity_tiers_are_skipped(self, now):
        reservation = Reservation.create(
            client_id=42,
            event_id=1,
            quantities={TicketTier.STANDARD: 0, TicketTier.PREMIUM: 1},
            prices=PRICES,
            created_at=now,
        )

        assert [item.tier for item in reservation.line_items] == [TicketTier.PREMIUM]

    def test_free_reservation_starts_confirmed(self, now):
        reservation = Reservation.create(
            client_id=42,
            event_id=1,
            quantities={TicketTier.STANDARD: 2},
            prices={**PRICES, TicketTier.STANDARD: Decimal('0')},
            created_at=now,
        )

        assert reservation.total == Decimal('0.00')
        assert reservation.status is ReservationStatus.CONFIRMED

    def test_line_item_quantity_must_be_positive(self, reservation):
        with pytest.raises(ValueError):
            ReservationLineItem(
                reservation_id=reservation.id,
                tier=TicketTier.VIP,
                quantity=0,
                unit_price=Decimal('1'),
            )


class TestReservationTransitions:
    def test_confirm(self, reservation):
        assert reservation.confirm().status is ReservationStatus.CONFIRMED

    def test_cancel_records_time(self, reservation, now):
        cancelled = reservation.cancel(at=now)

        assert cancelled.status is ReservationStatus.CANCELLED
        assert cancelled.cancelled_at == now
        assert reservation.status is ReservationStatus.PENDING_PAYMENT

    def test_confirmed_can_be_cancelled(self, reservation, now):
        assert reservation.confirm().cancel(at=now).is_cancelled

    def test_cancelled_is_terminal(self, reservation, now):
        cancelled = reservation.cancel(at=now)

        for target in ReservationStatus:
            assert not cancelled.can_transition_to(target)
        with pytest.raises(InvalidTransition):
            cancelled.cancel(at=now)
        with pytest.raises(InvalidTransition):
            cancelled.confirm()

    def test_pending_cannot_be_confirmed_twice(self, reservation):
        with pytest.raises(InvalidTransition):
            reservation.confirm().confirm()
