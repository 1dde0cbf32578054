from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID

import attrs
from uuid_utils.compat import uuid7

from src.service.shared_kernel.domain.booking_policy import to_money
from src.service.shared_kernel.domain.enum import TIER_ORDER, ReservationStatus, TicketTier


_ALLOWED_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING_PAYMENT: frozenset(
        {ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED}
    ),
    ReservationStatus.CONFIRMED: frozenset(
        {ReservationStatus.PENDING_PAYMENT, ReservationStatus.CANCELLED}
    ),
    ReservationStatus.CANCELLED: frozenset(),
}


class InvalidTransition(Exception):
    def __init__(self, current: ReservationStatus, target: ReservationStatus) -> None:
        self.current = current
        self.target = target
        super().__init__(f'Reservation cannot move from {current} to {target}')


def _positive(instance: object, attribute: 'attrs.Attribute[int]', value: int) -> None:
    if value <= 0:
        raise ValueError(f'{attribute.name} must be > 0, got {value}')


@attrs.frozen
class ReservationLineItem:
    reservation_id: UUID
    tier: TicketTier = attrs.field(converter=TicketTier)
    quantity: int = attrs.field(validator=_positive)
    unit_price: Decimal = attrs.field(converter=to_money)

    @property
    def subtotal(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)


@attrs.define
class Reservation:
    client_id: int
    event_id: int
    total: Decimal = attrs.field(converter=to_money)
    status: ReservationStatus = ReservationStatus.PENDING_PAYMENT
    line_items: list[ReservationLineItem] = attrs.field(factory=list)
    id: UUID = attrs.field(factory=uuid7)
    created_at: datetime = attrs.field(factory=lambda: datetime.now(timezone.utc))
    cancelled_at: Optional[datetime] = None

    @classmethod
    def create(
        cls,
        *,
        client_id: int,
        event_id: int,
        quantities: dict[TicketTier, int],
        prices: dict[TicketTier, Decimal],
        created_at: datetime,
    ) -> 'Reservation':
        """
        New reservation with one line item per tier actually purchased, priced
        from the event's snapshot. Free reservations need no payment and start
        confirmed.
        """
        reservation_id = uuid7()
        line_items = build_line_items(
            reservation_id=reservation_id, quantities=quantities, prices=prices
        )
        total = total_of(line_items)
        return cls(
            id=reservation_id,
            client_id=client_id,
            event_id=event_id,
            total=total,
            status=(
                ReservationStatus.CONFIRMED if total == 0 else ReservationStatus.PENDING_PAYMENT
            ),
            line_items=line_items,
            created_at=created_at,
        )

    @property
    def ticket_count(self) -> int:
        return sum(item.quantity for item in self.line_items)

    @property
    def is_cancelled(self) -> bool:
        return self.status is ReservationStatus.CANCELLED

    def can_transition_to(self, target: ReservationStatus) -> bool:
        return target in _ALLOWED_TRANSITIONS[self.status]

    def _transition(self, target: ReservationStatus, **changes: object) -> 'Reservation':
        if not self.can_transition_to(target):
            raise InvalidTransition(self.status, target)
        return attrs.evolve(self, status=target, **changes)

    def confirm(self) -> 'Reservation':
        return self._transition(ReservationStatus.CONFIRMED)

    def cancel(self, *, at: datetime) -> 'Reservation':
        return self._transition(ReservationStatus.CANCELLED, cancelled_at=at)


def build_line_items(
    *,
    reservation_id: UUID,
    quantities: dict[TicketTier, int],
    prices: dict[TicketTier, Decimal],
) -> list[ReservationLineItem]:
    return [
        ReservationLineItem(
            reservation_id=reservation_id,
            tier=tier,
            quantity=quantities[tier],
            unit_price=prices[tier],
        )
        for tier in TIER_ORDER
        if quantities.get(tier, 0) > 0
    ]


def total_of(line_items: list[ReservationLineItem]) -> Decimal:
    return to_money(sum((item.subtotal for item in line_items), Decimal('0')))
