"""
Process-local data store backing the in-memory repositories.

Used when DATABASE_BACKEND=memory (local runs, demos) and by lifecycle tests.
All mutations of shared rows happen while holding ``lock``. ``row_locks``
stands in for PostgreSQL event row locks: a unit of work that writes or locks
an event row keeps it until the unit of work ends.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

import anyio

from src.platform.state.keyed_lock import KeyedLock


if TYPE_CHECKING:
    from src.service.inventory.domain.entity.event_entity import Event
    from src.service.payment.domain.entity.payment_entity import Payment
    from src.service.reservation.domain.entity.reservation_entity import (
        Reservation,
        ReservationLineItem,
    )


class InMemoryStore:
    def __init__(self) -> None:
        self.lock = anyio.Lock()
        self.row_locks = KeyedLock(name='event_row')
        self.events: dict[int, Event] = {}
        self.reservations: dict[UUID, Reservation] = {}
        self.line_items: dict[UUID, list[ReservationLineItem]] = {}
        self.payments: dict[UUID, Payment] = {}
        self._next_event_id = 1

    def next_event_id(self) -> int:
        event_id = self._next_event_id
        self._next_event_id += 1
        return event_id

