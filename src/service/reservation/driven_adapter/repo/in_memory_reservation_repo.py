from collections import Counter
from typing import Optional
from uuid import UUID

import attrs

from src.platform.database.in_memory_store import InMemoryStore
from src.service.reservation.app.interface.i_reservation_repo import IReservationRepo
from src.service.reservation.domain.entity.reservation_entity import (
    Reservation,
    ReservationLineItem,
)
from src.service.shared_kernel.domain.enum import TIER_ORDER, TicketTier


class InMemoryReservationRepo(IReservationRepo):
    def __init__(self, *, store: InMemoryStore) -> None:
        self.store = store

    def _with_items(self, reservation: Reservation) -> Reservation:
        items = self.store.line_items.get(reservation.id, [])
        return attrs.evolve(reservation, line_items=list(items))

    async def create(self, *, reservation: Reservation) -> Reservation:
        async with self.store.lock:
            self.store.reservations[reservation.id] = attrs.evolve(reservation, line_items=[])
            return reservation

    async def create_line_items(self, *, line_items: list[ReservationLineItem]) -> None:
        async with self.store.lock:
            for item in line_items:
                self.store.line_items.setdefault(item.reservation_id, []).append(item)

    async def get_by_id(
        self, *, reservation_id: UUID, for_update: bool = False
    ) -> Optional[Reservation]:
        reservation = self.store.reservations.get(reservation_id)
        return self._with_items(reservation) if reservation else None

    async def save(self, *, reservation: Reservation) -> Reservation:
        async with self.store.lock:
            self.store.reservations[reservation.id] = attrs.evolve(reservation, line_items=[])
            return self._with_items(reservation)

    async def list_line_items(self, *, reservation_id: UUID) -> list[ReservationLineItem]:
        return list(self.store.line_items.get(reservation_id, []))

    async def list_by_client(self, *, client_id: int) -> list[Reservation]:
        owned = [r for r in self.store.reservations.values() if r.client_id == client_id]
        owned.sort(key=lambda r: r.created_at, reverse=True)
        return [self._with_items(r) for r in owned]

    async def sum_active_quantities(self, *, event_id: int) -> dict[TicketTier, int]:
        totals: Counter[TicketTier] = Counter()
        for reservation in self.store.reservations.values():
            if reservation.event_id != event_id or reservation.is_cancelled:
                continue
            for item in self.store.line_items.get(reservation.id, []):
                totals[item.tier] += item.quantity
        return {tier: totals[tier] for tier in TIER_ORDER}
