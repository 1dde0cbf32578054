from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from src.service.reservation.domain.entity.reservation_entity import (
    Reservation,
    ReservationLineItem,
)
from src.service.shared_kernel.domain.enum import TicketTier


class IReservationRepo(ABC):
    @abstractmethod
    async def create(self, *, reservation: Reservation) -> Reservation:
        """Insert the reservation header (line items are stored by create_line_items)"""
        pass

    @abstractmethod
    async def create_line_items(self, *, line_items: list[ReservationLineItem]) -> None:
        pass

    @abstractmethod
    async def get_by_id(
        self, *, reservation_id: UUID, for_update: bool = False
    ) -> Optional[Reservation]:
        """
        Load a reservation with its line items.

        Args:
            for_update: lock the row until the surrounding transaction ends
        """
        pass

    @abstractmethod
    async def save(self, *, reservation: Reservation) -> Reservation:
        """Persist status and cancellation timestamp"""
        pass

    @abstractmethod
    async def list_line_items(self, *, reservation_id: UUID) -> list[ReservationLineItem]:
        pass

    @abstractmethod
    async def list_by_client(self, *, client_id: int) -> list[Reservation]:
        """Newest first"""
        pass

    @abstractmethod
    async def sum_active_quantities(self, *, event_id: int) -> dict[TicketTier, int]:
        """Tickets held per tier by the event's non-cancelled reservations"""
        pass
