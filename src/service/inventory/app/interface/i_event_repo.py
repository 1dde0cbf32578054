from abc import ABC, abstractmethod
from typing import Mapping, Optional

from returns.result import Result

from src.service.inventory.domain.entity.event_entity import Event
from src.service.inventory.domain.value_object.tier_inventory import TierInventory
from src.service.shared_kernel.domain.booking_error import InsufficientCapacity
from src.service.shared_kernel.domain.enum import TicketTier


class IEventRepo(ABC):
    @abstractmethod
    async def create(self, *, event: Event) -> Event:
        """Insert a new event; the returned copy carries its id"""
        pass

    @abstractmethod
    async def get_by_id(self, *, event_id: int, for_update: bool = False) -> Optional[Event]:
        """
        Args:
            for_update: lock the event row until the surrounding unit of work
                ends; writers of its sold counters wait for it
        """
        pass

    @abstractmethod
    async def list_events(self, *, active_only: bool = False) -> list[Event]:
        """Events ordered by start time"""
        pass

    @abstractmethod
    async def update_details(self, *, event: Event) -> Optional[Event]:
        """
        Persist the editable fields (title, venue, schedule, prices, capacities,
        active flag, attributes). Sold counters are never written here.

        Returns None when a new capacity would fall below the sold count stored
        at write time.
        """
        pass

    @abstractmethod
    async def try_reserve(
        self, *, event_id: int, tier: TicketTier, quantity: int
    ) -> Result[TierInventory, InsufficientCapacity]:
        """
        Atomically add ``quantity`` to the tier's sold counter if it still fits.

        On failure nothing changes and the error reports what was available.
        """
        pass

    @abstractmethod
    async def release(self, *, event_id: int, tier: TicketTier, quantity: int) -> TierInventory:
        """Atomically subtract ``quantity`` from the tier's sold counter, floored at zero"""
        pass

    @abstractmethod
    async def overwrite_sold(self, *, event_id: int, sold: Mapping[TicketTier, int]) -> Event:
        """Replace sold counters with recomputed values (reconciliation only)"""
        pass
