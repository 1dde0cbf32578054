from collections.abc import Awaitable, Callable, Hashable
from typing import Mapping, Optional

import attrs
from returns.result import Failure, Result, Success

from src.platform.database.in_memory_store import InMemoryStore
from src.platform.logging.loguru_io import Logger
from src.service.inventory.app.interface.i_event_repo import IEventRepo
from src.service.inventory.domain.entity.event_entity import Event
from src.service.inventory.domain.value_object.tier_inventory import TierInventory
from src.service.shared_kernel.domain.booking_error import InsufficientCapacity
from src.service.shared_kernel.domain.enum import TicketTier


class InMemoryEventRepo(IEventRepo):
    def __init__(
        self, *, store: InMemoryStore, lock_row: Callable[[Hashable], Awaitable[None]]
    ) -> None:
        self.store = store
        self.lock_row = lock_row

    @Logger.io
    async def create(self, *, event: Event) -> Event:
        async with self.store.lock:
            created = attrs.evolve(event, id=self.store.next_event_id())
            self.store.events[created.id] = created  # type: ignore[index]
            return created

    async def get_by_id(self, *, event_id: int, for_update: bool = False) -> Optional[Event]:
        if for_update:
            await self.lock_row(event_id)
        return self.store.events.get(event_id)

    async def list_events(self, *, active_only: bool = False) -> list[Event]:
        events = [e for e in self.store.events.values() if e.is_active or not active_only]
        return sorted(events, key=lambda e: e.starts_at)

    @Logger.io
    async def update_details(self, *, event: Event) -> Optional[Event]:
        await self.lock_row(event.id)
        async with self.store.lock:
            current = self.store.events[event.id]  # type: ignore[index]
            if any(event.tiers[t].capacity < current.tiers[t].sold for t in event.tiers):
                return None
            tiers = {
                tier: attrs.evolve(inventory, sold=current.tiers[tier].sold)
                for tier, inventory in event.tiers.items()
            }
            updated = attrs.evolve(event, tiers=tiers)
            self.store.events[event.id] = updated  # type: ignore[index]
            return updated

    @Logger.io
    async def try_reserve(
        self, *, event_id: int, tier: TicketTier, quantity: int
    ) -> Result[TierInventory, InsufficientCapacity]:
        await self.lock_row(event_id)
        async with self.store.lock:
            event = self.store.events.get(event_id)
            if event is None:
                return Failure(InsufficientCapacity(tier=tier, requested=quantity, available=0))
            result = event.reserved(tier, quantity)
            if isinstance(result, Success):
                self.store.events[event_id] = result.unwrap()
            return result.map(lambda updated: updated.tiers[tier])

    @Logger.io
    async def release(self, *, event_id: int, tier: TicketTier, quantity: int) -> TierInventory:
        await self.lock_row(event_id)
        async with self.store.lock:
            updated = self.store.events[event_id].released(tier, quantity)
            self.store.events[event_id] = updated
            return updated.tiers[tier]

    @Logger.io
    async def overwrite_sold(self, *, event_id: int, sold: Mapping[TicketTier, int]) -> Event:
        await self.lock_row(event_id)
        async with self.store.lock:
            updated = self.store.events[event_id].with_sold(sold)
            self.store.events[event_id] = updated
            return updated
