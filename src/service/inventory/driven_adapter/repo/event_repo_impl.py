"""
Event Repository Implementation (SQLAlchemy)

Sold counters move only through single conditional UPDATE statements, so two
concurrent reservations can never both pass a stale availability check:

    UPDATE event SET vip_sold = vip_sold + :q
    WHERE id = :id AND vip_sold + :q <= vip_capacity

PostgreSQL holds the row lock until the surrounding transaction ends.
"""

from datetime import datetime, timezone
from typing import Mapping, Optional

from returns.result import Failure, Result, Success
from sqlalchemy import ColumnElement, and_, case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.database.orm_db_setting import as_utc, storage_errors
from src.platform.exception.exceptions import StorageError
from src.platform.logging.loguru_io import Logger
from src.service.inventory.app.interface.i_event_repo import IEventRepo
from src.service.inventory.domain.entity.event_entity import Event
from src.service.inventory.domain.value_object.tier_inventory import TierInventory
from src.service.inventory.driven_adapter.model.event_model import EventModel
from src.service.shared_kernel.domain.booking_error import InsufficientCapacity
from src.service.shared_kernel.domain.enum import TIER_ORDER, EventCategory, TicketTier


def _capacity(tier: TicketTier) -> ColumnElement[int]:
    return getattr(EventModel, f'{tier}_capacity')


def _sold(tier: TicketTier) -> ColumnElement[int]:
    return getattr(EventModel, f'{tier}_sold')


class EventRepoImpl(IEventRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _to_entity(model: EventModel) -> Event:
        return Event(
            id=model.id,
            organizer_id=model.organizer_id,
            title=model.title,
            venue=model.venue,
            description=model.description,
            category=EventCategory(model.category),
            attributes=dict(model.attributes or {}),
            starts_at=as_utc(model.starts_at),
            is_active=model.is_active,
            tiers={tier: EventRepoImpl._tier_of(model, tier) for tier in TIER_ORDER},
            created_at=as_utc(model.created_at) if model.created_at else None,
            updated_at=as_utc(model.updated_at) if model.updated_at else None,
        )

    @staticmethod
    def _tier_of(model: EventModel, tier: TicketTier) -> TierInventory:
        return TierInventory(
            capacity=getattr(model, f'{tier}_capacity'),
            sold=getattr(model, f'{tier}_sold'),
            unit_price=getattr(model, f'{tier}_price'),
        )

    @staticmethod
    def _editable_columns(event: Event) -> dict[str, object]:
        columns: dict[str, object] = {
            'title': event.title,
            'venue': event.venue,
            'description': event.description,
            'attributes': event.attributes,
            'starts_at': event.starts_at,
            'is_active': event.is_active,
        }
        for tier, inventory in event.tiers.items():
            columns[f'{tier}_capacity'] = inventory.capacity
            columns[f'{tier}_price'] = inventory.unit_price
        return columns

    async def _load(self, event_id: int, *, for_update: bool = False) -> Optional[EventModel]:
        stmt = (
            select(EventModel)
            .where(EventModel.id == event_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        return (await self.session.execute(stmt)).scalar_one_or_none()

    @Logger.io
    async def create(self, *, event: Event) -> Event:
        with storage_errors('creating event'):
            model = EventModel(
                organizer_id=event.organizer_id,
                category=event.category.value,
                created_at=event.created_at or datetime.now(timezone.utc),
                updated_at=event.updated_at or datetime.now(timezone.utc),
                **{
                    **self._editable_columns(event),
                    **{f'{tier}_sold': inv.sold for tier, inv in event.tiers.items()},
                },
            )
            self.session.add(model)
            await self.session.flush()
            return self._to_entity(model)

    @Logger.io
    async def get_by_id(self, *, event_id: int, for_update: bool = False) -> Optional[Event]:
        with storage_errors('loading event'):
            model = await self._load(event_id, for_update=for_update)
            return self._to_entity(model) if model else None

    @Logger.io
    async def list_events(self, *, active_only: bool = False) -> list[Event]:
        with storage_errors('listing events'):
            stmt = select(EventModel).order_by(EventModel.starts_at, EventModel.id)
            if active_only:
                stmt = stmt.where(EventModel.is_active.is_(True))
            result = await self.session.execute(stmt)
            return [self._to_entity(model) for model in result.scalars().all()]

    @Logger.io
    async def update_details(self, *, event: Event) -> Optional[Event]:
        with storage_errors('updating event'):
            # New capacities must still hold what was sold at write time
            capacity_holds = and_(
                *(_sold(tier) <= event.tiers[tier].capacity for tier in TIER_ORDER)
            )
            result = await self.session.execute(
                update(EventModel)
                .where(EventModel.id == event.id, capacity_holds)
                .values(**self._editable_columns(event))
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:  # type: ignore[attr-defined]
                return None
            model = await self._load(event.id)  # type: ignore[arg-type]
            return self._to_entity(model) if model else None

    @Logger.io
    async def try_reserve(
        self, *, event_id: int, tier: TicketTier, quantity: int
    ) -> Result[TierInventory, InsufficientCapacity]:
        sold, capacity = _sold(tier), _capacity(tier)
        with storage_errors(f'reserving {tier} tickets'):
            result = await self.session.execute(
                update(EventModel)
                .where(EventModel.id == event_id, sold + quantity <= capacity)
                .values(**{f'{tier}_sold': sold + quantity})
                .execution_options(synchronize_session=False)
            )
            model = await self._load(event_id)

        if result.rowcount == 1 and model is not None:  # type: ignore[attr-defined]
            return Success(self._tier_of(model, tier))

        available = self._tier_of(model, tier).remaining if model else 0
        Logger.base.info(
            f'🚫 [INVENTORY] event={event_id} {tier}: requested {quantity}, available {available}'
        )
        return Failure(InsufficientCapacity(tier=tier, requested=quantity, available=available))

    @Logger.io
    async def release(self, *, event_id: int, tier: TicketTier, quantity: int) -> TierInventory:
        sold = _sold(tier)
        with storage_errors(f'releasing {tier} tickets'):
            await self.session.execute(
                update(EventModel)
                .where(EventModel.id == event_id)
                .values(**{f'{tier}_sold': case((sold - quantity < 0, 0), else_=sold - quantity)})
                .execution_options(synchronize_session=False)
            )
            model = await self._load(event_id)
        if model is None:
            raise StorageError(f'Event {event_id} disappeared while releasing inventory')
        return self._tier_of(model, tier)

    @Logger.io
    async def overwrite_sold(self, *, event_id: int, sold: Mapping[TicketTier, int]) -> Event:
        with storage_errors('reconciling inventory'):
            await self.session.execute(
                update(EventModel)
                .where(EventModel.id == event_id)
                .values(
                    **{
                        f'{tier}_sold': case(
                            (_capacity(tier) < sold.get(tier, 0), _capacity(tier)),
                            else_=max(0, sold.get(tier, 0)),
                        )
                        for tier in TIER_ORDER
                    }
                )
                .execution_options(synchronize_session=False)
            )
            model = await self._load(event_id)
        if model is None:
            raise StorageError(f'Event {event_id} disappeared while reconciling inventory')
        return self._to_entity(model)
