from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional, Self

from dependency_injector.wiring import Provider, inject
from fastapi import Depends
from returns.result import Failure, Result, Success

from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import StorageError, TechnicalError
from src.platform.logging.loguru_io import Logger
from src.service.inventory.domain.entity.event_entity import Event
from src.service.shared_kernel.domain.booking_error import (
    BookingError,
    NotFound,
    Unauthorized,
    ValidationError,
)
from src.service.shared_kernel.domain.enum import TicketTier


class UpdateEventUseCase:
    """
    Organizer edit of an event.

    Sold counters are never touched here; a capacity cut below what is
    already sold is rejected, including when a concurrent reservation sells
    tickets between the read and the write.
    """

    def __init__(self, *, uow_factory: UnitOfWorkFactory) -> None:
        self.uow_factory = uow_factory

    @classmethod
    @inject
    def depends(
        cls, uow_factory: UnitOfWorkFactory = Depends(Provider[Container.unit_of_work])
    ) -> Self:
        return cls(uow_factory=uow_factory)

    @Logger.io
    async def execute(
        self,
        *,
        event_id: int,
        organizer_id: int,
        title: Optional[str] = None,
        venue: Optional[str] = None,
        description: Optional[str] = None,
        starts_at: Optional[datetime] = None,
        is_active: Optional[bool] = None,
        attributes: Optional[Mapping[str, Any]] = None,
        capacities: Optional[Mapping[TicketTier, int]] = None,
        prices: Optional[Mapping[TicketTier, Decimal]] = None,
    ) -> Result[Event, BookingError]:
        try:
            async with self.uow_factory() as uow:
                event = await uow.event_repo.get_by_id(event_id=event_id)
                if event is None:
                    return Failure(NotFound(resource='event', identifier=str(event_id)))
                if event.organizer_id != organizer_id:
                    return Failure(Unauthorized(reason='Only the organizer can edit this event'))

                try:
                    changed = event.with_changes(
                        title=title,
                        venue=venue,
                        description=description,
                        starts_at=starts_at,
                        is_active=is_active,
                        attributes=attributes,
                        capacities=capacities,
                        prices=prices,
                    )
                except ValueError as e:
                    return Failure(ValidationError(reason=str(e)))

                updated = await uow.event_repo.update_details(event=changed)
                if updated is None:
                    return Failure(
                        ValidationError(reason='Capacity cannot go below tickets already sold')
                    )
                await uow.commit()
        except StorageError as e:
            raise TechnicalError() from e

        Logger.base.info(f'✏️ [UPDATE_EVENT] Event {event_id} updated by organizer {organizer_id}')
        return Success(updated)
