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
from src.service.shared_kernel.domain.booking_error import BookingError, ValidationError
from src.service.shared_kernel.domain.enum import EventCategory, TicketTier


class CreateEventUseCase:
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
        organizer_id: int,
        title: str,
        venue: str,
        category: EventCategory,
        starts_at: datetime,
        tiers: Mapping[TicketTier, tuple[int, Decimal]],
        description: str = '',
        attributes: Optional[Mapping[str, Any]] = None,
    ) -> Result[Event, BookingError]:
        try:
            event = Event.create(
                organizer_id=organizer_id,
                title=title,
                venue=venue,
                category=category,
                starts_at=starts_at,
                tiers=tiers,
                description=description,
                attributes=attributes,
            )
        except ValueError as e:
            return Failure(ValidationError(reason=str(e)))

        try:
            async with self.uow_factory() as uow:
                created = await uow.event_repo.create(event=event)
                await uow.commit()
        except StorageError as e:
            raise TechnicalError() from e

        Logger.base.info(
            f'🎪 [CREATE_EVENT] Event {created.id} "{created.title}" created by organizer {organizer_id}'
        )
        return Success(created)
