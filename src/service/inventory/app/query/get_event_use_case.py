from typing import Self

from dependency_injector.wiring import Provider, inject
from fastapi import Depends
from returns.result import Failure, Result, Success

from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import StorageError, TechnicalError
from src.platform.logging.loguru_io import Logger
from src.service.inventory.domain.entity.event_entity import Event
from src.service.shared_kernel.domain.booking_error import BookingError, NotFound


class GetEventUseCase:
    def __init__(self, *, uow_factory: UnitOfWorkFactory) -> None:
        self.uow_factory = uow_factory

    @classmethod
    @inject
    def depends(
        cls, uow_factory: UnitOfWorkFactory = Depends(Provider[Container.unit_of_work])
    ) -> Self:
        return cls(uow_factory=uow_factory)

    @Logger.io
    async def execute(self, *, event_id: int) -> Result[Event, BookingError]:
        """Event with its current per-tier availability."""
        try:
            async with self.uow_factory() as uow:
                event = await uow.event_repo.get_by_id(event_id=event_id)
        except StorageError as e:
            raise TechnicalError() from e

        if event is None:
            Logger.base.warning(f'⚠️ [GET_EVENT] Event {event_id} not found')
            return Failure(NotFound(resource='event', identifier=str(event_id)))
        return Success(event)
