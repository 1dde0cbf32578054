from typing import Self

from dependency_injector.wiring import Provider, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import StorageError, TechnicalError
from src.platform.logging.loguru_io import Logger
from src.service.inventory.domain.entity.event_entity import Event


class ListEventsUseCase:
    def __init__(self, *, uow_factory: UnitOfWorkFactory) -> None:
        self.uow_factory = uow_factory

    @classmethod
    @inject
    def depends(
        cls, uow_factory: UnitOfWorkFactory = Depends(Provider[Container.unit_of_work])
    ) -> Self:
        return cls(uow_factory=uow_factory)

    @Logger.io
    async def execute(self, *, active_only: bool = True) -> list[Event]:
        try:
            async with self.uow_factory() as uow:
                events = await uow.event_repo.list_events(active_only=active_only)
        except StorageError as e:
            raise TechnicalError() from e

        Logger.base.info(f'📋 [LIST_EVENTS] Found {len(events)} events')
        return events
