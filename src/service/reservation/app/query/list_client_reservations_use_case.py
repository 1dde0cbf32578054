from typing import Self

from dependency_injector.wiring import Provider, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import StorageError, TechnicalError
from src.platform.logging.loguru_io import Logger
from src.service.reservation.domain.entity.reservation_entity import Reservation


class ListClientReservationsUseCase:
    def __init__(self, *, uow_factory: UnitOfWorkFactory) -> None:
        self.uow_factory = uow_factory

    @classmethod
    @inject
    def depends(
        cls, uow_factory: UnitOfWorkFactory = Depends(Provider[Container.unit_of_work])
    ) -> Self:
        return cls(uow_factory=uow_factory)

    @Logger.io
    async def execute(self, *, client_id: int) -> list[Reservation]:
        try:
            async with self.uow_factory() as uow:
                return await uow.reservation_repo.list_by_client(client_id=client_id)
        except StorageError as e:
            raise TechnicalError() from e
