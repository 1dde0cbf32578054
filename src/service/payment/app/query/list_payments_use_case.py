from typing import Self
from uuid import UUID

from dependency_injector.wiring import Provider, inject
from fastapi import Depends
from returns.result import Failure, Result, Success

from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import StorageError, TechnicalError
from src.platform.logging.loguru_io import Logger
from src.service.payment.domain.entity.payment_entity import Payment
from src.service.shared_kernel.domain.booking_error import BookingError, NotFound, Unauthorized


class ListPaymentsUseCase:
    """Payment history of one reservation, visible to its owner only."""

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
        self, *, reservation_id: UUID, client_id: int
    ) -> Result[list[Payment], BookingError]:
        try:
            async with self.uow_factory() as uow:
                reservation = await uow.reservation_repo.get_by_id(reservation_id=reservation_id)
                if reservation is None:
                    return Failure(NotFound(resource='reservation', identifier=str(reservation_id)))
                if reservation.client_id != client_id:
                    return Failure(Unauthorized(reason='Only the reservation owner can view its payments'))
                return Success(
                    await uow.payment_repo.list_by_reservation(reservation_id=reservation_id)
                )
        except StorageError as e:
            raise TechnicalError() from e
