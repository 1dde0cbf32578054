from typing import Self

from dependency_injector.wiring import Provider, inject
from fastapi import Depends
from returns.result import Failure, Result, Success

from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import StorageError, TechnicalError
from src.platform.logging.loguru_io import Logger
from src.service.inventory.domain.entity.event_entity import Event
from src.service.shared_kernel.domain.booking_error import BookingError, NotFound, Unauthorized


class ReconcileEventInventoryUseCase:
    """
    Recompute each tier's sold counter from the event's non-cancelled reservations.

    Repairs drift left by interrupted operations. The event row stays locked
    from the sum to the overwrite, so reservations being created or cancelled
    meanwhile wait and are counted exactly once. Recomputed totals above
    capacity are clamped and logged; that state needs manual review.
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
    async def execute(self, *, event_id: int, organizer_id: int) -> Result[Event, BookingError]:
        """Organizer-triggered repair of one event."""
        try:
            async with self.uow_factory() as uow:
                event = await uow.event_repo.get_by_id(event_id=event_id)
        except StorageError as e:
            raise TechnicalError() from e
        if event is None:
            return Failure(NotFound(resource='event', identifier=str(event_id)))
        if event.organizer_id != organizer_id:
            return Failure(Unauthorized(reason='Only the organizer can reconcile this event'))
        return await self._reconcile(event_id=event_id)

    @Logger.io
    async def execute_all(self) -> list[Event]:
        """Reconcile every event (startup repair)."""
        try:
            async with self.uow_factory() as uow:
                event_ids = [event.id for event in await uow.event_repo.list_events()]
        except StorageError as e:
            raise TechnicalError() from e

        reconciled = []
        for event_id in event_ids:
            result = await self._reconcile(event_id=event_id)  # type: ignore[arg-type]
            if isinstance(result, Success):
                reconciled.append(result.unwrap())
        Logger.base.info(f'✅ [RECONCILE] Reconciled {len(reconciled)} events')
        return reconciled

    async def _reconcile(self, *, event_id: int) -> Result[Event, BookingError]:
        try:
            async with self.uow_factory() as uow:
                event = await uow.event_repo.get_by_id(event_id=event_id, for_update=True)
                if event is None:
                    return Failure(NotFound(resource='event', identifier=str(event_id)))

                held = await uow.reservation_repo.sum_active_quantities(event_id=event_id)
                for tier, quantity in held.items():
                    if event.tiers[tier].sold != quantity:
                        Logger.base.warning(
                            f'🔧 [RECONCILE] Event {event_id} {tier}: '
                            f'sold {event.tiers[tier].sold} -> {quantity}'
                        )
                    if quantity > event.tiers[tier].capacity:
                        Logger.base.error(
                            f'⚠️ [RECONCILE] Event {event_id} {tier} is oversold: '
                            f'{quantity} held, capacity {event.tiers[tier].capacity}'
                        )

                reconciled = await uow.event_repo.overwrite_sold(event_id=event_id, sold=held)
                await uow.commit()
        except StorageError as e:
            raise TechnicalError() from e
        return Success(reconciled)
