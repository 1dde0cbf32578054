from typing import Self
from uuid import UUID

from dependency_injector.wiring import Provide, Provider, inject
from fastapi import Depends
from returns.result import Failure, Result, Success

from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import StorageError, TechnicalError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.platform.state.keyed_lock import KeyedLock
from src.service.reservation.domain.entity.reservation_entity import Reservation
from src.service.shared_kernel.domain.booking_error import (
    BookingError,
    InvalidReservationState,
    LateCancellation,
    NotFound,
    Unauthorized,
)
from src.service.shared_kernel.domain.booking_policy import BookingPolicy, Clock, utc_now


class CancelReservationUseCase:
    """
    Cancel a reservation and hand its tickets back to the event.

    Allowed for the owner until the cancellation cutoff before the event starts.
    Status change and inventory release commit together; a reservation is
    released at most once because CANCELLED is terminal.
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        reservation_lock: KeyedLock,
        policy: BookingPolicy,
        clock: Clock = utc_now,
    ) -> None:
        self.uow_factory = uow_factory
        self.reservation_lock = reservation_lock
        self.policy = policy
        self.clock = clock

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provider[Container.unit_of_work]),
        reservation_lock: KeyedLock = Depends(Provide[Container.reservation_lock]),
        policy: BookingPolicy = Depends(Provide[Container.booking_policy]),
        clock: Clock = Depends(Provide[Container.clock]),
    ) -> Self:
        return cls(
            uow_factory=uow_factory,
            reservation_lock=reservation_lock,
            policy=policy,
            clock=clock,
        )

    @Logger.io
    async def execute(
        self, *, reservation_id: UUID, client_id: int
    ) -> Result[Reservation, BookingError]:
        async with self.reservation_lock.hold(reservation_id):
            try:
                outcome = await self._cancel(reservation_id=reservation_id, client_id=client_id)
            except StorageError as e:
                Logger.base.error(f'❌ [CANCEL] Storage failure for reservation {reservation_id}')
                raise TechnicalError() from e

        if isinstance(outcome, Failure):
            return outcome

        cancelled = outcome.unwrap()
        metrics.record_cancellation(event_id=cancelled.event_id, result='cancelled')
        Logger.base.info(
            f'↩️ [CANCEL] Reservation {cancelled.id} cancelled, '
            f'{cancelled.ticket_count} tickets released'
        )
        return Success(cancelled)

    async def _cancel(
        self, *, reservation_id: UUID, client_id: int
    ) -> Result[Reservation, BookingError]:
        now = self.clock()
        async with self.uow_factory() as uow:
            reservation = await uow.reservation_repo.get_by_id(
                reservation_id=reservation_id, for_update=True
            )
            if reservation is None:
                return Failure(NotFound(resource='reservation', identifier=str(reservation_id)))
            if reservation.client_id != client_id:
                return Failure(Unauthorized(reason='Only the reservation owner can cancel it'))
            if reservation.is_cancelled:
                metrics.record_cancellation(event_id=reservation.event_id, result='already_cancelled')
                return Failure(
                    InvalidReservationState(
                        status=reservation.status, reason='Reservation is already cancelled'
                    )
                )

            event = await uow.event_repo.get_by_id(event_id=reservation.event_id)
            if event is None:
                return Failure(
                    NotFound(resource='event', identifier=str(reservation.event_id))
                )
            if now > self.policy.cancellation_closes_at(event.starts_at):
                metrics.record_cancellation(event_id=event.id, result='late')
                return Failure(
                    LateCancellation(
                        starts_at=event.starts_at,
                        cutoff_hours=self.policy.cancellation_cutoff_hours,
                    )
                )

            # Release first; the status change then happens under the event row lock
            for item in reservation.line_items:
                inventory = await uow.event_repo.release(
                    event_id=reservation.event_id, tier=item.tier, quantity=item.quantity
                )
                metrics.record_tickets_released(
                    event_id=reservation.event_id,
                    tier=item.tier,
                    quantity=item.quantity,
                    remaining=inventory.remaining,
                )
            cancelled = await uow.reservation_repo.save(reservation=reservation.cancel(at=now))
            await uow.commit()
            return Success(cancelled)
