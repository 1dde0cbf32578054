from typing import Mapping, Optional, Self

from dependency_injector.wiring import Provide, Provider, inject
from fastapi import Depends
from returns.result import Failure, Result, Success

from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork, UnitOfWorkFactory
from src.platform.exception.exceptions import StorageError, TechnicalError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.payment.app.command.process_payment_use_case import ProcessPaymentUseCase
from src.service.payment.domain.value_object.payer_details import PayerDetails
from src.service.reservation.app.dto.reservation_receipt import ReservationReceipt
from src.service.reservation.domain.entity.reservation_entity import Reservation
from src.service.shared_kernel.domain.booking_error import (
    BookingError,
    NotFound,
    PaymentUnavailable,
    ValidationError,
)
from src.service.shared_kernel.domain.booking_policy import BookingPolicy, Clock, utc_now
from src.service.shared_kernel.domain.enum import TIER_ORDER, TicketTier


class CreateReservationUseCase:
    """
    Reserve tiered tickets for a client.

    Flow:
    1. Validate quantities (and payer details when paying now) before touching inventory
    2. Check the event is bookable at this instant
    3. Reserve each tier with an atomic conditional update; on the first shortfall
       release what this request already took and report the shortfall
    4. Price line items from the event's current prices, persist, commit
    5. Optionally run the payment; a failed payment leaves the reservation pending

    Reservations are created PENDING_PAYMENT whether or not payment is
    requested; only a successful payment confirms them. Free reservations
    (total 0) start CONFIRMED.
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        process_payment: ProcessPaymentUseCase,
        policy: BookingPolicy,
        clock: Clock = utc_now,
    ) -> None:
        self.uow_factory = uow_factory
        self.process_payment = process_payment
        self.policy = policy
        self.clock = clock

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provider[Container.unit_of_work]),
        process_payment: ProcessPaymentUseCase = Depends(ProcessPaymentUseCase.depends),
        policy: BookingPolicy = Depends(Provide[Container.booking_policy]),
        clock: Clock = Depends(Provide[Container.clock]),
    ) -> Self:
        return cls(
            uow_factory=uow_factory, process_payment=process_payment, policy=policy, clock=clock
        )

    def _validate_request(
        self,
        quantities: dict[TicketTier, int],
        pay_immediately: bool,
        payer: Optional[PayerDetails],
    ) -> Optional[ValidationError]:
        if any(quantity < 0 for quantity in quantities.values()):
            return ValidationError(reason='Ticket quantities cannot be negative')
        total = sum(quantities.values())
        if total == 0:
            return ValidationError(reason='Select at least one ticket')
        if total > self.policy.max_tickets_per_reservation:
            return ValidationError(
                reason=f'At most {self.policy.max_tickets_per_reservation} tickets per reservation'
            )
        if pay_immediately and payer is None:
            return ValidationError(reason='Payment details are required to pay immediately')
        return None

    @Logger.io
    async def execute(
        self,
        *,
        client_id: int,
        event_id: int,
        quantities: Mapping[TicketTier, int],
        pay_immediately: bool = False,
        payer: Optional[PayerDetails] = None,
    ) -> Result[ReservationReceipt, BookingError]:
        requested = {TicketTier(tier): quantity for tier, quantity in quantities.items()}
        if error := self._validate_request(requested, pay_immediately, payer):
            metrics.record_reservation(event_id=event_id, result=error.code)
            return Failure(error)

        try:
            created = await self._reserve_and_persist(
                client_id=client_id, event_id=event_id, quantities=requested
            )
        except StorageError as e:
            Logger.base.error(
                f'❌ [RESERVATION] Could not create reservation for client {client_id} '
                f'on event {event_id}'
            )
            metrics.record_reservation(event_id=event_id, result='technical_error')
            raise TechnicalError() from e

        if isinstance(created, Failure):
            metrics.record_reservation(event_id=event_id, result=created.failure().code)
            return created

        reservation = created.unwrap()
        metrics.record_reservation(event_id=event_id, result='created')
        Logger.base.info(
            f'🎫 [RESERVATION] {reservation.id} created for client {client_id}: '
            f'{reservation.ticket_count} tickets, total {reservation.total}'
        )

        if not pay_immediately or payer is None or reservation.total == 0:
            return Success(ReservationReceipt(reservation=reservation))

        try:
            paid = await self.process_payment.execute(
                reservation_id=reservation.id, client_id=client_id, payer=payer
            )
        except TechnicalError:
            # The reservation is committed; hand it back so it can be paid or cancelled later
            Logger.base.error(
                f'❌ [RESERVATION] Payment for {reservation.id} failed technically, '
                f'reservation stays {reservation.status}'
            )
            return Success(
                ReservationReceipt(
                    reservation=reservation,
                    payment_error=PaymentUnavailable(reason='please retry the payment later'),
                )
            )
        if isinstance(paid, Failure):
            return Success(ReservationReceipt(reservation=reservation, payment_error=paid.failure()))
        return Success(ReservationReceipt(reservation=reservation.confirm(), payment=paid.unwrap()))

    async def _reserve_and_persist(
        self, *, client_id: int, event_id: int, quantities: dict[TicketTier, int]
    ) -> Result[Reservation, BookingError]:
        now = self.clock()
        async with self.uow_factory() as uow:
            event = await uow.event_repo.get_by_id(event_id=event_id)
            if event is None:
                return Failure(NotFound(resource='event', identifier=str(event_id)))
            if closed := event.booking_window_error(now=now, policy=self.policy):
                return Failure(closed)

            reserved: list[tuple[TicketTier, int]] = []
            for tier in TIER_ORDER:
                quantity = quantities.get(tier, 0)
                if quantity == 0:
                    continue
                outcome = await uow.event_repo.try_reserve(
                    event_id=event_id, tier=tier, quantity=quantity
                )
                if isinstance(outcome, Failure):
                    await self._release(uow, event_id=event_id, reserved=reserved)
                    return outcome
                reserved.append((tier, quantity))
                metrics.record_tickets_reserved(
                    event_id=event_id,
                    tier=tier,
                    quantity=quantity,
                    remaining=outcome.unwrap().remaining,
                )

            reservation = Reservation.create(
                client_id=client_id,
                event_id=event_id,
                quantities=quantities,
                prices=event.price_snapshot(),
                created_at=now,
            )
            await uow.reservation_repo.create(reservation=reservation)
            await uow.reservation_repo.create_line_items(line_items=reservation.line_items)
            await uow.commit()
            return Success(reservation)

    @staticmethod
    async def _release(
        uow: AbstractUnitOfWork, *, event_id: int, reserved: list[tuple[TicketTier, int]]
    ) -> None:
        # The SQL transaction rolls these back anyway; the in-memory store needs them
        for tier, quantity in reserved:
            await uow.event_repo.release(event_id=event_id, tier=tier, quantity=quantity)
