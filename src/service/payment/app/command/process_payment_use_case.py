from typing import Self
from uuid import UUID

import anyio
from dependency_injector.wiring import Provide, Provider, inject
from fastapi import Depends
from returns.result import Failure, Result, Success

from src.platform.config.core_setting import Settings
from src.platform.config.di import Container
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import StorageError, TechnicalError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.platform.state.keyed_lock import KeyedLock
from src.service.payment.app.interface.i_payment_gateway import (
    GatewayChargeResult,
    IPaymentGateway,
)
from src.service.payment.domain.entity.payment_entity import Payment
from src.service.payment.domain.value_object.payer_details import PayerDetails
from src.service.shared_kernel.domain.booking_error import (
    BookingError,
    InvalidReservationState,
    NotFound,
    PaymentDeclined,
    PaymentInvalid,
    Unauthorized,
)
from src.service.shared_kernel.domain.booking_policy import Clock, utc_now
from src.service.shared_kernel.domain.enum import ReservationStatus


class ProcessPaymentUseCase:
    """
    Charge a pending reservation and confirm it on success.

    Flow:
    1. Validate payer details (nothing is stored for malformed input)
    2. Record a PENDING payment for the reservation total
    3. Call the gateway once, bounded by a timeout
    4. Success: payment SUCCEEDED + reservation CONFIRMED in one transaction
       Decline / gateway error: payment FAILED, reservation stays PENDING_PAYMENT

    Runs under the reservation lock, so it never interleaves with a cancellation
    of the same reservation.
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        gateway: IPaymentGateway,
        reservation_lock: KeyedLock,
        clock: Clock = utc_now,
        timeout_seconds: float = 15.0,
    ) -> None:
        self.uow_factory = uow_factory
        self.gateway = gateway
        self.reservation_lock = reservation_lock
        self.clock = clock
        self.timeout_seconds = timeout_seconds

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: UnitOfWorkFactory = Depends(Provider[Container.unit_of_work]),
        gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
        reservation_lock: KeyedLock = Depends(Provide[Container.reservation_lock]),
        clock: Clock = Depends(Provide[Container.clock]),
        settings: Settings = Depends(Provide[Container.config_service]),
    ) -> Self:
        return cls(
            uow_factory=uow_factory,
            gateway=gateway,
            reservation_lock=reservation_lock,
            clock=clock,
            timeout_seconds=settings.PAYMENT_GATEWAY_TIMEOUT_SECONDS,
        )

    @Logger.io
    async def execute(
        self, *, reservation_id: UUID, client_id: int, payer: PayerDetails
    ) -> Result[Payment, BookingError]:
        if reason := payer.validation_error(today=self.clock().date()):
            metrics.record_payment(method=payer.method, result='invalid')
            return Failure(PaymentInvalid(reason=reason))

        async with self.reservation_lock.hold(reservation_id):
            try:
                opened = await self._open_payment(
                    reservation_id=reservation_id, client_id=client_id, payer=payer
                )
                if isinstance(opened, Failure):
                    return opened

                payment = opened.unwrap()
                charge = await self._charge(payment=payment, payer=payer)
                return await self._settle_with_retry(payment=payment, charge=charge)
            except StorageError as e:
                Logger.base.error(f'❌ [PAYMENT] Storage failure for reservation {reservation_id}')
                raise TechnicalError() from e

    async def _open_payment(
        self, *, reservation_id: UUID, client_id: int, payer: PayerDetails
    ) -> Result[Payment, BookingError]:
        async with self.uow_factory() as uow:
            reservation = await uow.reservation_repo.get_by_id(
                reservation_id=reservation_id, for_update=True
            )
            if reservation is None:
                return Failure(NotFound(resource='reservation', identifier=str(reservation_id)))
            if reservation.client_id != client_id:
                return Failure(Unauthorized(reason='Only the reservation owner can pay for it'))
            if reservation.total <= 0:
                return Failure(
                    InvalidReservationState(
                        status=reservation.status, reason='Nothing to pay for this reservation'
                    )
                )
            if reservation.status is not ReservationStatus.PENDING_PAYMENT:
                return Failure(
                    InvalidReservationState(
                        status=reservation.status,
                        reason=f'Reservation is {reservation.status}, not awaiting payment',
                    )
                )

            payment = await uow.payment_repo.create(
                payment=Payment(
                    reservation_id=reservation.id, amount=reservation.total, method=payer.method
                )
            )
            await uow.commit()
            return Success(payment)

    async def _charge(self, *, payment: Payment, payer: PayerDetails) -> GatewayChargeResult:
        started = anyio.current_time()
        try:
            with anyio.fail_after(self.timeout_seconds):
                return await self.gateway.charge(
                    amount=payment.amount,
                    payer_name=payer.payer_name.strip(),
                    payment_token=payer.charge_source,
                    description=f'Reservation {payment.reservation_id}',
                    idempotency_key=f'payment_{payment.id}',
                )
        except TimeoutError:
            Logger.base.error(
                f'⏱️ [PAYMENT] Gateway timed out after {self.timeout_seconds}s for payment '
                f'{payment.id}; check the gateway for idempotency key payment_{payment.id}'
            )
            return GatewayChargeResult(
                success=False, transaction_reference=None, message='Payment gateway timed out'
            )
        except Exception as e:
            # Any gateway failure is recorded as a failed attempt; the client may retry
            Logger.base.exception(f'💥 [PAYMENT] Gateway error for payment {payment.id}: {e}')
            return GatewayChargeResult(
                success=False, transaction_reference=None, message=f'Payment gateway error: {e}'
            )
        finally:
            metrics.payment_gateway_duration.labels(gateway=type(self.gateway).__name__).observe(
                anyio.current_time() - started
            )

    async def _settle_with_retry(
        self, *, payment: Payment, charge: GatewayChargeResult
    ) -> Result[Payment, BookingError]:
        """Record the gateway outcome, retrying once in a fresh unit of work."""
        try:
            return await self._settle(payment=payment, charge=charge)
        except StorageError as e:
            Logger.base.warning(
                f'🔁 [PAYMENT] Recording outcome of payment {payment.id} failed ({e}), retrying'
            )
        try:
            return await self._settle(payment=payment, charge=charge)
        except StorageError:
            Logger.base.error(
                f'🚨 [PAYMENT] Payment {payment.id} left PENDING, manual settlement required: '
                f'gateway success={charge.success}, reference={charge.transaction_reference}'
            )
            raise

    async def _settle(
        self, *, payment: Payment, charge: GatewayChargeResult
    ) -> Result[Payment, BookingError]:
        async with self.uow_factory() as uow:
            if not charge.success:
                failed = await uow.payment_repo.save(payment=payment.fail(message=charge.message))
                await uow.commit()
                metrics.record_payment(method=payment.method, result='failed')
                Logger.base.info(
                    f'🚫 [PAYMENT] Payment {failed.id} failed for reservation '
                    f'{payment.reservation_id}: {charge.message}'
                )
                return Failure(PaymentDeclined(payment_id=str(failed.id), reason=charge.message))

            succeeded = payment.succeed(
                transaction_reference=charge.transaction_reference or f'pay_{payment.id.hex[:16]}',
                message=charge.message,
            )
            await uow.payment_repo.save(payment=succeeded)

            reservation = await uow.reservation_repo.get_by_id(
                reservation_id=payment.reservation_id, for_update=True
            )
            if reservation is None or not reservation.can_transition_to(ReservationStatus.CONFIRMED):
                # Money was taken but the reservation moved on: keep the record for a refund
                await uow.commit()
                Logger.base.error(
                    f'⚠️ [PAYMENT] Payment {succeeded.id} succeeded but reservation '
                    f'{payment.reservation_id} cannot be confirmed; refund required'
                )
                return Failure(
                    InvalidReservationState(
                        status=reservation.status if reservation else ReservationStatus.CANCELLED,
                        reason='Reservation can no longer be confirmed',
                    )
                )

            await uow.reservation_repo.save(reservation=reservation.confirm())
            await uow.commit()

        metrics.record_payment(method=payment.method, result='succeeded')
        Logger.base.info(
            f'✅ [PAYMENT] Reservation {payment.reservation_id} confirmed by payment {succeeded.id}'
        )
        return Success(succeeded)
