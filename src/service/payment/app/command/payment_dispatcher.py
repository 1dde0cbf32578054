from typing import Callable, Optional, Self
from uuid import UUID

import anyio
from anyio.abc import TaskGroup
from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace
from returns.result import Result

from src.platform.config.di import Container
from src.platform.exception.exceptions import TechnicalError
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import capture_trace_context, restore_trace_context
from src.service.payment.app.command.process_payment_use_case import ProcessPaymentUseCase
from src.service.payment.domain.entity.payment_entity import Payment
from src.service.payment.domain.value_object.payer_details import PayerDetails
from src.service.shared_kernel.domain.booking_error import BookingError


PaymentResult = Result[Payment, BookingError]
tracer = trace.get_tracer(__name__)


class PendingPayment:
    """Handle on a payment running in the background."""

    def __init__(self, *, reservation_id: UUID) -> None:
        self.reservation_id = reservation_id
        self._done = anyio.Event()
        self._result: Optional[PaymentResult] = None
        self._error: Optional[Exception] = None
        self._callbacks: list[Callable[['PendingPayment'], None]] = []

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def add_done_callback(self, callback: Callable[['PendingPayment'], None]) -> None:
        if self.done:
            callback(self)
        else:
            self._callbacks.append(callback)

    async def result(self) -> PaymentResult:
        """Wait for completion; re-raises a technical failure of the payment run."""
        await self._done.wait()
        if self._error is not None:
            raise self._error
        assert self._result is not None
        return self._result

    def _complete(
        self, *, result: Optional[PaymentResult] = None, error: Optional[Exception] = None
    ) -> None:
        self._result, self._error = result, error
        self._done.set()
        for callback in self._callbacks:
            try:
                callback(self)
            except Exception as e:
                Logger.base.exception(f'💥 [PAYMENT] Done-callback failed: {e}')
        self._callbacks.clear()


class PaymentDispatcher:
    """
    Run ProcessPaymentUseCase in the application task group.

    A dispatched payment cannot be cancelled: it is shielded from task group
    cancellation so shutdown waits for the gateway call to settle.
    """

    def __init__(
        self, *, process_payment: ProcessPaymentUseCase, task_group: Optional[TaskGroup]
    ) -> None:
        self.process_payment = process_payment
        self.task_group = task_group

    @classmethod
    @inject
    def depends(
        cls,
        process_payment: ProcessPaymentUseCase = Depends(ProcessPaymentUseCase.depends),
        task_group: Optional[TaskGroup] = Depends(Provide[Container.task_group]),
    ) -> Self:
        return cls(process_payment=process_payment, task_group=task_group)

    @Logger.io
    def dispatch(
        self, *, reservation_id: UUID, client_id: int, payer: PayerDetails
    ) -> PendingPayment:
        if self.task_group is None:
            raise TechnicalError('Background payments are not available')

        pending = PendingPayment(reservation_id=reservation_id)
        self.task_group.start_soon(
            self._run,
            pending,
            client_id,
            payer,
            capture_trace_context(),
            name=f'payment:{reservation_id}',
        )
        Logger.base.info(f'📤 [PAYMENT] Dispatched background payment for {reservation_id}')
        return pending

    async def _run(
        self,
        pending: PendingPayment,
        client_id: int,
        payer: PayerDetails,
        trace_carrier: dict[str, str],
    ) -> None:
        with (
            anyio.CancelScope(shield=True),
            tracer.start_as_current_span(
                'payment.background', context=restore_trace_context(carrier=trace_carrier)
            ),
        ):
            try:
                result = await self.process_payment.execute(
                    reservation_id=pending.reservation_id, client_id=client_id, payer=payer
                )
            except Exception as e:
                # Kept on the handle; letting it escape would cancel the whole task group
                pending._complete(error=e)
                return
            pending._complete(result=result)
