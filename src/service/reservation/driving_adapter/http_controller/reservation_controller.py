from typing import List, Union
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.service.payment.app.command.payment_dispatcher import PaymentDispatcher
from src.service.payment.app.command.process_payment_use_case import ProcessPaymentUseCase
from src.service.payment.app.query.list_payments_use_case import ListPaymentsUseCase
from src.service.reservation.app.command.cancel_reservation_use_case import (
    CancelReservationUseCase,
)
from src.service.reservation.app.command.create_reservation_use_case import (
    CreateReservationUseCase,
)
from src.service.reservation.app.query.get_reservation_details_use_case import (
    GetReservationDetailsUseCase,
)
from src.service.reservation.app.query.list_client_reservations_use_case import (
    ListClientReservationsUseCase,
)
from src.service.reservation.driving_adapter.http_controller.schema.reservation_schema import (
    PaymentAcceptedResponse,
    PaymentErrorResponse,
    PaymentRequest,
    PaymentResponse,
    ReservationCreateRequest,
    ReservationCreateResponse,
    ReservationDetailResponse,
    ReservationResponse,
)
from src.service.shared_kernel.driving_adapter.http_controller.client_identity import (
    get_client_id,
)
from src.service.shared_kernel.driving_adapter.http_controller.result_unwrap import (
    unwrap_or_reject,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
async def create_reservation(
    request: ReservationCreateRequest,
    client_id: int = Depends(get_client_id),
    use_case: CreateReservationUseCase = Depends(CreateReservationUseCase.depends),
) -> ReservationCreateResponse:
    with tracer.start_as_current_span('controller.create_reservation') as span:
        span.set_attribute('event_id', request.event_id)
        span.set_attribute('pay_immediately', request.pay_immediately)

        result = await use_case.execute(
            client_id=client_id,
            event_id=request.event_id,
            quantities=request.quantities,
            pay_immediately=request.pay_immediately,
            payer=request.payment.to_payer() if request.payment else None,
        )
        receipt = unwrap_or_reject(result)
        span.set_attribute('reservation.id', str(receipt.reservation.id))

        return ReservationCreateResponse(
            reservation=ReservationResponse.from_entity(receipt.reservation),
            payment=PaymentResponse.from_entity(receipt.payment) if receipt.payment else None,
            payment_error=(
                PaymentErrorResponse.from_error(receipt.payment_error)
                if receipt.payment_error
                else None
            ),
        )


@router.get('/my_reservations', status_code=status.HTTP_200_OK)
@Logger.io
async def list_my_reservations(
    client_id: int = Depends(get_client_id),
    use_case: ListClientReservationsUseCase = Depends(ListClientReservationsUseCase.depends),
) -> List[ReservationResponse]:
    reservations = await use_case.execute(client_id=client_id)
    return [ReservationResponse.from_entity(r) for r in reservations]


@router.get('/{reservation_id}', status_code=status.HTTP_200_OK)
@Logger.io
async def get_reservation(
    reservation_id: UUID,
    client_id: int = Depends(get_client_id),
    use_case: GetReservationDetailsUseCase = Depends(GetReservationDetailsUseCase.depends),
) -> ReservationDetailResponse:
    details = unwrap_or_reject(
        await use_case.execute(reservation_id=reservation_id, client_id=client_id)
    )
    return ReservationDetailResponse(
        **ReservationResponse.from_entity(details.reservation).model_dump(),
        payments=[PaymentResponse.from_entity(p) for p in details.payments],
    )


@router.patch('/{reservation_id}/cancel', status_code=status.HTTP_200_OK)
@Logger.io
async def cancel_reservation(
    reservation_id: UUID,
    client_id: int = Depends(get_client_id),
    use_case: CancelReservationUseCase = Depends(CancelReservationUseCase.depends),
) -> ReservationResponse:
    result = await use_case.execute(reservation_id=reservation_id, client_id=client_id)
    return ReservationResponse.from_entity(unwrap_or_reject(result))


@router.post('/{reservation_id}/pay', status_code=status.HTTP_200_OK)
@Logger.io
async def pay_reservation(
    reservation_id: UUID,
    request: PaymentRequest,
    response: Response,
    background: bool = False,
    client_id: int = Depends(get_client_id),
    use_case: ProcessPaymentUseCase = Depends(ProcessPaymentUseCase.depends),
    dispatcher: PaymentDispatcher = Depends(PaymentDispatcher.depends),
) -> Union[PaymentResponse, PaymentAcceptedResponse]:
    """
    Pay a pending reservation.

    With ``background=true`` the charge runs in the application task group and
    the call returns 202 at once; poll the reservation or its payments for the
    outcome.
    """
    if background:
        dispatcher.dispatch(
            reservation_id=reservation_id, client_id=client_id, payer=request.to_payer()
        )
        response.status_code = status.HTTP_202_ACCEPTED
        return PaymentAcceptedResponse(reservation_id=reservation_id)

    result = await use_case.execute(
        reservation_id=reservation_id, client_id=client_id, payer=request.to_payer()
    )
    return PaymentResponse.from_entity(unwrap_or_reject(result))


@router.get('/{reservation_id}/payments', status_code=status.HTTP_200_OK)
@Logger.io
async def list_reservation_payments(
    reservation_id: UUID,
    client_id: int = Depends(get_client_id),
    use_case: ListPaymentsUseCase = Depends(ListPaymentsUseCase.depends),
) -> List[PaymentResponse]:
    result = await use_case.execute(reservation_id=reservation_id, client_id=client_id)
    return [PaymentResponse.from_entity(p) for p in unwrap_or_reject(result)]
