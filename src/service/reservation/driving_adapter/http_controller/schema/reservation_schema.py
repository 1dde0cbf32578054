from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.service.payment.domain.entity.payment_entity import Payment
from src.service.payment.domain.value_object.payer_details import PayerDetails
from src.service.reservation.domain.entity.reservation_entity import Reservation
from src.service.shared_kernel.domain.booking_error import BookingError
from src.service.shared_kernel.domain.enum import (
    PaymentMethod,
    PaymentStatus,
    ReservationStatus,
    TicketTier,
)


class PaymentRequest(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            'examples': [
                {
                    'payer_name': 'Ada Lovelace',
                    'method': 'credit_card',
                    'card_number': '4242424242424242',
                    'cvv': '123',
                    'expiry_month': '12',
                    'expiry_year': '30',
                },
                {
                    'payer_name': 'Ada Lovelace',
                    'method': 'gateway_token',
                    'payment_token': 'pm_card_visa',
                },
            ]
        }
    )

    payer_name: str
    method: PaymentMethod
    card_number: Optional[str] = None
    cvv: Optional[str] = None
    expiry_month: Optional[str] = None
    expiry_year: Optional[str] = None
    payment_token: Optional[str] = None

    def to_payer(self) -> PayerDetails:
        return PayerDetails(**self.model_dump())


class ReservationCreateRequest(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            'examples': [
                {'event_id': 1, 'quantities': {'standard': 2, 'vip': 1}},
                {
                    'event_id': 1,
                    'quantities': {'premium': 1},
                    'pay_immediately': True,
                    'payment': {
                        'payer_name': 'Ada Lovelace',
                        'method': 'credit_card',
                        'card_number': '4242424242424242',
                        'cvv': '123',
                        'expiry_month': '12',
                        'expiry_year': '30',
                    },
                },
            ]
        }
    )

    event_id: int
    quantities: dict[TicketTier, int]
    pay_immediately: bool = False
    payment: Optional[PaymentRequest] = None


class LineItemResponse(BaseModel):
    tier: TicketTier
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class PaymentResponse(BaseModel):
    id: UUID
    reservation_id: UUID
    amount: Decimal
    method: PaymentMethod
    status: PaymentStatus
    transaction_reference: Optional[str] = None
    gateway_message: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, payment: Payment) -> 'PaymentResponse':
        return cls(
            id=payment.id,
            reservation_id=payment.reservation_id,
            amount=payment.amount,
            method=payment.method,
            status=payment.status,
            transaction_reference=payment.transaction_reference,
            gateway_message=payment.gateway_message,
            created_at=payment.created_at,
            completed_at=payment.completed_at,
        )


class ReservationResponse(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            'example': {
                'id': '01234567-89ab-7def-0123-456789abcdef',
                'client_id': 42,
                'event_id': 1,
                'status': 'pending_payment',
                'total': '45.00',
                'line_items': [
                    {'tier': 'standard', 'quantity': 2, 'unit_price': '10.00', 'subtotal': '20.00'},
                    {'tier': 'vip', 'quantity': 1, 'unit_price': '25.00', 'subtotal': '25.00'},
                ],
                'created_at': '2030-06-01T10:30:00Z',
                'cancelled_at': None,
            }
        }
    )

    id: UUID
    client_id: int
    event_id: int
    status: ReservationStatus
    total: Decimal
    line_items: list[LineItemResponse]
    created_at: datetime
    cancelled_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, reservation: Reservation) -> 'ReservationResponse':
        return cls(
            id=reservation.id,
            client_id=reservation.client_id,
            event_id=reservation.event_id,
            status=reservation.status,
            total=reservation.total,
            line_items=[
                LineItemResponse(
                    tier=item.tier,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    subtotal=item.subtotal,
                )
                for item in reservation.line_items
            ],
            created_at=reservation.created_at,
            cancelled_at=reservation.cancelled_at,
        )


class PaymentErrorResponse(BaseModel):
    code: str
    detail: str
    fields: dict[str, Any] = {}

    @classmethod
    def from_error(cls, error: BookingError) -> 'PaymentErrorResponse':
        return cls(code=error.code, detail=error.message, fields=error.to_fields())


class ReservationCreateResponse(BaseModel):
    reservation: ReservationResponse
    payment: Optional[PaymentResponse] = None
    payment_error: Optional[PaymentErrorResponse] = None


class ReservationDetailResponse(ReservationResponse):
    payments: list[PaymentResponse] = []


class PaymentAcceptedResponse(BaseModel):
    reservation_id: UUID
    status: str = Field(default='processing')
