from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import attrs
from uuid_utils.compat import uuid7

from src.service.shared_kernel.domain.booking_policy import to_money
from src.service.shared_kernel.domain.enum import PaymentMethod, PaymentStatus


class PaymentAlreadySettled(Exception):
    def __init__(self, payment_id: UUID, status: PaymentStatus) -> None:
        super().__init__(f'Payment {payment_id} is already {status}')


def _positive_amount(instance: object, attribute: 'attrs.Attribute[Decimal]', value: Decimal) -> None:
    if value <= 0:
        raise ValueError(f'{attribute.name} must be > 0, got {value}')


@attrs.define
class Payment:
    """One charge attempt for a reservation. PENDING moves once to SUCCEEDED or FAILED."""

    reservation_id: UUID
    amount: Decimal = attrs.field(converter=to_money, validator=_positive_amount)
    method: PaymentMethod = attrs.field(converter=PaymentMethod)
    status: PaymentStatus = PaymentStatus.PENDING
    transaction_reference: Optional[str] = None
    gateway_message: Optional[str] = None
    id: UUID = attrs.field(factory=uuid7)
    created_at: datetime = attrs.field(factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None

    def _settle(self, status: PaymentStatus, reference: str, message: Optional[str]) -> 'Payment':
        if self.status.is_terminal:
            raise PaymentAlreadySettled(self.id, self.status)
        return attrs.evolve(
            self,
            status=status,
            transaction_reference=reference,
            gateway_message=message,
            completed_at=datetime.now(timezone.utc),
        )

    def succeed(self, *, transaction_reference: str, message: Optional[str] = None) -> 'Payment':
        return self._settle(PaymentStatus.SUCCEEDED, transaction_reference, message)

    def fail(self, *, message: str) -> 'Payment':
        # Failed attempts get a synthetic reference so they stay traceable
        return self._settle(PaymentStatus.FAILED, f'FAILED_{uuid4()}', message)
