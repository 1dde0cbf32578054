from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.database.orm_db_setting import as_utc, storage_errors
from src.platform.exception.exceptions import StorageError
from src.platform.logging.loguru_io import Logger
from src.service.payment.app.interface.i_payment_repo import IPaymentRepo
from src.service.payment.domain.entity.payment_entity import Payment
from src.service.payment.driven_adapter.model.payment_model import PaymentModel
from src.service.shared_kernel.domain.enum import PaymentMethod, PaymentStatus


class PaymentRepoImpl(IPaymentRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _to_entity(model: PaymentModel) -> Payment:
        return Payment(
            id=model.id,
            reservation_id=model.reservation_id,
            amount=model.amount,
            method=PaymentMethod(model.method),
            status=PaymentStatus(model.status),
            transaction_reference=model.transaction_reference,
            gateway_message=model.gateway_message,
            created_at=as_utc(model.created_at),
            completed_at=as_utc(model.completed_at) if model.completed_at else None,
        )

    @Logger.io
    async def create(self, *, payment: Payment) -> Payment:
        with storage_errors('creating payment'):
            self.session.add(
                PaymentModel(
                    id=payment.id,
                    reservation_id=payment.reservation_id,
                    amount=payment.amount,
                    method=payment.method.value,
                    status=payment.status.value,
                    transaction_reference=payment.transaction_reference,
                    gateway_message=payment.gateway_message,
                    created_at=payment.created_at,
                    completed_at=payment.completed_at,
                )
            )
            await self.session.flush()
        return payment

    @Logger.io
    async def save(self, *, payment: Payment) -> Payment:
        with storage_errors('saving payment'):
            result = await self.session.execute(
                update(PaymentModel)
                .where(PaymentModel.id == payment.id)
                .values(
                    status=payment.status.value,
                    transaction_reference=payment.transaction_reference,
                    gateway_message=payment.gateway_message,
                    completed_at=payment.completed_at,
                )
                .execution_options(synchronize_session=False)
            )
        if result.rowcount == 0:  # type: ignore[attr-defined]
            raise StorageError(f'Payment {payment.id} does not exist')
        return payment

    @Logger.io
    async def list_by_reservation(self, *, reservation_id: UUID) -> list[Payment]:
        with storage_errors('listing payments'):
            result = await self.session.execute(
                select(PaymentModel)
                .where(PaymentModel.reservation_id == reservation_id)
                .order_by(PaymentModel.created_at)
            )
            return [self._to_entity(model) for model in result.scalars().all()]
