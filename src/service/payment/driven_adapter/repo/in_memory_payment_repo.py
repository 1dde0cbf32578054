from uuid import UUID

from src.platform.database.in_memory_store import InMemoryStore
from src.service.payment.app.interface.i_payment_repo import IPaymentRepo
from src.service.payment.domain.entity.payment_entity import Payment


class InMemoryPaymentRepo(IPaymentRepo):
    def __init__(self, *, store: InMemoryStore) -> None:
        self.store = store

    async def create(self, *, payment: Payment) -> Payment:
        async with self.store.lock:
            self.store.payments[payment.id] = payment
            return payment

    async def save(self, *, payment: Payment) -> Payment:
        async with self.store.lock:
            self.store.payments[payment.id] = payment
            return payment

    async def list_by_reservation(self, *, reservation_id: UUID) -> list[Payment]:
        history = [p for p in self.store.payments.values() if p.reservation_id == reservation_id]
        return sorted(history, key=lambda p: p.created_at)
