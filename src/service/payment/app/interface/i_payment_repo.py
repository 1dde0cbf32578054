from abc import ABC, abstractmethod
from uuid import UUID

from src.service.payment.domain.entity.payment_entity import Payment


class IPaymentRepo(ABC):
    @abstractmethod
    async def create(self, *, payment: Payment) -> Payment:
        pass

    @abstractmethod
    async def save(self, *, payment: Payment) -> Payment:
        """Persist the terminal status, reference and completion time"""
        pass

    @abstractmethod
    async def list_by_reservation(self, *, reservation_id: UUID) -> list[Payment]:
        """Payment history of one reservation, oldest first"""
        pass
