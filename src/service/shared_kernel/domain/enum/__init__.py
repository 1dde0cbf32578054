"""Shared Kernel Enums"""

from src.service.shared_kernel.domain.enum.event_category import EventCategory
from src.service.shared_kernel.domain.enum.payment_method import PaymentMethod
from src.service.shared_kernel.domain.enum.payment_status import PaymentStatus
from src.service.shared_kernel.domain.enum.reservation_status import ReservationStatus
from src.service.shared_kernel.domain.enum.ticket_tier import TIER_ORDER, TicketTier

__all__ = [
    'EventCategory',
    'PaymentMethod',
    'PaymentStatus',
    'ReservationStatus',
    'TIER_ORDER',
    'TicketTier',
]
