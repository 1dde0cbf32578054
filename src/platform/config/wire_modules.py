"""
Wire Modules Configuration

Defines the modules that need dependency injection wiring.
Shared between production and test environments.
"""

from types import ModuleType

from src.service.inventory.app.command import (
    create_event_use_case,
    reconcile_event_inventory_use_case,
    update_event_use_case,
)
from src.service.inventory.app.query import get_event_use_case, list_events_use_case
from src.service.payment.app.command import payment_dispatcher, process_payment_use_case
from src.service.payment.app.query import list_payments_use_case
from src.service.reservation.app.command import (
    cancel_reservation_use_case,
    create_reservation_use_case,
)
from src.service.reservation.app.query import (
    get_reservation_details_use_case,
    list_client_reservations_use_case,
)


WIRE_MODULES: list[ModuleType] = [
    create_event_use_case,
    update_event_use_case,
    reconcile_event_inventory_use_case,
    get_event_use_case,
    list_events_use_case,
    create_reservation_use_case,
    cancel_reservation_use_case,
    get_reservation_details_use_case,
    list_client_reservations_use_case,
    process_payment_use_case,
    payment_dispatcher,
    list_payments_use_case,
]
