"""
Test Configuration and Fixtures

- Environment is set before any application import (settings read it at import time)
- Every test gets a fresh in-memory store; the DI container is pointed at it
- Domain fixtures: a bookable event factory, payer details, a frozen clock

Unit tests (test/**/unit/) mock the unit of work; integration tests run the
real use cases against the in-memory store, SQLite, or the HTTP app.
"""

# =============================================================================
# Environment setup MUST happen before any application import
# =============================================================================
import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)
    os.environ['DATABASE_BACKEND'] = 'memory'
    os.environ['PAYMENT_GATEWAY'] = 'simulated'
    os.environ['PAYMENT_GATEWAY_TIMEOUT_SECONDS'] = '2'
    os.environ.setdefault('DEBUG', 'true')


_early_setup_test_environment()

from collections.abc import Callable, Generator  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402
from typing import Any, Awaitable  # noqa: E402

from dependency_injector import providers  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
import pytest  # noqa: E402

from src.platform.config.di import container  # noqa: E402
from src.platform.database.in_memory_store import InMemoryStore  # noqa: E402
from src.platform.database.unit_of_work import InMemoryUnitOfWork  # noqa: E402
from src.platform.state.keyed_lock import KeyedLock  # noqa: E402
from src.service.inventory.domain.entity.event_entity import Event  # noqa: E402
from src.service.payment.domain.value_object.payer_details import PayerDetails  # noqa: E402
from src.service.shared_kernel.domain.booking_policy import BookingPolicy  # noqa: E402
from src.service.shared_kernel.domain.enum import (  # noqa: E402
    EventCategory,
    PaymentMethod,
    TicketTier,
)


NOW = datetime(2030, 6, 1, 12, 0, tzinfo=timezone.utc)
ORGANIZER_ID = 7


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return lambda: NOW


@pytest.fixture
def policy() -> BookingPolicy:
    return BookingPolicy()


@pytest.fixture
def store() -> Generator[InMemoryStore, None, None]:
    store = InMemoryStore()
    container.in_memory_store.override(providers.Object(store))
    yield store
    container.in_memory_store.reset_override()


@pytest.fixture
def uow_factory(store: InMemoryStore) -> Callable[[], InMemoryUnitOfWork]:
    return lambda: InMemoryUnitOfWork(store)


@pytest.fixture
def reservation_lock() -> KeyedLock:
    return KeyedLock(name='reservation')


def build_event(
    *,
    starts_at: datetime = NOW + timedelta(days=7),
    tiers: dict[TicketTier, tuple[int, Decimal]] | None = None,
    category: EventCategory = EventCategory.CONCERT,
    attributes: dict[str, Any] | None = None,
    organizer_id: int = ORGANIZER_ID,
) -> Event:
    return Event.create(
        organizer_id=organizer_id,
        title='Summer Nights',
        venue='Riverside Arena',
        category=category,
        starts_at=starts_at,
        tiers=tiers
        or {
            TicketTier.STANDARD: (10, Decimal('10.00')),
            TicketTier.VIP: (5, Decimal('25.00')),
            TicketTier.PREMIUM: (2, Decimal('80.00')),
        },
        attributes=attributes or {'artist': 'The Tides'},
    )


@pytest.fixture
def make_event(
    uow_factory: Callable[[], InMemoryUnitOfWork],
) -> Callable[..., Awaitable[Event]]:
    """Persist an event in the in-memory store (defaults: 7 days ahead, 10/5/2 seats)."""

    async def _make(**kwargs: Any) -> Event:
        async with uow_factory() as uow:
            event = await uow.event_repo.create(event=build_event(**kwargs))
            await uow.commit()
            return event

    return _make


@pytest.fixture
def card_payer() -> PayerDetails:
    return PayerDetails(
        payer_name='Ada Lovelace',
        method=PaymentMethod.CREDIT_CARD,
        card_number='4242 4242 4242 4242',
        cvv='123',
        expiry_month='12',
        expiry_year='35',
    )


@pytest.fixture
def declined_payer() -> PayerDetails:
    return PayerDetails(
        payer_name='Ada Lovelace',
        method=PaymentMethod.CREDIT_CARD,
        card_number='4000000000000002',
        cvv='123',
        expiry_month='12',
        expiry_year='35',
    )


@pytest.fixture
def new_event() -> Callable[..., Event]:
    """Unsaved event builder (same defaults as make_event)."""
    return build_event


@pytest.fixture
def client(store: InMemoryStore) -> Generator[TestClient, None, None]:
    """HTTP client running the full app lifespan against the per-test store."""
    from src.main import app

    with TestClient(app) as test_client:
        yield test_client
