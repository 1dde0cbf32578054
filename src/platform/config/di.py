"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import Settings
from src.platform.database.in_memory_store import InMemoryStore
from src.platform.database.orm_db_setting import Database
from src.platform.database.unit_of_work import InMemoryUnitOfWork, SqlAlchemyUnitOfWork
from src.platform.state.keyed_lock import KeyedLock
from src.service.payment.driven_adapter.gateway.simulated_payment_gateway import (
    SimulatedPaymentGateway,
)
from src.service.payment.driven_adapter.gateway.stripe_payment_gateway import (
    StripePaymentGateway,
)
from src.service.shared_kernel.domain.booking_policy import BookingPolicy, utc_now


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Persistence handles (only the one matching DATABASE_BACKEND is ever built)
    database = providers.Singleton(Database)
    in_memory_store = providers.Singleton(InMemoryStore)

    # One Unit of Work per operation; use cases receive this provider as a factory
    unit_of_work = providers.Selector(
        config_service.provided.DATABASE_BACKEND,
        postgres=providers.Factory(
            SqlAlchemyUnitOfWork, session_factory=database.provided.session_maker
        ),
        memory=providers.Factory(InMemoryUnitOfWork, store=in_memory_store),
    )

    # Booking rules and wall clock
    booking_policy = providers.Singleton(BookingPolicy.from_settings, config_service)
    clock = providers.Object(utc_now)

    # Serializes cancel / pay on the same reservation
    reservation_lock = providers.Singleton(KeyedLock, name='reservation')

    # Payment gateway adapter
    payment_gateway = providers.Selector(
        config_service.provided.PAYMENT_GATEWAY,
        simulated=providers.Singleton(SimulatedPaymentGateway),
        stripe=providers.Singleton(StripePaymentGateway, settings=config_service),
    )

    # Background task group (set by main.py lifespan)
    # Used for payments dispatched in the background
    task_group = providers.Object(None)


container = Container()
