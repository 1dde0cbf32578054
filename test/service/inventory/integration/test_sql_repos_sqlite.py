"""
SQLAlchemy repositories against a throwaway SQLite database

Covers what the in-memory store cannot: the conditional UPDATE statements on
the event row, CHECK constraints, and row mapping for every table.
"""

from collections.abc import AsyncIterator
from decimal import Decimal

import pytest
from returns.result import Failure, Success

from src.platform.database.orm_db_setting import Database
from src.platform.database.unit_of_work import SqlAlchemyUnitOfWork
from src.platform.state.keyed_lock import KeyedLock
from src.service.inventory.app.command.reconcile_event_inventory_use_case import (
    ReconcileEventInventoryUseCase,
)
from src.service.payment.app.command.process_payment_use_case import ProcessPaymentUseCase
from src.service.payment.driven_adapter.gateway.simulated_payment_gateway import (
    SimulatedPaymentGateway,
)
from src.service.reservation.app.command.cancel_reservation_use_case import (
    CancelReservationUseCase,
)
from src.service.reservation.app.command.create_reservation_use_case import (
    CreateReservationUseCase,
)
from src.service.shared_kernel.domain.booking_error import InsufficientCapacity
from src.service.shared_kernel.domain.enum import (
    PaymentStatus,
    ReservationStatus,
    TicketTier,
)


pytestmark = pytest.mark.integration


@pytest.fixture
async def database(tmp_path) -> AsyncIterator[Database]:
    database = Database(url=f'sqlite+aiosqlite:///{tmp_path / "booking.db"}')
    await database.create_tables()
    yield database
    await database.dispose()


@pytest.fixture
def sql_uow_factory(database):
    return lambda: SqlAlchemyUnitOfWork(database.session_maker)


@pytest.fixture
async def event(sql_uow_factory, new_event):
    async with sql_uow_factory() as uow:
        created = await uow.event_repo.create(event=new_event())
        await uow.commit()
    return created


class TestEventRepoImpl:
    async def test_create_and_load_round_trip(self, sql_uow_factory, event, new_event):
        async with sql_uow_factory() as uow:
            loaded = await uow.event_repo.get_by_id(event_id=event.id)

        expected = new_event()
        assert loaded.id == event.id
        assert loaded.title == expected.title
        assert loaded.starts_at == expected.starts_at
        assert loaded.attributes == {'artist': 'The Tides'}
        assert loaded.tiers[TicketTier.VIP].capacity == 5
        assert loaded.tiers[TicketTier.VIP].unit_price == Decimal('25.00')
        assert loaded.tiers[TicketTier.PREMIUM].sold == 0

    async def test_missing_event_is_none(self, sql_uow_factory, database):
        async with sql_uow_factory() as uow:
            assert await uow.event_repo.get_by_id(event_id=999) is None

    async def test_try_reserve_until_sold_out(self, sql_uow_factory, event):
        """
        Given: 2 premium tickets
        When: 2 are reserved, then 1 more
        Then: the second request fails with nothing left and the counter stays at 2
        """
        # Act
        async with sql_uow_factory() as uow:
            first = await uow.event_repo.try_reserve(
                event_id=event.id, tier=TicketTier.PREMIUM, quantity=2
            )
            second = await uow.event_repo.try_reserve(
                event_id=event.id, tier=TicketTier.PREMIUM, quantity=1
            )
            await uow.commit()

        # Assert
        assert first.unwrap().sold == 2
        assert second == Failure(
            InsufficientCapacity(tier=TicketTier.PREMIUM, requested=1, available=0)
        )
        async with sql_uow_factory() as uow:
            reloaded = await uow.event_repo.get_by_id(event_id=event.id)
        assert reloaded.tiers[TicketTier.PREMIUM].sold == 2

    async def test_uncommitted_reservation_rolls_back(self, sql_uow_factory, event):
        async with sql_uow_factory() as uow:
            result = await uow.event_repo.try_reserve(
                event_id=event.id, tier=TicketTier.STANDARD, quantity=4
            )
            assert isinstance(result, Success)

        async with sql_uow_factory() as uow:
            reloaded = await uow.event_repo.get_by_id(event_id=event.id)
        assert reloaded.tiers[TicketTier.STANDARD].sold == 0

    async def test_release_is_floored_at_zero(self, sql_uow_factory, event):
        async with sql_uow_factory() as uow:
            await uow.event_repo.try_reserve(event_id=event.id, tier=TicketTier.VIP, quantity=2)
            inventory = await uow.event_repo.release(
                event_id=event.id, tier=TicketTier.VIP, quantity=5
            )
            await uow.commit()

        assert inventory.sold == 0
        assert inventory.remaining == 5

    async def test_update_details_refuses_capacity_below_sold(self, sql_uow_factory, event):
        async with sql_uow_factory() as uow:
            await uow.event_repo.try_reserve(
                event_id=event.id, tier=TicketTier.STANDARD, quantity=6
            )
            await uow.commit()

        # Edit built from a stale read that still shows 0 sold
        shrunk = event.with_changes(capacities={TicketTier.STANDARD: 5}, title='Renamed')
        async with sql_uow_factory() as uow:
            refused = await uow.event_repo.update_details(event=shrunk)
            accepted = await uow.event_repo.update_details(
                event=event.with_changes(capacities={TicketTier.STANDARD: 6})
            )
            await uow.commit()

        assert refused is None
        assert accepted.tiers[TicketTier.STANDARD].capacity == 6
        assert accepted.tiers[TicketTier.STANDARD].sold == 6
        assert accepted.title == event.title

    async def test_list_events_active_only(self, sql_uow_factory, event, new_event):
        async with sql_uow_factory() as uow:
            inactive = await uow.event_repo.create(event=new_event())
            await uow.event_repo.update_details(event=inactive.with_changes(is_active=False))
            await uow.commit()

        async with sql_uow_factory() as uow:
            active = await uow.event_repo.list_events(active_only=True)
            everything = await uow.event_repo.list_events()

        assert [e.id for e in active] == [event.id]
        assert len(everything) == 2

    async def test_overwrite_sold_is_clamped_to_capacity(self, sql_uow_factory, event):
        async with sql_uow_factory() as uow:
            updated = await uow.event_repo.overwrite_sold(
                event_id=event.id,
                sold={TicketTier.STANDARD: 3, TicketTier.VIP: 9, TicketTier.PREMIUM: 0},
            )
            await uow.commit()

        assert updated.tiers[TicketTier.STANDARD].sold == 3
        assert updated.tiers[TicketTier.VIP].sold == 5


class TestReservationFlowOnSql:
    @pytest.fixture
    def process_payment(self, sql_uow_factory, clock) -> ProcessPaymentUseCase:
        return ProcessPaymentUseCase(
            uow_factory=sql_uow_factory,
            gateway=SimulatedPaymentGateway(),
            reservation_lock=KeyedLock(name='reservation'),
            clock=clock,
        )

    @pytest.fixture
    def create_reservation(self, sql_uow_factory, process_payment, policy, clock):
        return CreateReservationUseCase(
            uow_factory=sql_uow_factory,
            process_payment=process_payment,
            policy=policy,
            clock=clock,
        )

    async def test_reserve_pay_and_read_back(
        self, sql_uow_factory, event, create_reservation, card_payer
    ):
        receipt = (
            await create_reservation.execute(
                client_id=42,
                event_id=event.id,
                quantities={TicketTier.STANDARD: 2, TicketTier.VIP: 1},
                pay_immediately=True,
                payer=card_payer,
            )
        ).unwrap()

        async with sql_uow_factory() as uow:
            reservation = await uow.reservation_repo.get_by_id(
                reservation_id=receipt.reservation.id, for_update=True
            )
            payments = await uow.payment_repo.list_by_reservation(reservation_id=reservation.id)
            mine = await uow.reservation_repo.list_by_client(client_id=42)
            held = await uow.reservation_repo.sum_active_quantities(event_id=event.id)

        assert reservation.status is ReservationStatus.CONFIRMED
        assert reservation.total == Decimal('45.00')
        assert [(i.tier, i.quantity) for i in reservation.line_items] == [
            (TicketTier.STANDARD, 2),
            (TicketTier.VIP, 1),
        ]
        assert [p.status for p in payments] == [PaymentStatus.SUCCEEDED]
        assert [r.id for r in mine] == [reservation.id]
        assert held == {TicketTier.STANDARD: 2, TicketTier.VIP: 1, TicketTier.PREMIUM: 0}

    async def test_shortfall_leaves_no_partial_reservation(
        self, sql_uow_factory, event, create_reservation
    ):
        result = await create_reservation.execute(
            client_id=42,
            event_id=event.id,
            quantities={TicketTier.STANDARD: 4, TicketTier.PREMIUM: 3},
        )

        assert isinstance(result.failure(), InsufficientCapacity)
        async with sql_uow_factory() as uow:
            reloaded = await uow.event_repo.get_by_id(event_id=event.id)
            mine = await uow.reservation_repo.list_by_client(client_id=42)
        assert reloaded.tiers[TicketTier.STANDARD].sold == 0
        assert mine == []

    async def test_cancel_excludes_reservation_from_active_totals(
        self, sql_uow_factory, event, create_reservation, policy, clock
    ):
        reservation = (
            await create_reservation.execute(
                client_id=42, event_id=event.id, quantities={TicketTier.VIP: 2}
            )
        ).unwrap().reservation
        cancel = CancelReservationUseCase(
            uow_factory=sql_uow_factory,
            reservation_lock=KeyedLock(name='reservation'),
            policy=policy,
            clock=clock,
        )

        cancelled = (
            await cancel.execute(reservation_id=reservation.id, client_id=42)
        ).unwrap()

        async with sql_uow_factory() as uow:
            held = await uow.reservation_repo.sum_active_quantities(event_id=event.id)
            reloaded = await uow.event_repo.get_by_id(event_id=event.id)
            stored = await uow.reservation_repo.get_by_id(reservation_id=reservation.id)
        assert cancelled.status is ReservationStatus.CANCELLED
        assert stored.cancelled_at is not None
        assert held[TicketTier.VIP] == 0
        assert reloaded.tiers[TicketTier.VIP].sold == 0

    async def test_reconcile_recomputes_sold_under_row_lock(
        self, sql_uow_factory, event, create_reservation
    ):
        await create_reservation.execute(
            client_id=42, event_id=event.id, quantities={TicketTier.STANDARD: 3}
        )
        async with sql_uow_factory() as uow:
            await uow.event_repo.overwrite_sold(event_id=event.id, sold={TicketTier.STANDARD: 9})
            await uow.commit()

        result = await ReconcileEventInventoryUseCase(uow_factory=sql_uow_factory).execute(
            event_id=event.id, organizer_id=event.organizer_id
        )

        assert result.unwrap().tiers[TicketTier.STANDARD].sold == 3
        async with sql_uow_factory() as uow:
            locked = await uow.event_repo.get_by_id(event_id=event.id, for_update=True)
        assert locked.tiers[TicketTier.STANDARD].sold == 3
