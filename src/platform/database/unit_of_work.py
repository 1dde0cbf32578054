"""
Unit of Work Pattern - one transaction spanning the event, reservation and payment repositories

Architecture:
- UoW owns the session (or in-memory store handle) for one operation
- UoW owns commit/rollback; leaving the block without commit rolls back
- Use cases receive a UoW factory and open one UoW per operation
"""

from __future__ import annotations

import abc
from collections.abc import Hashable
from contextlib import AsyncExitStack
from typing import TYPE_CHECKING, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.platform.database.in_memory_store import InMemoryStore
from src.platform.exception.exceptions import StorageError
from src.platform.logging.loguru_io import Logger


if TYPE_CHECKING:
    from src.service.inventory.app.interface.i_event_repo import IEventRepo
    from src.service.payment.app.interface.i_payment_repo import IPaymentRepo
    from src.service.reservation.app.interface.i_reservation_repo import IReservationRepo


class AbstractUnitOfWork(abc.ABC):
    """
    Usage:
        async with uow_factory() as uow:
            reservation = await uow.reservation_repo.create(reservation=...)
            await uow.commit()
    """

    event_repo: IEventRepo
    reservation_repo: IReservationRepo
    payment_repo: IPaymentRepo

    async def __aenter__(self) -> AbstractUnitOfWork:
        return self

    async def __aexit__(self, *args) -> None:
        await self.rollback()

    async def commit(self) -> None:
        """Commit the transaction"""
        await self._commit()

    @abc.abstractmethod
    async def _commit(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def rollback(self) -> None:
        raise NotImplementedError


UnitOfWorkFactory = Callable[[], AbstractUnitOfWork]


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    """Opens a session per block; every repository shares it."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory
        self.session: AsyncSession | None = None

    async def __aenter__(self) -> AbstractUnitOfWork:
        from src.service.inventory.driven_adapter.repo.event_repo_impl import EventRepoImpl
        from src.service.payment.driven_adapter.repo.payment_repo_impl import PaymentRepoImpl
        from src.service.reservation.driven_adapter.repo.reservation_repo_impl import (
            ReservationRepoImpl,
        )

        self.session = self.session_factory()
        self.event_repo = EventRepoImpl(session=self.session)
        self.reservation_repo = ReservationRepoImpl(session=self.session)
        self.payment_repo = PaymentRepoImpl(session=self.session)
        return await super().__aenter__()

    async def __aexit__(self, *args) -> None:
        try:
            await super().__aexit__(*args)
        finally:
            if self.session is not None:
                await self.session.close()
                self.session = None

    async def _commit(self) -> None:
        assert self.session is not None, 'commit() outside of `async with`'
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            Logger.base.error(f'❌ [UOW] Commit failed: {e}')
            raise StorageError('Failed to commit transaction') from e

    async def rollback(self) -> None:
        if self.session is not None:
            await self.session.rollback()


class InMemoryUnitOfWork(AbstractUnitOfWork):
    """
    Repositories write straight into the shared store, so rollback cannot undo
    them; use cases compensate explicitly (e.g. releasing reserved tiers).

    Event row locks taken through ``lock_row`` are held until the block exits,
    like PostgreSQL row locks held until the transaction ends.
    """

    def __init__(self, store: InMemoryStore) -> None:
        self.store = store
        self.committed = False
        self._row_locks = AsyncExitStack()
        self._locked_rows: set[Hashable] = set()

    async def __aenter__(self) -> AbstractUnitOfWork:
        from src.service.inventory.driven_adapter.repo.in_memory_event_repo import (
            InMemoryEventRepo,
        )
        from src.service.payment.driven_adapter.repo.in_memory_payment_repo import (
            InMemoryPaymentRepo,
        )
        from src.service.reservation.driven_adapter.repo.in_memory_reservation_repo import (
            InMemoryReservationRepo,
        )

        self.event_repo = InMemoryEventRepo(store=self.store, lock_row=self.lock_row)
        self.reservation_repo = InMemoryReservationRepo(store=self.store)
        self.payment_repo = InMemoryPaymentRepo(store=self.store)
        return await super().__aenter__()

    async def __aexit__(self, *args) -> None:
        try:
            await super().__aexit__(*args)
        finally:
            self._locked_rows.clear()
            await self._row_locks.aclose()

    async def lock_row(self, key: Hashable) -> None:
        """Hold the row lock for ``key`` until this unit of work ends (re-entrant)"""
        if key in self._locked_rows:
            return
        await self._row_locks.enter_async_context(self.store.row_locks.hold(key))
        self._locked_rows.add(key)

    async def _commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        pass
