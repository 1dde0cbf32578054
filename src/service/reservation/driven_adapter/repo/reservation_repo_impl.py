from typing import Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.database.orm_db_setting import as_utc, storage_errors
from src.platform.exception.exceptions import StorageError
from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.interface.i_reservation_repo import IReservationRepo
from src.service.reservation.domain.entity.reservation_entity import (
    Reservation,
    ReservationLineItem,
)
from src.service.reservation.driven_adapter.model.reservation_model import (
    ReservationLineItemModel,
    ReservationModel,
)
from src.service.shared_kernel.domain.enum import (
    TIER_ORDER,
    ReservationStatus,
    TicketTier,
)


class ReservationRepoImpl(IReservationRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _to_entity(
        model: ReservationModel, line_items: list[ReservationLineItem]
    ) -> Reservation:
        return Reservation(
            id=model.id,
            client_id=model.client_id,
            event_id=model.event_id,
            status=ReservationStatus(model.status),
            total=model.total,
            created_at=as_utc(model.created_at),
            cancelled_at=as_utc(model.cancelled_at) if model.cancelled_at else None,
            line_items=line_items,
        )

    @staticmethod
    def _to_line_item(model: ReservationLineItemModel) -> ReservationLineItem:
        return ReservationLineItem(
            reservation_id=model.reservation_id,
            tier=TicketTier(model.tier),
            quantity=model.quantity,
            unit_price=model.unit_price,
        )

    @staticmethod
    def _in_tier_order(items: list[ReservationLineItem]) -> list[ReservationLineItem]:
        return sorted(items, key=lambda item: TIER_ORDER.index(item.tier))

    @Logger.io
    async def create(self, *, reservation: Reservation) -> Reservation:
        with storage_errors('creating reservation'):
            self.session.add(
                ReservationModel(
                    id=reservation.id,
                    client_id=reservation.client_id,
                    event_id=reservation.event_id,
                    status=reservation.status.value,
                    total=reservation.total,
                    created_at=reservation.created_at,
                    cancelled_at=reservation.cancelled_at,
                )
            )
            await self.session.flush()
        return reservation

    @Logger.io
    async def create_line_items(self, *, line_items: list[ReservationLineItem]) -> None:
        with storage_errors('creating reservation line items'):
            self.session.add_all(
                [
                    ReservationLineItemModel(
                        reservation_id=item.reservation_id,
                        tier=item.tier.value,
                        quantity=item.quantity,
                        unit_price=item.unit_price,
                    )
                    for item in line_items
                ]
            )
            await self.session.flush()

    @Logger.io
    async def get_by_id(
        self, *, reservation_id: UUID, for_update: bool = False
    ) -> Optional[Reservation]:
        with storage_errors('loading reservation'):
            stmt = (
                select(ReservationModel)
                .where(ReservationModel.id == reservation_id)
                .execution_options(populate_existing=True)
            )
            if for_update:
                stmt = stmt.with_for_update()
            model = (await self.session.execute(stmt)).scalar_one_or_none()
            if model is None:
                return None
            items = await self.list_line_items(reservation_id=reservation_id)
            return self._to_entity(model, items)

    @Logger.io
    async def save(self, *, reservation: Reservation) -> Reservation:
        with storage_errors('saving reservation'):
            result = await self.session.execute(
                update(ReservationModel)
                .where(ReservationModel.id == reservation.id)
                .values(status=reservation.status.value, cancelled_at=reservation.cancelled_at)
                .execution_options(synchronize_session=False)
            )
        if result.rowcount == 0:  # type: ignore[attr-defined]
            raise StorageError(f'Reservation {reservation.id} does not exist')
        return reservation

    async def list_line_items(self, *, reservation_id: UUID) -> list[ReservationLineItem]:
        with storage_errors('loading reservation line items'):
            result = await self.session.execute(
                select(ReservationLineItemModel).where(
                    ReservationLineItemModel.reservation_id == reservation_id
                )
            )
            return self._in_tier_order([self._to_line_item(m) for m in result.scalars().all()])

    @Logger.io
    async def list_by_client(self, *, client_id: int) -> list[Reservation]:
        with storage_errors('listing client reservations'):
            result = await self.session.execute(
                select(ReservationModel)
                .where(ReservationModel.client_id == client_id)
                .order_by(ReservationModel.created_at.desc())
            )
            models = result.scalars().all()
            if not models:
                return []

            items_result = await self.session.execute(
                select(ReservationLineItemModel).where(
                    ReservationLineItemModel.reservation_id.in_([m.id for m in models])
                )
            )
            items_by_reservation: dict[UUID, list[ReservationLineItem]] = {}
            for item_model in items_result.scalars().all():
                items_by_reservation.setdefault(item_model.reservation_id, []).append(
                    self._to_line_item(item_model)
                )
            return [
                self._to_entity(m, self._in_tier_order(items_by_reservation.get(m.id, [])))
                for m in models
            ]

    @Logger.io
    async def sum_active_quantities(self, *, event_id: int) -> dict[TicketTier, int]:
        with storage_errors('summing reserved quantities'):
            result = await self.session.execute(
                select(ReservationLineItemModel.tier, func.sum(ReservationLineItemModel.quantity))
                .join(ReservationModel, ReservationModel.id == ReservationLineItemModel.reservation_id)
                .where(
                    ReservationModel.event_id == event_id,
                    ReservationModel.status != ReservationStatus.CANCELLED.value,
                )
                .group_by(ReservationLineItemModel.tier)
            )
            totals = {TicketTier(tier): int(quantity or 0) for tier, quantity in result.all()}
        return {tier: totals.get(tier, 0) for tier in TIER_ORDER}
