from datetime import datetime
from decimal import Decimal

from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base


def _tier_bounds(tier: str) -> tuple[CheckConstraint, ...]:
    return (
        CheckConstraint(f'{tier}_sold >= 0', name=f'ck_event_{tier}_sold_non_negative'),
        CheckConstraint(f'{tier}_sold <= {tier}_capacity', name=f'ck_event_{tier}_sold_le_capacity'),
        CheckConstraint(f'{tier}_price >= 0', name=f'ck_event_{tier}_price_non_negative'),
    )


class EventModel(Base):
    __tablename__ = 'event'
    __table_args__ = (
        *_tier_bounds('standard'),
        *_tier_bounds('vip'),
        *_tier_bounds('premium'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    organizer_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    venue: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(String, nullable=False, default='')
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    attributes: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Per-tier inventory: only the conditional UPDATEs in EventRepoImpl touch *_sold
    standard_capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    standard_sold: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    standard_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    vip_capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    vip_sold: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    vip_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    premium_capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    premium_sold: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    premium_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
