"""init_db_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18

Schema:
- event: Events with per-tier capacity / sold / price columns
- reservation: Reservation headers with UUID primary key
- reservation_line_item: One row per tier bought in a reservation
- payment: Payment attempts per reservation

Sold counters are guarded by CHECK constraints (0 <= sold <= capacity) as a
last line of defence behind the conditional UPDATEs.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TIERS = ('standard', 'vip', 'premium')


def _tier_columns() -> list[sa.Column]:
    columns = []
    for tier in TIERS:
        columns += [
            sa.Column(f'{tier}_capacity', sa.Integer(), server_default='0', nullable=False),
            sa.Column(f'{tier}_sold', sa.Integer(), server_default='0', nullable=False),
            sa.Column(f'{tier}_price', sa.Numeric(10, 2), server_default='0', nullable=False),
        ]
    return columns


def _tier_constraints() -> list[sa.CheckConstraint]:
    constraints = []
    for tier in TIERS:
        constraints += [
            sa.CheckConstraint(f'{tier}_sold >= 0', name=f'ck_event_{tier}_sold_non_negative'),
            sa.CheckConstraint(
                f'{tier}_sold <= {tier}_capacity', name=f'ck_event_{tier}_sold_le_capacity'
            ),
            sa.CheckConstraint(f'{tier}_price >= 0', name=f'ck_event_{tier}_price_non_negative'),
        ]
    return constraints


def upgrade() -> None:
    """Create all tables."""

    # ========== Event ==========
    op.create_table(
        'event',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('organizer_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('venue', sa.String(length=255), nullable=False),
        sa.Column('description', sa.String(), server_default='', nullable=False),
        sa.Column('category', sa.String(length=20), nullable=False),
        sa.Column('attributes', JSONB(), server_default='{}', nullable=False),
        sa.Column('starts_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        *_tier_columns(),
        sa.Column(
            'created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False
        ),
        sa.Column(
            'updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False
        ),
        sa.PrimaryKeyConstraint('id'),
        *_tier_constraints(),
    )
    op.create_index(op.f('ix_event_organizer_id'), 'event', ['organizer_id'])
    op.create_index('idx_event_starts_at', 'event', ['starts_at'])

    # ========== Reservation ==========
    op.create_table(
        'reservation',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('client_id', sa.Integer(), nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('total', sa.Numeric(10, 2), nullable=False),
        sa.Column(
            'created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False
        ),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['event_id'], ['event.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_reservation_client_id'), 'reservation', ['client_id'])
    op.create_index(op.f('ix_reservation_event_id'), 'reservation', ['event_id'])

    op.create_table(
        'reservation_line_item',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('reservation_id', UUID(as_uuid=True), nullable=False),
        sa.Column('tier', sa.String(length=20), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=False),
        sa.ForeignKeyConstraint(['reservation_id'], ['reservation.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('reservation_id', 'tier', name='uq_line_item_reservation_tier'),
        sa.CheckConstraint('quantity > 0', name='ck_line_item_quantity_positive'),
    )
    op.create_index(
        op.f('ix_reservation_line_item_reservation_id'), 'reservation_line_item', ['reservation_id']
    )

    # ========== Payment ==========
    op.create_table(
        'payment',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('reservation_id', UUID(as_uuid=True), nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('method', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('transaction_reference', sa.String(length=255), nullable=True),
        sa.Column('gateway_message', sa.String(), nullable=True),
        sa.Column(
            'created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False
        ),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['reservation_id'], ['reservation.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_payment_reservation_id'), 'payment', ['reservation_id'])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index(op.f('ix_payment_reservation_id'), table_name='payment')
    op.drop_table('payment')
    op.drop_index(
        op.f('ix_reservation_line_item_reservation_id'), table_name='reservation_line_item'
    )
    op.drop_table('reservation_line_item')
    op.drop_index(op.f('ix_reservation_event_id'), table_name='reservation')
    op.drop_index(op.f('ix_reservation_client_id'), table_name='reservation')
    op.drop_table('reservation')
    op.drop_index('idx_event_starts_at', table_name='event')
    op.drop_index(op.f('ix_event_organizer_id'), table_name='event')
    op.drop_table('event')
