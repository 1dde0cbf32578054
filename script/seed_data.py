#!/usr/bin/env python3
"""
Database Seed Script
Populate sample events into the configured database

Creates one event per category, starting SEED_DAYS_AHEAD days from now
(default 30), all owned by organizer SEED_ORGANIZER_ID (default 1).
"""

import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal
import os

from returns.result import Failure

from src.platform.config.core_setting import settings
from src.platform.config.di import container
from src.service.inventory.app.command.create_event_use_case import CreateEventUseCase
from src.service.shared_kernel.domain.enum import EventCategory, TicketTier


SEED_EVENTS = [
    {
        'title': 'Summer Nights',
        'venue': 'Riverside Arena',
        'category': EventCategory.CONCERT,
        'tiers': {
            TicketTier.STANDARD: (500, Decimal('10.00')),
            TicketTier.VIP: (50, Decimal('25.00')),
            TicketTier.PREMIUM: (10, Decimal('80.00')),
        },
        'attributes': {'artist': 'The Tides', 'concert_type': 'rock', 'min_age': 16},
    },
    {
        'title': 'Late Show Live',
        'venue': 'Grand Theatre',
        'category': EventCategory.SHOW,
        'tiers': {
            TicketTier.STANDARD: (200, Decimal('15.00')),
            TicketTier.VIP: (20, Decimal('40.00')),
        },
        'attributes': {'show_type': 'comedy', 'min_age': 12},
    },
    {
        'title': 'PyData Summit',
        'venue': 'Convention Center Hall B',
        'category': EventCategory.CONFERENCE,
        'tiers': {
            TicketTier.STANDARD: (300, Decimal('120.00')),
            TicketTier.PREMIUM: (30, Decimal('450.00')),
        },
        'attributes': {'field': 'data', 'speaker': 'Grace Hopper', 'expertise_level': 'advanced'},
    },
]


async def seed_events() -> None:
    organizer_id = int(os.getenv('SEED_ORGANIZER_ID', '1'))
    starts_at = datetime.now(timezone.utc) + timedelta(days=int(os.getenv('SEED_DAYS_AHEAD', '30')))

    if settings.DATABASE_BACKEND == 'postgres':
        await container.database().create_tables()

    use_case = CreateEventUseCase(uow_factory=container.unit_of_work)
    for offset, seed in enumerate(SEED_EVENTS):
        result = await use_case.execute(
            organizer_id=organizer_id,
            starts_at=starts_at + timedelta(days=offset),
            **seed,
        )
        if isinstance(result, Failure):
            print(f'   ❌ {seed["title"]}: {result.failure().message}')
            continue
        event = result.unwrap()
        print(f'   ✅ Event {event.id} "{event.title}" ({event.category})')


async def main() -> None:
    print('🌱 Seeding events...')
    print('=' * 50)
    try:
        await seed_events()
    finally:
        if settings.DATABASE_BACKEND == 'postgres':
            await container.database().dispose()
    print('=' * 50)
    print('✅ Seed completed!')


if __name__ == '__main__':
    asyncio.run(main())
