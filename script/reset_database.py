#!/usr/bin/env python3
"""
Database Reset Script

1. Drop & recreate the configured PostgreSQL database
2. Run `alembic upgrade head`

Sample events are seeded separately: `python script/seed_data.py`
"""

import asyncio
import subprocess

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine

from src.platform.config.core_setting import settings
from src.platform.constant.path import BASE_DIR


async def recreate_database() -> None:
    url = make_url(settings.DATABASE_URL_ASYNC)
    db_name = url.database
    admin_engine = create_async_engine(
        url.set(database='postgres'), isolation_level='AUTOCOMMIT'
    )
    try:
        async with admin_engine.connect() as conn:
            await conn.execute(
                text(
                    'SELECT pg_terminate_backend(pid) FROM pg_stat_activity '
                    'WHERE datname = :name AND pid <> pg_backend_pid()'
                ),
                {'name': db_name},
            )
            await conn.execute(text(f'DROP DATABASE IF EXISTS "{db_name}"'))
            print(f"   ✅ Database '{db_name}' dropped")
            await conn.execute(text(f'CREATE DATABASE "{db_name}"'))
            print(f"   ✅ Database '{db_name}' created")
    finally:
        await admin_engine.dispose()


def run_migrations() -> None:
    print("   🔄 Running 'alembic upgrade head'...")
    result = subprocess.run(
        ['alembic', 'upgrade', 'head'], cwd=BASE_DIR, capture_output=True, text=True
    )
    if result.returncode != 0:
        print(f'   📋 STDERR: {result.stderr}')
        raise RuntimeError(f'Alembic migration failed with return code {result.returncode}')
    print('   ✅ Database migrations completed')


async def main() -> None:
    print('🔄 Starting database reset...')
    print('=' * 50)
    try:
        await recreate_database()
        run_migrations()
    except Exception as e:
        print(f'❌ Reset failed: {e}')
        raise SystemExit(1) from e
    print('=' * 50)
    print('✅ Database reset completed!')


if __name__ == '__main__':
    asyncio.run(main())
