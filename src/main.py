"""
Production FastAPI Application

Ticket reservations, payments and the background payment task group.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio
from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from src.platform.app_factory import create_app
from src.platform.config.core_setting import settings
from src.platform.config.di import container
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig
from src.service.inventory.app.command.reconcile_event_inventory_use_case import (
    ReconcileEventInventoryUseCase,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown."""
    Logger.base.info('🚀 [Ticketing Service] Starting up...')

    tracing = TracingConfig(service_name='tiered-ticketing')
    tracing.setup()
    Logger.base.info('📊 [Ticketing Service] OpenTelemetry tracing configured')

    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Ticketing Service] Dependency injection wired')

    if settings.DATABASE_BACKEND == 'postgres':
        database = container.database()
        tracing.instrument_sqlalchemy(engine=database.engine)
        await database.create_tables()
        Logger.base.info('🗄️  [Ticketing Service] Database engine ready + instrumented')
    else:
        Logger.base.warning('🧪 [Ticketing Service] Using in-memory storage, data is not persisted')

    if settings.RECONCILE_INVENTORY_ON_STARTUP:
        await ReconcileEventInventoryUseCase(uow_factory=container.unit_of_work).execute_all()

    # Background payments run here; shutdown waits for in-flight charges
    async with anyio.create_task_group() as tg:
        container.task_group.override(tg)
        Logger.base.info('✅ [Ticketing Service] Ready to serve requests')

        yield

        Logger.base.info('🛑 [Ticketing Service] Shutting down...')
        tg.cancel_scope.cancel()

    container.task_group.reset_override()

    if settings.DATABASE_BACKEND == 'postgres':
        await container.database().dispose()
        Logger.base.info('🗄️  [Ticketing Service] Database engine disposed')

    tracing.shutdown()
    container.unwire()

    Logger.base.info('👋 [Ticketing Service] Shutdown complete')


app = create_app(lifespan=lifespan)


@app.get('/')
async def root() -> RedirectResponse:
    """Root endpoint - redirect to docs."""
    return RedirectResponse(url='/docs')
