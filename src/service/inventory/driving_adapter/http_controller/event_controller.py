from typing import List

from fastapi import APIRouter, Depends, status
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.service.inventory.app.command.create_event_use_case import CreateEventUseCase
from src.service.inventory.app.command.reconcile_event_inventory_use_case import (
    ReconcileEventInventoryUseCase,
)
from src.service.inventory.app.command.update_event_use_case import UpdateEventUseCase
from src.service.inventory.app.query.get_event_use_case import GetEventUseCase
from src.service.inventory.app.query.list_events_use_case import ListEventsUseCase
from src.service.inventory.driving_adapter.http_controller.schema.event_schema import (
    EventCreateRequest,
    EventResponse,
    EventUpdateRequest,
)
from src.service.shared_kernel.driving_adapter.http_controller.client_identity import (
    get_client_id,
)
from src.service.shared_kernel.driving_adapter.http_controller.result_unwrap import (
    unwrap_or_reject,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
async def create_event(
    request: EventCreateRequest,
    organizer_id: int = Depends(get_client_id),
    use_case: CreateEventUseCase = Depends(CreateEventUseCase.depends),
) -> EventResponse:
    result = await use_case.execute(
        organizer_id=organizer_id,
        title=request.title,
        venue=request.venue,
        category=request.category,
        starts_at=request.starts_at,
        tiers={
            tier: (config.capacity, config.unit_price) for tier, config in request.tiers.items()
        },
        description=request.description,
        attributes=request.attributes,
    )
    return EventResponse.from_entity(unwrap_or_reject(result))


@router.get('', status_code=status.HTTP_200_OK)
@Logger.io
async def list_events(
    active_only: bool = True,
    use_case: ListEventsUseCase = Depends(ListEventsUseCase.depends),
) -> List[EventResponse]:
    events = await use_case.execute(active_only=active_only)
    return [EventResponse.from_entity(event) for event in events]


@router.get('/{event_id}', status_code=status.HTTP_200_OK)
@Logger.io
async def get_event(
    event_id: int,
    use_case: GetEventUseCase = Depends(GetEventUseCase.depends),
) -> EventResponse:
    """Event details with remaining tickets per tier."""
    return EventResponse.from_entity(unwrap_or_reject(await use_case.execute(event_id=event_id)))


@router.patch('/{event_id}', status_code=status.HTTP_200_OK)
@Logger.io
async def update_event(
    event_id: int,
    request: EventUpdateRequest,
    organizer_id: int = Depends(get_client_id),
    use_case: UpdateEventUseCase = Depends(UpdateEventUseCase.depends),
) -> EventResponse:
    result = await use_case.execute(
        event_id=event_id, organizer_id=organizer_id, **request.model_dump(exclude_unset=True)
    )
    return EventResponse.from_entity(unwrap_or_reject(result))


@router.post('/{event_id}/reconcile', status_code=status.HTTP_200_OK)
@Logger.io
async def reconcile_event_inventory(
    event_id: int,
    organizer_id: int = Depends(get_client_id),
    use_case: ReconcileEventInventoryUseCase = Depends(ReconcileEventInventoryUseCase.depends),
) -> EventResponse:
    """Recompute sold counters from active reservations (organizer only)."""
    with tracer.start_as_current_span('controller.reconcile_event_inventory') as span:
        span.set_attribute('event_id', event_id)
        return EventResponse.from_entity(
            unwrap_or_reject(await use_case.execute(event_id=event_id, organizer_id=organizer_id))
        )
