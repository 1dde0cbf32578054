from typing import Annotated

from fastapi import Header
from opentelemetry import trace


async def get_client_id(
    client_id: Annotated[int, Header(alias='X-Client-Id', gt=0)],
) -> int:
    """Caller identity as asserted by the upstream gateway."""
    trace.get_current_span().set_attribute('client.id', client_id)
    return client_id
