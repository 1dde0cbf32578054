from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field

from src.service.inventory.domain.entity.event_entity import Event
from src.service.shared_kernel.domain.enum import TIER_ORDER, EventCategory, TicketTier


class TierConfigRequest(BaseModel):
    capacity: int = Field(ge=0)
    unit_price: Decimal = Field(ge=0, decimal_places=2)


class EventCreateRequest(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            'example': {
                'title': 'Summer Nights',
                'venue': 'Riverside Arena',
                'category': 'concert',
                'starts_at': '2030-07-01T19:30:00Z',
                'description': 'Open-air concert',
                'tiers': {
                    'standard': {'capacity': 500, 'unit_price': '10.00'},
                    'vip': {'capacity': 50, 'unit_price': '25.00'},
                    'premium': {'capacity': 10, 'unit_price': '80.00'},
                },
                'attributes': {'artist': 'The Tides', 'concert_type': 'rock', 'min_age': 16},
            }
        }
    )

    title: str = Field(min_length=1)
    venue: str = Field(min_length=1)
    category: EventCategory
    starts_at: AwareDatetime
    description: str = ''
    tiers: dict[TicketTier, TierConfigRequest]
    attributes: dict[str, Any] = {}


class EventUpdateRequest(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            'example': {
                'title': 'Summer Nights (extended)',
                'capacities': {'standard': 600},
                'prices': {'vip': '30.00'},
            }
        }
    )

    title: Optional[str] = Field(default=None, min_length=1)
    venue: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    starts_at: Optional[AwareDatetime] = None
    is_active: Optional[bool] = None
    attributes: Optional[dict[str, Any]] = None
    capacities: Optional[dict[TicketTier, int]] = None
    prices: Optional[dict[TicketTier, Decimal]] = None


class TierAvailabilityResponse(BaseModel):
    tier: TicketTier
    capacity: int
    sold: int
    remaining: int
    unit_price: Decimal


class EventResponse(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            'example': {
                'id': 1,
                'organizer_id': 7,
                'title': 'Summer Nights',
                'venue': 'Riverside Arena',
                'category': 'concert',
                'starts_at': '2030-07-01T19:30:00Z',
                'description': 'Open-air concert',
                'is_active': True,
                'attributes': {'artist': 'The Tides'},
                'tiers': [
                    {
                        'tier': 'standard',
                        'capacity': 500,
                        'sold': 12,
                        'remaining': 488,
                        'unit_price': '10.00',
                    }
                ],
            }
        }
    )

    id: int
    organizer_id: int
    title: str
    venue: str
    category: EventCategory
    starts_at: datetime
    description: str
    is_active: bool
    attributes: dict[str, Any]
    tiers: list[TierAvailabilityResponse]

    @classmethod
    def from_entity(cls, event: Event) -> 'EventResponse':
        if event.id is None:
            raise ValueError('Event ID should not be None after persistence.')
        return cls(
            id=event.id,
            organizer_id=event.organizer_id,
            title=event.title,
            venue=event.venue,
            category=event.category,
            starts_at=event.starts_at,
            description=event.description,
            is_active=event.is_active,
            attributes=event.attributes,
            tiers=[
                TierAvailabilityResponse(
                    tier=tier,
                    capacity=event.tiers[tier].capacity,
                    sold=event.tiers[tier].sold,
                    remaining=event.tiers[tier].remaining,
                    unit_price=event.tiers[tier].unit_price,
                )
                for tier in TIER_ORDER
            ],
        )
