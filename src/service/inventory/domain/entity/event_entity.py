from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Mapping, Optional

import attrs
from returns.result import Failure, Result, Success

from src.platform.logging.loguru_io import Logger
from src.service.inventory.domain.value_object.tier_inventory import TierInventory
from src.service.shared_kernel.domain.booking_error import (
    BookingWindowClosed,
    InsufficientCapacity,
    WindowClosedReason,
)
from src.service.shared_kernel.domain.booking_policy import BookingPolicy
from src.service.shared_kernel.domain.enum import TIER_ORDER, EventCategory, TicketTier
from src.service.shared_kernel.domain.enum.event_category import CATEGORY_ATTRIBUTE_KEYS


def _validate_non_empty_string(instance: object, attribute: 'attrs.Attribute[str]', value: str) -> None:
    if not value or not value.strip():
        raise ValueError(f'{attribute.name} must not be empty')


def _validate_aware(instance: object, attribute: 'attrs.Attribute[datetime]', value: datetime) -> None:
    if value.tzinfo is None:
        raise ValueError(f'{attribute.name} must be timezone-aware')


def _validate_tiers(
    instance: object, attribute: 'attrs.Attribute[dict]', value: dict[TicketTier, TierInventory]
) -> None:
    missing = set(TIER_ORDER) - set(value)
    if missing:
        raise ValueError(f'tiers missing: {sorted(missing)}')


def validate_category_attributes(category: EventCategory, attributes: Mapping[str, Any]) -> None:
    unknown = set(attributes) - CATEGORY_ATTRIBUTE_KEYS[category]
    if unknown:
        raise ValueError(f'Unknown attributes for {category}: {", ".join(sorted(unknown))}')
    min_age = attributes.get('min_age')
    if min_age is not None and (not isinstance(min_age, int) or min_age < 0):
        raise ValueError('min_age must be a non-negative integer')


@attrs.define
class Event:
    """
    A scheduled event and its per-tier inventory.

    The category is a tag; category-specific details live in ``attributes``.
    Sold counters only move through ``reserved`` / ``released`` (and reconcile);
    ``with_changes`` edits everything else.
    """

    organizer_id: int
    title: str = attrs.field(validator=_validate_non_empty_string)
    venue: str = attrs.field(validator=_validate_non_empty_string)
    category: EventCategory = attrs.field(converter=EventCategory)
    starts_at: datetime = attrs.field(validator=_validate_aware)
    tiers: dict[TicketTier, TierInventory] = attrs.field(validator=_validate_tiers)
    description: str = ''
    attributes: dict[str, Any] = attrs.field(factory=dict)
    is_active: bool = True
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        organizer_id: int,
        title: str,
        venue: str,
        category: EventCategory,
        starts_at: datetime,
        tiers: Mapping[TicketTier, tuple[int, Decimal]],
        description: str = '',
        attributes: Optional[Mapping[str, Any]] = None,
    ) -> 'Event':
        """Build a new event from (capacity, unit_price) per tier; absent tiers get no seats."""
        category = EventCategory(category)
        attributes = dict(attributes or {})
        validate_category_attributes(category, attributes)

        now = datetime.now(timezone.utc)
        return cls(
            organizer_id=organizer_id,
            title=title,
            venue=venue,
            category=category,
            starts_at=starts_at,
            tiers={
                tier: TierInventory(
                    capacity=tiers[tier][0] if tier in tiers else 0,
                    unit_price=tiers[tier][1] if tier in tiers else Decimal('0'),
                )
                for tier in TIER_ORDER
            },
            description=description,
            attributes=attributes,
            created_at=now,
            updated_at=now,
        )

    def remaining(self, tier: TicketTier) -> int:
        return self.tiers[tier].remaining

    def price_snapshot(self) -> dict[TicketTier, Decimal]:
        return {tier: inventory.unit_price for tier, inventory in self.tiers.items()}

    def booking_window_error(
        self, *, now: datetime, policy: BookingPolicy
    ) -> Optional[BookingWindowClosed]:
        """Return why booking is closed at ``now``, or None while it is open."""
        if not self.is_active:
            reason = WindowClosedReason.EVENT_INACTIVE
        elif now >= self.starts_at:
            reason = WindowClosedReason.EVENT_STARTED
        elif now >= policy.booking_closes_at(self.starts_at):
            reason = WindowClosedReason.WITHIN_CUTOFF
        else:
            return None
        return BookingWindowClosed(reason=reason, starts_at=self.starts_at)

    def reserved(self, tier: TicketTier, quantity: int) -> Result['Event', InsufficientCapacity]:
        inventory = self.tiers[tier]
        if not inventory.can_reserve(quantity):
            return Failure(
                InsufficientCapacity(tier=tier, requested=quantity, available=inventory.remaining)
            )
        return Success(self._with_tier(tier, inventory.reserved(quantity)))

    def released(self, tier: TicketTier, quantity: int) -> 'Event':
        return self._with_tier(tier, self.tiers[tier].released(quantity))

    def with_sold(self, sold: Mapping[TicketTier, int]) -> 'Event':
        """Overwrite sold counters (reconciliation), clamped to capacity."""
        tiers = {
            tier: attrs.evolve(inv, sold=min(inv.capacity, max(0, sold.get(tier, 0))))
            for tier, inv in self.tiers.items()
        }
        return attrs.evolve(self, tiers=tiers, updated_at=datetime.now(timezone.utc))

    def with_changes(
        self,
        *,
        title: Optional[str] = None,
        venue: Optional[str] = None,
        description: Optional[str] = None,
        starts_at: Optional[datetime] = None,
        is_active: Optional[bool] = None,
        attributes: Optional[Mapping[str, Any]] = None,
        capacities: Optional[Mapping[TicketTier, int]] = None,
        prices: Optional[Mapping[TicketTier, Decimal]] = None,
    ) -> 'Event':
        """
        Apply an organizer edit. Sold counters are carried over untouched;
        a capacity below the current sold count raises ValueError.
        """
        if attributes is not None:
            validate_category_attributes(self.category, attributes)

        tiers = dict(self.tiers)
        for tier, capacity in (capacities or {}).items():
            if capacity < tiers[tier].sold:
                raise ValueError(
                    f'{tier} capacity cannot go below the {tiers[tier].sold} tickets already sold'
                )
            tiers[tier] = attrs.evolve(tiers[tier], capacity=capacity)
        for tier, price in (prices or {}).items():
            tiers[tier] = attrs.evolve(tiers[tier], unit_price=price)

        return attrs.evolve(
            self,
            title=self.title if title is None else title,
            venue=self.venue if venue is None else venue,
            description=self.description if description is None else description,
            starts_at=self.starts_at if starts_at is None else starts_at,
            is_active=self.is_active if is_active is None else is_active,
            attributes=self.attributes if attributes is None else dict(attributes),
            tiers=tiers,
            updated_at=datetime.now(timezone.utc),
        )

    def _with_tier(self, tier: TicketTier, inventory: TierInventory) -> 'Event':
        return attrs.evolve(self, tiers={**self.tiers, tier: inventory})
