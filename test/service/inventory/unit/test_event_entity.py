from datetime import timedelta
from decimal import Decimal

import pytest
from returns.result import Failure, Success

from src.service.inventory.domain.value_object.tier_inventory import TierInventory
from src.service.shared_kernel.domain.booking_error import InsufficientCapacity, WindowClosedReason
from src.service.shared_kernel.domain.enum import EventCategory, TicketTier


pytestmark = pytest.mark.unit


class TestTierInventory:
    def test_remaining(self):
        assert TierInventory(capacity=10, sold=3).remaining == 7

    def test_sold_cannot_exceed_capacity(self):
        with pytest.raises(ValueError, match='exceeds capacity'):
            TierInventory(capacity=2, sold=3)

    def test_negative_values_rejected(self):
        with pytest.raises(ValueError):
            TierInventory(capacity=-1)
        with pytest.raises(ValueError):
            TierInventory(capacity=1, unit_price=Decimal('-1'))

    @pytest.mark.parametrize('quantity, expected', [(0, False), (1, True), (7, True), (8, False)])
    def test_can_reserve(self, quantity, expected):
        assert TierInventory(capacity=10, sold=3).can_reserve(quantity) is expected

    def test_release_is_floored_at_zero(self):
        assert TierInventory(capacity=10, sold=2).released(5).sold == 0

    def test_price_is_quantized(self):
        assert TierInventory(capacity=1, unit_price=Decimal('9.999')).unit_price == Decimal('10.00')


class TestEventCreate:
    def test_missing_tiers_get_no_seats(self, new_event):
        event = new_event(tiers={TicketTier.STANDARD: (10, Decimal('10'))})

        assert event.tiers[TicketTier.VIP] == TierInventory(capacity=0, unit_price=Decimal('0'))
        assert event.remaining(TicketTier.PREMIUM) == 0
        assert event.remaining(TicketTier.STANDARD) == 10

    def test_unknown_attribute_for_category_rejected(self, new_event):
        with pytest.raises(ValueError, match='Unknown attributes'):
            new_event(category=EventCategory.CONFERENCE, attributes={'artist': 'x'})

    def test_min_age_must_be_non_negative_int(self, new_event):
        with pytest.raises(ValueError, match='min_age'):
            new_event(attributes={'min_age': -1})

    def test_naive_start_time_rejected(self, new_event, now):
        with pytest.raises(ValueError, match='timezone-aware'):
            new_event(starts_at=now.replace(tzinfo=None))


class TestBookingWindow:
    def test_open_well_before_start(self, new_event, now, policy):
        event = new_event(starts_at=now + timedelta(hours=2))

        assert event.booking_window_error(now=now, policy=policy) is None

    def test_closed_exactly_at_cutoff(self, new_event, now, policy):
        """
        Given: event starts in exactly 30 minutes
        When: checking the booking window
        Then: bookings are closed (the cutoff instant belongs to the closed side)
        """
        event = new_event(starts_at=now + timedelta(minutes=30))

        error = event.booking_window_error(now=now, policy=policy)

        assert error is not None
        assert error.reason is WindowClosedReason.WITHIN_CUTOFF

    def test_open_one_second_before_cutoff(self, new_event, now, policy):
        event = new_event(starts_at=now + timedelta(minutes=30, seconds=1))

        assert event.booking_window_error(now=now, policy=policy) is None

    def test_started_event(self, new_event, now, policy):
        event = new_event(starts_at=now - timedelta(minutes=1))

        assert event.booking_window_error(now=now, policy=policy).reason is (
            WindowClosedReason.EVENT_STARTED
        )

    def test_inactive_event(self, new_event, now, policy):
        event = new_event().with_changes(is_active=False)

        assert event.booking_window_error(now=now, policy=policy).reason is (
            WindowClosedReason.EVENT_INACTIVE
        )


class TestEventInventory:
    def test_reserved_returns_new_event(self, new_event):
        event = new_event()

        result = event.reserved(TicketTier.VIP, 2)

        assert isinstance(result, Success)
        assert result.unwrap().remaining(TicketTier.VIP) == 3
        assert event.remaining(TicketTier.VIP) == 5

    def test_reserved_beyond_remaining_fails(self, new_event):
        result = new_event().reserved(TicketTier.PREMIUM, 3)

        assert result == Failure(
            InsufficientCapacity(tier=TicketTier.PREMIUM, requested=3, available=2)
        )

    def test_with_changes_keeps_sold(self, new_event):
        event = new_event().reserved(TicketTier.STANDARD, 4).unwrap()

        changed = event.with_changes(
            capacities={TicketTier.STANDARD: 20}, prices={TicketTier.STANDARD: Decimal('12')}
        )

        assert changed.tiers[TicketTier.STANDARD] == TierInventory(
            capacity=20, sold=4, unit_price=Decimal('12.00')
        )

    def test_capacity_below_sold_rejected(self, new_event):
        event = new_event().reserved(TicketTier.STANDARD, 4).unwrap()

        with pytest.raises(ValueError, match='cannot go below'):
            event.with_changes(capacities={TicketTier.STANDARD: 3})

    def test_with_sold_clamps_to_capacity(self, new_event):
        event = new_event().with_sold({TicketTier.PREMIUM: 9, TicketTier.VIP: -1})

        assert event.tiers[TicketTier.PREMIUM].sold == 2
        assert event.tiers[TicketTier.VIP].sold == 0
        assert event.tiers[TicketTier.STANDARD].sold == 0
