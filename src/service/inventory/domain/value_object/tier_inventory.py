from decimal import Decimal

import attrs

from src.service.shared_kernel.domain.booking_policy import to_money


def _non_negative(instance: object, attribute: 'attrs.Attribute[int]', value: int) -> None:
    if value < 0:
        raise ValueError(f'{attribute.name} must be >= 0, got {value}')


def _non_negative_price(instance: object, attribute: 'attrs.Attribute[Decimal]', value: Decimal) -> None:
    if value < 0:
        raise ValueError(f'{attribute.name} must be >= 0, got {value}')


@attrs.frozen
class TierInventory:
    """Capacity, sold counter and unit price of one ticket tier. Holds 0 <= sold <= capacity."""

    capacity: int = attrs.field(validator=_non_negative)
    sold: int = attrs.field(default=0, validator=_non_negative)
    unit_price: Decimal = attrs.field(default=Decimal('0'), converter=to_money, validator=_non_negative_price)

    @sold.validator
    def _sold_within_capacity(self, attribute: 'attrs.Attribute[int]', value: int) -> None:
        if value > self.capacity:
            raise ValueError(f'sold ({value}) exceeds capacity ({self.capacity})')

    @property
    def remaining(self) -> int:
        return max(0, self.capacity - self.sold)

    def can_reserve(self, quantity: int) -> bool:
        return 0 < quantity <= self.remaining

    def reserved(self, quantity: int) -> 'TierInventory':
        return attrs.evolve(self, sold=self.sold + quantity)

    def released(self, quantity: int) -> 'TierInventory':
        # Floored at zero: releasing more than sold never goes negative
        return attrs.evolve(self, sold=max(0, self.sold - quantity))
