from enum import StrEnum


class TicketTier(StrEnum):
    STANDARD = 'standard'
    VIP = 'vip'
    PREMIUM = 'premium'


# Canonical order for reserving tiers and listing line items
TIER_ORDER: tuple[TicketTier, ...] = (TicketTier.STANDARD, TicketTier.VIP, TicketTier.PREMIUM)
