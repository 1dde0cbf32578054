from enum import StrEnum


class EventCategory(StrEnum):
    CONCERT = 'concert'
    SHOW = 'show'
    CONFERENCE = 'conference'


# Keys accepted in Event.attributes for each category
CATEGORY_ATTRIBUTE_KEYS: dict[EventCategory, frozenset[str]] = {
    EventCategory.CONCERT: frozenset({'artist', 'concert_type', 'min_age'}),
    EventCategory.SHOW: frozenset({'show_type', 'min_age'}),
    EventCategory.CONFERENCE: frozenset({'field', 'speaker', 'expertise_level'}),
}
