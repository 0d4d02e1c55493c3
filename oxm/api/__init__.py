"""Public event vocabulary shared by event producers and listeners."""

from .events import (
    LIFECYCLE_PAIRS,
    EventCategory,
    Events,
    event_names,
    events_in_category,
)

__all__ = [
    "LIFECYCLE_PAIRS",
    "EventCategory",
    "Events",
    "event_names",
    "events_in_category",
]
