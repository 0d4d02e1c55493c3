"""
OXM - lifecycle event vocabulary and listener dispatch for the document mapper.
"""

from .api.events import LIFECYCLE_PAIRS, EventCategory, Events, event_names, events_in_category
from .config import Settings, load_settings
from .decorators import on_event
from .event_bus import EventBus
from .exceptions import OXMError, UnknownEventError

__version__ = "1.0.0"

__all__ = [
    "LIFECYCLE_PAIRS",
    "EventBus",
    "EventCategory",
    "Events",
    "OXMError",
    "Settings",
    "UnknownEventError",
    "event_names",
    "events_in_category",
    "load_settings",
    "on_event",
]
