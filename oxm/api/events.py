"""
OXM Events Definition

This module defines the lifecycle and marshalling event names raised by the
document mapper. Listeners and the code that raises events must use these
constants instead of raw strings so a typo can never turn into a silent
mismatch.

Usage:
    from oxm.api.events import Events

    bus.subscribe(Events.PRE_PERSIST, handler)
    await bus.publish(Events.PRE_PERSIST, document=doc)

The set is closed and append-only: identifiers are never renamed or removed
between releases (see oxm.registry for the manifest check).
"""

from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple

from .. import constants
from ..exceptions import UnknownCategoryError, UnknownEventError


class EventCategory(str, Enum):
    """Semantic group an event belongs to."""

    LIFECYCLE = "lifecycle"
    MARSHALLING = "marshalling"
    METADATA = "metadata"
    TRANSACTION = "transaction"

    def __str__(self) -> str:
        return self.value


class Events(str, Enum):
    """
    Container for all OXM events.

    Members are created once at import time. Calling ``Events(value)`` only
    looks up an existing member; new members cannot be created, assigned or
    added by subclassing.
    """

    # -------------------------------------------------------------------------
    # Document lifecycle
    # -------------------------------------------------------------------------

    # Occurs for a document before the manager's remove operation for that
    # document is executed.
    PRE_REMOVE = "preRemove"

    # Occurs for a document after it has been deleted, after the database
    # delete operations.
    POST_REMOVE = "postRemove"

    # Occurs for a document before the manager's persist operation for that
    # document is executed.
    PRE_PERSIST = "prePersist"

    # Occurs after the document has been made persistent, after the database
    # insert operations. Generated identifiers are available here.
    POST_PERSIST = "postPersist"

    # Occurs before the database update operations to document data.
    PRE_UPDATE = "preUpdate"

    # Occurs after the database update operations to document data.
    POST_UPDATE = "postUpdate"

    # Occurs before the document is loaded into the manager from the database,
    # or before a refresh is applied to it.
    PRE_LOAD = "preLoad"

    # Occurs after the document has been loaded or refreshed, but before any
    # associations are initialized. Listeners must not access associations.
    POST_LOAD = "postLoad"

    # -------------------------------------------------------------------------
    # XML entity marshalling
    # -------------------------------------------------------------------------

    # Occurs for an entity before the marshaller serializes it to XML.
    PRE_MARSHAL = "preMarshal"

    # Occurs for an entity after the marshaller has finished marshalling it.
    POST_MARSHAL = "postMarshal"

    # Occurs for an entity before the marshaller unmarshals XML into it.
    PRE_UNMARSHAL = "preUnmarshal"

    # Occurs for an entity after the marshaller has unmarshalled XML into it.
    POST_UNMARSHAL = "postUnmarshal"

    # -------------------------------------------------------------------------
    # Metadata / transaction
    # -------------------------------------------------------------------------

    # Occurs once per class, after its mapping metadata has been loaded from a
    # mapping source (annotations, xml, yaml).
    LOAD_CLASS_METADATA = "loadClassMetadata"

    # Occurs when flush() is invoked, after changes to managed documents have
    # been computed but before any database operation runs. Only raised when
    # the unit of work actually has something to do.
    ON_FLUSH = "onFlush"

    def __str__(self) -> str:
        return self.value

    @property
    def category(self) -> EventCategory:
        return _CATEGORIES[self]

    @property
    def is_pre(self) -> bool:
        return self.value.startswith(constants.PRE_PREFIX) and self.counterpart is not None

    @property
    def is_post(self) -> bool:
        return self.value.startswith(constants.POST_PREFIX) and self.counterpart is not None

    @property
    def counterpart(self) -> Optional["Events"]:
        """The post event for a pre event and vice versa, None when unpaired."""
        return _COUNTERPARTS.get(self)

    @property
    def handler_name(self) -> str:
        """Method name a listener object implements for this event."""
        return self.name.lower()

    @classmethod
    def resolve(cls, name: Any) -> "Events":
        """
        Resolve a member or identifier string to a registry member.

        Raises:
            UnknownEventError: if the name is not a registered identifier.
        """
        if isinstance(name, cls):
            return name
        try:
            return cls(name)
        except (ValueError, TypeError):
            raise UnknownEventError(name, sorted(event_names())) from None


_CATEGORIES: Dict[Events, EventCategory] = {
    Events.PRE_REMOVE: EventCategory.LIFECYCLE,
    Events.POST_REMOVE: EventCategory.LIFECYCLE,
    Events.PRE_PERSIST: EventCategory.LIFECYCLE,
    Events.POST_PERSIST: EventCategory.LIFECYCLE,
    Events.PRE_UPDATE: EventCategory.LIFECYCLE,
    Events.POST_UPDATE: EventCategory.LIFECYCLE,
    Events.PRE_LOAD: EventCategory.LIFECYCLE,
    Events.POST_LOAD: EventCategory.LIFECYCLE,
    Events.PRE_MARSHAL: EventCategory.MARSHALLING,
    Events.POST_MARSHAL: EventCategory.MARSHALLING,
    Events.PRE_UNMARSHAL: EventCategory.MARSHALLING,
    Events.POST_UNMARSHAL: EventCategory.MARSHALLING,
    Events.LOAD_CLASS_METADATA: EventCategory.METADATA,
    Events.ON_FLUSH: EventCategory.TRANSACTION,
}

# (pre, post) in firing order for the same document instance
LIFECYCLE_PAIRS: Tuple[Tuple[Events, Events], ...] = (
    (Events.PRE_PERSIST, Events.POST_PERSIST),
    (Events.PRE_REMOVE, Events.POST_REMOVE),
    (Events.PRE_UPDATE, Events.POST_UPDATE),
    (Events.PRE_LOAD, Events.POST_LOAD),
    (Events.PRE_MARSHAL, Events.POST_MARSHAL),
    (Events.PRE_UNMARSHAL, Events.POST_UNMARSHAL),
)

_COUNTERPARTS: Dict[Events, Events] = {}
for _pre, _post in LIFECYCLE_PAIRS:
    _COUNTERPARTS[_pre] = _post
    _COUNTERPARTS[_post] = _pre
del _pre, _post


def event_names() -> FrozenSet[str]:
    """All registered identifier strings."""
    return frozenset(member.value for member in Events)


def events_in_category(category: EventCategory) -> Tuple[Events, ...]:
    """
    Members of one category, in declaration order.

    Raises:
        UnknownCategoryError: if ``category`` is not an EventCategory value.
    """
    try:
        category = EventCategory(category)
    except ValueError:
        raise UnknownCategoryError(category, [c.value for c in EventCategory]) from None
    return tuple(member for member in Events if _CATEGORIES[member] is category)
