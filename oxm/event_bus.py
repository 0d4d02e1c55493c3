"""
Event Bus - listener registry and dispatcher for OXM events

Listeners subscribe to members of the event registry; the persistence and
marshalling engine publishes them. Event names are validated on both sides,
so a misspelled identifier fails loudly instead of never firing.

Features:
- Async handlers only
- Priority ordering (higher first, ties in registration order)
- Sequential or concurrent dispatch
- Error isolation: a failing handler never stops the others
"""

import asyncio
import inspect
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, Union

from loguru import logger

from . import constants
from . import exceptions
from .api.events import Events
from .config import Settings, load_settings

logger = logger.bind(name=__name__)

# Type aliases
EventHandler = Callable[..., Awaitable[Any]]
EventLike = Union[Events, str]


def _is_async_handler(handler: Any) -> bool:
    if inspect.iscoroutinefunction(handler):
        return True
    return inspect.iscoroutinefunction(getattr(handler, "__call__", None))


class EventBus:
    """
    Registry of listeners keyed by Events members.

    Handlers receive the event context as keyword arguments:

        async def on_pre_persist(document, manager):
            ...

        bus.subscribe(Events.PRE_PERSIST, on_pre_persist)
        await bus.publish(Events.PRE_PERSIST, document=doc, manager=dm)
    """

    def __init__(self, settings: Optional[Settings] = None):
        # Without explicit settings the OXM_* environment decides the defaults
        self.settings = settings or load_settings()
        self._subscribers: Dict[Events, List[Tuple[int, EventHandler]]] = defaultdict(list)

    # =========================================================================
    # Registration
    # =========================================================================

    def subscribe(
        self,
        event: EventLike,
        handler: EventHandler,
        priority: int = constants.DEFAULT_PRIORITY,
    ) -> bool:
        """
        Subscribe an async handler to an event.

        Returns False if the handler was already subscribed to that event.

        Raises:
            UnknownEventError: if ``event`` is not a registered identifier.
            ListenerRegistrationError: if ``handler`` is not async.
        """
        resolved = Events.resolve(event)
        if not _is_async_handler(handler):
            raise exceptions.ListenerRegistrationError(resolved, "Handler must be async")

        entries = self._subscribers[resolved]
        if any(existing == handler for _, existing in entries):
            logger.debug(f"Handler {_handler_name(handler)} already subscribed to {resolved}, skipping.")
            return False

        entries.append((priority, handler))
        entries.sort(key=lambda entry: -entry[0])
        logger.debug(f"Subscribed {_handler_name(handler)} to {resolved} (priority={priority})")
        return True

    def unsubscribe(self, event: EventLike, handler: EventHandler) -> bool:
        """Remove a handler. Returns False if it was not subscribed."""
        resolved = Events.resolve(event)
        entries = self._subscribers.get(resolved, [])
        for index, (_, existing) in enumerate(entries):
            if existing == handler:
                del entries[index]
                logger.debug(f"Unsubscribed {_handler_name(handler)} from {resolved}")
                return True
        return False

    def clear_subscribers(self, event: Optional[EventLike] = None) -> None:
        """Remove all handlers of one event, or of every event."""
        if event is None:
            count = sum(len(entries) for entries in self._subscribers.values())
            self._subscribers.clear()
            logger.info(f"EventBus: cleared {count} subscribers")
            return

        resolved = Events.resolve(event)
        self._subscribers.pop(resolved, None)

    def add_listener(
        self,
        events: Union[EventLike, Iterable[EventLike]],
        listener: Any,
        priority: int = constants.DEFAULT_PRIORITY,
    ) -> int:
        """
        Register a listener object for one or more events.

        For each event the listener must implement the method named by
        ``Events.handler_name`` (e.g. ``pre_persist`` for prePersist).
        Returns the number of newly registered handlers.
        """
        if isinstance(events, (str, Events)):
            events = [events]

        added = 0
        for event in events:
            resolved = Events.resolve(event)
            method = getattr(listener, resolved.handler_name, None)
            if method is None:
                raise exceptions.ListenerRegistrationError(
                    resolved,
                    f"{type(listener).__name__} has no method '{resolved.handler_name}'",
                )
            if self.subscribe(resolved, method, priority):
                added += 1
        return added

    def add_subscriber(self, subscriber: Any) -> int:
        """
        Register every handler a subscriber object declares.

        Declarations come from methods tagged with @on_event and, if present,
        from ``get_subscribed_events()``. Returns the number of newly
        registered handlers.
        """
        added = 0
        for name, attr in inspect.getmembers(type(subscriber)):
            for meta in getattr(attr, "_event_meta", ()):
                if self.subscribe(meta["event"], getattr(subscriber, name), meta["priority"]):
                    added += 1

        get_subscribed_events = getattr(subscriber, "get_subscribed_events", None)
        if callable(get_subscribed_events):
            added += self.add_listener(get_subscribed_events(), subscriber)

        logger.info(f"Registered subscriber {type(subscriber).__name__} ({added} handlers)")
        return added

    def remove_subscriber(self, subscriber: Any) -> int:
        """Remove every handler bound to ``subscriber``. Returns the count removed."""
        removed = 0
        for entries in self._subscribers.values():
            kept = [
                (priority, handler)
                for priority, handler in entries
                if getattr(handler, "__self__", None) is not subscriber
            ]
            removed += len(entries) - len(kept)
            entries[:] = kept
        return removed

    # =========================================================================
    # Introspection
    # =========================================================================

    def has_listeners(self, event: EventLike) -> bool:
        return bool(self._subscribers.get(Events.resolve(event)))

    def get_listeners(
        self, event: Optional[EventLike] = None
    ) -> Union[List[EventHandler], Dict[Events, List[EventHandler]]]:
        """Handlers of one event in dispatch order, or a mapping of all events that have any."""
        if event is not None:
            return [handler for _, handler in self._subscribers.get(Events.resolve(event), [])]

        return {
            resolved: [handler for _, handler in entries]
            for resolved, entries in self._subscribers.items()
            if entries
        }

    # =========================================================================
    # Dispatch
    # =========================================================================

    async def publish(
        self,
        event: EventLike,
        sequential: Optional[bool] = None,
        **kwargs: Any,
    ) -> int:
        """
        Invoke every handler subscribed to ``event`` with ``kwargs``.

        Args:
            event: Event to raise.
            sequential: Await handlers one by one in priority order. Defaults
                to the opposite of ``settings.parallel_dispatch``.

        Returns:
            Number of handlers that completed without raising.
        """
        resolved = Events.resolve(event)
        handlers = [handler for _, handler in self._subscribers.get(resolved, [])]
        if not handlers:
            logger.debug(f"Event {resolved} published but no subscribers.")
            return 0

        if sequential is None:
            sequential = not self.settings.parallel_dispatch

        logger.debug(f"Dispatching {resolved} to {len(handlers)} handler(s) (sequential={sequential})")

        if sequential:
            results = []
            for handler in handlers:
                results.append(await self._safe_exec(handler, resolved, **kwargs))
        else:
            results = await asyncio.gather(
                *(self._safe_exec(handler, resolved, **kwargs) for handler in handlers)
            )

        return sum(1 for ok in results if ok)

    async def _safe_exec(self, handler: EventHandler, event: Events, **kwargs: Any) -> bool:
        try:
            await handler(**kwargs)
            return True
        except Exception as e:
            logger.exception(f"Event handler {_handler_name(handler)} failed for '{event}': {e}")
            return False


def _handler_name(handler: Any) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)
