"""
Decorators for OXM event listeners.

Methods tagged with @on_event are picked up by EventBus.add_subscriber().
"""

import inspect
from functools import wraps
from typing import Any, Callable, Union

from . import constants
from . import exceptions
from .api.events import Events


def on_event(event: Union[Events, str], priority: int = constants.DEFAULT_PRIORITY) -> Callable:
    """
    Decorator to subscribe a method to a lifecycle event.

    Args:
        event: An Events member or its identifier string. Unknown names raise
            UnknownEventError when the decorator is applied.
        priority: Higher priorities run first.
    """
    resolved = Events.resolve(event)

    def decorator(func: Callable) -> Callable:
        if not inspect.iscoroutinefunction(func):
            raise exceptions.ListenerRegistrationError(resolved, "Handler must be async")

        # A single method may listen to several events
        if not hasattr(func, "_event_meta"):
            func._event_meta = []

        func._event_meta.append({
            "event": resolved,
            "priority": priority,
        })

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            return await func(*args, **kwargs)
        return wrapper
    return decorator
