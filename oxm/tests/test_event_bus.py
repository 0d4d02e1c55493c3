"""
Tests for EventBus.
"""

import asyncio
import os

import pytest

from oxm import constants, exceptions
from oxm.api.events import Events
from oxm.config import Settings
from oxm.decorators import on_event
from oxm.event_bus import EventBus


@pytest.fixture
def event_bus():
    return EventBus(Settings())


def recorder():
    """Async handler that records the kwargs of each call."""
    calls = []

    async def handler(**kwargs):
        calls.append(kwargs)

    handler.calls = calls
    return handler


def test_subscribe_validation(event_bus):
    """Test validation of async handlers."""

    def sync_handler():
        pass

    with pytest.raises(exceptions.ListenerRegistrationError, match="Handler must be async"):
        event_bus.subscribe(Events.PRE_PERSIST, sync_handler)


def test_subscribe_rejects_unknown_event(event_bus):
    """A misspelled identifier fails at registration instead of never firing."""
    with pytest.raises(exceptions.UnknownEventError):
        event_bus.subscribe("prepersist", recorder())


def test_subscribe_accepts_identifier_string(event_bus):
    handler = recorder()
    assert event_bus.subscribe("prePersist", handler) is True
    assert event_bus.get_listeners(Events.PRE_PERSIST) == [handler]


def test_subscribe_duplicate_is_ignored(event_bus):
    handler = recorder()
    assert event_bus.subscribe(Events.ON_FLUSH, handler) is True
    assert event_bus.subscribe("onFlush", handler) is False
    assert len(event_bus.get_listeners(Events.ON_FLUSH)) == 1


@pytest.mark.asyncio
async def test_subscribe_priority(event_bus):
    """Test that handlers are sorted by priority."""
    call_order = []

    async def handler_low(**kwargs):
        call_order.append("low")

    async def handler_high(**kwargs):
        call_order.append("high")

    async def handler_mid(**kwargs):
        call_order.append("mid")

    async def handler_mid_late(**kwargs):
        call_order.append("mid-late")

    event_bus.subscribe(Events.PRE_UPDATE, handler_low, priority=0)
    event_bus.subscribe(Events.PRE_UPDATE, handler_high, priority=100)
    event_bus.subscribe(Events.PRE_UPDATE, handler_mid, priority=50)
    event_bus.subscribe(Events.PRE_UPDATE, handler_mid_late, priority=50)

    await event_bus.publish(Events.PRE_UPDATE, sequential=True)

    assert call_order == ["high", "mid", "mid-late", "low"]


@pytest.mark.asyncio
async def test_unsubscribe(event_bus):
    """Test unsubscribing handlers."""
    handler = recorder()

    event_bus.subscribe(Events.POST_LOAD, handler)

    # Should find and remove
    assert event_bus.unsubscribe(Events.POST_LOAD, handler) is True

    # Should not find again
    assert event_bus.unsubscribe(Events.POST_LOAD, handler) is False

    await event_bus.publish(Events.POST_LOAD)
    assert handler.calls == []


@pytest.mark.asyncio
async def test_clear_subscribers(event_bus):
    """Test clearing one event and all events."""
    flush_handler = recorder()
    load_handler = recorder()
    event_bus.subscribe(Events.ON_FLUSH, flush_handler)
    event_bus.subscribe(Events.PRE_LOAD, load_handler)

    event_bus.clear_subscribers(Events.ON_FLUSH)

    assert not event_bus.has_listeners(Events.ON_FLUSH)
    assert event_bus.has_listeners(Events.PRE_LOAD)

    event_bus.clear_subscribers()

    assert event_bus.get_listeners() == {}
    await event_bus.publish(Events.PRE_LOAD)
    assert load_handler.calls == []


@pytest.mark.asyncio
async def test_publish_sequential(event_bus):
    """Test sequential execution (await one by one)."""
    h1 = recorder()
    h2 = recorder()

    event_bus.subscribe(Events.PRE_MARSHAL, h1)
    event_bus.subscribe(Events.PRE_MARSHAL, h2)

    count = await event_bus.publish(Events.PRE_MARSHAL, sequential=True, entity="value")

    assert count == 2
    assert h1.calls == [{"entity": "value"}]
    assert h2.calls == [{"entity": "value"}]


@pytest.mark.asyncio
async def test_publish_sequential_waits_for_each_handler(event_bus):
    events = []

    async def slow(**kwargs):
        events.append("slow:start")
        await asyncio.sleep(0.01)
        events.append("slow:end")

    async def fast(**kwargs):
        events.append("fast")

    event_bus.subscribe(Events.POST_PERSIST, slow, priority=1)
    event_bus.subscribe(Events.POST_PERSIST, fast)

    await event_bus.publish(Events.POST_PERSIST, sequential=True)

    assert events == ["slow:start", "slow:end", "fast"]


@pytest.mark.asyncio
async def test_publish_parallel(event_bus):
    """Test parallel execution (gather)."""
    h1 = recorder()
    h2 = recorder()

    event_bus.subscribe(Events.POST_UNMARSHAL, h1)
    event_bus.subscribe(Events.POST_UNMARSHAL, h2)

    count = await event_bus.publish(Events.POST_UNMARSHAL, sequential=False, entity="parallel")

    assert count == 2
    assert h1.calls == [{"entity": "parallel"}]
    assert h2.calls == [{"entity": "parallel"}]


@pytest.mark.asyncio
async def test_parallel_dispatch_setting_changes_default():
    events = []

    async def slow(**kwargs):
        events.append("slow:start")
        await asyncio.sleep(0.01)
        events.append("slow:end")

    async def fast(**kwargs):
        events.append("fast")

    bus = EventBus(Settings(parallel_dispatch=True))
    bus.subscribe(Events.POST_PERSIST, slow, priority=1)
    bus.subscribe(Events.POST_PERSIST, fast)

    await bus.publish(Events.POST_PERSIST)

    assert events == ["slow:start", "fast", "slow:end"]


def test_default_settings_come_from_environment(clean_env, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    os.environ[constants.ENV_PARALLEL_DISPATCH] = "true"

    assert EventBus().settings.parallel_dispatch is True


def test_default_settings_come_from_dotenv(clean_env, tmp_path, monkeypatch):
    (tmp_path / ".env").write_text(f"{constants.ENV_PARALLEL_DISPATCH}=1\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    assert EventBus().settings.parallel_dispatch is True


def test_default_settings_without_environment(clean_env, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    assert EventBus().settings == Settings()


@pytest.mark.asyncio
async def test_publish_without_subscribers(event_bus):
    assert await event_bus.publish(Events.LOAD_CLASS_METADATA) == 0


@pytest.mark.asyncio
async def test_publish_unknown_event(event_bus):
    with pytest.raises(exceptions.UnknownEventError):
        await event_bus.publish("onflush")


@pytest.mark.asyncio
async def test_handler_error_safety(event_bus):
    """Test that one handler failing doesn't stop others."""

    async def failing_handler(**kwargs):
        raise RuntimeError("Oops")

    working_handler = recorder()

    event_bus.subscribe(Events.PRE_REMOVE, failing_handler, priority=10)
    event_bus.subscribe(Events.PRE_REMOVE, working_handler, priority=0)

    # Should not raise exception
    count = await event_bus.publish(Events.PRE_REMOVE, sequential=True)

    assert count == 1
    assert working_handler.calls == [{}]


@pytest.mark.asyncio
async def test_handler_error_safety_parallel(event_bus):
    async def failing_handler(**kwargs):
        raise RuntimeError("Oops")

    working_handler = recorder()

    event_bus.subscribe(Events.POST_REMOVE, failing_handler)
    event_bus.subscribe(Events.POST_REMOVE, working_handler)

    assert await event_bus.publish(Events.POST_REMOVE, sequential=False) == 1
    assert working_handler.calls == [{}]


# =============================================================================
# Listener and subscriber objects
# =============================================================================

class AuditListener:
    def __init__(self):
        self.seen = []

    async def pre_persist(self, document=None, **kwargs):
        self.seen.append(("pre_persist", document))

    async def post_persist(self, document=None, **kwargs):
        self.seen.append(("post_persist", document))


class TimestampSubscriber:
    def __init__(self):
        self.seen = []

    def get_subscribed_events(self):
        return [Events.PRE_UPDATE, "onFlush"]

    async def pre_update(self, **kwargs):
        self.seen.append("pre_update")

    async def on_flush(self, **kwargs):
        self.seen.append("on_flush")

    @on_event(Events.POST_LOAD, priority=5)
    @on_event(Events.POST_UNMARSHAL)
    async def hydrate(self, **kwargs):
        self.seen.append("hydrate")


@pytest.mark.asyncio
async def test_add_listener(event_bus):
    listener = AuditListener()

    added = event_bus.add_listener([Events.PRE_PERSIST, "postPersist"], listener)

    assert added == 2
    await event_bus.publish(Events.PRE_PERSIST, document="doc-1")
    await event_bus.publish(Events.POST_PERSIST, document="doc-1")
    assert listener.seen == [("pre_persist", "doc-1"), ("post_persist", "doc-1")]


def test_add_listener_single_event(event_bus):
    assert event_bus.add_listener(Events.PRE_PERSIST, AuditListener()) == 1


def test_add_listener_missing_method(event_bus):
    with pytest.raises(exceptions.ListenerRegistrationError, match="pre_remove"):
        event_bus.add_listener(Events.PRE_REMOVE, AuditListener())


@pytest.mark.asyncio
async def test_add_subscriber(event_bus):
    subscriber = TimestampSubscriber()

    added = event_bus.add_subscriber(subscriber)

    assert added == 4
    for event in (Events.PRE_UPDATE, Events.ON_FLUSH, Events.POST_LOAD, Events.POST_UNMARSHAL):
        await event_bus.publish(event)
    assert subscriber.seen == ["pre_update", "on_flush", "hydrate", "hydrate"]


def test_add_subscriber_twice_is_idempotent(event_bus):
    subscriber = TimestampSubscriber()
    event_bus.add_subscriber(subscriber)

    assert event_bus.add_subscriber(subscriber) == 0


@pytest.mark.asyncio
async def test_remove_subscriber(event_bus):
    subscriber = TimestampSubscriber()
    other = recorder()
    event_bus.add_subscriber(subscriber)
    event_bus.subscribe(Events.ON_FLUSH, other)

    assert event_bus.remove_subscriber(subscriber) == 4

    assert event_bus.get_listeners(Events.ON_FLUSH) == [other]
    await event_bus.publish(Events.POST_LOAD)
    assert subscriber.seen == []


def test_get_listeners_mapping(event_bus):
    handler = recorder()
    event_bus.subscribe(Events.PRE_LOAD, handler)

    assert event_bus.get_listeners() == {Events.PRE_LOAD: [handler]}
