import json

import pytest

from conftest import RecordingConnection
from rpcsession.modules.api import PushMessage
from rpcsession.modules.push import SubscriptionBus


@pytest.fixture
def session(store):
    return store.get_by_id(store.create())


@pytest.mark.asyncio
async def test_subscribe_single_topic(bus, session):
    """A single topic yields a single boolean."""
    assert await bus.subscribe(session, "news") is True
    assert await bus.subscribe(session, "news") is False


@pytest.mark.asyncio
async def test_subscribe_batch_preserves_order(bus, session):
    """Later duplicates in a batch observe earlier subscriptions of the same batch."""
    assert await bus.subscribe(session, ["a", "b", "a"]) == [True, True, False]
    assert session.list_subscriptions() == ["a", "b"]


@pytest.mark.asyncio
async def test_subscribe_empty_batch(bus, session):
    """An empty batch yields an empty list."""
    assert await bus.subscribe(session, []) == []


@pytest.mark.asyncio
async def test_unsubscribe_batch(bus, session):
    """Batch unsubscribe succeeds for every topic, known or not."""
    await bus.subscribe(session, ["a", "b"])

    assert await bus.unsubscribe(session, ["a", "zzz", "a"]) == [True, True, True]
    assert await bus.unsubscribe(session, "b") is True
    assert session.list_subscriptions() == []


@pytest.mark.asyncio
async def test_push_delegates_to_session(bus, session):
    """Bus pushes go through the session's own push."""
    conn = RecordingConnection()
    session.set_connection(conn)

    assert await bus.push(session, "t", 1) is True
    assert await bus.push_if_subscribed(session, "t", 2) is False
    assert conn.messages == [{"pushMessage": True, "subject": "t", "message": 1}]


@pytest.mark.asyncio
async def test_publish_reaches_subscribed_connected_sessions(store, bus):
    """Publish delivers only to subscribed sessions with a connection."""
    connected = []
    for _ in range(3):
        session = store.get_by_id(store.create())
        conn = RecordingConnection()
        session.set_connection(conn)
        connected.append((session, conn))

    offline = store.get_by_id(store.create())
    await offline.subscribe("news")

    await connected[0][0].subscribe("news")
    await connected[1][0].subscribe("news")
    await connected[2][0].subscribe("sports")

    delivered = await bus.publish("news", {"id": 7})

    assert delivered == 2
    assert connected[0][1].messages == [{"pushMessage": True, "subject": "news", "message": {"id": 7}}]
    assert len(connected[1][1].sent) == 1
    assert connected[2][1].sent == []


@pytest.mark.asyncio
async def test_publish_unencodable_payload_delivers_nothing(store, bus):
    """An unencodable payload is counted as undelivered for every subscriber."""
    conns = []
    for _ in range(2):
        session = store.get_by_id(store.create())
        conn = RecordingConnection()
        session.set_connection(conn)
        await session.subscribe("news")
        conns.append(conn)

    assert await bus.publish("news", object()) == 0
    assert all(conn.sent == [] for conn in conns)


@pytest.mark.asyncio
async def test_publish_to_explicit_sessions(store):
    """An explicit recipient list replaces the store snapshot."""
    bus = SubscriptionBus()
    session = store.get_by_id(store.create())
    session.set_connection(RecordingConnection())
    await session.subscribe("news")

    assert await bus.publish("news", "x", sessions=[session]) == 1


@pytest.mark.asyncio
async def test_publish_without_store():
    """Publishing without a store or recipients is an error."""
    with pytest.raises(RuntimeError):
        await SubscriptionBus().publish("news", "x")


def test_push_message_wire_format():
    """The envelope uses the pushMessage key on the wire."""
    text = PushMessage(subject="news", message={"a": [1, 2]}).to_text()
    assert json.loads(text) == {"pushMessage": True, "subject": "news", "message": {"a": [1, 2]}}


def test_push_message_accepts_alias():
    message = PushMessage.model_validate({"pushMessage": True, "subject": "s", "message": None})
    assert message.push_message is True
    assert message.subject == "s"
