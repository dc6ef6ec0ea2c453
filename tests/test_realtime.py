import asyncio
from datetime import datetime, timezone
from types import SimpleNamespace

from app.realtime import SlotChangeFeed, serialize_slot, slot_changes
from app.routes.realtime import slot_updates


def make_slot(**overrides):
    fields = {
        "id": "slot-1",
        "start_time": datetime(2024, 3, 25, 14, tzinfo=timezone.utc),
        "end_time": datetime(2024, 3, 25, 15, tzinfo=timezone.utc),
        "is_available": True,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


def test_serialize_slot():
    assert serialize_slot(make_slot()) == {
        "id": "slot-1",
        "start_time": "2024-03-25T14:00:00.000Z",
        "end_time": "2024-03-25T15:00:00.000Z",
        "is_available": True,
    }


def test_payload_shape():
    feed = SlotChangeFeed()
    received = []
    feed.subscribe(received.append)

    feed.slot_updated(make_slot(is_available=False), old={"id": "slot-1", "is_available": True})

    assert received == [
        {
            "eventType": "UPDATE",
            "table": "slots",
            "new": serialize_slot(make_slot(is_available=False)),
            "old": {"id": "slot-1", "is_available": True},
        }
    ]


def test_unsubscribe_stops_delivery():
    feed = SlotChangeFeed()
    received = []
    unsubscribe = feed.subscribe(received.append)
    assert feed.subscriber_count == 1

    unsubscribe()
    feed.slot_deleted({"id": "slot-1"})

    assert received == []
    assert feed.subscriber_count == 0


def test_failing_subscriber_does_not_block_others():
    feed = SlotChangeFeed()
    received = []

    def broken(payload):
        raise RuntimeError("socket closed")

    feed.subscribe(broken)
    feed.subscribe(received.append)

    feed.slot_inserted(make_slot())

    assert [event["eventType"] for event in received] == ["INSERT"]


def test_websocket_streams_changes(client):
    with client.websocket_connect("/realtime/slots") as websocket:
        assert slot_changes.subscriber_count == 1
        slot_changes.slot_deleted({"id": "slot-1"})

        assert websocket.receive_json() == {
            "eventType": "DELETE",
            "table": "slots",
            "new": {},
            "old": {"id": "slot-1"},
        }


class BrokenSocket:
    """Accepts, then fails on every send and never receives"""

    def __init__(self):
        self.accepted = asyncio.Event()

    async def accept(self):
        self.accepted.set()

    async def send_json(self, payload):
        raise RuntimeError("connection reset")

    async def receive_text(self):
        await asyncio.Event().wait()


def test_failed_send_ends_the_connection():
    async def scenario():
        websocket = BrokenSocket()
        handler = asyncio.create_task(slot_updates(websocket))
        await websocket.accepted.wait()

        slot_changes.slot_deleted({"id": "slot-1"})
        await asyncio.wait_for(handler, timeout=2)

    asyncio.run(scenario())

    assert slot_changes.subscriber_count == 0
