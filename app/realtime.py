"""
Realtime change feed for the slots table

Repositories publish a payload after every committed slot insert, update or
delete; subscribers (WebSocket connections, tests) receive it synchronously in
publish order.
"""

import logging
from threading import Lock
from typing import Any, Callable, Optional

from .utils.dates import to_iso_string

logger = logging.getLogger(__name__)

SlotChangeCallback = Callable[[dict[str, Any]], None]


def serialize_slot(slot) -> dict[str, Any]:
    return {
        "id": slot.id,
        "start_time": to_iso_string(slot.start_time),
        "end_time": to_iso_string(slot.end_time),
        "is_available": slot.is_available,
    }


class SlotChangeFeed:
    def __init__(self):
        self._subscribers: dict[int, SlotChangeCallback] = {}
        self._next_id = 0
        self._lock = Lock()

    def subscribe(self, callback: SlotChangeCallback) -> Callable[[], None]:
        """Register a callback; returns the matching unsubscribe function"""
        with self._lock:
            subscription_id = self._next_id
            self._next_id += 1
            self._subscribers[subscription_id] = callback

        def unsubscribe() -> None:
            with self._lock:
                self._subscribers.pop(subscription_id, None)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event_type: str, new: Optional[dict] = None, old: Optional[dict] = None) -> None:
        payload = {"eventType": event_type, "table": "slots", "new": new or {}, "old": old or {}}

        with self._lock:
            callbacks = list(self._subscribers.values())

        for callback in callbacks:
            try:
                callback(payload)
            except Exception as e:
                # A broken subscriber must not fail the write that triggered it
                logger.warning(f"⚠️ Slot change subscriber failed: {e}")

    def slot_inserted(self, slot) -> None:
        self.publish("INSERT", new=serialize_slot(slot))

    def slot_updated(self, slot, old: Optional[dict] = None) -> None:
        self.publish("UPDATE", new=serialize_slot(slot), old=old or {"id": slot.id})

    def slot_deleted(self, old: dict) -> None:
        self.publish("DELETE", old=old)


slot_changes = SlotChangeFeed()
