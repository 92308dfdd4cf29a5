"""
Real-time notifications for order and payment changes

Mutations call ``notify`` after their transaction commits. Every connected
Server-Sent Events client owns a queue; ``notify`` fans the event out to
all of them. Delivery is best effort: a failure here is logged and never
reaches the caller of the mutation.
"""

import asyncio
import json
import time
from dataclasses import dataclass, field
from itertools import count
from typing import Any, Dict, Optional, Tuple

import structlog

logger = structlog.get_logger()

ORDER_CREATED = "order_created"
ORDER_UPDATED = "order_updated"
ORDER_STATUS_CHANGED = "order_status_changed"
PAYMENT_STATUS_CHANGED = "payment_status_changed"
CONNECTED = "connected"

SUBSCRIBER_QUEUE_SIZE = 100


@dataclass
class Event:
    type: str
    data: Any
    id: str = field(default_factory=lambda: str(int(time.time() * 1000)))

    def to_sse(self) -> str:
        """Render as one Server-Sent Events message"""
        return f"id: {self.id}\nevent: {self.type}\ndata: {json.dumps(self.data, default=str)}\n\n"


class EventBroadcaster:
    """Fans events out to subscriber queues"""

    def __init__(self, queue_size: int = SUBSCRIBER_QUEUE_SIZE):
        self._queue_size = queue_size
        self._subscribers: Dict[str, asyncio.Queue] = {}
        self._ids = count(1)

    def subscribe(self) -> Tuple[str, asyncio.Queue]:
        client_id = f"client_{next(self._ids)}_{int(time.time() * 1000)}"
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        queue.put_nowait(Event(CONNECTED, {"client_id": client_id}))
        self._subscribers[client_id] = queue
        logger.debug("Event subscriber connected", client_id=client_id, clients=len(self._subscribers))
        return client_id, queue

    def unsubscribe(self, client_id: str) -> None:
        if self._subscribers.pop(client_id, None) is not None:
            logger.debug("Event subscriber disconnected", client_id=client_id, clients=len(self._subscribers))

    @property
    def client_count(self) -> int:
        return len(self._subscribers)

    def broadcast(self, event: Event) -> None:
        dropped = []
        for client_id, queue in self._subscribers.items():
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                dropped.append(client_id)

        # Subscribers that stopped draining their queue are disconnected
        for client_id in dropped:
            logger.warning("Dropping slow event subscriber", client_id=client_id)
            self.unsubscribe(client_id)

    def close_all(self) -> None:
        self._subscribers.clear()


broadcaster = EventBroadcaster()


def notify(event_type: str, data: Any, event_id: Optional[str] = None) -> None:
    """Broadcast an event; never raises"""
    try:
        event = Event(event_type, data)
        if event_id:
            event.id = event_id
        broadcaster.broadcast(event)
    except Exception as e:
        logger.error("Failed to broadcast event", event_type=event_type, error=str(e))


def order_created(order: dict) -> None:
    notify(ORDER_CREATED, {"order": order}, f"order_created_{int(time.time() * 1000)}")


def order_updated(order_id, order: dict) -> None:
    notify(ORDER_UPDATED, {"order_id": str(order_id), "updates": order}, f"order_updated_{order_id}_{int(time.time() * 1000)}")


def order_status_changed(order_id, status: str) -> None:
    notify(ORDER_STATUS_CHANGED, {"order_id": str(order_id), "status": status}, f"order_status_{order_id}_{int(time.time() * 1000)}")


def payment_status_changed(order_id, status: str) -> None:
    notify(PAYMENT_STATUS_CHANGED, {"order_id": str(order_id), "status": status}, f"payment_{order_id}_{int(time.time() * 1000)}")
