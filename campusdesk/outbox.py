"""
Event Outbox - notification side-channel

Mutations publish their notification events here *after* the primary
call has succeeded. Delivery is best effort:

    workflow.reject(...)  ──►  API (must succeed)
                          ──►  outbox.publish("leave-status", {...})
                                 ├─ local subscribers
                                 └─ sender (POST /events)  ── failure is logged, never raised

Undelivered events stay pending and can be retried with flush().
"""

import asyncio
import json
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional

from campusdesk.exceptions import get_error_message
from campusdesk.logging_config import logger


class Topics:
    """Topics emitted by the console"""
    POST_NOTICE = "post-notice"
    LEAVE_STATUS = "leave-status"


@dataclass
class OutboxEvent:
    topic: str
    payload: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=datetime.utcnow)
    attempts: int = 0
    delivered: bool = False
    last_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "topic": self.topic,
            "payload": self.payload,
            "created_at": self.created_at.isoformat(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


Sender = Callable[[str, Dict[str, Any]], Awaitable[Any]]
Subscriber = Callable[[OutboxEvent], Any]


class EventOutbox:
    """
    Fire-and-forget publisher.

    publish() never raises: a failing sender or subscriber is logged and
    reflected in the returned event's `delivered`/`last_error` fields.
    """

    def __init__(self, sender: Optional[Sender] = None, max_pending: int = 100):
        self._sender = sender
        self._max_pending = max_pending
        self._pending: List[OutboxEvent] = []
        self._subscribers: Dict[str, List[Subscriber]] = defaultdict(list)
        self._published_count = 0

    def subscribe(self, topic: str, handler: Subscriber) -> None:
        """Subscribe to a topic, or "*" for all"""
        self._subscribers[topic].append(handler)

    def unsubscribe(self, topic: str, handler: Subscriber) -> None:
        if handler in self._subscribers[topic]:
            self._subscribers[topic].remove(handler)

    async def publish(self, topic: str, payload: Optional[Dict[str, Any]] = None) -> OutboxEvent:
        event = OutboxEvent(topic=topic, payload=dict(payload or {}))
        self._published_count += 1

        await self._notify_subscribers(event)
        await self._deliver(event)

        if not event.delivered and self._sender is not None:
            self._pending.append(event)
            if len(self._pending) > self._max_pending:
                dropped = self._pending.pop(0)
                logger.warning(f"[Outbox] Dropping undelivered {dropped.topic} event {dropped.id}")
        return event

    async def _notify_subscribers(self, event: OutboxEvent) -> None:
        handlers = list(self._subscribers.get(event.topic, [])) + list(self._subscribers.get("*", []))
        for handler in handlers:
            try:
                result = handler(event)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                logger.error(f"[Outbox] Subscriber error for {event.topic}: {e}")

    async def _deliver(self, event: OutboxEvent) -> None:
        if self._sender is None:
            event.delivered = True
            return
        event.attempts += 1
        try:
            await self._sender(event.topic, event.payload)
        except Exception as e:
            event.last_error = get_error_message(e, "Event delivery failed")
            logger.log_event_delivery(event.topic, False, error=event.last_error, event_id=event.id)
            return
        event.delivered = True
        event.last_error = None
        logger.log_event_delivery(event.topic, True, event_id=event.id)

    def pending(self) -> List[OutboxEvent]:
        return list(self._pending)

    async def flush(self) -> int:
        """Retry undelivered events; returns how many went through"""
        delivered = 0
        remaining = []
        for event in self._pending:
            await self._deliver(event)
            if event.delivered:
                delivered += 1
            else:
                remaining.append(event)
        self._pending = remaining
        return delivered

    def get_stats(self) -> Dict[str, Any]:
        return {
            "published": self._published_count,
            "pending": len(self._pending),
            "topics": sorted(t for t, handlers in self._subscribers.items() if handlers),
        }
