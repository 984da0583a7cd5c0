"""
EventBus - in-process notification fan-out

Mutations publish small events ("post-notice", "leave-status"). The bus
keeps a bounded history and pushes each event to every open stream
subscriber; a slow subscriber loses its oldest queued events rather than
blocking publishers.
"""

from typing import Dict, List, Optional, Any, Set
from dataclasses import dataclass, field
from datetime import datetime
import asyncio
import threading
import uuid

from app.core.config import settings
from app.core.logging_config import logger


@dataclass
class BusEvent:
    """Single published event"""
    topic: str
    payload: Dict[str, Any] = field(default_factory=dict)
    actor_id: Optional[str] = None
    actor_role: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "topic": self.topic,
            "payload": self.payload,
            "actor_id": self.actor_id,
            "actor_role": self.actor_role,
            "timestamp": self.timestamp.isoformat(),
        }


class EventBus:
    """
    Fan-out of published events to stream subscribers.

    Singleton pattern - one bus for the entire application.
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._history: List[BusEvent] = []
                    cls._instance._subscribers: Set[asyncio.Queue] = set()
        return cls._instance

    def publish(self, topic: str, payload: Optional[Dict[str, Any]] = None,
                actor_id: Optional[str] = None, actor_role: Optional[str] = None) -> BusEvent:
        event = BusEvent(topic=topic, payload=payload or {}, actor_id=actor_id, actor_role=actor_role)

        self._history.append(event)
        if len(self._history) > settings.EVENT_HISTORY_SIZE:
            self._history = self._history[-settings.EVENT_HISTORY_SIZE:]

        for queue in list(self._subscribers):
            if queue.full():
                # Drop the oldest event for this subscriber
                queue.get_nowait()
            queue.put_nowait(event)

        logger.log_event_delivery(topic, len(self._subscribers), event_id=event.id)
        return event

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=settings.EVENT_QUEUE_SIZE)
        self._subscribers.add(queue)
        logger.debug(f"[EventBus] Subscriber added ({len(self._subscribers)} open)")
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)
        logger.debug(f"[EventBus] Subscriber removed ({len(self._subscribers)} open)")

    def recent(self, topic: Optional[str] = None, limit: int = 50) -> List[BusEvent]:
        events = [e for e in self._history if topic is None or e.topic == topic]
        return events[-limit:]

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def reset(self) -> None:
        """Forget history and subscribers (used between tests)"""
        self._history = []
        self._subscribers = set()


# Global singleton instance
event_bus = EventBus()
