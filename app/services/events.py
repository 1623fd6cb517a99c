"""
Event System for Book Changes

Publishes a notification for every book create, update and delete to the
event topic (a Redis pub/sub channel).

Features:
- Event types for the three book mutations
- Bounded in-memory queue drained by a background worker thread
- Pluggable sink; Redis pub/sub in production
- Fire-and-forget: publishing never blocks and never raises

Usage:
    publisher = EventPublisher(RedisEventSink(redis_client, "book_events"))
    publisher.start()

    publisher.publish(EventType.BOOK_CREATED, {"id": 1, "title": "1984", ...})
    publisher.publish(EventType.BOOK_DELETED, 1)

    publisher.close()  # on shutdown, drains pending events

Wire format (JSON):
    {"event": "create", "book": {...} | <id>, "time": "2024-01-20T12:00:00+00:00"}
"""

import json
import logging
import queue
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Protocol

from redis.exceptions import RedisError

from app.exceptions import EmissionError

logger = logging.getLogger(__name__)


# =============================================================================
# Event Types
# =============================================================================


class EventType(StrEnum):
    """Types of events that can be published."""

    BOOK_CREATED = "create"
    BOOK_UPDATED = "update"
    BOOK_DELETED = "delete"


@dataclass
class Event:
    """
    Represents an event to be published.

    Attributes:
        type: The event type
        payload: The created book (as a dict) or the id of the changed book
        timestamp: When the event occurred
    """

    type: EventType
    payload: dict[str, Any] | int
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Convert event to dictionary for JSON serialization."""
        return {
            "event": self.type.value,
            "book": self.payload,
            "time": self.timestamp.isoformat(timespec="seconds"),
        }

    def to_json(self) -> str:
        """Convert event to JSON string."""
        return json.dumps(self.to_dict())


# =============================================================================
# Sinks
# =============================================================================


class EventSink(Protocol):
    """Destination of published events. Raises EmissionError on failure."""

    def send(self, event: Event) -> None:
        ...


class RedisEventSink:
    """Publishes events to a Redis pub/sub channel."""

    def __init__(self, client, channel: str = "book_events"):
        self._client = client
        self.channel = channel

    def send(self, event: Event) -> None:
        try:
            self._client.publish(self.channel, event.to_json())
        except (RedisError, TypeError, ValueError) as e:
            raise EmissionError(f"Failed to publish {event.type.value} event: {e}") from e
        logger.debug(f"Published {event.type.value} to Redis channel '{self.channel}'")


class LoggingEventSink:
    """Writes events to the log only. Used when event forwarding is disabled."""

    def send(self, event: Event) -> None:
        logger.info(f"Book event (not forwarded): {event.to_json()}")


# =============================================================================
# Event Publisher
# =============================================================================

_STOP = object()


class EventPublisher:
    """
    Queues events and forwards them to a sink from a background thread.

    The producer side (publish) never blocks and is never told what happens
    to an event: a full queue drops the event, a failing sink is logged.
    """

    def __init__(self, sink: EventSink, max_queue_size: int = 1000):
        self._sink = sink
        self._queue: queue.Queue = queue.Queue(maxsize=max_queue_size)
        self._worker: threading.Thread | None = None
        self._lock = threading.Lock()
        self.published = 0
        self.dropped = 0
        self.failed = 0

    def start(self) -> None:
        """Start the background worker (idempotent)."""
        with self._lock:
            if self._worker is not None and self._worker.is_alive():
                return
            self._worker = threading.Thread(
                target=self._run,
                name="book-event-publisher",
                daemon=True,
            )
            self._worker.start()
        logger.info("Event publisher started")

    def publish(self, event_type: EventType, payload: dict[str, Any] | int) -> None:
        """
        Queue an event for delivery.

        Args:
            event_type: Type of book event
            payload: Book data for creates, book id for updates and deletes
        """
        event = Event(type=event_type, payload=payload)
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            # publish runs on request threads
            with self._lock:
                self.dropped += 1
            logger.warning(f"Event queue full, dropping {event_type.value} event")

    def flush(self) -> None:
        """Block until every queued event has been handed to the sink."""
        self._queue.join()

    def close(self, timeout: float = 5.0) -> None:
        """Deliver pending events and stop the worker."""
        with self._lock:
            worker = self._worker
            self._worker = None
        if worker is None:
            return

        self._queue.put(_STOP)
        worker.join(timeout)
        if worker.is_alive():
            logger.warning("Event publisher did not stop within timeout")
        else:
            logger.info("Event publisher stopped")

    def get_stats(self) -> dict[str, Any]:
        """Counters for the health endpoint."""
        return {
            "running": self._worker is not None and self._worker.is_alive(),
            "pending": self._queue.qsize(),
            "published": self.published,
            "dropped": self.dropped,
            "failed": self.failed,
        }

    def _run(self) -> None:
        while True:
            event = self._queue.get()
            try:
                if event is _STOP:
                    return
                self._deliver(event)
            finally:
                self._queue.task_done()

    def _deliver(self, event: Event) -> None:
        try:
            self._sink.send(event)
        except Exception as e:
            # Delivery failures stay inside the publisher
            self.failed += 1
            logger.warning(f"Failed to publish {event.type.value} event: {e}")
            return
        self.published += 1
        logger.debug(f"Published {event.type.value} event")
