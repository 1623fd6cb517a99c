"""
Event System Tests

Tests for the event publishing system including:
- Event creation and serialization
- EventPublisher queueing and background delivery
- Redis pub/sub sink
"""

import json
import threading
from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.exceptions import EmissionError
from app.services.events import (
    Event,
    EventPublisher,
    EventType,
    LoggingEventSink,
    RedisEventSink,
)

# =============================================================================
# Event Tests
# =============================================================================


class TestEventType:
    """Tests for EventType enum."""

    def test_book_event_types(self):
        """Test book event types exist."""
        assert EventType.BOOK_CREATED == "create"
        assert EventType.BOOK_UPDATED == "update"
        assert EventType.BOOK_DELETED == "delete"


class TestEvent:
    """Tests for Event dataclass."""

    def test_event_creation(self):
        """Test creating an event."""
        event = Event(
            type=EventType.BOOK_CREATED,
            payload={"id": 1, "title": "Test Book", "author": "Test Author", "year": 2020},
        )

        assert event.type == EventType.BOOK_CREATED
        assert event.payload["title"] == "Test Book"
        assert event.timestamp.tzinfo is not None

    def test_event_to_dict(self):
        """Test converting event to dictionary."""
        custom_time = datetime(2024, 1, 20, 12, 0, 0, 123456, tzinfo=UTC)
        event = Event(type=EventType.BOOK_UPDATED, payload=7, timestamp=custom_time)

        assert event.to_dict() == {
            "event": "update",
            "book": 7,
            "time": "2024-01-20T12:00:00+00:00",
        }

    def test_event_to_json(self):
        """Test converting event to JSON."""
        event = Event(type=EventType.BOOK_DELETED, payload=1)

        data = json.loads(event.to_json())

        assert data["event"] == "delete"
        assert data["book"] == 1
        assert "time" in data


# =============================================================================
# EventPublisher Tests
# =============================================================================


class TestEventPublisher:
    """Tests for EventPublisher class."""

    def test_publish_delivers_in_order(self, publisher, sink):
        publisher.publish(EventType.BOOK_CREATED, {"id": 1})
        publisher.publish(EventType.BOOK_UPDATED, 1)
        publisher.publish(EventType.BOOK_DELETED, 1)
        publisher.flush()

        assert [event.type for event in sink.events] == [
            EventType.BOOK_CREATED,
            EventType.BOOK_UPDATED,
            EventType.BOOK_DELETED,
        ]
        assert publisher.published == 3

    def test_publish_returns_nothing(self, publisher):
        assert publisher.publish(EventType.BOOK_DELETED, 3) is None

    def test_publish_continues_on_sink_failure(self, publisher, sink):
        """A failing sink is counted and logged; later events still flow."""
        sink.fail = True
        publisher.publish(EventType.BOOK_CREATED, {"id": 1})
        publisher.flush()

        sink.fail = False
        publisher.publish(EventType.BOOK_DELETED, 1)
        publisher.flush()

        assert publisher.failed == 1
        assert [event.type for event in sink.events] == [EventType.BOOK_DELETED]

    def test_publish_drops_when_queue_full(self, sink):
        """Without a running worker the queue fills and extra events are dropped."""
        publisher = EventPublisher(sink, max_queue_size=2)

        for book_id in range(5):
            publisher.publish(EventType.BOOK_DELETED, book_id)

        assert publisher.dropped == 3
        assert publisher.get_stats()["pending"] == 2

    def test_dropped_count_exact_across_threads(self, sink):
        """Concurrent overflow from many request threads loses no drop counts."""
        publisher = EventPublisher(sink, max_queue_size=1)
        publisher.publish(EventType.BOOK_DELETED, 0)

        def overflow():
            for book_id in range(500):
                publisher.publish(EventType.BOOK_DELETED, book_id)

        threads = [threading.Thread(target=overflow) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert publisher.dropped == 8 * 500

    def test_close_drains_pending_events(self, sink):
        publisher = EventPublisher(sink)
        publisher.publish(EventType.BOOK_CREATED, {"id": 1})
        publisher.publish(EventType.BOOK_UPDATED, 1)

        publisher.start()
        publisher.close()

        assert len(sink.events) == 2
        assert publisher.get_stats()["running"] is False

    def test_start_is_idempotent(self, publisher):
        publisher.start()
        publisher.start()

        assert publisher.get_stats()["running"] is True

    def test_close_without_start(self, sink):
        EventPublisher(sink).close()

    def test_get_stats(self, publisher, sink):
        publisher.publish(EventType.BOOK_CREATED, {"id": 1})
        publisher.flush()

        stats = publisher.get_stats()

        assert stats == {
            "running": True,
            "pending": 0,
            "published": 1,
            "dropped": 0,
            "failed": 0,
        }


# =============================================================================
# Sink Tests
# =============================================================================


class TestRedisEventSink:
    """Tests for Redis pub/sub delivery."""

    def test_publish_to_redis(self):
        """Test that events are published to the configured channel."""
        mock_redis = MagicMock()
        sink = RedisEventSink(mock_redis, "book_events")
        event = Event(type=EventType.BOOK_CREATED, payload={"id": 1})

        sink.send(event)

        mock_redis.publish.assert_called_once_with("book_events", event.to_json())

    def test_redis_failure_raises_emission_error(self):
        mock_redis = MagicMock()
        mock_redis.publish.side_effect = RedisConnectionError("Redis error")
        sink = RedisEventSink(mock_redis)

        with pytest.raises(EmissionError):
            sink.send(Event(type=EventType.BOOK_DELETED, payload=1))

    def test_publisher_swallows_redis_failure(self):
        mock_redis = MagicMock()
        mock_redis.publish.side_effect = RedisConnectionError("Redis error")
        publisher = EventPublisher(RedisEventSink(mock_redis))
        publisher.start()

        publisher.publish(EventType.BOOK_DELETED, 1)
        publisher.close()

        assert publisher.failed == 1


class TestLoggingEventSink:
    """Tests for the log-only sink."""

    def test_logs_event(self, caplog):
        with caplog.at_level("INFO", logger="app.services.events"):
            LoggingEventSink().send(Event(type=EventType.BOOK_DELETED, payload=9))

        assert '"event": "delete"' in caplog.text
