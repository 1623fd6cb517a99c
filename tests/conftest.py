"""
pytest Fixtures for Book Cache Service Tests

Fixtures provide:
- A SQLite in-memory book store (fresh for every test)
- An in-memory cache with the same interface as RedisCache
- A started event publisher writing into a recording sink
- A BookService wired from the three
- A FastAPI TestClient using that service

The cache double lives here rather than in app/ because only tests need a
Redis-free cache. It implements the same contract: keys() takes a glob
pattern, set() without a TTL clears a previous one, and a `fail` switch
makes every operation raise CacheError.
"""

from collections.abc import Generator
from fnmatch import fnmatchcase

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from app.database import create_session_factory, create_tables, drop_tables
from app.dependencies import get_book_service
from app.exceptions import CacheError, EmissionError
from app.main import app
from app.schemas import BookCreate
from app.services.book_service import BookService
from app.services.book_store import SQLAlchemyBookStore
from app.services.events import Event, EventPublisher


# =============================================================================
# TEST DOUBLES
# =============================================================================


class InMemoryCache:
    """Dict-backed cache that records the TTL of every write."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}
        self.fail = False
        self.fail_keys = False

    def _check(self) -> None:
        if self.fail:
            raise CacheError("cache unavailable")

    def set(self, key: str, value: str, ttl: int | None = None) -> None:
        self._check()
        self.data[key] = value
        self.ttls[key] = ttl

    def get(self, key: str) -> str | None:
        self._check()
        return self.data.get(key)

    def delete(self, key: str) -> None:
        self._check()
        self.data.pop(key, None)
        self.ttls.pop(key, None)

    def keys(self, pattern: str) -> list[str]:
        self._check()
        if self.fail_keys:
            raise CacheError("KEYS not allowed")
        return [key for key in self.data if fnmatchcase(key, pattern)]


class RecordingSink:
    """Event sink that keeps every event it receives."""

    def __init__(self):
        self.events: list[Event] = []
        self.fail = False

    def send(self, event: Event) -> None:
        if self.fail:
            raise EmissionError("topic unavailable")
        self.events.append(event)


# =============================================================================
# STORE FIXTURES
# =============================================================================
# SQLite in-memory: fast, isolated, no external database needed.
# StaticPool keeps the single connection alive, otherwise the in-memory
# database would disappear between sessions.


@pytest.fixture
def engine():
    """A fresh in-memory database with the books table."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(engine)

    yield engine

    drop_tables(engine)
    engine.dispose()


@pytest.fixture
def store(engine) -> SQLAlchemyBookStore:
    return SQLAlchemyBookStore(create_session_factory(engine))


# =============================================================================
# CACHE / EVENT FIXTURES
# =============================================================================


@pytest.fixture
def cache() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def publisher(sink) -> Generator[EventPublisher, None, None]:
    publisher = EventPublisher(sink, max_queue_size=100)
    publisher.start()

    yield publisher

    publisher.close()


# =============================================================================
# SERVICE / CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def service(store, cache, publisher) -> BookService:
    return BookService(store=store, cache=cache, emitter=publisher)


@pytest.fixture
def client(service: BookService) -> Generator[TestClient, None, None]:
    """
    Test client using the fixture-built book service.

    The lifespan is not entered (no `with` block), so no Redis or Postgres
    connection is attempted; get_book_service is overridden instead.
    """
    app.dependency_overrides[get_book_service] = lambda: service

    yield TestClient(app)

    app.dependency_overrides.clear()


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================


@pytest.fixture
def sample_book_data() -> BookCreate:
    return BookCreate(title="1984", author="George Orwell", year=1949)


@pytest.fixture
def fifteen_books(service: BookService):
    """Create 15 books with ids 1..15 through the service (all cached)."""
    return [
        service.create_book(
            BookCreate(title=f"Test Book {i}", author=f"Author {i}", year=1900 + i)
        )
        for i in range(1, 16)
    ]
