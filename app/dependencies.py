"""
FastAPI Dependencies Module

Dependencies are reusable components injected into route handlers.

The book service and its collaborators (database engine, Redis client, event
publisher) are built once per process by `build_container` and stored on
`app.state`. Route handlers receive the service through `BookServiceDep`, and
tests replace it with `app.dependency_overrides[get_book_service]`.
"""

import logging
from dataclasses import dataclass
from typing import Annotated

import redis
from fastapi import Depends, Query, Request
from sqlalchemy import Engine

from app.config import Settings, get_settings
from app.database import create_db_engine, create_session_factory, create_tables
from app.services.book_service import BookService
from app.services.book_store import SQLAlchemyBookStore
from app.services.cache import RedisCache, create_redis_client
from app.services.events import EventPublisher, LoggingEventSink, RedisEventSink

logger = logging.getLogger(__name__)


# =============================================================================
# Service Container
# =============================================================================
@dataclass
class ServiceContainer:
    """Process-scoped resources shared by every request."""

    engine: Engine
    redis_client: redis.Redis
    publisher: EventPublisher
    book_service: BookService

    def close(self) -> None:
        """Release resources in reverse order of creation."""
        self.publisher.close()
        self.redis_client.close()
        self.engine.dispose()
        logger.info("Service resources released")


def build_container(settings: Settings) -> ServiceContainer:
    """
    Wire the book service from settings.

    Creates the engine (and tables, when enabled), the Redis client, and a
    started event publisher. Nothing here connects eagerly except table
    creation.
    """
    engine = create_db_engine(settings)
    if settings.db_create_tables:
        create_tables(engine)

    redis_client = create_redis_client(settings)

    if settings.events_enabled:
        sink = RedisEventSink(redis_client, settings.event_channel)
    else:
        sink = LoggingEventSink()
    publisher = EventPublisher(sink, max_queue_size=settings.event_queue_size)
    publisher.start()

    book_service = BookService(
        store=SQLAlchemyBookStore(create_session_factory(engine)),
        cache=RedisCache(redis_client),
        emitter=publisher,
        key_prefix=settings.cache_key_prefix,
        create_ttl=settings.cache_ttl_create,
        default_limit=settings.default_page_limit,
    )

    return ServiceContainer(
        engine=engine,
        redis_client=redis_client,
        publisher=publisher,
        book_service=book_service,
    )


def get_book_service(request: Request) -> BookService:
    """Book service built during application startup."""
    return request.app.state.container.book_service


BookServiceDep = Annotated[BookService, Depends(get_book_service)]


# =============================================================================
# Pagination Parameters
# =============================================================================
class PaginationParams:
    """
    Offset pagination for the book list.

        GET /books?limit=10&offset=20

    - limit: How many books to return (at least 1)
    - offset: How many books to skip, counted in ascending id order
    """

    def __init__(
        self,
        limit: int | None = Query(
            default=None,
            ge=1,
            description="Number of books to return (defaults to the configured page size)",
            examples=[10, 25],
        ),
        offset: int = Query(
            default=0,
            ge=0,
            description="Number of books to skip",
            examples=[0, 10],
        ),
    ) -> None:
        self.limit = limit if limit is not None else get_settings().default_page_limit
        self.offset = offset


Pagination = Annotated[PaginationParams, Depends()]
