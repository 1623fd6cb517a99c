"""
Book Service

Orchestrates reads and writes across the book store, the cache and the event
publisher. This is the only place that decides how the three stay consistent.

Consistency policy:
- Point reads consult the cache only. A miss is NotFound, even when the row
  exists in the store.
- Lists page over the cached key set, sorted by id. When the cache holds no
  book keys the store is paged instead (LIMIT/OFFSET) and the rows are cached.
  The two paths can disagree while the cache is only partly populated.
- Writes go to the store first. The store result is the only durability
  signal; the cache and the event follow on a best-effort basis, and nothing
  is compensated when a later step fails.
- Creates cache with a TTL, updates cache without one.
- Events never fail a request.
"""

import logging
from typing import Any, Protocol

from pydantic import ValidationError as PydanticValidationError

from app.exceptions import CacheError, NotFoundError, ValidationError
from app.schemas import BookBase, BookCreate, BookResponse, BookUpdate
from app.services.book_store import BookStore
from app.services.cache import Cache, make_cache_key, parse_cache_key_id
from app.services.events import EventType

logger = logging.getLogger(__name__)

DEFAULT_CREATE_TTL = 600  # 10 minutes


class EventEmitter(Protocol):
    """Fire-and-forget publisher of book change events."""

    def publish(self, event_type: EventType, payload: dict[str, Any] | int) -> None:
        ...


class BookService:
    """
    CRUD operations on books with cache-backed reads.

    The store, cache and emitter are owned by the process and shared by
    every request; the service itself holds no mutable state.
    """

    def __init__(
        self,
        store: BookStore,
        cache: Cache,
        emitter: EventEmitter,
        *,
        key_prefix: str = "books",
        create_ttl: int = DEFAULT_CREATE_TTL,
        default_limit: int = 10,
    ):
        self.store = store
        self.cache = cache
        self.emitter = emitter
        self.key_prefix = key_prefix
        self.create_ttl = create_ttl
        self.default_limit = default_limit

    # =========================================================================
    # Key encoding / serialization helpers
    # =========================================================================

    def cache_key(self, book_id: int) -> str:
        """Cache key of a book id, e.g. "books:42"."""
        return make_cache_key(self.key_prefix, book_id)

    @property
    def key_pattern(self) -> str:
        return make_cache_key(self.key_prefix, "*")

    def _serialize(self, book: BookResponse) -> str:
        try:
            return book.model_dump_json()
        except (TypeError, ValueError) as e:
            raise CacheError(f"Failed to serialize book {book.id}: {e}") from e

    def _deserialize(self, key: str, raw: str) -> BookResponse | None:
        try:
            return BookResponse.model_validate_json(raw)
        except PydanticValidationError as e:
            logger.warning(f"Discarding undecodable cache entry {key}: {e}")
            return None

    @staticmethod
    def _require_fields(book_data: BookBase) -> None:
        # Schemas validate on construction; model_construct() skips that
        missing = [
            name
            for name, value in (
                ("title", book_data.title),
                ("author", book_data.author),
                ("year", book_data.year),
            )
            if not value or (isinstance(value, str) and not value.strip())
        ]
        if missing:
            raise ValidationError(
                f"title, author, and year are required (missing: {', '.join(missing)})"
            )

    def _emit(self, event_type: EventType, payload: dict[str, Any] | int) -> None:
        try:
            self.emitter.publish(event_type, payload)
        except Exception as e:
            logger.warning(f"Failed to emit {event_type.value} event: {e}")

    # =========================================================================
    # Reads
    # =========================================================================

    def get_book(self, book_id: int) -> BookResponse:
        """
        Return a book from the cache.

        Raises:
            NotFoundError: No cache entry, an undecodable entry, or the cache
                could not be reached. The store is never consulted.
        """
        key = self.cache_key(book_id)
        try:
            raw = self.cache.get(key)
        except CacheError as e:
            logger.warning(f"Cache unavailable for {key}, reporting not found: {e}")
            raw = None

        book = self._deserialize(key, raw) if raw is not None else None
        if book is None:
            raise NotFoundError(f"Book with id {book_id} not found in cache")

        logger.debug(f"Serving book {book_id} from cache")
        return book

    def list_books(self, limit: int | None = None, offset: int = 0) -> list[BookResponse]:
        """
        Return a page of books.

        With book keys in the cache, all cached ids are sorted ascending and
        the page is the slice [offset, offset + limit). Without any, the page
        comes from the store and is written to the cache.

        Args:
            limit: Page size (positive, defaults to the configured page size)
            offset: Number of books to skip (non-negative)
        """
        if limit is None:
            limit = self.default_limit
        if limit < 1:
            raise ValidationError("limit must be a positive integer")
        if offset < 0:
            raise ValidationError("offset must be a non-negative integer")

        try:
            keys = self.cache.keys(self.key_pattern)
        except CacheError as e:
            logger.warning(f"Cache key listing failed, falling back to store: {e}")
            keys = []

        if not keys:
            return self._list_from_store(limit, offset)
        return self._list_from_cache(keys, limit, offset)

    def _list_from_store(self, limit: int, offset: int) -> list[BookResponse]:
        logger.info(f"Cache miss: fetching books from store (limit={limit}, offset={offset})")
        books = self.store.list_page(limit, offset)

        for book in books:
            try:
                self.cache.set(self.cache_key(book.id), self._serialize(book), self.create_ttl)
            except CacheError as e:
                logger.warning(f"Failed to cache book {book.id}: {e}")

        return books

    def _list_from_cache(self, keys: list[str], limit: int, offset: int) -> list[BookResponse]:
        # Sorted by id, but each entry is read under the key that was listed
        # ("books:007" is id 7 and is fetched as "books:007")
        entries = []
        for key in keys:
            book_id = parse_cache_key_id(key, self.key_prefix)
            if book_id is not None:
                entries.append((book_id, key))
        entries.sort(key=lambda entry: entry[0])

        start = offset
        if start >= len(entries):
            return []
        end = min(offset + limit, len(entries))

        books = []
        for _, key in entries[start:end]:
            try:
                raw = self.cache.get(key)
            except CacheError:
                continue
            if raw is None:
                continue
            book = self._deserialize(key, raw)
            if book is not None:
                books.append(book)

        logger.debug(f"Serving {len(books)} books from cache (offset={offset})")
        return books

    # =========================================================================
    # Writes
    # =========================================================================

    def create_book(self, book_data: BookCreate) -> BookResponse:
        """
        Create a book: store, then cache (with TTL), then event.

        Returns:
            The stored book, carrying its new id

        Raises:
            ValidationError: A required field is missing
            PersistenceError: The store insert failed
            CacheError: The book was stored but could not be cached
        """
        self._require_fields(book_data)

        book = self.store.insert(book_data)
        self.cache.set(self.cache_key(book.id), self._serialize(book), self.create_ttl)

        self._emit(EventType.BOOK_CREATED, book.model_dump())
        logger.info(f"Created book {book.id}")
        return book

    def update_book(self, book_id: int, book_data: BookUpdate) -> BookResponse:
        """
        Replace title, author and year of an existing book.

        The cache entry is rewritten without expiration, clearing the TTL
        set when the book was created.

        Raises:
            ValidationError: A required field is missing
            NotFoundError: The book is not in the store
            PersistenceError: The store update failed
            CacheError: The book was updated but could not be cached
        """
        self._require_fields(book_data)

        existing = self.store.get_by_id(book_id)
        existing.title = book_data.title
        existing.author = book_data.author
        existing.year = book_data.year

        self.store.update(existing)
        self.cache.set(self.cache_key(book_id), self._serialize(existing))

        self._emit(EventType.BOOK_UPDATED, book_id)
        logger.info(f"Updated book {book_id}")
        return existing

    def delete_book(self, book_id: int) -> None:
        """
        Delete a book from the store, evict it from the cache, emit an event.

        Raises:
            NotFoundError: The book is not in the store
            PersistenceError: The store delete failed
            CacheError: The book was deleted but the cache key was not evicted
        """
        self.store.delete(book_id)
        self.cache.delete(self.cache_key(book_id))

        self._emit(EventType.BOOK_DELETED, book_id)
        logger.info(f"Deleted book {book_id}")
