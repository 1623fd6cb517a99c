"""
Book Store

The durable record of books and the source of truth behind the cache.

`BookStore` is the interface the book service depends on; `SQLAlchemyBookStore`
implements it on top of a SQLAlchemy session factory. Each call opens its own
short-lived session, so one store instance is safely shared by every request
thread.

Rows leave the store as BookResponse schemas, never as ORM objects, so no
caller ever holds a session-bound instance.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.exceptions import NotFoundError, PersistenceError
from app.models import Book
from app.schemas import BookCreate, BookResponse

logger = logging.getLogger(__name__)


class BookStore(Protocol):
    """Entity store capabilities used by the book service."""

    def insert(self, book_data: BookCreate) -> BookResponse:
        """Persist a new book and return it with its assigned id."""
        ...

    def get_by_id(self, book_id: int) -> BookResponse:
        """Return the stored book or raise NotFoundError."""
        ...

    def update(self, book: BookResponse) -> None:
        """Overwrite the stored row with the given book."""
        ...

    def delete(self, book_id: int) -> None:
        """Delete the stored book or raise NotFoundError."""
        ...

    def list_page(self, limit: int, offset: int) -> list[BookResponse]:
        """Return `limit` books starting at `offset`, in insertion order."""
        ...


class SQLAlchemyBookStore:
    """BookStore backed by the `books` table."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        """
        Open a session for one store operation.

        Commits when the block finishes, rolls back and raises
        PersistenceError when SQLAlchemy fails.
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Book store {operation} failed: {e}")
            raise PersistenceError(f"Failed to {operation} book: {e}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def insert(self, book_data: BookCreate) -> BookResponse:
        with self._session("insert") as session:
            book = Book(
                title=book_data.title,
                author=book_data.author,
                year=book_data.year,
            )
            session.add(book)
            # Flush so the database assigns the id before we read it back
            session.flush()
            created = BookResponse.model_validate(book)

        logger.debug(f"Inserted book {created.id}")
        return created

    def get_by_id(self, book_id: int) -> BookResponse:
        with self._session("load") as session:
            book = session.get(Book, book_id)
            if book is None:
                raise NotFoundError(f"Book with id {book_id} not found")
            return BookResponse.model_validate(book)

    def update(self, book: BookResponse) -> None:
        with self._session("update") as session:
            stored = session.get(Book, book.id)
            if stored is None:
                raise NotFoundError(f"Book with id {book.id} not found")
            stored.title = book.title
            stored.author = book.author
            stored.year = book.year

        logger.debug(f"Updated book {book.id}")

    def delete(self, book_id: int) -> None:
        with self._session("delete") as session:
            result = session.execute(delete(Book).where(Book.id == book_id))
            if result.rowcount == 0:
                raise NotFoundError(f"Book with id {book_id} not found")

        logger.debug(f"Deleted book {book_id}")

    def list_page(self, limit: int, offset: int) -> list[BookResponse]:
        with self._session("list") as session:
            stmt = select(Book).order_by(Book.id).offset(offset).limit(limit)
            books = session.execute(stmt).scalars().all()
            return [BookResponse.model_validate(book) for book in books]
