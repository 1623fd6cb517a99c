"""
Service Exceptions

Every failure the book service reports is a BookServiceError. The HTTP layer
maps them to responses through `status_code` (see app.main).

Propagation policy:
- PersistenceError: the store failed; always aborts the operation
- CacheError: serialization or cache-layer failure; aborts create, update
  and delete even after the store write succeeded
- NotFoundError: absent in the store, or absent from the cache on a point read
- EmissionError: raised by event sinks, logged by the publisher, never
  surfaced to callers
"""


class BookServiceError(Exception):
    """Base class for book service errors."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(BookServiceError):
    """The requested book does not exist."""

    status_code = 404


class ValidationError(BookServiceError):
    """A required book field is missing or a parameter is out of range."""

    status_code = 400


class PersistenceError(BookServiceError):
    """The entity store operation failed."""

    status_code = 500


class CacheError(BookServiceError):
    """Serializing a book or talking to the cache failed."""

    status_code = 500


class EmissionError(BookServiceError):
    """An event could not be delivered to the event topic."""

    status_code = 500
