"""
Test Suite for the Book Cache Service

Test Organization:
- conftest.py: Shared fixtures (SQLite store, in-memory cache, publisher, client)
- test_book_service.py: Cache/store consistency policy of the book service
- test_book_store.py: SQLAlchemy book store
- test_cache.py: Redis cache layer and key helpers
- test_events.py: Event publisher and sinks
- test_books.py: /api/v1/books endpoints
- test_config.py: Settings

Running Tests:
    pytest
    pytest --cov=app --cov-report=html
    pytest tests/test_book_service.py -v
"""
