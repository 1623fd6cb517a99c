"""
Services Package

This package contains the book service and the three collaborators it
orchestrates:
- book_service.py: CRUD orchestration and the cache/store consistency policy
- book_store.py: SQLAlchemy-backed entity store
- cache.py: Redis cache layer and key helpers
- events.py: Fire-and-forget book event publisher
"""
