"""
Pydantic Schemas Package

Schemas are kept separate from the SQLAlchemy model so that the API and the
cache projection can evolve independently of the table.

Schema Naming Convention:
- XxxBase: Shared fields between create/update
- XxxCreate: Fields required when creating a new record
- XxxUpdate: Fields allowed when updating
- XxxResponse: Fields returned in API responses (and cached)
"""

from app.schemas.book import (
    ApiResponse,
    BookBase,
    BookCreate,
    BookResponse,
    BookUpdate,
)

__all__ = [
    "ApiResponse",
    "BookBase",
    "BookCreate",
    "BookResponse",
    "BookUpdate",
]
