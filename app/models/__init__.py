"""
SQLAlchemy Models Package

Import all models here to:
1. Make them available as: from app.models import Book
2. Ensure they are registered with Base.metadata before create_all runs
"""

from app.models.book import Book

__all__ = [
    "Book",
]
