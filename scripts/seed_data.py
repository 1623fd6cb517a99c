#!/usr/bin/env python3
"""
Seed Script

Populates the service with sample books for development.

USAGE:
    # Make sure you're in the project root with venv activated
    python scripts/seed_data.py

Books are created through the book service, so each one lands in the
database, in the cache (with the create TTL) and on the event topic.
"""

import logging
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from app.config import get_settings
from app.dependencies import build_container
from app.exceptions import BookServiceError
from app.schemas import BookCreate

SAMPLE_BOOKS = [
    {"title": "1984", "author": "George Orwell", "year": 1949},
    {"title": "Animal Farm", "author": "George Orwell", "year": 1945},
    {"title": "Pride and Prejudice", "author": "Jane Austen", "year": 1813},
    {"title": "The Old Man and the Sea", "author": "Ernest Hemingway", "year": 1952},
    {"title": "Murder on the Orient Express", "author": "Agatha Christie", "year": 1934},
    {"title": "Foundation", "author": "Isaac Asimov", "year": 1951},
    {"title": "The Hobbit", "author": "J.R.R. Tolkien", "year": 1937},
    {"title": "The Odyssey", "author": "Homer", "year": -700},
]


def main() -> int:
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.log_level))

    container = build_container(settings)
    service = container.book_service
    created = 0

    try:
        for data in SAMPLE_BOOKS:
            try:
                book = service.create_book(BookCreate(**data))
            except BookServiceError as e:
                print(f"  ! {data['title']}: {e.message}")
                continue
            created += 1
            print(f"  + [{book.id}] {book.title} ({book.author}, {book.year})")
    finally:
        container.close()

    print(f"Seeded {created}/{len(SAMPLE_BOOKS)} books.")
    return 0 if created == len(SAMPLE_BOOKS) else 1


if __name__ == "__main__":
    sys.exit(main())
