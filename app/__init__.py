"""
Book Cache Service Application Package

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy engine and session factory
- exceptions.py: Book service error taxonomy
- main.py: FastAPI application factory and configuration
- dependencies.py: Service wiring and dependency injection
- models/: SQLAlchemy ORM models
- schemas/: Pydantic request/response schemas
- routers/: API route handlers
- services/: Book service, book store, Redis cache and event publisher
"""

__version__ = "0.1.0"
