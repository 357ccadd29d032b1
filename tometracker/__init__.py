"""
TomeTracker Application Package

Lending backend for a network of libraries: who borrowed which book, and
how many copies each library has left.

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy engine, session factory and Base
- exceptions.py: Typed domain errors
- main.py: FastAPI application factory and error mapping
- dependencies.py: Dependency injection functions and role guards
- models/: SQLAlchemy ORM models
- schemas/: Pydantic request/response schemas
- repositories/: Persistence behind the inventory ledger
- routers/: API route handlers
- services/: Business logic (sessions, authorization, ledger, stocking)
"""

__version__ = "0.1.0"
