"""
CaterHub Backend — Application Package Initializer
===================================================

What: Marks the `caterhub` directory as a Python package.
Why:  Enables module imports like `from caterhub.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    This backend follows a layered architecture:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, payload coercion, envelope
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Reference checks, defaults, aggregation
    ├─────────────────────────────────────┤
    │     Repositories (Ownership scope)  │  ← Every tenant query filtered by caterer_id
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Tenancy: a caterer account owns its dishes, packages and package items.
    The ownership predicate lives in one place (repositories/ownership.py)
    so no service can forget it.
"""

__version__ = "1.0.0"
