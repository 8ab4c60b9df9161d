"""
Todo Service — Application Package Initializer
===============================================

What: Marks the `todoapp` directory as a Python package.
Why:  Enables module imports like `from todoapp.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    A single resource (todos) served through the usual layers:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP in, HTTP out
    ├─────────────────────────────────────┤
    │    Dispatcher + Service (Logic)     │  ← method → ORM call → ApiResponse
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes never talk to the ORM directly. They hand the method, path and
    payload to the dispatcher and render whatever ApiResponse comes back.
"""

__version__ = "1.0.0"
