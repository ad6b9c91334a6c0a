"""
Taskboard API: Application Package Initializer
================================================

What: Marks the `taskboard` directory as a Python package.
Who:  Imported by uvicorn (`taskboard.main:app`), Alembic and pytest.

Architecture Note:
    The backend is layered the same way top to bottom:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns: cookies, status codes
    ├─────────────────────────────────────┤
    │   Services (Business Logic)         │  ← auth, boards, notes, uploads, mail
    ├─────────────────────────────────────┤
    │ Validation & Authorization helpers  │  ← pure functions, no I/O
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes never touch the ORM directly; services never build HTTP responses.
"""

__version__ = "1.0.0"
