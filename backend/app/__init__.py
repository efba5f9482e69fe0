"""
RequestGraph Backend — Application Package Initializer
======================================================

What: Marks the `app` directory as a Python package.
Who:  Imported by uvicorn, Alembic, the `requestgraph` CLI and pytest.

Architecture Note:

    ┌─────────────────────────────────────┐
    │      Routes (generic CRUD router)   │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │  Services (pagination, admin)       │  ← Orchestration
    ├─────────────────────────────────────┤
    │  Storage (CollectionStore, errors)  │  ← Document semantics, revisions
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
