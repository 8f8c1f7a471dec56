"""
OrderDesk Backend: Application Package
======================================

What: Users and orders CRUD service over a relational database.
Who:  Imported by uvicorn (`orderdesk.main:app`), Alembic, and pytest.

Layering:

    ┌─────────────────────────────────────┐
    │   Middleware pipeline (9 stages)    │  ← cross-cutting HTTP concerns
    ├─────────────────────────────────────┤
    │         Routes (API Layer)          │  ← envelope rendering only
    ├─────────────────────────────────────┤
    │   Services  ◀── ModuleRegistry ──▶  │  ← business rules, cross-module calls
    ├─────────────────────────────────────┤
    │    Repositories + Query builder     │  ← storage-error translation
    ├─────────────────────────────────────┤
    │     Models / async SQLAlchemy       │  ← persistence
    └─────────────────────────────────────┘

    Calls only flow downward. The order module reaches the user module
    sideways through the registry, never by importing its service.
"""

__version__ = "1.0.0"
