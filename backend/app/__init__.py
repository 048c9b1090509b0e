"""
Site Content API — Application Package Initializer
===================================================

What: Marks the `app` directory as a Python package.
Why:  Enables module imports like `from app.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend serves CRUD endpoints for a fixed set of website content
    tables (taglines, services, portfolios, blogs, testimonials, client logos,
    Instagram links). Every entity goes through the same layers:

    ┌─────────────────────────────────────┐
    │    Routes (one registration loop)   │  ← HTTP parsing, status codes
    ├─────────────────────────────────────┤
    │   EntityDispatcher (verb dispatch)  │  ← upload-then-persist workflow
    ├──────────────────┬──────────────────┤
    │  TableGateway    │   ObjectStore    │  ← SQLAlchemy Core / Supabase Storage
    ├──────────────────┴──────────────────┤
    │  Entity registry (static config)    │  ← per-entity fields, bucket, flags
    └─────────────────────────────────────┘

    Per-entity differences live in `app.registry` only; no layer above it
    contains a table name.
"""

__version__ = "1.0.0"
