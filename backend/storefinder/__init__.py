"""
StoreFinder Backend — Application Package Initializer
=====================================================

A store directory: browse, search and geo-locate stores, upload photos,
tag and review them, and heart favorites.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Orchestration, ownership, uploads
    ├─────────────────────────────────────┤
    │     Repository (Store queries)      │  ← Validation, slugs, aggregations
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    The `client` package holds the headless type-ahead and heart-toggle
    clients that talk to the JSON endpoints.
"""

__version__ = "1.0.0"
