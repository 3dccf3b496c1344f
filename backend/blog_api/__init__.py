"""
Blog API — Application Package Initializer
===========================================

What: Marks the `blog_api` directory as a Python package.
Why:  Enables module imports like `from blog_api.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:
    The service follows the same layered structure for its single resource:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← required fields, id checks, merges
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Owned async engine handle
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
