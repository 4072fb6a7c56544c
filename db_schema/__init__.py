"""db_schema package.

SQLite DDL, seed rows and additive migrations for the roster database.

Public API:
- apply_schema(...)
"""

from .init import apply_schema  # noqa: F401

__all__ = ["apply_schema"]
