"""
Persistence layer for conversion jobs.

SQLite-backed implementation of the JobStore interface.
"""

from .manager import SQLiteJobStore
from .errors import PersistenceError, SchemaError

__all__ = ["SQLiteJobStore", "PersistenceError", "SchemaError"]
