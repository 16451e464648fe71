"""
FluentModel DB Backends Package - pluggable database adapters.

Provides a common adapter interface and implementations for:
- SQLite (default, via aiosqlite)
- PostgreSQL (via asyncpg)
"""

from .base import DatabaseAdapter, AdapterCapabilities
from .sqlite import SQLiteAdapter
from .postgres import PostgresAdapter

__all__ = [
    "DatabaseAdapter",
    "AdapterCapabilities",
    "SQLiteAdapter",
    "PostgresAdapter",
]
