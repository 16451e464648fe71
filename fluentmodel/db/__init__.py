"""
FluentModel Database - async-first database layer.

Provides:
- Database: Connection manager with transaction support
- Transaction: handle routed through by ``DBModel.with_tx()``
- SQLite driver (default), PostgreSQL adapter
- Module-level accessors for the default database
"""

from .engine import (
    Database,
    Transaction,
    get_database,
    configure_database,
    set_database,
)

from .backends import (
    DatabaseAdapter,
    AdapterCapabilities,
    SQLiteAdapter,
    PostgresAdapter,
)

from ..faults.domains import (
    DatabaseConnectionFault,
    QueryFault,
)

__all__ = [
    "Database",
    "Transaction",
    "DatabaseConnectionFault",
    "QueryFault",
    "get_database",
    "configure_database",
    "set_database",
    # Backends
    "DatabaseAdapter",
    "AdapterCapabilities",
    "SQLiteAdapter",
    "PostgresAdapter",
]
