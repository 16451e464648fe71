"""
FluentModel DB Backend - SQLite through aiosqlite (the default driver).

Statements outside ``begin()``/``commit()`` are committed one by one.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

import aiosqlite

from .base import (
    DatabaseAdapter,
    AdapterCapabilities,
)

logger = logging.getLogger("fluentmodel.db.backends.sqlite")

__all__ = ["SQLiteAdapter"]


class SQLiteAdapter(DatabaseAdapter):

    # No FETCH NEXT in SQLite; limit() is the portable choice.
    capabilities = AdapterCapabilities(
        name="sqlite",
        param_style="qmark",
        supports_fetch_clause=False,
    )

    def __init__(self):
        self._conn: Optional[aiosqlite.Connection] = None
        self._lock = asyncio.Lock()
        self._in_transaction = False

    @staticmethod
    def _parse_url(url: str) -> str:
        """``sqlite:///app.db`` -> ``app.db``, ``sqlite:////var/app.db`` -> ``/var/app.db``."""
        _, _, rest = url.partition(":")
        path = rest[3:] if rest.startswith("///") else rest.lstrip("/")
        return path or ":memory:"

    async def connect(self, url: str, **options) -> None:
        async with self._lock:
            if self._conn is not None:
                return
            path = self._parse_url(url)
            conn = await aiosqlite.connect(path, **options)
            conn.row_factory = aiosqlite.Row
            await conn.execute("PRAGMA foreign_keys=ON")
            self._conn = conn
            logger.info(f"SQLite opened: {path}")

    async def disconnect(self) -> None:
        async with self._lock:
            if self._conn is None:
                return
            conn, self._conn = self._conn, None
            self._in_transaction = False
            await conn.close()
            logger.info("SQLite closed")

    async def _cursor(self, sql: str, params: Optional[Sequence[Any]]) -> aiosqlite.Cursor:
        if self._conn is None:
            raise RuntimeError("SQLite adapter is not connected")
        return await self._conn.execute(self.adapt_sql(sql), list(params or []))

    async def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> Any:
        cursor = await self._cursor(sql, params)
        if not self._in_transaction:
            await self._conn.commit()
        return cursor

    async def fetch_all(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        cursor = await self._cursor(sql, params)
        return [dict(row) for row in await cursor.fetchall()]

    async def fetch_one(self, sql: str, params: Optional[Sequence[Any]] = None) -> Optional[Dict[str, Any]]:
        cursor = await self._cursor(sql, params)
        row = await cursor.fetchone()
        return dict(row) if row is not None else None

    async def fetch_val(self, sql: str, params: Optional[Sequence[Any]] = None) -> Any:
        cursor = await self._cursor(sql, params)
        row = await cursor.fetchone()
        return row[0] if row is not None else None

    # ── Transactions ─────────────────────────────────────────────────

    async def begin(self) -> None:
        await self._cursor("BEGIN", None)
        self._in_transaction = True

    async def commit(self) -> None:
        try:
            await self._conn.commit()
        finally:
            self._in_transaction = False

    async def rollback(self) -> None:
        try:
            await self._conn.rollback()
        finally:
            self._in_transaction = False

    @property
    def is_connected(self) -> bool:
        return self._conn is not None
