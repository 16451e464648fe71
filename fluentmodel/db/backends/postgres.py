"""
FluentModel DB Backend - PostgreSQL through an asyncpg pool.

Optional; install with ``pip install fluentmodel[postgres]``.
"""

from __future__ import annotations

import logging
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

from .base import (
    DatabaseAdapter,
    AdapterCapabilities,
)

try:
    import asyncpg
except ImportError:
    asyncpg = None  # type: ignore

logger = logging.getLogger("fluentmodel.db.backends.postgres")

__all__ = ["PostgresAdapter"]

_URL_PASSWORD = re.compile(r"(://[^:/@]+):[^@]*@")


def _mask_url(url: str) -> str:
    return _URL_PASSWORD.sub(r"\1:***@", url, count=1)


class PostgresAdapter(DatabaseAdapter):
    """
    Pool-backed adapter. ``begin()`` pins one pooled connection until
    ``commit()``/``rollback()``; everything else borrows per statement.
    """

    capabilities = AdapterCapabilities(
        name="postgresql",
        param_style="numeric",
        supports_fetch_clause=True,
    )

    def __init__(self):
        self._pool: Any = None
        self._pinned: Any = None
        self._tx: Any = None

    async def connect(self, url: str, **options) -> None:
        if self._pool is not None:
            return
        if asyncpg is None:
            raise ImportError(
                "asyncpg is required for PostgreSQL. "
                "Install: pip install fluentmodel[postgres]"
            )
        self._pool = await asyncpg.create_pool(url, **options)
        logger.info(f"PostgreSQL pool ready: {_mask_url(url)}")

    async def disconnect(self) -> None:
        if self._pool is None:
            return
        try:
            if self._tx is not None:
                logger.warning("Closing PostgreSQL pool with an open transaction; rolling back")
                await self._end("rollback")
        finally:
            pool, self._pool = self._pool, None
            await pool.close()
            logger.info("PostgreSQL pool closed")

    def rowcount(self, result: Any) -> int:
        # asyncpg reports a command tag such as "UPDATE 3"
        if isinstance(result, str):
            tail = result.rsplit(" ", 1)[-1]
            return int(tail) if tail.isdigit() else 0
        return super().rowcount(result)

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[Any]:
        # While a transaction is open every statement runs on its pinned
        # connection, including ones not routed through the handle.
        if self._pool is None:
            raise RuntimeError("PostgreSQL adapter is not connected")
        if self._pinned is not None:
            yield self._pinned
            return
        async with self._pool.acquire() as conn:
            yield conn

    async def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> Any:
        async with self._connection() as conn:
            return await conn.execute(self.adapt_sql(sql), *(params or ()))

    async def fetch_all(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        async with self._connection() as conn:
            records = await conn.fetch(self.adapt_sql(sql), *(params or ()))
        return [dict(record) for record in records]

    async def fetch_one(self, sql: str, params: Optional[Sequence[Any]] = None) -> Optional[Dict[str, Any]]:
        async with self._connection() as conn:
            record = await conn.fetchrow(self.adapt_sql(sql), *(params or ()))
        return dict(record) if record is not None else None

    async def fetch_val(self, sql: str, params: Optional[Sequence[Any]] = None) -> Any:
        async with self._connection() as conn:
            return await conn.fetchval(self.adapt_sql(sql), *(params or ()))

    # ── Transactions ─────────────────────────────────────────────────

    async def begin(self) -> None:
        if self._tx is not None:
            return
        conn = await self._pool.acquire()
        tx = conn.transaction()
        try:
            await tx.start()
        except Exception:
            await self._pool.release(conn)
            raise
        self._pinned, self._tx = conn, tx

    async def _end(self, action: str) -> None:
        if self._tx is None:
            return
        conn, tx = self._pinned, self._tx
        self._pinned = self._tx = None
        try:
            await getattr(tx, action)()
        finally:
            await self._pool.release(conn)

    async def commit(self) -> None:
        await self._end("commit")

    async def rollback(self) -> None:
        await self._end("rollback")

    @property
    def is_connected(self) -> bool:
        return self._pool is not None
