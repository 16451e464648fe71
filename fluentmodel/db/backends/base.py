"""
FluentModel DB Backend - adapter contract.

An adapter owns one driver. ``Database`` picks it from the URL scheme and
hands it SQL that always uses ``?`` placeholders; ``adapt_sql`` is where a
backend rewrites them into its own style.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence


__all__ = [
    "DatabaseAdapter",
    "AdapterCapabilities",
]

# A quoted literal (with '' escapes) or a bare placeholder.
_LITERAL_OR_QMARK = re.compile(r"'(?:[^']|'')*'|\?")


@dataclass
class AdapterCapabilities:
    name: str = "base"
    # "qmark" for ?, "numeric" for $1
    param_style: str = "qmark"
    # OFFSET .. ROWS FETCH NEXT .. ROWS ONLY
    supports_fetch_clause: bool = True


class DatabaseAdapter(ABC):
    """Driver-facing half of the engine. Rows come back as plain dicts."""

    capabilities: AdapterCapabilities = AdapterCapabilities()

    @abstractmethod
    async def connect(self, url: str, **options) -> None: ...

    @abstractmethod
    async def disconnect(self) -> None: ...

    @abstractmethod
    async def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> Any:
        """Run a statement; the return value is whatever ``rowcount`` understands."""

    @abstractmethod
    async def fetch_all(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]: ...

    @abstractmethod
    async def fetch_one(self, sql: str, params: Optional[Sequence[Any]] = None) -> Optional[Dict[str, Any]]: ...

    @abstractmethod
    async def fetch_val(self, sql: str, params: Optional[Sequence[Any]] = None) -> Any: ...

    @abstractmethod
    async def begin(self) -> None: ...

    @abstractmethod
    async def commit(self) -> None: ...

    @abstractmethod
    async def rollback(self) -> None: ...

    def adapt_sql(self, sql: str) -> str:
        """Rewrite ``?`` placeholders for ``capabilities.param_style``."""
        if self.capabilities.param_style != "numeric":
            return sql
        counter = 0

        def number(match: "re.Match[str]") -> str:
            nonlocal counter
            if match.group() != "?":
                return match.group()
            counter += 1
            return f"${counter}"

        return _LITERAL_OR_QMARK.sub(number, sql)

    def rowcount(self, result: Any) -> int:
        """Affected rows reported by an ``execute`` result (cursor-style by default)."""
        count = getattr(result, "rowcount", None)
        if count is None or count < 0:
            return 0
        return int(count)

    @property
    def is_connected(self) -> bool:
        return False

    @property
    def dialect(self) -> str:
        return self.capabilities.name
