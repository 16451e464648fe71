"""
FluentModel Builder - the fluent state accumulator behind DBModel.

Chain methods mutate the builder and return it; terminal methods
(``first``, ``last``, ``take``, ``find``, ``update``) consume the state
and reset it on every exit path.

A DBModel is owned by one task at a time. Use ``session()`` to give
concurrent tasks their own builder over the same database.

Usage:
    db = DBModel(database)

    user = await db.where("age", WhereOpt.GREATER, 18).order_by("id").first(User)

    users, total = await (
        db.select("id", "name")
        .where_group(lambda g: g.where("age", WhereOpt.EQ, 42)
                                .where_or("age", WhereOpt.EQ, 39))
        .limit(10, 0)
        .find(list[User])
    )
"""

from __future__ import annotations

import copy
import logging
import secrets
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence, Tuple

from ..faults.domains import InvalidModelFault
from .sql_builder import (
    Condition,
    JoinType,
    OrderByDir,
    WhereAndOr,
    WhereBuilder,
    WhereOpt,
)
from .query import QueryMixin
from .table import is_record, model_data
from .update import UpdateMixin

logger = logging.getLogger("fluentmodel.models")

__all__ = [
    "DBModel",
    "BuilderState",
    "JoinItem",
    "OrderItem",
    "LimitClause",
    "FetchClause",
    "RawQuery",
]


@dataclass
class JoinItem:
    join: JoinType
    table: str
    condition: Optional[Condition] = None


@dataclass
class OrderItem:
    field: str
    direction: OrderByDir = OrderByDir.ASC


@dataclass
class LimitClause:
    limit: int = 0
    offset: int = 0


@dataclass
class FetchClause:
    fetch: int = 0
    offset: int = 0


@dataclass
class RawQuery:
    sql: str
    args: Tuple[Any, ...] = ()


@dataclass
class _State:
    select_columns: List[Any] = field(default_factory=list)
    omit_columns: List[str] = field(default_factory=list)
    where: List[Condition] = field(default_factory=list)
    joins: List[JoinItem] = field(default_factory=list)
    group_by: List[str] = field(default_factory=list)
    having: List[Condition] = field(default_factory=list)
    limit: Optional[LimitClause] = None
    fetch: Optional[FetchClause] = None
    order_by: List[OrderItem] = field(default_factory=list)
    where_primary: Optional[Condition] = None
    raw: Optional[RawQuery] = None
    model: Any = None
    tx: Any = None


class BuilderState:
    """
    Chainable configuration shared by all terminal operations.

    Args:
        db: ``Database`` (or anything with ``fetch_one``/``fetch_all``/
            ``fetch_val``/``execute``). Defaults to ``get_database()``.
        rng: Randomness source for ``take()``; needs ``randrange``.
            Defaults to ``secrets.SystemRandom()``.
    """

    def __init__(self, db: Any = None, *, rng: Any = None):
        self._db = db
        self._rng = rng if rng is not None else secrets.SystemRandom()
        self._state = _State()

    # ── Ownership ────────────────────────────────────────────────────

    def reset(self) -> None:
        """Clear every configured component."""
        self._state = _State()

    def session(self):
        """New empty builder over the same database and randomness source."""
        return type(self)(self._db, rng=self._rng)

    def clone(self):
        """New builder inheriting a copy of the current configuration."""
        new = self.session()
        new._state = copy.copy(self._state)
        s = new._state
        s.select_columns = list(s.select_columns)
        s.omit_columns = list(s.omit_columns)
        s.where = list(s.where)
        s.joins = list(s.joins)
        s.group_by = list(s.group_by)
        s.having = list(s.having)
        s.order_by = list(s.order_by)
        return new

    # ── Chain methods ────────────────────────────────────────────────

    def select(self, *columns: Any):
        """Columns to query (default ``*``)."""
        self._state.select_columns.extend(columns)
        return self

    def omit(self, *columns: str):
        """Columns (attribute or column names) left out of UPDATE ... SET."""
        self._state.omit_columns.extend(columns)
        return self

    def where(self, field: Any, opt: WhereOpt, value: Any = None):
        self._state.where.append(Condition(field, opt, value, WhereAndOr.AND))
        return self

    def where_or(self, field: Any, opt: WhereOpt, value: Any = None):
        self._state.where.append(Condition(field, opt, value, WhereAndOr.OR))
        return self

    def where_group(self, fn: Callable[[WhereBuilder], Optional[WhereBuilder]]):
        """
        Parenthesized sub-expression built by ``fn``.

            db.where("id", WhereOpt.EQ, 100).where_group(
                lambda g: g.where("age", WhereOpt.EQ, 42).where_or("age", WhereOpt.EQ, 39)
            )
        """
        inner = WhereBuilder()
        result = fn(inner)
        group = (result if result is not None else inner).conditions
        if group:
            self._state.where.append(Condition(and_or=WhereAndOr.AND, group=list(group)))
        return self

    def join(self, join_type: JoinType, table: str, condition: Optional[Condition] = None):
        self._state.joins.append(JoinItem(JoinType(join_type), table, condition))
        return self

    def group_by(self, *fields: str):
        """
        Add GROUP BY columns.

        Names containing a space, a dot, ``(``, ``)`` or ``*`` are written
        into the SQL unquoted and unparameterized; never pass user input.
        """
        self._state.group_by.extend(fields)
        return self

    def having(self, field: Any, opt: WhereOpt, value: Any = None):
        self._state.having.append(Condition(field, opt, value, WhereAndOr.AND))
        return self

    def limit(self, limit: int, offset: int = 0):
        self._state.limit = LimitClause(limit, offset)
        return self

    def fetch(self, offset: int, fetch: int):
        self._state.fetch = FetchClause(fetch, offset)
        return self

    def order_by(self, field: str, direction: OrderByDir = OrderByDir.ASC):
        """
        Add an ORDER BY term. ``field`` follows the ``group_by`` quoting
        rule, so validate caller-chosen sort columns against the record.
        """
        self._state.order_by.append(OrderItem(field, OrderByDir(direction)))
        return self

    def model(self, record: Any):
        """
        Bind a record instance.

        It is the target of map-based ``update()`` and its populated
        columns filter ``first``/``last``/``take``/``find``.
        """
        if isinstance(record, type) or not is_record(record):
            raise InvalidModelFault(record, "a record instance")
        self._state.model = record
        return self

    def raw(self, sql: str, *args: Any):
        """Literal statement run by the next terminal instead of an assembled one."""
        self._state.raw = RawQuery(sql, args)
        return self

    def with_tx(self, tx: Any):
        """Route the next terminal through a transaction handle."""
        self._state.tx = tx
        return self

    # ── Internal ─────────────────────────────────────────────────────

    @property
    def db(self) -> Any:
        if self._db is not None:
            return self._db
        from ..db.engine import get_database
        return get_database()

    def _executor(self) -> Any:
        return self._state.tx if self._state.tx is not None else self.db

    def _primary_condition(self, primary_key: Optional[str]) -> Optional[Condition]:
        """The primary-key condition bound to ``primary_key``, if usable."""
        cond = self._state.where_primary
        if cond is None or cond.value is None or primary_key is None:
            return None
        return Condition(primary_key, cond.opt, cond.value, WhereAndOr.AND)

    def _apply_where(self, builder: WhereBuilder) -> bool:
        """Append the configured WHERE conditions; True if any."""
        for cond in self._state.where:
            if cond.is_group:
                builder.where_group(lambda g, group=cond.group: g.where_condition(*group))
            elif cond.and_or == WhereAndOr.OR:
                builder.where_or(cond.field, cond.opt, cond.value)
            else:
                builder.where(cond.field, cond.opt, cond.value)
        return bool(self._state.where)

    def _where_from_model(self, builder: WhereBuilder) -> None:
        """Equality filters from the populated columns of the bound model."""
        if self._state.model is None:
            return
        table = model_data(self._state.model)
        for col in table.columns:
            if col.has_value:
                builder.where(col.name, WhereOpt.EQ, table.values[col.name])

    def _log(self, operation: str, sql: str, params: Sequence[Any]) -> None:
        logger.debug(f"{operation}: {sql} [{len(params)} params]")


class DBModel(QueryMixin, UpdateMixin, BuilderState):
    """
    Fluent persistence builder.

    Configure with chain methods, then await one terminal:

        db = DBModel(database)
        user = await db.first(User, 103)
        users, total = await db.where("age", WhereOpt.GR_EQ, 18).find(list[User])
        count = await db.where("id", WhereOpt.EQ, 1).update(user)
    """
