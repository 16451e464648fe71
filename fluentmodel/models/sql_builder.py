"""
FluentModel SQL Builder - safe, parameterized SQL generation.

Provides a fluent builder API that produces parameterized SQL
and bind-parameter lists. All user values are bound as parameters
to prevent SQL injection; identifiers are double-quoted unless they
are raw expressions (``*``, ``users.id``, ``COUNT(*)``).

Usage:
    from fluentmodel.models.sql_builder import QueryBuilder, WhereOpt

    sql, params = (
        QueryBuilder()
        .select("id", "name")
        .from_table("users")
        .where("age", WhereOpt.GREATER, 18)
        .where_or("name", WhereOpt.EQ, "root")
        .order_by("name")
        .limit(10, 0)
        .build()
    )
    # sql = 'SELECT "id", "name" FROM "users" WHERE "age" > ? OR "name" = ?
    #        ORDER BY "name" ASC LIMIT 10 OFFSET 0'
    # params = [18, "root"]
"""

from __future__ import annotations

from dataclasses import dataclass, field as dc_field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple


__all__ = [
    "WhereOpt",
    "WhereAndOr",
    "OrderByDir",
    "JoinType",
    "ValueField",
    "Condition",
    "WhereBuilder",
    "QueryBuilder",
    "UpdateBuilder",
    "quote_ident",
]


class WhereOpt(str, Enum):
    """Comparison operators for conditions."""

    EQ = "="
    NOT_EQ = "<>"
    DIFF = "!="
    GREATER = ">"
    LESSER = "<"
    GR_EQ = ">="
    LE_EQ = "<="
    LIKE = "LIKE"
    NOT_LIKE = "NOT LIKE"
    IN = "IN"
    NOT_IN = "NOT IN"
    BETWEEN = "BETWEEN"
    NOT_BETWEEN = "NOT BETWEEN"
    NULL = "IS NULL"
    NOT_NULL = "IS NOT NULL"


class WhereAndOr(str, Enum):
    """Conjunction joining a condition to the one before it."""

    AND = "AND"
    OR = "OR"


class OrderByDir(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class JoinType(str, Enum):
    INNER = "INNER"
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    FULL = "FULL OUTER"
    CROSS = "CROSS"


@dataclass(frozen=True)
class ValueField:
    """Column reference used as a condition value (``users.id = orders.user_id``)."""

    name: str


@dataclass
class Condition:
    """
    A WHERE/HAVING/JOIN condition.

    Either a leaf (``field opt value``) or a parenthesized group of
    sub-conditions (non-empty ``group``). ``and_or`` joins it to the
    previous condition in its list; it is ignored for the first one.
    """

    field: Any = None
    opt: WhereOpt = WhereOpt.EQ
    value: Any = None
    and_or: WhereAndOr = WhereAndOr.AND
    group: List[Condition] = dc_field(default_factory=list)

    @property
    def is_group(self) -> bool:
        return len(self.group) > 0


def _is_raw(col: str) -> bool:
    """
    Check if a column reference is a raw expression (contains parens, *, etc).

    Raw references are emitted verbatim, so they must come from code, not
    from request data.
    """
    return any(c in col for c in ("(", ")", "*", " ", "."))


def quote_ident(name: Any) -> str:
    """Double-quote an identifier unless it is a raw expression."""
    name = str(name)
    if _is_raw(name):
        return name
    return f'"{name}"'


def _render_leaf(cond: Condition) -> Tuple[str, List[Any]]:
    if cond.field is None:
        raise ValueError(f"Condition has no field: {cond!r}")

    lhs = quote_ident(cond.field)
    opt = WhereOpt(cond.opt)
    value = cond.value

    if opt in (WhereOpt.NULL, WhereOpt.NOT_NULL):
        return f"{lhs} {opt.value}", []

    if isinstance(value, ValueField):
        return f"{lhs} {opt.value} {quote_ident(value.name)}", []

    if opt in (WhereOpt.IN, WhereOpt.NOT_IN):
        values = list(value)
        if not values:
            # IN () is invalid SQL; keep the truth value instead
            return ("1 = 0" if opt == WhereOpt.IN else "1 = 1"), []
        placeholders = ", ".join("?" for _ in values)
        return f"{lhs} {opt.value} ({placeholders})", values

    if opt in (WhereOpt.BETWEEN, WhereOpt.NOT_BETWEEN):
        low, high = value
        return f"{lhs} {opt.value} ? AND ?", [low, high]

    return f"{lhs} {opt.value} ?", [value]


def render_conditions(conditions: Sequence[Condition]) -> Tuple[str, List[Any]]:
    """Render a condition list, joining each item with its own AND/OR."""
    parts: List[str] = []
    params: List[Any] = []

    for cond in conditions:
        if cond.is_group:
            sql, cond_params = render_conditions(cond.group)
            if not sql:
                continue
            sql = f"({sql})"
        else:
            sql, cond_params = _render_leaf(cond)

        if parts:
            parts.append(f"{WhereAndOr(cond.and_or).value} {sql}")
        else:
            parts.append(sql)
        params.extend(cond_params)

    return " ".join(parts), params


class WhereBuilder:
    """
    Accumulates WHERE conditions.

    Passed to ``where_group`` callbacks to build parenthesized
    sub-expressions:

        builder.where_group(lambda g: g.where("age", WhereOpt.EQ, 42)
                                       .where_or("age", WhereOpt.EQ, 39))
    """

    def __init__(self):
        self._conditions: List[Condition] = []

    @property
    def conditions(self) -> List[Condition]:
        return self._conditions

    def where(self, field: Any, opt: WhereOpt, value: Any = None) -> WhereBuilder:
        """Add an AND-joined condition."""
        self._conditions.append(Condition(field, opt, value, WhereAndOr.AND))
        return self

    def where_or(self, field: Any, opt: WhereOpt, value: Any = None) -> WhereBuilder:
        """Add an OR-joined condition."""
        self._conditions.append(Condition(field, opt, value, WhereAndOr.OR))
        return self

    def where_group(
        self,
        fn: Callable[[WhereBuilder], Optional[WhereBuilder]],
        and_or: WhereAndOr = WhereAndOr.AND,
    ) -> WhereBuilder:
        """Add a parenthesized group filled by ``fn``."""
        inner = WhereBuilder()
        result = fn(inner)
        group = (result if result is not None else inner).conditions
        if group:
            self._conditions.append(Condition(and_or=and_or, group=list(group)))
        return self

    def where_condition(self, *conditions: Condition) -> WhereBuilder:
        """Append prepared conditions as-is."""
        self._conditions.extend(conditions)
        return self

    def build_where(self) -> Tuple[str, List[Any]]:
        return render_conditions(self._conditions)


class QueryBuilder(WhereBuilder):
    """
    SELECT query builder with safe parameter binding.
    """

    def __init__(self):
        super().__init__()
        self._columns: List[Any] = []
        self._table: str = ""
        self._joins: List[Tuple[JoinType, str, Optional[Condition]]] = []
        self._group_by: List[str] = []
        self._having: List[Condition] = []
        self._order_by: List[Tuple[str, OrderByDir]] = []
        self._limit_val: Optional[int] = None
        self._offset_val: int = 0
        self._fetch_val: Optional[int] = None
        self._fetch_offset: int = 0

    def select(self, *columns: Any) -> QueryBuilder:
        """Add columns to select."""
        self._columns.extend(columns)
        return self

    def from_table(self, table: str) -> QueryBuilder:
        """Set the FROM table."""
        self._table = table
        return self

    def join(self, join_type: JoinType, table: str, condition: Optional[Condition] = None) -> QueryBuilder:
        """Add a JOIN clause."""
        self._joins.append((JoinType(join_type), table, condition))
        return self

    def group_by(self, *fields: str) -> QueryBuilder:
        """Add GROUP BY columns."""
        self._group_by.extend(fields)
        return self

    def having(self, field: Any, opt: WhereOpt, value: Any = None) -> QueryBuilder:
        """Add an AND-joined HAVING condition."""
        self._having.append(Condition(field, opt, value, WhereAndOr.AND))
        return self

    def order_by(self, field: str, direction: OrderByDir = OrderByDir.ASC) -> QueryBuilder:
        self._order_by.append((field, OrderByDir(direction)))
        return self

    def limit(self, limit: int, offset: int = 0) -> QueryBuilder:
        self._limit_val = limit
        self._offset_val = offset
        return self

    def fetch(self, offset: int, fetch: int) -> QueryBuilder:
        """SQL:2008 pagination: OFFSET n ROWS FETCH NEXT m ROWS ONLY."""
        self._fetch_offset = offset
        self._fetch_val = fetch
        return self

    def _build_from(self) -> Tuple[List[str], List[Any]]:
        """FROM .. JOIN .. WHERE .. GROUP BY .. HAVING (shared with COUNT)."""
        parts: List[str] = [f"FROM {quote_ident(self._table)}"]
        params: List[Any] = []

        for join_type, join_table, join_on in self._joins:
            clause = f"{join_type.value} JOIN {quote_ident(join_table)}"
            if join_on is not None:
                on_sql, on_params = render_conditions([join_on])
                clause += f" ON {on_sql}"
                params.extend(on_params)
            parts.append(clause)

        where_sql, where_params = self.build_where()
        if where_sql:
            parts.append(f"WHERE {where_sql}")
            params.extend(where_params)

        if self._group_by:
            parts.append("GROUP BY " + ", ".join(quote_ident(g) for g in self._group_by))

        having_sql, having_params = render_conditions(self._having)
        if having_sql:
            parts.append(f"HAVING {having_sql}")
            params.extend(having_params)

        return parts, params

    def _select_list(self) -> str:
        if not self._columns:
            return "*"
        return ", ".join(quote_ident(c) for c in self._columns)

    def build(self) -> Tuple[str, List[Any]]:
        """
        Build the final SQL string and parameter list.

        Returns:
            Tuple of (sql_string, params_list)
        """
        if not self._table:
            raise ValueError("QueryBuilder requires a table (from_table)")

        from_parts, params = self._build_from()
        parts: List[str] = [f"SELECT {self._select_list()}", *from_parts]

        if self._order_by:
            parts.append("ORDER BY " + ", ".join(
                f"{quote_ident(f)} {d.value}" for f, d in self._order_by
            ))

        if self._limit_val is not None:
            parts.append(f"LIMIT {int(self._limit_val)} OFFSET {int(self._offset_val)}")

        if self._fetch_val is not None:
            parts.append(
                f"OFFSET {int(self._fetch_offset)} ROWS FETCH NEXT {int(self._fetch_val)} ROWS ONLY"
            )

        return " ".join(parts), params

    def build_count(self) -> Tuple[str, List[Any]]:
        """
        Build a COUNT(*) version of this query.

        Ignores ORDER BY, LIMIT/OFFSET and FETCH. Grouped queries are
        counted through a subquery so the total is the number of groups.
        """
        if not self._table:
            raise ValueError("QueryBuilder requires a table (from_table)")

        from_parts, params = self._build_from()
        if self._group_by:
            inner = " ".join([f"SELECT {self._select_list()}", *from_parts])
            return f'SELECT COUNT(*) FROM ({inner}) AS "count_rows"', params
        return " ".join(["SELECT COUNT(*)", *from_parts]), params


class UpdateBuilder(WhereBuilder):
    """UPDATE query builder."""

    def __init__(self):
        super().__init__()
        self._table: str = ""
        self._sets: Dict[str, Any] = {}

    def update(self, table: str) -> UpdateBuilder:
        self._table = table
        return self

    def set(self, column: str, value: Any) -> UpdateBuilder:
        self._sets[column] = value
        return self

    @property
    def has_sets(self) -> bool:
        return bool(self._sets)

    def build(self) -> Tuple[str, List[Any]]:
        if not self._table:
            raise ValueError("UpdateBuilder requires a table (update)")
        if not self._sets:
            raise ValueError("UpdateBuilder requires at least one SET column")

        set_parts = [f"{quote_ident(k)} = ?" for k in self._sets]
        params = list(self._sets.values())
        sql = f"UPDATE {quote_ident(self._table)} SET {', '.join(set_parts)}"

        where_sql, where_params = self.build_where()
        if where_sql:
            sql += f" WHERE {where_sql}"
            params.extend(where_params)
        return sql, params
