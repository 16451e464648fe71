"""
FluentModel Models - fluent persistence over dataclass records.

Usage:
    from dataclasses import dataclass
    from fluentmodel.models import DBModel, WhereOpt, column

    @dataclass
    class User:
        __table__ = "users"

        id: int = column(primary=True, auto=True, default=0)
        name: str = ""
        age: int = 0

    db = DBModel(database)
    user = await db.first(User, 103)
    users, total = await db.where("age", WhereOpt.GREATER, 18).limit(10).find(list[User])

Public API:
    - DBModel: fluent builder with first/last/take/get_one/find/update
    - column, Table, Column, model_data: record metadata
    - QueryBuilder, UpdateBuilder, WhereBuilder: parameterized SQL
    - WhereOpt, WhereAndOr, OrderByDir, JoinType, GetOne: enums
"""

from .builder import (
    DBModel,
    BuilderState,
    JoinItem,
    OrderItem,
    LimitClause,
    FetchClause,
    RawQuery,
)

from .query import GetOne

from .table import (
    Column,
    Table,
    column,
    model_data,
    is_record,
    record_of_sequence,
    is_zero,
    set_value,
    bind_row,
)

from .sql_builder import (
    WhereOpt,
    WhereAndOr,
    OrderByDir,
    JoinType,
    ValueField,
    Condition,
    WhereBuilder,
    QueryBuilder,
    UpdateBuilder,
)

__all__ = [
    # Builder
    "DBModel",
    "BuilderState",
    "GetOne",
    "JoinItem",
    "OrderItem",
    "LimitClause",
    "FetchClause",
    "RawQuery",
    # Metadata
    "Column",
    "Table",
    "column",
    "model_data",
    "is_record",
    "record_of_sequence",
    "is_zero",
    "set_value",
    "bind_row",
    # SQL
    "WhereOpt",
    "WhereAndOr",
    "OrderByDir",
    "JoinType",
    "ValueField",
    "Condition",
    "WhereBuilder",
    "QueryBuilder",
    "UpdateBuilder",
]
