"""
FluentModel Query - single-row and multi-row retrieval terminals.

Single row:
    user = await db.first(User)              # ORDER BY pk ASC LIMIT 1
    user = await db.first(User, 103)         # WHERE pk = 103
    user = await db.last(User)               # ORDER BY pk DESC LIMIT 1
    user = await db.take(User)               # random column and direction

    user = User(id=103)
    await db.first(user)                     # populated fields filter; bound in place

Multi row:
    users, total = await db.where("age", WhereOpt.GREATER, 18).limit(10, 20).find(list[User])
    users, total = await db.find(list[User], [1, 2, 3])   # WHERE pk IN (1, 2, 3)
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple

from ..faults.domains import InvalidModelFault, InvalidParamsFault, ModelNotFoundFault
from .sql_builder import Condition, OrderByDir, QueryBuilder, WhereAndOr, WhereOpt
from .table import Table, bind_row, is_record, model_data, record_of_sequence

__all__ = ["GetOne", "QueryMixin"]

logger = logging.getLogger("fluentmodel.models")

_ID_SEQUENCES = (list, tuple, set, frozenset)


class GetOne(str, Enum):
    """Ordering strategy of a single-row query."""

    FIRST = "first"
    LAST = "last"
    TAKE = "take"


def _model_name(model: Any) -> str:
    cls = model if isinstance(model, type) else type(model)
    return getattr(cls, "__name__", repr(cls))


class QueryMixin:
    """Retrieval terminals of ``DBModel``."""

    async def first(self, model: Any, *args: Any) -> Any:
        """
        First row ordered by primary key ascending.

        Args:
            model: Record class or instance (instances are filled in place)
            *args: Optional primary-key value
        """
        if args:
            self._state.where_primary = Condition(None, WhereOpt.EQ, args[0], WhereAndOr.AND)
        return await self.get_one(model, GetOne.FIRST)

    async def last(self, model: Any) -> Any:
        """Last row ordered by primary key descending."""
        return await self.get_one(model, GetOne.LAST)

    async def take(self, model: Any) -> Any:
        """One row in an unpredictable order."""
        return await self.get_one(model, GetOne.TAKE)

    async def get_one(self, model: Any, strategy: GetOne = GetOne.FIRST) -> Any:
        """
        Query one row with the given ordering strategy and bind it.

        Returns:
            The bound record (``model`` itself when an instance was given)

        Raises:
            InvalidModelFault: model is not a record
            ModelNotFoundFault: no row matched
        """
        try:
            state = self._state
            raw = state.raw
            if raw is not None:
                self._log("get_one", raw.sql, raw.args)
                row = await self._executor().fetch_one(raw.sql, list(raw.args))
                if row is None:
                    raise ModelNotFoundFault(_model_name(model))
                return bind_row(model, row)

            if not is_record(model):
                raise InvalidModelFault(model, "a record class or record instance")

            table = model_data(model)
            pk = table.primary_key

            qb = QueryBuilder().select(*state.select_columns).from_table(table.name).limit(1, 0)

            # A primary key populated on the target is the fast-path value
            # unless one was passed explicitly.
            pk_from_record = False
            if state.where_primary is None and pk is not None:
                pk_col = table.primaries[0]
                if pk_col.has_value:
                    state.where_primary = Condition(None, WhereOpt.EQ, table.values[pk], WhereAndOr.AND)
                    pk_from_record = True

            primary = self._primary_condition(pk)
            if primary is not None:
                qb.where_condition(primary)

            self._apply_where(qb)

            if table.has_data:
                for col in table.columns:
                    if not col.has_value or (pk_from_record and col.name == pk):
                        continue
                    qb.where(col.name, WhereOpt.EQ, table.values[col.name])

            self._where_from_model(qb)

            order_field, direction = self._one_ordering(model, table, pk, GetOne(strategy))
            qb.order_by(order_field, direction)

            sql, params = qb.build()
            self._log(f"get_one[{GetOne(strategy).value}]", sql, params)
            row = await self._executor().fetch_one(sql, params)
            if row is None:
                raise ModelNotFoundFault(_model_name(model))
            return bind_row(model, row)
        finally:
            self.reset()

    def _one_ordering(self, model: Any, table: Table, pk: Optional[str], strategy: GetOne) -> Tuple[str, OrderByDir]:
        if not table.columns:
            raise InvalidModelFault(model, "a record with at least one column")

        if strategy == GetOne.TAKE:
            col = table.columns[self._rng.randrange(len(table.columns))]
            direction = OrderByDir.ASC if self._rng.randrange(2) else OrderByDir.DESC
            return col.name, direction

        field = pk if pk is not None else table.columns[0].name
        if strategy == GetOne.LAST:
            return field, OrderByDir.DESC
        return field, OrderByDir.ASC

    async def find(self, model: Any, ids: Optional[Sequence[Any]] = None) -> Tuple[List[Any], int]:
        """
        Query many rows plus the total count of matching rows.

        ``total`` ignores limit/offset/fetch/order, so it is the size of
        the whole result set rather than of the returned page.

        Args:
            model: ``list[Record]``
            ids: Optional primary-key values (``pk IN (ids)``); ignored when
                the record declares no primary key

        Returns:
            Tuple of (records, total)

        Raises:
            InvalidModelFault: model is not a list-of-record type
            InvalidParamsFault: ids is not a list, tuple or set
        """
        try:
            state = self._state
            record_cls = record_of_sequence(model)

            raw = state.raw
            if raw is not None:
                if record_cls is None:
                    raise InvalidModelFault(model, "list[Record]")
                self._log("find", raw.sql, raw.args)
                rows = await self._executor().fetch_all(raw.sql, list(raw.args))
                records = [bind_row(record_cls, row) for row in rows]
                return records, len(records)

            if record_cls is None:
                raise InvalidModelFault(model, "list[Record]")

            table = model_data(record_cls)
            pk = table.primary_key

            # ids only apply to records with a primary key; otherwise ignored
            if ids is not None and pk is not None:
                if not isinstance(ids, _ID_SEQUENCES):
                    raise InvalidParamsFault("find", f"ids must be a list, tuple or set, got {type(ids).__name__}")
                state.where_primary = Condition(pk, WhereOpt.IN, list(ids), WhereAndOr.AND)

            qb = QueryBuilder().select(*state.select_columns).from_table(table.name)

            for item in state.joins:
                qb.join(item.join, item.table, item.condition)

            primary = self._primary_condition(pk)
            if primary is not None:
                qb.where_condition(primary)

            self._apply_where(qb)
            self._where_from_model(qb)

            if state.group_by:
                qb.group_by(*state.group_by)
            for cond in state.having:
                qb.having(cond.field, cond.opt, cond.value)

            if state.limit is not None and state.limit.limit > 0:
                qb.limit(state.limit.limit, state.limit.offset)

            executor = self._executor()

            if state.fetch is not None and state.fetch.fetch > 0:
                caps = getattr(executor, "capabilities", None)
                if caps is not None and caps.supports_fetch_clause is False:
                    logger.warning(
                        f"{caps.name} has no FETCH NEXT clause; use limit() for {table.name!r}"
                    )
                qb.fetch(state.fetch.offset, state.fetch.fetch)

            for item in state.order_by:
                qb.order_by(item.field, item.direction)

            sql, params = qb.build()
            self._log("find", sql, params)
            rows = await executor.fetch_all(sql, params)
            records = [bind_row(record_cls, row) for row in rows]

            count_sql, count_params = qb.build_count()
            self._log("find[count]", count_sql, count_params)
            total = await executor.fetch_val(count_sql, count_params)

            return records, int(total or 0)
        finally:
            self.reset()
