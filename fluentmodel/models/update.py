"""
FluentModel Update - guarded UPDATE terminal.

Every UPDATE carries a WHERE clause: the populated primary key of the
record, explicit ``where()`` conditions, or both. Anything else raises
``MissingWhereFault`` before touching the database.

    user = await db.first(User, 1)
    user.name = "Cat John"
    await db.update(user)                               # WHERE "id" = ?

    await db.model(user).omit("name").update({"name": "x", "age": 88})
"""

from __future__ import annotations

from typing import Any, Mapping

from ..faults.domains import (
    EmptyUpdateFault,
    InvalidModelFault,
    MissingModelFault,
    MissingWhereFault,
)
from .sql_builder import Condition, UpdateBuilder, WhereAndOr, WhereOpt
from .table import is_record, is_zero, model_data, set_value

__all__ = ["UpdateMixin"]


class UpdateMixin:
    """Update terminal of ``DBModel``."""

    async def update(self, model: Any) -> int:
        """
        Update rows from a record instance or a partial mapping.

        Args:
            model: Record instance (full update) or mapping of field/column
                names to values applied onto the record bound with ``model()``

        Returns:
            Number of affected rows

        Raises:
            InvalidModelFault: model is neither a mapping nor a record instance
            MissingModelFault: mapping given without a bound model
            MissingWhereFault: no primary key value and no where condition
            EmptyUpdateFault: no column left to SET
        """
        try:
            raw = self._state.raw
            if raw is not None:
                self._log("update", raw.sql, raw.args)
                return await self._executor().execute(raw.sql, list(raw.args))
            if isinstance(model, Mapping):
                return await self._update_by_map(model)
            if is_record(model) and not isinstance(model, type):
                return await self._update_by_model(model)
            raise InvalidModelFault(model, "a record instance or a mapping")
        finally:
            self.reset()

    async def _update_by_map(self, values: Mapping[str, Any]) -> int:
        bound = self._state.model
        if bound is None:
            raise MissingModelFault("update")

        # Zero values are indistinguishable from "not supplied" and are skipped.
        for key, value in values.items():
            if not is_zero(value):
                set_value(bound, key, value)

        return await self._update_by_model(bound)

    async def _update_by_model(self, model: Any) -> int:
        state = self._state
        table = model_data(model)
        pk = table.primary_key
        omitted = set(state.omit_columns)

        builder = UpdateBuilder().update(table.name)

        for col in table.columns:
            if col.name == pk and col.has_value:
                state.where_primary = Condition(pk, WhereOpt.EQ, table.values[pk], WhereAndOr.AND)

            if not table.can_column_be_add_or_update(col):
                continue
            if col.name in omitted or col.attr in omitted:
                continue
            builder.set(col.name, table.values[col.name])

        primary = self._primary_condition(pk)
        if primary is not None:
            builder.where_condition(primary)
        has_where = self._apply_where(builder) or primary is not None

        if not has_where:
            raise MissingWhereFault(table.name)
        if not builder.has_sets:
            raise EmptyUpdateFault(table.name)

        sql, params = builder.build()
        self._log("update", sql, params)
        return await self._executor().execute(sql, params)
