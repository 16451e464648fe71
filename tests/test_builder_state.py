"""
DBModel builder state - chaining, binding, reset, ownership.
"""

import pytest

from fluentmodel.db.engine import set_database
from fluentmodel.faults import DatabaseConnectionFault, InvalidModelFault
from fluentmodel.models import DBModel, JoinType, OrderByDir, WhereAndOr, WhereOpt
from fluentmodel.models.builder import LimitClause, FetchClause
from tests.conftest import User


class TestChaining:

    def test_chain_methods_return_same_builder(self, dbm):
        result = (
            dbm.select("id")
            .omit("name")
            .where("age", WhereOpt.GREATER, 1)
            .where_or("age", WhereOpt.LESSER, 99)
            .where_group(lambda g: g.where("name", WhereOpt.LIKE, "C%"))
            .join(JoinType.INNER, "orders")
            .group_by("age")
            .having("age", WhereOpt.GREATER, 1)
            .limit(10, 5)
            .fetch(0, 10)
            .order_by("id", OrderByDir.DESC)
            .model(User(id=1))
            .raw("SELECT 1")
            .with_tx(None)
        )
        assert result is dbm

    def test_components_accumulate(self, dbm):
        dbm.select("id").select("name").where("age", WhereOpt.EQ, 1).where_or("age", WhereOpt.EQ, 2)
        dbm.limit(10, 5).fetch(20, 3)
        state = dbm._state
        assert state.select_columns == ["id", "name"]
        assert [c.and_or for c in state.where] == [WhereAndOr.AND, WhereAndOr.OR]
        assert state.limit == LimitClause(10, 5)
        assert state.fetch == FetchClause(fetch=3, offset=20)

    def test_where_group_stored_as_group(self, dbm):
        dbm.where_group(lambda g: g.where("a", WhereOpt.EQ, 1).where_or("b", WhereOpt.EQ, 2))
        group = dbm._state.where[0]
        assert group.is_group
        assert [c.field for c in group.group] == ["a", "b"]

    def test_empty_where_group_ignored(self, dbm):
        dbm.where_group(lambda g: None)
        assert dbm._state.where == []

    def test_model_rejects_non_records(self, dbm):
        with pytest.raises(InvalidModelFault):
            dbm.model({"id": 1})
        with pytest.raises(InvalidModelFault):
            dbm.model(User)


class TestReset:

    def test_reset_clears_everything(self, dbm):
        dbm.select("id").where("id", WhereOpt.EQ, 1).limit(1).model(User(id=1)).with_tx(object())
        dbm.reset()
        state = dbm._state
        assert state.select_columns == []
        assert state.where == []
        assert state.limit is None
        assert state.model is None
        assert state.tx is None

    @pytest.mark.asyncio
    async def test_failed_terminal_resets_state(self, dbm, mock_db):
        dbm.where("age", WhereOpt.GREATER, 18).limit(5)
        with pytest.raises(InvalidModelFault):
            await dbm.first(42)
        assert dbm._state.where == []
        assert dbm._state.limit is None
        mock_db.fetch_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_state_does_not_leak_between_terminals(self, dbm, mock_db):
        await dbm.where("age", WhereOpt.GREATER, 18).first(User)
        await dbm.first(User)
        sql, params = mock_db.fetch_one.await_args.args
        assert sql == 'SELECT * FROM "users" ORDER BY "id" ASC LIMIT 1 OFFSET 0'
        assert params == []


class TestOwnership:

    def test_session_is_empty_and_shares_db(self, dbm, mock_db):
        dbm.where("id", WhereOpt.EQ, 1)
        other = dbm.session()
        assert other is not dbm
        assert other.db is mock_db
        assert other._state.where == []

    def test_clone_copies_state_independently(self, dbm):
        dbm.where("id", WhereOpt.EQ, 1)
        copy = dbm.clone()
        copy.where("age", WhereOpt.EQ, 2)
        assert len(dbm._state.where) == 1
        assert len(copy._state.where) == 2

    def test_db_falls_back_to_default_database(self, mock_db):
        set_database(mock_db)
        try:
            assert DBModel().db is mock_db
        finally:
            set_database(None)

    def test_db_without_default(self):
        with pytest.raises(DatabaseConnectionFault):
            DBModel().db
