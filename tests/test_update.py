"""
Update terminal - full-model and partial-map paths, WHERE guard.
"""

from unittest.mock import AsyncMock

import pytest

from fluentmodel.faults import (
    EmptyUpdateFault,
    InvalidModelFault,
    InvalidParamsFault,
    MissingModelFault,
    MissingWhereFault,
)
from fluentmodel.models import WhereOpt
from tests.conftest import Account, User, UserProfile


class TestUpdateModel:

    @pytest.mark.asyncio
    async def test_primary_key_targets_row(self, dbm, mock_db):
        mock_db.execute.return_value = 1

        count = await dbm.update(User(id=1, name="Cat", age=3))

        # auto and read-only columns stay out of SET
        mock_db.execute.assert_awaited_once_with(
            'UPDATE "users" SET "name" = ?, "age" = ? WHERE "id" = ?', ["Cat", 3, 1]
        )
        assert count == 1

    @pytest.mark.asyncio
    async def test_application_primary_key(self, dbm, mock_db):
        await dbm.update(Account(code="A1", balance=10))
        mock_db.execute.assert_awaited_once_with(
            'UPDATE "accounts" SET "code" = ?, "balance" = ? WHERE "code" = ?', ["A1", 10, "A1"]
        )

    @pytest.mark.asyncio
    async def test_explicit_where_without_primary_key(self, dbm, mock_db):
        await dbm.where("age", WhereOpt.LESSER, 10).update(User(name="Kid"))
        mock_db.execute.assert_awaited_once_with(
            'UPDATE "users" SET "name" = ?, "age" = ? WHERE "age" < ?', ["Kid", 0, 10]
        )

    @pytest.mark.asyncio
    async def test_primary_key_and_where_group(self, dbm, mock_db):
        await (
            dbm.where_group(lambda g: g.where("age", WhereOpt.EQ, 42).where_or("age", WhereOpt.EQ, 39))
            .update(User(id=1, name="Cat", age=40))
        )
        mock_db.execute.assert_awaited_once_with(
            'UPDATE "users" SET "name" = ?, "age" = ? WHERE "id" = ? AND ("age" = ? OR "age" = ?)',
            ["Cat", 40, 1, 42, 39],
        )

    @pytest.mark.asyncio
    async def test_omit_by_attribute_or_column_name(self, dbm, mock_db):
        await dbm.where("nickname", WhereOpt.EQ, "cat").omit("email_address").update(
            UserProfile(email_address="a@b.c", nickname="kit")
        )
        sql, params = mock_db.execute.await_args.args
        assert sql == 'UPDATE "user_profile" SET "nickname" = ?, "aliases" = ? WHERE "nickname" = ?'
        assert params == ["kit", [], "cat"]

    @pytest.mark.asyncio
    async def test_missing_where(self, dbm, mock_db):
        dbm.omit("age")
        with pytest.raises(MissingWhereFault):
            await dbm.update(User(name="Everyone"))
        mock_db.execute.assert_not_awaited()
        assert dbm._state.omit_columns == []

    @pytest.mark.asyncio
    async def test_empty_update(self, dbm, mock_db):
        with pytest.raises(EmptyUpdateFault):
            await dbm.omit("name", "age").update(User(id=1))
        mock_db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("target", [User, 42, "users", None])
    async def test_invalid_target(self, dbm, mock_db, target):
        with pytest.raises(InvalidModelFault):
            await dbm.update(target)
        mock_db.execute.assert_not_awaited()


class TestUpdateMap:

    @pytest.mark.asyncio
    async def test_requires_bound_model(self, dbm, mock_db):
        with pytest.raises(MissingModelFault):
            await dbm.update({"name": "Cat"})
        mock_db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_zero_values_skipped(self, dbm, mock_db):
        user = User(id=5, name="Old", age=20)
        await dbm.model(user).update({"name": "New", "age": 0})
        assert user.name == "New"
        assert user.age == 20
        mock_db.execute.assert_awaited_once_with(
            'UPDATE "users" SET "name" = ?, "age" = ? WHERE "id" = ?', ["New", 20, 5]
        )

    @pytest.mark.asyncio
    async def test_omitted_columns_excluded(self, dbm, mock_db):
        user = User(id=5, name="Old", age=20)
        await dbm.model(user).omit("name").update({"name": "Tah Go Tab", "age": 88})
        mock_db.execute.assert_awaited_once_with(
            'UPDATE "users" SET "age" = ? WHERE "id" = ?', [88, 5]
        )

    @pytest.mark.asyncio
    async def test_keys_by_column_name(self, dbm, mock_db):
        profile = UserProfile(nickname="kit")
        await dbm.model(profile).where("nickname", WhereOpt.EQ, "kit").update({"email": "a@b.c"})
        assert profile.email_address == "a@b.c"

    @pytest.mark.asyncio
    async def test_unknown_key(self, dbm, mock_db):
        with pytest.raises(InvalidParamsFault):
            await dbm.model(User(id=1)).update({"nope": 1})
        mock_db.execute.assert_not_awaited()
        assert dbm._state.model is None


class TestUpdateRawAndTransaction:

    @pytest.mark.asyncio
    async def test_raw_statement(self, dbm, mock_db):
        mock_db.execute.return_value = 3
        count = await dbm.raw("UPDATE users SET age = age + 1 WHERE age > ?", 18).update(None)
        mock_db.execute.assert_awaited_once_with("UPDATE users SET age = age + 1 WHERE age > ?", [18])
        assert count == 3

    @pytest.mark.asyncio
    async def test_with_tx(self, dbm, mock_db):
        tx = AsyncMock()
        tx.execute.return_value = 1
        await dbm.with_tx(tx).update(User(id=1, name="Cat"))
        tx.execute.assert_awaited_once()
        mock_db.execute.assert_not_awaited()
