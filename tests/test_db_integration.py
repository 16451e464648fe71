"""
Integration tests - Database engine and DBModel against in-memory SQLite.
"""

import pytest
import pytest_asyncio

from fluentmodel.db.engine import Database
from fluentmodel.faults import (
    DatabaseConnectionFault,
    MissingWhereFault,
    ModelNotFoundFault,
    QueryFault,
)
from fluentmodel.models import DBModel, OrderByDir, WhereOpt
from tests.conftest import User

PEOPLE = [("Alice", 30), ("Bob", 25), ("Carol", 30), ("Dave", 41), ("Eve", 25)]


@pytest_asyncio.fixture
async def db():
    database = Database("sqlite:///:memory:")
    await database.connect()
    await database.execute(
        "CREATE TABLE users ("
        "id INTEGER PRIMARY KEY AUTOINCREMENT, "
        "name TEXT NOT NULL DEFAULT '', "
        "age INTEGER NOT NULL DEFAULT 0, "
        "created_at TEXT DEFAULT CURRENT_TIMESTAMP)"
    )
    for name, age in PEOPLE:
        await database.execute("INSERT INTO users (name, age) VALUES (?, ?)", [name, age])
    yield database
    await database.disconnect()


class TestDatabase:

    @pytest.mark.asyncio
    async def test_connect_disconnect(self):
        database = Database("sqlite:///:memory:")
        assert database.is_connected is False
        await database.connect()
        assert database.is_connected is True
        await database.disconnect()
        assert database.is_connected is False

    def test_unsupported_driver(self):
        with pytest.raises(DatabaseConnectionFault, match="Unsupported"):
            Database("oracle://host/db")

    def test_properties(self):
        database = Database("sqlite:///:memory:")
        assert database.url == "sqlite:///:memory:"
        assert database.driver == "sqlite"
        assert database.dialect == "sqlite"
        assert database.capabilities.param_style == "qmark"

    @pytest.mark.asyncio
    async def test_execute_returns_rowcount(self, db):
        count = await db.execute("UPDATE users SET age = age + 1 WHERE age = ?", [25])
        assert count == 2

    @pytest.mark.asyncio
    async def test_driver_error_wrapped(self, db):
        with pytest.raises(QueryFault):
            await db.fetch_all("SELECT * FROM missing_table")

    @pytest.mark.asyncio
    async def test_transaction_commit(self, db):
        async with db.transaction() as tx:
            await tx.execute("UPDATE users SET name = ? WHERE id = ?", ["Zed", 1])
        assert await db.fetch_val("SELECT name FROM users WHERE id = ?", [1]) == "Zed"

    @pytest.mark.asyncio
    async def test_statements_outside_handle_join_open_transaction(self, db):
        with pytest.raises(RuntimeError):
            async with db.transaction() as tx:
                assert tx.capabilities.supports_fetch_clause is False
                await db.execute("UPDATE users SET name = ? WHERE id = ?", ["Shadow", 2])
                raise RuntimeError("abort")
        assert await db.fetch_val("SELECT name FROM users WHERE id = ?", [2]) == "Bob"

    @pytest.mark.asyncio
    async def test_transaction_handle_closed_after_block(self, db):
        async with db.transaction() as tx:
            pass
        assert tx.active is False
        with pytest.raises(QueryFault, match="no longer active"):
            await tx.fetch_one("SELECT 1")


class TestRetrieval:

    @pytest.mark.asyncio
    async def test_first_last(self, db):
        first = await DBModel(db).first(User)
        last = await DBModel(db).last(User)
        assert (first.id, first.name) == (1, "Alice")
        assert (last.id, last.name) == (5, "Eve")
        assert first.created_at is not None

    @pytest.mark.asyncio
    async def test_first_by_id_and_by_record(self, db):
        user = await DBModel(db).first(User, 3)
        assert user.name == "Carol"

        probe = User(id=4)
        await DBModel(db).first(probe)
        assert probe.name == "Dave"

    @pytest.mark.asyncio
    async def test_first_with_where(self, db):
        user = await DBModel(db).where("age", WhereOpt.EQ, 25).order_by("id").last(User)
        assert user.name == "Eve"

    @pytest.mark.asyncio
    async def test_take(self, db):
        user = await DBModel(db).take(User)
        assert user.name in {name for name, _ in PEOPLE}

    @pytest.mark.asyncio
    async def test_not_found(self, db):
        with pytest.raises(ModelNotFoundFault):
            await DBModel(db).first(User, 999)

    @pytest.mark.asyncio
    async def test_find_paginated_total(self, db):
        users, total = await (
            DBModel(db).order_by("id", OrderByDir.DESC).limit(2, 1).find(list[User])
        )
        assert [u.name for u in users] == ["Dave", "Carol"]
        assert total == 5

    @pytest.mark.asyncio
    async def test_find_ids_and_where(self, db):
        users, total = await (
            DBModel(db).where("age", WhereOpt.EQ, 30).order_by("id").find(list[User], [1, 2, 3])
        )
        assert [u.name for u in users] == ["Alice", "Carol"]
        assert total == 2

    @pytest.mark.asyncio
    async def test_find_grouped_total_counts_groups(self, db):
        rows, total = await DBModel(db).select("age").group_by("age").order_by("age").find(list[User])
        assert [r.age for r in rows] == [25, 30, 41]
        assert total == 3


class TestUpdate:

    @pytest.mark.asyncio
    async def test_update_loaded_record(self, db):
        dbm = DBModel(db)
        user = await dbm.first(User, 1)
        user.name = "Cat John"

        assert await dbm.update(user) == 1
        reloaded = await dbm.first(User, 1)
        assert reloaded.name == "Cat John"
        assert reloaded.age == 30

    @pytest.mark.asyncio
    async def test_update_map_with_omit(self, db):
        dbm = DBModel(db)
        user = await dbm.first(User, 2)

        await dbm.model(user).omit("name").update({"name": "Tah Go Tab", "age": 88})

        reloaded = await dbm.first(User, 2)
        assert (reloaded.name, reloaded.age) == ("Bob", 88)

    @pytest.mark.asyncio
    async def test_missing_where_writes_nothing(self, db):
        with pytest.raises(MissingWhereFault):
            await DBModel(db).update(User(name="Everyone"))
        assert await db.fetch_val("SELECT COUNT(*) FROM users WHERE name = ?", ["Everyone"]) == 0

    @pytest.mark.asyncio
    async def test_update_in_transaction_rolls_back(self, db):
        with pytest.raises(RuntimeError):
            async with db.transaction() as tx:
                await DBModel(db).with_tx(tx).update(User(id=1, name="Gone", age=1))
                raise RuntimeError("abort")
        user = await DBModel(db).first(User, 1)
        assert user.name == "Alice"
