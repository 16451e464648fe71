"""
Shared test records, fixtures and helpers for the fluentmodel test suite.
"""

from dataclasses import dataclass, field
from typing import List, Optional
from unittest.mock import AsyncMock

import pytest

from fluentmodel.models import Column, DBModel, Table, column


# ============================================================================
# Records
# ============================================================================


@dataclass
class User:
    __table__ = "users"

    id: int = column(primary=True, auto=True, default=0)
    name: str = ""
    age: int = 0
    created_at: Optional[str] = column(read_only=True, default=None)


@dataclass
class Tag:
    """Record without a primary key."""

    __table__ = "tags"

    label: str = ""
    weight: int = 0


@dataclass
class Account:
    """Primary key assigned by the application, not the database."""

    __table__ = "accounts"

    code: str = column(primary=True, default="")
    balance: int = 0


@dataclass
class UserProfile:
    email_address: str = column("email", default="")
    nickname: str = ""
    aliases: List[str] = field(default_factory=list)
    cache: dict = column(ignore=True, default_factory=dict)


@dataclass
class Job:
    """Fields whose declared defaults are not their type's zero."""

    __table__ = "jobs"

    id: int = column(primary=True, auto=True, default=0)
    status: str = "new"
    priority: int = 5


class Legacy:
    """Record described through ``describe()`` instead of dataclass fields."""

    def __init__(self, code=None, title=None):
        self.code = code
        self.title = title

    @classmethod
    def describe(cls) -> Table:
        return Table(name="legacy", columns=[Column("code", primary=True), Column("title")])


# ============================================================================
# Helpers
# ============================================================================


class FixedRandom:
    """Deterministic stand-in for ``secrets.SystemRandom``."""

    def __init__(self, *values: int):
        self.values = list(values)
        self.calls: List[int] = []

    def randrange(self, stop: int) -> int:
        self.calls.append(stop)
        return self.values.pop(0) % stop


def user_row(id: int = 1, name: str = "Cat", age: int = 3, created_at: Optional[str] = None) -> dict:
    return {"id": id, "name": name, "age": age, "created_at": created_at}


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def mock_db():
    """Engine double: every query method is an AsyncMock."""
    db = AsyncMock()
    db.fetch_one.return_value = user_row()
    db.fetch_all.return_value = []
    db.fetch_val.return_value = 0
    db.execute.return_value = 1
    return db


@pytest.fixture
def dbm(mock_db):
    return DBModel(mock_db)
