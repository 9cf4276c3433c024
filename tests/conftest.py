"""Shared fixtures for pg-standards tests."""

from __future__ import annotations

import pytest

from fakes import FakeDatabase, FakeSequence, FakeTable
from pg_standards.cache import StandardsCache
from pg_standards.config import Config
from pg_standards.helper import PgHelper
from pg_standards.models import ValidationRule
from pg_standards.timing import OperationStats
from pg_standards.validators.triggers import updated_at_trigger_name


class FakeClock:
    """Manually advanced clock for timing and cache tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_table(
    name: str,
    columns: dict[str, str] | None = None,
    max_id: int = 0,
    serial: bool = True,
    sequence_called: bool = False,
    last_value: int = 1,
    updated_at: bool = False,
    trigger: bool = False,
    **kwargs,
) -> FakeTable:
    """Factory for FakeTable with an ``id`` serial column and sensible defaults.

    max_id rows are created with ids 1..max_id. With updated_at=True the table
    gets an updated_at column; trigger=True also installs its trigger.
    """
    cols = dict(columns) if columns is not None else {"id": "bigint", "name": "text"}
    if updated_at:
        cols["updated_at"] = "timestamp without time zone"

    sequences = []
    if serial:
        sequences.append(
            FakeSequence(
                name=f"{name}_id_seq",
                column="id",
                last_value=last_value,
                is_called=sequence_called,
            )
        )

    triggers = {updated_at_trigger_name(name)} if trigger else set()
    return FakeTable(
        name=name,
        columns=cols,
        rows=[{"id": i} for i in range(1, max_id + 1)],
        sequences=sequences,
        triggers=triggers,
        **kwargs,
    )


@pytest.fixture
def db() -> FakeDatabase:
    """Empty fake database for the public schema."""
    return FakeDatabase()


@pytest.fixture
def conn(db):
    return db.connect()


@pytest.fixture
def config() -> Config:
    """Default config without the example table rules."""
    return Config(table_validations={})


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def helper(conn, config, clock) -> PgHelper:
    return PgHelper(
        conn,
        config=config,
        stats=OperationStats.from_config(config),
        cache=StandardsCache(ttl=300, clock=clock),
    )


@pytest.fixture
def healthy_db(db) -> FakeDatabase:
    """Two tables with synced sequences and their triggers in place."""
    db.add_table(make_table("users", max_id=5, sequence_called=True, last_value=5,
                            updated_at=True, trigger=True))
    db.add_table(make_table("posts", max_id=3, sequence_called=True, last_value=3,
                            updated_at=True, trigger=True))
    return db


def rule(**kwargs) -> ValidationRule:
    """ValidationRule factory accepting lists for the set fields."""
    for key in ("required_columns", "required_indexes"):
        if key in kwargs:
            kwargs[key] = set(kwargs[key])
    return ValidationRule(**kwargs)
