from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, inspect, select

from matpool.adapters.sqlalchemy import create_all_tables, mapper_registry, start_mappers
from matpool.adapters.sqlalchemy.mappings import UTCDateTime, material_table
from matpool.domain.model import Material, MaterialStatus

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine
    from sqlalchemy.orm import Session


def test_start_mappers_is_idempotent() -> None:
    # First invocation happens in the sqlite_engine fixture; calling again should be harmless.
    assert start_mappers() is mapper_registry
    assert start_mappers() is mapper_registry


def test_migrated_schema_matches_table_metadata(sqlite_engine: Engine) -> None:
    inspector = inspect(sqlite_engine)

    for table in mapper_registry.metadata.sorted_tables:
        reflected = {column["name"] for column in inspector.get_columns(table.name)}
        assert reflected == set(table.columns.keys()), table.name
        indexes = {index["name"] for index in inspector.get_indexes(table.name)}
        assert {index.name for index in table.indexes} <= indexes


def test_create_all_tables_builds_throwaway_schema() -> None:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    start_mappers()

    create_all_tables(engine)

    assert {"material", "app_user", "audit_log"} <= set(inspect(engine).get_table_names())
    engine.dispose()


def test_status_is_stored_as_lowercase_value(sqlite_session: Session) -> None:
    sqlite_session.add(
        Material(
            category="A",
            identifier="x",
            status=MaterialStatus.IN_USE,
            holder="bob",
            claimed_at=datetime(2024, 1, 1, tzinfo=UTC),
        )
    )
    sqlite_session.commit()

    raw = sqlite_session.execute(select(material_table.c.status).select_from(material_table))
    assert raw.scalar_one() == MaterialStatus.IN_USE
    stored = sqlite_session.connection().exec_driver_sql("SELECT status FROM material").scalar_one()
    assert stored == "in_use"


def test_utc_datetime_normalises_offsets() -> None:
    column_type = UTCDateTime()
    dialect = create_engine("sqlite://").dialect
    plus_two = timezone(timedelta(hours=2))

    bound = column_type.process_bind_param(datetime(2024, 1, 1, 12, tzinfo=plus_two), dialect)
    naive = column_type.process_bind_param(datetime(2024, 1, 1, 12), dialect)
    loaded = column_type.process_result_value(datetime(2024, 1, 1, 10), dialect)

    assert bound == datetime(2024, 1, 1, 10, tzinfo=UTC)
    assert naive == datetime(2024, 1, 1, 12, tzinfo=UTC)
    assert loaded is not None
    assert loaded.tzinfo is UTC
    assert column_type.process_bind_param(None, dialect) is None
