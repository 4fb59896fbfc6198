from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from matpool.adapters.sqlalchemy import Database, SqlAlchemyPoolUnitOfWork, start_mappers
from matpool.adapters.sqlalchemy.migrations import upgrade_head
from matpool.app import MaterialPool
from matpool.config import PoolConfig

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    start_mappers()
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def database(sqlite_engine: Engine) -> Iterator[Database]:
    db = Database(engine=sqlite_engine).open()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def sqlite_unit_of_work(database: Database) -> Callable[[], SqlAlchemyPoolUnitOfWork]:
    return database.unit_of_work


@pytest.fixture
def pool(database: Database) -> Iterator[MaterialPool]:
    material_pool = MaterialPool(database, pool_config=PoolConfig())
    try:
        yield material_pool
    finally:
        material_pool.close()
