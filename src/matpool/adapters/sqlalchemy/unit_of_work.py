"""Database handle and SQLAlchemy-backed units of work.

The ``Database`` is constructed and owned by the composition root: it is opened at
startup (mappers, migrations, session factory) and closed at shutdown. Units of work
borrow its session factory; nothing here is a process-wide singleton.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Literal, Self

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from matpool.adapters.sqlalchemy.mappings import start_mappers
from matpool.adapters.sqlalchemy.migrations import upgrade_head
from matpool.adapters.sqlalchemy.repositories import (
    SqlAlchemyIdentityDirectory,
    SqlAlchemyMaterialRepository,
)
from matpool.domain.ports.unit_of_work import PoolRepositories, RepositoryCollection

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

    from matpool.config import DatabaseConfig

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the database handle is used before ``open()`` or after ``close()``."""


class Database:
    """Engine plus session factory with an explicit open/close lifecycle."""

    def __init__(
        self, *, uri: str | None = None, engine: Engine | None = None, echo: bool = False
    ) -> None:
        if (uri is None) == (engine is None):
            raise ValueError("Database requires exactly one of uri or engine")
        self._uri = uri
        self._echo = echo
        self._engine = engine
        self._owns_engine = engine is None
        self._session_factory: sessionmaker[Session] | None = None

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> Database:
        return cls(uri=config.uri, echo=config.echo)

    @property
    def is_open(self) -> bool:
        return self._session_factory is not None

    @property
    def engine(self) -> Engine:
        if self._engine is None or not self.is_open:
            raise StartupError("Database is not open. Call Database.open() first.")
        return self._engine

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._session_factory is None:
            raise StartupError("Database is not open. Call Database.open() first.")
        return self._session_factory

    def open(self, *, migrate: bool = True) -> Self:
        """Create the engine if needed, map the model and bring the schema to head."""

        if self.is_open:
            raise StartupError("Database already open")
        if self._engine is None:
            if self._uri is None:
                raise StartupError("Database has neither engine nor uri")
            self._engine = create_engine(self._uri, echo=self._echo, future=True)
        start_mappers()
        if migrate:
            upgrade_head(engine=self._engine)
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        log.info("Database opened: %s", self._engine.url.render_as_string(hide_password=True))
        return self

    def close(self) -> None:
        """Drop the session factory and dispose the engine if this handle created it."""

        if not self.is_open:
            return
        self._session_factory = None
        if self._owns_engine and self._engine is not None:
            self._engine.dispose()
            self._engine = None
        log.info("Database closed")

    def unit_of_work(self) -> SqlAlchemyPoolUnitOfWork:
        return SqlAlchemyPoolUnitOfWork(self)

    def __enter__(self) -> Self:
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        self.close()
        return False


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """Generic SQLAlchemy unit of work with pluggable repository collections."""

    def __init__(self, database: Database) -> None:
        self.session_factory: sessionmaker[Session] = database.session_factory
        self._session: Session | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> Self:
        self.session = self.session_factory()
        self._repositories = self._build_repositories(self.session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self.session = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> TRepositories:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


class SqlAlchemyPoolUnitOfWork(BaseSqlAlchemyUnitOfWork[PoolRepositories]):
    """Unit of work over materials and identities."""

    def _build_repositories(self, session: Session) -> PoolRepositories:
        return PoolRepositories(
            materials=SqlAlchemyMaterialRepository(session),
            identities=SqlAlchemyIdentityDirectory(session),
        )


if TYPE_CHECKING:
    from matpool.domain.ports.unit_of_work import PoolUnitOfWork

    _uow_check: PoolUnitOfWork = SqlAlchemyPoolUnitOfWork(Database(uri="sqlite://"))
