"""SQLAlchemy adapter package for matpool."""

from __future__ import annotations

from .audit import SqlAlchemyAuditSink
from .mappings import (
    app_user_table,
    audit_log_table,
    create_all_tables,
    mapper_registry,
    material_table,
    start_mappers,
)
from .repositories import SqlAlchemyIdentityDirectory, SqlAlchemyMaterialRepository
from .unit_of_work import (
    BaseSqlAlchemyUnitOfWork,
    Database,
    SqlAlchemyPoolUnitOfWork,
    StartupError,
)

__all__ = [
    "BaseSqlAlchemyUnitOfWork",
    "Database",
    "SqlAlchemyAuditSink",
    "SqlAlchemyIdentityDirectory",
    "SqlAlchemyMaterialRepository",
    "SqlAlchemyPoolUnitOfWork",
    "StartupError",
    "app_user_table",
    "audit_log_table",
    "create_all_tables",
    "mapper_registry",
    "material_table",
    "start_mappers",
]
