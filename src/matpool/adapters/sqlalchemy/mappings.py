"""SQLAlchemy mapping metadata for the matpool domain model."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Dialect,
    Enum,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    orm,
)
from sqlalchemy.orm import configure_mappers

from matpool.domain.model import (
    AuditAction,
    AuditEntity,
    AuditEntry,
    Identity,
    Material,
    MaterialStatus,
    Role,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

ENUM_LENGTH = 16


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _enum_values(enum_cls: type[StrEnum]) -> list[str]:
    return [member.value for member in enum_cls]


def _str_enum(enum_cls: type[StrEnum]) -> Enum:
    # store the lower-case values rather than member names
    return Enum(enum_cls, native_enum=False, values_callable=_enum_values, length=ENUM_LENGTH)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Tables ----------------------------------------------------------------------

material_table = Table(
    "material",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("category", String, nullable=False),
    Column("identifier", String, nullable=False, unique=True),
    Column("description", Text, nullable=True),
    Column("status", _str_enum(MaterialStatus), nullable=False, default=MaterialStatus.IDLE),
    Column("holder", String, nullable=True),
    Column("claimed_at", UTCDateTime, nullable=True),
    Column("created_at", UTCDateTime, nullable=False, default=_utcnow),
    Column("updated_at", UTCDateTime, nullable=False, default=_utcnow, onupdate=_utcnow),
    CheckConstraint(
        "(status = 'idle' AND holder IS NULL AND claimed_at IS NULL)"
        " OR (status = 'in_use' AND holder IS NOT NULL AND claimed_at IS NOT NULL)",
        name="status_holder",
    ),
    Index("ix_material_status", "status"),
    Index("ix_material_holder", "holder"),
    Index("ix_material_category", "category"),
    Index("ix_material_claimed_at", "claimed_at"),
)

app_user_table = Table(
    "app_user",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String, nullable=False, unique=True),
    Column("display_name", String, nullable=True),
    Column("role", _str_enum(Role), nullable=False, default=Role.USER),
    Column("created_at", UTCDateTime, nullable=False, default=_utcnow),
)

audit_log_table = Table(
    "audit_log",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("action", _str_enum(AuditAction), nullable=False),
    Column("entity", _str_enum(AuditEntity), nullable=False),
    Column("entity_id", String, nullable=True),
    Column("actor_id", Integer, nullable=True),
    Column("actor_name", String, nullable=True),
    Column("details", Text, nullable=True),
    Column("created_at", UTCDateTime, nullable=False, default=_utcnow),
    Index("ix_audit_log_created_at", "created_at"),
)


def start_mappers() -> orm.registry:
    """Map the domain dataclasses onto their tables (idempotent)."""
    if getattr(start_mappers, "_started", False):
        return mapper_registry
    log.info("Starting mappers")
    mapper_registry.map_imperatively(Material, material_table)
    mapper_registry.map_imperatively(Identity, app_user_table)
    mapper_registry.map_imperatively(AuditEntry, audit_log_table)
    configure_mappers()
    start_mappers.__dict__["_started"] = True
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create all tables without migrations (throwaway databases only)."""
    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
