"""Audit records produced by claims and imports."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from .enums import AuditAction, AuditEntity


@dataclass(eq=False, kw_only=True)
class AuditEntry:
    """Append-only record of who did what to which material."""

    action: AuditAction
    entity: AuditEntity = AuditEntity.MATERIAL
    entity_id: str | None = None
    actor_id: int | None = None
    actor_name: str | None = None
    details: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    id: int | None = None
