"""Public domain model surface."""

from __future__ import annotations

from matpool.domain.model.audit import AuditEntry
from matpool.domain.model.enums import AuditAction, AuditEntity, MaterialStatus, Role
from matpool.domain.model.identity import Identity
from matpool.domain.model.material import Material

__all__ = [  # noqa: RUF022
    # material
    "Material",
    # identity
    "Identity",
    # audit
    "AuditEntry",
    # enums
    "AuditAction",
    "AuditEntity",
    "MaterialStatus",
    "Role",
]
