"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum

from matpool.domain.errors import InvalidStatusError


class MaterialStatus(StrEnum):
    IDLE = "idle"
    IN_USE = "in_use"

    @classmethod
    def parse(cls, raw: str) -> MaterialStatus:
        """Accept canonical values and the labels of the admin UI / import template."""

        normalized = raw.strip().lower().replace("-", "_").replace(" ", "_")
        status = _STATUS_ALIASES.get(normalized)
        if status is None:
            raise InvalidStatusError(raw)
        return status


# 空闲 = idle, 已使用 = in use
_STATUS_ALIASES: dict[str, MaterialStatus] = {
    "idle": MaterialStatus.IDLE,
    "空闲": MaterialStatus.IDLE,
    "in_use": MaterialStatus.IN_USE,
    "inuse": MaterialStatus.IN_USE,
    "已使用": MaterialStatus.IN_USE,
}


class Role(StrEnum):
    ADMIN = "admin"
    USER = "user"


class AuditAction(StrEnum):
    CLAIM = "claim"
    IMPORT = "import"


class AuditEntity(StrEnum):
    MATERIAL = "material"
