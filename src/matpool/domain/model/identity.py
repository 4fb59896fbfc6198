"""Read-only identity records consumed by the core."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from matpool.domain.model.enums import Role

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(eq=False, kw_only=True)
class Identity:
    username: str
    display_name: str | None = None
    role: Role = Role.USER

    id: int | None = None
    created_at: datetime | None = None

    @property
    def is_privileged(self) -> bool:
        return self.role is Role.ADMIN

    @property
    def label(self) -> str:
        return self.display_name or self.username
