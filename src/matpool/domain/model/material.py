"""The claimable unit of the pool."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from matpool.domain.model.enums import MaterialStatus

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(eq=False, kw_only=True)
class Material:
    """A shared account that staff can claim exactly once.

    Idle materials carry neither holder nor claim time; in-use materials carry both.
    ``id`` stays ``None`` until the store assigns one on insert.
    """

    category: str
    identifier: str
    description: str | None = None
    status: MaterialStatus = MaterialStatus.IDLE
    holder: str | None = None
    claimed_at: datetime | None = None

    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.category.strip():
            raise ValueError("Material category must not be blank")
        if not self.identifier.strip():
            raise ValueError("Material identifier must not be blank")
        self.check_consistency()

    @property
    def is_idle(self) -> bool:
        return self.status is MaterialStatus.IDLE

    def check_consistency(self) -> None:
        """Raise if status, holder and claim time disagree."""

        if self.is_idle:
            if self.holder is not None or self.claimed_at is not None:
                raise ValueError("Idle material must not carry a holder or claim time")
            return
        if not self.holder or self.claimed_at is None:
            raise ValueError("In-use material requires a holder and a claim time")
