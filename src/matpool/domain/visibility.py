"""Who may see which materials, and how unclaimed identifiers are rendered.

Masking is a read-side transform: it builds a ``MaterialView`` and never touches the
stored ``Material``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from matpool.domain.model import MaterialStatus

if TYPE_CHECKING:
    from datetime import datetime

    from matpool.domain.model import Identity, Material

MASK_TOKEN: Final[str] = "****"
_KEPT_PREFIX: Final[int] = 2
_KEPT_SUFFIX: Final[int] = 2
_SHORT_IDENTIFIER: Final[int] = _KEPT_PREFIX + _KEPT_SUFFIX


@dataclass(frozen=True, slots=True, kw_only=True)
class MaterialView:
    """Presentation record handed to list screens."""

    id: int
    category: str
    identifier: str
    description: str | None
    status: MaterialStatus
    holder: str | None
    holder_display_name: str | None
    claimed_at: datetime | None
    created_at: datetime | None

    @property
    def is_masked(self) -> bool:
        return self.status is MaterialStatus.IDLE

    @property
    def claimable(self) -> bool:
        return self.status is MaterialStatus.IDLE


def mask_identifier(identifier: str) -> str:
    """Keep the first and last two characters and hide the middle.

    Identifiers of four characters or fewer are shown whole, followed by the mask.
    """

    if len(identifier) <= _SHORT_IDENTIFIER:
        return f"{identifier}{MASK_TOKEN}"
    return f"{identifier[:_KEPT_PREFIX]}{MASK_TOKEN}{identifier[-_KEPT_SUFFIX:]}"


def visibility_scope(viewer: Identity) -> str | None:
    """Return the holder a viewer is restricted to, or ``None`` for unrestricted."""

    if viewer.is_privileged:
        return None
    return viewer.username


def can_view(material: Material, viewer: Identity) -> bool:
    scope = visibility_scope(viewer)
    return scope is None or material.is_idle or material.holder == scope


def present(material: Material, *, holder_display_name: str | None = None) -> MaterialView:
    if material.id is None:
        raise ValueError("Only stored materials can be presented")
    identifier = mask_identifier(material.identifier) if material.is_idle else material.identifier
    return MaterialView(
        id=material.id,
        category=material.category,
        identifier=identifier,
        description=material.description,
        status=material.status,
        holder=material.holder,
        holder_display_name=holder_display_name,
        claimed_at=material.claimed_at,
        created_at=material.created_at,
    )
