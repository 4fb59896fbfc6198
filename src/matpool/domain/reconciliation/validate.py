"""Turn an import row into a material candidate or a typed rejection."""

from __future__ import annotations

from typing import TYPE_CHECKING

from matpool.domain.errors import InvalidHolderError, MalformedRowError
from matpool.domain.model import Material, MaterialStatus

if TYPE_CHECKING:
    from collections.abc import Callable, Collection
    from datetime import datetime

    from .contracts import ImportRow


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def ensure_readable(row: ImportRow) -> None:
    """Raise ``MalformedRowError`` if any value other than the claim time was unreadable.

    An unreadable claim time only matters for in-use rows; ``build_candidate`` checks it.
    """

    fields = tuple(name for name in row.unreadable if name != "claimed_at")
    if fields:
        raise MalformedRowError(fields)


def is_blank(row: ImportRow) -> bool:
    return _clean(row.category) is None or _clean(row.identifier) is None


def intended_status(row: ImportRow) -> MaterialStatus:
    """Explicit status if given, idle otherwise. Raises ``InvalidStatusError``."""

    raw = _clean(row.status)
    if raw is None:
        return MaterialStatus.IDLE
    return MaterialStatus.parse(raw)


def build_candidate(
    row: ImportRow,
    *,
    status: MaterialStatus,
    known_identities: Collection[str],
    now: Callable[[], datetime],
) -> Material:
    """Build the material to insert; the row must already have passed ``is_blank``.

    Idle candidates drop any supplied holder or claim time, readable or not. In-use
    candidates need a known holder and a readable claim time, defaulting to ``now()``.
    """

    category = _clean(row.category)
    identifier = _clean(row.identifier)
    if category is None or identifier is None:
        raise ValueError("Row is missing category or identifier")

    if status is MaterialStatus.IDLE:
        return Material(
            category=category,
            identifier=identifier,
            description=_clean(row.description),
        )

    if "claimed_at" in row.unreadable:
        raise MalformedRowError(("claimed_at",))
    holder = _clean(row.holder)
    if holder is None or holder not in known_identities:
        raise InvalidHolderError(holder)
    return Material(
        category=category,
        identifier=identifier,
        description=_clean(row.description),
        status=MaterialStatus.IN_USE,
        holder=holder,
        claimed_at=row.claimed_at or now(),
    )
