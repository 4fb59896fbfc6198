"""Merge a batch of import rows into the material store.

Each row is checked and inserted independently in its own unit of work: a bad row is
tallied and skipped, earlier rows stay committed, and the batch carries on.
"""

from __future__ import annotations

from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from matpool.domain.errors import (
    DuplicateIdentifierError,
    InvalidHolderError,
    InvalidStatusError,
    MalformedRowError,
)

from .contracts import ImportSummary, SkipReason
from .validate import build_candidate, ensure_readable, intended_status, is_blank

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Iterable

    from matpool.domain.ports.unit_of_work import PoolUnitOfWork

    from .contracts import ImportRow

log = getLogger(__name__)

DEFAULT_SAMPLE_LIMIT = 3


def _utcnow() -> datetime:
    return datetime.now(UTC).replace(microsecond=0)


def reconcile_rows(
    rows: Iterable[ImportRow],
    *,
    known_identities: Collection[str],
    unit_of_work_factory: Callable[[], PoolUnitOfWork],
    clock: Callable[[], datetime] = _utcnow,
    sample_limit: int = DEFAULT_SAMPLE_LIMIT,
) -> ImportSummary:
    """Insert every valid row and return the batch summary.

    Existing identifiers are never overwritten. ``known_identities`` holds the
    usernames an in-use row may name as holder.
    """

    summary = ImportSummary(sample_limit=sample_limit)
    for row in rows:
        reason = _reconcile_row(
            row,
            known_identities=known_identities,
            unit_of_work_factory=unit_of_work_factory,
            clock=clock,
            summary=summary,
        )
        if reason is not None:
            log.debug("Skipped import row %r: %s", row.identifier, reason)
            summary.record_skip(reason, _sample_identifier(row))

    log.info(
        "Import finished: inserted=%s, idle=%s, skipped=%s",
        summary.inserted,
        summary.inserted_idle,
        summary.skipped_total,
    )
    return summary


def _reconcile_row(
    row: ImportRow,
    *,
    known_identities: Collection[str],
    unit_of_work_factory: Callable[[], PoolUnitOfWork],
    clock: Callable[[], datetime],
    summary: ImportSummary,
) -> SkipReason | None:
    try:
        ensure_readable(row)
    except MalformedRowError:
        return SkipReason.MALFORMED
    if is_blank(row):
        return SkipReason.BLANK

    with unit_of_work_factory() as uow:
        materials = uow.repositories.materials
        if materials.get_by_identifier(_sample_identifier(row) or "") is not None:
            return SkipReason.DUPLICATE

        try:
            status = intended_status(row)
            candidate = build_candidate(
                row, status=status, known_identities=known_identities, now=clock
            )
        except InvalidStatusError:
            return SkipReason.INVALID_STATUS
        except InvalidHolderError:
            return SkipReason.INVALID_HOLDER
        except MalformedRowError:
            return SkipReason.MALFORMED

        try:
            materials.add(candidate)
            uow.commit()
        except DuplicateIdentifierError:
            # lost an insert race against a concurrent import
            uow.rollback()
            return SkipReason.DUPLICATE

    summary.record_insert(candidate.category, idle=candidate.is_idle)
    return None


def _sample_identifier(row: ImportRow) -> str | None:
    if row.identifier is None:
        return None
    return row.identifier.strip() or None
