"""Best-effort audit sink writing to the ``audit_log`` table."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from matpool.adapters.sqlalchemy.mappings import audit_log_table
from matpool.domain.model import AuditEntry

if TYPE_CHECKING:
    from collections.abc import Sequence

    from matpool.adapters.sqlalchemy.unit_of_work import Database

log = logging.getLogger(__name__)


class SqlAlchemyAuditSink:
    """Append audit entries in their own short transaction.

    Storage failures are logged and dropped so they never fail the operation that
    produced the entry.
    """

    def __init__(self, database: Database) -> None:
        self.database = database

    def append(self, entry: AuditEntry) -> None:
        try:
            with self.database.session_factory() as session:
                session.add(entry)
                session.commit()
        except SQLAlchemyError:
            log.exception(
                "Failed to append audit entry: action=%s entity_id=%s",
                entry.action,
                entry.entity_id,
            )

    def recent(self, *, limit: int = 20) -> Sequence[AuditEntry]:
        """Newest entries first; used by the CLI and tests."""

        stmt = (
            select(AuditEntry)
            .order_by(audit_log_table.c.created_at.desc(), audit_log_table.c.id.desc())
            .limit(limit)
        )
        with self.database.session_factory() as session:
            return session.execute(stmt).scalars().all()
