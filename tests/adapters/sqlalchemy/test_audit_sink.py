from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.exc import OperationalError

from matpool.adapters.sqlalchemy import SqlAlchemyAuditSink
from matpool.domain.model import AuditAction, AuditEntity, AuditEntry

if TYPE_CHECKING:
    from matpool.adapters.sqlalchemy import Database


def test_append_persists_entries_newest_first(database: Database) -> None:
    sink = SqlAlchemyAuditSink(database)

    sink.append(AuditEntry(action=AuditAction.IMPORT, actor_name="root", details="first"))
    sink.append(
        AuditEntry(
            action=AuditAction.CLAIM,
            entity=AuditEntity.MATERIAL,
            entity_id="3",
            actor_id=1,
            actor_name="alice",
            details="second",
        )
    )

    entries = sink.recent()
    assert [entry.details for entry in entries] == ["second", "first"]
    assert entries[0].action is AuditAction.CLAIM
    assert entries[0].entity_id == "3"
    assert entries[0].id is not None


def test_recent_respects_limit(database: Database) -> None:
    sink = SqlAlchemyAuditSink(database)
    for index in range(5):
        sink.append(AuditEntry(action=AuditAction.CLAIM, entity_id=str(index)))

    assert len(sink.recent(limit=2)) == 2


def test_append_swallows_storage_errors(
    database: Database,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    sink = SqlAlchemyAuditSink(database)

    def broken_factory() -> object:
        raise OperationalError("INSERT INTO audit_log", {}, Exception("disk I/O error"))

    monkeypatch.setattr(database, "_session_factory", broken_factory)

    with caplog.at_level(logging.ERROR):
        sink.append(AuditEntry(action=AuditAction.CLAIM, entity_id="9"))

    assert "Failed to append audit entry" in caplog.text
