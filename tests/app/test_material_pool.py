from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine

from matpool.adapters.sqlalchemy import SqlAlchemyAuditSink
from matpool.app import MaterialPool, open_pool
from matpool.config import PoolConfig
from matpool.domain.errors import (
    AlreadyClaimedError,
    MaterialNotFoundError,
    PermissionDeniedError,
    UnknownIdentityError,
)
from matpool.domain.model import AuditAction, MaterialStatus, Role
from matpool.domain.queries import MaterialQuery
from matpool.domain.reconciliation import ImportRow, SkipReason
from tests.helpers.materials import make_material, seed_materials
from tests.support.materials import FailingAuditSink, RecordingAuditSink

if TYPE_CHECKING:
    from matpool.adapters.sqlalchemy import Database
    from matpool.domain.model import Identity


@pytest.fixture
def admin(pool: MaterialPool) -> Identity:
    return pool.create_user("root", display_name="Administrator", role=Role.ADMIN)


@pytest.fixture
def bob(pool: MaterialPool) -> Identity:
    return pool.create_user("bob", display_name="Bob")


@pytest.fixture
def carol(pool: MaterialPool) -> Identity:
    return pool.create_user("carol")


def _id(identity: Identity) -> int:
    assert identity.id is not None
    return identity.id


def test_claim_returns_unmasked_identifier_and_audits(
    pool: MaterialPool, database: Database, bob: Identity
) -> None:
    [material_id] = seed_materials(database.unit_of_work, [make_material("alice_01")])

    result = pool.claim(material_id, user_id=_id(bob))

    assert result.identifier == "alice_01"
    assert result.holder == "bob"
    assert result.material.status is MaterialStatus.IN_USE
    [entry] = SqlAlchemyAuditSink(database).recent()
    assert entry.action is AuditAction.CLAIM
    assert entry.entity_id == str(material_id)
    assert entry.actor_name == "bob"
    assert entry.details is not None
    assert "alice_01" in entry.details


def test_claim_nonexistent_material(pool: MaterialPool, bob: Identity) -> None:
    with pytest.raises(MaterialNotFoundError):
        pool.claim(99999, user_id=_id(bob))


def test_second_claim_is_rejected(
    pool: MaterialPool, database: Database, bob: Identity, carol: Identity
) -> None:
    [material_id] = seed_materials(database.unit_of_work, [make_material("alice_01")])
    pool.claim(material_id, user_id=_id(bob))

    with pytest.raises(AlreadyClaimedError):
        pool.claim(material_id, user_id=_id(carol))

    assert len(SqlAlchemyAuditSink(database).recent()) == 1


def test_claim_by_unknown_user(pool: MaterialPool, database: Database) -> None:
    [material_id] = seed_materials(database.unit_of_work, [make_material("alice_01")])

    with pytest.raises(UnknownIdentityError):
        pool.claim(material_id, user_id=4242)


def test_audit_failure_does_not_fail_claim(
    database: Database, caplog: pytest.LogCaptureFixture
) -> None:
    pool = MaterialPool(database, pool_config=PoolConfig(), audit_sink=FailingAuditSink())
    user = pool.create_user("bob")
    [material_id] = seed_materials(database.unit_of_work, [make_material("alice_01")])

    with caplog.at_level(logging.ERROR):
        result = pool.claim(material_id, user_id=_id(user))

    assert result.identifier == "alice_01"
    assert "Audit sink rejected" in caplog.text


def test_list_masks_idle_and_scopes_regular_users(
    pool: MaterialPool, database: Database, admin: Identity, bob: Identity, carol: Identity
) -> None:
    [idle_id, bob_id, _] = seed_materials(
        database.unit_of_work,
        [
            make_material("idle_account"),
            make_material("bob_account", holder="bob"),
            make_material("carol_account", holder="carol"),
        ],
    )

    bob_view = pool.list_materials(user_id=_id(bob))
    admin_view = pool.list_materials(user_id=_id(admin))

    by_id = {view.id: view for view in bob_view.items}
    assert set(by_id) == {idle_id, bob_id}
    assert by_id[idle_id].identifier == "id****nt"
    assert by_id[bob_id].identifier == "bob_account"
    assert by_id[bob_id].holder_display_name == "Bob"
    assert admin_view.total == 3
    carol_row = next(view for view in admin_view.items if view.holder == "carol")
    assert carol_row.identifier == "carol_account"
    assert carol_row.holder_display_name is None


def test_list_clamps_page_size(database: Database, admin: Identity) -> None:
    pool = MaterialPool(database, pool_config=PoolConfig(page_size=2, max_page_size=3))
    seed_materials(database.unit_of_work, [make_material(f"acct-{i}") for i in range(5)])

    default_page = pool.list_materials(user_id=_id(admin))
    big_page = pool.list_materials(MaterialQuery(page_size=50), user_id=_id(admin))

    assert default_page.page_size == 2
    assert len(default_page.items) == 2
    assert big_page.page_size == 3
    assert len(big_page.items) == 3
    assert big_page.total == 5


def test_import_requires_admin(pool: MaterialPool, bob: Identity) -> None:
    with pytest.raises(PermissionDeniedError):
        pool.import_rows([ImportRow(category="A", identifier="x")], user_id=_id(bob))


def test_import_merges_rows_and_audits_summary(
    pool: MaterialPool, database: Database, admin: Identity, bob: Identity
) -> None:
    seed_materials(database.unit_of_work, [make_material("dup")])
    rows = [
        ImportRow(category="原神", identifier="new-idle"),
        ImportRow(category="原神", identifier="new-used", status="已使用", holder="bob"),
        ImportRow(category="原神", identifier="dup", status="idle"),
        ImportRow(category="原神", identifier="ghost", status="已使用", holder="nonexistent"),
        ImportRow(category="", identifier="blank"),
    ]

    summary = pool.import_rows(rows, user_id=_id(admin))

    assert summary.inserted == 2
    assert summary.inserted_idle == 1
    assert summary.skip_count(SkipReason.DUPLICATE) == 1
    assert summary.skip_count(SkipReason.INVALID_HOLDER) == 1
    assert summary.skip_count(SkipReason.BLANK) == 1
    with database.unit_of_work() as uow:
        used = uow.repositories.materials.get_by_identifier("new-used")
        assert used is not None
        assert used.holder == "bob"
        assert used.claimed_at is not None
    [entry] = SqlAlchemyAuditSink(database).recent()
    assert entry.action is AuditAction.IMPORT
    assert entry.details == summary.message()
    assert bob.username == "bob"


def test_categories(pool: MaterialPool, database: Database) -> None:
    seed_materials(
        database.unit_of_work,
        [make_material("a", category="B"), make_material("b", category="A", holder="x")],
    )

    assert pool.categories() == ["A", "B"]
    assert pool.categories(MaterialStatus.IDLE) == ["B"]


def test_create_user_rejects_blank_username(pool: MaterialPool) -> None:
    with pytest.raises(ValueError, match="blank"):
        pool.create_user("   ")


def test_open_pool_with_engine_and_recording_sink() -> None:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    sink = RecordingAuditSink()

    with open_pool(engine=engine, pool_config=PoolConfig(), audit_sink=sink) as pool:
        user = pool.create_user("bob")
        [material_id] = seed_materials(pool.database.unit_of_work, [make_material("acct")])
        pool.claim(material_id, user_id=_id(user))

    assert not pool.database.is_open
    assert [entry.action for entry in sink.entries] == [AuditAction.CLAIM]
    engine.dispose()
