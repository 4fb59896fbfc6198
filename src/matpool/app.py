"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING, Literal, Self

from matpool.adapters.sqlalchemy import Database, SqlAlchemyAuditSink
from matpool.config import get_database_config, get_pool_config
from matpool.domain.claims import ClaimResult, claim_material
from matpool.domain.errors import PermissionDeniedError, UnknownIdentityError
from matpool.domain.model import AuditAction, AuditEntity, AuditEntry, Identity, Role
from matpool.domain.queries import MaterialQuery, Page
from matpool.domain.reconciliation import ImportSummary, reconcile_rows
from matpool.domain.visibility import MaterialView, present

if TYPE_CHECKING:
    from collections.abc import Iterable
    from types import TracebackType

    from sqlalchemy.engine import Engine

    from matpool.config import DatabaseConfig, PoolConfig
    from matpool.domain.model import MaterialStatus
    from matpool.domain.ports import AuditSink
    from matpool.domain.reconciliation import ImportRow

type ListingPage = Page[MaterialView]


log = getLogger(__name__)


class MaterialPool:
    """Service facade over one open ``Database``."""

    def __init__(
        self,
        database: Database,
        *,
        pool_config: PoolConfig | None = None,
        audit_sink: AuditSink | None = None,
    ) -> None:
        self.database = database
        self.config = pool_config or get_pool_config()
        self.audit_sink: AuditSink = audit_sink or SqlAlchemyAuditSink(database)

    # identities ------------------------------------------------------------------

    def create_user(
        self,
        username: str,
        *,
        display_name: str | None = None,
        role: Role = Role.USER,
    ) -> Identity:
        username = username.strip()
        if not username:
            raise ValueError("username must not be blank")
        identity = Identity(username=username, display_name=display_name or None, role=role)
        with self.database.unit_of_work() as uow:
            uow.repositories.identities.add(identity)
            uow.commit()
        log.info("Created %s user %s (id=%s)", role, username, identity.id)
        return identity

    def resolve_identity(self, user_id: int) -> Identity:
        with self.database.unit_of_work() as uow:
            identity = uow.repositories.identities.get(user_id)
        if identity is None:
            raise UnknownIdentityError(user_id)
        return identity

    # claims ----------------------------------------------------------------------

    def claim(self, material_id: int, *, user_id: int) -> ClaimResult:
        """Claim one idle material for ``user_id`` and return it unmasked."""

        identity = self.resolve_identity(user_id)
        result = claim_material(
            material_id=material_id,
            holder=identity.username,
            unit_of_work_factory=self.database.unit_of_work,
        )
        self._record_audit(
            AuditEntry(
                action=AuditAction.CLAIM,
                entity=AuditEntity.MATERIAL,
                entity_id=str(result.material_id),
                actor_id=identity.id,
                actor_name=identity.username,
                details=f"Claimed {result.material.category} material {result.identifier}",
            )
        )
        return result

    # imports ---------------------------------------------------------------------

    def import_rows(self, rows: Iterable[ImportRow], *, user_id: int) -> ImportSummary:
        """Merge ``rows`` into the pool on behalf of an administrator."""

        identity = self.resolve_identity(user_id)
        if not identity.is_privileged:
            raise PermissionDeniedError(f"User {identity.username} may not import materials")

        with self.database.unit_of_work() as uow:
            known_identities = uow.repositories.identities.usernames()

        log.info("Starting import by %s", identity.username)
        summary = reconcile_rows(
            rows,
            known_identities=known_identities,
            unit_of_work_factory=self.database.unit_of_work,
            sample_limit=self.config.import_sample_limit,
        )
        self._record_audit(
            AuditEntry(
                action=AuditAction.IMPORT,
                entity=AuditEntity.MATERIAL,
                actor_id=identity.id,
                actor_name=identity.username,
                details=summary.message(),
            )
        )
        return summary

    # listings --------------------------------------------------------------------

    def list_materials(self, query: MaterialQuery | None = None, *, user_id: int) -> ListingPage:
        """Return the page of materials ``user_id`` may see, idle identifiers masked."""

        viewer = self.resolve_identity(user_id)
        query = query or MaterialQuery(page_size=self.config.page_size)
        query = replace(query, page_size=self.config.clamp_page_size(query.page_size))

        with self.database.unit_of_work() as uow:
            page = uow.repositories.materials.query(query, viewer=viewer)
            holders = frozenset(item.holder for item in page.items if item.holder)
            names = uow.repositories.identities.display_names(holders)

        views = tuple(
            present(
                material,
                holder_display_name=names.get(material.holder) if material.holder else None,
            )
            for material in page.items
        )
        return Page(items=views, total=page.total, page=page.page, page_size=page.page_size)

    def categories(self, status: MaterialStatus | None = None) -> list[str]:
        with self.database.unit_of_work() as uow:
            return uow.repositories.materials.categories(status=status)

    # lifecycle -------------------------------------------------------------------

    def _record_audit(self, entry: AuditEntry) -> None:
        try:
            self.audit_sink.append(entry)
        except Exception:
            log.exception("Audit sink rejected %s entry for %s", entry.action, entry.entity_id)

    def close(self) -> None:
        self.database.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        self.close()
        return False


def open_pool(
    config: DatabaseConfig | None = None,
    *,
    engine: Engine | None = None,
    pool_config: PoolConfig | None = None,
    audit_sink: AuditSink | None = None,
) -> MaterialPool:
    """Open the database (migrating it to head) and return a ready ``MaterialPool``."""

    if engine is not None:
        database = Database(engine=engine)
    else:
        database = Database.from_config(config or get_database_config())
    database.open()
    return MaterialPool(database, pool_config=pool_config, audit_sink=audit_sink)
