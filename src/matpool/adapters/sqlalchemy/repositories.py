"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import distinct, func, or_, select, update
from sqlalchemy.exc import IntegrityError

from matpool.adapters.sqlalchemy.mappings import app_user_table, material_table
from matpool.domain.errors import (
    AlreadyClaimedError,
    DuplicateIdentifierError,
    DuplicateUsernameError,
    MaterialNotFoundError,
)
from matpool.domain.model import Identity, Material, MaterialStatus
from matpool.domain.queries import MaterialSort, Page
from matpool.domain.visibility import visibility_scope

if TYPE_CHECKING:
    from datetime import datetime

    from sqlalchemy import ColumnElement, Select
    from sqlalchemy.engine import CursorResult
    from sqlalchemy.orm import Session

    from matpool.domain.queries import MaterialQuery


class SqlAlchemyMaterialRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, material_id: int) -> Material | None:
        return self.session.get(Material, material_id)

    def get_by_identifier(self, identifier: str) -> Material | None:
        stmt = select(Material).where(material_table.c.identifier == identifier)
        return self.session.execute(stmt).scalar_one_or_none()

    def query(self, query: MaterialQuery, *, viewer: Identity | None = None) -> Page[Material]:
        conditions = self._conditions(query, viewer)
        join_users = query.holder_display_name is not None

        count_stmt = self._joined(
            select(func.count()).select_from(material_table), join_users=join_users
        ).where(*conditions)
        total = self.session.execute(count_stmt).scalar_one()

        sort_column = (
            material_table.c.claimed_at
            if query.sort is MaterialSort.CLAIMED_AT
            else material_table.c.created_at
        )
        stmt = (
            self._joined(select(Material), join_users=join_users)
            .where(*conditions)
            .order_by(sort_column.desc().nulls_last(), material_table.c.id.desc())
            .limit(query.page_size)
            .offset(query.offset)
        )
        items = self.session.execute(stmt).scalars().all()
        return Page(items=items, total=total, page=query.page, page_size=query.page_size)

    def add(self, material: Material) -> int:
        if self.get_by_identifier(material.identifier) is not None:
            raise DuplicateIdentifierError(material.identifier)
        self.session.add(material)
        try:
            self.session.flush()
        except IntegrityError as exc:
            if "identifier" in str(exc.orig):
                raise DuplicateIdentifierError(material.identifier) from exc
            raise
        if material.id is None:
            raise RuntimeError("Material id was not assigned on flush")
        return material.id

    def transition_to_in_use(self, material_id: int, *, holder: str, at: datetime) -> Material:
        # the status guard in WHERE makes check-and-set one statement
        stmt = (
            update(material_table)
            .where(material_table.c.id == material_id)
            .where(material_table.c.status == MaterialStatus.IDLE)
            .values(
                status=MaterialStatus.IN_USE,
                holder=holder,
                claimed_at=at,
                updated_at=at,
            )
        )
        result = cast("CursorResult[Any]", self.session.execute(stmt))
        if result.rowcount != 1:
            if self.session.get(Material, material_id) is None:
                raise MaterialNotFoundError(material_id)
            raise AlreadyClaimedError(material_id)

        material = self.session.get(Material, material_id, populate_existing=True)
        if material is None:
            raise MaterialNotFoundError(material_id)
        return material

    def categories(self, *, status: MaterialStatus | None = None) -> list[str]:
        stmt = select(distinct(material_table.c.category)).where(material_table.c.category != "")
        if status is not None:
            stmt = stmt.where(material_table.c.status == status)
        stmt = stmt.order_by(material_table.c.category)
        return list(self.session.execute(stmt).scalars().all())

    @staticmethod
    def _joined(stmt: Select[Any], *, join_users: bool) -> Select[Any]:
        if not join_users:
            return stmt
        return stmt.outerjoin(
            app_user_table, app_user_table.c.username == material_table.c.holder
        )

    @staticmethod
    def _conditions(query: MaterialQuery, viewer: Identity | None) -> list[ColumnElement[bool]]:
        conditions: list[ColumnElement[bool]] = []
        if query.category:
            conditions.append(material_table.c.category.contains(query.category, autoescape=True))
        if query.identifier:
            conditions.append(
                material_table.c.identifier.contains(query.identifier, autoescape=True)
            )
        if query.status is not None:
            conditions.append(material_table.c.status == query.status)
        if query.holder:
            conditions.append(material_table.c.holder.contains(query.holder, autoescape=True))
        if query.holder_display_name:
            conditions.append(
                app_user_table.c.display_name.contains(
                    query.holder_display_name, autoescape=True
                )
            )
        if query.used_from is not None:
            conditions.append(material_table.c.claimed_at >= query.used_from)
        if query.used_to is not None:
            conditions.append(material_table.c.claimed_at <= query.used_to)

        scope = visibility_scope(viewer) if viewer is not None else None
        if scope is not None:
            conditions.append(
                or_(
                    material_table.c.status == MaterialStatus.IDLE,
                    material_table.c.holder == scope,
                )
            )
        return conditions


class SqlAlchemyIdentityDirectory:
    """Identity lookups over the ``app_user`` table."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, identity_id: int) -> Identity | None:
        return self.session.get(Identity, identity_id)

    def get_by_username(self, username: str) -> Identity | None:
        stmt = select(Identity).where(app_user_table.c.username == username)
        return self.session.execute(stmt).scalar_one_or_none()

    def usernames(self) -> frozenset[str]:
        stmt = select(app_user_table.c.username)
        return frozenset(self.session.execute(stmt).scalars().all())

    def display_names(self, usernames: frozenset[str]) -> dict[str, str]:
        if not usernames:
            return {}
        stmt = (
            select(app_user_table.c.username, app_user_table.c.display_name)
            .where(app_user_table.c.username.in_(sorted(usernames)))
            .where(app_user_table.c.display_name.is_not(None))
        )
        return {username: display_name for username, display_name in self.session.execute(stmt)}

    def add(self, identity: Identity) -> None:
        if self.get_by_username(identity.username) is not None:
            raise DuplicateUsernameError(identity.username)
        self.session.add(identity)
        self.session.flush()
