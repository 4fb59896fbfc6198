"""Builders and seeding helpers for material-pool tests."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from matpool.domain.model import Identity, Material, MaterialStatus, Role

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from matpool.domain.ports import PoolUnitOfWork

CLAIM_TIME = datetime(2024, 5, 1, 9, 30, tzinfo=UTC)


def make_material(
    identifier: str = "account-0001",
    *,
    category: str = "Game A",
    description: str | None = None,
    holder: str | None = None,
    claimed_at: datetime | None = None,
) -> Material:
    """Idle material by default; passing ``holder`` makes it in use."""

    if holder is None:
        return Material(category=category, identifier=identifier, description=description)
    return Material(
        category=category,
        identifier=identifier,
        description=description,
        status=MaterialStatus.IN_USE,
        holder=holder,
        claimed_at=claimed_at or CLAIM_TIME,
    )


def make_identity(
    username: str = "alice",
    *,
    display_name: str | None = None,
    admin: bool = False,
) -> Identity:
    return Identity(
        username=username,
        display_name=display_name,
        role=Role.ADMIN if admin else Role.USER,
    )


def seed_materials(
    unit_of_work_factory: Callable[[], PoolUnitOfWork],
    materials: Iterable[Material],
) -> list[int]:
    ids: list[int] = []
    with unit_of_work_factory() as uow:
        ids.extend(uow.repositories.materials.add(material) for material in materials)
        uow.commit()
    return ids


def seed_identities(
    unit_of_work_factory: Callable[[], PoolUnitOfWork],
    identities: Iterable[Identity],
) -> list[Identity]:
    stored: list[Identity] = []
    with unit_of_work_factory() as uow:
        for identity in identities:
            uow.repositories.identities.add(identity)
            stored.append(identity)
        uow.commit()
    return stored


def load_material(
    unit_of_work_factory: Callable[[], PoolUnitOfWork], material_id: int
) -> Material:
    with unit_of_work_factory() as uow:
        material = uow.repositories.materials.get(material_id)
    assert material is not None
    return material
