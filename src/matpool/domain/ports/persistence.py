"""Ports for persisting materials and consulting collaborators."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime

    from matpool.domain.model import AuditEntry, Identity, Material, MaterialStatus
    from matpool.domain.queries import MaterialQuery, Page


@runtime_checkable
class MaterialRepository(Protocol):
    """Persistence contract for the material pool."""

    def get(self, material_id: int) -> Material | None: ...

    def get_by_identifier(self, identifier: str) -> Material | None: ...

    def query(self, query: MaterialQuery, *, viewer: Identity | None = None) -> Page[Material]: ...

    def add(self, material: Material) -> int:
        """Insert ``material`` and return its id; raise ``DuplicateIdentifierError`` on clash."""
        ...

    def transition_to_in_use(self, material_id: int, *, holder: str, at: datetime) -> Material:
        """Atomically move an idle material to in-use; the only mutating claim primitive."""
        ...

    def categories(self, *, status: MaterialStatus | None = None) -> list[str]: ...


@runtime_checkable
class IdentityDirectory(Protocol):
    """Read access to user records owned outside the core."""

    def get(self, identity_id: int) -> Identity | None: ...

    def get_by_username(self, username: str) -> Identity | None: ...

    def usernames(self) -> frozenset[str]: ...

    def display_names(self, usernames: frozenset[str]) -> dict[str, str]: ...

    def add(self, identity: Identity) -> None: ...


@runtime_checkable
class AuditSink(Protocol):
    """Fire-and-forget destination for audit entries."""

    def append(self, entry: AuditEntry) -> None: ...
