"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import AuditSink, IdentityDirectory, MaterialRepository
from .unit_of_work import PoolRepositories, PoolUnitOfWork, RepositoryCollection, UnitOfWork

__all__ = [
    "AuditSink",
    "IdentityDirectory",
    "MaterialRepository",
    "PoolRepositories",
    "PoolUnitOfWork",
    "RepositoryCollection",
    "UnitOfWork",
]
