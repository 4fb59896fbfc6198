"""Claim engine: move one idle material to in-use for one requester.

The check and the transition happen in a single conditional write inside the
repository, so two requests racing for the same material cannot both win. A lost
race surfaces as ``AlreadyClaimedError`` and is never retried here.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from matpool.domain.errors import ClaimError

if TYPE_CHECKING:
    from collections.abc import Callable

    from matpool.domain.model import Material
    from matpool.domain.ports.unit_of_work import PoolUnitOfWork

log = getLogger(__name__)

type Clock = Callable[[], datetime]


def claim_timestamp() -> datetime:
    """Current UTC time at whole-second granularity, the resolution stored for claims."""

    return datetime.now(UTC).replace(microsecond=0)


@dataclass(slots=True, frozen=True)
class ClaimResult:
    """Outcome of a successful claim; carries the unmasked identifier."""

    material: Material
    claimed_at: datetime

    @property
    def material_id(self) -> int:
        if self.material.id is None:
            raise RuntimeError("Claimed material has no id")
        return self.material.id

    @property
    def identifier(self) -> str:
        return self.material.identifier

    @property
    def holder(self) -> str:
        if self.material.holder is None:
            raise RuntimeError("Claimed material has no holder")
        return self.material.holder


def claim_material(
    *,
    material_id: int,
    holder: str,
    unit_of_work_factory: Callable[[], PoolUnitOfWork],
    clock: Clock = claim_timestamp,
) -> ClaimResult:
    """Claim ``material_id`` on behalf of ``holder``.

    Raises ``MaterialNotFoundError`` or ``AlreadyClaimedError``; storage errors
    propagate and leave the material untouched.
    """

    if not holder.strip():
        raise ValueError("holder must not be blank")
    claimed_at = clock()

    try:
        with unit_of_work_factory() as uow:
            material = uow.repositories.materials.transition_to_in_use(
                material_id, holder=holder, at=claimed_at
            )
            uow.commit()
    except ClaimError as exc:
        log.info("Claim of material %s by %s rejected: %s", material_id, holder, exc)
        raise

    log.info("Material %s claimed by %s", material_id, holder)
    return ClaimResult(material=material, claimed_at=claimed_at)
