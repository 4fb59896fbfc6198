"""Rows, skip reasons and the per-batch summary of a material import."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(frozen=True, slots=True, kw_only=True)
class ImportRow:
    """One externally supplied candidate, unvalidated.

    ``unreadable`` names the fields whose supplied values could not be read at all.
    """

    category: str | None
    identifier: str | None
    description: str | None = None
    status: str | None = None
    holder: str | None = None
    claimed_at: datetime | None = None
    unreadable: tuple[str, ...] = ()


class SkipReason(StrEnum):
    BLANK = "blank"
    DUPLICATE = "duplicate"
    INVALID_STATUS = "invalid_status"
    INVALID_HOLDER = "invalid_holder"
    MALFORMED = "malformed"


_SKIP_LABELS: dict[SkipReason, str] = {
    SkipReason.BLANK: "missing category or identifier",
    SkipReason.DUPLICATE: "duplicate identifier",
    SkipReason.INVALID_STATUS: "invalid status",
    SkipReason.INVALID_HOLDER: "unknown holder",
    SkipReason.MALFORMED: "unreadable values",
}


@dataclass(slots=True)
class SkipTally:
    count: int = 0
    samples: list[str] = field(default_factory=list[str])

    def record(self, identifier: str | None, *, sample_limit: int) -> None:
        self.count += 1
        if identifier and len(self.samples) < sample_limit:
            self.samples.append(identifier)


@dataclass(slots=True)
class ImportSummary:
    """Outcome of one import batch."""

    sample_limit: int = 3
    inserted: int = 0
    inserted_idle: int = 0
    inserted_by_category: Counter[str] = field(default_factory=Counter[str])
    skipped: dict[SkipReason, SkipTally] = field(default_factory=dict[SkipReason, SkipTally])

    @property
    def skipped_total(self) -> int:
        return sum(tally.count for tally in self.skipped.values())

    @property
    def processed(self) -> int:
        return self.inserted + self.skipped_total

    def skip_count(self, reason: SkipReason) -> int:
        tally = self.skipped.get(reason)
        return tally.count if tally else 0

    def samples(self, reason: SkipReason) -> tuple[str, ...]:
        tally = self.skipped.get(reason)
        return tuple(tally.samples) if tally else ()

    def record_insert(self, category: str, *, idle: bool) -> None:
        self.inserted += 1
        self.inserted_by_category[category] += 1
        if idle:
            self.inserted_idle += 1

    def record_skip(self, reason: SkipReason, identifier: str | None) -> None:
        tally = self.skipped.setdefault(reason, SkipTally())
        tally.record(identifier, sample_limit=self.sample_limit)

    def message(self) -> str:
        """Administrative one-paragraph summary, also used as audit detail."""

        parts = [f"Imported {self.inserted} material(s) ({self.inserted_idle} idle)"]
        if self.inserted_by_category:
            per_category = ", ".join(
                f"{category}: {count}"
                for category, count in sorted(self.inserted_by_category.items())
            )
            parts.append(f"by category [{per_category}]")
        for reason in SkipReason:
            tally = self.skipped.get(reason)
            if tally is None:
                continue
            text = f"skipped {tally.count} ({_SKIP_LABELS[reason]})"
            if tally.samples:
                more = ", ..." if tally.count > len(tally.samples) else ""
                text += f": {', '.join(tally.samples)}{more}"
            parts.append(text)
        return "; ".join(parts)
