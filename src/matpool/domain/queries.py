"""Filter, sort and paging values for listing materials."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from matpool.domain.model import MaterialStatus


class MaterialSort(StrEnum):
    CREATED_AT = "created_at"
    CLAIMED_AT = "claimed_at"


@dataclass(frozen=True, slots=True, kw_only=True)
class MaterialQuery:
    """Listing filters; text filters match substrings, ``status`` matches exactly."""

    category: str | None = None
    identifier: str | None = None
    status: MaterialStatus | None = None
    holder: str | None = None
    holder_display_name: str | None = None
    used_from: datetime | None = None
    used_to: datetime | None = None
    sort: MaterialSort = MaterialSort.CREATED_AT
    page: int = 1
    page_size: int = 10

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.page_size < 1:
            raise ValueError("page_size must be >= 1")
        if self.used_from and self.used_to and self.used_from > self.used_to:
            raise ValueError("used_from must not be after used_to")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass(kw_only=True)
class Page[T]:
    items: Sequence[T] = field(default_factory=tuple)
    total: int = 0
    page: int = 1
    page_size: int = 10

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0
