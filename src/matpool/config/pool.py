"""Defaults for listing and importing materials."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_positive_int

DEFAULT_PAGE_SIZE = 10
DEFAULT_MAX_PAGE_SIZE = 100
DEFAULT_IMPORT_SAMPLE_LIMIT = 3


@dataclass(frozen=True, slots=True)
class PoolConfig:
    page_size: int = DEFAULT_PAGE_SIZE
    max_page_size: int = DEFAULT_MAX_PAGE_SIZE
    import_sample_limit: int = DEFAULT_IMPORT_SAMPLE_LIMIT

    def clamp_page_size(self, requested: int | None) -> int:
        if requested is None:
            return self.page_size
        return max(1, min(requested, self.max_page_size))


def get_pool_config() -> PoolConfig:
    return PoolConfig(
        page_size=optional_positive_int("MATPOOL_PAGE_SIZE", DEFAULT_PAGE_SIZE),
        max_page_size=optional_positive_int("MATPOOL_MAX_PAGE_SIZE", DEFAULT_MAX_PAGE_SIZE),
        import_sample_limit=optional_positive_int(
            "MATPOOL_IMPORT_SAMPLE_LIMIT", DEFAULT_IMPORT_SAMPLE_LIMIT
        ),
    )
