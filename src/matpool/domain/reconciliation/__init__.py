"""Bulk import reconciliation for the material store."""

from __future__ import annotations

from .contracts import ImportRow, ImportSummary, SkipReason, SkipTally
from .engine import DEFAULT_SAMPLE_LIMIT, reconcile_rows
from .validate import build_candidate, ensure_readable, intended_status, is_blank

__all__ = [
    "DEFAULT_SAMPLE_LIMIT",
    "ImportRow",
    "ImportSummary",
    "SkipReason",
    "SkipTally",
    "build_candidate",
    "ensure_readable",
    "intended_status",
    "is_blank",
    "reconcile_rows",
]
