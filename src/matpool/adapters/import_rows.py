"""Parse bulk-import documents into reconciliation rows.

Documents are JSON arrays of objects. Keys may use the English field names or the
column headers of the spreadsheet template administrators fill in.
"""

from __future__ import annotations

import logging
from datetime import datetime  # noqa: TC003
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from matpool.domain.reconciliation import ImportRow

if TYPE_CHECKING:
    from pathlib import Path

log = logging.getLogger(__name__)


class ImportDocumentError(ValueError):
    """Raised when an import document cannot be read as a list of row objects."""


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class ImportRowPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)

    category: str | None = Field(default=None, alias="游戏名称")
    identifier: str | None = Field(default=None, alias="账户名称")
    description: str | None = Field(default=None, alias="描述")
    status: str | None = Field(default=None, alias="使用状态")
    status_short: str | None = Field(default=None, alias="状态")
    holder: str | None = Field(default=None, alias="使用人")
    claimed_at: datetime | None = Field(default=None, alias="使用时间")

    _normalize_text = field_validator(
        "category",
        "identifier",
        "description",
        "status",
        "status_short",
        "holder",
        "claimed_at",
        mode="before",
    )(_blank_to_none)

    def to_row(self, *, unreadable: tuple[str, ...] = ()) -> ImportRow:
        return ImportRow(
            category=self.category,
            identifier=self.identifier,
            description=self.description,
            status=self.status if self.status is not None else self.status_short,
            holder=self.holder,
            claimed_at=self.claimed_at,
            unreadable=unreadable,
        )


_DOCUMENT = TypeAdapter(list[dict[str, Any]])


def _row_field_by_key() -> dict[str, str]:
    # both the template header and the English name resolve to the row field
    mapping: dict[str, str] = {}
    for name, info in ImportRowPayload.model_fields.items():
        row_field = "status" if name == "status_short" else name
        mapping[name] = row_field
        if info.alias:
            mapping[info.alias] = row_field
    return mapping


_ROW_FIELD_BY_KEY = _row_field_by_key()


def parse_row(item: dict[str, Any]) -> ImportRow:
    """Validate one row object.

    Cells that fail validation are dropped and listed in ``ImportRow.unreadable`` so
    the reconciler can decide whether the row is still usable.
    """

    try:
        return ImportRowPayload.model_validate(item).to_row()
    except ValidationError as exc:
        bad_fields = {
            _ROW_FIELD_BY_KEY.get(str(error["loc"][0]), str(error["loc"][0]))
            for error in exc.errors()
            if error["loc"]
        }

    unreadable = tuple(sorted(bad_fields)) or ("row",)
    readable = {
        key: value for key, value in item.items() if _ROW_FIELD_BY_KEY.get(key) not in bad_fields
    }
    try:
        payload = ImportRowPayload.model_validate(readable)
    except ValidationError:
        fields = tuple(sorted({*unreadable, "row"}))
        return ImportRow(category=None, identifier=None, unreadable=fields)
    return payload.to_row(unreadable=unreadable)


def parse_rows(document: str | bytes) -> list[ImportRow]:
    """Validate a JSON document and return one ``ImportRow`` per object.

    Only the document shape (an array of objects) is enforced here; a row with bad
    cells is still returned and skipped later during reconciliation.
    """

    try:
        items = _DOCUMENT.validate_json(document)
    except ValidationError as exc:
        raise ImportDocumentError(f"Invalid import document: {exc.error_count()} error(s)") from exc
    rows = [parse_row(item) for item in items]
    unreadable = sum(1 for row in rows if row.unreadable)
    log.info("Parsed %d import row(s), %d with unreadable values", len(rows), unreadable)
    return rows


def load_rows(path: Path) -> list[ImportRow]:
    """Read ``path`` (UTF-8 JSON) and parse its rows."""

    try:
        document = path.read_bytes()
    except OSError as exc:
        raise ImportDocumentError(f"Cannot read import file {path}: {exc}") from exc
    log.debug("Loading import rows from %s", path)
    return parse_rows(document)

