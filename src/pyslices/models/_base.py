"""Shared model base and record helpers.

Records themselves stay plain ``dict`` objects: the engine treats them
as opaque attribute bags and only ever looks at the id field (and the
soft-delete marker). Everything the engine *produces* (requests,
snapshots, events) is a frozen Pydantic model built on
:class:`SliceBaseModel`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any, TypeAlias

from pydantic import BaseModel, BeforeValidator, ConfigDict

from pyslices._constants import SOFT_DELETE_FIELD

Record: TypeAlias = dict[str, Any]


def _check_record_id(value: Any) -> Any:
    # bool is an int subclass; True/False are never valid ids.
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"record id must be int or str, got {type(value).__name__}")
    if isinstance(value, str) and not value.strip():
        raise ValueError("record id must be non-empty")
    return value


RecordId = Annotated[int | str, BeforeValidator(_check_record_id)]
"""Annotated id type: ``int`` or non-empty ``str``, never ``bool``."""


def is_valid_record_id(value: Any) -> bool:
    try:
        _check_record_id(value)
    except ValueError:
        return False
    return True


def get_record_id(record: Mapping[str, Any], id_field: str) -> int | str | None:
    """Return the record's id, or ``None`` when missing or unusable."""
    value = record.get(id_field)
    return value if is_valid_record_id(value) else None


def is_soft_deleted(record: Mapping[str, Any]) -> bool:
    return record.get(SOFT_DELETE_FIELD) is not None


class SliceBaseModel(BaseModel):
    """Base for every value object pyslices hands out."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
    )
