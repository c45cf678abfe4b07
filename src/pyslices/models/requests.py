"""Pydantic request models behind the generated action creators.

These give every action the same "validate → normalize → execute" flow:
bad input is rejected when the action is *created*, before anything is
dispatched or any cache state changes.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import Field, field_validator

from pyslices.models._base import RecordId, SliceBaseModel


class AddRequest(SliceBaseModel):
    """Create a record from *body*."""

    body: dict[str, Any] = Field(default_factory=dict)


class UpdateRequest(SliceBaseModel):
    """Patch the record *record_id* with *updates*."""

    record_id: RecordId
    updates: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], *, id_field: str) -> UpdateRequest:
        """Accept ``{"id": 7, "name": "x"}`` as well as ``{"id": 7, "updates": {...}}``."""
        if not isinstance(payload, Mapping):
            raise TypeError(f"update payload must be a mapping, got {type(payload).__name__}")
        if id_field not in payload:
            raise ValueError(f"update payload is missing {id_field!r}")
        nested = payload.get("updates")
        if isinstance(nested, Mapping) and set(payload) <= {id_field, "updates"}:
            updates = dict(nested)
        else:
            updates = {k: v for k, v in payload.items() if k != id_field}
        updates.pop(id_field, None)
        return cls(record_id=payload[id_field], updates=updates)


class RemoveRequest(SliceBaseModel):
    record_id: RecordId


class FetchRequest(SliceBaseModel):
    """List request; non-empty *params* make it a partial fetch."""

    params: dict[str, str] = Field(default_factory=dict)

    @field_validator("params", mode="before")
    @classmethod
    def _stringify_params(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, Mapping):
            return {str(k): str(v) for k, v in value.items() if v is not None}
        return value

    @property
    def is_partial(self) -> bool:
        return bool(self.params)
