"""Server-published row change notifications."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import Field, field_validator

from pyslices.models._base import SliceBaseModel


class ChangeOperation(StrEnum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class RemoteChange(SliceBaseModel):
    """One row change pushed by the server, addressed by table name."""

    table: str
    operation: ChangeOperation
    new_data: dict[str, Any] | None = Field(default=None, description="Row after the change")
    old_data: dict[str, Any] | None = Field(default=None, description="Row before the change")

    @field_validator("table")
    @classmethod
    def _table_non_empty(cls, value: str) -> str:
        table = value.strip()
        if not table:
            raise ValueError("table must be non-empty")
        return table

    @field_validator("operation", mode="before")
    @classmethod
    def _upper_operation(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @property
    def row(self) -> dict[str, Any]:
        """The most relevant row image for this change."""
        if self.operation == ChangeOperation.DELETE:
            return dict(self.old_data or self.new_data or {})
        return dict(self.new_data or {})
