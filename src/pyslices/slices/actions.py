"""Action values and the per-slice action creators.

An action is inert data describing an intended operation. Nothing
happens until it is handed to :meth:`SliceContext.dispatch` (or the
owning bundle's ``dispatch``).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, TypeAlias

from pyslices.config import SliceConfig
from pyslices.models._base import get_record_id
from pyslices.models.requests import AddRequest, FetchRequest, RemoveRequest, UpdateRequest

ActionRequest: TypeAlias = AddRequest | UpdateRequest | RemoveRequest | FetchRequest


class ActionKind(StrEnum):
    ADD = "addAsync"
    UPDATE = "updateAsync"
    REMOVE = "removeAsync"
    FETCH = "fetchAsync"


@dataclass(frozen=True, slots=True)
class SliceAction:
    """A dispatchable CRUD operation for one slice."""

    slice_key: str
    kind: ActionKind
    request: ActionRequest

    @property
    def type(self) -> str:
        return f"{self.slice_key}/{self.kind.value}"


class SliceActions:
    """Action creators bound to one slice. Stateless."""

    def __init__(self, config: SliceConfig) -> None:
        self._config = config

    @property
    def slice_key(self) -> str:
        return self._config.name

    def add_async(self, payload: Mapping[str, Any]) -> SliceAction:
        """Create a record; local-only slices need the id in *payload*."""
        if not isinstance(payload, Mapping):
            raise TypeError(f"add payload must be a mapping, got {type(payload).__name__}")
        if self._config.is_local and get_record_id(payload, self._config.id_field) is None:
            raise ValueError(f"{self.slice_key} is local-only; add payload needs {self._config.id_field!r}")
        return SliceAction(self.slice_key, ActionKind.ADD, AddRequest(body=dict(payload)))

    def update_async(self, payload: Mapping[str, Any]) -> SliceAction:
        request = UpdateRequest.from_payload(payload, id_field=self._config.id_field)
        return SliceAction(self.slice_key, ActionKind.UPDATE, request)

    def remove_async(self, record_id: int | str) -> SliceAction:
        return SliceAction(self.slice_key, ActionKind.REMOVE, RemoveRequest(record_id=record_id))

    def fetch_async(self, params: Mapping[str, Any] | None = None) -> SliceAction:
        """List records; non-empty *params* make it a partial (non-pruning) fetch."""
        return SliceAction(self.slice_key, ActionKind.FETCH, FetchRequest(params=params or {}))
