"""Ordered, id-keyed in-memory record cache for one entity type."""

from __future__ import annotations

import copy
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import Field

from pyslices._constants import DEFAULT_ID_FIELD
from pyslices.exceptions import NotFoundError
from pyslices.models._base import Record, SliceBaseModel, get_record_id


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CacheSnapshot(SliceBaseModel):
    """Immutable view of one slice's cache, safe to hand to renderers."""

    slice_key: str
    id_field: str = DEFAULT_ID_FIELD
    records: tuple[dict[str, Any], ...] = ()
    loading: bool = False
    error: str | None = None
    loaded_at: datetime | None = Field(default=None, description="Last successful full or partial fetch")
    hydrated: bool = Field(default=False, description="A full (unfiltered) fetch has succeeded")

    @property
    def ids(self) -> list[int | str]:
        return [record[self.id_field] for record in self.records]

    def get(self, record_id: int | str) -> dict[str, Any] | None:
        for record in self.records:
            if record.get(self.id_field) == record_id:
                return record
        return None

    def require(self, record_id: int | str) -> dict[str, Any]:
        record = self.get(record_id)
        if record is None:
            raise NotFoundError(
                f"{self.slice_key}: no record with {self.id_field}={record_id!r}",
                slice_key=self.slice_key,
                record_id=record_id,
            )
        return record

    def __len__(self) -> int:
        return len(self.records)


class EntityCache:
    """Records of one entity type plus request status.

    Records are kept in a dict keyed by id, which gives both uniqueness
    and stable insertion order: replacing a value keeps its position.

    ``loading`` is backed by a count of outstanding requests so that it
    is true exactly while at least one request for this type is in
    flight, even when requests overlap.
    """

    def __init__(
        self,
        slice_key: str,
        *,
        id_field: str = DEFAULT_ID_FIELD,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._slice_key = slice_key
        self._id_field = id_field
        self._clock = clock
        self._records: dict[int | str, Record] = {}
        self._in_flight = 0
        self._error: str | None = None
        self._loaded_at: datetime | None = None
        self._hydrated = False

    @property
    def slice_key(self) -> str:
        return self._slice_key

    @property
    def id_field(self) -> str:
        return self._id_field

    @property
    def loading(self) -> bool:
        return self._in_flight > 0

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def loaded_at(self) -> datetime | None:
        return self._loaded_at

    @property
    def hydrated(self) -> bool:
        return self._hydrated

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records

    def _require_id(self, record: Mapping[str, Any]) -> int | str:
        record_id = get_record_id(record, self._id_field)
        if record_id is None:
            raise ValueError(f"{self._slice_key}: record has no usable {self._id_field!r}: {record!r}")
        return record_id

    def get(self, record_id: int | str) -> Record | None:
        """Return a copy of the cached record, or ``None``."""
        record = self._records.get(record_id)
        return copy.deepcopy(record) if record is not None else None

    # ------------------------------------------------------------------
    # Record mutations
    # ------------------------------------------------------------------

    def upsert(self, record: Mapping[str, Any]) -> Record:
        """Insert or replace *record* by id; replacement keeps its position.

        Clears any previous error. Returns a copy of the stored record.
        """
        record_id = self._require_id(record)
        stored = copy.deepcopy(dict(record))
        self._records[record_id] = stored
        self._error = None
        return copy.deepcopy(stored)

    def upsert_many(self, records: Iterable[Mapping[str, Any]]) -> list[Record]:
        checked = [(self._require_id(record), record) for record in records]
        stored: list[Record] = []
        for record_id, record in checked:
            self._records[record_id] = copy.deepcopy(dict(record))
            stored.append(copy.deepcopy(self._records[record_id]))
        self._error = None
        return stored

    def remove(self, record_id: int | str) -> Record | None:
        """Delete *record_id*; absent ids are a no-op. Returns the removed record."""
        return self._records.pop(record_id, None)

    def replace_all(self, records: Iterable[Mapping[str, Any]]) -> list[Record]:
        """Swap in a complete record set, keeping the given order.

        All ids are validated before anything is replaced. A repeated id
        keeps its first position and its last value.
        """
        checked = [(self._require_id(record), record) for record in records]
        fresh: dict[int | str, Record] = {}
        for record_id, record in checked:
            fresh[record_id] = copy.deepcopy(dict(record))
        self._records = fresh
        self._error = None
        return [copy.deepcopy(record) for record in fresh.values()]

    def mark_loaded(self, *, complete: bool = True) -> None:
        """Stamp a successful fetch; only a complete one counts as hydrated."""
        self._loaded_at = self._clock()
        if complete:
            self._hydrated = True

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    def set_loading(self, loading: bool) -> None:
        """Mark a request as started (``True``) or finished (``False``)."""
        if loading:
            self._in_flight += 1
        elif self._in_flight > 0:
            self._in_flight -= 1

    def set_error(self, message: str) -> None:
        """Record a failed request; the failed request no longer counts as loading."""
        self._error = message
        self.set_loading(False)

    def clear_error(self) -> None:
        self._error = None

    def snapshot(self) -> CacheSnapshot:
        return CacheSnapshot(
            slice_key=self._slice_key,
            id_field=self._id_field,
            records=tuple(copy.deepcopy(record) for record in self._records.values()),
            loading=self.loading,
            error=self._error,
            loaded_at=self._loaded_at,
            hydrated=self._hydrated,
        )
