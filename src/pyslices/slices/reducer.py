"""Fold action results and remote changes into a slice's cache.

The reducer is the only code that changes records. It never performs
I/O: the bundle calls the transport, then hands the decoded result here.
Each function returns the value the action resolves with plus the
events to emit, so emission stays the bundle's job.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pyslices.models._base import Record, get_record_id, is_soft_deleted
from pyslices.models.remote_change import ChangeOperation, RemoteChange
from pyslices.slices.actions import ActionKind, SliceAction
from pyslices.state.events import (
    EventSource,
    RecordCreated,
    RecordRemoved,
    RecordsLoaded,
    RecordUpdated,
    SliceEvent,
)
from pyslices.state.store import EntityCache

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class UpdateResult:
    """Server answer to an update; merged against the cache at reduce time."""

    record_id: int | str
    updates: dict[str, Any]
    server_record: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class FetchResult:
    rows: list[dict[str, Any]]
    partial: bool = False


def _live_rows(cache: EntityCache, rows: list[dict[str, Any]]) -> tuple[list[Record], list[int | str]]:
    """Split fetched rows into live records and soft-deleted ids; drop rows without id."""
    live: list[Record] = []
    tombstones: list[int | str] = []
    for row in rows:
        record_id = get_record_id(row, cache.id_field)
        if record_id is None:
            _logger.warning("%s: dropping fetched row without %r", cache.slice_key, cache.id_field)
            continue
        if is_soft_deleted(row):
            tombstones.append(record_id)
        else:
            live.append(row)
    return live, tombstones


def _store_record(
    cache: EntityCache,
    record: Record,
    event_type: type[RecordCreated] | type[RecordUpdated],
    source: EventSource,
) -> tuple[Record, SliceEvent]:
    record_id = get_record_id(record, cache.id_field)
    if record_id is None:
        raise ValueError(f"{cache.slice_key}: record has no usable {cache.id_field!r}")
    if is_soft_deleted(record):
        cache.remove(record_id)
        return record, RecordRemoved(slice_key=cache.slice_key, record_id=record_id, source=source)
    stored = cache.upsert(record)
    return stored, event_type(slice_key=cache.slice_key, record=stored, source=source)


def reduce_fulfilled(cache: EntityCache, action: SliceAction, result: Any) -> tuple[Any, list[SliceEvent]]:
    """Apply a successful action result. Returns ``(resolved value, events)``."""
    key = cache.slice_key

    if action.kind == ActionKind.ADD:
        stored, event = _store_record(cache, result, RecordCreated, EventSource.ACTION)
        return stored, [event]

    if action.kind == ActionKind.UPDATE:
        update: UpdateResult = result
        merged = cache.get(update.record_id) or {}
        merged.update(update.updates)
        if update.server_record:
            merged.update(update.server_record)
        merged[cache.id_field] = update.record_id
        stored, event = _store_record(cache, merged, RecordUpdated, EventSource.ACTION)
        return stored, [event]

    if action.kind == ActionKind.REMOVE:
        record_id = result
        cache.remove(record_id)
        cache.clear_error()
        return record_id, [RecordRemoved(slice_key=key, record_id=record_id)]

    if action.kind == ActionKind.FETCH:
        fetched: FetchResult = result
        live, tombstones = _live_rows(cache, fetched.rows)
        if fetched.partial:
            for record_id in tombstones:
                cache.remove(record_id)
            stored_rows = cache.upsert_many(live)
        else:
            stored_rows = cache.replace_all(live)
        cache.mark_loaded(complete=not fetched.partial)
        return stored_rows, [RecordsLoaded(slice_key=key, records=tuple(stored_rows), partial=fetched.partial)]

    raise ValueError(f"unsupported action kind {action.kind!r}")


def reduce_rejected(cache: EntityCache, action: SliceAction, error: Exception) -> None:
    """Record a failed action. Records are left exactly as they were."""
    cache.set_error(describe_error(error))
    _logger.debug("%s failed: %s", action.type, error)


def reduce_remote_change(cache: EntityCache, change: RemoteChange) -> list[SliceEvent]:
    """Apply a server-pushed row change; unknown-id deletes are still announced."""
    row = change.row
    record_id = get_record_id(row, cache.id_field)
    if record_id is None:
        _logger.warning("%s: ignoring %s change without %r", cache.slice_key, change.operation, cache.id_field)
        return []

    if change.operation == ChangeOperation.DELETE or is_soft_deleted(row):
        cache.remove(record_id)
        return [RecordRemoved(slice_key=cache.slice_key, record_id=record_id, source=EventSource.REMOTE)]

    event_type = RecordUpdated if record_id in cache else RecordCreated
    _, event = _store_record(cache, row, event_type, EventSource.REMOTE)
    return [event]


def describe_error(error: Exception) -> str:
    text = str(error)
    return text if text else type(error).__name__
