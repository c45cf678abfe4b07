"""The generic slice factory.

:func:`create_slice` turns a :class:`SliceConfig` into a
:class:`SliceBundle`: action creators, cache, event channel and the
reducer wiring between them. Every entity type gets exactly the same
machinery; nothing here is specific to any one type.

All four operations follow one template::

    set loading → call transport → reduce result into cache → emit
                              └─ on failure: set error, reject

Overlapping actions for the same slice are not serialized. Results are
reduced in the order responses arrive, so the last response wins.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any
from urllib.parse import quote

from pyslices._envelope import find_record, unwrap_record, unwrap_rows
from pyslices._transport import Transport
from pyslices.config import SliceConfig
from pyslices.exceptions import SliceConfigError, SliceError
from pyslices.models.remote_change import RemoteChange
from pyslices.models.requests import AddRequest, FetchRequest, RemoveRequest, UpdateRequest
from pyslices.slices.actions import ActionKind, SliceAction, SliceActions
from pyslices.slices.dispatch import ActionOutcome, Dispatched
from pyslices.slices.reducer import (
    FetchResult,
    UpdateResult,
    reduce_fulfilled,
    reduce_rejected,
    reduce_remote_change,
)
from pyslices.state.events import EventCallback, EventChannel, SliceEvent, SliceEventNames, Unsubscribe
from pyslices.state.store import CacheSnapshot, EntityCache

_logger = logging.getLogger(__name__)


class SliceBundle:
    """Actions, cache, events and reducer for one entity type."""

    def __init__(
        self,
        config: SliceConfig,
        transport: Transport | None,
        *,
        table_prefix: str = "",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._table = config.table_name(table_prefix)
        self.actions = SliceActions(config)
        self.cache = (
            EntityCache(config.name, id_field=config.id_field, clock=clock)
            if clock is not None
            else EntityCache(config.name, id_field=config.id_field)
        )
        self.events = EventChannel(config.name)
        self.event_names = SliceEventNames.for_slice(config.name)
        self._hydration: Dispatched | None = None
        self._tasks: set[asyncio.Task[ActionOutcome]] = set()

    def __repr__(self) -> str:
        return f"<SliceBundle {self.key} endpoint={self._config.endpoint} records={len(self.cache)}>"

    @property
    def key(self) -> str:
        return self._config.name

    @property
    def config(self) -> SliceConfig:
        return self._config

    @property
    def table(self) -> str:
        return self._table

    @property
    def pending(self) -> int:
        """Number of dispatched actions that have not settled yet."""
        return len(self._tasks)

    def snapshot(self) -> CacheSnapshot:
        return self.cache.snapshot()

    def subscribe(self, event_name: str, callback: EventCallback) -> Unsubscribe:
        return self.events.subscribe(event_name, callback)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, action: SliceAction) -> Dispatched:
        """Start *action* and return its handle. Must run inside an event loop."""
        if action.slice_key != self.key:
            raise SliceError(f"action {action.type} dispatched to slice {self.key!r}")
        loop = asyncio.get_running_loop()
        self.cache.set_loading(True)
        task = loop.create_task(self._run(action), name=action.type)
        self._tasks.add(task)
        task.add_done_callback(self._settle_task)
        return Dispatched(action, task)

    def _settle_task(self, task: asyncio.Task[ActionOutcome]) -> None:
        # The bundle holds the only guaranteed reference until the task ends.
        self._tasks.discard(task)
        # A cancelled run never reached its own release, even if it was
        # cancelled before it started.
        if task.cancelled():
            self.cache.set_loading(False)

    async def _run(self, action: SliceAction) -> ActionOutcome:
        try:
            result = await self._call_remote(action)
            value, events = reduce_fulfilled(self.cache, action, result)
        except Exception as exc:
            reduce_rejected(self.cache, action, exc)
            return ActionOutcome.rejected(action, exc)

        self.cache.set_loading(False)
        _logger.debug("%s fulfilled (%d record(s) cached)", action.type, len(self.cache))
        self._emit(events)
        return ActionOutcome.fulfilled(action, value)

    def _emit(self, events: Iterable[SliceEvent]) -> None:
        for event in events:
            self.events.emit(event.name, event)

    def _item_path(self, record_id: int | str) -> str:
        return f"{self._config.endpoint}/{quote(str(record_id), safe='')}"

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise SliceConfigError(f"{self.key} has endpoint {self._config.endpoint!r} but no transport is configured")
        return self._transport

    async def _call_remote(self, action: SliceAction) -> Any:
        """Perform the remote half of *action* and normalize the answer for the reducer."""
        config = self._config
        request = action.request
        local = config.is_local

        if action.kind == ActionKind.ADD:
            assert isinstance(request, AddRequest)  # noqa: S101
            if local:
                return dict(request.body)
            endpoint = str(config.endpoint)
            response = await self._require_transport().post(endpoint, request.body)
            return unwrap_record(response, config.id_field, endpoint=endpoint, method="POST")

        if action.kind == ActionKind.UPDATE:
            assert isinstance(request, UpdateRequest)  # noqa: S101
            if local:
                return UpdateResult(request.record_id, dict(request.updates))
            response = await self._require_transport().patch(self._item_path(request.record_id), request.updates)
            return UpdateResult(request.record_id, dict(request.updates), find_record(response, config.id_field))

        if action.kind == ActionKind.REMOVE:
            assert isinstance(request, RemoveRequest)  # noqa: S101
            if not local:
                await self._require_transport().delete(self._item_path(request.record_id))
            return request.record_id

        if action.kind == ActionKind.FETCH:
            assert isinstance(request, FetchRequest)  # noqa: S101
            if local:
                return FetchResult(list(self.cache.snapshot().records), partial=request.is_partial)
            endpoint = str(config.endpoint)
            response = await self._require_transport().get(endpoint, request.params or None)
            return FetchResult(unwrap_rows(response, endpoint=endpoint), partial=request.is_partial)

        raise SliceError(f"unsupported action kind {action.kind!r}")

    # ------------------------------------------------------------------
    # Hydration and remote changes
    # ------------------------------------------------------------------

    async def ensure_loaded(self) -> CacheSnapshot:
        """Run one full fetch on first need; concurrent callers share the in-flight fetch.

        Partial fetches do not count: the type is hydrated only once an
        unfiltered fetch has succeeded.

        Raises the fetch failure; the next call retries.
        """
        if not self.cache.hydrated:
            if self._hydration is None or self._hydration.done():
                self._hydration = self.dispatch(self.actions.fetch_async())
            await self._hydration.unwrap()
        return self.snapshot()

    def apply_remote_change(self, change: RemoteChange) -> list[SliceEvent]:
        """Fold a server-pushed row change into the cache and announce it."""
        events = reduce_remote_change(self.cache, change)
        self._emit(events)
        return events


def create_slice(
    config: SliceConfig,
    transport: Transport | None,
    *,
    table_prefix: str = "",
    clock: Callable[[], datetime] | None = None,
) -> SliceBundle:
    """Build the bundle for one entity type."""
    _logger.debug("Creating slice %s (endpoint=%s)", config.name, config.endpoint)
    return SliceBundle(config, transport, table_prefix=table_prefix, clock=clock)
