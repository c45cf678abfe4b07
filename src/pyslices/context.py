"""Explicit engine context.

A :class:`SliceContext` owns the registry (and therefore every cache and
event channel) for one transport. There is no module-level instance:
code that needs the engine receives a context by reference.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from typing import Any

from pyslices._transport import Transport
from pyslices.config import SliceConfig
from pyslices.ingestion.remote import apply_remote_change
from pyslices.models.remote_change import RemoteChange
from pyslices.slices.actions import SliceAction, SliceActions
from pyslices.slices.dispatch import ActionOutcome, Dispatched
from pyslices.slices.factory import SliceBundle, create_slice
from pyslices.slices.registry import SliceRegistry
from pyslices.state.events import EventCallback, SliceEventNames, Unsubscribe
from pyslices.state.store import CacheSnapshot

_logger = logging.getLogger(__name__)


class SliceContext:
    """Registry plus the dispatch, subscription and snapshot surfaces."""

    def __init__(
        self,
        transport: Transport | None,
        *,
        slices: Iterable[SliceConfig] = (),
        table_prefix: str = "",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._transport = transport
        factory = functools.partial(create_slice, transport=transport, table_prefix=table_prefix, clock=clock)
        self.registry = SliceRegistry(factory, table_prefix=table_prefix)
        for config in slices:
            self.registry.configure(config)

    def configure(self, config: SliceConfig) -> None:
        self.registry.configure(config)

    def get_bundle(self, key: str) -> SliceBundle:
        return self.registry.get(key)

    def actions(self, key: str) -> SliceActions:
        return self.registry.get(key).actions

    def event_names(self, key: str) -> SliceEventNames:
        return self.registry.get(key).event_names

    def dispatch(self, action: SliceAction) -> Dispatched:
        return self.registry.get(action.slice_key).dispatch(action)

    def snapshot(self, key: str) -> CacheSnapshot:
        return self.registry.get(key).snapshot()

    def subscribe(self, key: str, event_name: str, callback: EventCallback) -> Unsubscribe:
        return self.registry.get(key).subscribe(event_name, callback)

    def root_state(self) -> dict[str, CacheSnapshot]:
        """Snapshots of every slice in use, keyed by entity type."""
        return {bundle.key: bundle.snapshot() for bundle in self.registry}

    async def ensure_loaded(self, key: str) -> CacheSnapshot:
        return await self.registry.get(key).ensure_loaded()

    async def hydrate(self, keys: Iterable[str], params: Mapping[str, Any] | None = None) -> dict[str, ActionOutcome]:
        """Fetch several slices concurrently; failures are logged, never raised."""
        handles = {
            key: self.dispatch(self.registry.get(key).actions.fetch_async(params))
            for key in dict.fromkeys(keys)
        }
        outcomes = await asyncio.gather(*(handle.outcome() for handle in handles.values()))
        results = dict(zip(handles, outcomes, strict=True))
        for key, outcome in results.items():
            if not outcome.ok:
                _logger.warning("Hydrating %s failed: %s", key, outcome.error)
        return results

    def apply_remote_change(self, change: RemoteChange | Mapping[str, Any]) -> bool:
        return apply_remote_change(self, change)
