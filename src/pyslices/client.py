"""High-level async client: HTTP transport plus one engine context."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import aiohttp

from pyslices._transport import HttpTransport, Transport
from pyslices.config import ClientConfig, SliceConfig
from pyslices.context import SliceContext
from pyslices.exceptions import SliceError
from pyslices.models.remote_change import RemoteChange
from pyslices.slices.actions import SliceAction, SliceActions
from pyslices.slices.dispatch import ActionOutcome, Dispatched
from pyslices.slices.factory import SliceBundle
from pyslices.state.events import EventCallback, Unsubscribe
from pyslices.state.store import CacheSnapshot

_logger = logging.getLogger(__name__)


class SliceClient:
    """Async client for a REST backend exposing generic entity collections.

    Usage::

        async with SliceClient(config) as client:
            tags = client.actions("taskTags")
            created = await client.dispatch(tags.add_async({"name": "urgent"})).unwrap()
            client.snapshot("taskTags").records

    The cache lives as long as the client's context; leaving the
    ``async with`` block drops it.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport_override = transport
        self._context: SliceContext | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> SliceClient:
        transport = self._transport_override
        if transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            transport = HttpTransport(self._config, self._http_session)
        self._context = SliceContext(
            transport,
            slices=self._config.slices,
            table_prefix=self._config.table_prefix,
        )
        _logger.debug("Client ready for %s (%d configured slice(s))", self._config.base_url, len(self._config.slices))
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._context = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_context(self) -> SliceContext:
        if self._context is None:
            raise SliceError("Client not initialized. Use 'async with SliceClient(...) as client:'")
        return self._context

    @property
    def context(self) -> SliceContext:
        return self._require_context()

    # ------------------------------------------------------------------
    # Engine surfaces
    # ------------------------------------------------------------------

    def configure(self, config: SliceConfig) -> None:
        self._require_context().configure(config)

    def bundle(self, key: str) -> SliceBundle:
        return self._require_context().get_bundle(key)

    def actions(self, key: str) -> SliceActions:
        return self._require_context().actions(key)

    def dispatch(self, action: SliceAction) -> Dispatched:
        return self._require_context().dispatch(action)

    def snapshot(self, key: str) -> CacheSnapshot:
        return self._require_context().snapshot(key)

    def subscribe(self, key: str, event_name: str, callback: EventCallback) -> Unsubscribe:
        return self._require_context().subscribe(key, event_name, callback)

    def root_state(self) -> dict[str, CacheSnapshot]:
        return self._require_context().root_state()

    async def ensure_loaded(self, key: str) -> CacheSnapshot:
        return await self._require_context().ensure_loaded(key)

    async def hydrate(self, keys: Iterable[str] | None = None) -> dict[str, ActionOutcome]:
        """Fetch the given slices, or every configured remote slice when *keys* is ``None``."""
        if keys is None:
            keys = [config.name for config in self._config.slices if not config.is_local]
        return await self._require_context().hydrate(keys)

    def apply_remote_change(self, change: RemoteChange | Mapping[str, Any]) -> bool:
        return self._require_context().apply_remote_change(change)
