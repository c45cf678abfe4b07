"""Lazy, memoized map from entity-type key to slice bundle."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator

from pyslices.config import SliceConfig
from pyslices.exceptions import SliceConfigError
from pyslices.slices.factory import SliceBundle

_logger = logging.getLogger(__name__)


class SliceRegistry:
    """Entity-type registry.

    ``get(key)`` builds the bundle with *factory* on first access and
    returns the very same instance afterwards, so every caller shares
    one cache and one event channel per key. Bundles are never removed.
    """

    def __init__(self, factory: Callable[[SliceConfig], SliceBundle], *, table_prefix: str = "") -> None:
        self._factory = factory
        self._table_prefix = table_prefix
        self._configs: dict[str, SliceConfig] = {}
        self._bundles: dict[str, SliceBundle] = {}

    def configure(self, config: SliceConfig) -> None:
        """Register the config used when *config.name* is first accessed.

        Re-registering an identical config is a no-op. Changing the
        config of a slice that is already in use is rejected, as is a
        config whose table name another slice already owns.
        """
        existing = self._configs.get(config.name)
        if existing == config:
            return
        if config.name in self._bundles:
            raise SliceConfigError(f"slice {config.name!r} is already in use with a different configuration")
        table = config.table_name(self._table_prefix)
        owner = self._table_owner(table, exclude=config.name)
        if owner is not None:
            raise SliceConfigError(f"slice {config.name!r} maps to table {table!r}, already owned by {owner!r}")
        self._configs[config.name] = config

    def config_for(self, key: str) -> SliceConfig:
        config = self._configs.get(key)
        if config is None:
            config = SliceConfig(key)
            table = config.table_name(self._table_prefix)
            owner = self._table_owner(table, exclude=key)
            if owner is not None:
                _logger.warning(
                    "Slice %s derives table %s, already owned by %s; remote changes keep going to %s",
                    key,
                    table,
                    owner,
                    owner,
                )
            self._configs[key] = config
        return config

    def get(self, key: str) -> SliceBundle:
        if not isinstance(key, str):
            raise TypeError(f"entity key must be a string, got {type(key).__name__}")
        bundle = self._bundles.get(key)
        if bundle is None:
            bundle = self._factory(self.config_for(key))
            self._bundles[key] = bundle
            _logger.debug("Registered slice %s", key)
        return bundle

    def _table_owner(self, table: str, *, exclude: str) -> str | None:
        for key, config in self._configs.items():
            if key != exclude and config.table_name(self._table_prefix) == table:
                return key
        return None

    def by_table(self, table: str) -> SliceBundle | None:
        """Resolve a server table name to its bundle (configured or already used slices)."""
        for key, config in self._configs.items():
            if config.table_name(self._table_prefix) == table:
                return self.get(key)
        return None

    def keys(self) -> list[str]:
        """Keys with a live bundle, in creation order."""
        return list(self._bundles)

    def __contains__(self, key: object) -> bool:
        return key in self._bundles

    def __iter__(self) -> Iterator[SliceBundle]:
        return iter(list(self._bundles.values()))

    def __len__(self) -> int:
        return len(self._bundles)
