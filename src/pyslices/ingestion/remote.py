"""Route server-pushed row changes to the slice that owns the table.

The change goes through the bundle's reducer, so the single-writer rule
holds: only the bundle mutates its cache, and it emits the same
lifecycle events a dispatched action would (tagged ``source=remote``).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pyslices._redact import redact_for_log
from pyslices.models.remote_change import RemoteChange

if TYPE_CHECKING:
    from pyslices.context import SliceContext

_logger = logging.getLogger(__name__)


def parse_remote_change(raw: Mapping[str, Any]) -> RemoteChange:
    """Validate a raw notification.

    Accepts ``{"table", "operation", "new_data", "old_data"}`` and the
    common ``new``/``old``/``type`` spellings.
    """
    data = dict(raw)
    if "operation" not in data and "type" in data:
        data["operation"] = data.pop("type")
    if "new_data" not in data and "new" in data:
        data["new_data"] = data.pop("new")
    if "old_data" not in data and "old" in data:
        data["old_data"] = data.pop("old")
    return RemoteChange.model_validate(data)


def apply_remote_change(context: SliceContext, change: RemoteChange | Mapping[str, Any]) -> bool:
    """Apply *change* to its slice.

    Returns ``False`` when no slice owns the table or the row has no id.
    """
    if not isinstance(change, RemoteChange):
        change = parse_remote_change(change)

    bundle = context.registry.by_table(change.table)
    if bundle is None:
        _logger.warning("No slice registered for table %s; change ignored", change.table)
        return False

    _logger.debug("Remote %s on %s: %s", change.operation, change.table, redact_for_log(change.row))
    events = bundle.apply_remote_change(change)
    return bool(events)
