"""Response envelope unwrapping.

Endpoints are not consistent about how they wrap entities. A create may
answer ``{"data": {...}}``, ``{"row": {...}}`` or something like
``{"invitation": {...}, "invitation_link": "..."}``; a list may be a bare
array or sit under ``rows``/``data``. These helpers find the actual
payload so the cache only ever stores real records.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pyslices._constants import ENVELOPE_MAX_DEPTH, LIST_KEYS, SINGLE_ENTITY_KEYS
from pyslices.exceptions import MalformedResponseError
from pyslices.models._base import get_record_id


def find_record(payload: Any, id_field: str) -> dict[str, Any] | None:
    """Return the first mapping carrying *id_field*, or ``None``.

    Preferred wrapper keys are searched before other nested mappings;
    arrays are never descended into.
    """
    seen: set[int] = set()

    def _find(node: Any, depth: int) -> dict[str, Any] | None:
        if not isinstance(node, Mapping) or id(node) in seen:
            return None
        seen.add(id(node))
        if get_record_id(node, id_field) is not None:
            return dict(node)
        if depth <= 0:
            return None
        for key in SINGLE_ENTITY_KEYS:
            if key in node:
                hit = _find(node[key], depth - 1)
                if hit is not None:
                    return hit
        for key, value in node.items():
            if key in SINGLE_ENTITY_KEYS or not isinstance(value, Mapping):
                continue
            hit = _find(value, depth - 1)
            if hit is not None:
                return hit
        return None

    return _find(payload, ENVELOPE_MAX_DEPTH)


def unwrap_record(payload: Any, id_field: str, *, endpoint: str = "", method: str = "") -> dict[str, Any]:
    """Like :func:`find_record` but a missing record is a malformed response."""
    record = find_record(payload, id_field)
    if record is None:
        raise MalformedResponseError(
            f"Response from {endpoint or 'transport'} has no record with {id_field!r}",
            endpoint=endpoint,
            method=method,
        )
    return record


def unwrap_rows(payload: Any, *, endpoint: str = "", method: str = "GET") -> list[dict[str, Any]]:
    """Return the row list of a list response."""
    rows: Any = payload
    if isinstance(payload, Mapping):
        rows = None
        for key in LIST_KEYS:
            if isinstance(payload.get(key), list):
                rows = payload[key]
                break
    if not isinstance(rows, list):
        raise MalformedResponseError(
            f"List response from {endpoint or 'transport'} is not an array: {type(payload).__name__}",
            endpoint=endpoint,
            method=method,
        )
    bad = [row for row in rows if not isinstance(row, Mapping)]
    if bad:
        raise MalformedResponseError(
            f"List response from {endpoint or 'transport'} contains {len(bad)} non-object row(s)",
            endpoint=endpoint,
            method=method,
        )
    return [dict(row) for row in rows]
