"""Internal constants shared across the library."""

from __future__ import annotations

import re

USER_AGENT = "pyslices/1"
DEFAULT_ID_FIELD = "id"
DEFAULT_REQUEST_TIMEOUT = 30.0

# Rows carrying a non-null value here are tombstones, not live records.
SOFT_DELETE_FIELD = "deleted_at"

# Wrapper keys servers use around a single entity, tried in this order.
SINGLE_ENTITY_KEYS: tuple[str, ...] = ("data", "row", "result", "item")
# Wrapper keys servers use around a list of rows.
LIST_KEYS: tuple[str, ...] = ("rows", "data")
ENVELOPE_MAX_DEPTH = 4

# ------------------------------------------------------------------
# Entity key spelling helpers  (camelCase key → path / table name)
# ------------------------------------------------------------------

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def to_kebab_case(key: str) -> str:
    """Convert an entity key to a REST path segment.

    ``"taskTags"`` → ``"task-tags"``; already separated keys keep their
    separators (``"task_tags"`` → ``"task-tags"``).
    """
    return _CAMEL_BOUNDARY.sub("-", key).replace("_", "-").lower()


def to_snake_case(key: str) -> str:
    """Convert an entity key to a table-style name (``"taskTags"`` → ``"task_tags"``)."""
    return _CAMEL_BOUNDARY.sub("_", key).replace("-", "_").lower()


def default_endpoint(key: str) -> str:
    """Default REST collection path for *key*."""
    return f"/{to_kebab_case(key)}"
