"""Helpers for safe debug logging.

Entity payloads routinely carry credentials: API-key rows expose the
plain ``key`` once on creation, user rows carry password hashes, and
request headers carry bearer tokens. Everything that reaches a DEBUG log
goes through :func:`redact_for_log` first.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

# Compared after lower-casing and dropping ``_``/``-`` separators.
_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "key",
        "apikey",
        "password",
        "passwordhash",
        "secret",
        "clientsecret",
        "token",
        "accesstoken",
        "refreshtoken",
        "authorization",
        "cookie",
        "setcookie",
    }
)

_REDACTED = "<redacted>"


def _normalize_key(key: str) -> str:
    return key.lower().replace("_", "").replace("-", "")


def is_sensitive_key(key: object) -> bool:
    """Return ``True`` when values stored under *key* must never be logged."""
    return _normalize_key(str(key)) in _SENSITIVE_KEYS


def redact_for_log(value: Any, *, max_string: int = 256, max_items: int = 50, _depth: int = 0) -> Any:
    """Return a redacted, size-bounded copy of *value* for debug logs.

    Long strings are truncated and long sequences are cut after
    *max_items* entries, so a full list response does not flood the log.
    """
    if _depth > 10:
        return "<max-depth>"

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        return {
            str(k): _REDACTED
            if is_sensitive_key(k)
            else redact_for_log(v, max_string=max_string, max_items=max_items, _depth=_depth + 1)
            for k, v in value.items()
        }

    if isinstance(value, Sequence):
        items = [
            redact_for_log(v, max_string=max_string, max_items=max_items, _depth=_depth + 1)
            for v in list(value)[:max_items]
        ]
        if len(value) > max_items:
            items.append(f"<+{len(value) - max_items} more>")
        return items

    return repr(value)
