"""Client and per-slice configuration for pyslices."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyslices._constants import DEFAULT_ID_FIELD, DEFAULT_REQUEST_TIMEOUT, default_endpoint, to_snake_case
from pyslices.exceptions import SliceConfigError

# Marks an endpoint that should be derived from the slice name.
_DERIVE = "<derive>"


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _normalize_endpoint(endpoint: str) -> str:
    path = endpoint.strip()
    if not path or path == "/":
        raise SliceConfigError("endpoint must be a non-empty path (use endpoint=None for local-only slices)")
    if not path.startswith("/"):
        path = f"/{path}"
    return path.rstrip("/")


@dataclasses.dataclass(frozen=True)
class SliceConfig:
    """Configuration of one entity slice.

    Parameters
    ----------
    name : str
        Entity-type key (e.g. ``"taskTags"``).
    endpoint : str or None
        REST collection path. Derived from *name* when omitted
        (``"taskTags"`` → ``"/task-tags"``). ``None`` declares a
        local-only slice that never touches the transport.
    table : str or None
        Server-side table name used to route remote change
        notifications. Defaults to the snake_case name plus the client's
        ``table_prefix``.
    id_field : str
        Primary key attribute of the slice's records.
    """

    name: str
    endpoint: str | None = _DERIVE
    table: str | None = None
    id_field: str = DEFAULT_ID_FIELD

    def __post_init__(self) -> None:
        if not isinstance(self.name, str):
            raise SliceConfigError(f"slice name must be a string, got {type(self.name).__name__}")
        if not self.id_field:
            raise SliceConfigError(f"{self.name}: id_field must be non-empty")
        if self.endpoint == _DERIVE:
            object.__setattr__(self, "endpoint", default_endpoint(self.name))
        elif self.endpoint is not None:
            object.__setattr__(self, "endpoint", _normalize_endpoint(self.endpoint))

    @classmethod
    def local(cls, name: str, **kwargs: Any) -> SliceConfig:
        """Config for a client-side-only slice (no remote endpoint)."""
        return cls(name, endpoint=None, **kwargs)

    @property
    def is_local(self) -> bool:
        return self.endpoint is None

    def table_name(self, prefix: str = "") -> str:
        """Resolved server table name."""
        if self.table:
            return self.table
        return f"{prefix}{to_snake_case(self.name)}"


@dataclasses.dataclass(frozen=True)
class ClientConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str
        API base URL every slice endpoint is appended to.
    request_timeout : float
        Total per-request timeout in seconds, enforced by the HTTP
        transport.
    headers : dict
        Extra headers sent with every request.
    api_trace_enabled : bool
        Log (redacted) request and response bodies at DEBUG level.
    table_prefix : str
        Prefix applied to derived table names (e.g. ``"wh_"``).
    slices : tuple of SliceConfig
        Slices registered up front. Any other key is still usable and
        gets the derived defaults on first access.
    """

    base_url: str
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    headers: dict[str, str] = dataclasses.field(default_factory=dict)
    api_trace_enabled: bool = False
    table_prefix: str = ""
    slices: tuple[SliceConfig, ...] = ()

    def __post_init__(self) -> None:
        if not self.base_url or not self.base_url.strip():
            raise SliceConfigError("base_url must be non-empty")
        object.__setattr__(self, "base_url", self.base_url.strip().rstrip("/"))
        if self.request_timeout <= 0:
            raise SliceConfigError(f"request_timeout must be positive, got {self.request_timeout}")
        object.__setattr__(self, "slices", tuple(self.slices))

    @classmethod
    def from_env(cls, **overrides: Any) -> ClientConfig:
        """Create configuration from ``SLICES_*`` environment variables.

        Reads ``SLICES_BASE_URL`` plus optional ``SLICES_REQUEST_TIMEOUT``,
        ``SLICES_API_TRACE_ENABLED`` and ``SLICES_TABLE_PREFIX``.
        Explicit keyword arguments override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        base_url = env.get("SLICES_BASE_URL")
        if base_url is not None:
            config_kwargs["base_url"] = base_url

        timeout_env = env.get("SLICES_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            try:
                config_kwargs["request_timeout"] = float(timeout_env)
            except ValueError as exc:
                raise SliceConfigError(f"SLICES_REQUEST_TIMEOUT is not a number: {timeout_env!r}") from exc

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(env.get("SLICES_API_TRACE_ENABLED"), False)

        prefix = env.get("SLICES_TABLE_PREFIX")
        if prefix is not None:
            config_kwargs["table_prefix"] = prefix

        config_kwargs.update(overrides)
        if "base_url" not in config_kwargs:
            raise SliceConfigError("SLICES_BASE_URL is not set and no base_url was given")

        return cls(**config_kwargs)
