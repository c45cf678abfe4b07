"""Custom exception hierarchy for pyslices."""

from __future__ import annotations


class SliceError(Exception):
    """Base exception for all pyslices errors."""


class SliceConfigError(SliceError):
    """Invalid or conflicting slice configuration."""


class TransportFailure(SliceError):
    """Remote call failed (network, non-2xx status, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
        method: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        self.method = method
        super().__init__(message)


class MalformedResponseError(TransportFailure):
    """Response decoded fine but carries no usable record or record list."""


class NotFoundError(SliceError):
    """Record id is absent from the local cache.

    Only raised by explicit lookups such as :meth:`CacheSnapshot.require`.
    Updating or removing an id that is not cached locally is not an
    error; a remote 404 surfaces as :class:`TransportFailure` instead.
    """

    def __init__(self, message: str, *, slice_key: str = "", record_id: object = None) -> None:
        self.slice_key = slice_key
        self.record_id = record_id
        super().__init__(message)
