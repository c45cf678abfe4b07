"""HTTP transport used by the generated slice actions."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pyslices._constants import USER_AGENT
from pyslices._redact import redact_for_log
from pyslices.config import ClientConfig
from pyslices.exceptions import TransportFailure

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface consumed by slice bundles.

    Every method returns the decoded JSON body (``None`` for an empty
    body) or raises :class:`TransportFailure`. Keeping this a protocol
    lets tests pass small fakes while production uses
    :class:`HttpTransport`.
    """

    async def get(self, path: str, params: Mapping[str, str] | None = None) -> Any: ...

    async def post(self, path: str, body: Mapping[str, Any]) -> Any: ...

    async def patch(self, path: str, body: Mapping[str, Any]) -> Any: ...

    async def delete(self, path: str) -> Any: ...


def _error_message(text: str) -> str:
    """Pull the server's ``message`` out of a JSON error body when there is one."""
    try:
        body = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return text[:200]
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return text[:200]


class HttpTransport:
    """JSON-over-HTTP transport on top of an :class:`aiohttp.ClientSession`."""

    def __init__(self, config: ClientConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)
        self._headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
            **config.headers,
        }

    async def get(self, path: str, params: Mapping[str, str] | None = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, body: Mapping[str, Any]) -> Any:
        return await self._request("POST", path, body=body)

    async def patch(self, path: str, body: Mapping[str, Any]) -> Any:
        return await self._request("PATCH", path, body=body)

    async def delete(self, path: str) -> Any:
        return await self._request("DELETE", path)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        body: Mapping[str, Any] | None = None,
        params: Mapping[str, str] | None = None,
    ) -> Any:
        url = f"{self._config.base_url}{path}"
        _logger.debug("%s %s", method, url)
        if self._config.api_trace_enabled:
            _logger.debug(
                "%s %s request params=%s body=%s",
                method,
                path,
                redact_for_log(params),
                redact_for_log(body),
            )

        try:
            async with self._http.request(
                method,
                url,
                json=dict(body) if body is not None else None,
                params=dict(params) if params else None,
                headers=self._headers,
                timeout=self._timeout,
            ) as resp:
                raw = await resp.read()
                status = resp.status
                encoding = resp.charset or "utf-8"
        except aiohttp.ClientError as exc:
            raise TransportFailure(
                f"{method} {path} failed: {exc}",
                endpoint=path,
                method=method,
            ) from exc
        except TimeoutError as exc:
            raise TransportFailure(
                f"{method} {path} timed out after {self._config.request_timeout}s",
                endpoint=path,
                method=method,
            ) from exc

        try:
            text = raw.decode(encoding)
        except (UnicodeDecodeError, LookupError) as exc:
            raise TransportFailure(
                f"Undecodable {encoding} body from {method} {path}",
                status_code=status,
                endpoint=path,
                method=method,
            ) from exc

        if not 200 <= status < 300:
            raise TransportFailure(
                f"HTTP {status} from {method} {path}: {_error_message(text)}",
                status_code=status,
                endpoint=path,
                method=method,
            )

        if not text.strip():
            return None

        try:
            result = json.loads(text)
        except json.JSONDecodeError as exc:
            raise TransportFailure(
                f"Invalid JSON from {method} {path}: {text[:200]}",
                status_code=status,
                endpoint=path,
                method=method,
            ) from exc

        if self._config.api_trace_enabled:
            _logger.debug("%s %s response status=%s body=%s", method, path, status, redact_for_log(result))
        return result
