from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import pytest

from pyslices.context import SliceContext
from pyslices.exceptions import TransportFailure


def _parse_id(raw: str) -> int | str:
    return int(raw) if raw.isdigit() else raw


@dataclass
class FakeBackend:
    """In-memory REST backend implementing the transport protocol."""

    tables: dict[str, dict[int | str, dict[str, Any]]] = field(default_factory=dict)
    next_id: int = 7
    calls: list[tuple[str, str]] = field(default_factory=list)
    failures: dict[tuple[str, str], TransportFailure] = field(default_factory=dict)

    def seed(self, endpoint: str, rows: list[dict[str, Any]]) -> None:
        self.tables[endpoint] = {row["id"]: dict(row) for row in rows}

    def fail(self, method: str, path: str, status: int = 500, message: str = "Server Error") -> None:
        self.failures[(method, path)] = TransportFailure(
            f"HTTP {status} from {method} {path}: {message}",
            status_code=status,
            endpoint=path,
            method=method,
        )

    def _record(self, method: str, path: str) -> None:
        self.calls.append((method, path))
        failure = self.failures.pop((method, path), None)
        if failure is not None:
            raise failure

    def _item(self, method: str, path: str) -> tuple[dict[int | str, dict[str, Any]], int | str]:
        collection, _, raw_id = path.rpartition("/")
        table = self.tables.setdefault(collection, {})
        record_id = _parse_id(raw_id)
        if record_id not in table:
            raise TransportFailure(f"HTTP 404 from {method} {path}: Not Found", status_code=404, endpoint=path, method=method)
        return table, record_id

    async def get(self, path: str, params: Mapping[str, str] | None = None) -> Any:
        self._record("GET", path)
        rows = list(self.tables.get(path, {}).values())
        if params:
            rows = [row for row in rows if all(str(row.get(k)) == v for k, v in params.items())]
        return {"rows": rows}

    async def post(self, path: str, body: Mapping[str, Any]) -> Any:
        self._record("POST", path)
        row = {"id": self.next_id, **body}
        self.next_id += 1
        self.tables.setdefault(path, {})[row["id"]] = row
        return {"data": dict(row)}

    async def patch(self, path: str, body: Mapping[str, Any]) -> Any:
        self._record("PATCH", path)
        table, record_id = self._item("PATCH", path)
        table[record_id].update(body)
        return {"data": dict(table[record_id])}

    async def delete(self, path: str) -> Any:
        self._record("DELETE", path)
        table, record_id = self._item("DELETE", path)
        del table[record_id]
        return None


class GatedTransport:
    """Transport whose responses are released explicitly, one gate per call."""

    def __init__(self) -> None:
        self.gates: list[asyncio.Event] = []
        self.responses: list[Any] = []
        self.started = asyncio.Event()

    async def _wait(self, response: Any) -> Any:
        gate = asyncio.Event()
        self.gates.append(gate)
        self.responses.append(response)
        self.started.set()
        await gate.wait()
        return response

    async def get(self, path: str, params: Mapping[str, str] | None = None) -> Any:
        return await self._wait({"rows": []})

    async def post(self, path: str, body: Mapping[str, Any]) -> Any:
        return await self._wait({"id": 7, **body})

    async def patch(self, path: str, body: Mapping[str, Any]) -> Any:
        record_id = _parse_id(path.rpartition("/")[2])
        return await self._wait({"id": record_id, **body})

    async def delete(self, path: str) -> Any:
        return await self._wait(None)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def context(backend: FakeBackend) -> SliceContext:
    return SliceContext(backend)
