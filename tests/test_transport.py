from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiohttp
import pytest
from aiohttp import test_utils, web

from pyslices._transport import HttpTransport
from pyslices.config import ClientConfig
from pyslices.exceptions import TransportFailure


async def _list_tags(request: web.Request) -> web.Response:
    return web.json_response(
        {
            "rows": [{"id": 1, "name": "a"}],
            "query": dict(request.query),
            "headers": {"x-team": request.headers.get("x-team"), "accept": request.headers.get("accept")},
        }
    )


async def _create_tag(request: web.Request) -> web.Response:
    body = await request.json()
    return web.json_response({"data": {"id": 7, **body}}, status=201)


async def _patch_tag(request: web.Request) -> web.Response:
    if request.match_info["tag_id"] == "404":
        return web.json_response({"message": "Tag not found"}, status=404)
    body = await request.json()
    return web.json_response({"id": int(request.match_info["tag_id"]), **body})


async def _delete_tag(request: web.Request) -> web.Response:
    return web.Response(status=204)


async def _broken(request: web.Request) -> web.Response:
    return web.Response(text="<html>not json</html>", content_type="text/html")


async def _boom(request: web.Request) -> web.Response:
    return web.Response(status=500, text="upstream exploded")


async def _bad_bytes(request: web.Request) -> web.Response:
    return web.Response(body=b'{"id": 1, "name": "\xff\xfe"}', content_type="application/json")


def _app() -> web.Application:
    app = web.Application()
    app.router.add_get("/task-tags", _list_tags)
    app.router.add_post("/task-tags", _create_tag)
    app.router.add_patch("/task-tags/{tag_id}", _patch_tag)
    app.router.add_delete("/task-tags/{tag_id}", _delete_tag)
    app.router.add_get("/broken", _broken)
    app.router.add_get("/boom", _boom)
    app.router.add_get("/bad-bytes", _bad_bytes)
    return app


@asynccontextmanager
async def _transport(**config_kwargs: object) -> AsyncIterator[HttpTransport]:
    server = test_utils.TestServer(_app())
    await server.start_server()
    try:
        config = ClientConfig(base_url=f"http://{server.host}:{server.port}/", **config_kwargs)  # type: ignore[arg-type]
        async with aiohttp.ClientSession() as session:
            yield HttpTransport(config, session)
    finally:
        await server.close()


@pytest.mark.asyncio
async def test_get_sends_params_and_headers() -> None:
    async with _transport(headers={"x-team": "ops"}) as transport:
        body = await transport.get("/task-tags", {"task_id": "20"})

    assert body["rows"] == [{"id": 1, "name": "a"}]
    assert body["query"] == {"task_id": "20"}
    assert body["headers"] == {"x-team": "ops", "accept": "application/json"}


@pytest.mark.asyncio
async def test_post_and_patch_send_json_body() -> None:
    async with _transport() as transport:
        created = await transport.post("/task-tags", {"name": "urgent"})
        patched = await transport.patch("/task-tags/7", {"name": "later"})

    assert created == {"data": {"id": 7, "name": "urgent"}}
    assert patched == {"id": 7, "name": "later"}


@pytest.mark.asyncio
async def test_empty_body_decodes_to_none() -> None:
    async with _transport() as transport:
        assert await transport.delete("/task-tags/7") is None


@pytest.mark.asyncio
async def test_error_status_uses_server_message() -> None:
    async with _transport() as transport:
        with pytest.raises(TransportFailure) as exc_info:
            await transport.patch("/task-tags/404", {"name": "x"})

    err = exc_info.value
    assert err.status_code == 404
    assert err.method == "PATCH"
    assert err.endpoint == "/task-tags/404"
    assert "Tag not found" in str(err)


@pytest.mark.asyncio
async def test_error_status_with_plain_text_body() -> None:
    async with _transport() as transport:
        with pytest.raises(TransportFailure) as exc_info:
            await transport.get("/boom")

    assert exc_info.value.status_code == 500
    assert "upstream exploded" in str(exc_info.value)


@pytest.mark.asyncio
async def test_invalid_json_is_transport_failure() -> None:
    async with _transport() as transport:
        with pytest.raises(TransportFailure, match="Invalid JSON"):
            await transport.get("/broken")


@pytest.mark.asyncio
async def test_undecodable_body_is_transport_failure() -> None:
    async with _transport() as transport:
        with pytest.raises(TransportFailure) as exc_info:
            await transport.get("/bad-bytes")

    assert exc_info.value.status_code == 200
    assert exc_info.value.endpoint == "/bad-bytes"
    assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)


@pytest.mark.asyncio
async def test_connection_error_is_transport_failure() -> None:
    server = test_utils.TestServer(_app())
    await server.start_server()
    base_url = f"http://{server.host}:{server.port}"
    await server.close()

    async with aiohttp.ClientSession() as session:
        transport = HttpTransport(ClientConfig(base_url=base_url), session)
        with pytest.raises(TransportFailure) as exc_info:
            await transport.get("/task-tags")

    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_api_trace_logs_redacted_bodies(caplog: pytest.LogCaptureFixture) -> None:
    async with _transport(api_trace_enabled=True) as transport:
        with caplog.at_level(logging.DEBUG, logger="pyslices._transport"):
            await transport.post("/task-tags", {"name": "ci", "api_key": "sk_live_123"})

    assert "<redacted>" in caplog.text
    assert "sk_live_123" not in caplog.text
