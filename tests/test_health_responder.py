import asyncio
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from health_responder import HEALTH_PORT, run_health_responder, start_health_responder
from task_call_endpoints import run_round


def test_default_port():
    assert HEALTH_PORT == 8080


@pytest.mark.anyio
@pytest.mark.parametrize("method, path", [("GET", "/"), ("GET", "/healthz"), ("POST", "/any/nested/path"), ("DELETE", "/x")])
async def test_health_responds_to_any_request(method, path):
    runner = await start_health_responder(port=0, host="127.0.0.1")
    try:
        port = runner.addresses[0][1]
        async with aiohttp.ClientSession() as session:
            async with session.request(method, f"http://127.0.0.1:{port}{path}") as response:
                assert response.status == 200
                assert await response.text() == "Healthy"
    finally:
        await runner.cleanup()


@pytest.mark.anyio
async def test_bind_failure_is_logged(caplog):
    with patch("health_responder.start_health_responder", new_callable=AsyncMock, side_effect=OSError("address in use")):
        await run_health_responder(port=HEALTH_PORT)

    assert "Health responder failed on port 8080" in caplog.text


@pytest.mark.anyio
async def test_health_answers_while_round_is_in_flight():
    release = asyncio.Event()
    arrived = asyncio.Event()

    async def slow(request):
        arrived.set()
        await release.wait()
        return web.Response(text="late")

    app = web.Application()
    app.router.add_get("/slow", slow)

    runner = await start_health_responder(port=0, host="127.0.0.1")
    try:
        port = runner.addresses[0][1]
        async with TestServer(app) as server:
            round_task = asyncio.create_task(run_round([str(server.make_url("/slow"))]))
            await asyncio.wait_for(arrived.wait(), timeout=5)

            async with aiohttp.ClientSession() as session:
                async with session.get(f"http://127.0.0.1:{port}/") as response:
                    assert response.status == 200
                    assert await response.text() == "Healthy"
            assert not round_task.done()

            release.set()
            outcomes = await asyncio.wait_for(round_task, timeout=5)
    finally:
        await runner.cleanup()

    assert outcomes[0]["status"] == "200 OK"
