#!/usr/bin/env python3
# Liveness listener
import asyncio
import logging
from aiohttp import web

logger = logging.getLogger(__name__)

HEALTH_PORT = 8080


async def handle_health(request):
    return web.Response(text="Healthy")


def create_app():
    """
    Build the health application: any method on any path answers 200 "Healthy".
    """
    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", handle_health)
    return app


async def start_health_responder(port=HEALTH_PORT, host="0.0.0.0"):
    """
    Bind the health listener and start serving.

    :param port: The TCP port to listen on.
    :param host: The interface to bind.
    :return: The started AppRunner; call cleanup() on it to stop serving.
    """
    runner = web.AppRunner(create_app(), access_log=None)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    try:
        await site.start()
    except Exception:
        await runner.cleanup()
        raise
    logger.info(f"Health responder listening on {host}:{port}")
    return runner


async def run_health_responder(port=HEALTH_PORT):
    """
    Start the health listener and keep it alive for the process lifetime.
    Bind or serve failures are logged; they never stop the polling loop.
    """
    runner = None
    try:
        runner = await start_health_responder(port)
        await asyncio.Event().wait()
    except Exception as e:
        logger.error(f"Health responder failed on port {port}: {e!r}")
    finally:
        if runner:
            await runner.cleanup()
