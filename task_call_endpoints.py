#!/usr/bin/env python3
# Task: Call endpoints
import aiohttp
import asyncio
import logging
import time

logger = logging.getLogger(__name__)

# No overall or connect deadline: a hung endpoint holds its round open.
NO_TIMEOUT = aiohttp.ClientTimeout(total=None, sock_connect=None)


def _outcome(url, status=None, size=None, duration=None, error=None):
    return {"url": url, "status": status, "size": size, "duration": duration, "error": error}


async def call_endpoint(session, url):
    """
    Issue a GET to a single endpoint and log the outcome.

    :param session: The aiohttp ClientSession shared by the round.
    :param url: The normalized endpoint URL.
    :return: The call outcome dict (url, status, size, duration, error).
    """
    logger.info(f"Calling endpoint: {url}")
    start = time.monotonic()
    try:
        async with session.get(url) as response:
            duration = time.monotonic() - start
            try:
                body = await response.read()
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.error(f"Error reading response from {url}: {e!r}")
                return _outcome(url, error=f"read failed: {e!r}")
            status = f"{response.status} {response.reason}"
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        logger.error(f"Error calling {url}: {e!r}")
        return _outcome(url, error=f"request failed: {e!r}")

    logger.info(f"Response from {url} - Status: {status}, Body size: {len(body)} Bytes, Duration: {duration:.3f}s")
    return _outcome(url, status=status, size=len(body), duration=duration)


async def run_call(session, url):
    """
    Run one endpoint call, turning any unexpected exception into an error outcome.
    """
    try:
        return await call_endpoint(session, url)
    except Exception as e:
        logger.error(f"An unexpected error occurred while calling {url}: {e!r}")
        return _outcome(url, error=f"unexpected: {e!r}")


async def run_round(endpoints):
    """
    Call every endpoint concurrently and wait until all of them have finished.

    :param endpoints: The configured endpoint URLs.
    :return: One outcome per endpoint, in configured order.
    """
    async with aiohttp.ClientSession(timeout=NO_TIMEOUT) as session:
        tasks = [run_call(session, url) for url in endpoints]
        return await asyncio.gather(*tasks)
