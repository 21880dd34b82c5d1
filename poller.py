#!/usr/bin/env python3
import os
import sys
import asyncio
import logging
import math
import random
import re
from dotenv import load_dotenv
from health_responder import run_health_responder
from task_call_endpoints import run_round

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 30
NANOSECONDS = 1_000_000_000


def load_interval():
    """
    Read INTERVAL_SECONDS as a positive integer, falling back to the default.

    :return: The polling interval in seconds.
    """
    raw = os.getenv('INTERVAL_SECONDS')
    error = None
    interval = 0
    if raw is None:
        error = "not set"
    elif not re.fullmatch(r"[+-]?[0-9]+", raw):
        error = f"not an integer: {raw!r}"
    else:
        interval = int(raw)
    if interval <= 0:
        logger.warning(f"Invalid or missing INTERVAL_SECONDS environment variable. Defaulting to {DEFAULT_INTERVAL_SECONDS} seconds. Error: {error}")
        interval = DEFAULT_INTERVAL_SECONDS
    return interval


def normalize_endpoint(endpoint):
    endpoint = endpoint.strip()
    # insert scheme if missing; https:// endpoints are kept as they are
    if not endpoint.startswith(("http://", "https://")):
        endpoint = "http://" + endpoint
    return endpoint


def load_endpoints():
    """
    Read ENDPOINTS as a comma-separated list and normalize each entry.

    :return: The list of endpoint URLs, or None if none are configured.
    """
    raw = os.getenv('ENDPOINTS')
    if raw is None:
        logger.error("no endpoints configured")
        logger.error("set the ENDPOINTS env var")
        return None

    endpoints = [normalize_endpoint(ep) for ep in raw.split(',') if ep.strip()]
    if not endpoints:
        logger.error(f"ENDPOINTS is set but contains no endpoints: {raw!r}")
        return None
    return endpoints


def next_sleep_duration(interval):
    """
    Pick a random wait in [0, interval) seconds, at nanosecond granularity.
    """
    duration = random.randrange(interval * NANOSECONDS) / NANOSECONDS
    # large intervals lose precision in the division and can round up to interval
    return min(duration, math.nextafter(interval, 0))


async def poll_forever(interval, endpoints, max_rounds=None):
    """
    Run polling rounds one after another.

    :param interval: Upper bound, in seconds, of the randomized wait between rounds.
    :param endpoints: The configured endpoint URLs.
    :param max_rounds: Stop after this many rounds; None runs forever.
    """
    rounds = 0
    while max_rounds is None or rounds < max_rounds:
        logger.info("--- Starting new round of API calls ---")
        outcomes = await run_round(endpoints)
        failed = sum(1 for outcome in outcomes if outcome["error"])
        logger.info(f"--- All API calls for this round completed ({len(outcomes) - failed} ok, {failed} failed) ---")
        rounds += 1

        current_interval = next_sleep_duration(interval)
        logger.info(f"--- Waiting for a randomized interval of {current_interval:.3f}s ---")
        await asyncio.sleep(current_interval)


def configure_logging():
    """
    Configure logging from LOG_LEVEL, falling back to INFO for unknown level names.
    """
    name = os.getenv('LOG_LEVEL', 'INFO').strip().upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        logging.basicConfig(level=logging.INFO)
        logger.warning(f"Invalid LOG_LEVEL environment variable {name!r}. Defaulting to INFO.")
        return
    logging.basicConfig(level=level)


async def run(interval, endpoints):
    """
    Start the health responder in the background and poll until the process is killed.
    """
    health_task = asyncio.create_task(run_health_responder())
    try:
        await poll_forever(interval, endpoints)
    finally:
        health_task.cancel()


def main():
    """
    Load configuration from the environment and run the poller.
    """
    # Load environment variables from .env file
    load_dotenv()
    configure_logging()

    interval = load_interval()
    endpoints = load_endpoints()
    if not endpoints:
        sys.exit(1)

    logger.info(f"Configured Interval: {interval}s")
    logger.info(f"Configured Endpoints: {endpoints}")

    try:
        asyncio.run(run(interval, endpoints))
    except KeyboardInterrupt:
        logger.info("Program interrupted by user, shutting down.")


if __name__ == "__main__":
    main()
