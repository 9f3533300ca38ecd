from __future__ import annotations

import asyncio
import logging
import os

import httpx

from .constants import DEFAULT_SCHEDULE_INTERVAL_SECONDS, DEFAULT_SCHEDULE_URL
from .env import get_env_int, load_env, setup_logging

LOGGER = logging.getLogger("xbot.scheduler")


async def trigger_once(
    url: str,
    *,
    token: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> httpx.Response:
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    own_client = client is None
    http_client = client or httpx.AsyncClient(timeout=120)
    try:
        return await http_client.post(url, headers=headers)
    finally:
        if own_client:
            await http_client.aclose()


async def run_schedule(
    url: str,
    interval_seconds: int,
    *,
    token: str | None = None,
    iterations: int | None = None,
    trigger=trigger_once,
    sleep=asyncio.sleep,
) -> None:
    """Call the bot's own trigger route every ``interval_seconds``.

    A failed tick is logged and the loop moves on to the next one. With
    ``iterations`` set the loop stops after that many ticks.
    """
    tick = 0
    while iterations is None or tick < iterations:
        tick += 1
        try:
            response = await trigger(url, token=token)
        except httpx.HTTPError as error:
            LOGGER.warning("Scheduled trigger %s failed: %r", url, error)
        else:
            if response.status_code >= 400:
                LOGGER.warning(
                    "Scheduled trigger %s -> %s: %s", url, response.status_code, response.text
                )
            else:
                LOGGER.info("Scheduled trigger %s -> %s", url, response.status_code)

        if iterations is None or tick < iterations:
            await sleep(interval_seconds)


def main() -> None:
    load_env()
    setup_logging()
    url = os.getenv("XBOT_SCHEDULE_URL", DEFAULT_SCHEDULE_URL)
    interval = get_env_int("XBOT_SCHEDULE_INTERVAL", DEFAULT_SCHEDULE_INTERVAL_SECONDS)
    if interval <= 0:
        raise RuntimeError("XBOT_SCHEDULE_INTERVAL must be a positive number of seconds.")
    token = os.getenv("XBOT_TRIGGER_TOKEN", "").strip() or None
    LOGGER.info("Triggering %s every %ss", url, interval)
    asyncio.run(run_schedule(url, interval, token=token))


if __name__ == "__main__":
    main()
