import httpx
import pytest

from xbot.scheduler import run_schedule, trigger_once


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: list[int] = []

    async def __call__(self, seconds: int) -> None:
        self.calls.append(seconds)


@pytest.mark.asyncio
async def test_trigger_once_posts_with_token(httpx_mock) -> None:
    httpx_mock.add_response(url="http://127.0.0.1:3000/tweet", method="POST", status_code=201)

    response = await trigger_once("http://127.0.0.1:3000/tweet", token="s3cret")

    assert response.status_code == 201
    assert httpx_mock.get_requests()[0].headers["authorization"] == "Bearer s3cret"


@pytest.mark.asyncio
async def test_run_schedule_ticks_and_sleeps_between() -> None:
    calls: list[tuple[str, str | None]] = []
    sleep = SleepRecorder()

    async def trigger(url, *, token=None):
        calls.append((url, token))
        return httpx.Response(201)

    await run_schedule(
        "http://bot/tweet", 60, token="t", iterations=3, trigger=trigger, sleep=sleep
    )

    assert calls == [("http://bot/tweet", "t")] * 3
    assert sleep.calls == [60, 60]


@pytest.mark.asyncio
async def test_run_schedule_survives_failed_tick() -> None:
    outcomes = [httpx.ConnectError("down"), httpx.Response(502), httpx.Response(201)]
    seen: list[str] = []

    async def trigger(url, *, token=None):
        seen.append(url)
        outcome = outcomes[len(seen) - 1]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    await run_schedule("http://bot/tweet", 1, iterations=3, trigger=trigger, sleep=SleepRecorder())

    assert len(seen) == 3
