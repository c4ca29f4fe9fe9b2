from __future__ import annotations

import asyncio

import pytest

from chatbridge.chat.concurrency import settle_all


async def _value(value, delay: float = 0.0):
    await asyncio.sleep(delay)
    return value


async def _boom(message: str, delay: float = 0.0):
    await asyncio.sleep(delay)
    raise RuntimeError(message)


@pytest.mark.asyncio
async def test_settle_all_reports_outcomes_in_input_order():
    outcomes = await settle_all(
        [_value("slow", 0.03), _boom("broken"), _value("fast")]
    )

    assert [outcome.ok for outcome in outcomes] == [True, False, True]
    assert outcomes[0].value == "slow"
    assert outcomes[2].value == "fast"
    assert isinstance(outcomes[1].error, RuntimeError)
    assert str(outcomes[1].error) == "broken"


@pytest.mark.asyncio
async def test_settle_all_lets_other_branches_finish_after_a_failure():
    finished: list[str] = []

    async def _record(name: str) -> str:
        await asyncio.sleep(0.02)
        finished.append(name)
        return name

    outcomes = await settle_all([_boom("early"), _record("a"), _record("b")])

    assert sorted(finished) == ["a", "b"]
    assert [outcome.value for outcome in outcomes[1:]] == ["a", "b"]


@pytest.mark.asyncio
async def test_settle_all_runs_branches_concurrently():
    loop = asyncio.get_running_loop()
    started = loop.time()

    await settle_all([_value(index, 0.05) for index in range(5)])

    assert loop.time() - started < 0.2


@pytest.mark.asyncio
async def test_settle_all_accepts_generators_and_empty_input():
    assert await settle_all([]) == []
    outcomes = await settle_all(_value(index) for index in range(3))
    assert [outcome.value for outcome in outcomes] == [0, 1, 2]


@pytest.mark.asyncio
async def test_cancelled_branch_is_recorded_as_error():
    async def _cancelled():
        raise asyncio.CancelledError()

    outcomes = await settle_all([_cancelled(), _value("ok")])

    assert isinstance(outcomes[0].error, asyncio.CancelledError)
    assert outcomes[1].value == "ok"
