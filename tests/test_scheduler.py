import asyncio

import pytest

from aitrader.utils.scheduler import start_interval


def test_ticks_repeat_until_cancelled():
    calls = []

    async def tick():
        calls.append(1)

    async def scenario():
        handle = start_interval(tick, 0.01)
        await asyncio.sleep(0.08)
        handle.cancel()
        await handle.wait()
        seen = len(calls)
        await asyncio.sleep(0.03)
        return handle, seen

    handle, seen = asyncio.run(scenario())
    assert handle.cancelled
    assert seen >= 3
    assert len(calls) == seen


def test_run_now_fires_without_waiting():
    calls = []

    async def tick():
        calls.append(1)

    async def scenario():
        handle = start_interval(tick, 10.0, run_now=True)
        await asyncio.sleep(0.01)
        handle.cancel()
        await handle.wait()

    asyncio.run(scenario())
    assert calls == [1]


def test_failing_tick_keeps_schedule_alive():
    calls = []

    async def tick():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("boom")

    async def scenario():
        handle = start_interval(tick, 0.01)
        await asyncio.sleep(0.06)
        handle.cancel()
        await handle.wait()

    asyncio.run(scenario())
    assert len(calls) >= 2


def test_ticks_never_overlap():
    active = []
    peak = []

    async def tick():
        active.append(1)
        peak.append(len(active))
        await asyncio.sleep(0.02)
        active.pop()

    async def scenario():
        handle = start_interval(tick, 0.001)
        await asyncio.sleep(0.1)
        handle.cancel()
        await handle.wait()

    asyncio.run(scenario())
    assert peak and max(peak) == 1


def test_cancel_lets_running_tick_finish():
    finished = []

    async def tick():
        await asyncio.sleep(0.03)
        finished.append(1)

    async def scenario():
        handle = start_interval(tick, 0.001)
        await asyncio.sleep(0.01)        # first tick is mid-flight
        handle.cancel()
        await handle.wait()

    asyncio.run(scenario())
    assert finished == [1]


def test_cancelling_a_waiter_leaves_ticker_running():
    calls = []

    async def tick():
        calls.append(1)

    async def scenario():
        handle = start_interval(tick, 0.01)
        waiter = asyncio.create_task(handle.wait())
        await asyncio.sleep(0.02)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter
        still_running = not handle._task.done()
        seen = len(calls)
        await asyncio.sleep(0.03)
        handle.cancel()
        await handle.wait()
        return still_running, seen

    still_running, seen = asyncio.run(scenario())
    assert still_running
    assert len(calls) > seen
