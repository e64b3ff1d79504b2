# File: tests/test_debounce.py
import asyncio

from markets.debounce import Debouncer

WAIT = 0.05


def test_burst_collapses_to_last_call():
    calls = []

    async def scenario():
        d = Debouncer(WAIT)
        d.schedule(calls.append, "a")
        await asyncio.sleep(WAIT / 5)
        d.schedule(calls.append, "ab")
        await asyncio.sleep(WAIT / 5)
        d.schedule(calls.append, "abc")
        assert d.pending
        await asyncio.sleep(WAIT * 4)
        assert not d.pending

    asyncio.run(scenario())
    assert calls == ["abc"]


def test_calls_spaced_beyond_interval_each_fire():
    calls = []

    async def scenario():
        d = Debouncer(WAIT)
        d.schedule(calls.append, 1)
        await asyncio.sleep(WAIT * 3)
        d.schedule(calls.append, 2)
        await asyncio.sleep(WAIT * 3)

    asyncio.run(scenario())
    assert calls == [1, 2]


def test_coroutine_trigger_runs_and_cancel_discards():
    seen = []

    async def trigger(value):
        await asyncio.sleep(0)
        seen.append(value)

    async def scenario():
        d = Debouncer(WAIT)
        d.schedule(trigger, "kept")
        await asyncio.sleep(WAIT * 3)
        d.schedule(trigger, "dropped")
        d.cancel()
        await asyncio.sleep(WAIT * 3)

    asyncio.run(scenario())
    assert seen == ["kept"]


def test_flush_fires_pending_immediately():
    seen = []

    async def trigger(value):
        seen.append(value)

    async def scenario():
        d = Debouncer(10.0)
        d.schedule(trigger, "now")
        await d.flush()
        assert not d.pending

    asyncio.run(scenario())
    assert seen == ["now"]
