"""
Periodic TTL sweep and its wiring into the application lifespan.
"""

import asyncio

import pytest

from sitechat.main import create_app, lifespan
from sitechat.sessions.store import SessionStore
from sitechat.sessions.sweeper import run_sweeper


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


async def _wait_for(predicate, attempts=200):
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0.01)
    raise AssertionError("condition never became true")


@pytest.mark.asyncio
async def test_sweeper_removes_expired_sessions_until_cancelled():
    clock = FakeClock()
    store = SessionStore(ttl_seconds=60, clock=clock)
    expired = store.create("https://old.test/")
    clock.now += 61
    fresh = store.create("https://fresh.test/")

    task = asyncio.create_task(run_sweeper(store, 0.01))
    try:
        await _wait_for(lambda: store.get(expired.session_id) is None)
        assert store.get(fresh.session_id) is not None
        assert not task.done()
    finally:
        task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert task.cancelled()


@pytest.mark.asyncio
async def test_failed_sweep_is_logged_and_loop_keeps_running(caplog):
    class FlakyStore(SessionStore):
        def __init__(self):
            super().__init__(ttl_seconds=60)
            self.calls = 0

        def sweep(self, now=None):
            self.calls += 1
            if self.calls == 1:
                raise RuntimeError("clock went backwards")
            return super().sweep(now)

    store = FlakyStore()

    with caplog.at_level("ERROR", logger="sitechat.sweeper"):
        task = asyncio.create_task(run_sweeper(store, 0.01))
        try:
            await _wait_for(lambda: store.calls >= 2)
        finally:
            task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    assert "Session sweep failed" in caplog.text


@pytest.mark.asyncio
async def test_lifespan_starts_sweeper_and_cancels_it_on_shutdown():
    app = create_app()

    async with lifespan(app):
        sweeper = app.state.sweeper
        await asyncio.sleep(0)
        assert sweeper.get_name() == "session-sweeper"
        assert not sweeper.done()

    assert sweeper.cancelled()
