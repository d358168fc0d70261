"""
Unit tests for core.batch.cancellation module.
"""

import asyncio

import pytest

from core.batch.cancellation import CancellationToken
from core.errors import TranslationCancelledError


class TestCancellationToken:
    """Tests for CancellationToken."""

    @pytest.mark.asyncio
    async def test_initial_state(self):
        token = CancellationToken()
        assert token.cancelled is False
        assert token.reason is None
        token.raise_if_cancelled()  # no-op

    @pytest.mark.asyncio
    async def test_cancel_sets_reason_once(self):
        token = CancellationToken()
        token.cancel("first")
        token.cancel("second")

        assert token.cancelled is True
        assert token.reason == "first"
        assert token.cancelled_at is not None

        with pytest.raises(TranslationCancelledError, match="first"):
            token.raise_if_cancelled()

    @pytest.mark.asyncio
    async def test_run_returns_result(self):
        token = CancellationToken()

        async def work():
            return "done"

        assert await token.run(work()) == "done"

    @pytest.mark.asyncio
    async def test_run_propagates_errors(self):
        token = CancellationToken()

        async def work():
            raise ValueError("bad")

        with pytest.raises(ValueError):
            await token.run(work())

    @pytest.mark.asyncio
    async def test_cancel_preempts_in_flight_call(self):
        token = CancellationToken()
        started = asyncio.Event()
        interrupted = []

        async def slow_call():
            started.set()
            try:
                await asyncio.sleep(30)
            except asyncio.CancelledError:
                interrupted.append(True)
                raise
            return "late"

        task = asyncio.create_task(token.run(slow_call()))
        await started.wait()
        token.cancel("stop")

        with pytest.raises(TranslationCancelledError):
            await asyncio.wait_for(task, timeout=1)
        assert interrupted == [True]

    @pytest.mark.asyncio
    async def test_run_on_cancelled_token_does_not_start_work(self):
        token = CancellationToken()
        token.cancel()
        calls = []

        async def work():
            calls.append(1)

        with pytest.raises(TranslationCancelledError):
            await token.run(work())
        assert calls == []

    @pytest.mark.asyncio
    async def test_sleep_wakes_on_cancel(self):
        token = CancellationToken()
        task = asyncio.create_task(token.sleep(30))
        await asyncio.sleep(0)
        token.cancel()

        with pytest.raises(TranslationCancelledError):
            await asyncio.wait_for(task, timeout=1)

    @pytest.mark.asyncio
    async def test_sleep_uses_injected_sleep(self):
        token = CancellationToken()
        delays = []

        async def fake_sleep(delay):
            delays.append(delay)

        await token.sleep(12.5, fake_sleep)
        assert delays == [12.5]
