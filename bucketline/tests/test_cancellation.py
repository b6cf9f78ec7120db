"""
Unit Tests: Cooperative Cancellation

Tests:
    - CancellationToken state
    - run_cancellable before, during and after the request
"""

import asyncio

import pytest

from bucketline.core.cancellation import CancellationToken, run_cancellable
from bucketline.core.errors import OperationCancelledError


class TestCancellationToken:

    def test_initial_state(self):
        token = CancellationToken()
        assert not token.is_cancelled
        assert token.reason is None
        token.raise_if_cancelled()

    def test_cancel_is_idempotent(self):
        token = CancellationToken()
        token.cancel("shutdown")
        token.cancel("second")
        assert token.is_cancelled
        assert token.reason == "shutdown"
        with pytest.raises(OperationCancelledError, match="shutdown"):
            token.raise_if_cancelled()


class TestRunCancellable:

    def test_without_token(self):
        async def call():
            return 42

        assert asyncio.run(run_cancellable(call, None)) == 42

    def test_completes_before_cancel(self):
        async def scenario():
            token = CancellationToken()

            async def call():
                return "done"

            return await run_cancellable(call, token)

        assert asyncio.run(scenario()) == "done"

    def test_already_cancelled_never_calls(self):
        calls = []

        async def call():
            calls.append(1)

        async def scenario():
            token = CancellationToken()
            token.cancel()
            await run_cancellable(call, token)

        with pytest.raises(OperationCancelledError):
            asyncio.run(scenario())
        assert calls == []

    def test_cancel_mid_flight_aborts_request(self):
        aborted = []

        async def scenario():
            token = CancellationToken()
            started = asyncio.Event()

            async def call():
                started.set()
                try:
                    await asyncio.sleep(10)
                except asyncio.CancelledError:
                    aborted.append(True)
                    raise

            async def trigger():
                await started.wait()
                token.cancel()

            asyncio.ensure_future(trigger())
            await run_cancellable(call, token)

        with pytest.raises(OperationCancelledError):
            asyncio.run(scenario())
        assert aborted == [True]

    def test_request_errors_propagate(self):
        async def scenario():
            async def call():
                raise ConnectionError("reset")

            await run_cancellable(call, CancellationToken())

        with pytest.raises(ConnectionError):
            asyncio.run(scenario())

    def test_task_cancellation_waits_for_request_cleanup(self):
        cleaned = []

        async def scenario():
            token = CancellationToken()
            started = asyncio.Event()

            async def call():
                started.set()
                try:
                    await asyncio.sleep(10)
                finally:
                    # Cleanup spans a suspension point, like closing a connection
                    await asyncio.sleep(0)
                    cleaned.append(True)

            task = asyncio.ensure_future(run_cancellable(call, token))
            await started.wait()
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                return list(cleaned)
            return None

        assert asyncio.run(scenario()) == [True]
        assert cleaned == [True]
