"""
Cooperative Cancellation

A single signal shared by every request of one logical operation (for
example all uploads of a batch). Triggering it fails requests that have not
started and aborts the ones still waiting on the provider.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from bucketline.core.errors import OperationCancelledError

T = TypeVar("T")


class CancellationToken:
    """
    Batch-wide cancellation signal backed by an ``asyncio.Event``.

    Usage:
        token = CancellationToken()
        task = asyncio.create_task(client.add_batch("media", items, cancel_token=token))
        ...
        token.cancel()
        outcomes = await task   # every item still yields an outcome
    """

    __slots__ = ("_event", "_reason")

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: Optional[str] = None

    def cancel(self, reason: Optional[str] = None) -> None:
        """Trigger the signal. Idempotent; the first reason wins."""
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    async def wait(self) -> None:
        """Block until the signal fires."""
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError(self._reason or "cancelled")

    def __repr__(self) -> str:
        state = "cancelled" if self.is_cancelled else "active"
        return f"CancellationToken({state})"


async def run_cancellable(
    call: Callable[[], Awaitable[T]],
    token: Optional[CancellationToken],
) -> T:
    """
    Await ``call()`` unless ``token`` fires first.

    The request is not started at all if the token has already fired. If
    the token fires while the request is in flight, the request task is
    cancelled and awaited so the transport can release its connection. A
    request that finishes in the same step as the token keeps its result.

    Raises:
        OperationCancelledError: The token fired before the request finished.
    """
    if token is None:
        return await call()

    token.raise_if_cancelled()

    request = asyncio.ensure_future(call())
    watcher = asyncio.ensure_future(token.wait())
    try:
        await asyncio.wait({request, watcher}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        request.cancel()
        watcher.cancel()
        # Let the transport release its connection before propagating
        await asyncio.wait({request, watcher})
        raise

    watcher.cancel()
    if request.done():
        return request.result()

    request.cancel()
    await asyncio.wait({request})
    if not request.cancelled() and request.exception() is None:
        # Finished while being cancelled
        return request.result()
    token.raise_if_cancelled()
    raise OperationCancelledError("cancelled")
