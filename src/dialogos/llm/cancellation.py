"""Cooperative cancellation for in-flight streams."""

import asyncio

from ..errors import CancellationError


class CancelToken:
    """Signal checked by stream consumers and producers.

    Cancellation is cooperative: setting the token never preempts a
    running coroutine, it only tells loops that observe it to stop.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        """Request cancellation. Idempotent."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        """Block until cancellation is requested."""
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CancellationError("Stream cancelled")
