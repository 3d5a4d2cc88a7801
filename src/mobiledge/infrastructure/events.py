"""Bounded, non-blocking event channel with a background writer."""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EventChannel(Generic[T]):
    """Fire-and-forget channel between request handlers and a writer.

    emit() never blocks and never raises: when the queue is full the
    event is dropped and a warning is logged. A single background task
    hands each event to the writer; writer failures are logged and the
    event is dropped, never retried.

    Example:
        channel = EventChannel(write_click, maxsize=1000, name="clicks")
        channel.start()
        channel.emit(event)
        ...
        await channel.aclose()
    """

    def __init__(
        self,
        writer: Callable[[T], Awaitable[None]],
        maxsize: int = 1000,
        name: str = "events",
    ) -> None:
        """Initialize the channel.

        Args:
            writer: Coroutine function persisting one event.
            maxsize: Queue capacity; further events are dropped.
            name: Label used in log messages.
        """
        self._writer = writer
        self._queue: asyncio.Queue[T] = asyncio.Queue(maxsize=maxsize)
        self._name = name
        self._task: asyncio.Task[None] | None = None
        self._dropped = 0
        self._failed = 0

    @property
    def dropped(self) -> int:
        """Number of events dropped because the queue was full."""
        return self._dropped

    @property
    def failed(self) -> int:
        """Number of events whose write raised."""
        return self._failed

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the background writer on the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._consume(), name=f"mobiledge-{self._name}-writer"
        )

    def emit(self, event: T) -> bool:
        """Enqueue an event without waiting.

        Returns:
            True if queued, False if dropped.
        """
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self._dropped += 1
            logger.warning("%s channel full, dropping event", self._name)
            return False
        return True

    async def join(self) -> None:
        """Wait until every queued event has been handled."""
        await self._queue.join()

    async def aclose(self) -> None:
        """Drain queued events, then stop the writer."""
        if self._task is None:
            return
        await self._queue.join()
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def _consume(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self._writer(event)
            except Exception:
                self._failed += 1
                logger.exception("%s writer failed, dropping event", self._name)
            finally:
                self._queue.task_done()

    async def __aenter__(self) -> "EventChannel[T]":
        self.start()
        return self

    async def __aexit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        await self.aclose()
