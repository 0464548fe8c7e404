"""Cancellable periodic poll loop shared by the sync engines."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

from helpdesk_sync.utils.logging_config import get_logger

logger = get_logger(__name__)

Tick = Callable[[], Awaitable[None]]


class PollHandle:
    """
    Runs ``tick`` every ``interval_seconds`` on the current event loop.

    The handle is the only owner of the timer: ``close()`` (or leaving the
    ``async with`` block) cancels it, and a closed handle cannot be restarted.
    Ticks run back to back, never overlapping, so a slow backend stretches the
    period instead of piling up requests.
    """

    def __init__(
        self,
        name: str,
        tick: Tick,
        interval_seconds: float,
        run_immediately: bool = True,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.name = name
        self.interval_seconds = interval_seconds
        self._tick = tick
        self._run_immediately = run_immediately
        self._task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def active(self) -> bool:
        """True while the loop is scheduled and not yet closed."""
        return self._task is not None and not self._closed

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> "PollHandle":
        """Schedule the loop; calling start twice is a no-op."""
        if self._closed:
            raise RuntimeError(f"Poll handle {self.name} is already closed")
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(
                self._run(), name=f"poll:{self.name}"
            )
            logger.info(
                "Polling started",
                extra={"poll": self.name, "interval_seconds": self.interval_seconds},
            )
        return self

    def close(self) -> None:
        """Cancel the timer. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.info("Polling stopped", extra={"poll": self.name})

    async def aclose(self) -> None:
        """Cancel the timer and wait until the loop has unwound."""
        self.close()
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    async def __aenter__(self) -> "PollHandle":
        return self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def _run(self) -> None:
        if not self._run_immediately:
            await asyncio.sleep(self.interval_seconds)
        while not self._closed:
            try:
                await self._tick()
            except asyncio.CancelledError:
                raise
            except Exception:
                # Engines handle their own NetworkError; log anything else and
                # keep polling.
                logger.exception("Poll tick crashed", extra={"poll": self.name})
            await asyncio.sleep(self.interval_seconds)
