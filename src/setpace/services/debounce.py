"""Debounced background writes."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from ..config import DEFAULT_SAVE_DEBOUNCE_SECONDS

logger = logging.getLogger(__name__)


class DebouncedWriter:
    """Coalesces bursts of ``schedule()`` calls into a single write.

    ``write`` is called with no arguments when the timer fires, so it reads
    whatever state is current at that moment rather than the state at the
    time the write was scheduled. Failures are logged and swallowed.
    """

    def __init__(
        self,
        write: Callable[[], Awaitable[None]],
        delay: float = DEFAULT_SAVE_DEBOUNCE_SECONDS,
    ):
        self._write = write
        self.delay = delay
        self._handle: asyncio.TimerHandle | None = None
        self._task: asyncio.Task | None = None

    @property
    def pending(self) -> bool:
        """True while a write is scheduled but has not fired."""
        return self._handle is not None

    def schedule(self) -> None:
        """(Re)start the debounce timer."""
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        """Drop any scheduled write."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self._task = asyncio.create_task(self._run())

    async def _run(self) -> None:
        try:
            await self._write()
        except Exception:
            logger.exception("Background session write failed")

    async def flush(self) -> None:
        """Write now, superseding any scheduled write.

        An in-flight write is awaited first so it cannot land after (and
        overwrite) the fresher values written here.
        """
        self.cancel()
        if self._task is not None and not self._task.done():
            await self._task
        self._task = None
        await self._run()

    async def wait(self) -> None:
        """Wait for a write that has already fired."""
        if self._task is not None and not self._task.done():
            await self._task
