import asyncio
import traceback
from typing import Awaitable, Callable, Optional

from loan_pipeline import config
from loan_pipeline.utils import get_logger

logger = get_logger(__name__)


class Backoff:
    """Delay between poll cycles: short after a normal cycle, longer after a failed one."""

    def __init__(self, poll_interval: float = None, error_delay: float = None):
        self.poll_interval = config.POLL_INTERVAL_SECONDS if poll_interval is None else poll_interval
        self.error_delay = config.ERROR_BACKOFF_SECONDS if error_delay is None else error_delay

    def delay(self, failed: bool) -> float:
        return self.error_delay if failed else self.poll_interval


class PollingTask:
    """Runs ``poll`` repeatedly until stopped.

    An exception from ``poll`` is logged and followed by the error delay;
    it never ends the loop. ``stop()`` takes effect between cycles, so a
    batch that is being processed always runs to completion.

    ``sleep`` replaces the default stop-aware wait, which lets tests drive
    cycles without real delays.
    """

    def __init__(
        self,
        name: str,
        poll: Callable[[], Awaitable[object]],
        backoff: Optional[Backoff] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        self.name = name
        self.poll = poll
        self.backoff = backoff or Backoff()
        self._sleep = sleep
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self.cycles = 0
        self.failures = 0

    @property
    def stopping(self) -> bool:
        return self._stop_event.is_set()

    async def run_once(self) -> float:
        """Run one poll cycle and return the delay before the next one."""
        self.cycles += 1
        try:
            await self.poll()
        except Exception as e:
            self.failures += 1
            logger.error(f"{self.name} poll error: {e}")
            logger.error(f"Traceback:\n{traceback.format_exc()}")
            return self.backoff.delay(failed=True)
        return self.backoff.delay(failed=False)

    async def run(self) -> None:
        logger.info(f"🚀 Starting {self.name}")
        while not self.stopping:
            delay = await self.run_once()
            if self.stopping:
                break
            await self._pause(delay)
        logger.info(f"✓ {self.name} stopped after {self.cycles} cycle(s)")

    async def _pause(self, delay: float) -> None:
        if self._sleep is not None:
            await self._sleep(delay)
            return
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    def start(self) -> asyncio.Task:
        self._task = asyncio.create_task(self.run(), name=self.name)
        return self._task

    def stop(self) -> None:
        if not self.stopping:
            logger.info(f"🛑 Stopping {self.name}, finishing in-flight batch...")
        self._stop_event.set()

    async def wait(self) -> None:
        if self._task is not None:
            await self._task
