import asyncio
import logging
import time
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL = 5.0


class ExpirySweeper:
    """Recurring task removing sessions idle for ``timeout`` seconds or longer."""

    def __init__(
        self,
        store,
        timeout: Optional[float],
        interval: float = DEFAULT_SWEEP_INTERVAL,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the sweeper.

        Args:
            store: SessionStore whose sessions are swept
            timeout: Idle seconds after which a session expires (None disables)
            interval: Seconds between two passes
            clock: Source of the current time in seconds
        """
        if interval <= 0:
            raise ValueError(f"Sweep interval must be positive, got {interval}")

        self.store = store
        self.timeout = timeout if timeout and timeout > 0 else None
        self.interval = interval
        self.clock = clock
        self._task: Optional[asyncio.Task] = None

    @property
    def enabled(self) -> bool:
        return self.timeout is not None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep(self, now: Optional[float] = None) -> List[str]:
        """
        Run a single pass.

        Args:
            now: Time of the pass in seconds (defaults to the clock)

        Returns:
            Identifiers of the sessions that were removed

        Only sessions idle for strictly less than ``timeout`` are kept.
        """
        if not self.enabled:
            return []

        if now is None:
            now = self.clock()

        removed = self.store.remove_where(lambda session: session.idle_seconds(now) >= self.timeout)

        if removed:
            logger.info(f"Expired {len(removed)} idle session(s), {len(self.store)} remaining")
        return [session.id for session in removed]

    def start(self) -> None:
        """Schedule the recurring pass on the running event loop."""
        if not self.enabled:
            logger.debug("Session timeout disabled, sweeper not started")
            return

        if not self.running:
            self._task = asyncio.create_task(self._run())
            logger.info(f"Session sweeper started (timeout={self.timeout}s, every {self.interval}s)")

    async def stop(self) -> None:
        """Cancel the recurring pass and wait for it to finish."""
        task, self._task = self._task, None
        if task is None or task.done():
            return

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Session sweeper stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self.sweep()
            except Exception:
                logger.exception("Session sweep failed, rescheduling")
