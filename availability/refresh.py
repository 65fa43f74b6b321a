"""
Appointment Snapshot Refresher

Keeps the existing-appointment snapshot the slot generator reads from fresh.
The snapshot is refetched:
- on start
- when the view becomes visible again
- every `poll_interval` seconds while visible
- `settle_delay` seconds after a booking completed elsewhere

Each fetch carries a token. Starting a fetch cancels the one in flight, and
a result is only applied when its token is still the latest dispatched, so an
older response can never overwrite a newer one.
"""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, List, Optional

import config
from availability.errors import DataFetchFailure
from schemas import Appointment

logger = logging.getLogger(__name__)


class SystemClock:
    def now(self) -> datetime:
        return datetime.now()


class SnapshotRefresher:

    def __init__(
        self,
        fetch: Callable[[], Awaitable[List[Appointment]]],
        clock=None,
        poll_interval: Optional[float] = None,
        settle_delay: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self._fetch = fetch
        self._clock = clock or SystemClock()
        self._sleep = sleep
        self.poll_interval = config.SNAPSHOT_POLL_SECONDS if poll_interval is None else poll_interval
        self.settle_delay = config.BOOKING_SETTLE_SECONDS if settle_delay is None else settle_delay

        self.snapshot: List[Appointment] = []
        self.error: Optional[DataFetchFailure] = None
        self.last_refreshed_at: Optional[datetime] = None
        self.visible = True

        self._running = False
        self._token = 0
        self._inflight: Optional[asyncio.Task] = None
        self._poller: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._start_polling()
        try:
            await self.refresh()
        except DataFetchFailure:
            logger.info("Initial appointment fetch failed, will retry on next poll")

    async def stop(self) -> None:
        self._running = False
        tasks = [t for t in (self._poller, self._inflight) if t is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._poller = None
        self._inflight = None

    async def set_visible(self, visible: bool) -> None:
        if visible == self.visible:
            return
        self.visible = visible
        if not self._running:
            return

        if visible:
            self._start_polling()
            await self.refresh()
        else:
            self._stop_polling()

    async def booking_completed(self) -> None:
        """Refetch once the backing store had time to settle after a booking."""
        await self._sleep(self.settle_delay)
        await self.refresh()

    async def refresh(self) -> bool:
        """
        Fetch a new snapshot.

        Returns:
            True when the result was applied, False when a newer fetch
            superseded this one.

        Raises:
            DataFetchFailure: the fetch failed; the previous snapshot is kept
                and the failure is also stored in `error`.
        """
        self._token += 1
        token = self._token

        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()

        task = asyncio.ensure_future(self._fetch())
        self._inflight = task

        try:
            appointments = await task
        except asyncio.CancelledError:
            if token != self._token:
                return False
            raise
        except DataFetchFailure as e:
            return self._fail(token, e)
        except Exception as e:
            return self._fail(token, DataFetchFailure(f"Could not load appointments: {e}"))

        if token != self._token:
            return False

        self.snapshot = list(appointments)
        self.error = None
        self.last_refreshed_at = self._clock.now()
        logger.debug("Appointment snapshot refreshed: %d appointments", len(self.snapshot))
        return True

    def _fail(self, token: int, error: DataFetchFailure) -> bool:
        if token != self._token:
            return False
        self.error = error
        logger.warning("Appointment snapshot refresh failed: %s", error)
        raise error

    def _start_polling(self) -> None:
        if self._poller is None or self._poller.done():
            self._poller = asyncio.ensure_future(self._poll())

    def _stop_polling(self) -> None:
        if self._poller is not None:
            self._poller.cancel()
            self._poller = None

    async def _poll(self) -> None:
        while self._running and self.visible:
            await self._sleep(self.poll_interval)
            try:
                await self.refresh()
            except DataFetchFailure:
                logger.info("Polling refresh failed, keeping previous snapshot")
