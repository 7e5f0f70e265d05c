"""
Fixed-period metric and alarm tick.

Each tick advances every device, swaps the store snapshot in one step and
only then evaluates alarm rules against the new values. Ticks are serialized
by a lock, so evaluation for one tick always completes before the next
update starts.
"""

from __future__ import annotations

import asyncio
import logging
import random
from datetime import datetime
from typing import Callable, List, Optional

from ..domain.models import HISTORY_CAPACITY, AlarmEvent
from .alarms import AlarmEngine
from .store import DeviceStore, advance_devices

logger = logging.getLogger(__name__)

DEFAULT_TICK_SECONDS = 5.0


class Ticker:
    """Drive the device store and alarm engine on a fixed period.

    Parameters
    ----------
    store : DeviceStore
        Snapshot the tick replaces.
    alarms : AlarmEngine
        Rules evaluated right after each update.
    interval_seconds : float
        Period between ticks.
    rng : random.Random, optional
        Source of the metric drift; inject a seeded one for reproducible runs.
    clock : callable, optional
        Returns the tick time used for sample timestamps.
    """

    def __init__(
        self,
        store: DeviceStore,
        alarms: AlarmEngine,
        interval_seconds: float = DEFAULT_TICK_SECONDS,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
        history_capacity: int = HISTORY_CAPACITY,
    ) -> None:
        self.store = store
        self.alarms = alarms
        self.interval_seconds = interval_seconds
        self.history_capacity = history_capacity
        self.ticks = 0
        self._rng = rng or random.Random()
        self._clock = clock or datetime.now
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick_once(self) -> List[AlarmEvent]:
        """Run one update-then-evaluate cycle; return newly fired events."""
        async with self._lock:
            devices = advance_devices(
                self.store.snapshot(),
                rng=self._rng,
                now=self._clock(),
                capacity=self.history_capacity,
            )
            version = self.store.replace(devices)
            fired = self.alarms.evaluate(self.store.snapshot())
            self.ticks += 1
        logger.debug(
            "ticker.tick",
            extra={"version": version, "devices": len(devices), "alarms": len(fired)},
        )
        return fired

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.tick_once()
            except Exception:  # pylint: disable=broad-exception-caught
                logger.exception("ticker.tick_failed")

    def start(self) -> None:
        """Start the background loop; calling it twice is a no-op."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run())
        logger.info("ticker.started", extra={"interval_seconds": self.interval_seconds})

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("ticker.stopped", extra={"ticks": self.ticks})
