"""TickDriver — the single logical tick loop for one world.

Ticks never overlap: the driver calls the coordinator synchronously and
only schedules the next tick once the previous one has returned.
Stopping the driver simply means the next tick does not run; a tick in
progress always completes.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from antforage.foraging.coordinator import ForagingCoordinator, TickReport

logger = logging.getLogger(__name__)


@dataclass
class TickDriver:
    """Advances a coordinator at a fixed cadence.

    Attributes:
        coordinator: The coordinator to drive.
        tick: Index of the next tick to run.
        stop_event: Set to stop ``run_forever`` after the current tick.
    """

    coordinator: ForagingCoordinator
    tick: int = 0
    stop_event: threading.Event = field(default_factory=threading.Event)

    def step(self) -> TickReport:
        """Run exactly one tick and advance the tick counter."""
        report = self.coordinator.tick(self.tick)
        if report.errors:
            logger.debug("Tick %d finished with %d errors", self.tick, len(report.errors))
        self.tick += 1
        return report

    def run(self, ticks: int) -> list[TickReport]:
        """Run a fixed number of ticks back to back.

        Args:
            ticks: Number of ticks to advance.

        Returns:
            One report per tick, in order.
        """
        return [self.step() for _ in range(ticks)]

    def run_forever(self, interval: float, max_ticks: int | None = None) -> int:
        """Tick every ``interval`` seconds until stopped.

        A slow tick delays the next one rather than overlapping it.

        Args:
            interval: Target seconds between tick starts.
            max_ticks: Stop after this many ticks (None for no limit).

        Returns:
            Number of ticks run.
        """
        ran = 0
        next_start = time.monotonic()
        while not self.stop_event.is_set():
            if max_ticks is not None and ran >= max_ticks:
                break
            self.step()
            ran += 1
            next_start += interval
            delay = next_start - time.monotonic()
            if delay < 0:
                next_start = time.monotonic()
                delay = 0.0
            if self.stop_event.wait(delay):
                break
        logger.info("Tick driver stopped after %d ticks", ran)
        return ran

    def stop(self) -> None:
        """Ask ``run_forever`` to return after the current tick."""
        self.stop_event.set()
