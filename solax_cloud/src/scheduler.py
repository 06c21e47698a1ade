"""
Polling scheduler for Solax Cloud inverters.

Every ``polling_frequency`` seconds the scheduler asks each inverter handle
to refresh itself, then waits. Refresh requests are fire-and-forget: the
scheduler never awaits them, so ticks keep a constant cadence however long
the cloud takes to answer, and a refresh from one tick may still be running
when the next tick fires.

The loop has no iteration cap and no backoff. It only ends when the shutdown
event is set.

The smoothing window turns a fixed real-world span (15 minutes) into a
sample count for the given polling frequency. Polling slower than the span
yields a window of 0, which downstream smoothers treat as "no smoothing".

CHANGELOG:
- 2026-10-19: Replace self-rescheduling tick with an event-driven loop
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from solax_cloud.src.health import HealthWriter

logger = logging.getLogger(__name__)

SMOOTHING_SPAN_S: int = 15 * 60
"""Real-world span, in seconds, that meter smoothing aims to cover."""


class InverterHandle(Protocol):
    """What the scheduler needs from an inverter handle."""

    def update_inverter_data(self) -> None: ...


def smoothing_window(polling_frequency: int) -> int:
    """Return the number of samples covering SMOOTHING_SPAN_S.

    Example: a 300 s polling frequency gives ``900 // 300 == 3`` samples.
    """
    return SMOOTHING_SPAN_S // polling_frequency


class PollingScheduler:
    """Drives periodic refreshes of every inverter handle.

    Args:
        inverters: Inverter handles to refresh on each tick.
        polling_frequency: Seconds between ticks.
        shutdown_event: Event to signal graceful shutdown. A fresh event is
            created when omitted; set ``scheduler.shutdown_event`` to stop.
        health: HealthWriter instance, or None to skip health writes.
    """

    def __init__(
        self,
        inverters: Sequence[InverterHandle],
        polling_frequency: float,
        *,
        shutdown_event: asyncio.Event | None = None,
        health: HealthWriter | None = None,
    ) -> None:
        self.inverters = list(inverters)
        self.polling_frequency = polling_frequency
        self.shutdown_event = shutdown_event if shutdown_event is not None else asyncio.Event()
        self._health = health
        self.tick_count = 0

    def tick(self) -> None:
        """Dispatch one refresh to every inverter without waiting on them."""
        for inverter in self.inverters:
            inverter.update_inverter_data()
        self.tick_count += 1

        logger.info(
            "Updated data from Solax Cloud API, sleeping for %s seconds.",
            self.polling_frequency,
        )

        if self._health is not None:
            try:
                self._health.record("tick")
            except Exception:
                logger.warning("Failed to write health file", exc_info=True)

    async def fetch_data_periodically(self) -> None:
        """Run ticks every polling_frequency seconds until shutdown."""
        logger.info(
            "Polling loop started (interval=%ss, inverters=%d)",
            self.polling_frequency,
            len(self.inverters),
        )
        while not self.shutdown_event.is_set():
            self.tick()
            # Use wait with timeout so shutdown interrupts the sleep
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(
                    self.shutdown_event.wait(),
                    timeout=self.polling_frequency,
                )
        logger.info("Polling loop stopped")
