"""
Liveness file for the polling daemon.

The daemon rewrites a small JSON document whenever the scheduler ticks or an
inverter refresh succeeds, so an external HEALTHCHECK can tell a stalled loop
(stale ``last_tick_ts``) from a dead cloud link (stale ``last_refresh_ts``).

Example content::

    {"last_tick_ts": "2026-10-19T12:00:00+00:00",
     "last_refresh_ts": "2026-10-19T11:55:02+00:00",
     "inverter_count": 2}

CHANGELOG:
- 2026-10-19: Single record(event) entry point for tick and refresh stamps
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Literal

HealthEvent = Literal["tick", "refresh"]


class HealthWriter:
    """Keeps the liveness JSON file at *path* up to date.

    Args:
        path: Filesystem path for the health JSON file. Accepts str or Path.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._stamps: dict[HealthEvent, str | None] = {"tick": None, "refresh": None}
        self._inverter_count = 0

    def record(self, event: HealthEvent) -> None:
        """Stamp *event* with the current UTC time and rewrite the file.

        Raises:
            ValueError: If *event* is not ``"tick"`` or ``"refresh"``.
        """
        if event not in self._stamps:
            raise ValueError(f"Unknown health event: {event!r}")
        self._stamps[event] = datetime.now(tz=UTC).isoformat()
        self._write()

    def set_inverter_count(self, count: int) -> None:
        self._inverter_count = count
        self._write()

    def _write(self) -> None:
        self.path.write_text(
            json.dumps(
                {
                    "last_tick_ts": self._stamps["tick"],
                    "last_refresh_ts": self._stamps["refresh"],
                    "inverter_count": self._inverter_count,
                }
            )
        )
