"""
Inverter handle: fetches, smooths and exposes one inverter's data.

One SolaxInverter is created per configured inverter. The scheduler calls
:meth:`SolaxInverter.update_inverter_data` on every tick; the call only
schedules a refresh task and returns, so a slow cloud response never delays
the next tick. Refresh failures are logged here and the previous data is
kept; nothing propagates back to the scheduler.

:meth:`SolaxInverter.get_accessories` never performs I/O. Before the first
successful refresh every meter reads 0.

CHANGELOG:
- 2026-10-19: Expose power meters as light sensors in pure Home app mode
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from solax_cloud.src.api import SolaxCloudError
from solax_cloud.src.models import Accessory, InverterSample
from solax_cloud.src.smoothing import Smoother, create_smoother

if TYPE_CHECKING:
    from solax_cloud.src.api import SolaxCloudClient
    from solax_cloud.src.config import PlatformConfig
    from solax_cloud.src.health import HealthWriter

logger = logging.getLogger(__name__)

# (meter key, display label, InverterSample attribute)
_METERS: tuple[tuple[str, str, str], ...] = (
    ("pv", "PV", "pv_power_w"),
    ("inverter", "Inverter", "ac_power_w"),
    ("to_grid", "Inverter to grid", "grid_export_w"),
    ("from_grid", "Grid to house", "grid_import_w"),
    ("to_house", "House load", "house_load_w"),
)


class SolaxInverter:
    """Per-inverter handle driven by the polling scheduler.

    Args:
        config: Validated platform config (smoothing and exposure flags).
        client: Solax Cloud client shared across inverters.
        sn: Registration serial number queried on the cloud.
        name: Display name, used as accessory name prefix.
        smoothing_window: Samples to average over; 0 or 1 disables smoothing.
        health: HealthWriter instance, or None to skip health writes.
    """

    def __init__(
        self,
        config: PlatformConfig,
        client: SolaxCloudClient,
        *,
        sn: str,
        name: str,
        smoothing_window: int,
        health: HealthWriter | None = None,
    ) -> None:
        self.sn = sn
        self.name = name
        self.smoothing_window = smoothing_window
        self._client = client
        self._health = health
        self._smooth_meters = config.smooth_meters
        self._pure_home_app = config.pure_home_app
        self._smoothers: dict[str, Smoother] = {
            key: create_smoother(config.smoothing_method, smoothing_window)
            for key, _, _ in _METERS
        }
        self._meters: dict[str, float] = {key: 0.0 for key, _, _ in _METERS}
        self._pending: set[asyncio.Task[None]] = set()
        self.sample: InverterSample | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def pending_refreshes(self) -> int:
        """Number of refresh tasks still in flight."""
        return len(self._pending)

    def update_inverter_data(self) -> None:
        """Schedule a refresh on the running loop and return immediately."""
        task = asyncio.get_running_loop().create_task(
            self._refresh(), name=f"solax-refresh-{self.sn}"
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def get_accessories(self) -> list[Accessory]:
        """Return accessory descriptors for the latest data."""
        if self._pure_home_app:
            kind, unit = "light_sensor", "lx"
        else:
            kind, unit = "power_meter", "W"

        accessories = [
            Accessory(
                name=f"{self.name} {label}",
                kind=kind,
                unit=unit,
                value=self._meters[key],
            )
            for key, label, _ in _METERS
        ]

        if self.sample is not None and self.sample.battery_soc_pct is not None:
            accessories.append(
                Accessory(
                    name=f"{self.name} Battery",
                    kind="battery",
                    unit="%",
                    value=self.sample.battery_soc_pct,
                )
            )
        return accessories

    async def aclose(self) -> None:
        """Cancel refresh tasks still in flight and wait for them to end."""
        pending = list(self._pending)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _refresh(self) -> None:
        try:
            sample = await self._client.get_realtime_info(self.sn)
        except SolaxCloudError as exc:
            logger.warning("Refresh failed for inverter %s (%s): %s", self.name, self.sn, exc)
            return
        except Exception:
            logger.error(
                "Unexpected error refreshing inverter %s (%s)",
                self.name,
                self.sn,
                exc_info=True,
            )
            return

        self._apply(sample)
        logger.info(
            "Updated inverter %s: pv=%.0fW ac=%.0fW feed_in=%.0fW",
            self.name,
            sample.pv_power_w,
            sample.ac_power_w or 0.0,
            sample.feed_in_power_w or 0.0,
        )

        if self._health is not None:
            try:
                self._health.record("refresh")
            except Exception:
                logger.warning("Failed to write health file", exc_info=True)

    def _apply(self, sample: InverterSample) -> None:
        """Store *sample* and feed its meters through the smoothers."""
        self.sample = sample
        for key, _, attr in _METERS:
            raw = getattr(sample, attr) or 0.0
            if self._smooth_meters:
                self._meters[key] = self._smoothers[key].add(raw)
            else:
                self._meters[key] = raw
