"""
Platform orchestrator for the Solax Cloud polling daemon.

Wires everything together at construction time:

1. Checks the platform config (legacy migration and defaults included).
2. Derives the smoothing window from the polling frequency.
3. Builds one SolaxInverter per configured inverter and the PollingScheduler.

Any failure leaves the platform *inert*: no handles, no loop. A bad config
or an unexpected construction error is logged, never raised, so the host
process keeps running.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from solax_cloud.src.api import SolaxCloudClient
from solax_cloud.src.config import PlatformConfig, check_config
from solax_cloud.src.inverter import SolaxInverter
from solax_cloud.src.scheduler import PollingScheduler, smoothing_window

if TYPE_CHECKING:
    from solax_cloud.src.health import HealthWriter
    from solax_cloud.src.models import Accessory

logger = logging.getLogger(__name__)


class SolaxCloudPlatform:
    """Builds the inverter handles and runs the polling loop.

    Args:
        config: Raw platform config mapping. Rewritten in place by the
            config check.
        client: Solax Cloud client to share across inverters. Built from the
            config token when omitted.
        health: HealthWriter instance, or None to skip health writes.
        api_timeout_s: Request timeout used when the client is built here.
    """

    def __init__(
        self,
        config: dict[str, Any] | None,
        *,
        client: SolaxCloudClient | None = None,
        health: HealthWriter | None = None,
        api_timeout_s: float = 10.0,
    ) -> None:
        self.config = config
        self.smoothing_window = 1
        self.inverters: list[SolaxInverter] = []
        self.scheduler: PollingScheduler | None = None
        self.platform_config: PlatformConfig | None = None

        if not config:
            logger.error("No platform config provided, platform disabled.")
            return

        if not check_config(config):
            return

        try:
            self.platform_config = PlatformConfig.from_checked(config)
            self.smoothing_window = smoothing_window(
                self.platform_config.polling_frequency
            )
            logger.info(
                "Window for smoothing series is %d periods.", self.smoothing_window
            )

            if client is None:
                client = SolaxCloudClient(
                    self.platform_config.token_id, timeout_s=api_timeout_s
                )

            for inverter in self.platform_config.inverters:
                self.inverters.append(
                    SolaxInverter(
                        self.platform_config,
                        client,
                        sn=inverter.sn,
                        name=inverter.name,
                        smoothing_window=self.smoothing_window,
                        health=health,
                    )
                )

            if health is not None:
                health.set_inverter_count(len(self.inverters))

            self.scheduler = PollingScheduler(
                self.inverters,
                self.platform_config.polling_frequency,
                health=health,
            )
            logger.debug("Finished initializing platform.")
        except Exception:
            logger.error("Unexpected error while initializing platform", exc_info=True)
            self.inverters = []
            self.scheduler = None

    @property
    def started(self) -> bool:
        """Whether the platform initialized cleanly and can poll."""
        return self.scheduler is not None

    async def run(self, shutdown_event: asyncio.Event | None = None) -> None:
        """Run the polling loop until *shutdown_event* is set.

        Returns immediately when the platform is inert. In-flight refreshes
        are cancelled once the loop stops.
        """
        if self.scheduler is None:
            logger.warning("Platform did not start cleanly, polling disabled.")
            return

        if shutdown_event is not None:
            self.scheduler.shutdown_event = shutdown_event

        try:
            await self.scheduler.fetch_data_periodically()
        finally:
            for inverter in self.inverters:
                await inverter.aclose()

    def accessories(self, callback: Callable[[list[Accessory]], None]) -> None:
        """Pass the accessories of every inverter to *callback*.

        Never performs I/O; each handle reports its latest cached data.
        """
        found: list[Accessory] = []
        for inverter in self.inverters:
            found.extend(inverter.get_accessories())
        callback(found)
