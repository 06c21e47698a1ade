"""
Unit tests for the platform orchestrator.

Tests verify:
- A valid config builds one handle per inverter with the derived window.
- An invalid, empty or non-object config leaves the platform inert.
- An unexpected construction error is logged, not raised.
- run() drives the scheduler until shutdown and returns at once when inert.
- accessories() collects every handle's accessories via the callback.

CHANGELOG:
- 2026-10-19: Cover non-object configs
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from solax_cloud.src.health import HealthWriter
from solax_cloud.src.models import Accessory, InverterSample
from solax_cloud.src.platform import SolaxCloudPlatform

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_client(ac_power_w: float = 1000.0) -> MagicMock:
    client = MagicMock()
    client.get_realtime_info = AsyncMock(
        return_value=InverterSample(ac_power_w=ac_power_w, feed_in_power_w=0.0)
    )
    return client


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    """Config check, smoothing window and handles."""

    def test_valid_config_builds_handles(self, platform_config: dict[str, Any]) -> None:
        platform = SolaxCloudPlatform(platform_config, client=_make_client())

        assert platform.started is True
        assert [inv.name for inv in platform.inverters] == ["Roof", "Garage"]
        assert [inv.sn for inv in platform.inverters] == ["SWAAAAAAAA", "SWBBBBBBBB"]
        assert platform.smoothing_window == 3
        assert all(inv.smoothing_window == 3 for inv in platform.inverters)

    def test_zero_smoothing_window_accepted(self, platform_config: dict[str, Any]) -> None:
        platform_config["pollingFrequency"] = 1000

        platform = SolaxCloudPlatform(platform_config, client=_make_client())

        assert platform.started is True
        assert platform.smoothing_window == 0

    def test_legacy_config_builds_single_handle(self) -> None:
        config: dict[str, Any] = {"tokenId": "token-123", "name": "Roof", "sn": "SW1"}

        platform = SolaxCloudPlatform(config, client=_make_client())

        assert platform.started is True
        assert [(inv.name, inv.sn) for inv in platform.inverters] == [("Roof", "SW1")]

    def test_builds_client_from_token(self, platform_config: dict[str, Any]) -> None:
        with patch("solax_cloud.src.platform.SolaxCloudClient") as mock_cls:
            SolaxCloudPlatform(platform_config, api_timeout_s=4.0)

        mock_cls.assert_called_once_with("20221212000000000000", timeout_s=4.0)

    def test_health_records_inverter_count(
        self, platform_config: dict[str, Any], tmp_path: Path
    ) -> None:
        health_path = tmp_path / "health.json"

        SolaxCloudPlatform(
            platform_config, client=_make_client(), health=HealthWriter(health_path)
        )

        assert json.loads(health_path.read_text())["inverter_count"] == 2


class TestInertPlatform:
    """Bad input never raises; the platform just does nothing."""

    @pytest.mark.parametrize("config", [None, {}])
    def test_empty_config_is_inert(self, config: dict[str, Any] | None) -> None:
        platform = SolaxCloudPlatform(config, client=_make_client())

        assert platform.started is False
        assert platform.inverters == []

    @pytest.mark.parametrize("config", ["not-a-config", ["tokenId"], 7])
    def test_non_object_config_is_inert(self, config: Any) -> None:
        """A truthy config of the wrong type is rejected without raising."""
        platform = SolaxCloudPlatform(config, client=_make_client())

        assert platform.started is False
        assert platform.inverters == []

    def test_invalid_config_is_inert(self, platform_config: dict[str, Any]) -> None:
        platform_config["inverters"][1]["sn"] = "SWAAAAAAAA"

        platform = SolaxCloudPlatform(platform_config, client=_make_client())

        assert platform.started is False
        assert platform.inverters == []

    def test_construction_error_is_logged(
        self, platform_config: dict[str, Any], caplog: pytest.LogCaptureFixture
    ) -> None:
        with (
            patch(
                "solax_cloud.src.platform.SolaxInverter",
                side_effect=RuntimeError("boom"),
            ),
            caplog.at_level(logging.ERROR, logger="solax_cloud.src.platform"),
        ):
            platform = SolaxCloudPlatform(platform_config, client=_make_client())

        assert platform.started is False
        assert platform.inverters == []
        assert "Unexpected error while initializing platform" in caplog.text

    @pytest.mark.asyncio
    async def test_run_returns_immediately_when_inert(self) -> None:
        platform = SolaxCloudPlatform(None)

        await asyncio.wait_for(platform.run(asyncio.Event()), timeout=1.0)


# ---------------------------------------------------------------------------
# Running
# ---------------------------------------------------------------------------


class TestRun:
    """run() polls every inverter until shutdown."""

    @pytest.mark.asyncio
    async def test_run_polls_until_shutdown(self, platform_config: dict[str, Any]) -> None:
        client = _make_client()
        platform = SolaxCloudPlatform(platform_config, client=client)
        assert platform.scheduler is not None
        platform.scheduler.polling_frequency = 0.02
        shutdown_event = asyncio.Event()

        task = asyncio.create_task(platform.run(shutdown_event))
        await asyncio.sleep(0.1)
        shutdown_event.set()
        await asyncio.wait_for(task, timeout=5.0)

        polled = {call.args[0] for call in client.get_realtime_info.await_args_list}
        assert polled == {"SWAAAAAAAA", "SWBBBBBBBB"}
        assert client.get_realtime_info.await_count >= 4
        assert all(inv.pending_refreshes == 0 for inv in platform.inverters)


# ---------------------------------------------------------------------------
# Accessories
# ---------------------------------------------------------------------------


class TestAccessories:
    def test_callback_receives_all_accessories(
        self, platform_config: dict[str, Any]
    ) -> None:
        platform = SolaxCloudPlatform(platform_config, client=_make_client())
        received: list[list[Accessory]] = []

        platform.accessories(received.append)

        assert len(received) == 1
        names = [acc.name for acc in received[0]]
        assert "Roof Inverter" in names
        assert "Garage Inverter" in names
        assert len(names) == 10

    def test_inert_platform_reports_no_accessories(self) -> None:
        platform = SolaxCloudPlatform({"inverters": []})
        received: list[list[Accessory]] = []

        platform.accessories(received.append)

        assert received == [[]]
