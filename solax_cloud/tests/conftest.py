"""
Shared test fixtures for Solax Cloud daemon tests.

Provides environment variable isolation for DaemonSettings tests and ready
made platform config dicts and realtime API payloads.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

from typing import Any

import pytest

# All DaemonSettings environment variable names, used for cleanup.
_ALL_DAEMON_ENV_VARS = (
    "SOLAX_CONFIG_PATH",
    "HEALTH_PATH",
    "LOG_LEVEL",
    "API_TIMEOUT_S",
)


@pytest.fixture(autouse=True)
def _clean_daemon_env(monkeypatch: pytest.MonkeyPatch, tmp_path: str) -> None:
    """Remove all daemon env vars and isolate from .env files before each test.

    Changes working directory to tmp_path so no .env file is accidentally
    loaded by Pydantic BaseSettings.
    """
    for var in _ALL_DAEMON_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def platform_config() -> dict[str, Any]:
    """Return a complete, valid two-inverter platform config."""
    return {
        "platform": "SolaxCloudAPI",
        "tokenId": "20221212000000000000",
        "inverters": [
            {"name": "Roof", "sn": "SWAAAAAAAA"},
            {"name": "Garage", "sn": "SWBBBBBBBB"},
        ],
        "pollingFrequency": 300,
        "smoothMeters": True,
        "smoothingMethod": "sma",
        "pureHomeApp": False,
    }


@pytest.fixture()
def realtime_result() -> dict[str, Any]:
    """Return a sample ``result`` object of the realtime API."""
    return {
        "inverterSN": "H1234567890ABC",
        "sn": "SWAAAAAAAA",
        "acpower": 2500.0,
        "yieldtoday": 12.3,
        "yieldtotal": 4567.8,
        "feedinpower": 800.0,
        "feedinenergy": 1234.5,
        "consumeenergy": 987.6,
        "feedinpowerM2": 0.0,
        "soc": 64.0,
        "peps1": 0.0,
        "peps2": None,
        "peps3": None,
        "inverterType": 14,
        "inverterStatus": "102",
        "uploadTime": "2026-10-19 12:00:00",
        "batPower": 300.0,
        "powerdc1": 1600.0,
        "powerdc2": 1200.0,
        "powerdc3": None,
        "powerdc4": None,
        "batStatus": "0",
    }
