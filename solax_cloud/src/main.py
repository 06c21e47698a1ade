"""
Polling daemon entrypoint for Solax Cloud inverters.

Loads the platform config from a JSON file, builds the SolaxCloudPlatform and
runs its polling loop until SIGTERM/SIGINT. The config file may be either the
bare platform object or a host-style file with a ``platforms`` list, in which
case the ``SolaxCloudAPI`` entry is used.

Structured JSON logging is used for all events. The API token never appears
in logs; only a short fingerprint is printed.

CHANGELOG:
- 2026-10-19: Accept host-style config files with a "platforms" list
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import asyncio
import json
import logging
import signal
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from solax_cloud.src.config import ConfigError, masked_token

logger = logging.getLogger(__name__)

PLATFORM_NAME = "SolaxCloudAPI"
"""Value of the ``platform`` key identifying our entry in a host config file."""


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


def configure_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging for the daemon.

    Sets up the root logger with a JSON-formatted handler writing to stderr.
    """

    class _JsonFormatter(logging.Formatter):
        """Minimal JSON log formatter."""

        def format(self, record: logging.LogRecord) -> str:
            log_entry = {
                "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "msg": record.getMessage(),
            }
            if record.exc_info and record.exc_info[1] is not None:
                log_entry["exception"] = self.formatException(record.exc_info)
            return json.dumps(log_entry)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


# ---------------------------------------------------------------------------
# Startup config
# ---------------------------------------------------------------------------


def log_config_summary(settings: object, config: dict[str, Any]) -> None:
    """Log a config summary at startup, excluding secrets.

    Args:
        settings: A DaemonSettings instance (or any object with the same attrs).
        config: Raw platform config as loaded from disk.
    """
    inverters = config.get("inverters")
    if isinstance(inverters, list):
        inverter_count = len(inverters)
    else:
        # Legacy single-inverter layout
        inverter_count = 1 if config.get("sn") else 0

    logger.info(
        "Solax Cloud daemon starting with config: "
        "config_path=%s, health_path=%s, api_timeout_s=%s, "
        "inverter_count=%s, polling_frequency=%s, token_masked=%s",
        settings.solax_config_path,  # type: ignore[attr-defined]
        settings.health_path or "disabled",  # type: ignore[attr-defined]
        settings.api_timeout_s,  # type: ignore[attr-defined]
        inverter_count,
        config.get("pollingFrequency", "default"),
        masked_token(str(config.get("tokenId") or "")),
    )


def load_platform_config(path: str | Path) -> dict[str, Any]:
    """Read the platform config object from the JSON file at *path*.

    Raises:
        ConfigError: If the file is missing, is not valid JSON, or holds no
            usable platform object.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file {path} is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")

    platforms = data.get("platforms")
    if isinstance(platforms, list):
        for entry in platforms:
            if isinstance(entry, dict) and entry.get("platform") == PLATFORM_NAME:
                return entry
        raise ConfigError(f"No '{PLATFORM_NAME}' platform found in {path}")

    return data


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


async def async_main() -> int:
    """Async entrypoint: load settings and config, build platform, run loop.

    Sets up SIGTERM/SIGINT handlers to trigger graceful shutdown.

    Returns:
        Process exit code: 0 on clean shutdown, 1 if the config could not
        be loaded or the platform did not start.
    """
    from solax_cloud.src.config import DaemonSettings
    from solax_cloud.src.health import HealthWriter
    from solax_cloud.src.platform import SolaxCloudPlatform

    settings = DaemonSettings()
    configure_logging(settings.log_level)

    try:
        config = load_platform_config(settings.solax_config_path)
    except ConfigError:
        logger.error("Failed to load platform config", exc_info=True)
        return 1

    log_config_summary(settings, config)

    health = HealthWriter(settings.health_path) if settings.health_path else None
    platform = SolaxCloudPlatform(
        config,
        health=health,
        api_timeout_s=settings.api_timeout_s,
    )
    if not platform.started:
        logger.error("Platform did not start, exiting")
        return 1

    shutdown_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda: _handle_signal(shutdown_event),
        )

    await platform.run(shutdown_event)
    logger.info("Shutdown complete")
    return 0


def _handle_signal(shutdown_event: asyncio.Event) -> None:
    """Handle SIGTERM/SIGINT by setting the shutdown event.

    Args:
        shutdown_event: The event to set for graceful shutdown.
    """
    logger.info("Received shutdown signal, initiating graceful shutdown")
    shutdown_event.set()


def main() -> None:
    """Synchronous entrypoint for the polling daemon."""
    sys.exit(asyncio.run(async_main()))


if __name__ == "__main__":
    main()
