"""
Platform configuration checks and daemon settings.

Two layers of configuration live here:

1. **Platform config**: the loosely-typed JSON object the user writes
   (``tokenId``, ``inverters``, ``pollingFrequency``, ...). It is checked by
   :func:`check_config`, which rewrites the legacy single-inverter shape,
   rejects fatal problems and fills optional fields with documented defaults.
2. **Daemon settings**: process-level knobs (config file path, health file,
   log level) loaded from environment variables via Pydantic BaseSettings.

Fatal problems (missing ``tokenId``/``inverters``, malformed inverter list,
duplicate names or serials) make :func:`check_config` return ``False``.
Wrong or missing optional values are never fatal; they are replaced by a
default and logged at INFO.

CHANGELOG:
- 2026-10-19: Accept integral floats for pollingFrequency (JSON "300.0")
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import copy
import hashlib
import json
import logging
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

VALID_SMOOTHING_METHODS: tuple[str, ...] = ("sma", "ema")
"""Simple moving average and exponential moving average."""

DEFAULT_SMOOTHING_METHOD: str = "sma"

DEFAULT_POLLING_FREQUENCY: int = 300
"""Default seconds between polls (Solax Cloud refreshes every 5 minutes)."""

MAX_POLLS_MIN: int = 10
"""Solax Cloud rate limit: fewer than 10 requests per minute."""

MAX_POLLS_DAY: int = 10_000
"""Solax Cloud rate limit: fewer than 10,000 requests per day."""

MIN_POLLING_FREQUENCY: float = max(60 / MAX_POLLS_MIN, (24 * 60 * 60) / MAX_POLLS_DAY)
"""Smallest polling interval in seconds that respects both rate limits (8.64)."""

DEFAULT_SMOOTH_METERS: bool = True
DEFAULT_PURE_HOME_APP: bool = False


class ConfigError(Exception):
    """Raised when the platform configuration cannot be used."""


# ---------------------------------------------------------------------------
# Validated records
# ---------------------------------------------------------------------------


class InverterConfig(BaseModel):
    """One entry of the ``inverters`` list.

    Extra keys are tolerated and carried along. Numeric serials are coerced
    to strings since users often type them unquoted.
    """

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    name: str = Field(min_length=1)
    sn: str = Field(min_length=1)


class PlatformConfig(BaseModel):
    """Fully validated platform configuration.

    Attributes:
        token_id: Solax Cloud API token.
        inverters: Inverter entries, at least one, unique by name and sn.
        polling_frequency: Seconds between polls, never below
            MIN_POLLING_FREQUENCY.
        smooth_meters: Whether power meters are smoothed.
        smoothing_method: ``"sma"`` or ``"ema"``.
        pure_home_app: Expose plain Home app accessories only.
    """

    model_config = ConfigDict(frozen=True)

    token_id: str
    inverters: list[InverterConfig]
    polling_frequency: int
    smooth_meters: bool = DEFAULT_SMOOTH_METERS
    smoothing_method: Literal["sma", "ema"] = DEFAULT_SMOOTHING_METHOD
    pure_home_app: bool = DEFAULT_PURE_HOME_APP

    @classmethod
    def from_checked(cls, config: Mapping[str, Any]) -> PlatformConfig:
        """Build from a raw config that already passed :func:`check_config`."""
        return cls(
            token_id=str(config["tokenId"]),
            inverters=config["inverters"],
            polling_frequency=config["pollingFrequency"],
            smooth_meters=config["smoothMeters"],
            smoothing_method=config["smoothingMethod"],
            pure_home_app=config["pureHomeApp"],
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def masked_token(value: str | None) -> str:
    """Return a short non-reversible token fingerprint for diagnostics."""
    if not value:
        return "empty"
    digest = hashlib.sha256(value.encode("utf-8")).hexdigest()[:10]
    return f"len={len(value)} sha256={digest}"


def _as_positive_int(value: Any) -> int | None:
    """Return *value* as an int if it is a positive integer, else None.

    Booleans are rejected even though they subclass int. Floats are accepted
    only when integral (``300.0``).
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float) and value.is_integer() and value > 0:
        return int(value)
    return None


def _has_duplicates(values: list[str]) -> bool:
    return len(set(values)) != len(values)


def _migrate_legacy(config: dict[str, Any]) -> None:
    """Rewrite top-level ``name``/``sn`` into a one-entry ``inverters`` list."""
    inverters = config.get("inverters")
    # An empty list is a real (if useless) value; other falsy values are not
    if inverters or isinstance(inverters, list):
        return
    if config.get("name") and config.get("sn"):
        logger.info(
            "Converting config file to new format (with multiple inverters support)..."
        )
        config["inverters"] = [{"name": config["name"], "sn": config["sn"]}]
        del config["name"]
        del config["sn"]


def _fatal(message: str) -> ConfigError:
    logger.error("Config check: %s, aborting!", message)
    return ConfigError(message)


# ---------------------------------------------------------------------------
# Core check
# ---------------------------------------------------------------------------


def _normalize(config: dict[str, Any]) -> PlatformConfig:
    """Check *config*, rewrite it in place and return the validated record.

    Raises:
        ConfigError: On the first fatal problem found.
    """
    if not isinstance(config, dict):
        raise _fatal("Invalid platform config object (expected a JSON object)")

    logger.debug("Config read: %s", _dumps_masked(config))

    _migrate_legacy(config)

    # -- Mandatory parameters --
    if not config.get("tokenId"):
        raise _fatal('Can\'t find mandatory parameter "tokenId" parameter in config file')
    if "inverters" not in config or config["inverters"] is None:
        raise _fatal('Can\'t find mandatory parameter "inverters" parameter in config file')

    # -- Inverter list shape --
    raw_inverters = config["inverters"]
    if not isinstance(raw_inverters, list):
        raise _fatal('Incorrect type for mandatory parameter "inverters" in config file')
    if not raw_inverters:
        raise _fatal('Empty list for mandatory parameter "inverters" in config file')

    inverters: list[InverterConfig] = []
    for entry in raw_inverters:
        if not isinstance(entry, Mapping):
            raise _fatal('Invalid type for inverter under "inverters" in config file')
        try:
            inverters.append(InverterConfig.model_validate(dict(entry)))
        except ValidationError as exc:
            raise _fatal(
                'Invalid type for inverter under "inverters" in config file'
            ) from exc

    # -- Duplicates (names first, then serials) --
    if _has_duplicates([inv.name for inv in inverters]):
        raise _fatal("Duplicate inverter names in config file")
    if _has_duplicates([inv.sn for inv in inverters]):
        raise _fatal("Duplicate inverter SNs in config file")

    config["inverters"] = [inv.model_dump() for inv in inverters]

    # -- Optional parameters --
    config["pollingFrequency"] = _check_polling_frequency(config.get("pollingFrequency"))

    smooth_meters = config.get("smoothMeters")
    if smooth_meters is None:
        smooth_meters = DEFAULT_SMOOTH_METERS
        logger.info("Config check: No config for smooth meters, defaulting to %s.", smooth_meters)
    elif not isinstance(smooth_meters, bool):
        smooth_meters = DEFAULT_SMOOTH_METERS
        logger.info("Config check: Invalid setting for smooth meters, defaulting to %s.", smooth_meters)
    config["smoothMeters"] = smooth_meters

    method = config.get("smoothingMethod")
    if method is None:
        method = DEFAULT_SMOOTHING_METHOD
        logger.info('Config check: No smoothing method provided, defaulting to "%s".', method)
    elif method not in VALID_SMOOTHING_METHODS:
        method = DEFAULT_SMOOTHING_METHOD
        logger.info('Config check: Invalid smoothing method, defaulting to "%s".', method)
    config["smoothingMethod"] = method

    pure_home_app = config.get("pureHomeApp")
    if pure_home_app is None:
        pure_home_app = DEFAULT_PURE_HOME_APP
        logger.info(
            "Config check: No config for using pure Home app accessories, defaulting to %s.",
            pure_home_app,
        )
    elif not isinstance(pure_home_app, bool):
        pure_home_app = DEFAULT_PURE_HOME_APP
        logger.info(
            "Config check: Invalid setting for using pure Home app accessories, "
            "defaulting to %s.",
            pure_home_app,
        )
    config["pureHomeApp"] = pure_home_app

    logger.info("Config check: final config is %s", _dumps_masked(config))

    return PlatformConfig.from_checked(config)


def _check_polling_frequency(value: Any) -> int:
    """Return a usable polling frequency, logging when a default is applied."""
    if value is None:
        logger.info(
            "Config check: No polling frequency provided, defaulting to %d seconds.",
            DEFAULT_POLLING_FREQUENCY,
        )
        return DEFAULT_POLLING_FREQUENCY

    frequency = _as_positive_int(value)
    if frequency is None:
        logger.info(
            "Config check: Invalid polling frequency (must be a positive integer number), "
            "defaulting to %d seconds.",
            DEFAULT_POLLING_FREQUENCY,
        )
        return DEFAULT_POLLING_FREQUENCY

    if frequency < MIN_POLLING_FREQUENCY:
        logger.info(
            "Config check: Polling frequency cannot be higher than %d times/min and %d "
            "times/day, defaulting to %d seconds.",
            MAX_POLLS_MIN,
            MAX_POLLS_DAY,
            DEFAULT_POLLING_FREQUENCY,
        )
        return DEFAULT_POLLING_FREQUENCY

    return frequency


def _dumps_masked(config: Mapping[str, Any]) -> str:
    shown = dict(config)
    if "tokenId" in shown:
        shown["tokenId"] = masked_token(str(shown["tokenId"] or ""))
    return json.dumps(shown, default=str)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_config(raw: Mapping[str, Any]) -> PlatformConfig:
    """Validate *raw* without touching it and return a PlatformConfig.

    Raises:
        ConfigError: If a mandatory field is missing or the inverter list is
            malformed or has duplicates.
    """
    if not isinstance(raw, Mapping):
        raise _fatal("Invalid platform config object (expected a JSON object)")
    return _normalize(copy.deepcopy(dict(raw)))


def check_config(config: dict[str, Any]) -> bool:
    """Check *config* and rewrite it in place with defaults applied.

    Returns:
        ``True`` if the config can be used, ``False`` on a fatal problem.
        Never raises for bad input.
    """
    try:
        _normalize(config)
    except ConfigError:
        return False
    return True


# ---------------------------------------------------------------------------
# Daemon settings
# ---------------------------------------------------------------------------


class DaemonSettings(BaseSettings):
    """Process settings for the Solax Cloud polling daemon.

    All values are loaded from environment variables or a ``.env`` file.

    Attributes:
        solax_config_path: JSON file holding the platform config.
        health_path: Health JSON file path; empty string disables it.
        log_level: Root log level name.
        api_timeout_s: Timeout per Solax Cloud request in seconds.
    """

    solax_config_path: str = "config.json"
    health_path: str = "/data/health.json"
    log_level: str = "INFO"
    api_timeout_s: float = 10.0

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        """Validate LOG_LEVEL is a standard logging level name."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(
                "LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL"
            )
        return level

    @field_validator("api_timeout_s")
    @classmethod
    def api_timeout_must_be_positive(cls, v: float) -> float:
        """Validate the API timeout is strictly positive."""
        if v <= 0:
            raise ValueError("API_TIMEOUT_S must be > 0")
        return v

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}
