"""
Pydantic models for Solax Cloud realtime readings and exposed accessories.

InverterSample maps one ``result`` object of the Solax Cloud realtime API
onto snake_case fields in engineering units. Accessory is the plain
descriptor an inverter handle hands to the host for each exposable device.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class InverterSample(BaseModel):
    """A single realtime reading for one inverter.

    Power values are in watts, energy values in kilowatt-hours. The cloud
    API reports ``null`` for absent strings or batteries, so every numeric
    field is optional and the derived properties treat ``None`` as zero.

    Attributes:
        inverter_sn: Inverter serial number.
        wifi_sn: Registration (WiFi dongle) serial number used to query.
        ac_power_w: Inverter AC output power.
        yield_today_kwh: Energy produced today.
        yield_total_kwh: Lifetime energy produced.
        feed_in_power_w: Grid power. Positive = exporting, negative = importing.
        feed_in_energy_kwh: Lifetime energy exported.
        consume_energy_kwh: Lifetime energy imported.
        battery_power_w: Battery power. Positive = charging.
        battery_soc_pct: Battery state of charge (0-100).
        upload_time: Timestamp string of the reading as reported by the cloud.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    inverter_sn: str | None = Field(default=None, alias="inverterSN")
    wifi_sn: str | None = Field(default=None, alias="sn")
    ac_power_w: float | None = Field(default=None, alias="acpower")
    yield_today_kwh: float | None = Field(default=None, alias="yieldtoday")
    yield_total_kwh: float | None = Field(default=None, alias="yieldtotal")
    feed_in_power_w: float | None = Field(default=None, alias="feedinpower")
    feed_in_energy_kwh: float | None = Field(default=None, alias="feedinenergy")
    consume_energy_kwh: float | None = Field(default=None, alias="consumeenergy")
    feed_in_power_m2_w: float | None = Field(default=None, alias="feedinpowerM2")
    battery_soc_pct: float | None = Field(default=None, alias="soc")
    eps_power_1_w: float | None = Field(default=None, alias="peps1")
    eps_power_2_w: float | None = Field(default=None, alias="peps2")
    eps_power_3_w: float | None = Field(default=None, alias="peps3")
    inverter_type: str | None = Field(default=None, alias="inverterType")
    inverter_status: str | None = Field(default=None, alias="inverterStatus")
    upload_time: str | None = Field(default=None, alias="uploadTime")
    battery_power_w: float | None = Field(default=None, alias="batPower")
    pv_power_dc1_w: float | None = Field(default=None, alias="powerdc1")
    pv_power_dc2_w: float | None = Field(default=None, alias="powerdc2")
    pv_power_dc3_w: float | None = Field(default=None, alias="powerdc3")
    pv_power_dc4_w: float | None = Field(default=None, alias="powerdc4")
    battery_status: str | None = Field(default=None, alias="batStatus")

    @property
    def pv_power_w(self) -> float:
        """Total DC power over all PV strings."""
        return sum(
            v or 0.0
            for v in (
                self.pv_power_dc1_w,
                self.pv_power_dc2_w,
                self.pv_power_dc3_w,
                self.pv_power_dc4_w,
            )
        )

    @property
    def grid_export_w(self) -> float:
        """Power flowing from the inverter to the grid."""
        return max(self.feed_in_power_w or 0.0, 0.0)

    @property
    def grid_import_w(self) -> float:
        """Power flowing from the grid to the house."""
        return max(-(self.feed_in_power_w or 0.0), 0.0)

    @property
    def house_load_w(self) -> float:
        """House consumption: inverter output minus what goes to the grid."""
        return max((self.ac_power_w or 0.0) - (self.feed_in_power_w or 0.0), 0.0)


class Accessory(BaseModel):
    """Exposable device descriptor produced by an inverter handle.

    Attributes:
        name: Display name, prefixed with the inverter name.
        kind: ``power_meter``, ``light_sensor`` (Home app fallback for power,
            value in lux = watts) or ``battery``.
        unit: Unit of ``value``.
        value: Latest (possibly smoothed) value.
    """

    name: str
    kind: Literal["power_meter", "light_sensor", "battery"]
    unit: str
    value: float
