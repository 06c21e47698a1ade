"""
Polling daemon package for Solax Cloud inverters.

Validates the platform config, polls the Solax Cloud realtime API for every
configured inverter on a fixed cadence, smooths the power meters and exposes
them as accessory descriptors.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""
