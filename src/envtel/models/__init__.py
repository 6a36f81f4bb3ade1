"""Typed data models for measurements and telemetry snapshots."""

from envtel.models.measurement import Measurement, Quantity, SensorSource, Unit
from envtel.models.snapshot import AmbientSource, TelemetrySnapshot

__all__ = [
    "Measurement",
    "Quantity",
    "SensorSource",
    "Unit",
    "AmbientSource",
    "TelemetrySnapshot",
]
