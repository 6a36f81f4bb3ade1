"""TelemetrySnapshot wire codec.

Wire record (flat JSON object, every key always present)::

    envelope_f      float | null   envelope temperature, °F, 1 decimal
    ambient_f       float | null   ambient temperature, °F, 1 decimal
    humidity_pct    int   | null   relative humidity, %, integer
    pressure_hpa    float | null   pressure, hPa, 1 decimal
    altitude_m      float | null   barometric altitude, m, 1 decimal
    ambient_source  "humidity" | "barometric"
    ts_ms           int            capture time, monotonic ms

An absent instrument is always ``null``, never ``0`` and never a missing key,
so consumers can tell "no instrument" from "zero reading".
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, field_validator

from envtel.core.units import c_to_f
from envtel.models.snapshot import AmbientSource, TelemetrySnapshot

WIRE_FIELDS = (
    "envelope_f",
    "ambient_f",
    "humidity_pct",
    "pressure_hpa",
    "altitude_m",
    "ambient_source",
    "ts_ms",
)

TEMPERATURE_DECIMALS = 1
PRESSURE_DECIMALS = 1
ALTITUDE_DECIMALS = 1


def _round(value: float | None, decimals: int) -> float | None:
    if value is None:
        return None
    return round(value, decimals)


def encode(snapshot: TelemetrySnapshot) -> dict[str, Any]:
    """Flatten a snapshot into a wire record."""
    envelope_f = c_to_f(snapshot.envelope_temp_c) if snapshot.envelope_temp_c is not None else None
    ambient_f = c_to_f(snapshot.ambient_temp_c) if snapshot.ambient_temp_c is not None else None
    humidity = round(snapshot.humidity_pct) if snapshot.humidity_pct is not None else None
    return {
        "envelope_f": _round(envelope_f, TEMPERATURE_DECIMALS),
        "ambient_f": _round(ambient_f, TEMPERATURE_DECIMALS),
        "humidity_pct": humidity,
        "pressure_hpa": _round(snapshot.pressure_hpa, PRESSURE_DECIMALS),
        "altitude_m": _round(snapshot.altitude_m, ALTITUDE_DECIMALS),
        "ambient_source": snapshot.ambient_source.value,
        "ts_ms": int(snapshot.captured_ms),
    }


def dumps(snapshot: TelemetrySnapshot) -> str:
    return json.dumps(encode(snapshot), separators=(",", ":"))


# --------------------------------------------------------------------------- #
#  Consumer side                                                               #
# --------------------------------------------------------------------------- #


class WireRecord(BaseModel):
    """A decoded wire record as seen by remote observers.

    Decoding is lenient per field: a missing, non-numeric or non-finite value
    becomes ``None`` instead of rejecting the record. Only ``ts_ms`` is
    mandatory because records are ordered by it.
    """

    model_config = {"frozen": True}

    envelope_f: float | None = None
    ambient_f: float | None = None
    humidity_pct: float | None = None
    pressure_hpa: float | None = None
    altitude_m: float | None = None
    ambient_source: AmbientSource | None = None
    ts_ms: int

    @field_validator(
        "envelope_f", "ambient_f", "humidity_pct", "pressure_hpa", "altitude_m",
        mode="before",
    )
    @classmethod
    def _lenient_number(cls, v: object) -> float | None:
        if v is None or isinstance(v, bool):
            return None
        try:
            number = float(v)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        return number if math.isfinite(number) else None

    @field_validator("ambient_source", mode="before")
    @classmethod
    def _lenient_source(cls, v: object) -> AmbientSource | None:
        try:
            return AmbientSource(v)
        except ValueError:
            return None


def decode(record: Mapping[str, Any] | str | bytes) -> WireRecord:
    """Parse a wire record. Raises ValueError if it has no usable timestamp."""
    if isinstance(record, (str, bytes)):
        record = json.loads(record)
        if not isinstance(record, Mapping):
            raise ValueError(f"Wire record must be a JSON object, got {type(record).__name__}")
    return WireRecord.model_validate(dict(record))
