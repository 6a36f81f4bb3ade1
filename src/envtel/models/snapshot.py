"""TelemetrySnapshot — the immutable record produced once per acquisition tick."""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated

from pydantic import BaseModel, Field


class AmbientSource(StrEnum):
    """Which sensor supplied the ambient temperature."""

    HUMIDITY = "humidity"
    BAROMETRIC = "barometric"


class TelemetrySnapshot(BaseModel):
    """Fully composed telemetry for a single point in time.

    All values are in canonical units (°C, hPa, %, m). ``None`` means the
    instrument is absent or has never produced a valid reading.
    """

    model_config = {"frozen": True}

    envelope_temp_c: float | None = None
    ambient_temp_c: float | None = None
    ambient_source: AmbientSource = AmbientSource.BAROMETRIC
    humidity_pct: float | None = None
    pressure_hpa: float | None = None
    altitude_m: float | None = None
    captured_ms: Annotated[int, Field(ge=0, description="Monotonic capture time in ms")]

    @property
    def is_empty(self) -> bool:
        """True when every instrument is absent."""
        return all(
            v is None
            for v in (
                self.envelope_temp_c,
                self.ambient_temp_c,
                self.humidity_pct,
                self.pressure_hpa,
                self.altitude_m,
            )
        )
