"""Simulated sensor drivers for bench runs and tests without hardware.

Values are a deterministic function of the read count, so a run is
reproducible. Failures are injected from a seeded RNG at ``failure_rate``.
"""

from __future__ import annotations

import random
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from envtel.core.base import SensorDriver, SensorReadError
from envtel.core.registry import registry
from envtel.models.measurement import Quantity, SensorSource


class SimSourceConfig(BaseModel):
    present: bool = True
    failure_rate: Annotated[float, Field(ge=0.0, le=1.0)] = 0.0
    seed: int | None = 0


class SimBarometerConfig(SimSourceConfig):
    base_altitude_m: float = 150.0
    climb_per_read_m: float = 0.5
    temperature_c: float = 18.0
    pressure_unit: Literal["Pa", "hPa", "kPa"] = "Pa"


class SimHumidityConfig(SimSourceConfig):
    temperature_c: float = 17.5
    humidity_pct: Annotated[float, Field(ge=0, le=100)] = 55.0


class SimObjectConfig(SimSourceConfig):
    start_c: float = 60.0
    heat_per_read_c: float = 1.5
    max_c: float = 110.0


def pressure_at_altitude_hpa(altitude_m: float) -> float:
    """International standard atmosphere, troposphere only."""
    return 1013.25 * (1.0 - 2.25577e-5 * altitude_m) ** 5.25588


_PRESSURE_SCALE = {"Pa": 100.0, "hPa": 1.0, "kPa": 0.1}


class _SimulatedDriver(SensorDriver[SimSourceConfig]):
    def setup(self) -> None:
        self._rng = random.Random(self.config.seed)
        self._reads = 0

    def probe(self) -> bool:
        return self.config.present

    def _maybe_fail(self) -> None:
        if self._rng.random() < self.config.failure_rate:
            raise SensorReadError(f"{self.name}: simulated bus error")


@registry.source("sim_barometer")
class SimulatedBarometer(_SimulatedDriver):
    """Altitude, pressure (in a configurable raw unit) and temperature."""

    config_class = SimBarometerConfig
    source = SensorSource.BAROMETRIC

    def read(self) -> dict[Quantity, float | None]:
        self._maybe_fail()
        cfg: SimBarometerConfig = self.config  # type: ignore[assignment]
        altitude = cfg.base_altitude_m + cfg.climb_per_read_m * self._reads
        self._reads += 1
        return {
            Quantity.BARO_ALTITUDE: altitude,
            Quantity.BARO_PRESSURE: pressure_at_altitude_hpa(altitude) * _PRESSURE_SCALE[cfg.pressure_unit],
            Quantity.BARO_TEMPERATURE: cfg.temperature_c,
        }


@registry.source("sim_humidity")
class SimulatedHumiditySensor(_SimulatedDriver):
    config_class = SimHumidityConfig
    source = SensorSource.HUMIDITY_TEMP

    def read(self) -> dict[Quantity, float | None]:
        self._maybe_fail()
        cfg: SimHumidityConfig = self.config  # type: ignore[assignment]
        self._reads += 1
        return {
            Quantity.HUMIDITY_TEMPERATURE: cfg.temperature_c,
            Quantity.HUMIDITY: cfg.humidity_pct,
        }


@registry.source("sim_object")
class SimulatedObjectThermometer(_SimulatedDriver):
    """Envelope temperature that heats by a fixed step per read up to ``max_c``."""

    config_class = SimObjectConfig
    source = SensorSource.OBJECT_TEMP

    def read(self) -> dict[Quantity, float | None]:
        self._maybe_fail()
        cfg: SimObjectConfig = self.config  # type: ignore[assignment]
        temperature = min(cfg.start_c + cfg.heat_per_read_c * self._reads, cfg.max_c)
        self._reads += 1
        return {Quantity.OBJECT_TEMPERATURE: temperature}
