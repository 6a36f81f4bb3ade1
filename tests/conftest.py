"""Shared pytest fixtures for the envtel test suite."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any

import pytest
import structlog
from pydantic import BaseModel

from envtel.core.base import SensorDriver, SensorReadError
from envtel.core.store import SensorReadingStore
from envtel.models.measurement import Quantity, SensorSource


# --------------------------------------------------------------------------- #
#  Fake time                                                                   #
# --------------------------------------------------------------------------- #


class FakeClock:
    """Monotonic millisecond clock that only moves when slept on or advanced."""

    def __init__(self, start_ms: int = 0) -> None:
        self.now_ms = start_ms
        self.sleeps: list[float] = []

    def __call__(self) -> int:
        return self.now_ms

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now_ms += int(round(seconds * 1000))

    def advance(self, ms: int) -> None:
        self.now_ms += ms


# --------------------------------------------------------------------------- #
#  Scripted drivers                                                            #
# --------------------------------------------------------------------------- #


class ScriptConfig(BaseModel):
    present: bool = True


class ScriptedDriver(SensorDriver[ScriptConfig]):
    """Replays a fixed script of read outcomes.

    Each script entry is either a ``{Quantity: value}`` dict (returned as-is),
    ``None`` (a failed transaction) or an exception instance (raised). Once
    the script is exhausted every read fails.
    """

    config_class = ScriptConfig

    def __init__(self, config: ScriptConfig, script: Iterable[Any] = ()) -> None:
        super().__init__(config)
        self.script = list(script)
        self.reads = 0
        self.torn_down = False

    def probe(self) -> bool:
        return self.config.present

    def read(self) -> dict[Quantity, float | None]:
        self.reads += 1
        if not self.script:
            raise SensorReadError("script exhausted")
        item = self.script.pop(0)
        if item is None:
            raise SensorReadError("scripted failure")
        if isinstance(item, Exception):
            raise item
        return dict(item)

    def teardown(self) -> None:
        self.torn_down = True


class ScriptedBarometer(ScriptedDriver):
    source = SensorSource.BAROMETRIC


class ScriptedHumiditySensor(ScriptedDriver):
    source = SensorSource.HUMIDITY_TEMP


class ScriptedObjectThermometer(ScriptedDriver):
    source = SensorSource.OBJECT_TEMP


def baro(altitude: float = 100.0, pressure: float = 1000.0, temperature: float = 15.0) -> dict:
    return {
        Quantity.BARO_ALTITUDE: altitude,
        Quantity.BARO_PRESSURE: pressure,
        Quantity.BARO_TEMPERATURE: temperature,
    }


def humid(temperature: float = 20.0, humidity: float = 50.0) -> dict:
    return {Quantity.HUMIDITY_TEMPERATURE: temperature, Quantity.HUMIDITY: humidity}


def envelope(temperature_c: float) -> dict:
    return {Quantity.OBJECT_TEMPERATURE: temperature_c}


# --------------------------------------------------------------------------- #
#  Fixtures                                                                    #
# --------------------------------------------------------------------------- #


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(start_ms=10_000)


@pytest.fixture
def store() -> SensorReadingStore:
    return SensorReadingStore()


@pytest.fixture
def wire_record() -> dict[str, Any]:
    return {
        "envelope_f": 180.0,
        "ambient_f": 60.0,
        "humidity_pct": 45,
        "pressure_hpa": 1000.0,
        "altitude_m": 120.0,
        "ambient_source": "humidity",
        "ts_ms": 5_000,
    }


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    # CLI tests configure structlog against CliRunner's streams, which are
    # closed once the invocation returns.
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
