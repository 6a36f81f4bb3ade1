"""Measurement models — semantic sensor values with an explicit validity flag."""

from __future__ import annotations

import math
from enum import StrEnum

from pydantic import BaseModel, model_validator


class Unit(StrEnum):
    CELSIUS = "degC"
    FAHRENHEIT = "degF"
    HECTOPASCAL = "hPa"
    PERCENT = "%"
    METRE = "m"


class SensorSource(StrEnum):
    """Physical sensor packages fitted to the node."""

    BAROMETRIC = "barometric"
    HUMIDITY_TEMP = "humidity_temp"
    OBJECT_TEMP = "object_temp"


class Quantity(StrEnum):
    """One measured quantity of one source.

    Temperatures are keyed per source so the ambient fallback can choose
    between them.
    """

    BARO_ALTITUDE = "baro_altitude"
    BARO_PRESSURE = "baro_pressure"
    BARO_TEMPERATURE = "baro_temperature"
    HUMIDITY_TEMPERATURE = "humidity_temperature"
    HUMIDITY = "humidity"
    OBJECT_TEMPERATURE = "object_temperature"

    @property
    def source(self) -> SensorSource:
        return _QUANTITY_SOURCE[self]

    @property
    def unit(self) -> Unit:
        return _QUANTITY_UNIT[self]


_QUANTITY_SOURCE: dict[Quantity, SensorSource] = {
    Quantity.BARO_ALTITUDE: SensorSource.BAROMETRIC,
    Quantity.BARO_PRESSURE: SensorSource.BAROMETRIC,
    Quantity.BARO_TEMPERATURE: SensorSource.BAROMETRIC,
    Quantity.HUMIDITY_TEMPERATURE: SensorSource.HUMIDITY_TEMP,
    Quantity.HUMIDITY: SensorSource.HUMIDITY_TEMP,
    Quantity.OBJECT_TEMPERATURE: SensorSource.OBJECT_TEMP,
}

_QUANTITY_UNIT: dict[Quantity, Unit] = {
    Quantity.BARO_ALTITUDE: Unit.METRE,
    Quantity.BARO_PRESSURE: Unit.HECTOPASCAL,
    Quantity.BARO_TEMPERATURE: Unit.CELSIUS,
    Quantity.HUMIDITY_TEMPERATURE: Unit.CELSIUS,
    Quantity.HUMIDITY: Unit.PERCENT,
    Quantity.OBJECT_TEMPERATURE: Unit.CELSIUS,
}


class Measurement(BaseModel):
    """A value plus validity flag.

    An invalid measurement never carries a number: ``value`` is forced to
    ``None`` so nothing downstream can mistake a glitch for a reading.
    """

    model_config = {"frozen": True}

    value: float | None = None
    valid: bool = False
    unit: Unit | None = None

    @model_validator(mode="after")
    def _enforce_absent_value(self) -> Measurement:
        if self.value is None or not math.isfinite(self.value):
            object.__setattr__(self, "valid", False)
        if not self.valid:
            object.__setattr__(self, "value", None)
        return self

    @classmethod
    def of(cls, value: float | None, unit: Unit | None = None) -> Measurement:
        return cls(value=value, valid=value is not None, unit=unit)

    @classmethod
    def absent(cls, unit: Unit | None = None) -> Measurement:
        return cls(unit=unit)

    @property
    def present(self) -> bool:
        return self.valid
