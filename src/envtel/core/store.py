"""SensorReadingStore — last-known-good value per quantity."""

from __future__ import annotations

from dataclasses import dataclass

from envtel.models.measurement import Measurement, Quantity


@dataclass(frozen=True)
class StoredReading:
    measurement: Measurement
    updated_ms: int


class SensorReadingStore:
    """Holds the most recent *valid* measurement for each quantity.

    Invalid updates are ignored, so readers only ever see a real past value
    or "never observed". One instance is owned by the node and handed to the
    scheduler (writer) and resolver (reader).
    """

    def __init__(self) -> None:
        self._readings: dict[Quantity, StoredReading] = {}

    def update(self, quantity: Quantity, measurement: Measurement, now_ms: int) -> bool:
        """Store ``measurement`` if valid. Returns True when the store changed."""
        if not measurement.valid:
            return False
        self._readings[quantity] = StoredReading(measurement=measurement, updated_ms=now_ms)
        return True

    def get(self, quantity: Quantity) -> Measurement:
        reading = self._readings.get(quantity)
        if reading is None:
            return Measurement.absent(unit=quantity.unit)
        return reading.measurement

    def value(self, quantity: Quantity) -> float | None:
        return self.get(quantity).value

    def age_ms(self, quantity: Quantity, now_ms: int) -> int | None:
        """Milliseconds since the last valid update, ``None`` if never observed."""
        reading = self._readings.get(quantity)
        if reading is None:
            return None
        return now_ms - reading.updated_ms

    def observed(self) -> list[Quantity]:
        return list(self._readings)

    def __contains__(self, quantity: object) -> bool:
        return quantity in self._readings

    def __len__(self) -> int:
        return len(self._readings)

    def __repr__(self) -> str:
        return f"SensorReadingStore(observed={[q.value for q in self._readings]})"
