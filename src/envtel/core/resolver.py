"""FallbackResolver — composes the snapshot and picks the ambient source."""

from __future__ import annotations

from envtel.core.store import SensorReadingStore
from envtel.models.measurement import Quantity
from envtel.models.snapshot import AmbientSource, TelemetrySnapshot


class FallbackResolver:
    """Build read-only snapshots from a :class:`SensorReadingStore`.

    The ambient policy is evaluated on every :meth:`build` call: the
    humidity sensor's temperature wins whenever it has a valid reading,
    otherwise the barometer's temperature is used. A humidity sensor that
    recovers is therefore picked up on the very next snapshot.
    """

    def __init__(self, store: SensorReadingStore) -> None:
        self._store = store

    def resolve_ambient(self) -> tuple[float | None, AmbientSource]:
        humidity_temp = self._store.value(Quantity.HUMIDITY_TEMPERATURE)
        if humidity_temp is not None:
            return humidity_temp, AmbientSource.HUMIDITY
        return self._store.value(Quantity.BARO_TEMPERATURE), AmbientSource.BAROMETRIC

    def build(self, now_ms: int) -> TelemetrySnapshot:
        ambient, source = self.resolve_ambient()
        return TelemetrySnapshot(
            envelope_temp_c=self._store.value(Quantity.OBJECT_TEMPERATURE),
            ambient_temp_c=ambient,
            ambient_source=source,
            humidity_pct=self._store.value(Quantity.HUMIDITY),
            pressure_hpa=self._store.value(Quantity.BARO_PRESSURE),
            altitude_m=self._store.value(Quantity.BARO_ALTITUDE),
            captured_ms=now_ms,
        )
