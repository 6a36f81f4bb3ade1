"""AcquisitionScheduler — independently paced polling of each sensor source.

Each source class has its own cadence because the parts stabilise and read
at different speeds:

  - Barometric   single attempt per due tick; a failure is simply skipped
  - HumidityTemp bounded retry with a fixed short backoff between attempts
  - ObjectTemp   single attempt per due tick

Presence is established once by :meth:`AcquisitionScheduler.start`. A source
that fails its probe is never polled again for the session, which keeps the
bus quiet and the log free of repeated errors.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from typing import Annotated

import structlog
from pydantic import BaseModel, Field, model_validator

from envtel.core.base import OpStatus, ReadResult, SensorDriver
from envtel.core.store import SensorReadingStore
from envtel.core.units import normalize_pressure_hpa
from envtel.models.measurement import Measurement, Quantity, SensorSource

log = structlog.get_logger(__name__)

DEFAULT_PLAUSIBLE_RANGES: dict[Quantity, tuple[float, float]] = {
    Quantity.BARO_ALTITUDE: (-500.0, 12000.0),
    Quantity.BARO_PRESSURE: (100.0, 1100.0),
    Quantity.BARO_TEMPERATURE: (-60.0, 85.0),
    Quantity.HUMIDITY_TEMPERATURE: (-40.0, 80.0),
    Quantity.HUMIDITY: (0.0, 100.0),
    Quantity.OBJECT_TEMPERATURE: (-70.0, 380.0),
}


class AcquisitionConfig(BaseModel):
    barometric_interval_ms: Annotated[int, Field(gt=0)] = 1000
    humidity_interval_ms: Annotated[int, Field(gt=0)] = 2000
    object_interval_ms: Annotated[int, Field(gt=0)] = 500
    humidity_attempts: Annotated[int, Field(ge=1, le=10)] = 3
    humidity_backoff_ms: Annotated[int, Field(ge=0, le=1000)] = 100
    plausible_ranges: dict[Quantity, tuple[float, float]] = Field(
        default_factory=lambda: dict(DEFAULT_PLAUSIBLE_RANGES),
        description="Inclusive (low, high) bounds in canonical units; outside is a failed read",
    )

    @model_validator(mode="after")
    def _check_ranges(self) -> AcquisitionConfig:
        for quantity, (low, high) in self.plausible_ranges.items():
            if low >= high:
                raise ValueError(f"Empty plausible range for {quantity}: ({low}, {high})")
        return self

    def interval_ms(self, source: SensorSource) -> int:
        if source == SensorSource.BAROMETRIC:
            return self.barometric_interval_ms
        if source == SensorSource.HUMIDITY_TEMP:
            return self.humidity_interval_ms
        return self.object_interval_ms

    def attempts(self, source: SensorSource) -> int:
        return self.humidity_attempts if source == SensorSource.HUMIDITY_TEMP else 1


class AcquisitionScheduler:
    """Polls the present drivers on their own cadences and feeds the store.

    The scheduler is the only writer of the :class:`SensorReadingStore` it is
    given. Everything runs on the caller's thread; the only pauses are the
    fixed humidity backoff delays.
    """

    def __init__(
        self,
        config: AcquisitionConfig,
        drivers: list[SensorDriver],  # type: ignore[type-arg]
        store: SensorReadingStore,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.store = store
        self._sleep = sleep
        self._drivers: dict[SensorSource, SensorDriver] = {}  # type: ignore[type-arg]
        for driver in drivers:
            if driver.source in self._drivers:
                raise ValueError(f"More than one driver for source '{driver.source}'")
            self._drivers[driver.source] = driver
        self._present: set[SensorSource] = set()
        self._next_due: dict[SensorSource, int] = {}
        self._started = False

    # ------------------------------------------------------------------ #
    #  Lifecycle                                                           #
    # ------------------------------------------------------------------ #

    def start(self, now_ms: int) -> set[SensorSource]:
        """Probe every driver once and return the set of present sources."""
        self._present.clear()
        for source, driver in self._drivers.items():
            if self._probe(driver):
                self._present.add(source)
                self._next_due[source] = now_ms
                log.info("source.present", source=source.value, driver=driver.name)
            else:
                log.warning("source.absent", source=source.value, driver=driver.name)
        self._started = True
        return set(self._present)

    def stop(self) -> None:
        for driver in self._drivers.values():
            try:
                driver.teardown()
            except Exception as exc:
                log.warning("source.teardown_failed", driver=driver.name, error=str(exc))
        self._started = False

    def _probe(self, driver: SensorDriver) -> bool:  # type: ignore[type-arg]
        try:
            driver.setup()
            return bool(driver.probe())
        except Exception as exc:
            log.debug("source.probe_error", driver=driver.name, error=str(exc))
            return False

    @property
    def present(self) -> set[SensorSource]:
        return set(self._present)

    @property
    def absent(self) -> set[SensorSource]:
        return set(self._drivers) - self._present

    # ------------------------------------------------------------------ #
    #  Polling                                                             #
    # ------------------------------------------------------------------ #

    def due(self, now_ms: int) -> list[SensorSource]:
        return [
            source
            for source in self._drivers
            if source in self._present and now_ms >= self._next_due[source]
        ]

    def poll(self, now_ms: int) -> list[ReadResult]:
        """Poll every due source once (with retries where configured)."""
        if not self._started:
            raise RuntimeError("AcquisitionScheduler.start() must be called before poll()")
        results: list[ReadResult] = []
        for source in self.due(now_ms):
            results.append(self._poll_source(self._drivers[source], now_ms))
            self._next_due[source] = now_ms + self.config.interval_ms(source)
        return results

    def _poll_source(self, driver: SensorDriver, now_ms: int) -> ReadResult:  # type: ignore[type-arg]
        max_attempts = self.config.attempts(driver.source)
        backoff_s = self.config.humidity_backoff_ms / 1000.0
        elapsed = 0.0
        rejected = 0
        last_error: Exception | None = None

        for attempt in range(1, max_attempts + 1):
            raw = driver._timed_read()
            elapsed += raw.elapsed_s
            if raw.ok:
                accepted, n_rejected = self._accept(driver.source, raw.values)
                rejected += n_rejected
                if accepted:
                    for quantity, value in accepted.items():
                        self.store.update(quantity, Measurement.of(value, quantity.unit), now_ms)
                    if attempt > 1:
                        log.info("source.read_recovered", source=driver.source.value, attempt=attempt)
                    return ReadResult(
                        source=driver.source,
                        status=OpStatus.SUCCESS,
                        elapsed_s=elapsed,
                        attempts=attempt,
                        values=accepted,
                        rejected=rejected,
                    )
                last_error = ValueError("no plausible values in read")
            else:
                last_error = raw.error

            if attempt < max_attempts:
                log.debug(
                    "source.read_retry",
                    source=driver.source.value,
                    attempt=attempt,
                    max_attempts=max_attempts,
                    error=str(last_error),
                )
                self._sleep(backoff_s)

        log.warning(
            "source.read_failed",
            source=driver.source.value,
            attempts=max_attempts,
            error=str(last_error),
        )
        return ReadResult(
            source=driver.source,
            status=OpStatus.FAILED,
            elapsed_s=elapsed,
            attempts=max_attempts,
            values={},
            rejected=rejected,
            error=last_error,
        )

    def _accept(
        self,
        source: SensorSource,
        values: dict[Quantity, float | None],
    ) -> tuple[dict[Quantity, float], int]:
        """Normalise and range-check raw values; implausible ones count as failed."""
        accepted: dict[Quantity, float] = {}
        rejected = 0
        for quantity, raw in values.items():
            if raw is None:
                continue
            if quantity.source != source:
                log.warning("source.foreign_quantity", source=source.value, quantity=quantity.value)
                rejected += 1
                continue
            try:
                value = float(raw)
            except (TypeError, ValueError):
                log.debug("source.value_rejected", quantity=quantity.value, value=repr(raw))
                rejected += 1
                continue
            if quantity == Quantity.BARO_PRESSURE:
                value = normalize_pressure_hpa(value)
            if not self._plausible(quantity, value):
                log.debug("source.value_rejected", quantity=quantity.value, value=value)
                rejected += 1
                continue
            accepted[quantity] = value
        return accepted, rejected

    def _plausible(self, quantity: Quantity, value: float) -> bool:
        if not math.isfinite(value):
            return False
        bounds = self.config.plausible_ranges.get(quantity)
        if bounds is None:
            return True
        low, high = bounds
        return low <= value <= high
