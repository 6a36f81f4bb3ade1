"""FlightMetricsEngine — consumer-side derived flight metrics.

Derived fields
--------------
``baseline_m``
    Altitude captured by :meth:`FlightMetricsEngine.reset_baseline`, or the
    first valid altitude seen while no baseline is set.
``delta_m``
    Current altitude minus baseline; ``None`` if either is absent.
``vertical_speed_mps``
    Exponentially smoothed climb rate,
    ``v = a*v + (1 - a)*(alt - alt_prev)/dt`` with ``a = 0.7``. Updated only
    when both altitudes are present; otherwise the previous value is kept.

A record whose timestamp is not newer than the last applied one leaves every
field untouched. :meth:`FlightMetricsEngine.clear_rate` lifts that guard so a
restarted node's clock can be followed again.
``lift``
    Buoyancy estimate for the configured envelope diameter.

Every public mutator recomputes all derived fields before returning, so
:attr:`FlightMetricsEngine.metrics` is never out of date.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated

import structlog
from pydantic import BaseModel, Field

from envtel.client.physics import STANDARD_PRESSURE_HPA, LiftEstimate, estimate_lift
from envtel.core.codec import WireRecord

log = structlog.get_logger(__name__)


class EngineConfig(BaseModel):
    diameter_ft: Annotated[float, Field(gt=0, le=500)] = 20.0
    smoothing: Annotated[float, Field(ge=0, lt=1)] = 0.7
    fallback_pressure_hpa: Annotated[float, Field(gt=0)] = STANDARD_PRESSURE_HPA


@dataclass(frozen=True)
class FlightMetrics:
    captured_ms: int | None = None
    altitude_m: float | None = None
    baseline_m: float | None = None
    delta_m: float | None = None
    vertical_speed_mps: float = 0.0
    ambient_f: float | None = None
    envelope_f: float | None = None
    pressure_hpa: float | None = None
    lift: LiftEstimate | None = None


class FlightMetricsEngine:
    """Single-writer owner of baseline, climb-rate and lift state."""

    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or EngineConfig()
        self._latest: WireRecord | None = None
        self._baseline: float | None = None
        self._velocity = 0.0
        self._prev_ts: int | None = None
        self._prev_alt: float | None = None
        self._metrics = FlightMetrics()

    @property
    def metrics(self) -> FlightMetrics:
        return self._metrics

    @property
    def baseline_m(self) -> float | None:
        return self._baseline

    @property
    def diameter_ft(self) -> float:
        return self.config.diameter_ft

    # ------------------------------------------------------------------ #
    #  Mutators                                                            #
    # ------------------------------------------------------------------ #

    def ingest(self, record: WireRecord) -> FlightMetrics:
        """Apply one record. Records not newer than the last one are ignored."""
        if self._prev_ts is not None and record.ts_ms <= self._prev_ts:
            log.debug("flight.record_stale", ts_ms=record.ts_ms, newest_ms=self._prev_ts)
            return self._metrics

        alt = record.altitude_m
        if self._prev_ts is not None and alt is not None and self._prev_alt is not None:
            dt_s = (record.ts_ms - self._prev_ts) / 1000.0
            rate = (alt - self._prev_alt) / dt_s
            a = self.config.smoothing
            self._velocity = a * self._velocity + (1.0 - a) * rate
        self._prev_ts = record.ts_ms
        self._prev_alt = alt

        if self._baseline is None and alt is not None:
            self._baseline = alt
            log.info("flight.baseline_captured", baseline_m=alt)

        self._latest = record
        return self.recompute()

    def reset_baseline(self) -> FlightMetrics:
        """Zero the altitude delta at the current altitude (or clear it)."""
        self._baseline = self._latest.altitude_m if self._latest is not None else None
        log.info("flight.baseline_reset", baseline_m=self._baseline)
        return self.recompute()

    def set_diameter(self, diameter_ft: float) -> FlightMetrics:
        self.config = self.config.model_copy(
            update={"diameter_ft": EngineConfig(diameter_ft=diameter_ft).diameter_ft}
        )
        return self.recompute()

    def clear_rate(self) -> FlightMetrics:
        """Forget the climb-rate history, e.g. after the node restarted."""
        self._velocity = 0.0
        self._prev_ts = None
        self._prev_alt = None
        return self.recompute()

    def recompute(self) -> FlightMetrics:
        record = self._latest
        if record is None:
            self._metrics = FlightMetrics(
                baseline_m=self._baseline,
                vertical_speed_mps=self._velocity,
            )
            return self._metrics

        alt = record.altitude_m
        delta = alt - self._baseline if alt is not None and self._baseline is not None else None

        self._metrics = FlightMetrics(
            captured_ms=record.ts_ms,
            altitude_m=alt,
            baseline_m=self._baseline,
            delta_m=delta,
            vertical_speed_mps=self._velocity,
            ambient_f=record.ambient_f,
            envelope_f=record.envelope_f,
            pressure_hpa=record.pressure_hpa,
            lift=self._lift(record),
        )
        return self._metrics

    def _lift(self, record: WireRecord) -> LiftEstimate | None:
        if record.ambient_f is None or record.envelope_f is None:
            return None
        pressure = record.pressure_hpa if record.pressure_hpa is not None else self.config.fallback_pressure_hpa
        try:
            return estimate_lift(self.config.diameter_ft, record.ambient_f, record.envelope_f, pressure)
        except ValueError as exc:
            log.warning("flight.lift_undefined", error=str(exc))
            return None
