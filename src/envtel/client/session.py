"""TelemetryClient — the remote observer's ingest task.

One client instance is driven from one task (a UI event loop or a polling
coroutine). It accepts wire records in whatever order the network delivers
them and keeps every derived view consistent.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog

from envtel.client.flight import EngineConfig, FlightMetrics, FlightMetricsEngine
from envtel.client.history import HistorySample, TemperatureHistoryWindow
from envtel.client.liveness import LivenessClassifier, LivenessState
from envtel.core.codec import WireRecord, decode

log = structlog.get_logger(__name__)

PLACEHOLDER = "--"

# A capture clock jumping back further than this, twice in a row, means the
# node rebooted.
RESTART_GAP_MS = 10_000


def format_value(value: float | None, decimals: int = 1, unit: str = "") -> str:
    """Render a reading for display, using ``--`` for an absent value."""
    if value is None:
        return PLACEHOLDER
    text = f"{value:.{decimals}f}"
    return f"{text} {unit}".rstrip() if unit else text


@dataclass(frozen=True)
class DashboardView:
    metrics: FlightMetrics
    liveness: LivenessState
    avg_rtt_ms: float | None
    record: WireRecord | None
    history: list[HistorySample] = field(default_factory=list)


class TelemetryClient:
    """Feeds decoded records to the engine, history window and liveness tracker."""

    def __init__(
        self,
        engine: FlightMetricsEngine | None = None,
        history: TemperatureHistoryWindow | None = None,
        liveness: LivenessClassifier | None = None,
        restart_gap_ms: int = RESTART_GAP_MS,
    ) -> None:
        self.engine = engine or FlightMetricsEngine(EngineConfig())
        self.history = history or TemperatureHistoryWindow()
        self.liveness = liveness or LivenessClassifier()
        self.restart_gap_ms = restart_gap_ms
        self._record: WireRecord | None = None
        self._restart_candidate: WireRecord | None = None
        self.accepted = 0
        self.rejected = 0

    @property
    def latest(self) -> WireRecord | None:
        return self._record

    def ingest(
        self,
        raw: Mapping[str, Any] | str | bytes | WireRecord,
        now_ms: int,
        rtt_ms: float | None = None,
    ) -> bool:
        """Process one fetched record. Returns True if it advanced the view."""
        try:
            record = raw if isinstance(raw, WireRecord) else decode(raw)
        except ValueError as exc:
            log.warning("client.record_malformed", error=str(exc))
            self.rejected += 1
            return False

        self.liveness.mark_contact(now_ms, rtt_ms)

        if self._record is not None and record.ts_ms <= self._record.ts_ms:
            if self._record.ts_ms - record.ts_ms <= self.restart_gap_ms:
                reason = "duplicate" if record.ts_ms == self._record.ts_ms else "out_of_order"
                log.debug("client.record_rejected", ts_ms=record.ts_ms, reason=reason)
                self.rejected += 1
                return False

            # A restart is confirmed by a second record that is also behind the old clock
            # and ahead of the first one.
            candidate = self._restart_candidate
            if candidate is None or record.ts_ms <= candidate.ts_ms:
                log.debug("client.restart_suspected", ts_ms=record.ts_ms, previous_ms=self._record.ts_ms)
                self._restart_candidate = record
                self.rejected += 1
                return False

            log.info("client.node_restarted", ts_ms=candidate.ts_ms, previous_ms=self._record.ts_ms)
            self.history.clear()
            self.engine.clear_rate()
            self.rejected -= 1
            self._apply(candidate)

        self._apply(record)
        return True

    def _apply(self, record: WireRecord) -> None:
        self._restart_candidate = None
        self._record = record
        self.engine.ingest(record)
        self.history.ingest(record.ts_ms, record.ambient_f, record.envelope_f)
        self.accepted += 1

    # ------------------------------------------------------------------ #
    #  Commands                                                            #
    # ------------------------------------------------------------------ #

    def reset_baseline(self) -> FlightMetrics:
        return self.engine.reset_baseline()

    def set_diameter(self, diameter_ft: float) -> FlightMetrics:
        return self.engine.set_diameter(diameter_ft)

    def set_window(self, minutes: int) -> FlightMetrics:
        self.history.set_horizon(minutes)
        return self.engine.recompute()

    # ------------------------------------------------------------------ #
    #  Views                                                               #
    # ------------------------------------------------------------------ #

    def view(self, now_ms: int) -> DashboardView:
        history_now = self._record.ts_ms if self._record is not None else None
        return DashboardView(
            metrics=self.engine.metrics,
            liveness=self.liveness.state(now_ms),
            avg_rtt_ms=self.liveness.avg_rtt_ms,
            record=self._record,
            history=self.history.view(history_now),
        )
