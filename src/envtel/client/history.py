"""TemperatureHistoryWindow — time-bounded series of paired temperatures for charting."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass

import pandas as pd
import structlog

log = structlog.get_logger(__name__)

HORIZON_CHOICES_MIN = (2, 5, 10, 15)
DEFAULT_HORIZON_MIN = 5


@dataclass(frozen=True)
class HistorySample:
    ts_ms: int
    ambient_f: float | None
    envelope_f: float | None


class TemperatureHistoryWindow:
    """Append-only samples, evicted from the front once older than the horizon.

    Changing the horizon narrows :meth:`view` at once but only evicts on the
    next :meth:`ingest`, so shrinking and re-growing before then shows the
    retained points again.
    """

    def __init__(
        self,
        horizon_min: int = DEFAULT_HORIZON_MIN,
        choices: tuple[int, ...] = HORIZON_CHOICES_MIN,
    ) -> None:
        self._choices = choices
        self._samples: deque[HistorySample] = deque()
        self._horizon_min = self._validate(horizon_min)

    def _validate(self, minutes: int) -> int:
        if minutes not in self._choices:
            raise ValueError(f"Horizon must be one of {list(self._choices)} minutes, got {minutes}")
        return minutes

    @property
    def horizon_min(self) -> int:
        return self._horizon_min

    @property
    def horizon_ms(self) -> int:
        return self._horizon_min * 60_000

    def set_horizon(self, minutes: int) -> None:
        self._horizon_min = self._validate(minutes)
        log.debug("history.horizon_changed", minutes=minutes)

    def ingest(self, ts_ms: int, ambient_f: float | None, envelope_f: float | None) -> bool:
        """Append a sample and evict expired ones. Out-of-order samples are refused."""
        if self._samples and ts_ms < self._samples[-1].ts_ms:
            log.debug("history.sample_refused", ts_ms=ts_ms, newest_ms=self._samples[-1].ts_ms)
            return False
        self._samples.append(HistorySample(ts_ms, ambient_f, envelope_f))
        self.evict(ts_ms)
        return True

    def evict(self, now_ms: int) -> int:
        cutoff = now_ms - self.horizon_ms
        evicted = 0
        while self._samples and self._samples[0].ts_ms < cutoff:
            self._samples.popleft()
            evicted += 1
        return evicted

    def clear(self) -> None:
        self._samples.clear()

    def view(self, now_ms: int | None = None) -> list[HistorySample]:
        """Samples within the current horizon of ``now_ms`` (default: newest sample)."""
        if not self._samples:
            return []
        now = self._samples[-1].ts_ms if now_ms is None else now_ms
        cutoff = now - self.horizon_ms
        return [s for s in self._samples if s.ts_ms >= cutoff]

    def to_dataframe(self, now_ms: int | None = None) -> pd.DataFrame:
        """Tidy frame for charting: one row per sample, absent values as NaN."""
        rows = [
            {"ts_ms": s.ts_ms, "ambient_f": s.ambient_f, "envelope_f": s.envelope_f}
            for s in self.view(now_ms)
        ]
        if not rows:
            return pd.DataFrame(columns=["ts_ms", "ambient_f", "envelope_f"])
        return pd.DataFrame(rows).astype({"ambient_f": "float64", "envelope_f": "float64"})

    def __iter__(self) -> Iterator[HistorySample]:
        return iter(self._samples)

    def __len__(self) -> int:
        return len(self._samples)

    def __repr__(self) -> str:
        return f"TemperatureHistoryWindow(horizon_min={self._horizon_min}, samples={len(self._samples)})"
