"""Acquisition metrics — per-source counters and timing without external dependencies.

These are intentionally simple in-process accumulators. Bridge them to an
external collector through the ``HookManager`` in ``hooks.py`` if needed.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from threading import Lock


@dataclass
class SourceMetric:
    """Per-source accumulated metrics."""

    name: str
    polls: int = 0
    successes: int = 0
    failures: int = 0
    retries: int = 0
    rejected_values: int = 0
    total_elapsed_s: float = 0.0

    @property
    def avg_elapsed_s(self) -> float:
        if self.polls == 0:
            return 0.0
        return self.total_elapsed_s / self.polls

    @property
    def success_ratio(self) -> float:
        if self.polls == 0:
            return 0.0
        return self.successes / self.polls


class AcquisitionMetrics:
    """Thread-safe accumulator for one node session."""

    def __init__(self, node_name: str) -> None:
        self.node_name = node_name
        self._lock = Lock()
        self._sources: dict[str, SourceMetric] = {}
        self._ticks: int = 0
        self._empty_snapshots: int = 0
        self._start_time: float = time.perf_counter()

    # ------------------------------------------------------------------ #
    #  Recording                                                           #
    # ------------------------------------------------------------------ #

    def record_tick(self, empty: bool = False) -> None:
        with self._lock:
            self._ticks += 1
            if empty:
                self._empty_snapshots += 1

    def record_poll(
        self,
        source: str,
        ok: bool,
        attempts: int,
        elapsed_s: float,
        rejected_values: int = 0,
    ) -> None:
        with self._lock:
            if source not in self._sources:
                self._sources[source] = SourceMetric(name=source)
            m = self._sources[source]
            m.polls += 1
            m.retries += max(0, attempts - 1)
            m.rejected_values += rejected_values
            m.total_elapsed_s += elapsed_s
            if ok:
                m.successes += 1
            else:
                m.failures += 1

    # ------------------------------------------------------------------ #
    #  Querying                                                            #
    # ------------------------------------------------------------------ #

    @property
    def ticks(self) -> int:
        return self._ticks

    @property
    def empty_snapshots(self) -> int:
        return self._empty_snapshots

    @property
    def elapsed_s(self) -> float:
        return time.perf_counter() - self._start_time

    def source(self, name: str) -> SourceMetric | None:
        return self._sources.get(name)

    def all_sources(self) -> list[SourceMetric]:
        return list(self._sources.values())

    def snapshot(self) -> dict[str, object]:
        """Return a serialisable metrics snapshot."""
        with self._lock:
            return {
                "node": self.node_name,
                "elapsed_s": round(self.elapsed_s, 4),
                "ticks": self._ticks,
                "empty_snapshots": self._empty_snapshots,
                "sources": {
                    name: {
                        "polls": m.polls,
                        "successes": m.successes,
                        "failures": m.failures,
                        "retries": m.retries,
                        "rejected_values": m.rejected_values,
                        "avg_elapsed_s": round(m.avg_elapsed_s, 6),
                    }
                    for name, m in self._sources.items()
                },
            }
