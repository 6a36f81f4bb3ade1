"""Connectivity liveness from time since the last successful fetch."""

from __future__ import annotations

from collections import deque
from enum import StrEnum

LIVE_BELOW_MS = 3000
DEGRADED_BELOW_MS = 8000
RTT_SAMPLES = 20


class LivenessState(StrEnum):
    LIVE = "live"
    DEGRADED = "degraded"
    OFFLINE = "offline"


def classify(age_ms: float | None) -> LivenessState:
    if age_ms is None:
        return LivenessState.OFFLINE
    if age_ms < LIVE_BELOW_MS:
        return LivenessState.LIVE
    if age_ms < DEGRADED_BELOW_MS:
        return LivenessState.DEGRADED
    return LivenessState.OFFLINE


class LivenessClassifier:
    """Last-contact tracker plus a FIFO buffer of round-trip times."""

    def __init__(self, rtt_samples: int = RTT_SAMPLES) -> None:
        self._last_contact_ms: int | None = None
        self._rtts: deque[float] = deque(maxlen=rtt_samples)

    def mark_contact(self, now_ms: int, rtt_ms: float | None = None) -> None:
        self._last_contact_ms = now_ms
        if rtt_ms is not None:
            self._rtts.append(rtt_ms)

    @property
    def last_contact_ms(self) -> int | None:
        return self._last_contact_ms

    def age_ms(self, now_ms: int) -> int | None:
        if self._last_contact_ms is None:
            return None
        return now_ms - self._last_contact_ms

    def state(self, now_ms: int) -> LivenessState:
        return classify(self.age_ms(now_ms))

    @property
    def rtt_samples(self) -> list[float]:
        return list(self._rtts)

    @property
    def avg_rtt_ms(self) -> float | None:
        if not self._rtts:
            return None
        return sum(self._rtts) / len(self._rtts)
