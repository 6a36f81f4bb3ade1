"""Indicator waveforms — a pure function from (mode, elapsed time) to LED level."""

from __future__ import annotations

from enum import StrEnum


class IndicatorMode(StrEnum):
    OFF = "off"
    SOLID = "solid"
    SLOW_BLINK = "slow_blink"
    FAST_BLINK = "fast_blink"
    DOUBLE_PULSE = "double_pulse"


SLOW_BLINK_HALF_PERIOD_MS = 500
FAST_BLINK_HALF_PERIOD_MS = 50

DOUBLE_PULSE_CYCLE_MS = 1200
DOUBLE_PULSE_WIDTH_MS = 120
DOUBLE_PULSE_OFFSETS_MS = (0, 240)

# Sampling rate needed to resolve the fastest waveform.
MIN_SAMPLE_RATE_HZ = 20.0


def _square(elapsed_ms: int, half_period_ms: int) -> bool:
    return elapsed_ms % (2 * half_period_ms) < half_period_ms


def level(mode: IndicatorMode, elapsed_ms: int) -> bool:
    """Return the indicator level for ``mode`` at ``elapsed_ms``.

    Stateless: the caller owns both the mode and the time base.
    """
    if mode == IndicatorMode.OFF:
        return False
    if mode == IndicatorMode.SOLID:
        return True
    if mode == IndicatorMode.SLOW_BLINK:
        return _square(elapsed_ms, SLOW_BLINK_HALF_PERIOD_MS)
    if mode == IndicatorMode.FAST_BLINK:
        return _square(elapsed_ms, FAST_BLINK_HALF_PERIOD_MS)
    if mode == IndicatorMode.DOUBLE_PULSE:
        offset = elapsed_ms % DOUBLE_PULSE_CYCLE_MS
        return any(
            start <= offset < start + DOUBLE_PULSE_WIDTH_MS
            for start in DOUBLE_PULSE_OFFSETS_MS
        )
    raise ValueError(f"Unknown indicator mode: {mode!r}")


def trace(mode: IndicatorMode, duration_ms: int, step_ms: int = 10) -> list[bool]:
    """Sample ``mode`` every ``step_ms`` from 0 up to ``duration_ms`` (exclusive)."""
    if step_ms <= 0:
        raise ValueError("step_ms must be positive")
    return [level(mode, t) for t in range(0, duration_ms, step_ms)]
