"""Overheat state machine and indicator waveforms."""

from envtel.indicator.controller import IndicatorController, IndicatorOutput
from envtel.indicator.hysteresis import OverheatConfig, OverheatHysteresis, OverheatState
from envtel.indicator.waveform import IndicatorMode, level, trace

__all__ = [
    "IndicatorController",
    "IndicatorOutput",
    "OverheatConfig",
    "OverheatHysteresis",
    "OverheatState",
    "IndicatorMode",
    "level",
    "trace",
]
