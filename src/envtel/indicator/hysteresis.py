"""Overheat hysteresis — a two-threshold state machine on envelope temperature.

::

    NORMAL ──(temp >= upper_f)──▶ OVERHEATED
    OVERHEATED ──(temp <= lower_f)──▶ NORMAL

Readings strictly between the thresholds never cause a transition, so a
temperature hovering around either threshold cannot make the indicator
chatter.
"""

from __future__ import annotations

from enum import StrEnum

import structlog
from pydantic import BaseModel, model_validator

from envtel.indicator.waveform import IndicatorMode

log = structlog.get_logger(__name__)


class OverheatState(StrEnum):
    NORMAL = "normal"
    OVERHEATED = "overheated"


class OverheatConfig(BaseModel):
    upper_f: float = 200.0
    lower_f: float = 195.0

    @model_validator(mode="after")
    def _check_band(self) -> OverheatConfig:
        if self.lower_f >= self.upper_f:
            raise ValueError(
                f"lower_f ({self.lower_f}) must be below upper_f ({self.upper_f})"
            )
        return self


class OverheatHysteresis:
    """Tracks :class:`OverheatState` and emits indicator mode requests.

    The machine has no knowledge of the waveform: :meth:`update` only returns
    the mode it wants shown after a transition, or ``None``.
    """

    ENTER_MODE = IndicatorMode.FAST_BLINK
    EXIT_MODE = IndicatorMode.SOLID

    def __init__(self, config: OverheatConfig | None = None) -> None:
        self.config = config or OverheatConfig()
        self._state = OverheatState.NORMAL
        self._transitions = 0

    @property
    def state(self) -> OverheatState:
        return self._state

    @property
    def transitions(self) -> int:
        return self._transitions

    def update(self, envelope_f: float) -> IndicatorMode | None:
        """Feed one valid envelope temperature in °F."""
        if self._state == OverheatState.NORMAL and envelope_f >= self.config.upper_f:
            self._enter(OverheatState.OVERHEATED, envelope_f)
            return self.ENTER_MODE
        if self._state == OverheatState.OVERHEATED and envelope_f <= self.config.lower_f:
            self._enter(OverheatState.NORMAL, envelope_f)
            return self.EXIT_MODE
        return None

    def _enter(self, state: OverheatState, envelope_f: float) -> None:
        log.info(
            "overheat.changed",
            previous=self._state.value,
            state=state.value,
            envelope_f=round(envelope_f, 1),
        )
        self._state = state
        self._transitions += 1
