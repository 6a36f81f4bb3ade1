"""IndicatorController — owns the single active indicator mode."""

from __future__ import annotations

from typing import Protocol

import structlog

from envtel.indicator.waveform import IndicatorMode, level

log = structlog.get_logger(__name__)


class IndicatorOutput(Protocol):
    """Physical output driver (GPIO pin, NeoPixel, ...)."""

    def set_level(self, on: bool) -> None: ...


class IndicatorController:
    """Holds the active :class:`IndicatorMode` and samples its waveform.

    Mode changes come from higher-level state only: the boot sequence
    (DOUBLE_PULSE while initialising), readiness (SOLID) and overheat
    requests. The waveform time base starts when the controller is created.
    """

    def __init__(
        self,
        origin_ms: int = 0,
        mode: IndicatorMode = IndicatorMode.DOUBLE_PULSE,
        output: IndicatorOutput | None = None,
    ) -> None:
        self._origin_ms = origin_ms
        self._mode = mode
        self._output = output
        self._last_level: bool | None = None

    @property
    def mode(self) -> IndicatorMode:
        return self._mode

    def request(self, mode: IndicatorMode) -> bool:
        """Switch to ``mode``. Returns True if the mode actually changed."""
        if mode == self._mode:
            return False
        log.debug("indicator.mode", previous=self._mode.value, mode=mode.value)
        self._mode = mode
        return True

    def level(self, now_ms: int) -> bool:
        return level(self._mode, now_ms - self._origin_ms)

    def refresh(self, now_ms: int) -> bool:
        """Sample the waveform and push edges to the output driver."""
        current = self.level(now_ms)
        if self._output is not None and current != self._last_level:
            self._output.set_level(current)
        self._last_level = current
        return current
