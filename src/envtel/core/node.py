"""TelemetryNode — the cooperative acquisition loop.

Wires SensorDrivers → AcquisitionScheduler → SensorReadingStore →
FallbackResolver → SnapshotSinks, with OverheatHysteresis driving the
IndicatorController alongside.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Annotated, Any

import structlog
from pydantic import BaseModel, Field

from envtel.core.base import SensorDriver, SnapshotSink
from envtel.core.registry import registry
from envtel.core.resolver import FallbackResolver
from envtel.core.scheduler import AcquisitionConfig, AcquisitionScheduler
from envtel.core.store import SensorReadingStore
from envtel.core.units import c_to_f
from envtel.indicator.controller import IndicatorController, IndicatorOutput
from envtel.indicator.hysteresis import OverheatConfig, OverheatHysteresis, OverheatState
from envtel.indicator.waveform import MIN_SAMPLE_RATE_HZ, IndicatorMode
from envtel.models.measurement import SensorSource
from envtel.models.snapshot import TelemetrySnapshot
from envtel.observability.hooks import HookManager
from envtel.observability.logging import bind_node
from envtel.observability.metrics import AcquisitionMetrics

log = structlog.get_logger(__name__)


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


class PluginSpec(BaseModel):
    """A registry name plus the config dict for that plugin's ``config_class``."""

    kind: str
    config: dict[str, Any] = Field(default_factory=dict)


class NodeConfig(BaseModel):
    name: str = "envtel-node"
    tick_interval_ms: Annotated[int, Field(gt=0)] = 1000
    indicator_rate_hz: Annotated[float, Field(ge=MIN_SAMPLE_RATE_HZ, le=1000.0)] = 25.0
    acquisition: AcquisitionConfig = Field(default_factory=AcquisitionConfig)
    overheat: OverheatConfig = Field(default_factory=OverheatConfig)
    sources: list[PluginSpec] = Field(default_factory=list)
    sinks: list[PluginSpec] = Field(default_factory=list)

    def build_drivers(self) -> list[SensorDriver]:  # type: ignore[type-arg]
        import envtel.plugins  # noqa: F401, PLC0415

        drivers = []
        for spec in self.sources:
            cls = registry.get_source(spec.kind)
            drivers.append(cls(cls.config_class(**spec.config)))
        return drivers

    def build_sinks(self) -> list[SnapshotSink]:  # type: ignore[type-arg]
        import envtel.plugins  # noqa: F401, PLC0415

        sinks = []
        for spec in self.sinks:
            cls = registry.get_sink(spec.kind)
            sinks.append(cls(cls.config_class(**spec.config)))
        return sinks


@dataclass
class NodeRunResult:
    """Summary of a :meth:`TelemetryNode.run` session."""

    node_name: str
    ticks: int
    elapsed_s: float
    present: list[str]
    absent: list[str]
    overheat_state: OverheatState
    indicator_mode: IndicatorMode
    last_snapshot: TelemetrySnapshot | None = None
    sink_errors: list[Exception] = field(default_factory=list)
    metrics: dict[str, object] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.sink_errors

    def summary(self) -> str:
        lines = [
            f"Node '{self.node_name}': {self.ticks} tick(s)",
            f"  elapsed   : {self.elapsed_s:.3f}s",
            f"  present   : {', '.join(self.present) or '-'}",
            f"  absent    : {', '.join(self.absent) or '-'}",
            f"  overheat  : {self.overheat_state}",
            f"  indicator : {self.indicator_mode}",
        ]
        if self.sink_errors:
            lines.append(f"  sink errors: {len(self.sink_errors)}")
        for name, m in self.metrics.get("sources", {}).items():  # type: ignore[union-attr]
            lines.append(
                f"  [{name}] polls={m['polls']} ok={m['successes']} "
                f"failed={m['failures']} retries={m['retries']}"
            )
        return "\n".join(lines)


class TelemetryNode:
    """Single-threaded acquisition node.

    Usage::

        node = TelemetryNode(
            config=NodeConfig(name="envelope-1"),
            drivers=[Bmp390(cfg), Dht22(cfg), Mlx90614(cfg)],
            sinks=[NdjsonSink(cfg)],
            output=GpioLed(pin=13),
        )
        result = node.run(max_ticks=60)

    ``tick`` produces exactly one snapshot. ``run`` interleaves ticks with
    indicator refreshes so blinking stays smooth between them.
    """

    def __init__(
        self,
        config: NodeConfig,
        drivers: list[SensorDriver],  # type: ignore[type-arg]
        sinks: list[SnapshotSink] | None = None,  # type: ignore[type-arg]
        output: IndicatorOutput | None = None,
        hooks: HookManager | None = None,
        clock_ms: Callable[[], int] = monotonic_ms,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.sinks: list[SnapshotSink] = sinks or []  # type: ignore[type-arg]
        self.hooks = hooks or HookManager()
        self._clock_ms = clock_ms
        self._sleep = sleep
        self._output = output

        self.store = SensorReadingStore()
        self.scheduler = AcquisitionScheduler(config.acquisition, drivers, self.store, sleep=sleep)
        self.resolver = FallbackResolver(self.store)
        self.hysteresis = OverheatHysteresis(config.overheat)
        self.indicator = IndicatorController(output=output)
        self.metrics = AcquisitionMetrics(node_name=config.name)

        self.latest: TelemetrySnapshot | None = None
        self._ready = False
        self._started = False
        self._sink_errors: list[Exception] = []

    @classmethod
    def from_config(cls, config: NodeConfig, **kwargs: Any) -> TelemetryNode:
        return cls(config, config.build_drivers(), sinks=config.build_sinks(), **kwargs)

    # ------------------------------------------------------------------ #
    #  Lifecycle                                                           #
    # ------------------------------------------------------------------ #

    def start(self) -> set[SensorSource]:
        now = self._clock_ms()
        bind_node(self.config.name)
        self.indicator = IndicatorController(origin_ms=now, output=self._output)
        present = self.scheduler.start(now)
        for source in sorted(self.scheduler.absent):
            self.hooks.fire("source.absent", source)
        for sink in self.sinks:
            sink.setup()
        self._started = True
        log.info(
            "node.start",
            present=sorted(s.value for s in present),
            absent=sorted(s.value for s in self.scheduler.absent),
        )
        self.hooks.fire("node.start", present)
        self.hooks.fire("indicator.mode", self.indicator.mode)
        return present

    def stop(self) -> None:
        for sink in self.sinks:
            try:
                sink.flush()
            except Exception as exc:
                log.warning("sink.flush_failed", sink=sink.name, error=str(exc))
                self._sink_errors.append(exc)
            try:
                sink.teardown()
            except Exception as exc:
                log.warning("sink.teardown_failed", sink=sink.name, error=str(exc))
                self._sink_errors.append(exc)
        self.scheduler.stop()
        self._started = False
        log.info("node.stop", ticks=self.metrics.ticks)

    # ------------------------------------------------------------------ #
    #  One acquisition tick                                                #
    # ------------------------------------------------------------------ #

    def tick(self, now_ms: int | None = None) -> TelemetrySnapshot:
        """Poll due sources, compose a snapshot and drive the overheat machine."""
        if not self._started:
            raise RuntimeError("TelemetryNode.start() must be called before tick()")
        now = self._clock_ms() if now_ms is None else now_ms

        envelope_updated = False
        for result in self.scheduler.poll(now):
            self.metrics.record_poll(
                result.source.value,
                ok=result.ok,
                attempts=result.attempts,
                elapsed_s=result.elapsed_s,
                rejected_values=result.rejected,
            )
            if result.ok and result.source == SensorSource.OBJECT_TEMP:
                envelope_updated = True

        snapshot = self.resolver.build(now)

        if not self._ready:
            self._ready = True
            self._set_mode(IndicatorMode.SOLID)
            log.info("node.ready", captured_ms=now)
            self.hooks.fire("node.ready", snapshot)

        if envelope_updated and snapshot.envelope_temp_c is not None:
            request = self.hysteresis.update(c_to_f(snapshot.envelope_temp_c))
            if request is not None:
                self.hooks.fire("overheat.changed", self.hysteresis.state)
                self._set_mode(request)

        for sink in self.sinks:
            sink_result = sink._timed_write(snapshot)
            if sink_result.error is not None:
                self._sink_errors.append(sink_result.error)
                log.warning("sink.write_failed", sink=sink.name, error=str(sink_result.error))

        self.metrics.record_tick(empty=snapshot.is_empty)
        self.latest = snapshot
        log.debug("node.tick", captured_ms=now, empty=snapshot.is_empty)
        self.hooks.fire("snapshot.built", snapshot)
        return snapshot

    def _set_mode(self, mode: IndicatorMode) -> None:
        if self.indicator.request(mode):
            self.hooks.fire("indicator.mode", mode)

    def refresh_indicator(self, now_ms: int | None = None) -> bool:
        """Sample the indicator waveform; cheap and never blocking."""
        now = self._clock_ms() if now_ms is None else now_ms
        return self.indicator.refresh(now)

    # ------------------------------------------------------------------ #
    #  Cooperative loop                                                    #
    # ------------------------------------------------------------------ #

    def run(self, max_ticks: int | None = None) -> NodeRunResult:
        """Run ticks on ``tick_interval_ms`` until ``max_ticks`` or Ctrl-C."""
        t0 = time.perf_counter()
        if not self._started:
            self.start()

        refresh_s = 1.0 / self.config.indicator_rate_hz
        ticks = 0
        next_tick = self._clock_ms()
        try:
            while max_ticks is None or ticks < max_ticks:
                now = self._clock_ms()
                if now >= next_tick:
                    self.tick(now)
                    ticks += 1
                    next_tick = now + self.config.tick_interval_ms
                self.refresh_indicator(now)
                if max_ticks is not None and ticks >= max_ticks:
                    break
                self._sleep(refresh_s)
        except KeyboardInterrupt:
            log.info("node.interrupted", ticks=ticks)
        finally:
            self.stop()

        return NodeRunResult(
            node_name=self.config.name,
            ticks=ticks,
            elapsed_s=time.perf_counter() - t0,
            present=sorted(s.value for s in self.scheduler.present),
            absent=sorted(s.value for s in self.scheduler.absent),
            overheat_state=self.hysteresis.state,
            indicator_mode=self.indicator.mode,
            last_snapshot=self.latest,
            sink_errors=list(self._sink_errors),
            metrics=self.metrics.snapshot(),
        )

    def __repr__(self) -> str:
        return (
            f"TelemetryNode(name={self.config.name!r}, "
            f"sources={sorted(s.value for s in self.scheduler.present | self.scheduler.absent)}, "
            f"sinks={[s.name for s in self.sinks]})"
        )
