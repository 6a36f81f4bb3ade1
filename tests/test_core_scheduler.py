"""Tests for AcquisitionScheduler polling, retry and presence handling."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from envtel.core.scheduler import AcquisitionConfig, AcquisitionScheduler
from envtel.core.store import SensorReadingStore
from envtel.models.measurement import Quantity, SensorSource
from tests.conftest import (
    FakeClock,
    ScriptConfig,
    ScriptedBarometer,
    ScriptedHumiditySensor,
    ScriptedObjectThermometer,
    baro,
    envelope,
    humid,
)


def _scheduler(drivers, store, clock, **cfg) -> AcquisitionScheduler:
    return AcquisitionScheduler(AcquisitionConfig(**cfg), drivers, store, sleep=clock.sleep)


class TestAcquisitionConfig:
    def test_defaults(self) -> None:
        cfg = AcquisitionConfig()
        assert cfg.attempts(SensorSource.HUMIDITY_TEMP) == 3
        assert cfg.attempts(SensorSource.BAROMETRIC) == 1
        assert cfg.interval_ms(SensorSource.OBJECT_TEMP) == 500

    def test_rejects_empty_range(self) -> None:
        with pytest.raises(ValidationError):
            AcquisitionConfig(plausible_ranges={Quantity.HUMIDITY: (100.0, 0.0)})

    def test_rejects_zero_attempts(self) -> None:
        with pytest.raises(ValidationError):
            AcquisitionConfig(humidity_attempts=0)


class TestPresence:
    def test_absent_source_never_polled(self, store: SensorReadingStore, clock: FakeClock) -> None:
        obj = ScriptedObjectThermometer(ScriptConfig(present=False), [envelope(80.0)])
        sched = _scheduler([obj], store, clock)
        present = sched.start(clock())
        assert present == set()
        assert sched.absent == {SensorSource.OBJECT_TEMP}
        for _ in range(5):
            assert sched.poll(clock()) == []
            clock.advance(1000)
        assert obj.reads == 0

    def test_probe_exception_means_absent(self, store: SensorReadingStore, clock: FakeClock) -> None:
        class _Exploding(ScriptedBarometer):
            def probe(self) -> bool:
                raise OSError("no ACK")

        sched = _scheduler([_Exploding(ScriptConfig())], store, clock)
        assert sched.start(clock()) == set()

    def test_duplicate_source_rejected(self, store: SensorReadingStore, clock: FakeClock) -> None:
        with pytest.raises(ValueError):
            _scheduler(
                [ScriptedBarometer(ScriptConfig()), ScriptedBarometer(ScriptConfig())],
                store,
                clock,
            )

    def test_poll_before_start(self, store: SensorReadingStore, clock: FakeClock) -> None:
        sched = _scheduler([], store, clock)
        with pytest.raises(RuntimeError):
            sched.poll(0)


class TestCadence:
    def test_independent_intervals(self, store: SensorReadingStore, clock: FakeClock) -> None:
        b = ScriptedBarometer(ScriptConfig(), [baro()] * 10)
        o = ScriptedObjectThermometer(ScriptConfig(), [envelope(70.0)] * 10)
        sched = _scheduler(
            [b, o], store, clock, barometric_interval_ms=1000, object_interval_ms=500
        )
        sched.start(clock())
        start = clock()
        for step in range(4):
            sched.poll(start + step * 500)
        assert o.reads == 4
        assert b.reads == 2


class TestBarometric:
    def test_single_attempt_failure_keeps_prior(self, store: SensorReadingStore, clock: FakeClock) -> None:
        b = ScriptedBarometer(ScriptConfig(), [baro(altitude=120.0), None, baro(altitude=125.0)])
        sched = _scheduler([b], store, clock, barometric_interval_ms=1000)
        sched.start(clock())

        [ok] = sched.poll(clock())
        assert ok.ok
        clock.advance(1000)
        [failed] = sched.poll(clock())
        assert not failed.ok
        assert failed.attempts == 1
        assert store.value(Quantity.BARO_ALTITUDE) == 120.0
        assert clock.sleeps == []

        clock.advance(1000)
        sched.poll(clock())
        assert store.value(Quantity.BARO_ALTITUDE) == 125.0

    def test_pressure_normalised_from_pascals(self, store: SensorReadingStore, clock: FakeClock) -> None:
        b = ScriptedBarometer(ScriptConfig(), [baro(pressure=95000.0)])
        sched = _scheduler([b], store, clock)
        sched.start(clock())
        sched.poll(clock())
        assert store.value(Quantity.BARO_PRESSURE) == pytest.approx(950.0)

    def test_partial_read_keeps_good_quantities(self, store: SensorReadingStore, clock: FakeClock) -> None:
        reading = baro(altitude=80.0)
        reading[Quantity.BARO_TEMPERATURE] = None
        b = ScriptedBarometer(ScriptConfig(), [reading])
        sched = _scheduler([b], store, clock)
        sched.start(clock())
        [result] = sched.poll(clock())
        assert result.ok
        assert store.value(Quantity.BARO_ALTITUDE) == 80.0
        assert store.value(Quantity.BARO_TEMPERATURE) is None


class TestHumidityRetry:
    def test_recovers_on_later_attempt(self, store: SensorReadingStore, clock: FakeClock) -> None:
        h = ScriptedHumiditySensor(ScriptConfig(), [None, None, humid(temperature=21.0)])
        sched = _scheduler([h], store, clock, humidity_attempts=3, humidity_backoff_ms=100)
        sched.start(clock())
        [result] = sched.poll(clock())
        assert result.ok
        assert result.attempts == 3
        assert clock.sleeps == [0.1, 0.1]
        assert store.value(Quantity.HUMIDITY_TEMPERATURE) == 21.0

    def test_exhaustion_leaves_prior_value(self, store: SensorReadingStore, clock: FakeClock) -> None:
        h = ScriptedHumiditySensor(
            ScriptConfig(), [humid(temperature=19.0), None, None, None, None]
        )
        sched = _scheduler([h], store, clock, humidity_attempts=3, humidity_interval_ms=2000)
        sched.start(clock())
        sched.poll(clock())
        clock.advance(2000)
        [result] = sched.poll(clock())
        assert not result.ok
        assert result.attempts == 3
        assert h.reads == 4
        assert store.value(Quantity.HUMIDITY_TEMPERATURE) == 19.0

    def test_implausible_value_is_a_failed_attempt(self, store: SensorReadingStore, clock: FakeClock) -> None:
        h = ScriptedHumiditySensor(ScriptConfig(), [humid(humidity=180.0, temperature=-300.0), humid()])
        sched = _scheduler([h], store, clock, humidity_attempts=2)
        sched.start(clock())
        [result] = sched.poll(clock())
        assert result.ok
        assert result.attempts == 2
        assert result.rejected == 2
        assert store.value(Quantity.HUMIDITY) == 50.0


class TestRangeChecks:
    def test_object_glitch_not_surfaced(self, store: SensorReadingStore, clock: FakeClock) -> None:
        o = ScriptedObjectThermometer(ScriptConfig(), [envelope(85.0), envelope(1037.55)])
        sched = _scheduler([o], store, clock, object_interval_ms=500)
        sched.start(clock())
        sched.poll(clock())
        clock.advance(500)
        [result] = sched.poll(clock())
        assert not result.ok
        assert store.value(Quantity.OBJECT_TEMPERATURE) == 85.0

    def test_foreign_quantity_rejected(self, store: SensorReadingStore, clock: FakeClock) -> None:
        o = ScriptedObjectThermometer(ScriptConfig(), [{Quantity.HUMIDITY: 40.0}])
        sched = _scheduler([o], store, clock)
        sched.start(clock())
        [result] = sched.poll(clock())
        assert not result.ok
        assert Quantity.HUMIDITY not in store

    def test_non_numeric_value_rejected(self, store: SensorReadingStore, clock: FakeClock) -> None:
        o = ScriptedObjectThermometer(ScriptConfig(), [{Quantity.OBJECT_TEMPERATURE: "ERR"}])
        sched = _scheduler([o], store, clock)
        sched.start(clock())
        [result] = sched.poll(clock())
        assert not result.ok
        assert result.rejected == 1
        assert Quantity.OBJECT_TEMPERATURE not in store


class TestStop:
    def test_teardown_called(self, store: SensorReadingStore, clock: FakeClock) -> None:
        b = ScriptedBarometer(ScriptConfig())
        sched = _scheduler([b], store, clock)
        sched.start(clock())
        sched.stop()
        assert b.torn_down
