"""Tests for built-in sources, sinks and the plugin registry."""

from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
import pytest

from envtel.core.base import SensorReadError
from envtel.core.node import NodeConfig, PluginSpec, TelemetryNode
from envtel.core.registry import PluginRegistry, registry
from envtel.models.measurement import Quantity
from envtel.models.snapshot import AmbientSource, TelemetrySnapshot
from envtel.plugins import (
    CsvReplayBarometer,
    CsvReplayConfig,
    CsvReplayHumiditySensor,
    CsvSink,
    CsvSinkConfig,
    NdjsonSink,
    NdjsonSinkConfig,
    SimBarometerConfig,
    SimObjectConfig,
    SimulatedBarometer,
    SimulatedObjectThermometer,
)
from envtel.plugins.sources.simulated import pressure_at_altitude_hpa
from tests.conftest import FakeClock


def _snapshot(ts: int, envelope_c: float | None = 90.0) -> TelemetrySnapshot:
    return TelemetrySnapshot(
        envelope_temp_c=envelope_c,
        ambient_temp_c=15.0,
        ambient_source=AmbientSource.HUMIDITY,
        humidity_pct=40.0,
        pressure_hpa=990.0,
        altitude_m=200.0,
        captured_ms=ts,
    )


# --------------------------------------------------------------------------- #
#  Registry                                                                    #
# --------------------------------------------------------------------------- #


class TestRegistry:
    def test_builtin_plugins_registered(self) -> None:
        plugins = registry.all_plugins()
        for name in ("sim_barometer", "sim_humidity", "sim_object", "replay_barometer"):
            assert name in plugins["sources"]
        assert plugins["sinks"] == ["csv", "ndjson"]

    def test_unknown_name_lists_available(self) -> None:
        with pytest.raises(KeyError, match="sim_barometer"):
            registry.get_source("bmp999")

    def test_decorator_registers_class(self) -> None:
        reg = PluginRegistry()

        @reg.sink("null")
        class NullSink:
            pass

        assert reg.get_sink("null") is NullSink
        assert NullSink._registry_name == "null"  # type: ignore[attr-defined]

    def test_duplicate_name_rejected(self) -> None:
        reg = PluginRegistry()

        @reg.source("bench")
        class First:
            pass

        with pytest.raises(ValueError, match="already taken"):

            @reg.source("bench")
            class Second:
                pass

        assert reg.get_source("bench") is First

    def test_same_class_may_register_again(self) -> None:
        reg = PluginRegistry()

        class Bench:
            pass

        reg.source("bench")(Bench)
        reg.source("bench")(Bench)
        assert reg.list_sources() == ["bench"]

    def test_source_and_sink_names_are_separate(self) -> None:
        reg = PluginRegistry()

        @reg.source("file")
        class FileSource:
            pass

        @reg.sink("file")
        class FileSink:
            pass

        assert reg.get_source("file") is FileSource
        assert reg.get_sink("file") is FileSink


# --------------------------------------------------------------------------- #
#  Simulated sources                                                           #
# --------------------------------------------------------------------------- #


class TestSimulatedSources:
    def test_barometer_reports_raw_pascals(self) -> None:
        drv = SimulatedBarometer(SimBarometerConfig(base_altitude_m=0.0, climb_per_read_m=10.0))
        drv.setup()
        first = drv.read()
        second = drv.read()
        assert first[Quantity.BARO_PRESSURE] == pytest.approx(101325.0)
        assert second[Quantity.BARO_ALTITUDE] == 10.0

    def test_pressure_profile_decreases(self) -> None:
        assert pressure_at_altitude_hpa(1000.0) < pressure_at_altitude_hpa(0.0)

    def test_object_heats_to_ceiling(self) -> None:
        drv = SimulatedObjectThermometer(SimObjectConfig(start_c=100.0, heat_per_read_c=5.0, max_c=108.0))
        drv.setup()
        temps = [drv.read()[Quantity.OBJECT_TEMPERATURE] for _ in range(3)]
        assert temps == [100.0, 105.0, 108.0]

    def test_failure_injection(self) -> None:
        drv = SimulatedBarometer(SimBarometerConfig(failure_rate=1.0))
        drv.setup()
        with pytest.raises(SensorReadError):
            drv.read()

    def test_absent_when_configured(self) -> None:
        drv = SimulatedBarometer(SimBarometerConfig(present=False))
        drv.setup()
        assert not drv.probe()

    def test_node_from_config(self, clock: FakeClock) -> None:
        config = NodeConfig(
            sources=[
                PluginSpec(kind="sim_barometer"),
                PluginSpec(kind="sim_humidity"),
                PluginSpec(kind="sim_object", config={"start_c": 95.0}),
            ]
        )
        node = TelemetryNode.from_config(config, clock_ms=clock, sleep=clock.sleep)
        node.start()
        snap = node.tick()
        assert snap.ambient_source == AmbientSource.HUMIDITY
        assert snap.pressure_hpa == pytest.approx(pressure_at_altitude_hpa(150.0))
        assert snap.envelope_temp_c == 95.0


# --------------------------------------------------------------------------- #
#  CSV replay sources                                                          #
# --------------------------------------------------------------------------- #


@pytest.fixture
def replay_csv(tmp_path: Path) -> Path:
    path = tmp_path / "raw.csv"
    pd.DataFrame(
        {
            "baro_altitude": [100.0, None, 102.0],
            "baro_pressure": [100000.0, None, 99980.0],
            "baro_temperature": [12.0, None, None],
        }
    ).to_csv(path, index=False)
    return path


class TestCsvReplay:
    def test_replays_rows_in_order(self, replay_csv: Path) -> None:
        drv = CsvReplayBarometer(CsvReplayConfig(path=replay_csv))
        drv.setup()
        assert drv.probe()
        first = drv.read()
        assert first[Quantity.BARO_ALTITUDE] == 100.0
        with pytest.raises(SensorReadError):
            drv.read()
        third = drv.read()
        assert third[Quantity.BARO_TEMPERATURE] is None
        with pytest.raises(SensorReadError, match="exhausted"):
            drv.read()

    def test_loop(self, replay_csv: Path) -> None:
        drv = CsvReplayBarometer(CsvReplayConfig(path=replay_csv, loop=True))
        drv.setup()
        for _ in range(3):
            try:
                drv.read()
            except SensorReadError:
                pass
        assert drv.read()[Quantity.BARO_ALTITUDE] == 100.0

    def test_missing_columns_means_absent(self, replay_csv: Path) -> None:
        drv = CsvReplayHumiditySensor(CsvReplayConfig(path=replay_csv))
        drv.setup()
        assert not drv.probe()

    def test_missing_file_means_absent(self, tmp_path: Path) -> None:
        drv = CsvReplayBarometer(CsvReplayConfig(path=tmp_path / "nope.csv"))
        drv.setup()
        assert not drv.probe()


# --------------------------------------------------------------------------- #
#  Sinks                                                                       #
# --------------------------------------------------------------------------- #


class TestNdjsonSink:
    def test_writes_one_record_per_line(self, tmp_path: Path) -> None:
        path = tmp_path / "out" / "tel.ndjson"
        sink = NdjsonSink(NdjsonSinkConfig(path=path))
        sink.setup()
        sink.write(_snapshot(1000))
        sink.write(_snapshot(2000, envelope_c=None))
        sink.flush()
        sink.teardown()

        lines = path.read_text().splitlines()
        assert len(lines) == 2
        records = [json.loads(line) for line in lines]
        assert records[0]["ts_ms"] == 1000
        assert records[1]["envelope_f"] is None
        assert records[1]["ambient_source"] == "humidity"

    def test_append(self, tmp_path: Path) -> None:
        path = tmp_path / "tel.ndjson"
        path.write_text('{"ts_ms":1}\n')
        sink = NdjsonSink(NdjsonSinkConfig(path=path, append=True))
        sink.setup()
        sink.write(_snapshot(5))
        sink.teardown()
        assert len(path.read_text().splitlines()) == 2

    def test_stdout(self, capsys: pytest.CaptureFixture[str]) -> None:
        sink = NdjsonSink(NdjsonSinkConfig())
        sink.setup()
        sink.write(_snapshot(7))
        sink.flush()
        sink.teardown()
        assert json.loads(capsys.readouterr().out)["ts_ms"] == 7


class TestCsvSink:
    def test_buffers_until_flush_every(self, tmp_path: Path) -> None:
        path = tmp_path / "tel.csv"
        sink = CsvSink(CsvSinkConfig(path=path, flush_every=2))
        sink.setup()
        sink.write(_snapshot(1000))
        assert not path.exists()
        sink.write(_snapshot(2000))
        assert path.exists()
        sink.write(_snapshot(3000, envelope_c=None))
        sink.flush()

        df = pd.read_csv(path)
        assert list(df["ts_ms"]) == [1000, 2000, 3000]
        assert pd.isna(df["envelope_f"].iloc[2])
        assert df["humidity_pct"].iloc[0] == 40

    def test_appends_to_existing_without_header(self, tmp_path: Path) -> None:
        path = tmp_path / "tel.csv"
        first = CsvSink(CsvSinkConfig(path=path))
        first.setup()
        first.write(_snapshot(1))
        first.flush()

        second = CsvSink(CsvSinkConfig(path=path, overwrite=False))
        second.setup()
        second.write(_snapshot(2))
        second.flush()

        assert list(pd.read_csv(path)["ts_ms"]) == [1, 2]
