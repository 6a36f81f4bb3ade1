"""Built-in plugins: sensor sources and snapshot sinks."""

from envtel.plugins.sinks.csv import CsvSink, CsvSinkConfig
from envtel.plugins.sinks.ndjson import NdjsonSink, NdjsonSinkConfig
from envtel.plugins.sources.replay import (
    CsvReplayBarometer,
    CsvReplayConfig,
    CsvReplayHumiditySensor,
    CsvReplayObjectThermometer,
)
from envtel.plugins.sources.simulated import (
    SimBarometerConfig,
    SimHumidityConfig,
    SimObjectConfig,
    SimulatedBarometer,
    SimulatedHumiditySensor,
    SimulatedObjectThermometer,
)

__all__ = [
    "SimulatedBarometer",
    "SimBarometerConfig",
    "SimulatedHumiditySensor",
    "SimHumidityConfig",
    "SimulatedObjectThermometer",
    "SimObjectConfig",
    "CsvReplayBarometer",
    "CsvReplayHumiditySensor",
    "CsvReplayObjectThermometer",
    "CsvReplayConfig",
    "NdjsonSink",
    "NdjsonSinkConfig",
    "CsvSink",
    "CsvSinkConfig",
]
