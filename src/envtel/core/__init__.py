"""Acquisition core: store, fallback resolver, scheduler, codec and node loop."""

from envtel.core.base import (
    OpStatus,
    ReadResult,
    SensorDriver,
    SensorReadError,
    SinkResult,
    SnapshotSink,
)
from envtel.core.node import NodeConfig, NodeRunResult, PluginSpec, TelemetryNode
from envtel.core.registry import PluginRegistry, registry
from envtel.core.resolver import FallbackResolver
from envtel.core.scheduler import AcquisitionConfig, AcquisitionScheduler
from envtel.core.store import SensorReadingStore

__all__ = [
    "OpStatus",
    "ReadResult",
    "SensorDriver",
    "SensorReadError",
    "SinkResult",
    "SnapshotSink",
    "NodeConfig",
    "NodeRunResult",
    "PluginSpec",
    "TelemetryNode",
    "PluginRegistry",
    "registry",
    "FallbackResolver",
    "AcquisitionConfig",
    "AcquisitionScheduler",
    "SensorReadingStore",
]
