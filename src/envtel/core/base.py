"""Abstract base classes for the node's pluggable edges.

Every plugin attached to a TelemetryNode is one of:
  - SensorDriver  — talks to one sensor package and returns raw readings
  - SnapshotSink  — receives each composed TelemetrySnapshot

Both are:
  - Typed via Pydantic config models
  - Observable via structured logging
  - Discoverable through the plugin registry
"""

from __future__ import annotations

import abc
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel

from envtel.models.measurement import Quantity, SensorSource
from envtel.models.snapshot import TelemetrySnapshot

ConfigT = TypeVar("ConfigT", bound=BaseModel)


class SensorReadError(RuntimeError):
    """A transient failure reading a sensor (bus NAK, checksum, timeout...)."""


class OpStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class ReadResult:
    """Outcome of polling one sensor source for one tick."""

    source: SensorSource
    status: OpStatus
    elapsed_s: float = 0.0
    attempts: int = 0
    values: dict[Quantity, float | None] = field(default_factory=dict)
    rejected: int = 0
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.status == OpStatus.SUCCESS


@dataclass
class SinkResult:
    sink_name: str
    status: OpStatus
    elapsed_s: float
    error: Exception | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == OpStatus.SUCCESS


class Plugin(abc.ABC, Generic[ConfigT]):
    """Base class for drivers and sinks.

    Subclasses must declare a ``config_class`` class attribute.
    """

    config_class: type[BaseModel]

    def __init__(self, config: ConfigT) -> None:
        self.config = config
        self._name = self.__class__.__name__
        self.validate_config()

    @property
    def name(self) -> str:
        return self._name

    def validate_config(self) -> None:
        """Optional hook — raise ValueError if config is semantically invalid."""

    def setup(self) -> None:
        """Called once when the node starts (open buses, files, etc.)."""

    def teardown(self) -> None:
        """Called once when the node stops."""


# --------------------------------------------------------------------------- #
#  SensorDriver                                                                 #
# --------------------------------------------------------------------------- #


class SensorDriver(Plugin[ConfigT]):
    """Reads one physical sensor package.

    ``read`` returns raw values keyed by :class:`Quantity`; a ``None`` entry
    marks a single quantity as failed while the others stay usable. A whole
    failed transaction raises :class:`SensorReadError`.
    """

    source: ClassVar[SensorSource]

    @abc.abstractmethod
    def probe(self) -> bool:
        """Return True if the sensor answers on the bus."""

    @abc.abstractmethod
    def read(self) -> dict[Quantity, float | None]:
        """Perform one read transaction."""

    def _timed_read(self) -> ReadResult:
        t0 = time.perf_counter()
        try:
            values = self.read()
            return ReadResult(
                source=self.source,
                status=OpStatus.SUCCESS,
                elapsed_s=time.perf_counter() - t0,
                attempts=1,
                values=values,
            )
        except Exception as exc:
            return ReadResult(
                source=self.source,
                status=OpStatus.FAILED,
                elapsed_s=time.perf_counter() - t0,
                attempts=1,
                error=exc,
            )


# --------------------------------------------------------------------------- #
#  SnapshotSink                                                                 #
# --------------------------------------------------------------------------- #


class SnapshotSink(Plugin[ConfigT]):
    """Consumes composed snapshots (transport, display refresh, log files)."""

    @abc.abstractmethod
    def write(self, snapshot: TelemetrySnapshot) -> None:
        """Deliver one snapshot."""

    def flush(self) -> None:
        """Push any buffered snapshots downstream."""

    def _timed_write(self, snapshot: TelemetrySnapshot) -> SinkResult:
        t0 = time.perf_counter()
        try:
            self.write(snapshot)
            return SinkResult(
                sink_name=self.name,
                status=OpStatus.SUCCESS,
                elapsed_s=time.perf_counter() - t0,
            )
        except Exception as exc:
            return SinkResult(
                sink_name=self.name,
                status=OpStatus.FAILED,
                elapsed_s=time.perf_counter() - t0,
                error=exc,
            )
