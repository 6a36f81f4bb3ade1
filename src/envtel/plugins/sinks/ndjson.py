"""NDJSON sink — one wire record per line, to a file or stdout."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import IO

from pydantic import BaseModel, Field

from envtel.core.base import SnapshotSink
from envtel.core.codec import dumps
from envtel.core.registry import registry
from envtel.models.snapshot import TelemetrySnapshot


class NdjsonSinkConfig(BaseModel):
    path: Path | None = Field(default=None, description="Output file; stdout when unset")
    append: bool = False


@registry.sink("ndjson")
class NdjsonSink(SnapshotSink[NdjsonSinkConfig]):
    """Write each snapshot in wire format, newline-delimited."""

    config_class = NdjsonSinkConfig

    def setup(self) -> None:
        self._owned = self.config.path is not None
        if self.config.path is not None:
            self.config.path.parent.mkdir(parents=True, exist_ok=True)
            mode = "a" if self.config.append else "w"
            self._fh: IO[str] = open(self.config.path, mode, encoding="utf-8")  # noqa: SIM115
        else:
            self._fh = sys.stdout

    def write(self, snapshot: TelemetrySnapshot) -> None:
        self._fh.write(dumps(snapshot) + "\n")

    def flush(self) -> None:
        self._fh.flush()

    def teardown(self) -> None:
        if self._owned:
            self._fh.close()
