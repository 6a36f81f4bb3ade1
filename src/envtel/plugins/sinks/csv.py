"""CSV sink — buffers wire records and writes them as a table with pandas."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

import pandas as pd
from pydantic import BaseModel, Field

from envtel.core.base import SnapshotSink
from envtel.core.codec import WIRE_FIELDS, encode
from envtel.core.registry import registry
from envtel.models.snapshot import TelemetrySnapshot


class CsvSinkConfig(BaseModel):
    path: Path = Field(description="CSV file to write")
    flush_every: Annotated[int, Field(gt=0)] = 30
    delimiter: str = ","
    overwrite: bool = True


@registry.sink("csv")
class CsvSink(SnapshotSink[CsvSinkConfig]):
    """Write snapshots in wire format, one row per tick, absent values left empty."""

    config_class = CsvSinkConfig

    def setup(self) -> None:
        self.config.path.parent.mkdir(parents=True, exist_ok=True)
        self._buffer: list[dict[str, Any]] = []
        self._header_written = not self.config.overwrite and self.config.path.exists()

    def write(self, snapshot: TelemetrySnapshot) -> None:
        self._buffer.append(encode(snapshot))
        if len(self._buffer) >= self.config.flush_every:
            self.flush()

    def flush(self) -> None:
        if not self._buffer:
            return
        df = pd.DataFrame(self._buffer, columns=list(WIRE_FIELDS))
        df.to_csv(
            self.config.path,
            mode="a" if self._header_written else "w",
            header=not self._header_written,
            index=False,
            sep=self.config.delimiter,
        )
        self._header_written = True
        self._buffer.clear()
