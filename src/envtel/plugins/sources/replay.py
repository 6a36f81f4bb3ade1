"""CSV replay drivers — feed recorded raw readings back through the node.

Expected columns are :class:`Quantity` values, e.g. ``baro_altitude``,
``baro_pressure``, ``object_temperature``. Only the columns belonging to the
driver's source are used; empty cells replay as failed quantities and a row
with every cell empty replays as a failed read.
"""

from __future__ import annotations

from pathlib import Path

import pandas as pd
from pydantic import BaseModel, Field

from envtel.core.base import SensorDriver, SensorReadError
from envtel.core.registry import registry
from envtel.models.measurement import Quantity, SensorSource


class CsvReplayConfig(BaseModel):
    path: Path = Field(description="CSV file of recorded raw readings")
    loop: bool = False
    delimiter: str = ","


class _CsvReplayDriver(SensorDriver[CsvReplayConfig]):
    config_class = CsvReplayConfig

    def setup(self) -> None:
        self._rows: list[dict[Quantity, float | None]] = []
        self._cursor = 0
        if not self.config.path.exists():
            return
        frame = pd.read_csv(self.config.path, sep=self.config.delimiter)
        columns = [q for q in Quantity if q.source == self.source and q.value in frame.columns]
        for _, row in frame.iterrows():
            self._rows.append(
                {q: None if pd.isna(row[q.value]) else float(row[q.value]) for q in columns}
            )

    def probe(self) -> bool:
        return bool(self._rows) and bool(self._rows[0])

    def read(self) -> dict[Quantity, float | None]:
        if self._cursor >= len(self._rows):
            if not self.config.loop:
                raise SensorReadError(f"{self.name}: replay exhausted")
            self._cursor = 0
        row = self._rows[self._cursor]
        self._cursor += 1
        if all(v is None for v in row.values()):
            raise SensorReadError(f"{self.name}: recorded failure at row {self._cursor}")
        return dict(row)


@registry.source("replay_barometer")
class CsvReplayBarometer(_CsvReplayDriver):
    source = SensorSource.BAROMETRIC


@registry.source("replay_humidity")
class CsvReplayHumiditySensor(_CsvReplayDriver):
    source = SensorSource.HUMIDITY_TEMP


@registry.source("replay_object")
class CsvReplayObjectThermometer(_CsvReplayDriver):
    source = SensorSource.OBJECT_TEMP
