# proctrain/dataset/export.py
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Sequence

import pyarrow as pa
import pyarrow.parquet as pq

TARGET_COLUMN = "__TARGET__"
WEIGHT_COLUMN = "__WEIGHT__"


class DatasetExporter:
    """
    Row-at-a-time columnar export（one row per training event）

    Schema:
        __TARGET__  bool
        __WEIGHT__  float64
        <name>      float64   (one per bound variable, in binding order)

    Rows are buffered and flushed as record batches.
    """

    def __init__(self, path: Path, names: Sequence[str], batch_size: int = 10_000):
        reserved = {TARGET_COLUMN, WEIGHT_COLUMN} & set(names)
        if reserved:
            raise ValueError(f"variable names clash with reserved columns: {reserved}")

        self.path = Path(path)
        self.names = list(names)
        self.batch_size = batch_size
        self.rows = 0

        self.schema = pa.schema(
            [(TARGET_COLUMN, pa.bool_()), (WEIGHT_COLUMN, pa.float64())]
            + [(name, pa.float64()) for name in self.names]
        )

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._writer: pq.ParquetWriter | None = pq.ParquetWriter(
            self.path, self.schema, compression="zstd"
        )
        self._buffer: Dict[str, List] = self._empty_buffer()

    def _empty_buffer(self) -> Dict[str, List]:
        return {field.name: [] for field in self.schema}

    @property
    def closed(self) -> bool:
        return self._writer is None

    def append(self, values: Sequence[float], target: bool, weight: float) -> None:
        if self.closed:
            raise RuntimeError(f"[DatasetExporter] {self.path} already closed")

        self._buffer[TARGET_COLUMN].append(bool(target))
        self._buffer[WEIGHT_COLUMN].append(float(weight))
        for name, value in zip(self.names, values):
            self._buffer[name].append(float(value))

        self.rows += 1
        if len(self._buffer[TARGET_COLUMN]) >= self.batch_size:
            self._flush()

    def _flush(self) -> None:
        if not self._buffer[TARGET_COLUMN]:
            return

        batch = pa.RecordBatch.from_pydict(self._buffer, schema=self.schema)
        self._writer.write_batch(batch)
        self._buffer = self._empty_buffer()

    def close(self) -> None:
        if self.closed:
            return
        self._flush()
        self._writer.close()
        self._writer = None
