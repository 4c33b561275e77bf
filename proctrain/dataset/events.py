# proctrain/dataset/events.py
from __future__ import annotations

import math
from pathlib import Path
from typing import Iterator, List

import numpy as np
import pyarrow as pa
import pyarrow.parquet as pq

from proctrain.core.events import TrainingEvent
from proctrain.core.variables import VariableBinding
from proctrain.dataset.export import TARGET_COLUMN, WEIGHT_COLUMN
from proctrain.utils.errors import ConfigError, IoError

TRAIN_COLUMN = "__TRAIN__"
TEST_COLUMN = "__TEST__"


class EventTable:
    """
    Event source backed by a parquet table.

    Columns:
      __TARGET__ / __WEIGHT__      required
      __TRAIN__ / __TEST__         optional routing flags (default train only)
      <variable column>            scalar or list<double>
    """

    def __init__(self, table: pa.Table):
        for column in (TARGET_COLUMN, WEIGHT_COLUMN):
            if column not in table.column_names:
                raise ConfigError(f"event table has no {column} column")
        self.table = table

    @classmethod
    def read(cls, path: Path | str) -> "EventTable":
        path = Path(path)
        try:
            table = pq.read_table(path)
        except (OSError, pa.ArrowInvalid) as e:
            raise IoError(f"cannot read event table {path}: {e}") from e
        return cls(table)

    def __len__(self) -> int:
        return self.table.num_rows

    def _flag(self, column: str, default: bool) -> List[bool]:
        if column in self.table.column_names:
            return [bool(v) for v in self.table.column(column).to_pylist()]
        return [default] * len(self)

    def _group(self, column: str) -> List[List[float]]:
        if column not in self.table.column_names:
            raise ConfigError(f"event table has no column for variable {column!r}")

        data = self.table.column(column)
        if pa.types.is_list(data.type) or pa.types.is_large_list(data.type):
            groups = []
            for row, v in enumerate(data.to_pylist()):
                # 每个 value-group 至少一个标量
                if not v:
                    raise IoError(
                        f"event table column {column!r} row {row}: empty value group"
                    )
                groups.append([math.nan if x is None else float(x) for x in v])
            return groups

        values = data.to_numpy(zero_copy_only=False).astype(np.float64)
        return [[float(v)] for v in values]

    def events_for(self, binding: VariableBinding) -> Iterator[TrainingEvent]:
        """
        Events with value-groups ordered as `binding`.
        """
        groups = [self._group(ref.column) for ref in binding.refs]

        targets = self._flag(TARGET_COLUMN, False)
        weights = self.table.column(WEIGHT_COLUMN).to_pylist()
        train = self._flag(TRAIN_COLUMN, True)
        test = self._flag(TEST_COLUMN, False)

        for i in range(len(self)):
            yield TrainingEvent(
                values=[g[i] for g in groups],
                target=targets[i],
                weight=float(weights[i]),
                train=train[i],
                test=test[i],
            )
