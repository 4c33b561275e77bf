# proctrain/monitoring/monitor.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from proctrain import logs
from proctrain.monitoring.histogram import AutoHistogram

BACKGROUND = 0
SIGNAL = 1

INPUT_BINS = 50
OUTPUT_BINS = 400
OUTPUT_RANGE = 99999.0


@dataclass
class SigBkg:
    """
    Monitoring bin set of one variable（index 0 = background, 1 = signal）

    Values at or below `min` go to underflow, at or above `max` to
    overflow; everything in between is binned. With same_binning each
    fill also puts a zero-weight fill into the other class histogram.
    """

    histo: Sequence[AutoHistogram]
    min: float = -float("inf")
    max: float = float("inf")
    same_binning: bool = False
    entries: List[int] = field(default_factory=lambda: [0, 0])
    underflow: List[float] = field(default_factory=lambda: [0.0, 0.0])
    overflow: List[float] = field(default_factory=lambda: [0.0, 0.0])

    def fill(self, value: float, target: bool, weight: float) -> None:
        cls = SIGNAL if target else BACKGROUND
        self.entries[cls] += 1

        if value <= self.min:
            self.underflow[cls] += weight
            return
        if value >= self.max:
            self.overflow[cls] += weight
            return

        self.histo[cls].fill(value, weight)

        if self.same_binning:
            self.histo[1 - cls].fill(value, 0.0)

    def finalize(self) -> None:
        for i in (BACKGROUND, SIGNAL):
            h = self.histo[i]
            h.finalize()

            o_bin = h.n_bins + 1
            h.set_bin_content(0, h.get_bin_content(0) + self.underflow[i])
            h.set_bin_content(o_bin, h.get_bin_content(o_bin) + self.overflow[i])
            h.set_entries(self.entries[i])


class MonitoringModule:
    """
    Named group of histograms（one per processor, or "output"）
    """

    def __init__(self, name: str):
        self.name = name
        self.histograms: Dict[str, AutoHistogram] = {}

    def book(self, name: str, title: str, n_bins: int) -> AutoHistogram:
        if name in self.histograms:
            raise ValueError(f"[Monitoring] {self.name}/{name} booked twice")

        h = AutoHistogram(name, title, n_bins)
        self.histograms[name] = h
        return h

    def book_bin_sets(self, names: Sequence[str], *, output: bool) -> List[SigBkg]:
        """
        One SigBkg per display name.

        output=False: raw input monitoring, unbounded range
        output=True : processor outputs, fixed range, shared binning
        """
        n_bins = OUTPUT_BINS if output else INPUT_BINS
        sets: List[SigBkg] = []

        for name in names:
            bkg = self.book(f"{name}_bkg", f"{name} background", n_bins)
            sig = self.book(f"{name}_sig", f"{name} signal", n_bins)

            if output:
                pair = SigBkg(
                    histo=(bkg, sig),
                    min=-OUTPUT_RANGE,
                    max=+OUTPUT_RANGE,
                    same_binning=True,
                )
            else:
                pair = SigBkg(histo=(bkg, sig))

            sets.append(pair)

        return sets


class TrainerMonitoring:
    """
    TrainerMonitoring（per training run）

    - book(name) → None when disabled or already booked
    - write(path) → one parquet table with every finalized bin
    """

    COLUMNS = ("module", "histogram", "title", "bin", "low_edge", "content", "entries")

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self.modules: Dict[str, MonitoringModule] = {}

    def book(self, name: str) -> Optional[MonitoringModule]:
        if not self.enabled or name in self.modules:
            return None

        module = MonitoringModule(name)
        self.modules[name] = module
        return module

    def to_table(self) -> pa.Table:
        rows: Dict[str, list] = {c: [] for c in self.COLUMNS}

        for module in self.modules.values():
            for h in module.histograms.values():
                if not h.finalized:
                    continue

                # bin 0 / n+1 的 low_edge 用 ±inf 表示
                lows = [float("-inf")] + list(h.edges[:-1]) + [float(h.edges[-1])]
                for i, content in enumerate(h.contents):
                    rows["module"].append(module.name)
                    rows["histogram"].append(h.name)
                    rows["title"].append(h.title)
                    rows["bin"].append(i)
                    rows["low_edge"].append(float(lows[i]))
                    rows["content"].append(float(content))
                    rows["entries"].append(h.entries)

        schema = pa.schema(
            [
                ("module", pa.string()),
                ("histogram", pa.string()),
                ("title", pa.string()),
                ("bin", pa.int32()),
                ("low_edge", pa.float64()),
                ("content", pa.float64()),
                ("entries", pa.int64()),
            ]
        )
        return pa.Table.from_pydict(rows, schema=schema)

    def write(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        table = self.to_table()
        pq.write_table(table, path, compression="zstd")
        logs.info(f"[Monitoring] wrote {table.num_rows} bins to {path}")
        return path

    @staticmethod
    def read(path: Path) -> pd.DataFrame:
        return pq.read_table(path).to_pandas()
