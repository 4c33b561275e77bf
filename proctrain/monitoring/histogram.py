# proctrain/monitoring/histogram.py
from __future__ import annotations

import math
from typing import List

import numpy as np

# 定 range 之前最多缓存的填充数
BUFFER_SIZE = 1000


class AutoHistogram:
    """
    1D histogram with automatic range（bounded buffer）

    The first `buffer_size` fills are buffered. When the buffer is full,
    or at finalize, the range is taken from the buffered values and the
    buffer is folded into bins; later fills go straight into the bins.

    Bin layout (n = n_bins):
        0        underflow
        1 .. n   regular bins
        n + 1    overflow

    Zero-weight fills still take part in range finding, which is how two
    histograms fed the same values are forced onto the same edges.
    """

    def __init__(self, name: str, title: str, n_bins: int, buffer_size: int = BUFFER_SIZE):
        if n_bins < 1:
            raise ValueError(f"n_bins must be >= 1, got {n_bins}")
        if buffer_size < 1:
            raise ValueError(f"buffer_size must be >= 1, got {buffer_size}")

        self.name = name
        self.title = title
        self.n_bins = n_bins
        self.buffer_size = buffer_size
        self.entries = 0

        self._values: List[float] = []
        self._weights: List[float] = []
        self._finalized = False

        self.edges: np.ndarray | None = None
        self.contents: np.ndarray | None = None

    @property
    def finalized(self) -> bool:
        return self._finalized

    @property
    def buffered(self) -> int:
        return len(self._values)

    def fill(self, value: float, weight: float = 1.0) -> None:
        if self._finalized:
            raise RuntimeError(f"[AutoHistogram] {self.name} already finalized")
        if math.isnan(value):
            return

        self.entries += 1

        if self.edges is not None:
            self.contents[self._find_bin(value)] += weight
            return

        self._values.append(float(value))
        self._weights.append(float(weight))
        if len(self._values) >= self.buffer_size:
            self._flush_buffer()

    def finalize(self) -> None:
        if self._finalized:
            return
        if self.edges is None:
            self._flush_buffer()
        self._finalized = True

    def _flush_buffer(self) -> None:
        values = np.asarray(self._values, dtype=np.float64)
        weights = np.asarray(self._weights, dtype=np.float64)

        if values.size == 0:
            lo, hi = 0.0, 1.0
        else:
            lo, hi = float(values.min()), float(values.max())
            if lo == hi:
                lo, hi = lo - 0.5, hi + 0.5

        counts, edges = np.histogram(
            values, bins=self.n_bins, range=(lo, hi), weights=weights
        )

        self.edges = edges
        self.contents = np.zeros(self.n_bins + 2, dtype=np.float64)
        self.contents[1:-1] = counts

        self._values.clear()
        self._weights.clear()

    def _find_bin(self, value: float) -> int:
        lo, hi = float(self.edges[0]), float(self.edges[-1])
        if value < lo:
            return 0
        # 与 np.histogram 一致：上边界落在最后一个 bin
        if value > hi:
            return self.n_bins + 1
        i = int((value - lo) / (hi - lo) * self.n_bins)
        return min(i, self.n_bins - 1) + 1

    # ------------------------------------------------------------------
    # bin access (after finalize)
    # ------------------------------------------------------------------
    def get_bin_content(self, i: int) -> float:
        self._require_finalized()
        return float(self.contents[i])

    def set_bin_content(self, i: int, value: float) -> None:
        self._require_finalized()
        self.contents[i] = value

    def set_entries(self, n: int) -> None:
        self.entries = int(n)

    def _require_finalized(self) -> None:
        if not self._finalized:
            raise RuntimeError(f"[AutoHistogram] {self.name} not finalized")
