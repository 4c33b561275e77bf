# proctrain/processors/output.py
from __future__ import annotations

from typing import Sequence

from proctrain.processors.base import TrainProcessor
from proctrain.processors.registry import register_processor


@register_processor("OutputMonitor")
class OutputMonitor(TrainProcessor):
    """
    Synthetic monitor over the outputs of all processors.

    Trains nothing; its inputs are booked into the shared "output"
    monitoring module (fixed range, shared binning).
    """

    monitor_as_output = True

    def train_begin(self) -> None:
        pass

    def train_data(self, values: Sequence[Sequence[float]], target: bool, weight: float) -> None:
        pass

    def train_end(self) -> None:
        self.trained = True

    def get_calibration(self) -> None:
        return None
