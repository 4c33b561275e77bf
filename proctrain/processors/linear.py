# proctrain/processors/linear.py
from __future__ import annotations

import json
from enum import auto
from typing import Sequence

from proctrain import fs, logs
from proctrain.calibration.artifacts import LinearCalibration
from proctrain.core.state import ForwardEnum
from proctrain.processors.base import TrainProcessor
from proctrain.processors.registry import register_processor
from proctrain.solver.least_squares import LeastSquares
from proctrain.utils.errors import ConfigError, IoError, SolverError


class Iteration(ForwardEnum):
    FILL = auto()
    DONE = auto()


@register_processor("ProcLinear")
class ProcLinear(TrainProcessor):
    """
    Linear discriminant fitted by weighted least squares.

    Cache file: train_<name>.json
        {"processor": "ProcLinear", "least_squares": {...}}
    """

    CACHE_EXT = "json"

    def __init__(self, name, inputs, trainer):
        super().__init__(name, inputs, trainer)
        self.iteration = Iteration.FILL
        self.ls: LeastSquares | None = None

    # ------------------------------------------------------------------
    def configure_section(self, spec: dict) -> None:
        if spec:
            raise ConfigError(
                f"[ProcLinear] {self.name}: unexpected config keys {sorted(spec)}"
            )
        self.ls = LeastSquares(len(self.inputs))

    def get_calibration(self) -> LinearCalibration:
        return LinearCalibration(
            coefficients=self.ls.weights,
            offset=self.ls.constant,
        )

    # ------------------------------------------------------------------
    def train_begin(self) -> None:
        pass

    def train_data(self, values: Sequence[Sequence[float]], target: bool, weight: float) -> None:
        if self.iteration != Iteration.FILL:
            return

        # 只取每个 value-group 的第一个标量
        x = [float(group[0]) for group in values[: self.ls.size]]
        self.ls.add(x, target, weight)

    def train_end(self) -> None:
        if self.iteration != Iteration.FILL:
            return

        self.ls.calculate()
        logs.info(
            f"[ProcLinear] {self.name}: weights={self.ls.weights} "
            f"offset={self.ls.constant:.6g}"
        )

        self.iteration = self.iteration.advance(Iteration.DONE)
        self.trained = True

    def request_object(self, name: str):
        if name == "linear_analyzer":
            return self.ls
        return None

    # ------------------------------------------------------------------
    # cache
    # ------------------------------------------------------------------
    def load(self) -> bool:
        path = self.trainer.train_file_name(self, self.CACHE_EXT)

        try:
            doc = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return False

        if not isinstance(doc, dict) or doc.get("processor") != "ProcLinear":
            raise IoError(f"[ProcLinear] {path}: train data file has bad root node")

        if "least_squares" not in doc:
            raise IoError(f"[ProcLinear] {path}: train data file empty")

        extra = set(doc) - {"processor", "least_squares"}
        if extra:
            raise IoError(
                f"[ProcLinear] {path}: train data file contains superfluous keys {sorted(extra)}"
            )

        try:
            ls = LeastSquares.from_dict(doc["least_squares"])
        except (KeyError, TypeError, ValueError) as e:
            raise IoError(f"[ProcLinear] {path}: malformed least squares data: {e}") from e

        if ls.size != len(self.inputs):
            raise IoError(
                f"[ProcLinear] {path}: cached size {ls.size} != {len(self.inputs)} inputs"
            )

        self.ls = ls
        self.iteration = self.iteration.advance(Iteration.DONE)
        return True

    def save(self) -> None:
        if self.ls is None or not self.ls.solved:
            raise SolverError(f"[ProcLinear] {self.name}: nothing to save")

        doc = {"processor": "ProcLinear", "least_squares": self.ls.to_dict()}
        path = self.trainer.train_file_name(self, self.CACHE_EXT)

        try:
            fs.safe_write(path, json.dumps(doc, indent=2).encode("utf-8"))
        except OSError as e:
            raise IoError(f"[ProcLinear] cannot write {path}: {e}") from e

        logs.debug(f"[ProcLinear] {self.name}: saved {path}")

    def cleanup(self, force: bool = False) -> None:
        # cache 文件只在显式清理时删除
        if force:
            fs.remove(self.trainer.train_file_name(self, self.CACHE_EXT))
