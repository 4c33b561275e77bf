# proctrain/processors/external.py
from __future__ import annotations

from enum import auto
from pathlib import Path
from typing import Sequence

from pydantic import BaseModel, ConfigDict, ValidationError

from proctrain import fs, logs
from proctrain.calibration.artifacts import EmbeddedCalibration
from proctrain.codec.artifact_codec import embed_weights
from proctrain.core.state import ForwardEnum
from proctrain.dataset.export import DatasetExporter
from proctrain.processors.base import TrainProcessor
from proctrain.processors.registry import register_processor
from proctrain.toolkit.context import toolkit_context
from proctrain.toolkit.factory import Factory, weights_file
from proctrain.toolkit.methods import build_estimator
from proctrain.utils.errors import ConfigError, ExternalToolError, IoError


class Iteration(ForwardEnum):
    EXPORT = auto()
    DONE = auto()


class MethodSection(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: str
    name: str
    description: str = ""


class ExternalSection(BaseModel):
    model_config = ConfigDict(extra="forbid")

    method: MethodSection


@register_processor("ProcExternal")
class ProcExternal(TrainProcessor):
    """
    ProcExternal（FINAL）

    Delegates the multivariate fit to the external toolkit:

    1. train_begin  → open the columnar export  train_<name>_input.parquet
    2. train_data   → one row per event (first scalar of each group)
    3. train_end    → run the toolkit inside toolkit_context(train_dir)
    4. get_calibration → zlib-embed weights/<tree>_<method>.weights.txt

    Cache: presence of the weights text file.
    """

    def __init__(self, name, inputs, trainer):
        super().__init__(name, inputs, trainer)
        self.iteration = Iteration.EXPORT

        self.method_type = ""
        self.method_name = ""
        self.method_description = ""
        self.names = list(self.inputs.names)

        self.exporter: DatasetExporter | None = None
        self.n_signal = 0
        self.n_background = 0
        self.needs_cleanup = False

    # ------------------------------------------------------------------
    # naming
    # ------------------------------------------------------------------
    @property
    def tree_name(self) -> str:
        return f"{self.trainer.name}_{self.name}"

    def weights_path(self, ext: str) -> Path:
        return self.trainer.train_dir / weights_file(self.tree_name, self.method_name, ext)

    # ------------------------------------------------------------------
    # configure
    # ------------------------------------------------------------------
    def configure_section(self, spec: dict) -> None:
        if "method" not in spec:
            raise ConfigError(
                f"[ProcExternal] {self.name}: expected method in config section"
            )

        try:
            section = ExternalSection(**spec)
        except ValidationError as e:
            raise ConfigError(
                f"[ProcExternal] {self.name}: invalid config section: {e}"
            ) from e

        # 提前校验 method type / options
        build_estimator(section.method.type, section.method.description)

        self.method_type = section.method.type
        self.method_name = section.method.name
        self.method_description = section.method.description

    def load(self) -> bool:
        if not fs.file_exists(self.weights_path("txt")):
            return False

        self.iteration = self.iteration.advance(Iteration.DONE)
        return True

    def get_calibration(self) -> EmbeddedCalibration:
        return embed_weights(
            self.weights_path("txt"),
            method=self.method_name,
            variables=self.names,
        )

    # ------------------------------------------------------------------
    # training
    # ------------------------------------------------------------------
    def train_begin(self) -> None:
        if self.iteration != Iteration.EXPORT:
            return

        path = self.trainer.train_file_name(self, "parquet", "input")
        try:
            self.exporter = DatasetExporter(path, self.names)
        except OSError as e:
            raise IoError(f"[ProcExternal] could not open {path} for writing: {e}") from e

        self.n_signal = self.n_background = 0

    def train_data(self, values: Sequence[Sequence[float]], target: bool, weight: float) -> None:
        if self.iteration != Iteration.EXPORT:
            return

        row = [float(group[0]) for group in values[: len(self.names)]]
        self.exporter.append(row, target, weight)

        if target:
            self.n_signal += 1
        else:
            self.n_background += 1

    def train_end(self) -> None:
        if self.iteration != Iteration.EXPORT:
            return

        self.exporter.close()
        self.exporter = None

        self._run_toolkit()

        self.iteration = self.iteration.advance(Iteration.DONE)
        self.trained = True

    def _run_toolkit(self) -> None:
        self.needs_cleanup = True

        if self.n_signal < 1:
            raise ExternalToolError(
                f"[ProcExternal] {self.name}: not going to run toolkit, no signal events"
            )
        if self.n_background < 1:
            raise ExternalToolError(
                f"[ProcExternal] {self.name}: not going to run toolkit, no background events"
            )

        input_file = self.trainer.train_file_name(self, "parquet", "input").resolve()
        output_file = self.trainer.train_file_name(self, "parquet", "output").resolve()

        logs.info(
            f"[ProcExternal] {self.name}: {self.method_type}/{self.method_name} "
            f"signal={self.n_signal} background={self.n_background}"
        )

        with toolkit_context(self.trainer.train_dir):
            factory = Factory(self.tree_name, output_file)
            factory.set_input(input_file)
            for name in self.names:
                factory.add_variable(name)
            factory.book_method(
                self.method_type, self.method_name, self.method_description
            )
            factory.train_all_methods()

    # ------------------------------------------------------------------
    # cleanup
    # ------------------------------------------------------------------
    def cleanup(self, force: bool = False) -> None:
        if not (self.needs_cleanup or force):
            return

        if self.exporter is not None:
            self.exporter.close()
            self.exporter = None

        for path in (
            self.trainer.train_file_name(self, "parquet", "input"),
            self.trainer.train_file_name(self, "parquet", "output"),
            self.weights_path("txt"),
            self.weights_path("joblib"),
        ):
            fs.remove(path)

        fs.remove_empty_dir(self.trainer.pm.weights_dir())
        self.needs_cleanup = False
