# proctrain/processors/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from proctrain import logs
from proctrain.core.events import TrainingEvent
from proctrain.core.state import ProcessorState
from proctrain.core.variables import VariableBinding
from proctrain.monitoring.monitor import SigBkg
from proctrain.trainer.context import TrainerContext
from proctrain.utils.errors import ProcessorStateError


class TrainProcessor(ABC):
    """
    TrainProcessor（FINAL / FROZEN）

    Lifecycle driven by the orchestrator:

        configure(spec)
        try_load_cached()          → True: FINALIZED, skip training
        begin_training()
        observe(event) ...
        end_training()             → FINALIZED once the variant says trained
        export_calibration()
        persist() / cleanup()

    Variants implement the hooks:
        configure_section / load / save / cleanup
        train_begin / train_data / test_data / train_end
        get_calibration

    The base class owns the state machine and the monitoring bin sets,
    so every variant gets the same input monitoring for free.
    """

    kind: str = ""
    monitor_as_output: bool = False

    def __init__(
        self,
        name: str,
        inputs: VariableBinding | Iterable[str],
        trainer: TrainerContext,
    ):
        if not isinstance(inputs, VariableBinding):
            inputs = VariableBinding.from_strings(inputs)

        self.name = name
        self.inputs: VariableBinding = inputs
        self.trainer = trainer

        self.state = ProcessorState.UNCONFIGURED
        self.trained = False

        self._monitor_booked = False
        self._mon_sets: Optional[List[SigBkg]] = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, state={self.state.name})"

    # ==================================================================
    # Lifecycle (orchestrator facing)
    # ==================================================================
    def configure(self, spec: Mapping[str, Any] | None = None) -> None:
        self._require(ProcessorState.UNCONFIGURED, "configure")
        self.configure_section(dict(spec or {}))
        self.state = self.state.advance(ProcessorState.CONFIGURED)
        logs.debug(f"[{self.kind}] {self.name} configured inputs={self.inputs.names}")

    def try_load_cached(self) -> bool:
        """
        Presence-only cache check; a hit skips training entirely.
        """
        self._require(ProcessorState.CONFIGURED, "try_load_cached")

        if not self.load():
            return False

        self.trained = True
        self.state = self.state.advance(ProcessorState.FINALIZED)
        logs.info(f"[{self.kind}] {self.name} loaded from cache, training skipped")
        return True

    def begin_training(self) -> None:
        if self.state == ProcessorState.FINALIZED:
            return
        if self.state < ProcessorState.CONFIGURED:
            raise ProcessorStateError(f"{self!r}: begin_training before configure")

        self.state = self.state.advance(ProcessorState.TRAINING)
        self._book_monitoring()
        self.train_begin()

    def observe(self, event: TrainingEvent) -> None:
        if self.state == ProcessorState.FINALIZED:
            return
        self._require(ProcessorState.TRAINING, "observe")

        if event.test and self._mon_sets is not None:
            for pair, group in zip(self._mon_sets, event.values):
                for value in group:
                    pair.fill(float(value), event.target, event.weight)

        if event.train:
            self.train_data(event.values, event.target, event.weight)
        if event.test:
            self.test_data(event.values, event.target, event.weight, event.train)

    def end_training(self) -> None:
        if self.state == ProcessorState.FINALIZED:
            return
        self._require(ProcessorState.TRAINING, "end_training")

        try:
            self.train_end()
        finally:
            # 失败时监控照样落盘
            self._finalize_monitoring()

        if self.trained:
            self.state = self.state.advance(ProcessorState.FINALIZED)
            logs.info(f"[{self.kind}] {self.name} trained")

    def export_calibration(self) -> Any:
        self._require(ProcessorState.FINALIZED, "export_calibration")
        return self.get_calibration()

    def persist(self) -> None:
        self._require(ProcessorState.FINALIZED, "persist")
        self.save()

    @property
    def finalized(self) -> bool:
        return self.state == ProcessorState.FINALIZED

    # ==================================================================
    # Variant hooks
    # ==================================================================
    def configure_section(self, spec: dict) -> None:
        """
        Parse the variant-specific section; raise ConfigError if invalid.
        """

    def load(self) -> bool:
        return False

    def save(self) -> None:
        pass

    def cleanup(self, force: bool = False) -> None:
        """
        Remove transient files; force also removes the cache.
        Idempotent.
        """

    @abstractmethod
    def train_begin(self) -> None:
        ...

    @abstractmethod
    def train_data(self, values: Sequence[Sequence[float]], target: bool, weight: float) -> None:
        ...

    def test_data(
        self,
        values: Sequence[Sequence[float]],
        target: bool,
        weight: float,
        train: bool,
    ) -> None:
        pass

    @abstractmethod
    def train_end(self) -> None:
        ...

    @abstractmethod
    def get_calibration(self) -> Any:
        ...

    def request_object(self, name: str) -> Any:
        return None

    # ==================================================================
    # Internal
    # ==================================================================
    def _require(self, state: ProcessorState, op: str) -> None:
        if self.state != state:
            raise ProcessorStateError(
                f"{self!r}: {op} requires state {state.name}"
            )

    def _book_monitoring(self) -> None:
        if self._monitor_booked:
            return
        self._monitor_booked = True

        if self.monitor_as_output:
            module = self.trainer.book_monitor("output")
        else:
            module = self.trainer.book_monitor(f"input_{self.name}")

        if module is not None:
            self._mon_sets = module.book_bin_sets(
                self.inputs.names, output=self.monitor_as_output
            )

    def _finalize_monitoring(self) -> None:
        if self._mon_sets is None:
            return

        for pair in self._mon_sets:
            pair.finalize()

        # 只监控第一轮训练
        self._mon_sets = None
