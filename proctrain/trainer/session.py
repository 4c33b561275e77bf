# proctrain/trainer/session.py
from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List

from proctrain import logs
from proctrain.config.trainer_config import TrainerConfig
from proctrain.core.events import TrainingEvent
from proctrain.dataset.events import EventTable
from proctrain.processors.base import TrainProcessor
from proctrain.processors.registry import create_processor
from proctrain.trainer.context import TrainerContext
from proctrain.utils.errors import ProcessorStateError

EventSource = Callable[[TrainProcessor], Iterable[TrainingEvent]]


def build_processors(cfg: TrainerConfig, trainer: TrainerContext) -> List[TrainProcessor]:
    """
    Instantiate + configure processors in config order.
    Ordering / wiring is the orchestrator's decision, not ours.
    """
    processors = []
    for pcfg in cfg.processors:
        proc = create_processor(
            pcfg.kind, name=pcfg.name, inputs=pcfg.inputs, trainer=trainer
        )
        proc.configure(pcfg.config)
        processors.append(proc)
    return processors


class TrainingSession:
    """
    TrainingSession（sequential / FINAL）

    Semantics:
    - one processor's full lifecycle before the next
    - every failure is logged and re-raised, no retry
    - monitoring is written once, after all processors
    """

    MAX_ITERATIONS = 16

    def __init__(
        self,
        trainer: TrainerContext,
        processors: List[TrainProcessor],
        *,
        cleanup: bool = False,
    ):
        self.trainer = trainer
        self.processors = processors
        self.cleanup = cleanup

    @classmethod
    def from_config(cls, cfg: TrainerConfig, trainer: TrainerContext) -> "TrainingSession":
        return cls(trainer, build_processors(cfg, trainer), cleanup=cfg.cleanup)

    # ------------------------------------------------------------------
    def train_processor(
        self,
        proc: TrainProcessor,
        events: Callable[[], Iterable[TrainingEvent]],
    ) -> Any:
        inst = self.trainer.inst

        with inst.timer(f"{proc.kind}:{proc.name}"):
            if proc.try_load_cached():
                inst.metrics.record(f"{proc.name}.cached", True)
                return proc.export_calibration()

            for _ in range(self.MAX_ITERATIONS):
                proc.begin_training()

                n = 0
                for event in events():
                    proc.observe(event)
                    n += 1
                inst.metrics.increment(f"{proc.name}.events", n)

                proc.end_training()
                if proc.finalized:
                    break
            else:
                raise ProcessorStateError(
                    f"{proc!r} not finalized after {self.MAX_ITERATIONS} iterations"
                )

            proc.persist()
            return proc.export_calibration()

    def run(self, source: EventSource | EventTable) -> Dict[str, Any]:
        if isinstance(source, EventTable):
            table = source
            source = lambda p: table.events_for(p.inputs)  # noqa: E731

        logs.info(
            f"[TrainingSession] START trainer={self.trainer.name} "
            f"processors={[p.name for p in self.processors]}"
        )

        calibrations: Dict[str, Any] = {}
        try:
            for proc in self.processors:
                try:
                    calibrations[proc.name] = self.train_processor(
                        proc, lambda p=proc: source(p)
                    )
                except Exception:
                    logs.exception(f"[TrainingSession] {proc.kind} {proc.name} failed")
                    raise
        finally:
            self.trainer.write_monitoring()

        if self.cleanup:
            for proc in self.processors:
                proc.cleanup()

        logs.info("[TrainingSession] DONE")
        return calibrations
