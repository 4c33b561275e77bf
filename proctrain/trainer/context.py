# proctrain/trainer/context.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from proctrain.config.trainer_config import TrainerConfig
from proctrain.monitoring.monitor import MonitoringModule, TrainerMonitoring
from proctrain.observability.instrumentation import Instrumentation
from proctrain.utils.path import PathManager

if TYPE_CHECKING:
    from proctrain.processors.base import TrainProcessor


@dataclass
class TrainerContext:
    """
    TrainerContext（one per training run）

    The processors' only handle on the host:
      - run name
      - working directory + file naming
      - monitoring booking
    """

    name: str
    pm: PathManager
    monitoring: TrainerMonitoring = field(default_factory=TrainerMonitoring)
    inst: Instrumentation = field(default_factory=Instrumentation.disabled)
    monitoring_file: str = "train_monitoring.parquet"

    @classmethod
    def from_config(
        cls,
        cfg: TrainerConfig,
        inst: Instrumentation | None = None,
    ) -> "TrainerContext":
        return cls(
            name=cfg.name,
            pm=PathManager(cfg.train_dir, cfg.file_mask),
            monitoring=TrainerMonitoring(enabled=cfg.monitoring),
            inst=inst if inst is not None else Instrumentation.disabled(),
            monitoring_file=cfg.monitoring_file,
        )

    @property
    def train_dir(self) -> Path:
        return self.pm.train_dir

    def train_file_name(
        self, processor: "TrainProcessor", ext: str, arg: str | None = None
    ) -> Path:
        return self.pm.train_file(processor.name, ext, arg)

    def book_monitor(self, name: str) -> Optional[MonitoringModule]:
        return self.monitoring.book(name)

    def write_monitoring(self) -> Optional[Path]:
        if not self.monitoring.enabled or not self.monitoring.modules:
            return None
        return self.monitoring.write(self.pm.monitoring_file(self.monitoring_file))
