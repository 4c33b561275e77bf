# tests/conftest.py
from __future__ import annotations

from pathlib import Path
from typing import List

import numpy as np
import pytest
from loguru import logger

from proctrain.core.events import TrainingEvent
from proctrain.monitoring.monitor import TrainerMonitoring
from proctrain.trainer.context import TrainerContext
from proctrain.utils.path import PathManager


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)
    yield


@pytest.fixture
def train_dir(tmp_path: Path) -> Path:
    d = tmp_path / "train"
    d.mkdir()
    return d


@pytest.fixture
def trainer(train_dir: Path) -> TrainerContext:
    """
    Minimal TrainerContext, monitoring enabled, isolated under tmp_path.
    """
    return TrainerContext(
        name="test",
        pm=PathManager(train_dir),
        monitoring=TrainerMonitoring(enabled=True),
    )


@pytest.fixture
def make_events():
    """
    Factory fixture: two gaussian classes in n_vars dimensions.

    signal     ~ N(+1, 1)
    background ~ N(-1, 1)
    """

    def _make(
        n_signal: int = 100,
        n_background: int = 100,
        n_vars: int = 2,
        *,
        seed: int = 7,
        test: bool = False,
    ) -> List[TrainingEvent]:
        rng = np.random.default_rng(seed)
        events = []

        for target, n, mean in ((True, n_signal, 1.0), (False, n_background, -1.0)):
            xs = rng.normal(mean, 1.0, size=(n, n_vars))
            ws = rng.uniform(0.5, 1.5, size=n)
            for x, w in zip(xs, ws):
                events.append(
                    TrainingEvent.scalar(x, target, w, train=True, test=test)
                )

        return events

    return _make
