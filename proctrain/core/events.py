# proctrain/core/events.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class TrainingEvent:
    """
    One labeled, weighted observation（transient）

    values:
      one value-group per bound variable; a group may hold several scalars,
      the numeric processors only read the first one
    train / test:
      orthogonal routing bits
    """

    values: Sequence[Sequence[float]]
    target: bool
    weight: float = 1.0
    train: bool = True
    test: bool = False

    def __post_init__(self):
        # NaN / inf 一并拒绝
        if not (math.isfinite(self.weight) and self.weight >= 0):
            raise ValueError(f"event weight must be a finite non-negative number, got {self.weight}")

    @classmethod
    def scalar(
        cls,
        values: Sequence[float],
        target: bool,
        weight: float = 1.0,
        *,
        train: bool = True,
        test: bool = False,
    ) -> "TrainingEvent":
        return cls(
            values=[[float(v)] for v in values],
            target=bool(target),
            weight=float(weight),
            train=train,
            test=test,
        )
