# proctrain/core/state.py
from __future__ import annotations

from enum import IntEnum

from proctrain.utils.errors import ProcessorStateError


class ForwardEnum(IntEnum):
    """
    Totally ordered state that only ever advances.
    Variants declare their own one-shot phase markers on top of it.
    """

    def advance(self, target: "ForwardEnum") -> "ForwardEnum":
        if target < self:
            raise ProcessorStateError(
                f"{type(self).__name__}: cannot go back from {self.name} to {target.name}"
            )
        return target


class ProcessorState(ForwardEnum):
    UNCONFIGURED = 0
    CONFIGURED = 1
    TRAINING = 2
    FINALIZED = 3
