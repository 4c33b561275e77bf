# tests/core/test_events_state.py
import pytest

from proctrain.core.events import TrainingEvent
from proctrain.core.state import ProcessorState
from proctrain.utils.errors import ProcessorStateError


def test_negative_weight_rejected():
    with pytest.raises(ValueError):
        TrainingEvent.scalar([1.0], True, -0.5)


@pytest.mark.parametrize("weight", [float("nan"), float("inf")])
def test_non_numeric_weight_rejected(weight):
    with pytest.raises(ValueError, match="finite non-negative number"):
        TrainingEvent.scalar([1.0], True, weight)


def test_scalar_defaults_train_only():
    ev = TrainingEvent.scalar([3.0], 1)
    assert ev.values == [[3.0]]
    assert ev.target is True
    assert ev.train and not ev.test


def test_state_advances_forward_only():
    s = ProcessorState.UNCONFIGURED
    s = s.advance(ProcessorState.CONFIGURED)
    s = s.advance(ProcessorState.FINALIZED)

    assert s == ProcessorState.FINALIZED
    with pytest.raises(ProcessorStateError):
        s.advance(ProcessorState.TRAINING)
