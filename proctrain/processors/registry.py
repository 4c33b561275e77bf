# proctrain/processors/registry.py
from __future__ import annotations

from typing import Callable, Dict, Iterable, Type

from proctrain.processors.base import TrainProcessor
from proctrain.trainer.context import TrainerContext
from proctrain.utils.errors import ConfigError

# ------------------------------------------------------------------
# Global registry (kind → class)
# ------------------------------------------------------------------
_PROCESSOR_REGISTRY: Dict[str, Type[TrainProcessor]] = {}


def register_processor(kind: str) -> Callable[[Type[TrainProcessor]], Type[TrainProcessor]]:
    def _wrap(cls: Type[TrainProcessor]) -> Type[TrainProcessor]:
        if kind in _PROCESSOR_REGISTRY and _PROCESSOR_REGISTRY[kind] is not cls:
            raise ValueError(f"Processor kind {kind!r} registered twice")
        cls.kind = kind
        _PROCESSOR_REGISTRY[kind] = cls
        return cls

    return _wrap


def available_processors() -> list[str]:
    _load_builtin()
    return sorted(_PROCESSOR_REGISTRY)


def create_processor(
    kind: str,
    *,
    name: str,
    inputs: Iterable[str],
    trainer: TrainerContext,
) -> TrainProcessor:
    _load_builtin()

    if kind not in _PROCESSOR_REGISTRY:
        raise ConfigError(
            f"No TrainProcessor for {kind!r}. Available: {', '.join(sorted(_PROCESSOR_REGISTRY))}"
        )

    return _PROCESSOR_REGISTRY[kind](name, inputs, trainer)


def _load_builtin() -> None:
    # 内置 processor 通过 import 注册
    from proctrain.processors import external, linear, output  # noqa: F401
