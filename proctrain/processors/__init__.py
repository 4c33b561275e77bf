# proctrain/processors/__init__.py
from proctrain.processors.base import TrainProcessor
from proctrain.processors.registry import (
    available_processors,
    create_processor,
    register_processor,
)

__all__ = [
    "TrainProcessor",
    "available_processors",
    "create_processor",
    "register_processor",
]
