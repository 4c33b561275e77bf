#!filepath: proctrain/__init__.py

from .utils.logger import Logging, logs, init_logging
from .utils.filesystem import FileSystem
from .utils.path import PathManager

__version__ = "0.1.0"

# alias 简化调用
fs = FileSystem

__all__ = [
    "logs", "Logging", "init_logging",
    "fs",
    "PathManager",
    "__version__",
]
