# proctrain/toolkit/context.py
from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import sklearn


@contextmanager
def toolkit_context(workdir: Path | str | None = None) -> Iterator[Path]:
    """
    Scoped guard around every call into the fitting toolkit.

    Snapshots the process working directory and the scikit-learn global
    config, optionally chdirs into `workdir`, and restores both on exit,
    including the error path.
    """
    saved_cwd = os.getcwd()
    saved_config = sklearn.get_config()

    try:
        if workdir is not None:
            Path(workdir).mkdir(parents=True, exist_ok=True)
            os.chdir(workdir)
        yield Path(os.getcwd())
    finally:
        os.chdir(saved_cwd)
        sklearn.set_config(**saved_config)
