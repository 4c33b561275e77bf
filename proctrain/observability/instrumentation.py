#!filepath: proctrain/observability/instrumentation.py
from __future__ import annotations

import time
from collections import OrderedDict
from contextlib import contextmanager
from typing import Dict, Iterator

from proctrain.observability.metrics import MetricRecorder


class Instrumentation:
    """
    Instrumentation（per training run）

    - timer(name)               → wall time into timeline[name]
    - metrics                   → MetricRecorder（计数 / 标记）

    enabled=False: 全部变成空操作，processor 代码无需判断
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self.metrics = MetricRecorder(enabled=enabled)
        self.timeline: Dict[str, float] = OrderedDict()

    @contextmanager
    def timer(self, name: str) -> Iterator[None]:
        if not self.enabled:
            yield
            return

        start = time.perf_counter()
        try:
            yield
        finally:
            # 失败的 processor 也留下耗时
            self.timeline[name] = time.perf_counter() - start

    @classmethod
    def disabled(cls) -> "Instrumentation":
        return cls(enabled=False)
