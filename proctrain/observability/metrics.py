#!filepath: proctrain/observability/metrics.py
from dataclasses import dataclass, field
from typing import Any, Dict

from proctrain.utils.logger import logs


@dataclass
class MetricRecorder:
    """
    Per-run counters and flags, keyed "<processor>.<metric>":
        linear.events  = 200
        linear.cached  = True
    """

    enabled: bool = True
    metrics: Dict[str, Any] = field(default_factory=dict)

    def record(self, name: str, value: Any) -> None:
        if self.enabled:
            self.metrics[name] = value
            logs.debug(f"[Metric] {name} = {value}")

    def increment(self, name: str, by: float = 1) -> None:
        if self.enabled:
            self.metrics[name] = self.metrics.get(name, 0) + by

    def snapshot(self) -> Dict[str, Any]:
        return dict(self.metrics)
