# proctrain/calibration/artifacts.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(frozen=True)
class LinearCalibration:
    """
    ProcLinear result: response = Σ coefficients[i] * x[i] + offset
    """

    coefficients: List[float]
    offset: float

    TYPE = "ProcLinear"

    def to_record(self) -> Dict[str, Any]:
        return {
            "type": self.TYPE,
            "coefficients": list(self.coefficients),
            "offset": self.offset,
        }


@dataclass(frozen=True)
class EmbeddedCalibration:
    """
    ProcExternal result（FROZEN）

    payload:
      zlib stream of the external toolkit's textual weights description,
      decoded by the evaluation engine
    variables:
      ordered, de-duplicated display names the model was trained on
    """

    method: str
    variables: List[str]
    payload: bytes = field(repr=False)

    TYPE = "ProcExternal"

    def to_record(self) -> Dict[str, Any]:
        return {
            "type": self.TYPE,
            "method": self.method,
            "variables": list(self.variables),
            "payload": self.payload,
        }
