# proctrain/solver/least_squares.py
from __future__ import annotations

from typing import Any, Dict, Sequence

import numpy as np

from proctrain.utils.errors import SolverError

# 超过该条件数视为病态矩阵
_MAX_CONDITION = 1.0 / np.finfo(np.float64).eps


class LeastSquares:
    """
    Weighted linear least-squares accumulator（append-only）

    Each event (x, t, w) contributes, with the augmented vector
    a = [x_1 .. x_n, 1]:

        S   += w * a aᵗ        (n+1) x (n+1)
        b   += w * t * a       (n+1)
        tt  += w * t * t

    calculate() solves S β = b, giving n weights plus a constant offset.

    Accumulation is a plain sum, so the result does not depend on event
    order and feeding an event twice equals feeding it once with 2w.
    """

    def __init__(self, n: int):
        if n < 0:
            raise ValueError(f"LeastSquares size must be >= 0, got {n}")

        self.n = n
        self._matrix = np.zeros((n + 1, n + 1), dtype=np.float64)
        self._vector = np.zeros(n + 1, dtype=np.float64)
        self._target_square = 0.0

        self._weights: np.ndarray | None = None
        self._constant: float | None = None

    # ------------------------------------------------------------------
    # accumulation
    # ------------------------------------------------------------------
    @property
    def size(self) -> int:
        return self.n

    def add(self, values: Sequence[float], target: bool | float, weight: float = 1.0) -> None:
        if len(values) != self.n:
            raise ValueError(
                f"LeastSquares expects {self.n} values, got {len(values)}"
            )

        a = np.empty(self.n + 1, dtype=np.float64)
        a[: self.n] = values
        a[self.n] = 1.0
        t = float(target)
        w = float(weight)

        self._matrix += w * np.outer(a, a)
        self._vector += (w * t) * a
        self._target_square += w * t * t

    @property
    def total_weight(self) -> float:
        return float(self._matrix[self.n, self.n])

    # ------------------------------------------------------------------
    # solve
    # ------------------------------------------------------------------
    def calculate(self) -> None:
        if self.total_weight <= 0.0:
            raise SolverError("LeastSquares: no weighted events accumulated")

        cond = np.linalg.cond(self._matrix)
        rank = np.linalg.matrix_rank(self._matrix)
        if rank < self.n + 1 or not np.isfinite(cond) or cond > _MAX_CONDITION:
            raise SolverError(
                f"LeastSquares: matrix is singular or ill-conditioned (cond={cond:.3g})"
            )

        try:
            solution = np.linalg.solve(self._matrix, self._vector)
        except np.linalg.LinAlgError as e:
            raise SolverError(f"LeastSquares: {e}") from e

        self._weights = solution[: self.n]
        self._constant = float(solution[self.n])

    @property
    def solved(self) -> bool:
        return self._weights is not None

    @property
    def weights(self) -> list[float]:
        if self._weights is None:
            raise SolverError("LeastSquares: calculate() has not been run")
        return [float(v) for v in self._weights]

    @property
    def constant(self) -> float:
        if self._constant is None:
            raise SolverError("LeastSquares: calculate() has not been run")
        return self._constant

    # ------------------------------------------------------------------
    # linear analyzer
    # ------------------------------------------------------------------
    def correlations(self) -> np.ndarray:
        """
        Weighted Pearson correlation of (x_1 .. x_n, target).

        Entries involving a constant variable are NaN.
        """
        w = self.total_weight
        if w <= 0.0:
            raise SolverError("LeastSquares: no weighted events accumulated")

        n = self.n
        second = np.empty((n + 1, n + 1), dtype=np.float64)
        second[:n, :n] = self._matrix[:n, :n]
        second[:n, n] = self._vector[:n]
        second[n, :n] = self._vector[:n]
        second[n, n] = self._target_square
        second /= w

        mean = np.empty(n + 1, dtype=np.float64)
        mean[:n] = self._matrix[:n, n] / w
        mean[n] = self._vector[n] / w

        cov = second - np.outer(mean, mean)
        sigma = np.sqrt(np.clip(np.diag(cov), 0.0, None))

        with np.errstate(divide="ignore", invalid="ignore"):
            corr = cov / np.outer(sigma, sigma)
        corr[~np.isfinite(corr)] = np.nan
        return corr

    # ------------------------------------------------------------------
    # persistence
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "size": self.n,
            "matrix": self._matrix.tolist(),
            "vector": self._vector.tolist(),
            "target_square": self._target_square,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LeastSquares":
        """
        Rebuild the accumulator and solve.
        Raises ValueError on shape mismatch, SolverError if degenerate.
        """
        n = int(data["size"])
        matrix = np.asarray(data["matrix"], dtype=np.float64)
        vector = np.asarray(data["vector"], dtype=np.float64)

        if matrix.shape != (n + 1, n + 1) or vector.shape != (n + 1,):
            raise ValueError(
                f"LeastSquares: bad shapes {matrix.shape} / {vector.shape} for size {n}"
            )

        ls = cls(n)
        ls._matrix = matrix
        ls._vector = vector
        ls._target_square = float(data.get("target_square", 0.0))
        ls.calculate()
        return ls
