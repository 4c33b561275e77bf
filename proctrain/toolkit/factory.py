# proctrain/toolkit/factory.py
from __future__ import annotations

import base64
import io
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import joblib
import numpy as np
import pandas as pd
import pyarrow.parquet as pq
from sklearn.base import BaseEstimator, clone

from proctrain import logs
from proctrain.dataset.export import TARGET_COLUMN, WEIGHT_COLUMN
from proctrain.toolkit.methods import build_estimator
from proctrain.utils.errors import ExternalToolError, IoError

WEIGHTS_DIR = "weights"


def weights_file(job_name: str, method_name: str, ext: str) -> Path:
    """
    cwd-relative weights path: weights/<job>_<method>.weights.<ext>
    """
    return Path(WEIGHTS_DIR) / f"{job_name}_{method_name}.weights.{ext}"


@dataclass
class _BookedMethod:
    method_type: str
    method_name: str
    description: str
    estimator: BaseEstimator


class Factory:
    """
    Fitting toolkit front-end（sklearn backed）

    Usage (inside toolkit_context):
        factory = Factory(job_name, output_file)
        factory.set_input(dataset)
        factory.add_variable("x")
        factory.book_method("BDT", "BDTG", "n_estimators=50")
        factory.train_all_methods()

    Produces per booked method:
        weights/<job>_<method>.weights.txt     textual description (self-contained)
        weights/<job>_<method>.weights.joblib  {"model", "feature_order"}
    and one output table with the training response of every method.
    """

    def __init__(self, job_name: str, output_file: Path):
        self.job_name = job_name
        self.output_file = Path(output_file)

        self.dataset: Optional[Path] = None
        self.target_column = TARGET_COLUMN
        self.weight_column = WEIGHT_COLUMN
        self.variables: List[str] = []
        self.methods: List[_BookedMethod] = []

    # ------------------------------------------------------------------
    # setup
    # ------------------------------------------------------------------
    def set_input(
        self,
        dataset: Path,
        *,
        target_column: str = TARGET_COLUMN,
        weight_column: str = WEIGHT_COLUMN,
    ) -> None:
        self.dataset = Path(dataset)
        self.target_column = target_column
        self.weight_column = weight_column

    def add_variable(self, name: str) -> None:
        self.variables.append(name)

    def book_method(self, method_type: str, method_name: str, description: str = "") -> None:
        self.methods.append(
            _BookedMethod(
                method_type=method_type,
                method_name=method_name,
                description=description,
                estimator=build_estimator(method_type, description),
            )
        )

    # ------------------------------------------------------------------
    # training
    # ------------------------------------------------------------------
    def _load(self) -> pd.DataFrame:
        if self.dataset is None:
            raise ExternalToolError(f"[Factory] {self.job_name}: no input dataset set")

        try:
            df = pq.read_table(self.dataset).to_pandas()
        except OSError as e:
            raise IoError(f"[Factory] cannot read dataset {self.dataset}: {e}") from e

        missing = [
            c for c in [self.target_column, self.weight_column, *self.variables]
            if c not in df.columns
        ]
        if missing:
            raise ExternalToolError(f"[Factory] dataset lacks columns {missing}")

        target = df[self.target_column].astype(bool)
        if not target.any():
            raise ExternalToolError(
                f"[Factory] {self.job_name}: no signal events in {self.dataset.name}"
            )
        if target.all():
            raise ExternalToolError(
                f"[Factory] {self.job_name}: no background events in {self.dataset.name}"
            )

        return df

    def train_all_methods(self) -> List[Path]:
        if not self.methods:
            raise ExternalToolError(f"[Factory] {self.job_name}: no method booked")

        df = self._load()
        X = df[self.variables].to_numpy(dtype=np.float64)
        y = df[self.target_column].astype(int).to_numpy()
        w = df[self.weight_column].to_numpy(dtype=np.float64)

        Path(WEIGHTS_DIR).mkdir(parents=True, exist_ok=True)

        output = {
            self.target_column: df[self.target_column].astype(bool),
            self.weight_column: df[self.weight_column],
        }
        written: List[Path] = []

        for booked in self.methods:
            estimator = clone(booked.estimator)

            logs.info(
                f"[Factory] {self.job_name}: fit {booked.method_type}/{booked.method_name} "
                f"rows={len(df)} vars={len(self.variables)}"
            )
            try:
                estimator.fit(X, y, sample_weight=w)
            except ValueError as e:
                raise ExternalToolError(
                    f"[Factory] {booked.method_name} rejected the dataset: {e}"
                ) from e

            output[booked.method_name] = estimator.predict_proba(X)[:, 1]
            written.append(self._write_weights(booked, estimator))

        pd.DataFrame(output).to_parquet(self.output_file, index=False)
        return written

    def _write_weights(self, booked: _BookedMethod, estimator: BaseEstimator) -> Path:
        artifact = {"model": estimator, "feature_order": list(self.variables)}

        joblib.dump(artifact, weights_file(self.job_name, booked.method_name, "joblib"))

        buf = io.BytesIO()
        joblib.dump(artifact, buf)

        description = {
            "job": self.job_name,
            "method_type": booked.method_type,
            "method_name": booked.method_name,
            "options": booked.description,
            "estimator": f"{type(estimator).__module__}.{type(estimator).__qualname__}",
            "params": estimator.get_params(deep=False),
            "variables": list(self.variables),
            "created_at": datetime.now(timezone.utc).isoformat(),
            "model": base64.b64encode(buf.getvalue()).decode("ascii"),
        }

        path = weights_file(self.job_name, booked.method_name, "txt")
        path.write_text(json.dumps(description, indent=2, default=str), encoding="utf-8")
        return path
