# tests/toolkit/test_toolkit.py
import os

import pandas as pd
import pytest
import sklearn
from sklearn.ensemble import GradientBoostingClassifier

from proctrain.dataset.export import TARGET_COLUMN, WEIGHT_COLUMN, DatasetExporter
from proctrain.toolkit.context import toolkit_context
from proctrain.toolkit.factory import Factory, weights_file
from proctrain.toolkit.methods import (
    available_methods,
    build_estimator,
    get_method_type,
    parse_options,
)
from proctrain.utils.errors import ConfigError, ExternalToolError


# ----------------------------------------------------------------------
# methods
# ----------------------------------------------------------------------
def test_parse_options_typed_values():
    opts = parse_options("n_estimators=100:learning_rate=0.1:!warm_start:verbose")
    assert opts == {
        "n_estimators": 100,
        "learning_rate": 0.1,
        "warm_start": False,
        "verbose": True,
    }


def test_parse_options_empty():
    assert parse_options("") == {}
    assert parse_options("::") == {}


def test_parse_options_rejects_empty_key():
    with pytest.raises(ConfigError):
        parse_options("=3")


def test_method_registry():
    assert "BDT" in available_methods()
    assert get_method_type("BDT") is GradientBoostingClassifier

    with pytest.raises(ConfigError, match="Unknown method type"):
        get_method_type("SVM")


def test_build_estimator_applies_options():
    est = build_estimator("BDT", "n_estimators=7:max_depth=2")
    assert est.get_params()["n_estimators"] == 7
    assert est.get_params()["max_depth"] == 2


# ----------------------------------------------------------------------
# context guard
# ----------------------------------------------------------------------
def test_context_restores_cwd_and_config_on_error(tmp_path):
    cwd = os.getcwd()
    before = sklearn.get_config()

    with pytest.raises(RuntimeError):
        with toolkit_context(tmp_path / "work") as workdir:
            assert workdir == (tmp_path / "work").resolve()
            sklearn.set_config(assume_finite=not before["assume_finite"])
            raise RuntimeError("boom")

    assert os.getcwd() == cwd
    assert sklearn.get_config() == before


def test_context_without_workdir_keeps_cwd():
    cwd = os.getcwd()
    with toolkit_context() as workdir:
        assert str(workdir) == cwd
    assert os.getcwd() == cwd


# ----------------------------------------------------------------------
# factory
# ----------------------------------------------------------------------
def _dataset(path, n=40):
    exporter = DatasetExporter(path, ["a", "b"])
    for i in range(n):
        target = i % 2 == 0
        shift = 1.0 if target else -1.0
        exporter.append([shift + 0.01 * i, shift - 0.02 * i], target, 1.0)
    exporter.close()
    return path


def test_factory_writes_weights_and_output(tmp_path):
    data = _dataset(tmp_path / "input.parquet")

    with toolkit_context(tmp_path / "job"):
        factory = Factory("job", tmp_path / "output.parquet")
        factory.set_input(data)
        factory.add_variable("a")
        factory.add_variable("b")
        factory.book_method("Likelihood", "NB")
        written = factory.train_all_methods()

    assert written == [weights_file("job", "NB", "txt")]
    assert (tmp_path / "job" / "weights" / "job_NB.weights.txt").exists()
    assert (tmp_path / "job" / "weights" / "job_NB.weights.joblib").exists()

    out = pd.read_parquet(tmp_path / "output.parquet")
    assert list(out.columns) == [TARGET_COLUMN, WEIGHT_COLUMN, "NB"]
    assert out["NB"].between(0.0, 1.0).all()


def test_factory_without_method(tmp_path):
    factory = Factory("job", tmp_path / "out.parquet")
    with pytest.raises(ExternalToolError, match="no method"):
        factory.train_all_methods()


def test_factory_missing_column(tmp_path):
    data = _dataset(tmp_path / "input.parquet")

    with toolkit_context(tmp_path / "job"):
        factory = Factory("job", tmp_path / "out.parquet")
        factory.set_input(data)
        factory.add_variable("missing")
        factory.book_method("Likelihood", "NB")
        with pytest.raises(ExternalToolError, match="lacks columns"):
            factory.train_all_methods()


def test_exporter_rejects_reserved_names(tmp_path):
    with pytest.raises(ValueError):
        DatasetExporter(tmp_path / "x.parquet", [TARGET_COLUMN])


def test_exporter_close_is_idempotent(tmp_path):
    exporter = DatasetExporter(tmp_path / "x.parquet", ["a"], batch_size=2)
    for i in range(5):
        exporter.append([float(i)], i % 2 == 0, 1.0)
    exporter.close()
    exporter.close()

    df = pd.read_parquet(tmp_path / "x.parquet")
    assert len(df) == 5
    assert exporter.closed
    with pytest.raises(RuntimeError):
        exporter.append([1.0], True, 1.0)
