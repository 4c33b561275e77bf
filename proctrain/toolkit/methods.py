# proctrain/toolkit/methods.py
from __future__ import annotations

from typing import Any, Callable, Dict

import yaml
from sklearn.base import BaseEstimator
from sklearn.ensemble import GradientBoostingClassifier, RandomForestClassifier
from sklearn.linear_model import LogisticRegression
from sklearn.naive_bayes import GaussianNB

from proctrain.utils.errors import ConfigError

# ------------------------------------------------------------------
# Method types (frozen)
# 新增方法只在这里注册；estimator 必须支持 sample_weight
# ------------------------------------------------------------------
_METHOD_TYPES: Dict[str, Callable[[], BaseEstimator]] = {
    "BDT": GradientBoostingClassifier,
    "Forest": RandomForestClassifier,
    "Likelihood": GaussianNB,
    "Logistic": LogisticRegression,
}


def available_methods() -> list[str]:
    return sorted(_METHOD_TYPES)


def get_method_type(name: str) -> Callable[[], BaseEstimator]:
    if name not in _METHOD_TYPES:
        raise ConfigError(
            f"Unknown method type {name!r}. Available: {', '.join(available_methods())}"
        )
    return _METHOD_TYPES[name]


def parse_options(description: str) -> Dict[str, Any]:
    """
    "n_estimators=100:max_depth=3:!warm_start" →
        {"n_estimators": 100, "max_depth": 3, "warm_start": False}

    Values go through yaml.safe_load, so numbers / booleans / null
    come out typed. A bare key means True, "!key" means False.
    """
    options: Dict[str, Any] = {}

    for token in description.replace("\n", ":").split(":"):
        token = token.strip()
        if not token:
            continue

        key, sep, value = token.partition("=")
        key = key.strip()

        if not sep:
            if key.startswith("!"):
                options[key[1:]] = False
            else:
                options[key] = True
            continue

        if not key:
            raise ConfigError(f"Invalid method option {token!r}")

        try:
            options[key] = yaml.safe_load(value.strip())
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid value in method option {token!r}: {e}") from e

    return options


def build_estimator(method_type: str, description: str) -> BaseEstimator:
    """
    Instantiate and parametrize the estimator; unknown parameters are a
    configuration error.
    """
    estimator = get_method_type(method_type)()
    params = parse_options(description)

    try:
        estimator.set_params(**params)
    except ValueError as e:
        raise ConfigError(f"Invalid options for method {method_type}: {e}") from e

    return estimator
