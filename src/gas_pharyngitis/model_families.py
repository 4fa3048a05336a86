"""
Model-family descriptors.

Each family is data: its recipe variant, its declared hyperparameter grid, a
factory that turns one configuration into an unfitted estimator, an optional
importance extractor and the default selection policy. The tuner, selector and
final estimator are generic over these descriptors.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.calibration import CalibratedClassifierCV
from sklearn.ensemble import RandomForestClassifier
from sklearn.linear_model import LogisticRegression
from sklearn.neighbors import KNeighborsClassifier
from sklearn.svm import SVC

from .errors import ConfigurationError

SCALES = ("linear", "log10", "log2")


@dataclass(frozen=True)
class HyperparameterSpec:
    """A declared range (or explicit value list) for one hyperparameter."""
    name: str
    low: Optional[float] = None
    high: Optional[float] = None
    levels: int = 5
    scale: str = "linear"
    integer: bool = False
    values: Optional[Tuple[Any, ...]] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    positive: bool = False

    def grid_values(self) -> List[Any]:
        """Enumerate the levels; log scales take exponent bounds and return native values."""
        if self.values is not None:
            values = list(self.values)
            if not values:
                raise ConfigurationError(f"{self.name}: explicit value list is empty")
        else:
            if self.low is None or self.high is None:
                raise ConfigurationError(f"{self.name}: needs either 'values' or both 'low' and 'high'")
            if self.low > self.high:
                raise ConfigurationError(f"{self.name}: low ({self.low}) exceeds high ({self.high})")
            if self.levels < 1:
                raise ConfigurationError(f"{self.name}: levels must be >= 1, got {self.levels}")
            if self.scale not in SCALES:
                raise ConfigurationError(f"{self.name}: unknown scale '{self.scale}', expected one of {SCALES}")

            points = np.linspace(self.low, self.high, self.levels) if self.levels > 1 else np.array([self.low])
            if self.scale == "log10":
                points = 10.0 ** points
            elif self.scale == "log2":
                points = 2.0 ** points
            values = points.tolist()

        if self.integer:
            values = [int(round(v)) for v in values]
        else:
            values = [float(v) if isinstance(v, (int, float)) else v for v in values]
        values = list(dict.fromkeys(values))

        for v in values:
            if self.positive and not v > 0:
                raise ConfigurationError(f"{self.name}: value {v} must be positive")
            if self.minimum is not None and v < self.minimum:
                raise ConfigurationError(f"{self.name}: value {v} is below the allowed minimum {self.minimum}")
            if self.maximum is not None and v > self.maximum:
                raise ConfigurationError(f"{self.name}: value {v} is above the allowed maximum {self.maximum}")
        return values

    def override(self, options: Dict[str, Any]) -> "HyperparameterSpec":
        allowed = {"low", "high", "levels", "scale", "values"}
        unknown = set(options) - allowed
        if unknown:
            raise ConfigurationError(f"{self.name}: unknown grid options {sorted(unknown)}")
        options = dict(options)
        if "values" in options:
            options["values"] = tuple(options["values"])
        elif {"low", "high"} & set(options):
            options["values"] = None
        return replace(self, **options)


@dataclass(frozen=True)
class SelectionPolicy:
    """``best``: highest mean. ``one_se``: within one standard error of the best, extreme on ``axis``."""
    kind: str = "best"
    axis: Optional[str] = None
    prefer: str = "max"

    def __post_init__(self):
        if self.kind not in ("best", "one_se"):
            raise ConfigurationError(f"Unknown selection policy '{self.kind}'")
        if self.kind == "one_se" and not self.axis:
            raise ConfigurationError("one_se selection needs an 'axis' hyperparameter")
        if self.prefer not in ("max", "min"):
            raise ConfigurationError(f"prefer must be 'max' or 'min', got '{self.prefer}'")


@dataclass(frozen=True)
class ModelConfiguration:
    family: str
    params: Dict[str, Any]


@dataclass(frozen=True)
class ModelFamily:
    name: str
    normalize: bool
    hyperparameters: Tuple[HyperparameterSpec, ...]
    build: Callable[[Dict[str, Any], int, int], Any]
    selection: SelectionPolicy = field(default_factory=SelectionPolicy)
    importance: Optional[Callable[[Any, Sequence[str]], pd.Series]] = None
    fixed_params: Dict[str, Any] = field(default_factory=dict)

    @property
    def supports_importance(self) -> bool:
        return self.importance is not None

    def grid(self) -> List[Dict[str, Any]]:
        """Full factorial grid in declaration order."""
        names = [hp.name for hp in self.hyperparameters]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"{self.name}: duplicate hyperparameter names {names}")
        axes = [hp.grid_values() for hp in self.hyperparameters]
        return [dict(zip(names, combo)) for combo in itertools.product(*axes)]

    def build_estimator(self, params: Dict[str, Any], n_train: int, seed: int):
        """Unfitted estimator for one configuration; ``n_train`` rows will be used to fit it."""
        merged = dict(self.fixed_params)
        merged.update(params)
        return self.build(merged, n_train, seed)


def _build_knn(params: Dict[str, Any], n_train: int, seed: int) -> KNeighborsClassifier:
    return KNeighborsClassifier(
        n_neighbors=int(params["n_neighbors"]),
        weights=params.get("weights", "uniform"),
    )


def _build_elastic_net(params: Dict[str, Any], n_train: int, seed: int) -> LogisticRegression:
    # glmnet minimises mean loss + penalty * R(w); sklearn minimises C * sum(loss) + R(w)
    C = 1.0 / (max(n_train, 1) * params["penalty"])
    return LogisticRegression(
        solver="saga",
        C=C,
        l1_ratio=float(params["mixture"]),
        max_iter=int(params.get("max_iter", 5000)),
        random_state=seed,
    )


def _build_random_forest(params: Dict[str, Any], n_train: int, seed: int) -> RandomForestClassifier:
    return RandomForestClassifier(
        n_estimators=int(params.get("n_estimators", 500)),
        max_features=int(params["max_features"]),
        min_samples_split=int(params["min_samples_split"]),
        random_state=seed,
        n_jobs=1,
    )


def _build_svm(params: Dict[str, Any], n_train: int, seed: int) -> CalibratedClassifierCV:
    # Platt scaling fit on internal folds, one SVC refit on all rows
    svc = SVC(kernel="rbf", C=float(params["C"]), gamma=float(params["gamma"]), random_state=seed)
    return CalibratedClassifierCV(svc, method="sigmoid", cv=int(params.get("calibration_folds", 5)), ensemble=False)


def _coefficient_importance(estimator: LogisticRegression, feature_names: Sequence[str]) -> pd.Series:
    scores = np.abs(np.ravel(estimator.coef_))
    return pd.Series(scores, index=list(feature_names), name="importance").sort_values(ascending=False, kind="stable")


def _impurity_importance(estimator: RandomForestClassifier, feature_names: Sequence[str]) -> pd.Series:
    scores = estimator.feature_importances_
    return pd.Series(scores, index=list(feature_names), name="importance").sort_values(ascending=False, kind="stable")


FAMILIES: Dict[str, ModelFamily] = {
    "knn": ModelFamily(
        name="knn",
        normalize=True,
        hyperparameters=(
            HyperparameterSpec("n_neighbors", low=5, high=50, levels=10, integer=True, minimum=1),
        ),
        build=_build_knn,
        selection=SelectionPolicy("one_se", axis="n_neighbors", prefer="max"),
    ),
    "elastic_net": ModelFamily(
        name="elastic_net",
        normalize=True,
        hyperparameters=(
            HyperparameterSpec("penalty", low=-4, high=0, levels=5, scale="log10", positive=True),
            HyperparameterSpec("mixture", low=0.05, high=1.0, levels=5, minimum=0.0, maximum=1.0),
        ),
        build=_build_elastic_net,
        selection=SelectionPolicy("one_se", axis="penalty", prefer="max"),
        importance=_coefficient_importance,
    ),
    "random_forest": ModelFamily(
        name="random_forest",
        normalize=False,
        hyperparameters=(
            HyperparameterSpec("max_features", low=1, high=15, levels=5, integer=True, minimum=1),
            HyperparameterSpec("min_samples_split", low=2, high=40, levels=5, integer=True, minimum=2),
        ),
        build=_build_random_forest,
        importance=_impurity_importance,
        fixed_params={"n_estimators": 500},
    ),
    "svm": ModelFamily(
        name="svm",
        normalize=True,
        hyperparameters=(
            HyperparameterSpec("C", low=-10, high=5, levels=5, scale="log2", positive=True),
            HyperparameterSpec("gamma", low=-10, high=0, levels=5, scale="log10", positive=True),
        ),
        build=_build_svm,
    ),
}


def get_family(name: str) -> ModelFamily:
    try:
        return FAMILIES[name]
    except KeyError:
        raise ConfigurationError(f"Unknown model family '{name}', expected one of {sorted(FAMILIES)}") from None


def build_family(name: str, options: Optional[Dict[str, Any]] = None) -> ModelFamily:
    """
    Registry family with the overrides from a ``models.<name>`` config entry:
    ``grid`` (per-hyperparameter range options), ``selection`` and ``fixed``.
    """
    family = get_family(name)
    options = dict(options or {})
    unknown = set(options) - {"grid", "selection", "fixed"}
    if unknown:
        raise ConfigurationError(f"{name}: unknown options {sorted(unknown)}")

    specs = {hp.name: hp for hp in family.hyperparameters}
    for hp_name, hp_options in (options.get("grid") or {}).items():
        if hp_name not in specs:
            raise ConfigurationError(f"{name}: unknown hyperparameter '{hp_name}', expected one of {sorted(specs)}")
        specs[hp_name] = specs[hp_name].override(hp_options or {})

    selection = family.selection
    if options.get("selection"):
        try:
            selection = SelectionPolicy(**options["selection"])
        except TypeError as exc:
            raise ConfigurationError(f"{name}: invalid selection options: {exc}") from exc
        if selection.axis is not None and selection.axis not in specs:
            raise ConfigurationError(f"{name}: selection axis '{selection.axis}' is not a hyperparameter")

    fixed = dict(family.fixed_params)
    fixed.update(options.get("fixed") or {})

    family = replace(
        family,
        hyperparameters=tuple(specs[hp.name] for hp in family.hyperparameters),
        selection=selection,
        fixed_params=fixed,
    )
    # surface range errors at configuration time rather than mid-tuning
    family.grid()
    return family
