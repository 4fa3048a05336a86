import warnings

import numpy as np
import pandas as pd
import pytest
from sklearn.calibration import CalibratedClassifierCV

from gas_pharyngitis.errors import ConfigurationError
from gas_pharyngitis.model_families import FAMILIES, HyperparameterSpec, build_family, get_family


def test_registry_has_the_four_families():
    assert set(FAMILIES) == {"knn", "elastic_net", "random_forest", "svm"}
    assert FAMILIES["random_forest"].normalize is False
    assert all(FAMILIES[name].normalize for name in ("knn", "elastic_net", "svm"))


def test_linear_integer_grid_is_evenly_spaced():
    spec = HyperparameterSpec("n_neighbors", low=5, high=50, levels=10, integer=True, minimum=1)
    assert spec.grid_values() == [5, 10, 15, 20, 25, 30, 35, 40, 45, 50]


def test_log10_grid_uses_exponent_bounds():
    spec = HyperparameterSpec("penalty", low=-3, high=0, levels=4, scale="log10", positive=True)
    np.testing.assert_allclose(spec.grid_values(), [0.001, 0.01, 0.1, 1.0])


def test_log2_grid_uses_exponent_bounds():
    spec = HyperparameterSpec("C", low=-1, high=2, levels=4, scale="log2", positive=True)
    np.testing.assert_allclose(spec.grid_values(), [0.5, 1.0, 2.0, 4.0])


def test_integer_grid_drops_duplicate_levels():
    spec = HyperparameterSpec("k", low=1, high=3, levels=5, integer=True)
    assert spec.grid_values() == [1, 2, 3]


def test_family_grid_is_full_factorial():
    family = build_family(
        "elastic_net",
        {"grid": {"penalty": {"values": [0.01, 0.1]}, "mixture": {"values": [0.2, 0.5, 1.0]}}},
    )
    grid = family.grid()
    assert len(grid) == 6
    assert grid[0] == {"penalty": 0.01, "mixture": 0.2}
    assert grid[-1] == {"penalty": 0.1, "mixture": 1.0}


@pytest.mark.parametrize(
    "options",
    [
        {"grid": {"n_neighbors": {"values": [-3, 5]}}},
        {"grid": {"n_neighbors": {"low": 0, "high": 10}}},
        {"grid": {"n_neighbors": {"low": 10, "high": 5}}},
        {"grid": {"n_neighbors": {"levels": 0}}},
        {"grid": {"n_neighbors": {"scale": "cubic"}}},
        {"grid": {"radius": {"values": [1]}}},
        {"selection": {"kind": "median"}},
        {"selection": {"kind": "one_se"}},
        {"selection": {"kind": "one_se", "axis": "weights"}},
        {"selection": {"kind": "best", "direction": "up"}},
        {"epochs": 3},
    ],
)
def test_invalid_family_options_raise_configuration_error(options):
    with pytest.raises(ConfigurationError):
        build_family("knn", options)


def test_negative_penalty_is_rejected():
    with pytest.raises(ConfigurationError):
        build_family("elastic_net", {"grid": {"penalty": {"values": [-0.1]}}})


def test_unknown_family_is_rejected():
    with pytest.raises(ConfigurationError):
        get_family("xgboost")


def test_build_family_overrides_selection_and_fixed_params():
    family = build_family(
        "random_forest",
        {"selection": {"kind": "one_se", "axis": "min_samples_split", "prefer": "max"}, "fixed": {"n_estimators": 25}},
    )
    assert family.selection.kind == "one_se"
    estimator = family.build_estimator({"max_features": 2, "min_samples_split": 4}, n_train=50, seed=3)
    assert estimator.n_estimators == 25
    assert estimator.random_state == 3
    # registry entry is untouched
    assert FAMILIES["random_forest"].selection.kind == "best"


def test_elastic_net_penalty_maps_to_inverse_regularization():
    estimator = get_family("elastic_net").build_estimator({"penalty": 0.01, "mixture": 0.5}, n_train=200, seed=0)
    assert estimator.C == pytest.approx(1.0 / (200 * 0.01))
    assert estimator.l1_ratio == 0.5


def test_importance_capability_per_family():
    assert get_family("random_forest").supports_importance
    assert get_family("elastic_net").supports_importance
    assert not get_family("knn").supports_importance
    assert not get_family("svm").supports_importance


def test_coefficient_importance_is_sorted_by_magnitude():
    family = get_family("elastic_net")
    X = pd.DataFrame({"a": [0.0, 1.0, 0.0, 1.0] * 5, "b": np.linspace(-1, 1, 20)})
    y = np.where(X["a"] > 0.5, "Positive", "Negative")
    estimator = family.build_estimator({"penalty": 0.001, "mixture": 0.5}, n_train=len(X), seed=0).fit(X, y)
    importance = family.importance(estimator, X.columns)
    assert list(importance.index) == ["a", "b"]
    assert (importance >= 0).all()


@pytest.mark.parametrize(
    "name, params",
    [
        ("elastic_net", {"penalty": 0.01, "mixture": 0.5}),
        ("svm", {"C": 1.0, "gamma": 0.1}),
    ],
)
def test_probability_families_fit_without_deprecated_parameters(name, params):
    rng = np.random.RandomState(0)
    X = pd.DataFrame({"a": rng.normal(size=40), "b": rng.normal(size=40)})
    y = np.where(X["a"] > 0, "Positive", "Negative")
    estimator = get_family(name).build_estimator(params, n_train=len(X), seed=0)

    with warnings.catch_warnings():
        warnings.simplefilter("error", FutureWarning)
        estimator.fit(X, y)
        proba = estimator.predict_proba(X)

    assert list(estimator.classes_) == ["Negative", "Positive"]
    np.testing.assert_allclose(proba.sum(axis=1), 1.0)


def test_svm_probabilities_come_from_a_single_calibrated_fit():
    estimator = get_family("svm").build_estimator({"C": 2.0, "gamma": 0.5}, n_train=50, seed=0)
    assert isinstance(estimator, CalibratedClassifierCV)
    assert estimator.ensemble is False
    assert estimator.estimator.C == 2.0
    assert estimator.estimator.gamma == 0.5
