from __future__ import annotations

import warnings
from typing import Any, Dict, Mapping, Tuple, Union

import numpy as np
import pandas as pd
from sklearn.exceptions import ConvergenceWarning

from .model_families import ModelConfiguration, ModelFamily
from .preprocessor import FittedRecipe, Recipe
from .utils.logger import get_logger


def split_features(frame: pd.DataFrame, target_col: str) -> Tuple[pd.DataFrame, np.ndarray]:
    """Separate a preprocessed frame into predictors and string labels."""
    X = frame.drop(columns=[target_col])
    y = frame[target_col].astype(str).to_numpy()
    return X, y


def class_probabilities(estimator, X: pd.DataFrame) -> pd.DataFrame:
    proba = estimator.predict_proba(X)
    return pd.DataFrame(proba, columns=[str(c) for c in estimator.classes_], index=X.index)


def fit_estimator(family: ModelFamily, params: Dict[str, Any], X: pd.DataFrame, y: np.ndarray, seed: int):
    estimator = family.build_estimator(params, n_train=len(X), seed=seed)
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", category=ConvergenceWarning)
        estimator.fit(X, y)
    return estimator


class FinalModel:
    """
    A selected configuration refit on the whole training subset.

    Holds the fitted Recipe it was trained through, so test data and single
    records are transformed with training statistics only.
    """

    def __init__(
        self,
        configuration: ModelConfiguration,
        family: ModelFamily,
        fitted_recipe: FittedRecipe,
        estimator: Any,
        target_col: str,
    ):
        self.configuration = configuration
        self.family = family
        self.fitted_recipe = fitted_recipe
        self.estimator = estimator
        self.target_col = target_col

    @classmethod
    def fit(
        cls,
        configuration: ModelConfiguration,
        family: ModelFamily,
        train: pd.DataFrame,
        target_col: str = "radt",
        seed: int = 42,
        neighbors: int = 5,
    ) -> "FinalModel":
        logger = get_logger(cls.__name__)
        recipe = Recipe(target_col=target_col, normalize=family.normalize, neighbors=neighbors)
        fitted_recipe = recipe.fit(train)
        X, y = split_features(fitted_recipe.apply(train), target_col)
        estimator = fit_estimator(family, configuration.params, X, y, seed)
        logger.info(f"Final {family.name} model fit on {len(X):,} rows x {X.shape[1]} features: {configuration.params}")
        return cls(configuration, family, fitted_recipe, estimator, target_col)

    @property
    def classes(self):
        return [str(c) for c in self.estimator.classes_]

    @property
    def supports_importance(self) -> bool:
        return self.family.supports_importance

    def predict_probability(self, records: Union[pd.DataFrame, pd.Series, Mapping[str, Any]]) -> pd.DataFrame:
        """Per-class probabilities for one record (mapping or Series) or a frame of records."""
        if isinstance(records, pd.Series):
            records = records.to_frame().T
        elif not isinstance(records, pd.DataFrame):
            records = pd.DataFrame([dict(records)])
        transformed = self.fitted_recipe.apply(records)
        X = transformed.drop(columns=[self.target_col], errors="ignore")
        return class_probabilities(self.estimator, X)

    def feature_importance(self) -> pd.Series:
        """Contribution score per encoded feature, highest first."""
        if not self.supports_importance:
            raise NotImplementedError(f"Model family '{self.family.name}' does not expose feature importance")
        return self.family.importance(self.estimator, self.fitted_recipe.feature_names)
