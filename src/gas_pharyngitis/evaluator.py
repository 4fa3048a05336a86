import json
import os
from dataclasses import dataclass
from typing import Optional

import pandas as pd

from .model_trainer import FinalModel, class_probabilities, split_features
from .scoring import roc_auc, roc_points
from .utils.logger import get_logger


@dataclass(frozen=True)
class EvaluationResult:
    family: str
    roc_auc: float
    roc_curve: pd.DataFrame
    importance: Optional[pd.Series]


class Evaluator:
    """Score a final model on held-out data through its already-fitted recipe."""

    def __init__(self, score_label: str = "Negative", metrics_path: Optional[str] = None, verbose: bool = True):
        self.score_label = score_label
        self.metrics_path = metrics_path
        self.verbose = verbose
        self.logger = get_logger(self.__class__.__name__)

    def evaluate(self, model: FinalModel, test: pd.DataFrame) -> EvaluationResult:
        """Apply the fitted recipe to ``test`` (never refit), then compute ROC AUC and the ROC curve."""
        transformed = model.fitted_recipe.apply(test)
        X_test, y_test = split_features(transformed, model.target_col)
        score = class_probabilities(model.estimator, X_test)[self.score_label]

        auc = roc_auc(y_test, score, event_label=self.score_label)
        curve = roc_points(y_test, score, event_label=self.score_label)
        importance = model.feature_importance() if model.supports_importance else None

        result = EvaluationResult(family=model.family.name, roc_auc=auc, roc_curve=curve, importance=importance)

        if self.metrics_path:
            self._save(result)
        if self.verbose:
            self.logger.info(f"{model.family.name}: test ROC-AUC {auc:.4f} on {len(y_test):,} rows")
        return result

    def _save(self, result: EvaluationResult) -> None:
        metrics = {}
        if os.path.isfile(self.metrics_path):
            with open(self.metrics_path, "r") as f:
                metrics = json.load(f)
        metrics[result.family] = {"ROC_AUC": float(result.roc_auc)}

        os.makedirs(os.path.dirname(self.metrics_path) or ".", exist_ok=True)
        with open(self.metrics_path, "w") as f:
            json.dump(metrics, f, indent=4)

        if self.verbose:
            self.logger.info(f"Saved metrics: {self.metrics_path}")
