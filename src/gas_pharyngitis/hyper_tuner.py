from dataclasses import dataclass
from typing import Any, Dict, List

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from .errors import ConfigurationError, SchemaError, TuningError
from .folds import FoldAssignment
from .model_families import ModelFamily
from .model_trainer import class_probabilities, fit_estimator, split_features
from .preprocessor import Recipe
from .scoring import roc_auc
from .utils.logger import get_logger


@dataclass(frozen=True)
class TuningResult:
    """
    Resampled performance surface of one model family.

    ``folds`` has one row per (configuration, fold); ``summary`` one row per
    configuration with ``mean``, ``std_err`` and ``n_folds`` next to the
    hyperparameter columns. ``config_id`` follows grid order.
    """
    family: str
    param_names: List[str]
    folds: pd.DataFrame
    summary: pd.DataFrame

    def best(self) -> pd.Series:
        ranked = self.summary.sort_values(["mean", "config_id"], ascending=[False, True], kind="stable")
        return ranked.iloc[0]


def _score_round(
    family: ModelFamily,
    config_id: int,
    params: Dict[str, Any],
    fold: int,
    train: pd.DataFrame,
    fit_pos: np.ndarray,
    held_pos: np.ndarray,
    target_col: str,
    neighbors: int,
    seed: int,
    score_label: str,
) -> Dict[str, Any]:
    """Fit a fresh recipe and estimator on one round's training group and score its held-out fold."""
    try:
        fit_part = train.iloc[fit_pos]
        held_part = train.iloc[held_pos]

        # recipe refit per round keeps held-out statistics out of the transform
        recipe = Recipe(target_col=target_col, normalize=family.normalize, neighbors=neighbors).fit(fit_part)
        X_fit, y_fit = split_features(recipe.apply(fit_part), target_col)
        X_held, y_held = split_features(recipe.apply(held_part), target_col)

        estimator = fit_estimator(family, params, X_fit, y_fit, seed)
        score = class_probabilities(estimator, X_held)[score_label]
        auc = roc_auc(y_held, score, event_label=score_label)
    except Exception as exc:
        raise TuningError(family.name, params, fold, cause=exc) from exc

    return {"config_id": config_id, "fold": fold, **params, "roc_auc": auc}


class HyperTuner:
    """Grid search over a family's declared hyperparameters with leakage-safe k-fold CV."""

    def __init__(
        self,
        target_col: str = "radt",
        n_jobs: int = -1,
        seed: int = 42,
        neighbors: int = 5,
        score_label: str = "Negative",
    ):
        if neighbors < 1:
            raise ConfigurationError(f"preprocessing.neighbors must be >= 1, got {neighbors}")
        self.target_col = target_col
        self.n_jobs = n_jobs
        self.seed = seed
        self.neighbors = neighbors
        self.score_label = score_label
        self.logger = get_logger(self.__class__.__name__)

    def tune(self, family: ModelFamily, train: pd.DataFrame, folds: FoldAssignment) -> TuningResult:
        if len(folds.fold_ids) != len(train):
            raise SchemaError(f"Fold assignment covers {len(folds.fold_ids)} rows but train has {len(train)}")

        grid = family.grid()
        param_names = [hp.name for hp in family.hyperparameters]
        rounds = list(folds.rounds())
        self.logger.info(
            f"Tuning {family.name}: {len(grid)} configurations x {len(rounds)} folds "
            f"({len(grid) * len(rounds)} fits, n_jobs={self.n_jobs})"
        )

        rows = Parallel(n_jobs=self.n_jobs)(
            delayed(_score_round)(
                family,
                config_id,
                params,
                fold,
                train,
                fit_pos,
                held_pos,
                self.target_col,
                self.neighbors,
                self.seed,
                self.score_label,
            )
            for config_id, params in enumerate(grid)
            for fold, fit_pos, held_pos in rounds
        )

        per_fold = pd.DataFrame(rows).sort_values(["config_id", "fold"], kind="stable").reset_index(drop=True)
        summary = self._aggregate(per_fold, param_names)

        result = TuningResult(family=family.name, param_names=param_names, folds=per_fold, summary=summary)
        best = result.best()
        best_params = {name: best[name] for name in param_names}
        self.logger.info(
            f"{family.name}: best CV ROC-AUC {best['mean']:.4f} (SE {best['std_err']:.4f}) at {best_params}"
        )
        return result

    @staticmethod
    def _aggregate(per_fold: pd.DataFrame, param_names: List[str]) -> pd.DataFrame:
        grouped = per_fold.groupby("config_id", sort=True)
        summary = grouped[param_names].first()
        stats = grouped["roc_auc"].agg(["mean", "std", "count"])
        summary["mean"] = stats["mean"]
        summary["std_err"] = (stats["std"] / np.sqrt(stats["count"])).fillna(0.0)
        summary["n_folds"] = stats["count"].astype(int)
        return summary.reset_index()
