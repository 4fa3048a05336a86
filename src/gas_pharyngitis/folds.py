from dataclasses import dataclass
from typing import Iterator, Tuple

import numpy as np
import pandas as pd
from sklearn.model_selection import StratifiedKFold

from .errors import ConfigurationError, DataSufficiencyError, SchemaError
from .utils.logger import get_logger


@dataclass(frozen=True)
class FoldAssignment:
    """Fold id for every row (by position) of the table it was built from."""
    fold_ids: np.ndarray
    n_splits: int

    def __len__(self) -> int:
        return self.n_splits

    def rounds(self) -> Iterator[Tuple[int, np.ndarray, np.ndarray]]:
        """Yield ``(fold, train_positions, heldout_positions)`` for every round."""
        positions = np.arange(len(self.fold_ids))
        for fold in range(self.n_splits):
            held = self.fold_ids == fold
            yield fold, positions[~held], positions[held]


class CrossValidationFolder:
    """Assigns the training subset to k stratified folds."""

    def __init__(self, n_splits: int = 5, target_col: str = "radt", seed: int = 42):
        if n_splits < 2:
            raise ConfigurationError(f"n_splits must be >= 2, got {n_splits}")
        self.n_splits = n_splits
        self.target_col = target_col
        self.seed = seed
        self.logger = get_logger(self.__class__.__name__)

    def assign(self, df: pd.DataFrame) -> FoldAssignment:
        if self.target_col not in df.columns:
            raise SchemaError(f"Stratification column '{self.target_col}' not found")
        y = df[self.target_col].astype(str).to_numpy()

        classes, counts = np.unique(y, return_counts=True)
        if len(classes) < 2:
            raise DataSufficiencyError(f"Only one label class present ({classes.tolist()}); cannot build folds")
        if counts.min() < self.n_splits:
            small = classes[np.argmin(counts)]
            raise DataSufficiencyError(
                f"Class '{small}' has {counts.min()} rows; every one of {self.n_splits} folds needs at least one"
            )

        skf = StratifiedKFold(n_splits=self.n_splits, shuffle=True, random_state=self.seed)
        fold_ids = np.empty(len(df), dtype=int)
        for fold, (_, held_idx) in enumerate(skf.split(np.zeros(len(y)), y)):
            fold_ids[held_idx] = fold

        sizes = np.bincount(fold_ids, minlength=self.n_splits)
        self.logger.info(f"Assigned {len(df):,} rows to {self.n_splits} folds (sizes={sizes.tolist()}, seed={self.seed})")
        return FoldAssignment(fold_ids=fold_ids, n_splits=self.n_splits)
