from dataclasses import dataclass

import numpy as np
import pandas as pd

from .errors import ConfigurationError, DataSufficiencyError, SchemaError
from .utils.logger import get_logger


@dataclass(frozen=True)
class Split:
    train: pd.DataFrame
    test: pd.DataFrame


class DataSplitter:
    """Stratified train/test partition: every label class is split independently at ``train_fraction``."""

    def __init__(self, train_fraction: float = 0.8, target_col: str = "radt", seed: int = 42):
        if not 0.0 < train_fraction < 1.0:
            raise ConfigurationError(f"train_fraction must lie in (0, 1), got {train_fraction}")
        self.train_fraction = train_fraction
        self.target_col = target_col
        self.seed = seed
        self.logger = get_logger(self.__class__.__name__)

    def split(self, df: pd.DataFrame) -> Split:
        if self.target_col not in df.columns:
            raise SchemaError(f"Stratification column '{self.target_col}' not found")
        labels = df[self.target_col]
        if labels.isna().any():
            raise SchemaError(f"Stratification column '{self.target_col}' has missing values")

        rng = np.random.RandomState(self.seed)
        positions = np.arange(len(df))
        train_mask = np.zeros(len(df), dtype=bool)

        # declared levels count even when absent; sorted so the RNG stream is consumed in a fixed order
        if isinstance(labels.dtype, pd.CategoricalDtype):
            classes = sorted(labels.cat.categories, key=str)
        else:
            classes = sorted(labels.unique(), key=str)
        if len(classes) < 2:
            raise DataSufficiencyError(f"Stratified split needs two label classes, found {list(classes)}")

        for cls in classes:
            members = positions[(labels == cls).to_numpy()]
            n_train = int(round(self.train_fraction * len(members)))
            if n_train == 0 or n_train == len(members):
                raise DataSufficiencyError(
                    f"Class '{cls}' ({len(members)} rows) cannot be split at {self.train_fraction:.2f} "
                    "without leaving one subset empty"
                )
            chosen = rng.permutation(members)[:n_train]
            train_mask[chosen] = True

        train = df.iloc[positions[train_mask]]
        test = df.iloc[positions[~train_mask]]
        self.logger.info(f"Split {len(df):,} rows -> train={len(train):,}, test={len(test):,} (seed={self.seed})")
        return Split(train=train, test=test)
