from __future__ import annotations

from typing import Dict, List

import pandas as pd
from sklearn.compose import ColumnTransformer
from sklearn.preprocessing import OneHotEncoder, StandardScaler

from .errors import ConfigurationError, SchemaError
from .imputer import MixedKNNImputer
from .utils.logger import get_logger


class Recipe:
    """Unfitted preprocessing chain: k-NN imputation -> indicator encoding -> optional scaling."""

    def __init__(
        self,
        target_col: str = "radt",
        normalize: bool = True,
        neighbors: int = 5,
        one_hot: bool = False,
        verbose: bool = False,
    ):
        """
        Parameters
        ----------
        target_col:
            Label column; passed through untouched.
        normalize:
            Standardize continuous predictors. Tree ensembles are scale-invariant,
            so their recipe leaves this off.
        neighbors:
            Donor count for k-NN imputation.
        one_hot:
            Keep an indicator for every level. By default the first level is
            dropped (dummy encoding).
        verbose:
            If True, logs detected feature groups.
        """
        if neighbors < 1:
            raise ConfigurationError(f"neighbors must be >= 1, got {neighbors}")
        self.target_col = target_col
        self.normalize = normalize
        self.neighbors = neighbors
        self.one_hot = one_hot
        self.verbose = verbose
        self.logger = get_logger(self.__class__.__name__)

    @staticmethod
    def _is_categorical(series: pd.Series) -> bool:
        return (
            isinstance(series.dtype, pd.CategoricalDtype)
            or pd.api.types.is_object_dtype(series)
            or pd.api.types.is_string_dtype(series)
            or pd.api.types.is_bool_dtype(series)
        )

    def _learn_levels(self, X: pd.DataFrame) -> Dict[str, List]:
        levels: Dict[str, List] = {}
        for col in X.columns:
            series = X[col]
            if isinstance(series.dtype, pd.CategoricalDtype):
                levels[col] = list(series.cat.categories)
            elif self._is_categorical(series):
                levels[col] = sorted(series.dropna().unique().tolist(), key=str)
        return levels

    def fit(self, table: pd.DataFrame) -> "FittedRecipe":
        """Learn imputation donors, level sets and scaling statistics from ``table`` only."""
        X = table.drop(columns=[self.target_col], errors="ignore")
        levels = self._learn_levels(X)
        categorical_cols = [c for c in X.columns if c in levels]
        continuous_cols = [c for c in X.columns if c not in levels]

        imputer = MixedKNNImputer(neighbors=self.neighbors, categorical_levels=levels).fit(X)

        encoder = OneHotEncoder(
            categories=[levels[c] for c in categorical_cols],
            drop=None if self.one_hot else "first",
            handle_unknown="error",
            sparse_output=False,
        )
        transformer = ColumnTransformer(
            transformers=[
                ("num", StandardScaler() if self.normalize else "passthrough", continuous_cols),
                ("cat", encoder, categorical_cols),
            ],
            remainder="drop",
            verbose_feature_names_out=False,
        ).set_output(transform="pandas")
        transformer.fit(FittedRecipe._for_encoding(imputer.transform(X), categorical_cols))

        if self.verbose:
            self.logger.info(
                f"Recipe fit on {len(X):,} rows: continuous={len(continuous_cols)}, "
                f"categorical={len(categorical_cols)}, normalize={self.normalize}"
            )

        return FittedRecipe(
            target_col=self.target_col,
            levels=levels,
            continuous_cols=continuous_cols,
            categorical_cols=categorical_cols,
            imputer=imputer,
            transformer=transformer,
        )


class FittedRecipe:
    """
    A Recipe bound to the statistics of the table it was fit on.

    ``apply`` only reads fitted state, so the same object can be applied to a
    training group, a held-out fold and the test set without leaking their
    values into each other.
    """

    def __init__(
        self,
        target_col: str,
        levels: Dict[str, List],
        continuous_cols: List[str],
        categorical_cols: List[str],
        imputer: MixedKNNImputer,
        transformer: ColumnTransformer,
    ):
        self.target_col = target_col
        self.levels = levels
        self.continuous_cols = continuous_cols
        self.categorical_cols = categorical_cols
        self.imputer = imputer
        self.transformer = transformer

    @property
    def input_cols(self) -> List[str]:
        return self.continuous_cols + self.categorical_cols

    @property
    def feature_names(self) -> List[str]:
        return list(self.transformer.get_feature_names_out())

    @staticmethod
    def _for_encoding(imputed: pd.DataFrame, categorical_cols: List[str]) -> pd.DataFrame:
        out = imputed.copy()
        for col in categorical_cols:
            out[col] = out[col].astype(object)
        return out

    def _check_levels(self, X: pd.DataFrame) -> None:
        for col in self.categorical_cols:
            known = set(self.levels[col])
            unseen = sorted({v for v in X[col].dropna() if v not in known}, key=str)
            if unseen:
                raise SchemaError(f"Column '{col}' has levels not seen at fit time: {unseen}")

    def apply(self, table: pd.DataFrame) -> pd.DataFrame:
        missing = [c for c in self.input_cols if c not in table.columns]
        if missing:
            raise SchemaError(f"Columns seen at fit time are missing: {missing}")
        X = table[self.input_cols]
        self._check_levels(X)

        imputed = self.imputer.transform(X)
        out = self.transformer.transform(self._for_encoding(imputed, self.categorical_cols))
        out.index = table.index

        if self.target_col in table.columns:
            out[self.target_col] = table[self.target_col]
        return out
