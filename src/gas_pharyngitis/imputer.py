from __future__ import annotations

from typing import Dict, List, Optional

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, TransformerMixin
from sklearn.metrics.pairwise import nan_euclidean_distances


class MixedKNNImputer(BaseEstimator, TransformerMixin):
    """
    k-nearest-neighbour imputation for mixed continuous/categorical frames.

    Donors are the rows seen at ``fit`` time. Distances are NaN-aware Euclidean
    distances over range-scaled predictors: continuous columns by the fitted
    min/max, categorical columns by level code / (n_levels - 1). A missing
    continuous value takes the donors' mean, a missing categorical value the
    donors' most frequent level (lowest level on ties).

    Parameters
    ----------
    neighbors:
        Number of donors used for each imputed cell.
    categorical_levels:
        Mapping from categorical column to its level list. Columns not listed
        are treated as continuous.
    """

    def __init__(self, neighbors: int = 5, categorical_levels: Optional[Dict[str, List]] = None):
        self.neighbors = neighbors
        self.categorical_levels = categorical_levels

    def _encode(self, X: pd.DataFrame) -> np.ndarray:
        """Numeric matrix: raw continuous values and categorical level codes (NaN when missing)."""
        levels = self.categorical_levels or {}
        cols = []
        for col in self.columns_:
            if col in levels:
                codes = pd.Categorical(X[col], categories=levels[col]).codes.astype(float)
                codes[codes < 0] = np.nan
                cols.append(codes)
            else:
                cols.append(pd.to_numeric(X[col]).to_numpy(dtype=float))
        return np.column_stack(cols) if cols else np.empty((len(X), 0))

    def _scale(self, raw: np.ndarray) -> np.ndarray:
        return (raw - self.offset_) / self.range_

    def fit(self, X: pd.DataFrame, y=None) -> "MixedKNNImputer":
        if self.neighbors < 1:
            raise ValueError(f"neighbors must be >= 1, got {self.neighbors}")
        levels = self.categorical_levels or {}
        self.columns_ = list(X.columns)
        raw = self._encode(X)

        offset = np.zeros(len(self.columns_))
        span = np.ones(len(self.columns_))
        for j, col in enumerate(self.columns_):
            if col in levels:
                span[j] = max(len(levels[col]) - 1, 1)
                continue
            observed = raw[:, j][~np.isnan(raw[:, j])]
            if observed.size:
                offset[j] = observed.min()
                span[j] = (observed.max() - observed.min()) or 1.0

        self.offset_ = offset
        self.range_ = span
        self.donors_raw_ = raw
        self.donors_scaled_ = self._scale(raw)

        # fallback when no donor shares an observed coordinate with the row
        self.fallback_ = np.full(len(self.columns_), np.nan)
        for j, col in enumerate(self.columns_):
            observed = raw[:, j][~np.isnan(raw[:, j])]
            if observed.size:
                self.fallback_[j] = self._mode(observed) if col in levels else observed.mean()
        return self

    @staticmethod
    def _mode(codes: np.ndarray) -> float:
        return float(np.argmax(np.bincount(codes.astype(int))))

    def _impute_matrix(self, raw: np.ndarray) -> np.ndarray:
        levels = self.categorical_levels or {}
        out = raw.copy()
        rows_with_gaps = np.where(np.isnan(raw).any(axis=1))[0]
        if rows_with_gaps.size == 0:
            return out

        distances = nan_euclidean_distances(self._scale(raw[rows_with_gaps]), self.donors_scaled_)
        distances = np.where(np.isnan(distances), np.inf, distances)

        for i, row in enumerate(rows_with_gaps):
            for j in np.where(np.isnan(raw[row]))[0]:
                usable = ~np.isnan(self.donors_raw_[:, j]) & np.isfinite(distances[i])
                if not usable.any():
                    out[row, j] = self.fallback_[j]
                    continue
                candidates = np.where(usable)[0]
                # stable sort keeps donor order on equal distances
                order = np.argsort(distances[i, candidates], kind="stable")[: self.neighbors]
                values = self.donors_raw_[candidates[order], j]
                col = self.columns_[j]
                out[row, j] = self._mode(values) if col in levels else values.mean()
        return out

    def transform(self, X: pd.DataFrame) -> pd.DataFrame:
        missing_cols = [c for c in self.columns_ if c not in X.columns]
        if missing_cols:
            raise KeyError(f"Columns seen at fit time are missing: {missing_cols}")
        levels = self.categorical_levels or {}
        filled = self._impute_matrix(self._encode(X))

        out = pd.DataFrame(index=X.index)
        for j, col in enumerate(self.columns_):
            if col in levels:
                codes = np.nan_to_num(filled[:, j], nan=-1).astype(int)
                out[col] = pd.Categorical.from_codes(codes, categories=levels[col])
            else:
                out[col] = filled[:, j]
        return out
