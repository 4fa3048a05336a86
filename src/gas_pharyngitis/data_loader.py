from typing import Optional

import pandas as pd

from .errors import SchemaError
from .schema import DEFAULT_SCHEMA, DatasetSchema
from .utils.logger import get_logger


def missing_summary(df: pd.DataFrame) -> pd.DataFrame:
    """Per-column missing count and fraction, plus an ``__overall__`` row."""
    counts = df.isna().sum()
    summary = pd.DataFrame({"n_missing": counts, "fraction_missing": counts / max(len(df), 1)})
    total_cells = max(df.size, 1)
    summary.loc["__overall__"] = [int(counts.sum()), float(counts.sum()) / total_cells]
    summary["n_missing"] = summary["n_missing"].astype(int)
    return summary


class DataLoader:
    """Loads the case CSV and turns it into a typed, identifier-free table."""

    def __init__(
        self,
        path: Optional[str] = None,
        schema: DatasetSchema = DEFAULT_SCHEMA,
        expected_rows: Optional[int] = None,
        max_missing_fraction: float = 0.065,
    ):
        self.path = path
        self.schema = schema
        self.expected_rows = expected_rows
        self.max_missing_fraction = max_missing_fraction
        self.logger = get_logger(self.__class__.__name__)

    def load(self) -> pd.DataFrame:
        if self.path is None:
            raise ValueError("DataLoader.load() needs a path; use clean() for in-memory frames.")
        df = pd.read_csv(self.path)
        self.logger.info(f"Read {self.path}: {df.shape[0]:,} rows x {df.shape[1]} cols")
        return self.clean(df)

    def _validate_shape(self, df: pd.DataFrame) -> None:
        expected = self.schema.columns
        missing = [c for c in expected if c not in df.columns]
        unexpected = [c for c in df.columns if c not in expected]
        if missing:
            raise SchemaError(f"Missing expected columns: {missing}")
        if unexpected:
            raise SchemaError(f"Unexpected columns: {unexpected}")
        if self.expected_rows is not None and len(df) != self.expected_rows:
            raise SchemaError(f"Expected {self.expected_rows} rows, found {len(df)}")

    @staticmethod
    def _to_categorical(values: pd.Series, levels, col: str) -> pd.Categorical:
        """Map raw codes onto a declared level set; anything outside it is an error."""
        code_of = {level: i for i, level in enumerate(levels)}
        present = values.dropna()
        bad = sorted({v for v in present if v not in code_of}, key=str)
        if bad:
            raise SchemaError(f"Column '{col}' has values outside levels {list(levels)}: {bad}")
        codes = values.map(code_of).fillna(-1).astype(int).to_numpy()
        return pd.Categorical.from_codes(codes, categories=list(levels))

    def _coerce_label(self, values: pd.Series) -> pd.Categorical:
        col = self.schema.target_col
        if values.isna().any():
            raise SchemaError(f"Label column '{col}' has {int(values.isna().sum())} missing values")
        # accept raw codes as well as already-named labels
        mapping = dict(self.schema.label_map)
        mapping.update({name: name for name in self.schema.label_levels})
        bad = sorted({v for v in values if v not in mapping}, key=str)
        if bad:
            raise SchemaError(f"Label column '{col}' has unknown codes: {bad}")
        return pd.Categorical(values.map(mapping), categories=list(self.schema.label_levels))

    def clean(self, df: pd.DataFrame) -> pd.DataFrame:
        """Validate columns, coerce categorical fields, drop the identifier column."""
        self._validate_shape(df)
        out = df.copy()

        for col in self.schema.continuous:
            try:
                out[col] = pd.to_numeric(out[col], errors="raise").astype(float)
            except (ValueError, TypeError) as exc:
                raise SchemaError(f"Column '{col}' is not numeric: {exc}") from exc

        for col, levels in self.schema.categorical.items():
            out[col] = self._to_categorical(out[col], levels, col)

        out[self.schema.target_col] = self._coerce_label(out[self.schema.target_col])

        if self.schema.id_col:
            out = out.drop(columns=[self.schema.id_col])
        out = out[self.schema.feature_cols + [self.schema.target_col]].reset_index(drop=True)

        self._report(out)
        return out

    def _report(self, df: pd.DataFrame) -> None:
        summary = missing_summary(df)
        overall = summary.loc["__overall__", "fraction_missing"]
        self.logger.info(f"Cleaned dataset: {df.shape[0]:,} rows x {df.shape[1]} cols, {overall:.2%} missing overall")

        per_col = summary.drop(index="__overall__")
        heavy = per_col[per_col["fraction_missing"] > self.max_missing_fraction]
        for col, row in heavy.iterrows():
            self.logger.warning(f"Column '{col}' is {row['fraction_missing']:.2%} missing")

        counts = df[self.schema.target_col].value_counts(sort=False)
        shares = ", ".join(f"{lvl}={n} ({n / len(df):.1%})" for lvl, n in counts.items()) if len(df) else "empty"
        self.logger.info(f"Label balance: {shares}")
