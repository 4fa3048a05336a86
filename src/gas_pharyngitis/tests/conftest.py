import numpy as np
import pandas as pd
import pytest

from gas_pharyngitis.data_loader import DataLoader
from gas_pharyngitis.schema import DEFAULT_SCHEMA, SYMPTOM_FLAGS


def make_raw_cases(n: int = 120, seed: int = 0, missing_rate: float = 0.03, signal: bool = True) -> pd.DataFrame:
    """Synthetic raw case table with the full pharyngitis column layout."""
    rng = np.random.RandomState(seed)
    label = np.tile([0, 1], n // 2 + 1)[:n]
    rng.shuffle(label)

    df = pd.DataFrame({"number": np.arange(1, n + 1)})
    df["age_y"] = rng.uniform(3, 15, size=n).round(1)
    for col in SYMPTOM_FLAGS:
        df[col] = rng.randint(0, 2, size=n)
    df["swollenadp"] = rng.randint(0, 4, size=n)
    df["temperature"] = rng.normal(38.3, 0.7, size=n).round(1)
    if signal:
        # exudate tracks the label for most cases
        flip = rng.rand(n) < 0.15
        df["exudate"] = np.where(flip, 1 - label, label)
    df["radt"] = label

    if missing_rate:
        for col in ["age_y", "temperature", "pain", "swollenadp", "tender"]:
            mask = rng.rand(n) < missing_rate
            df[col] = df[col].astype(float)
            df.loc[mask, col] = np.nan
    return df[DEFAULT_SCHEMA.columns]


@pytest.fixture
def raw_cases() -> pd.DataFrame:
    return make_raw_cases()


@pytest.fixture
def cases(raw_cases) -> pd.DataFrame:
    return DataLoader().clean(raw_cases)


@pytest.fixture
def small_table() -> pd.DataFrame:
    """Tiny cleaned table: one continuous, one binary and one 4-level column."""
    return pd.DataFrame(
        {
            "age_y": [4.0, 6.0, np.nan, 10.0, 12.0, 8.0],
            "cough": pd.Categorical([0, 1, 1, np.nan, 0, 1], categories=[0, 1]),
            "swollenadp": pd.Categorical([0, 1, 2, 3, np.nan, 1], categories=[0, 1, 2, 3]),
            "radt": pd.Categorical(
                ["Negative", "Positive", "Negative", "Positive", "Negative", "Positive"],
                categories=["Negative", "Positive"],
            ),
        }
    )
