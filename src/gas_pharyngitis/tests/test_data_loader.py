import numpy as np
import pandas as pd
import pytest

from gas_pharyngitis.data_loader import DataLoader, missing_summary
from gas_pharyngitis.errors import SchemaError

from conftest import make_raw_cases


def test_data_loader_reads_and_cleans_csv(tmp_path):
    raw = make_raw_cases(n=40)
    csv_path = tmp_path / "cases.csv"
    raw.to_csv(csv_path, index=False)

    df = DataLoader(path=str(csv_path), expected_rows=40).load()

    assert len(df) == 40
    assert "number" not in df.columns
    assert df.columns[-1] == "radt"
    assert list(df["radt"].cat.categories) == ["Negative", "Positive"]
    assert list(df["swollenadp"].cat.categories) == [0, 1, 2, 3]
    assert list(df["cough"].cat.categories) == [0, 1]
    assert df["age_y"].dtype == float


def test_data_loader_maps_label_codes():
    raw = make_raw_cases(n=10, missing_rate=0)
    df = DataLoader().clean(raw)
    expected = np.where(raw["radt"].to_numpy() == 1, "Positive", "Negative")
    assert (df["radt"].astype(str).to_numpy() == expected).all()


def test_data_loader_keeps_missing_values_as_missing(raw_cases):
    df = DataLoader().clean(raw_cases)
    assert df["pain"].isna().sum() == raw_cases["pain"].isna().sum()
    assert df["age_y"].isna().sum() == raw_cases["age_y"].isna().sum()


def test_data_loader_does_not_mutate_input(raw_cases):
    before = raw_cases.copy(deep=True)
    _ = DataLoader().clean(raw_cases)
    pd.testing.assert_frame_equal(raw_cases, before)


def test_data_loader_rejects_missing_column(raw_cases):
    with pytest.raises(SchemaError, match="Missing expected columns"):
        DataLoader().clean(raw_cases.drop(columns=["cough"]))


def test_data_loader_rejects_unexpected_column(raw_cases):
    raw_cases["extra"] = 1
    with pytest.raises(SchemaError, match="Unexpected columns"):
        DataLoader().clean(raw_cases)


def test_data_loader_rejects_out_of_level_value(raw_cases):
    raw_cases.loc[0, "swollenadp"] = 7
    with pytest.raises(SchemaError, match="swollenadp"):
        DataLoader().clean(raw_cases)


def test_data_loader_rejects_missing_label(raw_cases):
    raw_cases["radt"] = raw_cases["radt"].astype(float)
    raw_cases.loc[3, "radt"] = np.nan
    with pytest.raises(SchemaError, match="missing"):
        DataLoader().clean(raw_cases)


def test_data_loader_rejects_row_count_mismatch(raw_cases):
    with pytest.raises(SchemaError, match="rows"):
        DataLoader(expected_rows=len(raw_cases) + 1).clean(raw_cases)


def test_data_loader_rejects_non_numeric_continuous(raw_cases):
    raw_cases["temperature"] = raw_cases["temperature"].astype(object)
    raw_cases.loc[2, "temperature"] = "hot"
    with pytest.raises(SchemaError, match="temperature"):
        DataLoader().clean(raw_cases)


def test_missing_summary_reports_fractions():
    df = pd.DataFrame({"a": [1.0, np.nan, 3.0, np.nan], "b": [1, 2, 3, 4]})
    summary = missing_summary(df)
    assert summary.loc["a", "n_missing"] == 2
    assert summary.loc["a", "fraction_missing"] == pytest.approx(0.5)
    assert summary.loc["b", "n_missing"] == 0
    assert summary.loc["__overall__", "fraction_missing"] == pytest.approx(2 / 8)
