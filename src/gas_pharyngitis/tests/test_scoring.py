import numpy as np
import pytest

from gas_pharyngitis.errors import DataSufficiencyError
from gas_pharyngitis.scoring import roc_auc, roc_points


def test_roc_auc_uses_event_label():
    y = np.array(["Negative", "Negative", "Positive", "Positive"])
    negative_score = np.array([0.9, 0.8, 0.3, 0.1])

    assert roc_auc(y, negative_score, event_label="Negative") == 1.0
    # the same score read as evidence for the other class inverts the ranking
    assert roc_auc(y, negative_score, event_label="Positive") == 0.0


def test_roc_auc_counts_ties_as_half():
    y = ["Negative", "Positive"]
    assert roc_auc(y, [0.5, 0.5]) == 0.5


def test_roc_auc_needs_both_classes():
    with pytest.raises(DataSufficiencyError):
        roc_auc(["Negative", "Negative"], [0.2, 0.7])


def test_roc_points_columns_and_endpoints():
    y = ["Negative", "Positive", "Negative", "Positive", "Negative"]
    curve = roc_points(y, [0.9, 0.4, 0.6, 0.5, 0.2])

    assert list(curve.columns) == ["fpr", "tpr", "threshold"]
    assert (curve["fpr"].iloc[0], curve["tpr"].iloc[0]) == (0.0, 0.0)
    assert (curve["fpr"].iloc[-1], curve["tpr"].iloc[-1]) == (1.0, 1.0)
