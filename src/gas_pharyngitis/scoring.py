import numpy as np
import pandas as pd
from sklearn.metrics import roc_auc_score, roc_curve

from .errors import DataSufficiencyError


def _event_indicator(y_true, event_label: str) -> np.ndarray:
    y_event = (np.asarray(y_true).astype(str) == str(event_label)).astype(int)
    if y_event.min() == y_event.max():
        raise DataSufficiencyError(f"ROC AUC needs both classes; all {len(y_event)} labels fall on one side of '{event_label}'")
    return y_event


def roc_auc(y_true, event_score, event_label: str = "Negative") -> float:
    """Area under the ROC curve, treating ``event_label`` as the event and ``event_score`` as its probability."""
    return float(roc_auc_score(_event_indicator(y_true, event_label), np.asarray(event_score, dtype=float)))


def roc_points(y_true, event_score, event_label: str = "Negative") -> pd.DataFrame:
    """False/true positive rates over the full threshold sweep."""
    fpr, tpr, thresholds = roc_curve(_event_indicator(y_true, event_label), np.asarray(event_score, dtype=float))
    return pd.DataFrame({"fpr": fpr, "tpr": tpr, "threshold": thresholds})
