import pandas as pd

from .errors import ConfigurationError
from .hyper_tuner import TuningResult
from .model_families import ModelConfiguration, SelectionPolicy
from .utils.logger import get_logger


class ModelSelector:
    """Picks one configuration per family from its tuning surface."""

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    def choose(self, result: TuningResult, policy: SelectionPolicy) -> pd.Series:
        """Summary row of the chosen configuration."""
        summary = result.summary
        if summary.empty:
            raise ConfigurationError(f"{result.family}: tuning produced no configurations to select from")

        if policy.kind == "best":
            chosen = result.best()
        else:
            chosen = self._one_standard_error(summary, policy, result.family)
        self.logger.info(
            f"{result.family}: chose config {int(chosen['config_id'])} by '{policy.kind}' "
            f"(CV ROC-AUC {chosen['mean']:.4f}, SE {chosen['std_err']:.4f})"
        )
        return chosen

    def select(self, result: TuningResult, policy: SelectionPolicy) -> ModelConfiguration:
        return self.to_configuration(result, self.choose(result, policy))

    @staticmethod
    def to_configuration(result: TuningResult, row: pd.Series) -> ModelConfiguration:
        # read from the frame by label; a row Series upcasts integer columns to float
        params = {name: _native(result.summary.at[row.name, name]) for name in result.param_names}
        return ModelConfiguration(family=result.family, params=params)

    @staticmethod
    def _one_standard_error(summary: pd.DataFrame, policy: SelectionPolicy, family: str) -> pd.Series:
        if policy.axis not in summary.columns:
            raise ConfigurationError(f"{family}: selection axis '{policy.axis}' is not a tuned hyperparameter")
        top = summary.sort_values(["mean", "config_id"], ascending=[False, True], kind="stable").iloc[0]
        threshold = top["mean"] - top["std_err"]
        candidates = summary[summary["mean"] >= threshold]
        ranked = candidates.sort_values(
            [policy.axis, "mean", "config_id"],
            ascending=[policy.prefer == "min", False, True],
            kind="stable",
        )
        return ranked.iloc[0]


def _native(value):
    """numpy scalars -> plain Python values so configurations print and serialise cleanly."""
    return value.item() if hasattr(value, "item") else value
