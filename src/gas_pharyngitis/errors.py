from typing import Any, Dict, Optional


class PipelineError(Exception):
    """Base class for all errors raised by the pipeline."""


class SchemaError(PipelineError):
    """Columns or categorical levels do not match the declared schema."""


class DataSufficiencyError(PipelineError):
    """A split or fold would leave a class without members."""


class ConfigurationError(PipelineError):
    """Invalid configuration, hyperparameter grid or selection policy."""


class TuningError(PipelineError):
    """A single (configuration, fold) evaluation failed during tuning."""

    def __init__(self, family: str, params: Dict[str, Any], fold: int, cause: Optional[BaseException] = None):
        self.family = family
        self.params = dict(params)
        self.fold = fold
        message = f"{family} failed on fold {fold} with params {self.params}"
        if cause is not None:
            message += f": {type(cause).__name__}: {cause}"
        super().__init__(message)

    def __reduce__(self):
        # keep the attributes when the error crosses a joblib worker boundary
        return (self.__class__, (self.family, self.params, self.fold), {"args": self.args})

    def __setstate__(self, state):
        self.args = state["args"]
