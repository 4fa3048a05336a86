"""
GAS Pharyngitis — Model Selection and Evaluation Pipeline

This package predicts whether a pediatric pharyngitis case is positive for
Group A Streptococcus from clinical symptoms alone. It compares four
classifier families (KNN, elastic-net logistic regression, random forest,
RBF SVM) with leakage-safe cross-validated grid search and scores the
selected models on a held-out test split.

Modules:
    config          — Load YAML configuration safely.
    schema          — Declared columns and categorical level sets.
    data_loader     — Read, validate and clean the case table.
    splitter        — Stratified train/test split.
    imputer         — k-NN imputation for mixed continuous/categorical data.
    preprocessor    — Fit-once/apply-many recipe (impute, encode, scale).
    folds           — Stratified k-fold assignment.
    model_families  — Family descriptors: grids, estimators, selection policy.
    scoring         — ROC AUC and ROC curve helpers.
    hyper_tuner     — Parallel grid search over (configuration, fold) tasks.
    model_selector  — Best / one-standard-error configuration choice.
    model_trainer   — Final model refit on the full training subset.
    evaluator       — Test-set ROC AUC, ROC curve and importance.
    pipeline        — Orchestrates all components.
    utils.logger    — Unified timestamped console logger.
"""

from .config import Config
from .data_loader import DataLoader, missing_summary
from .errors import ConfigurationError, DataSufficiencyError, PipelineError, SchemaError, TuningError
from .evaluator import EvaluationResult, Evaluator
from .folds import CrossValidationFolder, FoldAssignment
from .hyper_tuner import HyperTuner, TuningResult
from .model_families import FAMILIES, ModelConfiguration, ModelFamily, SelectionPolicy, build_family, get_family
from .model_selector import ModelSelector
from .model_trainer import FinalModel
from .pipeline import PipelineReport, PipelineRunner
from .preprocessor import FittedRecipe, Recipe
from .schema import DEFAULT_SCHEMA, DatasetSchema
from .splitter import DataSplitter, Split

__all__ = [
    "Config",
    "DataLoader",
    "missing_summary",
    "PipelineError",
    "SchemaError",
    "DataSufficiencyError",
    "ConfigurationError",
    "TuningError",
    "Evaluator",
    "EvaluationResult",
    "CrossValidationFolder",
    "FoldAssignment",
    "HyperTuner",
    "TuningResult",
    "FAMILIES",
    "ModelConfiguration",
    "ModelFamily",
    "SelectionPolicy",
    "build_family",
    "get_family",
    "ModelSelector",
    "FinalModel",
    "PipelineReport",
    "PipelineRunner",
    "Recipe",
    "FittedRecipe",
    "DEFAULT_SCHEMA",
    "DatasetSchema",
    "DataSplitter",
    "Split",
]
