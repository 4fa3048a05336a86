import json
import os
import warnings
from dataclasses import dataclass, field
from typing import Dict, Optional, Union

import pandas as pd

from .config import Config
from .data_loader import DataLoader
from .evaluator import Evaluator
from .folds import CrossValidationFolder
from .hyper_tuner import HyperTuner, TuningResult
from .model_families import build_family
from .model_selector import ModelSelector
from .model_trainer import FinalModel
from .schema import DatasetSchema
from .splitter import DataSplitter, Split
from .utils.logger import get_logger


@dataclass
class PipelineReport:
    """In-memory results of one run, shaped for an external report/plot step."""
    cv_summary: pd.DataFrame
    test_summary: pd.DataFrame
    roc_curves: Dict[str, pd.DataFrame] = field(default_factory=dict)
    importances: Dict[str, pd.Series] = field(default_factory=dict)
    tuning_results: Dict[str, TuningResult] = field(default_factory=dict)
    final_models: Dict[str, FinalModel] = field(default_factory=dict)
    split: Optional[Split] = None


class PipelineRunner:
    """End-to-end GAS pharyngitis model comparison.

    Steps:
      1. Load and clean the case table (schema check, categorical coercion, drop identifier)
      2. Stratified train/test split
      3. Stratified k-fold assignment of the training subset
      4. Per model family: grid search with recipes refit inside every fold
      5. Per model family: select a configuration (best or one-standard-error rule)
      6. Refit the selected configuration on the full training subset
      7. Score on the test subset: ROC AUC, ROC curve, feature importance
      8. Optionally write the summary tables to the output directory"""

    def __init__(self, config: Union[str, Config]):
        self.config = Config.from_yaml(config) if isinstance(config, str) else config
        self.logger = get_logger(self.__class__.__name__)
        warnings.filterwarnings(
            "ignore",
            message="X does not have valid feature names",
            category=UserWarning,
            module="sklearn",
        )

    def run(self, raw: Optional[pd.DataFrame] = None) -> PipelineReport:
        """Run every configured family. ``raw`` replaces reading ``data.path`` when given."""
        cfg = self.config
        self.logger.info("Starting GAS pharyngitis model-selection pipeline")

        schema = DatasetSchema.from_config(cfg.data)
        loader = DataLoader(
            cfg.data.get("path"),
            schema=schema,
            expected_rows=cfg.data.get("expected_rows"),
            max_missing_fraction=cfg.data.get("max_missing_fraction", 0.065),
        )
        df = loader.clean(raw) if raw is not None else loader.load()
        target_col = schema.target_col

        # build every family up front so a bad grid fails before any fitting
        families = {name: build_family(name, options) for name, options in cfg.models.items()}

        split = DataSplitter(
            train_fraction=cfg.split.get("train_fraction", 0.8),
            target_col=target_col,
            seed=cfg.split.get("seed", 42),
        ).split(df)

        seed = cfg.validation.get("seed", 42)
        folds = CrossValidationFolder(
            n_splits=cfg.validation.get("n_splits", 5),
            target_col=target_col,
            seed=seed,
        ).assign(split.train)

        neighbors = cfg.preprocessing.get("neighbors", 5)
        score_label = cfg.validation.get("score_label", schema.label_levels[0])
        tuner = HyperTuner(
            target_col=target_col,
            n_jobs=cfg.validation.get("n_jobs", -1),
            seed=seed,
            neighbors=neighbors,
            score_label=score_label,
        )
        selector = ModelSelector()
        evaluator = Evaluator(score_label=score_label)

        report = PipelineReport(cv_summary=pd.DataFrame(), test_summary=pd.DataFrame(), split=split)
        cv_rows, test_rows = [], []
        for name, family in families.items():
            result = tuner.tune(family, split.train, folds)
            chosen_row = selector.choose(result, family.selection)
            configuration = selector.to_configuration(result, chosen_row)

            model = FinalModel.fit(configuration, family, split.train, target_col=target_col, seed=seed, neighbors=neighbors)
            evaluation = evaluator.evaluate(model, split.test)

            cv_rows.append(
                {
                    "family": name,
                    "mean_roc_auc": float(chosen_row["mean"]),
                    "std_err": float(chosen_row["std_err"]),
                    "params": configuration.params,
                }
            )
            test_rows.append({"family": name, "roc_auc": evaluation.roc_auc})
            report.tuning_results[name] = result
            report.final_models[name] = model
            report.roc_curves[name] = evaluation.roc_curve
            if evaluation.importance is not None:
                report.importances[name] = evaluation.importance

        report.cv_summary = pd.DataFrame(cv_rows).sort_values("mean_roc_auc", kind="stable").reset_index(drop=True)
        report.test_summary = pd.DataFrame(test_rows).sort_values("roc_auc", kind="stable").reset_index(drop=True)
        self.logger.info(f"Test ROC-AUC by family:\n{report.test_summary.to_string(index=False)}")

        if cfg.output.get("dir"):
            self._save(report, cfg.output["dir"], cfg.output.get("metrics_path"))

        self.logger.info("Pipeline finished")
        return report

    def _save(self, report: PipelineReport, out_dir: str, metrics_path: Optional[str]) -> None:
        os.makedirs(out_dir, exist_ok=True)

        cv = report.cv_summary.copy()
        cv["params"] = cv["params"].map(json.dumps)
        cv.to_csv(os.path.join(out_dir, "cv_summary.csv"), index=False)
        report.test_summary.to_csv(os.path.join(out_dir, "test_summary.csv"), index=False)

        for name, result in report.tuning_results.items():
            result.summary.to_csv(os.path.join(out_dir, f"{name}_tuning.csv"), index=False)
        for name, curve in report.roc_curves.items():
            curve.to_csv(os.path.join(out_dir, f"{name}_roc_curve.csv"), index=False)
        for name, importance in report.importances.items():
            importance.rename_axis("feature").reset_index().to_csv(
                os.path.join(out_dir, f"{name}_importance.csv"), index=False
            )

        metrics_path = metrics_path or os.path.join(out_dir, "metrics.json")
        os.makedirs(os.path.dirname(metrics_path) or ".", exist_ok=True)
        with open(metrics_path, "w") as f:
            json.dump({row.family: {"ROC_AUC": float(row.roc_auc)} for row in report.test_summary.itertuples()}, f, indent=4)

        self.logger.info(f"Saved report tables to {out_dir}")
