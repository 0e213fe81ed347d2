import os
import warnings
from contextlib import contextmanager
from dataclasses import dataclass, field
from textwrap import indent
from typing import Any, Dict, Iterator, Union

import joblib
import numpy as np
import pandas as pd

from .config import Config
from .data_loader import DataLoader
from .evaluator import Evaluator
from .exceptions import PipelineError
from .feature_selector import FeatureSelector
from .hyper_tuner import HyperTuner
from .model_registry import ModelRegistry
from .model_selector import Comparison, ModelSelector
from .model_trainer import FinalModel, ModelTrainer
from .outlier_filter import OutlierFilter
from .preprocessor import Preprocessor
from .splitter import Splitter
from .utils.logger import get_logger


@dataclass
class PipelineResult:
    comparison: Comparison
    final_model: FinalModel
    test_metrics: Dict[str, Any]
    cv_results: pd.DataFrame
    cv_summary: pd.DataFrame
    correlated_pairs: pd.DataFrame
    n_outliers_removed: int
    outliers_by_rule: Dict[str, int]
    failures: pd.DataFrame = field(default_factory=pd.DataFrame)


class PipelineRunner:
    """End-to-end bankruptcy model-comparison pipeline.

    Steps:
      1. Load CSV, clean column names, cast label/indicators to N/Y
      2. Flag highly correlated numeric pairs; narrow to the fixed predictors
      3. Drop outlier rows by the fixed threshold rules
      4. Stratified train/test split and stratified k folds of Train
      5. Grid-search every model family under fold-wise preprocessing
      6. Rank families by mean CV ROC-AUC and pick the best config
      7. Refit recipe + best model on all of Train
      8. Evaluate on Test (ROC-AUC, F1, confusion matrix)"""

    def __init__(self, config: Union[str, Config]):
        self.config = config if isinstance(config, Config) else Config.from_yaml(config)
        self.logger = get_logger(self.__class__.__name__)
        warnings.filterwarnings(
            "ignore",
            message="X does not have valid feature names",
            category=UserWarning,
            module="sklearn",
        )

    @contextmanager
    def _stage(self, name: str) -> Iterator[None]:
        try:
            yield
        except PipelineError:
            raise
        except Exception as exc:
            self.logger.error(f"Stage '{name}' failed: {exc}")
            raise PipelineError(name, exc) from exc

    def _path(self, filename: str) -> str:
        out_dir = self.config.output.get("dir", "artifacts")
        os.makedirs(out_dir, exist_ok=True)
        return os.path.join(out_dir, filename)

    def run(self) -> PipelineResult:
        cfg = self.config
        label = cfg.data.get("label_col", "bankrupt")
        seed = cfg.split.get("seed", 123)
        scale_numeric = cfg.preprocessing.get("scale_numeric", True)
        metric = cfg.validation.get("metric", "roc_auc")
        self.logger.info("Starting bankruptcy model-comparison pipeline")

        with self._stage("load"):
            df = DataLoader(
                cfg.data["path"],
                label_col=label,
                indicator_cols=cfg.data.get("indicator_cols", []),
            ).load()

        with self._stage("features"):
            selector = FeatureSelector(
                cfg.features["columns"],
                label_col=label,
                threshold=cfg.features.get("correlation_threshold", 0.9),
            )
            pairs = selector.correlated_pairs(df)
            pairs.to_csv(self._path("correlated_pairs.csv"), index=False)
            df = selector.select(df)

        with self._stage("outliers"):
            filtered = OutlierFilter(cfg.outliers).filter(df)
            df = filtered.data
            by_rule = pd.DataFrame(
                {"rule": list(filtered.removed_by_rule), "n_rows": list(filtered.removed_by_rule.values())}
            )
            by_rule.to_csv(self._path("outliers_by_rule.csv"), index=False)
            FeatureSelector.summarize(df, label_col=label).to_csv(
                self._path("feature_summary.csv"), index=False
            )

        with self._stage("split"):
            splitter = Splitter(
                label_col=label,
                train_prop=cfg.split.get("train_prop", 0.7),
                n_splits=cfg.validation.get("n_splits", 10),
                seed=seed,
            )
            split = splitter.split(df)
            folds = splitter.folds(split.train)

            X_train_df = split.train.drop(columns=[label])
            y_train = (split.train[label] == "Y").astype(int).to_numpy()
            X_test_df = split.test.drop(columns=[label])
            y_test = (split.test[label] == "Y").astype(int).to_numpy()

            recipe = Preprocessor(scale_numeric=scale_numeric).build(X_train_df).fit(X_train_df)
            joblib.dump(
                {"split": split, "folds": folds, "recipe": recipe},
                self._path("split.joblib"),
            )

        with self._stage("tune"):
            registry = ModelRegistry.from_config(cfg.models, seed=seed)
            tuner = HyperTuner(
                metric=metric,
                n_jobs=cfg.validation.get("n_jobs", 1),
                scale_numeric=scale_numeric,
            )
            cv_results = tuner.tune(registry, X_train_df, y_train, folds)
            cv_summary = HyperTuner.summarize(cv_results, metric=metric)
            cv_results.to_csv(self._path("cv_results.csv"), index=False)
            cv_summary.to_csv(self._path("cv_summary.csv"), index=False)

        with self._stage("select"):
            comparison = ModelSelector(metric=metric).compare(
                cv_summary, model_order=[spec.name for spec in registry]
            )
            comparison.table.to_csv(self._path("comparison.csv"), index=False)

        with self._stage("refit"):
            trainer = ModelTrainer(
                model_path=self._path("final_model.joblib"),
                scale_numeric=scale_numeric,
                random_state=seed,
            )
            final = trainer.fit_final(
                registry[comparison.best_model],
                comparison.best_config_id,
                X_train_df,
                y_train,
                transformer=recipe,
            )

        with self._stage("evaluate"):
            test_proba = final.predict_proba(X_test_df)
            evaluator = Evaluator(
                metrics_path=self._path("metrics.json"),
                threshold=cfg.validation.get("threshold", 0.5),
            )
            metrics = evaluator.evaluate(y_test, test_proba)
            Evaluator.roc_points(y_test, test_proba).to_csv(self._path("roc_curve.csv"), index=False)
            trainer.feature_importance(X_test_df, y_test).to_csv(
                self._path("feature_importance.csv"), index=False
            )

        metrics_str = indent(
            "\n".join([f"{k}: {v:.4f}" for k, v in metrics.items() if isinstance(v, float)]),
            " " * 4,
        )
        self.logger.info(f"Test metrics ({final.name}):\n{metrics_str}")

        failures = cv_results[cv_results["error"].notna()].reset_index(drop=True)
        self.logger.info(
            f"Pipeline finished: {len(failures)} failed tuning unit(s), "
            f"test ROC-AUC={metrics['ROC_AUC']:.4f}, mean test proba={np.mean(test_proba):.4f}"
        )
        return PipelineResult(
            comparison=comparison,
            final_model=final,
            test_metrics=metrics,
            cv_results=cv_results,
            cv_summary=cv_summary,
            correlated_pairs=pairs,
            n_outliers_removed=filtered.n_removed,
            outliers_by_rule=filtered.removed_by_rule,
            failures=failures,
        )
