import warnings
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from sklearn.metrics import average_precision_score, roc_auc_score

from .model_registry import ModelRegistry, ModelSpec
from .preprocessor import Preprocessor
from .splitter import Fold
from .utils.logger import get_logger

METRICS = {
    "roc_auc": roc_auc_score,
    "pr_auc": average_precision_score,
}


@dataclass
class TuningResult:
    """Outcome of one (model, grid point, fold) unit."""
    model: str
    config_id: str
    fold: int
    params: dict[str, Any] = field(default_factory=dict)
    metric: Optional[float] = None
    n_warnings: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.metric is not None


def evaluate_unit(
    spec: ModelSpec,
    config_id: str,
    params: dict[str, Any],
    fold: Fold,
    X_df: pd.DataFrame,
    y: np.ndarray,
    metric: str = "roc_auc",
    scale_numeric: bool = True,
) -> TuningResult:
    """Fit recipe + model on the fold's training rows and score its validation rows.

    Any exception is recorded on the result instead of propagating, so one
    non-converging fit only costs its own unit.
    """
    result = TuningResult(model=spec.name, config_id=config_id, fold=fold.fold_id, params=params)
    try:
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")

            X_train_df = X_df.iloc[fold.train_index]
            X_val_df = X_df.iloc[fold.val_index]
            y_train = y[fold.train_index]
            y_val = y[fold.val_index]

            # Fit preprocessing only on training fold (prevents leakage)
            transformer = Preprocessor(scale_numeric=scale_numeric).build(X_train_df)
            X_train = transformer.fit_transform(X_train_df)
            X_val = transformer.transform(X_val_df)

            model = spec.fit(X_train, y_train, params)
            val_proba = spec.predict_proba(model, X_val)
            score = float(METRICS[metric](y_val, val_proba))

        if not np.isfinite(score):
            raise FloatingPointError(f"non-finite {metric}: {score}")
        result.metric = score
        result.n_warnings = len(caught)
    except Exception as exc:  # recorded per unit, see TuningResult.error
        result.error = f"{type(exc).__name__}: {exc}"
    return result


class HyperTuner:
    """Grid search of every registered model family under k-fold CV."""

    def __init__(
        self,
        metric: str = "roc_auc",
        n_jobs: int = 1,
        scale_numeric: bool = True,
    ):
        if metric not in METRICS:
            raise ValueError(f"Unknown metric '{metric}' (known: {sorted(METRICS)})")
        self.metric = metric
        self.n_jobs = n_jobs
        self.scale_numeric = scale_numeric
        self.logger = get_logger(self.__class__.__name__)
        self.results_: list[TuningResult] = []

    def tune_model(
        self,
        spec: ModelSpec,
        X_df: pd.DataFrame,
        y: np.ndarray,
        folds: list[Fold],
    ) -> list[TuningResult]:
        configs = list(spec.configs())
        self.logger.info(
            f"Tuning {spec.name}: {len(configs)} config(s) x {len(folds)} folds"
        )
        y = np.asarray(y).astype(int)

        results = Parallel(n_jobs=self.n_jobs)(
            delayed(evaluate_unit)(
                spec, config_id, params, fold, X_df, y,
                metric=self.metric, scale_numeric=self.scale_numeric,
            )
            for config_id, params in configs
            for fold in folds
        )

        failed = [r for r in results if not r.ok]
        for r in failed:
            self.logger.warning(f"{r.model} {r.config_id} fold {r.fold} failed: {r.error}")

        n_warn = sum(r.n_warnings for r in results)
        if n_warn:
            self.logger.info(f"{spec.name}: {n_warn} library warning(s) during fitting")

        ok = [r.metric for r in results if r.ok]
        if ok:
            self.logger.info(
                f"{spec.name}: {len(ok)}/{len(results)} fits succeeded, "
                f"best fold {self.metric}={max(ok):.4f}"
            )
        return results

    def tune(
        self,
        registry: ModelRegistry,
        X_df: pd.DataFrame,
        y: np.ndarray,
        folds: list[Fold],
    ) -> pd.DataFrame:
        """Evaluate all (model, config, fold) units; returns long-format results."""
        self.results_ = []
        for spec in registry:
            self.results_.extend(self.tune_model(spec, X_df, y, folds))
        return self.to_frame(self.results_)

    def to_frame(self, results: list[TuningResult]) -> pd.DataFrame:
        rows = []
        for r in results:
            row = asdict(r)
            params = row.pop("params")
            row[self.metric] = row.pop("metric")
            row.update(params)
            rows.append(row)
        return pd.DataFrame(rows)

    @staticmethod
    def summarize(results: pd.DataFrame, metric: str = "roc_auc") -> pd.DataFrame:
        """Mean and standard error per (model, config_id), in enumeration order."""
        param_cols = [
            c for c in results.columns
            if c not in {"model", "config_id", "fold", metric, "n_warnings", "error"}
        ]
        rows = []
        for (model, config_id), group in results.groupby(["model", "config_id"], sort=False):
            scores = group.loc[group["error"].isna(), metric].dropna().astype(float)
            n = len(scores)
            std = float(scores.std(ddof=1)) if n > 1 else float("nan")
            row = {
                "model": model,
                "config_id": config_id,
                "mean": float(scores.mean()) if n else float("nan"),
                "std_err": std / np.sqrt(n) if n > 1 else float("nan"),
                "n": n,
                "n_failed": int(len(group) - n),
            }
            first = group.iloc[0]
            row.update({c: first[c] for c in param_cols if pd.notna(first[c])})
            rows.append(row)
        return pd.DataFrame(rows)
