import json
import os
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd
from sklearn.metrics import (
    accuracy_score,
    confusion_matrix,
    f1_score,
    precision_score,
    recall_score,
    roc_auc_score,
    roc_curve,
)

from .utils.logger import get_logger


class Evaluator:
    """Evaluate class-1 probabilities on held-out data at a fixed threshold."""

    def __init__(
        self,
        metrics_path: Optional[str] = None,
        threshold: float = 0.5,
        verbose: bool = True,
    ):
        self.metrics_path = metrics_path
        self.threshold = threshold
        self.verbose = verbose
        self.logger = get_logger(self.__class__.__name__)

    @staticmethod
    def confusion_table(y_true: np.ndarray, y_pred: np.ndarray) -> pd.DataFrame:
        """2x2 counts with predicted class as rows and true class as columns."""
        cm = confusion_matrix(y_true, y_pred, labels=[0, 1]).T
        return pd.DataFrame(
            cm,
            index=pd.Index(["N", "Y"], name="predicted"),
            columns=pd.Index(["N", "Y"], name="truth"),
        )

    @staticmethod
    def roc_points(y_true: np.ndarray, y_proba: np.ndarray) -> pd.DataFrame:
        fpr, tpr, thresholds = roc_curve(np.asarray(y_true).astype(int), y_proba)
        return pd.DataFrame({"fpr": fpr, "tpr": tpr, "threshold": thresholds})

    def evaluate(self, y_true: np.ndarray, y_proba: np.ndarray) -> Dict[str, Any]:
        """Compute ROC-AUC, F1 and the confusion matrix; save JSON if a path is set."""
        y_true = np.asarray(y_true).astype(int)
        y_proba = np.asarray(y_proba).astype(float)
        y_pred = (y_proba >= self.threshold).astype(int)

        cm = self.confusion_table(y_true, y_pred)
        metrics: Dict[str, Any] = {
            "ROC_AUC": float(roc_auc_score(y_true, y_proba)),
            "F1": float(f1_score(y_true, y_pred, zero_division=0)),
            "Precision": float(precision_score(y_true, y_pred, zero_division=0)),
            "Recall": float(recall_score(y_true, y_pred, zero_division=0)),
            "Accuracy": float(accuracy_score(y_true, y_pred)),
            "Threshold": float(self.threshold),
            "Confusion_Matrix": {
                f"pred_{p}_true_{t}": int(cm.loc[p, t]) for p in cm.index for t in cm.columns
            },
        }

        if self.metrics_path:
            os.makedirs(os.path.dirname(self.metrics_path) or ".", exist_ok=True)
            with open(self.metrics_path, "w") as f:
                json.dump(metrics, f, indent=4)

            if self.verbose:
                self.logger.info(f"Saved metrics: {self.metrics_path}")

        return metrics
