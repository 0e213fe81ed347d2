import os
from dataclasses import dataclass, field
from typing import Any, Optional

import joblib
import numpy as np
import pandas as pd
from sklearn.base import ClassifierMixin
from sklearn.compose import ColumnTransformer
from sklearn.inspection import permutation_importance

from .model_registry import ModelSpec
from .preprocessor import Preprocessor
from .utils.logger import get_logger


@dataclass
class FinalModel:
    """Chosen family + config, with recipe and estimator refit on all of Train."""
    spec: ModelSpec
    config_id: str
    params: dict[str, Any]
    transformer: ColumnTransformer
    model: ClassifierMixin
    feature_names: list[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.spec.name

    def predict_proba(self, X_df: pd.DataFrame) -> np.ndarray:
        # Train statistics only; the recipe is never refit here
        X = self.transformer.transform(X_df)
        return self.spec.predict_proba(self.model, X)


class ModelTrainer:
    """
    Refits the selected model on the full training partition:
    preprocessing is fit on Train once and reused unchanged for Test.

    Provides:
      - fit_final: fits recipe + model on Train and saves the FinalModel
      - feature_importance: importance scores of the final model
    """

    def __init__(
        self,
        model_path: Optional[str] = None,
        scale_numeric: bool = True,
        random_state: int = 123,
    ):
        self.model_path = model_path
        self.scale_numeric = scale_numeric
        self.random_state = random_state
        self.logger = get_logger(self.__class__.__name__)
        self.final_model: Optional[FinalModel] = None

    def fit_final(
        self,
        spec: ModelSpec,
        config_id: str,
        X_df: pd.DataFrame,
        y: np.ndarray,
        transformer: Optional[ColumnTransformer] = None,
    ) -> FinalModel:
        """Refit on all of Train; ``transformer``, if given, must already be fit on X_df."""
        params = dict(spec.configs())[config_id]
        y = np.asarray(y).astype(int)

        if transformer is None:
            transformer = Preprocessor(scale_numeric=self.scale_numeric).build(X_df)
            X_full = transformer.fit_transform(X_df)
        else:
            X_full = transformer.transform(X_df)

        model = spec.fit(X_full, y, params)

        self.final_model = FinalModel(
            spec=spec,
            config_id=config_id,
            params=params,
            transformer=transformer,
            model=model,
            feature_names=list(transformer.get_feature_names_out()),
        )
        self.logger.info(f"Refit {spec.name} / {config_id} {params} on {len(y):,} rows")

        if self.model_path:
            os.makedirs(os.path.dirname(self.model_path) or ".", exist_ok=True)
            joblib.dump(self.final_model, self.model_path)
            self.logger.info(f"Saved final model: {self.model_path}")

        return self.final_model

    def feature_importance(
        self,
        X_df: Optional[pd.DataFrame] = None,
        y: Optional[np.ndarray] = None,
    ) -> pd.DataFrame:
        """
        Importance per transformed feature: impurity importance for forests,
        |coefficient| for linear models, otherwise permutation importance on
        the given (X_df, y).
        """
        if self.final_model is None:
            raise RuntimeError("Call fit_final() before feature_importance().")

        final = self.final_model
        model = final.model
        if hasattr(model, "feature_importances_"):
            scores, method = np.asarray(model.feature_importances_), "impurity"
        elif hasattr(model, "coef_"):
            scores, method = np.abs(np.ravel(model.coef_)), "abs_coef"
        else:
            if X_df is None or y is None:
                raise ValueError("Permutation importance needs X_df and y")
            perm = permutation_importance(
                model,
                final.transformer.transform(X_df),
                np.asarray(y).astype(int),
                scoring="roc_auc",
                n_repeats=10,
                random_state=self.random_state,
            )
            scores, method = perm.importances_mean, "permutation"

        return (
            pd.DataFrame({"feature": final.feature_names, "importance": scores, "method": method})
            .sort_values("importance", ascending=False, kind="mergesort")
            .reset_index(drop=True)
        )
