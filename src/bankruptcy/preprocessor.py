from __future__ import annotations

from typing import Optional

import pandas as pd
from sklearn.compose import ColumnTransformer
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder, StandardScaler

from bankruptcy.utils.logger import get_logger


class Preprocessor:
    """Builds the centering/scaling recipe for numeric (and categorical) predictors.

    The transformer is built unfitted; callers fit it on one training portion
    (a fold's analysis rows, or the full Train partition) and only ever call
    ``transform`` on the matching validation/test rows.
    """

    def __init__(self, scale_numeric: bool = True, verbose: bool = False):
        """
        Parameters
        ----------
        scale_numeric:
            Whether to center and scale numeric predictors. Disabling it keeps
            numeric columns as-is (passthrough).
        verbose:
            If True, logs detected feature groups.
        """
        self.scale_numeric = scale_numeric
        self.verbose = verbose
        self.logger = get_logger(self.__class__.__name__)
        self.transformer: Optional[ColumnTransformer] = None

    def build(self, X: pd.DataFrame) -> ColumnTransformer:
        """Build (but do not fit) the preprocessing transformer."""
        numeric_cols = X.select_dtypes(include=["number", "bool"]).columns.tolist()
        categorical_cols = X.select_dtypes(include=["object", "category"]).columns.tolist()

        num_pipe = (
            Pipeline(steps=[("scaler", StandardScaler())])
            if self.scale_numeric
            else "passthrough"
        )
        cat_pipe = Pipeline(
            steps=[("encoder", OneHotEncoder(handle_unknown="ignore", drop="if_binary", sparse_output=False))]
        )

        self.transformer = ColumnTransformer(
            transformers=[
                ("num", num_pipe, numeric_cols),
                ("cat", cat_pipe, categorical_cols),
            ],
            remainder="drop",
            verbose_feature_names_out=False,
        )

        if self.verbose:
            self.logger.info(
                f"Columns detected: numeric={len(numeric_cols)}, categorical={len(categorical_cols)}"
            )

        return self.transformer
