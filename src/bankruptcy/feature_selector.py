import numpy as np
import pandas as pd

from .exceptions import SchemaError
from .utils.logger import get_logger


class FeatureSelector:
    """Correlation diagnostics plus the fixed, hand-curated predictor subset.

    The flagged pairs are advisory only: ``select`` never drops columns on
    its own, it applies the configured ``columns`` mapping
    (cleaned source name -> short name) and keeps the label.
    """

    def __init__(self, columns: dict[str, str], label_col: str = "bankrupt", threshold: float = 0.9):
        self.columns = dict(columns)
        self.label_col = label_col
        self.threshold = threshold
        self.logger = get_logger(self.__class__.__name__)

    def correlated_pairs(self, df: pd.DataFrame) -> pd.DataFrame:
        """Return every unordered pair of numeric columns with |r| > threshold."""
        numeric = df.drop(columns=[self.label_col], errors="ignore").select_dtypes(include="number")
        corr = numeric.corr(method="pearson")

        values = corr.to_numpy()
        # upper triangle only, diagonal excluded; NaN compares False
        upper = np.triu(np.ones(values.shape, dtype=bool), k=1)
        rows, cols = np.nonzero(upper & (np.abs(values) > self.threshold))
        pairs = pd.DataFrame(
            {
                "feature1": corr.index[rows],
                "feature2": corr.columns[cols],
                "correlation": values[rows, cols],
            }
        )

        pairs = (
            pairs.assign(abs_corr=pairs["correlation"].abs())
            .sort_values("abs_corr", ascending=False, kind="mergesort")
            .drop(columns="abs_corr")
            .reset_index(drop=True)
        )
        self.logger.info(
            f"Found {len(pairs)} pairs with |r| > {self.threshold} "
            f"among {numeric.shape[1]} numeric columns"
        )
        return pairs

    def select(self, df: pd.DataFrame) -> pd.DataFrame:
        """Narrow to label + configured predictors, renamed to their short names."""
        wanted = [self.label_col] + list(self.columns)
        absent = [col for col in wanted if col not in df.columns]
        if absent:
            raise SchemaError(f"Selected features not found in data: {absent}")

        out = df[wanted].rename(columns=self.columns).copy()
        self.logger.info(f"Selected {len(self.columns)} predictors + label '{self.label_col}'")
        return out

    @staticmethod
    def summarize(df: pd.DataFrame, label_col: str = "bankrupt") -> pd.DataFrame:
        """Per-class descriptive statistics of the numeric predictors (long format)."""
        numeric_cols = df.drop(columns=[label_col]).select_dtypes(include="number").columns
        long = df.melt(
            id_vars=[label_col], value_vars=list(numeric_cols), var_name="feature"
        )
        summary = (
            long.groupby(["feature", label_col], observed=True)["value"]
            .describe()
            .reset_index()
        )
        return summary
