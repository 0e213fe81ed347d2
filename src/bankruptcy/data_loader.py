import os
import re
from typing import Iterable, Optional

import pandas as pd

from .exceptions import MissingValuesError, SchemaError
from .utils.logger import get_logger

BINARY_LEVELS = ["N", "Y"]


def clean_column_name(name: str) -> str:
    """Snake-case a raw header: 'Debt ratio %' -> 'debt_ratio_percent'."""
    name = str(name).replace("%", " percent ").replace("#", " number ")
    name = re.sub(r"[^0-9a-zA-Z]+", "_", name)
    return name.strip("_").lower()


def clean_column_names(columns: Iterable[str]) -> list[str]:
    """Clean every name, suffixing duplicates with _2, _3, ..."""
    seen: dict[str, int] = {}
    out: list[str] = []
    for col in columns:
        base = clean_column_name(col)
        seen[base] = seen.get(base, 0) + 1
        out.append(base if seen[base] == 1 else f"{base}_{seen[base]}")
    return out


class DataLoader:
    """Loads the bankruptcy CSV, cleans names and casts binary columns."""

    def __init__(
        self,
        path: str,
        label_col: str = "bankrupt",
        indicator_cols: Optional[list[str]] = None,
    ):
        self.path = path
        self.label_col = label_col
        self.indicator_cols = list(indicator_cols or [])
        self.logger = get_logger(self.__class__.__name__)

    @staticmethod
    def _to_binary_category(series: pd.Series) -> pd.Series:
        values = set(pd.unique(series.dropna()))
        if not values.issubset({0, 1}):
            raise SchemaError(
                f"Column '{series.name}' is not binary 0/1: {list(values)[:5]}"
            )
        mapped = series.map({0: BINARY_LEVELS[0], 1: BINARY_LEVELS[1]})
        return pd.Series(
            pd.Categorical(mapped, categories=BINARY_LEVELS),
            index=series.index,
            name=series.name,
        )

    def clean(self, df: pd.DataFrame) -> pd.DataFrame:
        """Return a cleaned copy of an already-read frame."""
        out = df.copy()
        out.columns = clean_column_names(out.columns)

        binary_cols = [self.label_col] + self.indicator_cols
        absent = [col for col in binary_cols if col not in out.columns]
        if absent:
            raise SchemaError(f"Expected columns not found: {absent}")

        missing = out.isna().sum()
        missing = missing[missing > 0]
        if not missing.empty:
            raise MissingValuesError({str(k): int(v) for k, v in missing.items()})

        for col in binary_cols:
            out[col] = self._to_binary_category(out[col])

        return out

    def load(self) -> pd.DataFrame:
        if not os.path.exists(self.path):
            raise FileNotFoundError(f"Input data not found: {self.path}")

        df = self.clean(pd.read_csv(self.path))
        self.logger.info(f"Loaded dataset: {df.shape[0]:,} rows x {df.shape[1]} cols")

        counts = df[self.label_col].value_counts().reindex(BINARY_LEVELS)
        shares = counts / counts.sum()
        self.logger.info(
            "Class balance: "
            + ", ".join(f"{lvl}={counts[lvl]:,} ({shares[lvl]:.2%})" for lvl in BINARY_LEVELS)
        )
        return df
