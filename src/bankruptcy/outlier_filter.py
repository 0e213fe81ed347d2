import operator
from dataclasses import dataclass
from typing import Any, Iterable

import pandas as pd

from .exceptions import SchemaError
from .utils.logger import get_logger

_OPS = {
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}


@dataclass(frozen=True)
class OutlierRule:
    """Reject a record when ``record[column] <op> value`` holds."""
    column: str
    op: str
    value: float

    def __post_init__(self):
        if self.op not in _OPS:
            raise ValueError(f"Unsupported outlier operator '{self.op}' (use one of {sorted(_OPS)})")

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "OutlierRule":
        return cls(column=raw["column"], op=raw["op"], value=float(raw["value"]))

    def violations(self, df: pd.DataFrame) -> pd.Series:
        return _OPS[self.op](df[self.column], self.value)

    def __str__(self) -> str:
        return f"{self.column} {self.op} {self.value:g}"


@dataclass(frozen=True)
class FilterResult:
    data: pd.DataFrame
    n_removed: int
    removed_by_rule: dict[str, int]


class OutlierFilter:
    """Drops records matching any of a fixed list of threshold rules (OR)."""

    def __init__(self, rules: Iterable[OutlierRule | dict[str, Any]]):
        self.rules = [r if isinstance(r, OutlierRule) else OutlierRule.from_dict(r) for r in rules]
        self.logger = get_logger(self.__class__.__name__)

    def predicate(self, df: pd.DataFrame) -> pd.Series:
        """Boolean mask of records to reject."""
        absent = sorted({r.column for r in self.rules} - set(df.columns))
        if absent:
            raise SchemaError(f"Outlier rule columns not found: {absent}")

        mask = pd.Series(False, index=df.index)
        for rule in self.rules:
            mask |= rule.violations(df)
        return mask

    def filter(self, df: pd.DataFrame) -> FilterResult:
        reject = self.predicate(df)
        by_rule = {str(rule): int(rule.violations(df).sum()) for rule in self.rules}
        out = df.loc[~reject].copy()

        n_removed = int(reject.sum())
        self.logger.info(f"Removed {n_removed} outlier rows: {len(df):,} -> {len(out):,}")
        hits = ", ".join(f"{rule}: {n}" for rule, n in by_rule.items() if n)
        if hits:
            self.logger.info(f"Rows matched per rule: {hits}")
        return FilterResult(data=out, n_removed=n_removed, removed_by_rule=by_rule)
