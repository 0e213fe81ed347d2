from dataclasses import dataclass, field
from textwrap import indent

import pandas as pd

from .exceptions import PipelineError
from .utils.logger import get_logger


@dataclass(frozen=True)
class Comparison:
    """Best configuration per model family, ranked by mean CV metric."""
    table: pd.DataFrame
    best_model: str
    best_config_id: str
    excluded: dict[str, str] = field(default_factory=dict)


class ModelSelector:
    """Picks each family's best grid point and ranks the families.

    Ties on the mean metric go to the grid point enumerated first, and
    families with equal best means keep registry order.
    """

    def __init__(self, metric: str = "roc_auc"):
        self.metric = metric
        self.logger = get_logger(self.__class__.__name__)

    @staticmethod
    def select_best(summary: pd.DataFrame, model: str) -> pd.Series:
        """Row of ``summary`` with the highest mean for one model."""
        rows = summary[(summary["model"] == model) & (summary["n"] > 0)]
        if rows.empty:
            raise KeyError(f"No successful configuration for model '{model}'")
        # idxmax returns the first occurrence of the maximum
        return rows.loc[rows["mean"].idxmax()]

    def compare(self, summary: pd.DataFrame, model_order: list[str] | None = None) -> Comparison:
        models = model_order or list(dict.fromkeys(summary["model"]))

        rows, excluded = [], {}
        for model in models:
            try:
                best = self.select_best(summary, model)
            except KeyError:
                excluded[model] = "no successful fits"
                self.logger.warning(f"Excluding {model} from comparison: no successful fits")
                continue
            rows.append(best)

        if not rows:
            raise PipelineError("select", "every model family failed during tuning")

        table = (
            pd.DataFrame(rows)
            .sort_values("mean", ascending=False, kind="mergesort")
            .reset_index(drop=True)
        )
        table.insert(0, "rank", range(1, len(table) + 1))
        table = table.dropna(axis=1, how="all")

        top = table.iloc[0]
        comparison = Comparison(
            table=table,
            best_model=str(top["model"]),
            best_config_id=str(top["config_id"]),
            excluded=excluded,
        )

        table_str = indent(
            "\n".join(
                f"{r['rank']}. {r['model']:<20} {r['config_id']:<10} "
                f"{self.metric}={r['mean']:.4f} (se={r.get('std_err', float('nan')):.4f})"
                for _, r in table.iterrows()
            ),
            " " * 4,
        )
        self.logger.info(f"Model comparison:\n{table_str}")
        self.logger.info(f"Selected {comparison.best_model} / {comparison.best_config_id}")
        return comparison
