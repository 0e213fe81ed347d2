import itertools
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator

import numpy as np
from sklearn.base import ClassifierMixin
from sklearn.discriminant_analysis import (
    LinearDiscriminantAnalysis,
    QuadraticDiscriminantAnalysis,
)
from sklearn.ensemble import RandomForestClassifier
from sklearn.linear_model import LogisticRegression
from sklearn.neighbors import KNeighborsClassifier

Params = dict[str, Any]


def regular_levels(
    low: float,
    high: float,
    levels: int,
    log10: bool = False,
    integer: bool = False,
) -> list:
    """Evenly spaced levels over [low, high].

    With ``log10`` the range is given in log10 units and levels are returned
    on the natural scale. Integer levels are rounded half-to-even and
    de-duplicated in order.
    """
    values = np.linspace(low, high, levels)
    if log10:
        values = np.power(10.0, values)
    if integer:
        return list(dict.fromkeys(int(v) for v in np.rint(values)))
    return [float(v) for v in values]


def expand_grid(space: dict[str, list]) -> list[Params]:
    """Full factorial grid; the first declared parameter varies slowest."""
    names = list(space)
    return [dict(zip(names, combo)) for combo in itertools.product(*space.values())]


def _logistic_regression(params: Params, **fixed: Any) -> ClassifierMixin:
    # C=inf means no penalty
    return LogisticRegression(C=np.inf, max_iter=fixed.get("max_iter", 1000))


def _elastic_net(params: Params, n_obs: int = 1, **fixed: Any) -> ClassifierMixin:
    """glmnet-style penalty: lambda is per observation, so C = 1 / (n * lambda)."""
    return LogisticRegression(
        solver="saga",
        C=1.0 / (n_obs * params["penalty"]),
        l1_ratio=params["mixture"],
        max_iter=fixed.get("max_iter", 5000),
        random_state=fixed.get("seed"),
    )


def _knn(params: Params, **fixed: Any) -> ClassifierMixin:
    return KNeighborsClassifier(n_neighbors=params["neighbors"])


def _lda(params: Params, **fixed: Any) -> ClassifierMixin:
    return LinearDiscriminantAnalysis()


def _qda(params: Params, **fixed: Any) -> ClassifierMixin:
    return QuadraticDiscriminantAnalysis()


def _random_forest(params: Params, **fixed: Any) -> ClassifierMixin:
    return RandomForestClassifier(
        max_features=params["mtry"],
        n_estimators=params["trees"],
        min_samples_leaf=params["min_n"],
        random_state=fixed.get("seed"),
        n_jobs=1,
    )


FACTORIES: dict[str, Callable[..., ClassifierMixin]] = {
    "logistic_regression": _logistic_regression,
    "elastic_net": _elastic_net,
    "knn": _knn,
    "lda": _lda,
    "qda": _qda,
    "random_forest": _random_forest,
}


@dataclass(frozen=True)
class ModelSpec:
    """A named model family with its fixed settings and hyperparameter grid.

    Untuned families have a single empty grid point. Every family exposes the
    same two operations, so tuning and selection never touch a concrete
    estimator class.
    """
    name: str
    factory: Callable[..., ClassifierMixin]
    grid: tuple = ({},)
    fixed: dict[str, Any] = field(default_factory=dict)

    @property
    def tunable(self) -> bool:
        return len(self.grid) > 1 or bool(self.grid[0])

    def configs(self) -> Iterator[tuple[str, Params]]:
        """Yield (config_id, params) in grid enumeration order."""
        width = max(3, len(str(len(self.grid))))
        for i, params in enumerate(self.grid, start=1):
            yield f"Config{i:0{width}d}", dict(params)

    def build(self, params: Params, n_obs: int = 1) -> ClassifierMixin:
        return self.factory(params, n_obs=n_obs, **self.fixed)

    def fit(self, X, y, params: Params) -> ClassifierMixin:
        model = self.build(params, n_obs=len(y))
        model.fit(X, y)
        return model

    @staticmethod
    def predict_proba(model: ClassifierMixin, X) -> np.ndarray:
        """Probability of class 1 (bankrupt)."""
        classes = list(model.classes_)
        return model.predict_proba(X)[:, classes.index(1)]


class ModelRegistry:
    """Ordered collection of ModelSpecs declared from the ``models`` config section."""

    def __init__(self, specs: list[ModelSpec]):
        names = [s.name for s in specs]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate model names: {names}")
        self.specs = list(specs)

    def __iter__(self) -> Iterator[ModelSpec]:
        return iter(self.specs)

    def __len__(self) -> int:
        return len(self.specs)

    def __getitem__(self, name: str) -> ModelSpec:
        for spec in self.specs:
            if spec.name == name:
                return spec
        raise KeyError(name)

    @staticmethod
    def _levels(raw: dict[str, Any]) -> list:
        if "values" in raw:
            return list(raw["values"])
        low, high = raw["range"]
        return regular_levels(
            low,
            high,
            int(raw["levels"]),
            log10=bool(raw.get("log10", False)),
            integer=bool(raw.get("integer", False)),
        )

    @classmethod
    def from_config(cls, models: dict[str, dict[str, Any]], seed: int | None = None) -> "ModelRegistry":
        specs = []
        for name, raw in models.items():
            if name not in FACTORIES:
                raise ValueError(f"Unknown model family '{name}' (known: {sorted(FACTORIES)})")
            raw = dict(raw or {})
            space = {p: cls._levels(v) for p, v in (raw.pop("grid", None) or {}).items()}
            grid = tuple(expand_grid(space)) if space else ({},)
            raw.setdefault("seed", seed)
            specs.append(ModelSpec(name=name, factory=FACTORIES[name], grid=grid, fixed=raw))
        return cls(specs)
