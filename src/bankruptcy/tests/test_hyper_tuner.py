import numpy as np
import pandas as pd
import pytest
from sklearn.linear_model import LogisticRegression
from sklearn.metrics import roc_auc_score
from sklearn.preprocessing import StandardScaler

from bankruptcy.hyper_tuner import HyperTuner, evaluate_unit
from bankruptcy.model_registry import ModelRegistry, ModelSpec
from bankruptcy.splitter import Splitter


def _maybe_broken(params, **fixed):
    if params.get("bad"):
        raise RuntimeError("did not converge")
    return LogisticRegression()


def _data(n=300, seed=0):
    rng = np.random.default_rng(seed)
    X = pd.DataFrame(rng.normal(size=(n, 3)), columns=["a", "b", "c"])
    y = (X["a"] + rng.normal(scale=0.8, size=n) > 1.0).astype(int).to_numpy()
    frame = X.assign(bankrupt=pd.Categorical(np.where(y == 1, "Y", "N"), categories=["N", "Y"]))
    folds = Splitter(n_splits=5, seed=123).folds(frame)
    return X, y, folds


def _registry():
    return ModelRegistry.from_config(
        {
            "logistic_regression": {},
            "knn": {"grid": {"neighbors": {"values": [3, 7]}}},
            "lda": {},
        },
        seed=123,
    )


def test_tune_evaluates_every_unit():
    X, y, folds = _data()
    results = HyperTuner().tune(_registry(), X, y, folds)

    assert len(results) == (1 + 2 + 1) * 5
    assert results["error"].isna().all()
    assert results["roc_auc"].between(0, 1).all()
    assert set(results["model"]) == {"logistic_regression", "knn", "lda"}


def test_summarize_mean_and_standard_error():
    X, y, folds = _data()
    results = HyperTuner().tune(_registry(), X, y, folds)
    summary = HyperTuner.summarize(results)

    assert list(summary["config_id"][summary["model"] == "knn"]) == ["Config001", "Config002"]
    row = summary[summary["model"] == "lda"].iloc[0]
    scores = results.loc[results["model"] == "lda", "roc_auc"]
    assert row["mean"] == pytest.approx(scores.mean())
    assert row["std_err"] == pytest.approx(scores.std(ddof=1) / np.sqrt(5))
    assert row["n"] == 5


def test_failed_units_are_recorded_not_raised():
    X, y, folds = _data()
    spec = ModelSpec(name="flaky", factory=_maybe_broken, grid=({"bad": False}, {"bad": True}))
    registry = ModelRegistry([spec])

    results = HyperTuner().tune(registry, X, y, folds)
    failed = results[results["error"].notna()]

    assert len(failed) == 5
    assert set(failed["config_id"]) == {"Config002"}
    assert failed["roc_auc"].isna().all()
    assert failed["error"].str.contains("did not converge").all()

    summary = HyperTuner.summarize(results)
    bad = summary[summary["config_id"] == "Config002"].iloc[0]
    assert bad["n"] == 0 and bad["n_failed"] == 5
    assert np.isnan(bad["mean"])


def test_evaluate_unit_fits_recipe_on_fold_training_rows_only():
    X, y, folds = _data()
    fold = folds[0]
    spec = ModelRegistry.from_config({"logistic_regression": {}})["logistic_regression"]

    result = evaluate_unit(spec, "Config001", {}, fold, X, y)

    # same computation by hand
    scaler = StandardScaler().fit(X.iloc[fold.train_index])
    model = spec.fit(scaler.transform(X.iloc[fold.train_index]), y[fold.train_index], {})
    proba = spec.predict_proba(model, scaler.transform(X.iloc[fold.val_index]))
    assert result.ok
    assert result.metric == pytest.approx(roc_auc_score(y[fold.val_index], proba))


def test_tuning_is_deterministic():
    X, y, folds = _data()
    registry = ModelRegistry.from_config(
        {"random_forest": {"grid": {"mtry": {"values": [1, 2]}, "trees": {"values": [15]}, "min_n": {"values": [5]}}}},
        seed=123,
    )
    s1 = HyperTuner.summarize(HyperTuner().tune(registry, X, y, folds))
    s2 = HyperTuner.summarize(HyperTuner().tune(registry, X, y, folds))
    pd.testing.assert_frame_equal(s1, s2)


def test_unknown_metric_raises():
    with pytest.raises(ValueError):
        HyperTuner(metric="accuracy")


def test_parallel_tuning_matches_sequential():
    X, y, folds = _data()
    sequential = HyperTuner(n_jobs=1).tune(_registry(), X, y, folds)
    parallel = HyperTuner(n_jobs=2).tune(_registry(), X, y, folds)

    pd.testing.assert_frame_equal(
        sequential.drop(columns="n_warnings"), parallel.drop(columns="n_warnings")
    )
    pd.testing.assert_frame_equal(HyperTuner.summarize(sequential), HyperTuner.summarize(parallel))
