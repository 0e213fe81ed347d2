import pandas as pd
import pytest

from bankruptcy.exceptions import SchemaError
from bankruptcy.outlier_filter import OutlierFilter, OutlierRule

from conftest import OUTLIER_RULES


def _make_frame():
    base = {
        "debt_ratio": 0.5,
        "income_expense": 0.5,
        "gross_margin": 0.5,
        "profit_rate": 0.5,
        "revenue_person": 1.0e6,
        "sales_growth": 0.5,
        "value_growth": 1.0e6,
    }
    rows = [dict(base) for _ in range(10)]
    rows[1]["debt_ratio"] = 0.995
    rows[2]["gross_margin"] = 0.005
    rows[3]["gross_margin"] = 0.995
    rows[4]["revenue_person"] = 8.0e9
    rows[5]["value_growth"] = 9.0e9
    rows[6]["profit_rate"] = 0.99  # boundary: not strictly greater, kept
    rows[7]["gross_margin"] = 0.01  # boundary: not strictly less, kept
    return pd.DataFrame(rows)


def test_filter_removes_exactly_the_violating_rows():
    df = _make_frame()
    flt = OutlierFilter(OUTLIER_RULES)
    result = flt.filter(df)

    assert result.n_removed == 5
    assert len(df) - len(result.data) == int(flt.predicate(df).sum())
    assert not flt.predicate(result.data).any()
    assert sorted(result.data.index) == [0, 6, 7, 8, 9]


def test_filter_reports_counts_per_rule():
    result = OutlierFilter(OUTLIER_RULES).filter(_make_frame())
    assert result.removed_by_rule["gross_margin < 0.01"] == 1
    assert result.removed_by_rule["gross_margin > 0.99"] == 1
    assert result.removed_by_rule["income_expense > 0.99"] == 0


def test_filter_does_not_mutate_input():
    df = _make_frame()
    before = df.copy(deep=True)
    OutlierFilter(OUTLIER_RULES).filter(df)
    pd.testing.assert_frame_equal(df, before)


def test_rule_missing_column_is_schema_error():
    with pytest.raises(SchemaError):
        OutlierFilter([OutlierRule("nope", ">", 1.0)]).filter(_make_frame())


def test_rule_rejects_unknown_operator():
    with pytest.raises(ValueError):
        OutlierRule("debt_ratio", "!=", 1.0)
