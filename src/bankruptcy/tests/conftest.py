import numpy as np
import pandas as pd
import pytest
import yaml

# raw header -> short name used after selection
RAW_FEATURES = {
    " ROA(C) before interest and depreciation before interest": "roa_c",
    "Operating Gross Margin": "gross_margin",
    "Operating Profit Rate": "profit_rate",
    "Realized Sales Gross Profit Growth Rate": "sales_growth",
    "Net Value Growth Rate": "value_growth",
    "Debt ratio %": "debt_ratio",
    "Revenue per person": "revenue_person",
    "Total income/Total expense": "income_expense",
    "Cash Flow Rate": "cash_flow_rate",
    "Quick Assets/Total Assets": "quick_assets",
    "Working Capital to Total Assets": "working_capital",
    "Retained Earnings to Total Assets": "retained_earnings",
    "Interest Coverage Ratio (Interest expense to EBIT)": "interest_coverage",
    "Equity to Liability": "equity_liability",
    "Persistent EPS in the Last Four Seasons": "eps",
}

CLEAN_FEATURES = {
    "roa_c_before_interest_and_depreciation_before_interest": "roa_c",
    "operating_gross_margin": "gross_margin",
    "operating_profit_rate": "profit_rate",
    "realized_sales_gross_profit_growth_rate": "sales_growth",
    "net_value_growth_rate": "value_growth",
    "debt_ratio_percent": "debt_ratio",
    "revenue_per_person": "revenue_person",
    "total_income_total_expense": "income_expense",
    "cash_flow_rate": "cash_flow_rate",
    "quick_assets_total_assets": "quick_assets",
    "working_capital_to_total_assets": "working_capital",
    "retained_earnings_to_total_assets": "retained_earnings",
    "interest_coverage_ratio_interest_expense_to_ebit": "interest_coverage",
    "equity_to_liability": "equity_liability",
    "persistent_eps_in_the_last_four_seasons": "eps",
}

OUTLIER_RULES = [
    {"column": "debt_ratio", "op": ">", "value": 0.99},
    {"column": "income_expense", "op": ">", "value": 0.99},
    {"column": "gross_margin", "op": "<", "value": 0.01},
    {"column": "gross_margin", "op": ">", "value": 0.99},
    {"column": "profit_rate", "op": ">", "value": 0.99},
    {"column": "revenue_person", "op": ">", "value": 7.5e9},
    {"column": "sales_growth", "op": ">", "value": 0.99},
    {"column": "value_growth", "op": ">", "value": 7.5e9},
]

# rows appended by make_raw_frame that violate the outlier rules
N_PLANTED_OUTLIERS = 3


def make_raw_frame(n: int = 400, pos_rate: float = 0.15, seed: int = 0) -> pd.DataFrame:
    """Synthetic data shaped like the raw bankruptcy CSV (before cleaning)."""
    rng = np.random.default_rng(seed)
    y = (rng.random(n) < pos_rate).astype(int)

    data = {"Bankrupt?": y}
    for i, col in enumerate(RAW_FEATURES):
        shift = 0.15 * y if i % 3 == 0 else 0.0
        data[col] = np.clip(0.4 + shift + rng.normal(0, 0.1, n), 0.05, 0.95)
    data["Net worth/Assets"] = 1.0 - data["Debt ratio %"]
    data["Liability-Assets Flag"] = (rng.random(n) < 0.05).astype(int)
    data["Net Income Flag"] = np.ones(n, dtype=int)
    df = pd.DataFrame(data)

    planted = df.iloc[:N_PLANTED_OUTLIERS].copy()
    planted["Bankrupt?"] = 0
    planted.iloc[0, planted.columns.get_loc("Debt ratio %")] = 0.995
    planted.iloc[1, planted.columns.get_loc("Operating Gross Margin")] = 0.005
    planted.iloc[2, planted.columns.get_loc("Revenue per person")] = 8.0e9
    return pd.concat([df, planted], ignore_index=True)


def make_config_dict(data_path: str, out_dir: str) -> dict:
    return {
        "data": {
            "path": data_path,
            "label_col": "bankrupt",
            "indicator_cols": ["liability_assets_flag", "net_income_flag"],
        },
        "features": {"correlation_threshold": 0.9, "columns": dict(CLEAN_FEATURES)},
        "outliers": [dict(r) for r in OUTLIER_RULES],
        "split": {"train_prop": 0.7, "seed": 123},
        "preprocessing": {"scale_numeric": True},
        "models": {
            "logistic_regression": {"max_iter": 500},
            "elastic_net": {
                "max_iter": 2000,
                "grid": {
                    "penalty": {"range": [-3, -1], "levels": 2, "log10": True},
                    "mixture": {"range": [0, 1], "levels": 2},
                },
            },
            "knn": {"grid": {"neighbors": {"values": [3, 5]}}},
            "lda": {},
            "qda": {},
            "random_forest": {
                "grid": {
                    "mtry": {"values": [2, 4]},
                    "trees": {"values": [25]},
                    "min_n": {"values": [5]},
                }
            },
        },
        "validation": {"n_splits": 5, "metric": "roc_auc", "threshold": 0.5, "n_jobs": 1},
        "output": {"dir": out_dir},
    }


@pytest.fixture
def raw_frame() -> pd.DataFrame:
    return make_raw_frame()


@pytest.fixture
def raw_csv(tmp_path, raw_frame):
    path = tmp_path / "data.csv"
    raw_frame.to_csv(path, index=False)
    return path


@pytest.fixture
def config_path(tmp_path, raw_csv):
    path = tmp_path / "config.yaml"
    cfg = make_config_dict(str(raw_csv), str(tmp_path / "artifacts"))
    with open(path, "w") as f:
        yaml.safe_dump(cfg, f)
    return path
