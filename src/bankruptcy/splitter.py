from dataclasses import dataclass

import numpy as np
import pandas as pd
from sklearn.model_selection import StratifiedKFold, train_test_split

from .utils.logger import get_logger


@dataclass(frozen=True)
class DataSplit:
    train: pd.DataFrame
    test: pd.DataFrame


@dataclass(frozen=True)
class Fold:
    """Positional row indices into the training partition."""
    fold_id: int
    train_index: np.ndarray
    val_index: np.ndarray


class Splitter:
    """Stratified train/test split and stratified k-fold resampling of Train."""

    def __init__(
        self,
        label_col: str = "bankrupt",
        train_prop: float = 0.7,
        n_splits: int = 10,
        seed: int = 123,
    ):
        if not 0.0 < train_prop < 1.0:
            raise ValueError(f"train_prop must be in (0, 1), got {train_prop}")
        self.label_col = label_col
        self.train_prop = train_prop
        self.n_splits = n_splits
        self.seed = seed
        self.logger = get_logger(self.__class__.__name__)

    def split(self, df: pd.DataFrame) -> DataSplit:
        train, test = train_test_split(
            df,
            train_size=self.train_prop,
            stratify=df[self.label_col],
            random_state=self.seed,
        )
        self.logger.info(f"Split {len(df):,} rows -> train={len(train):,}, test={len(test):,}")
        return DataSplit(train=train.copy(), test=test.copy())

    def folds(self, train: pd.DataFrame) -> list[Fold]:
        skf = StratifiedKFold(n_splits=self.n_splits, shuffle=True, random_state=self.seed)
        y = train[self.label_col].astype(str).to_numpy()

        folds = [
            Fold(fold_id=i, train_index=train_idx, val_index=val_idx)
            for i, (train_idx, val_idx) in enumerate(skf.split(np.zeros(len(y)), y), start=1)
        ]
        self.logger.info(f"Built {len(folds)} stratified folds on {len(train):,} training rows")
        return folds
