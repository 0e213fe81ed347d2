"""
Company Bankruptcy Prediction — Model Comparison Pipeline

This package loads the Taiwan company bankruptcy dataset, narrows it to a
fixed set of financial-ratio predictors, removes outliers, and compares six
classical classifiers by cross-validated ROC-AUC before refitting the best
one and evaluating it on a held-out test partition.

Modules:
    config              — Load YAML configuration safely.
    data_loader         — Read CSV, clean names, cast binary columns.
    feature_selector    — Correlation diagnostics and fixed predictor subset.
    outlier_filter      — Rule-based outlier removal.
    splitter            — Stratified train/test split and k-fold resampling.
    preprocessor        — Center and scale predictors (fold-wise).
    model_registry      — Model families and hyperparameter grids.
    hyper_tuner         — Cross-validated grid search.
    model_selector      — Best config per family and ranking.
    model_trainer       — Refit the chosen model on all of Train.
    evaluator           — Test ROC-AUC, F1 and confusion matrix.
    pipeline            — Orchestrates all components.
    utils.logger        — Unified timestamped console logger.
"""

from .config import Config
from .data_loader import DataLoader
from .feature_selector import FeatureSelector
from .outlier_filter import OutlierFilter, OutlierRule
from .splitter import Splitter
from .preprocessor import Preprocessor
from .model_registry import ModelRegistry, ModelSpec
from .hyper_tuner import HyperTuner
from .model_selector import ModelSelector
from .model_trainer import ModelTrainer
from .evaluator import Evaluator
from .pipeline import PipelineRunner

__all__ = [
    "Config",
    "DataLoader",
    "FeatureSelector",
    "OutlierFilter",
    "OutlierRule",
    "Splitter",
    "Preprocessor",
    "ModelRegistry",
    "ModelSpec",
    "HyperTuner",
    "ModelSelector",
    "ModelTrainer",
    "Evaluator",
    "PipelineRunner",
]
