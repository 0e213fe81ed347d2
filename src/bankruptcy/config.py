import os
from dataclasses import dataclass, fields
from typing import Any, Dict, List

import yaml


@dataclass
class Config:
    """Configuration object loaded from YAML."""
    data: Dict[str, Any]
    features: Dict[str, Any]
    outliers: List[Dict[str, Any]]
    split: Dict[str, Any]
    preprocessing: Dict[str, Any]
    models: Dict[str, Dict[str, Any]]
    validation: Dict[str, Any]
    output: Dict[str, Any]

    @classmethod
    def from_yaml(cls, path: str) -> "Config":
        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path, "r") as f:
            cfg = yaml.safe_load(f) or {}
        return cls.from_dict(cfg)

    @classmethod
    def from_dict(cls, cfg: Dict[str, Any]) -> "Config":
        expected = {f.name for f in fields(cls)}
        missing = sorted(expected - set(cfg))
        unknown = sorted(set(cfg) - expected)
        if missing or unknown:
            raise ValueError(
                f"Invalid config sections (missing={missing}, unknown={unknown})"
            )
        return cls(**cfg)
