"""
Centralized configuration loading for boostctl.

Provides cached access to config/training.yaml so defaults for training and
cross-validation are read once per process.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml

# Project root (relative to this file's location: boostctl/general/config.py)
_CONFIG_DIR = Path(__file__).resolve().parent.parent.parent / "config"

_CV_DEFAULTS: Mapping[str, Any] = {
    "nfold": 5,
    "stratified": True,
}

_TRAINING_DEFAULTS: Mapping[str, Any] = {
    "verbose": True,
    "print_every_n": 1,
}


@lru_cache(maxsize=1)
def load_training_config() -> Mapping[str, Any]:
    """Load the training configuration from config/training.yaml.

    Returns an empty mapping when the file is missing so code defaults apply.
    """
    config_path = _CONFIG_DIR / "training.yaml"
    try:
        with config_path.open("r") as fh:
            data = yaml.safe_load(fh) or {}
    except FileNotFoundError:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{config_path} must contain a mapping at the top level.")
    return data


def get_cv_defaults() -> Mapping[str, Any]:
    """Get the cv section of the training config merged over code defaults."""
    config = load_training_config()
    return {**_CV_DEFAULTS, **(config.get("cv") or {})}


def get_training_defaults() -> Mapping[str, Any]:
    """Get the training section of the training config merged over code defaults."""
    config = load_training_config()
    return {**_TRAINING_DEFAULTS, **(config.get("training") or {})}


def clear_config_cache() -> None:
    """Clear all cached configuration (useful for testing)."""
    load_training_config.cache_clear()


__all__ = [
    "load_training_config",
    "get_cv_defaults",
    "get_training_defaults",
    "clear_config_cache",
]
