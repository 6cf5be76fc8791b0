"""General utilities for boostctl."""

from boostctl.general.config import (
    load_training_config,
    get_cv_defaults,
    get_training_defaults,
    clear_config_cache,
)
from boostctl.general.constants import (
    CLASSIFICATION_OBJECTIVES,
    DEPRECATED_PARAMS,
    DEPRECATION_SENTINEL,
    MULTI_VALUED_PARAM,
)

__all__ = [
    # Config
    "load_training_config",
    "get_cv_defaults",
    "get_training_defaults",
    "clear_config_cache",
    # Constants
    "CLASSIFICATION_OBJECTIVES",
    "DEPRECATED_PARAMS",
    "DEPRECATION_SENTINEL",
    "MULTI_VALUED_PARAM",
]
