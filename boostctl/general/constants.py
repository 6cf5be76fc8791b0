"""
Constants for boosting parameter handling.

Objective families, metric bookkeeping and the legacy parameter-name table.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Final, Mapping

# Objectives whose labels are class/rank levels rather than continuous values
CLASSIFICATION_OBJECTIVES: Final[tuple[str, ...]] = (
    "binary:logistic",
    "binary:logitraw",
    "binary:hinge",
    "multi:softmax",
    "multi:softprob",
    "rank:pairwise",
    "rank:ndcg",
    "rank:map",
)

MULTICLASS_PREFIX: Final[str] = "multi:"
RANKING_PREFIX: Final[str] = "rank:"

# The only parameter allowed to appear more than once
MULTI_VALUED_PARAM: Final[str] = "eval_metric"

# Metric name fragments for which larger is better (early stopping direction)
MAXIMIZE_METRICS: Final[tuple[str, ...]] = ("auc", "aucpr", "map", "ndcg", "pre")

# Legacy name -> canonical name. "DUMMY" marks a removed parameter.
DEPRECATION_SENTINEL: Final[str] = "DUMMY"
DEPRECATED_PARAMS: Final[Mapping[str, str]] = MappingProxyType({
    "print.every.n": "print_every_n",
    "early.stop.round": "early_stopping_rounds",
    "training.data": "data",
    "with.stats": "with_stats",
    "numberOfClusters": "n_clusters",
    "features.keep": "features_keep",
    "plot.height": "plot_height",
    "plot.width": "plot_width",
    "n_first_tree": "trees",
    "dummy": DEPRECATION_SENTINEL,
})

# CV fold stratification: labels with at most this many levels count as categorical,
# and continuous labels are binned into at most this many quantile groups.
MAX_CATEGORICAL_LEVELS: Final[int] = 5
MIN_QUANTILE_GROUPS: Final[int] = 2
MAX_QUANTILE_GROUPS: Final[int] = 5
