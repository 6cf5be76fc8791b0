"""Random, optionally label-stratified, cross-validation folds.

All randomness comes from the global numpy RNG; seed it with
``boostctl.train.seed.set_global_seed`` for reproducible folds.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.model_selection import BaseCrossValidator

from boostctl.general.constants import (
    CLASSIFICATION_OBJECTIVES,
    MAX_CATEGORICAL_LEVELS,
    MAX_QUANTILE_GROUPS,
    MIN_QUANTILE_GROUPS,
    RANKING_PREFIX,
)
from boostctl.train.errors import ConfigError, UnsupportedError

logger = logging.getLogger(__name__)


def _labels_are_categorical(y: np.ndarray, objective: Any) -> bool:
    """Decide whether to stratify on label levels or on quantile bins."""
    if isinstance(objective, str):
        categorical = objective in CLASSIFICATION_OBJECTIVES
    else:
        # No textual objective: either the engine default (regression) or a custom
        # objective. Treat few-valued labels as classes.
        categorical = len(pd.unique(y)) <= MAX_CATEGORICAL_LEVELS
    if not categorical and not np.issubdtype(y.dtype, np.number):
        categorical = True
    return categorical


def _quantile_groups(y: np.ndarray, k: int) -> np.ndarray:
    """Bin a continuous label into 2..5 quantile groups (fewer if breakpoints tie)."""
    n_groups = int(np.clip(len(y) // k, MIN_QUANTILE_GROUPS, MAX_QUANTILE_GROUPS))
    breaks = np.unique(np.quantile(y, np.linspace(0.0, 1.0, n_groups + 1)))
    if len(breaks) < 2:
        # Constant label
        return np.zeros(len(y), dtype=np.int64)
    codes = pd.cut(y, breaks, include_lowest=True, labels=False)
    return np.asarray(codes, dtype=np.int64)


def create_stratified_folds(y: Sequence[Any], k: int, categorical: bool = True) -> List[np.ndarray]:
    """Split positions ``0..len(y)-1`` into folds balanced within each level of ``y``.

    Each stratum of size m gets fold ids 1..k repeated m//k times, padded with
    m%k distinct random ids, and the assignment is then shuffled. When k is not
    smaller than len(y), position i simply goes to fold i.
    """
    y = np.asarray(y)
    n = len(y)
    if not categorical:
        y = _quantile_groups(y.astype(float), k)

    if k < n:
        _, strata = np.unique(y, return_inverse=True)
        fold_vector = np.zeros(n, dtype=np.int64)
        for stratum in range(strata.max() + 1):
            members = np.flatnonzero(strata == stratum)
            m = len(members)
            seq = np.tile(np.arange(1, k + 1), m // k)
            if m % k > 0:
                seq = np.concatenate([seq, np.random.choice(np.arange(1, k + 1), m % k, replace=False)])
            fold_vector[members] = seq[np.random.permutation(m)]
    else:
        fold_vector = np.arange(1, n + 1)

    positions = np.arange(n)
    folds = [positions[fold_vector == fold_id] for fold_id in np.unique(fold_vector)]
    if len(folds) < min(k, n):
        logger.warning(f"Stratified assignment left {min(k, n) - len(folds)} fold(s) empty; returning {len(folds)} folds.")
    return folds


def generate_cv_folds(
    nfold: int,
    nrows: int,
    stratified: bool = False,
    labels: Optional[Sequence[Any]] = None,
    objective: Any = None,
) -> List[np.ndarray]:
    """Partition row indices ``[0, nrows)`` into ``nfold`` disjoint folds.

    Returns an unnamed list of index arrays (sorted within each fold). Ranking
    objectives are rejected: their folds must respect query groups, so pass
    precomputed folds instead.
    """
    if isinstance(objective, str) and objective.startswith(RANKING_PREFIX):
        raise UnsupportedError(
            "Automatic generation of CV-folds is not implemented for ranking! "
            "Consider providing pre-computed CV-folds through the 'folds=' parameter."
        )
    nfold, nrows = int(nfold), int(nrows)
    if nfold < 2:
        raise ConfigError(f"nfold must be at least 2, got {nfold}.")
    if nrows < 1:
        raise ConfigError("Cannot generate CV folds for an empty dataset.")

    rnd_idx = np.random.permutation(nrows)

    if stratified and labels is not None and len(labels) == nrows:
        y = np.asarray(labels)[rnd_idx]
        positions = create_stratified_folds(y, nfold, categorical=_labels_are_categorical(y, objective))
        return [np.sort(rnd_idx[pos]) for pos in positions]

    if stratified:
        got = "no labels" if labels is None else f"{len(labels)} labels"
        logger.warning(f"Stratified folds need one label per row ({nrows}), got {got}; using random folds.")

    # Leading folds get nrows // nfold rows; the trailing nrows % nfold folds get one extra.
    kstep, extra = divmod(nrows, nfold)
    sizes = [kstep] * (nfold - extra) + [kstep + 1] * extra
    bounds = np.cumsum([0] + sizes)
    return [np.sort(rnd_idx[bounds[i]:bounds[i + 1]]) for i in range(nfold)]


class StratifiedBoostKFold(BaseCrossValidator):
    """scikit-learn splitter over ``generate_cv_folds``.

    Each split uses one fold as the test set and the remaining rows for training.
    """

    def __init__(self, n_splits: int = 5, *, stratified: bool = True, objective: Any = None):
        self.n_splits = n_splits
        self.stratified = stratified
        self.objective = objective

    def get_n_splits(self, X=None, y=None, groups=None):
        return self.n_splits

    def split(self, X, y=None, groups=None) -> Iterator[Tuple[np.ndarray, np.ndarray]]:
        n_samples = len(X)
        folds = generate_cv_folds(
            self.n_splits,
            n_samples,
            stratified=self.stratified and y is not None,
            labels=y,
            objective=self.objective,
        )
        all_idx = np.arange(n_samples)
        for test_idx in folds:
            train_mask = np.ones(n_samples, dtype=bool)
            train_mask[test_idx] = False
            yield all_idx[train_mask], test_idx

    def _iter_test_indices(self, X=None, y=None, groups=None):
        for _, test_idx in self.split(X, y, groups):
            yield test_idx


__all__ = ["generate_cv_folds", "create_stratified_folds", "StratifiedBoostKFold"]
