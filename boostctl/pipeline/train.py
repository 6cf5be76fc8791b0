"""Boosting orchestration: ``train`` a single handle or run ``cv`` over folds.

Both entry points run the same configuration pipeline before the engine is
touched:
1. Deprecated argument names are rewritten to their current names
2. ``params`` and named overrides are merged and validated
3. Objective / metric slots are split into engine names and user hooks
4. Rounds are driven one update + one evaluation at a time
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from boostctl.general.config import get_cv_defaults, get_training_defaults
from boostctl.train.callbacks import (
    CallbackEnv,
    EarlyStopping,
    EvaluationLog,
    EvaluationMonitor,
    TrainingCallback,
    has_callback,
)
from boostctl.train.cv_folds import generate_cv_folds
from boostctl.train.deprecation import resolve_deprecated_args
from boostctl.train.engine import BoostingEngine, XGBoostEngine
from boostctl.train.errors import ConfigError, ConflictError
from boostctl.train.hooks import resolve_eval, resolve_objective
from boostctl.train.iteration import evaluate_one_iteration, update_one_iteration
from boostctl.train.params import normalize_params
from boostctl.train.seed import set_global_seed

logger = logging.getLogger(__name__)

# Canonical names of call arguments that legacy aliases may resolve to
_CALL_ARGS = ("print_every_n", "early_stopping_rounds", "data")


@dataclass
class TrainingResult:
    handle: Any
    params: Dict[str, Any]
    evaluation_log: pd.DataFrame
    niter: int
    best_iteration: int
    best_score: Optional[float] = None


@dataclass
class CVResult:
    handles: List[Any]
    folds: List[np.ndarray]
    params: Dict[str, Any]
    evaluation_log: pd.DataFrame
    niter: int
    best_iteration: int
    best_score: Optional[float] = None
    # Out-of-fold predictions, when requested
    prediction: Optional[np.ndarray] = field(default=None, repr=False)


def _pop_call_args(resolved: Dict[str, Any], explicit: Dict[str, Any]) -> Dict[str, Any]:
    """Move call arguments that arrived under legacy names out of ``resolved``."""
    out = dict(explicit)
    for name in _CALL_ARGS:
        if name not in resolved:
            continue
        value = resolved.pop(name)
        if out.get(name) is not None:
            raise ConflictError(f"'{name}' was given both directly and through a deprecated alias.")
        out[name] = value
    return out


def _prepare(
    params: Any,
    kwargs: Mapping[str, Any],
    explicit: Dict[str, Any],
    obj: Optional[Callable],
    feval: Optional[Callable],
    maximize: Optional[bool],
    callbacks: Sequence[TrainingCallback],
) -> Tuple[Dict[str, Any], Dict[str, Any], Optional[Callable], Optional[Callable]]:
    resolved = resolve_deprecated_args(kwargs)
    call_args = _pop_call_args(resolved, explicit)
    merged = normalize_params(params, **resolved)
    merged, obj = resolve_objective(merged, obj)
    merged, feval = resolve_eval(
        merged,
        feval,
        maximize,
        early_stopping_rounds=call_args.get("early_stopping_rounds"),
        callbacks=callbacks,
    )
    return merged, call_args, obj, feval


def _build_callbacks(
    callbacks: Sequence[TrainingCallback],
    *,
    verbose: bool,
    print_every_n: int,
    early_stopping_rounds: Optional[int],
    maximize: Optional[bool],
    show_std: bool = False,
) -> Tuple[List[TrainingCallback], EvaluationLog]:
    cbs = list(callbacks)
    log = next((cb for cb in cbs if isinstance(cb, EvaluationLog)), None)
    if log is None:
        log = EvaluationLog()
        cbs.insert(0, log)
    if verbose and not has_callback(cbs, EvaluationMonitor):
        cbs.append(EvaluationMonitor(period=print_every_n, show_std=show_std))
    if early_stopping_rounds is not None and not has_callback(cbs, EarlyStopping):
        cbs.append(EarlyStopping(rounds=early_stopping_rounds, maximize=maximize))
    return cbs, log


def _start_callbacks(cbs: Sequence[TrainingCallback], env: CallbackEnv, maximize: Optional[bool]) -> None:
    for cb in cbs:
        cb.before_training(env)
        # A caller-supplied stopper without a direction follows the call's maximize
        if isinstance(cb, EarlyStopping):
            cb.default_maximize(maximize)


def _run_callbacks(cbs: Sequence[TrainingCallback], env: CallbackEnv) -> bool:
    # Every callback sees every round, even after one has asked to stop
    stops = [cb.after_iteration(env) for cb in cbs]
    return any(stops)


def _best(cbs: Sequence[TrainingCallback], niter: int) -> Tuple[int, Optional[float]]:
    for cb in cbs:
        if isinstance(cb, EarlyStopping) and cb.best_iteration >= 0:
            return cb.best_iteration, cb.best_score
    return niter - 1, None


def _check_rounds(nrounds: int) -> int:
    nrounds = int(nrounds)
    if nrounds < 1:
        raise ConfigError(f"nrounds must be a positive integer, got {nrounds}.")
    return nrounds


def train(
    params: Any = None,
    dtrain: Any = None,
    nrounds: int = 10,
    watchlist: Optional[Mapping[str, Any]] = None,
    obj: Optional[Callable] = None,
    feval: Optional[Callable] = None,
    verbose: Optional[bool] = None,
    print_every_n: Optional[int] = None,
    early_stopping_rounds: Optional[int] = None,
    maximize: Optional[bool] = None,
    callbacks: Sequence[TrainingCallback] = (),
    engine: Optional[BoostingEngine] = None,
    **kwargs: Any,
) -> TrainingResult:
    """Train one engine handle for up to ``nrounds`` rounds.

    Extra keyword arguments are booster parameters (dotted names allowed) or
    deprecated aliases of this function's own arguments.
    """
    params, call_args, obj, feval = _prepare(
        params,
        kwargs,
        {"print_every_n": print_every_n, "early_stopping_rounds": early_stopping_rounds, "data": dtrain},
        obj,
        feval,
        maximize,
        callbacks,
    )
    dtrain = call_args["data"]
    if dtrain is None:
        raise ConfigError("Training data ('dtrain') is required.")
    nrounds = _check_rounds(nrounds)
    watchlist = dict(watchlist or {})
    early_stopping_rounds = call_args["early_stopping_rounds"]
    if (early_stopping_rounds is not None or has_callback(callbacks, EarlyStopping)) and not watchlist:
        raise ConfigError("For early stopping, watchlist must have at least one element")

    defaults = get_training_defaults()
    verbose = defaults["verbose"] if verbose is None else verbose
    period = call_args["print_every_n"] or defaults["print_every_n"]
    cbs, log = _build_callbacks(
        callbacks,
        verbose=bool(verbose),
        print_every_n=int(period),
        early_stopping_rounds=early_stopping_rounds,
        maximize=maximize,
    )

    engine = engine or XGBoostEngine()
    handle = engine.create(params, [dtrain, *watchlist.values()])

    env = CallbackEnv(iteration=0, begin_iteration=0, end_iteration=nrounds, handle=handle)
    _start_callbacks(cbs, env, maximize)

    niter = 0
    for iteration in range(nrounds):
        update_one_iteration(engine, handle, dtrain, iteration, obj)
        env.iteration = iteration
        env.evaluation = evaluate_one_iteration(engine, handle, watchlist, iteration, feval)
        niter = iteration + 1
        if _run_callbacks(cbs, env):
            break

    for cb in cbs:
        cb.after_training(env)
    best_iteration, best_score = _best(cbs, niter)
    return TrainingResult(
        handle=handle,
        params=params,
        evaluation_log=log.frame,
        niter=niter,
        best_iteration=best_iteration,
        best_score=best_score,
    )


def _fold_splits(folds: Sequence[Sequence[int]], nrows: int) -> List[Tuple[np.ndarray, np.ndarray]]:
    all_idx = np.arange(nrows)
    splits = []
    for i, fold in enumerate(folds):
        test_idx = np.asarray(fold, dtype=np.int64)
        if test_idx.size == 0:
            raise ConfigError(f"CV fold {i} is empty.")
        if test_idx.min() < 0 or test_idx.max() >= nrows:
            raise ConfigError(f"CV fold {i} has row indices outside [0, {nrows}).")
        train_mask = np.ones(nrows, dtype=bool)
        train_mask[test_idx] = False
        splits.append((all_idx[train_mask], test_idx))
    return splits


def cv(
    params: Any = None,
    data: Any = None,
    nrounds: int = 10,
    nfold: Optional[int] = None,
    label: Optional[Sequence[Any]] = None,
    stratified: Optional[bool] = None,
    folds: Optional[Sequence[Sequence[int]]] = None,
    prediction: bool = False,
    obj: Optional[Callable] = None,
    feval: Optional[Callable] = None,
    verbose: Optional[bool] = None,
    print_every_n: Optional[int] = None,
    early_stopping_rounds: Optional[int] = None,
    maximize: Optional[bool] = None,
    callbacks: Sequence[TrainingCallback] = (),
    seed: Optional[int] = None,
    engine: Optional[BoostingEngine] = None,
    **kwargs: Any,
) -> CVResult:
    """Cross-validate ``params`` on ``data``.

    Folds are generated (optionally stratified by ``label``, or by the labels
    stored in ``data``) unless ``folds`` is given. The evaluation log holds the
    mean and std of every ``train``/``test`` metric across folds.
    """
    params, call_args, obj, feval = _prepare(
        params,
        kwargs,
        {"print_every_n": print_every_n, "early_stopping_rounds": early_stopping_rounds, "data": data},
        obj,
        feval,
        maximize,
        callbacks,
    )
    data = call_args["data"]
    if data is None:
        raise ConfigError("Data ('data') is required for cross-validation.")
    nrounds = _check_rounds(nrounds)

    defaults = get_cv_defaults()
    training_defaults = get_training_defaults()
    engine = engine or XGBoostEngine()
    nrows = engine.num_rows(data)

    if folds is None:
        nfold = int(defaults["nfold"] if nfold is None else nfold)
        stratified = bool(defaults["stratified"] if stratified is None else stratified)
        if seed is not None:
            set_global_seed(seed)
        labels = label
        if stratified and labels is None:
            labels = engine.get_label(data)
        folds = generate_cv_folds(nfold, nrows, stratified=stratified, labels=labels, objective=params.get("objective"))
    else:
        folds = [np.asarray(f, dtype=np.int64) for f in folds]
    splits = _fold_splits(folds, nrows)
    logger.info(f"Running {len(splits)}-fold CV for up to {nrounds} rounds on {nrows} rows.")

    verbose = training_defaults["verbose"] if verbose is None else verbose
    period = call_args["print_every_n"] or training_defaults["print_every_n"]
    cbs, log = _build_callbacks(
        callbacks,
        verbose=bool(verbose),
        print_every_n=int(period),
        early_stopping_rounds=call_args["early_stopping_rounds"],
        maximize=maximize,
        show_std=True,
    )

    fold_data = []
    for train_idx, test_idx in splits:
        dtrain = engine.slice(data, train_idx)
        dtest = engine.slice(data, test_idx)
        handle = engine.create(params, [dtrain, dtest])
        fold_data.append((handle, dtrain, {"train": dtrain, "test": dtest}))

    env = CallbackEnv(iteration=0, begin_iteration=0, end_iteration=nrounds)
    _start_callbacks(cbs, env, maximize)

    niter = 0
    for iteration in range(nrounds):
        per_fold = []
        for handle, dtrain, watchlist in fold_data:
            update_one_iteration(engine, handle, dtrain, iteration, obj)
            per_fold.append(evaluate_one_iteration(engine, handle, watchlist, iteration, feval))
        names = list(per_fold[0])
        values = np.array([[res[name] for name in names] for res in per_fold], dtype=float)
        env.iteration = iteration
        env.evaluation = dict(zip(names, values.mean(axis=0)))
        env.evaluation_std = dict(zip(names, values.std(axis=0)))
        niter = iteration + 1
        if _run_callbacks(cbs, env):
            break

    for cb in cbs:
        cb.after_training(env)
    best_iteration, best_score = _best(cbs, niter)

    oof = None
    if prediction:
        oof = _out_of_fold_predictions(engine, fold_data, splits, nrows)

    return CVResult(
        handles=[h for h, _, _ in fold_data],
        folds=[test_idx for _, test_idx in splits],
        params=params,
        evaluation_log=log.frame,
        niter=niter,
        best_iteration=best_iteration,
        best_score=best_score,
        prediction=oof,
    )


def _out_of_fold_predictions(engine, fold_data, splits, nrows):
    oof = None
    for (handle, _, watchlist), (_, test_idx) in zip(fold_data, splits):
        preds = np.asarray(engine.predict(handle, watchlist["test"], output_margin=False, training=False))
        if oof is None:
            oof = np.full((nrows,) + preds.shape[1:], np.nan, dtype=float)
        oof[test_idx] = preds
    return oof


__all__ = ["TrainingResult", "CVResult", "train", "cv"]
