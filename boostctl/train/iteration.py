"""One boosting round at a time: update the handle, then evaluate it."""

from __future__ import annotations

import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import numpy as np

from boostctl.train.engine import BoostingEngine
from boostctl.train.errors import EvaluationReportError

_REPORT_TOKEN_SPLIT = re.compile(r"\s+|:")


def parse_eval_report(report: str) -> Dict[str, float]:
    """Parse ``"[3]\\ttrain-rmse:0.41\\ttest-rmse:0.52"`` into ``{"train-rmse": 0.41, ...}``."""
    tokens = [t for t in _REPORT_TOKEN_SPLIT.split(str(report).strip()) if t]
    if tokens and tokens[0].startswith("["):
        tokens = tokens[1:]
    if len(tokens) % 2:
        raise EvaluationReportError(f"Unbalanced name/value tokens in evaluation report: {report!r}")
    out: Dict[str, float] = {}
    for name, value in zip(tokens[::2], tokens[1::2]):
        try:
            out[name] = float(value)
        except ValueError as exc:
            raise EvaluationReportError(f"Non-numeric value {value!r} for '{name}' in evaluation report.") from exc
    return out


def _unpack_gpair(result: Any) -> Tuple[np.ndarray, np.ndarray]:
    if isinstance(result, Mapping):
        grad, hess = result["grad"], result["hess"]
    else:
        grad, hess = result
    return np.asarray(grad, dtype=np.float32), np.asarray(hess, dtype=np.float32)


def update_one_iteration(
    engine: BoostingEngine,
    handle: Any,
    dtrain: Any,
    iteration: int,
    obj: Optional[Callable[[np.ndarray, Any], Any]] = None,
) -> None:
    """Run one update; with ``obj`` the gradients come from the user objective."""
    if obj is None:
        engine.update_one_iteration(handle, iteration, dtrain)
        return
    preds = engine.predict(handle, dtrain, output_margin=True, training=True)
    grad, hess = _unpack_gpair(obj(preds, dtrain))
    if grad.size != np.size(preds) or hess.size != np.size(preds):
        raise ValueError(
            f"Custom objective returned grad/hess of sizes {grad.size}/{hess.size}, "
            f"expected {np.size(preds)}."
        )
    engine.boost_one_iteration(handle, dtrain, grad, hess, iteration)


def _metric_pairs(result: Any) -> List[Tuple[str, float]]:
    if isinstance(result, tuple) and len(result) == 2 and isinstance(result[0], str):
        return [result]
    return [tuple(r) for r in result]


def evaluate_one_iteration(
    engine: BoostingEngine,
    handle: Any,
    watchlist: Mapping[str, Any],
    iteration: int,
    feval: Optional[Callable[[np.ndarray, Any], Any]] = None,
) -> Dict[str, float]:
    """Return ``{"dataset-metric": value}`` for every watched dataset."""
    if not watchlist:
        return {}
    names = list(watchlist)
    if feval is None:
        report = engine.eval_one_iteration(handle, iteration, [watchlist[n] for n in names], names)
        return parse_eval_report(report)

    out: Dict[str, float] = {}
    for name in names:
        data = watchlist[name]
        preds = engine.predict(handle, data, output_margin=True, training=False)
        for metric, value in _metric_pairs(feval(preds, data)):
            out[f"{name}-{metric}"] = float(value)
    return out


__all__ = ["parse_eval_report", "update_one_iteration", "evaluate_one_iteration"]
