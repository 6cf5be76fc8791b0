"""Merge and validate booster parameters before they reach the engine."""

from __future__ import annotations

import logging
import warnings
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from boostctl.general.constants import MULTICLASS_PREFIX, MULTI_VALUED_PARAM
from boostctl.train.constraints import (
    encode_interaction_constraints,
    encode_monotone_constraints,
)
from boostctl.train.errors import ConfigError, ConflictError

logger = logging.getLogger(__name__)

ParamPairs = List[Tuple[str, Any]]


def canonical_name(name: str) -> str:
    """Legacy dotted names (``max.depth``) map onto underscore names (``max_depth``)."""
    return str(name).replace(".", "_")


def _as_pairs(params: Mapping[str, Any] | Iterable[Tuple[str, Any]] | None, *, source: str) -> ParamPairs:
    if params is None:
        return []
    if isinstance(params, Mapping):
        items = list(params.items())
    elif isinstance(params, (str, bytes)):
        raise TypeError(f"{source} must be a mapping or a sequence of (name, value) pairs.")
    else:
        try:
            items = [(k, v) for k, v in params]
        except (TypeError, ValueError) as exc:
            raise TypeError(f"{source} must be a mapping or a sequence of (name, value) pairs.") from exc
    return [(canonical_name(k), v) for k, v in items]


def _collapse(pairs: ParamPairs) -> Dict[str, Any]:
    counts: Dict[str, int] = {}
    for name, _ in pairs:
        counts[name] = counts.get(name, 0) + 1
    repeated = [n for n, c in counts.items() if c > 1 and n != MULTI_VALUED_PARAM]
    if repeated:
        msg = (
            f"The following parameters were provided multiple times: {', '.join(repeated)}. "
            "Only the last value for each of them will be used."
        )
        logger.warning(msg)
        warnings.warn(msg, UserWarning, stacklevel=3)

    out: Dict[str, Any] = {}
    metrics: list[Any] = []
    for name, value in pairs:
        if name == MULTI_VALUED_PARAM:
            metrics.extend(value if isinstance(value, (list, tuple)) else [value])
            continue
        # Re-insert so the surviving value also takes the last position
        out.pop(name, None)
        out[name] = value
    if metrics:
        out[MULTI_VALUED_PARAM] = metrics[0] if len(metrics) == 1 else metrics
    return out


def _check_num_class(params: Mapping[str, Any]) -> None:
    objective = params.get("objective")
    if not (isinstance(objective, str) and objective.startswith(MULTICLASS_PREFIX)):
        return
    num_class = params.get("num_class")
    try:
        num_class_val = float(num_class) if num_class is not None else 0.0
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"'num_class' must be numeric, got {num_class!r}.") from exc
    if num_class_val < 2:
        raise ConfigError("'num_class' > 1 parameter must be set for multiclass classification")


def normalize_params(params: Mapping[str, Any] | Iterable[Tuple[str, Any]] | None = None, **extra: Any) -> Dict[str, Any]:
    """Merge ``params`` with named overrides and validate the result.

    ``params`` may be a mapping or a sequence of ``(name, value)`` pairs; the pair
    form is how repeated names (e.g. several ``eval_metric`` values) are given.
    Returns a new dict; the inputs are left untouched.
    """
    base = _as_pairs(params, source="params")
    overrides = _as_pairs(extra, source="named parameters")

    shared = sorted({n for n, _ in base} & {n for n, _ in overrides})
    if shared:
        raise ConflictError(
            f"Same parameters in 'params' and in the call are not allowed: {shared}. "
            "Please check your 'params'."
        )

    merged = _collapse(base + overrides)
    _check_num_class(merged)

    monotone = merged.get("monotone_constraints")
    if monotone is not None and not isinstance(monotone, str):
        merged["monotone_constraints"] = encode_monotone_constraints(monotone)

    interaction = merged.get("interaction_constraints")
    if interaction is not None and not isinstance(interaction, str):
        merged["interaction_constraints"] = encode_interaction_constraints(interaction)

    return merged


__all__ = ["canonical_name", "normalize_params"]
