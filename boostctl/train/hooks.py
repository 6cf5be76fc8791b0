"""Decide whether objective / metric slots hold engine names or user functions.

A slot is either absent (None), an ``Identifier`` naming something built into
the engine, or a ``Hook`` wrapping a user callable. Callables are never passed
to the engine as parameters.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple, Union

from boostctl.train.callbacks import EarlyStopping, TrainingCallback, has_callback
from boostctl.train.errors import ConfigError, ConflictError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identifier:
    # a name, or a list of names for a repeated eval_metric
    value: Union[str, Tuple[str, ...]]


@dataclass(frozen=True)
class Hook:
    fn: Callable[..., Any]


HookSlot = Optional[Union[Identifier, Hook]]


def classify_slot(value: Any) -> HookSlot:
    if value is None:
        return None
    if isinstance(value, str):
        return Identifier(value)
    if callable(value):
        return Hook(value)
    if isinstance(value, (list, tuple)) and value and all(isinstance(v, str) for v in value):
        return Identifier(tuple(value))
    raise TypeError(f"Expected a string identifier or a callable, got {type(value).__name__}.")


def _resolve_slot(
    params: Mapping[str, Any],
    key: str,
    explicit: Any,
    arg_name: str,
    what: str,
) -> Tuple[Dict[str, Any], Optional[Callable[..., Any]]]:
    out = dict(params)
    configured = classify_slot(out.get(key))

    if configured is not None and explicit is not None:
        raise ConflictError(f"Setting {what} in 'params' and '{arg_name}' at the same time is not allowed")
    if explicit is not None and not callable(explicit):
        raise TypeError(f"'{arg_name}' must be a function")

    if isinstance(configured, Hook):
        logger.info(f"Using custom {what} supplied through params['{key}'].")
        out.pop(key)
        return out, configured.fn
    return out, explicit


def resolve_objective(
    params: Mapping[str, Any],
    obj: Optional[Callable[..., Any]] = None,
) -> Tuple[Dict[str, Any], Optional[Callable[..., Any]]]:
    """Return ``(params, obj)`` with a callable objective moved out of params."""
    return _resolve_slot(params, "objective", obj, "obj", "objectives")


def resolve_eval(
    params: Mapping[str, Any],
    feval: Optional[Callable[..., Any]] = None,
    maximize: Optional[bool] = None,
    early_stopping_rounds: Optional[int] = None,
    callbacks: Sequence[TrainingCallback] = (),
) -> Tuple[Dict[str, Any], Optional[Callable[..., Any]]]:
    """Return ``(params, feval)`` with a callable metric moved out of params.

    A custom metric combined with early stopping needs an explicit
    ``maximize``; the direction of a user metric cannot be inferred.
    """
    out, feval = _resolve_slot(params, "eval_metric", feval, "feval", "evaluation metrics")
    has_early_stopping = early_stopping_rounds is not None or has_callback(callbacks, EarlyStopping)
    if feval is not None and maximize is None and has_early_stopping:
        raise ConfigError(
            "Please set 'maximize' to indicate whether the evaluation metric needs to be maximized or not"
        )
    return out, feval


__all__ = [
    "Identifier",
    "Hook",
    "HookSlot",
    "classify_slot",
    "resolve_objective",
    "resolve_eval",
]
