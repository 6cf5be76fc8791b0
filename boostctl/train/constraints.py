"""Encode structured monotonicity / interaction constraints into engine strings."""

from __future__ import annotations

import numbers
from typing import Any, Iterable, Sequence

import numpy as np


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (Sequence, np.ndarray)) and not isinstance(value, (str, bytes))


def _format_number(value: Any, *, what: str) -> str:
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Real):
        raise TypeError(f"{what} must contain only numbers, got {value!r}.")
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _join(values: Iterable[Any], *, what: str) -> str:
    return ",".join(_format_number(v, what=what) for v in values)


def encode_monotone_constraints(constraints: Sequence[int]) -> str:
    """Render per-feature directions as ``(v1,v2,...,vn)``."""
    if not _is_sequence(constraints):
        raise TypeError("monotone_constraints should be a sequence of -1/0/1 values.")
    values = list(np.asarray(constraints).ravel()) if isinstance(constraints, np.ndarray) else list(constraints)
    body = _join(values, what="monotone_constraints")
    bad = [v for v in values if v not in (-1, 0, 1)]
    if bad:
        raise ValueError(f"monotone_constraints values must be -1, 0 or 1; got {bad}.")
    return f"({body})"


def encode_interaction_constraints(groups: Sequence[Sequence[int]]) -> str:
    """Render feature index groups as ``[[i1,i2],[i3],...]``."""
    if not _is_sequence(groups):
        raise TypeError("interaction_constraints should be a sequence of index sequences.")
    encoded = []
    for group in groups:
        if not _is_sequence(group):
            raise TypeError(
                "interaction_constraints should be a sequence of numeric/integer sequences; "
                f"got element {group!r}."
            )
        encoded.append(f"[{_join(group, what='interaction_constraints')}]")
    return f"[{','.join(encoded)}]"


__all__ = ["encode_monotone_constraints", "encode_interaction_constraints"]
