"""Handle-based boundary to the boosting engine.

The control plane only talks to the engine through ``BoostingEngine``;
``XGBoostEngine`` is the adapter over xgboost's Booster/DMatrix.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence

import numpy as np
import xgboost as xgb


class BoostingEngine(Protocol):
    def create(self, params: Mapping[str, Any], cache: Sequence[Any]) -> Any: ...

    def update_one_iteration(self, handle: Any, iteration: int, data: Any) -> None: ...

    def boost_one_iteration(self, handle: Any, data: Any, grad: np.ndarray, hess: np.ndarray, iteration: int) -> None: ...

    def eval_one_iteration(self, handle: Any, iteration: int, datasets: Sequence[Any], names: Sequence[str]) -> str: ...

    def predict(self, handle: Any, data: Any, output_margin: bool = True, training: bool = False) -> np.ndarray: ...

    def slice(self, data: Any, indices: np.ndarray) -> Any: ...

    def num_rows(self, data: Any) -> int: ...

    def get_label(self, data: Any) -> np.ndarray: ...


def _check_handle(handle: Any) -> xgb.Booster:
    if not isinstance(handle, xgb.Booster):
        raise TypeError(f"engine handle must be an xgboost.Booster, got {type(handle).__name__}")
    return handle


def _check_data(data: Any) -> xgb.DMatrix:
    if not isinstance(data, xgb.DMatrix):
        raise TypeError(f"data must be an xgboost.DMatrix, got {type(data).__name__}")
    return data


class XGBoostEngine:
    """``BoostingEngine`` backed by xgboost."""

    def create(self, params: Mapping[str, Any], cache: Sequence[Any]) -> xgb.Booster:
        return xgb.Booster(params=dict(params), cache=[_check_data(d) for d in cache])

    def update_one_iteration(self, handle: Any, iteration: int, data: Any) -> None:
        _check_handle(handle).update(_check_data(data), int(iteration))

    def boost_one_iteration(self, handle: Any, data: Any, grad: np.ndarray, hess: np.ndarray, iteration: int) -> None:
        # Booster.boost takes the iteration from xgboost 2.1 on
        _check_handle(handle).boost(_check_data(data), iteration=int(iteration), grad=grad, hess=hess)

    def eval_one_iteration(self, handle: Any, iteration: int, datasets: Sequence[Any], names: Sequence[str]) -> str:
        evals = [(_check_data(d), str(n)) for d, n in zip(datasets, names)]
        return _check_handle(handle).eval_set(evals, int(iteration))

    def predict(self, handle: Any, data: Any, output_margin: bool = True, training: bool = False) -> np.ndarray:
        return _check_handle(handle).predict(_check_data(data), output_margin=output_margin, training=training)

    def slice(self, data: Any, indices: np.ndarray) -> xgb.DMatrix:
        return _check_data(data).slice(np.asarray(indices, dtype=np.int64))

    def num_rows(self, data: Any) -> int:
        return int(_check_data(data).num_row())

    def get_label(self, data: Any) -> np.ndarray:
        return _check_data(data).get_label()


__all__ = ["BoostingEngine", "XGBoostEngine"]
