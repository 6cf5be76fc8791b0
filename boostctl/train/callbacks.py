"""Round-by-round callbacks for the training and CV loops."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Type

import pandas as pd

from boostctl.general.constants import MAXIMIZE_METRICS

logger = logging.getLogger(__name__)


@dataclass
class CallbackEnv:
    """State handed to callbacks after each boosting round."""
    iteration: int
    begin_iteration: int
    end_iteration: int
    evaluation: Dict[str, float] = field(default_factory=dict)
    # Per-metric std across folds; only set by cv()
    evaluation_std: Optional[Dict[str, float]] = None
    handle: Any = None


class TrainingCallback:
    """Base class; override only the hooks you need."""

    def before_training(self, env: CallbackEnv) -> None:
        return None

    def after_iteration(self, env: CallbackEnv) -> bool:
        """Return True to stop training."""
        return False

    def after_training(self, env: CallbackEnv) -> None:
        return None


def has_callback(callbacks: Sequence[TrainingCallback] | None, cls: Type[TrainingCallback]) -> bool:
    return any(isinstance(cb, cls) for cb in (callbacks or ()))


def _column_name(name: str) -> str:
    return name.replace("-", "_")


class EvaluationLog(TrainingCallback):
    """Collect each round's metrics; ``frame`` has one row per iteration."""

    def __init__(self) -> None:
        self.rows: List[Dict[str, float]] = []

    def before_training(self, env: CallbackEnv) -> None:
        self.rows = []

    def after_iteration(self, env: CallbackEnv) -> bool:
        if not env.evaluation:
            return False
        row: Dict[str, float] = {"iter": env.iteration + 1}
        for name, value in env.evaluation.items():
            if env.evaluation_std is None:
                row[_column_name(name)] = value
            else:
                row[f"{_column_name(name)}_mean"] = value
                row[f"{_column_name(name)}_std"] = env.evaluation_std.get(name, float("nan"))
        self.rows.append(row)
        return False

    @property
    def frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.rows)


class EvaluationMonitor(TrainingCallback):
    """Log metrics every ``period`` rounds, and always on the last round."""

    def __init__(self, period: int = 1, show_std: bool = True) -> None:
        if int(period) < 1:
            raise ValueError("print_every_n must be a positive integer.")
        self.period = int(period)
        self.show_std = show_std

    @staticmethod
    def format_line(env: CallbackEnv, show_std: bool = True) -> str:
        parts = [f"[{env.iteration}]"]
        for name, value in env.evaluation.items():
            if show_std and env.evaluation_std is not None:
                parts.append(f"{name}:{value:.6f}+{env.evaluation_std.get(name, float('nan')):.6f}")
            else:
                parts.append(f"{name}:{value:.6f}")
        return "\t".join(parts)

    def after_iteration(self, env: CallbackEnv) -> bool:
        if not env.evaluation:
            return False
        i = env.iteration - env.begin_iteration
        if i % self.period == 0 or env.iteration + 1 == env.end_iteration:
            logger.info(self.format_line(env, self.show_std))
        return False


def metric_is_maximized(name: str) -> bool:
    """Guess the optimization direction from a ``dataset-metric`` name."""
    metric = name.rsplit("-", 1)[-1].split("@", 1)[0].lower()
    return metric in MAXIMIZE_METRICS


class EarlyStopping(TrainingCallback):
    """Stop once the watched metric has not improved for ``rounds`` iterations.

    The watched metric is ``metric_name`` or, by default, the last metric of the
    last watched dataset.
    """

    def __init__(self, rounds: int, maximize: Optional[bool] = None, metric_name: Optional[str] = None) -> None:
        if int(rounds) < 1:
            raise ValueError("early_stopping_rounds must be a positive integer.")
        self.rounds = int(rounds)
        # Configured values; ``maximize``/``metric_name`` hold what a run inferred
        self._maximize_arg = maximize
        self._metric_name_arg = metric_name
        self.maximize = maximize
        self.metric_name = metric_name
        self.best_iteration: int = -1
        self.best_score: Optional[float] = None
        self.stopped_iteration: Optional[int] = None

    def default_maximize(self, maximize: Optional[bool]) -> None:
        """Use ``maximize`` for this run unless the constructor fixed a direction."""
        if maximize is not None and self._maximize_arg is None:
            self.maximize = maximize

    def before_training(self, env: CallbackEnv) -> None:
        self.maximize = self._maximize_arg
        self.metric_name = self._metric_name_arg
        self.best_iteration = -1
        self.best_score = None
        self.stopped_iteration = None

    def _improved(self, score: float) -> bool:
        if self.best_score is None:
            return True
        return score > self.best_score if self.maximize else score < self.best_score

    def after_iteration(self, env: CallbackEnv) -> bool:
        if not env.evaluation:
            return False
        if self.metric_name is None:
            self.metric_name = list(env.evaluation)[-1]
            logger.info(f"Will train until {self.metric_name} hasn't improved in {self.rounds} rounds.")
        if self.metric_name not in env.evaluation:
            raise KeyError(f"Early stopping metric '{self.metric_name}' is not among {list(env.evaluation)}.")
        if self.maximize is None:
            self.maximize = metric_is_maximized(self.metric_name)

        score = float(env.evaluation[self.metric_name])
        if self._improved(score):
            self.best_score = score
            self.best_iteration = env.iteration
        elif env.iteration - self.best_iteration >= self.rounds:
            self.stopped_iteration = env.iteration
            logger.info(
                f"Stopping. Best iteration: [{self.best_iteration}] {self.metric_name}:{self.best_score:.6f}"
            )
            return True
        return False


__all__ = [
    "CallbackEnv",
    "TrainingCallback",
    "EvaluationLog",
    "EvaluationMonitor",
    "EarlyStopping",
    "has_callback",
    "metric_is_maximized",
]
