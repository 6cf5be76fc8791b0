from __future__ import annotations

import numpy as np
import pytest

from boostctl.general.config import clear_config_cache
from boostctl.train.seed import set_global_seed


class FakeData:
    def __init__(self, X, y):
        self.X = np.asarray(X, dtype=float)
        self.y = np.asarray(y, dtype=float)


class FakeEngine:
    """In-memory engine whose model is a single constant margin.

    Each built-in update moves the margin halfway to the label mean; the
    evaluation report is RMSE per dataset in the engine's text format.
    """

    def __init__(self):
        self.calls: list[tuple] = []

    def create(self, params, cache):
        self.calls.append(("create", dict(params)))
        return {"params": dict(params), "margin": 0.0, "rounds": 0}

    def update_one_iteration(self, handle, iteration, data):
        self.calls.append(("update", iteration))
        handle["margin"] += 0.5 * (data.y.mean() - handle["margin"])
        handle["rounds"] += 1

    def boost_one_iteration(self, handle, data, grad, hess, iteration):
        self.calls.append(("boost", iteration))
        handle["margin"] -= float(np.sum(grad)) / float(np.sum(hess))
        handle["rounds"] += 1

    def eval_one_iteration(self, handle, iteration, datasets, names):
        self.calls.append(("eval", iteration))
        parts = [f"[{iteration}]"]
        for data, name in zip(datasets, names):
            rmse = float(np.sqrt(np.mean((data.y - handle["margin"]) ** 2)))
            parts.append(f"{name}-rmse:{rmse:.6f}")
        return "\t".join(parts)

    def predict(self, handle, data, output_margin=True, training=False):
        return np.full(len(data.y), handle["margin"])

    def slice(self, data, indices):
        return FakeData(data.X[indices], data.y[indices])

    def num_rows(self, data):
        return len(data.y)

    def get_label(self, data):
        return data.y


class ScriptedEngine(FakeEngine):
    """FakeEngine whose evaluation scores are read from a fixed script."""

    def __init__(self, scores: dict[str, list[float]]):
        super().__init__()
        self.scores = scores

    def eval_one_iteration(self, handle, iteration, datasets, names):
        self.calls.append(("eval", iteration))
        parts = [f"[{iteration}]"]
        for metric, values in self.scores.items():
            parts.append(f"{metric}:{values[iteration]}")
        return "\t".join(parts)


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def fake_data():
    rng = np.random.RandomState(0)
    X = rng.normal(size=(40, 3))
    y = np.r_[np.zeros(24), np.ones(16)]
    return FakeData(X, y)


@pytest.fixture(autouse=True)
def _isolated_state(monkeypatch, tmp_path):
    """Seed the shared RNG and point config loading at an empty directory."""
    import boostctl.general.config as config_mod

    monkeypatch.setattr(config_mod, "_CONFIG_DIR", tmp_path / "config")
    clear_config_cache()
    set_global_seed(1234)
    yield
    clear_config_cache()


@pytest.fixture
def scripted_engine():
    """Factory: ``scripted_engine({"test-rmse": [...]})``."""
    return ScriptedEngine


@pytest.fixture
def make_data():
    return FakeData
