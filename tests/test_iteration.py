import numpy as np
import pytest

from boostctl.train.errors import EvaluationReportError
from boostctl.train.iteration import evaluate_one_iteration, parse_eval_report, update_one_iteration


def test_parse_eval_report():
    report = "[0]\ttrain-rmse:0.500000\ttest-rmse:0.612500"
    assert parse_eval_report(report) == {"train-rmse": 0.5, "test-rmse": 0.6125}


def test_parse_eval_report_keeps_order_and_odd_metric_names():
    report = "[12]  train-auc:0.91 train-ndcg@5:0.7\ttest-error@0.6:0.25\n"
    parsed = parse_eval_report(report)
    assert list(parsed) == ["train-auc", "train-ndcg@5", "test-error@0.6"]
    assert parsed["test-error@0.6"] == pytest.approx(0.25)


def test_parse_eval_report_without_metrics():
    assert parse_eval_report("[3]") == {}


@pytest.mark.parametrize("report", ["[0]\ttrain-rmse", "[0]\ttrain-rmse:abc", "[0] a:1 b"])
def test_parse_eval_report_rejects_malformed_text(report):
    with pytest.raises(EvaluationReportError):
        parse_eval_report(report)


def test_builtin_update_calls_engine_update(engine, fake_data):
    handle = engine.create({}, [fake_data])
    update_one_iteration(engine, handle, fake_data, 0)
    assert ("update", 0) in engine.calls
    assert not any(c[0] == "boost" for c in engine.calls)
    assert handle["margin"] == pytest.approx(0.5 * fake_data.y.mean())


def test_custom_objective_pushes_gradients(engine, fake_data):
    seen = {}

    def squared_error(preds, data):
        seen["preds"] = preds.copy()
        return preds - data.y, np.ones_like(preds)

    handle = engine.create({}, [fake_data])
    update_one_iteration(engine, handle, fake_data, 0, obj=squared_error)
    assert ("boost", 0) in engine.calls
    assert not any(c[0] == "update" for c in engine.calls)
    np.testing.assert_allclose(seen["preds"], 0.0)
    # one Newton step on squared error lands on the label mean
    assert handle["margin"] == pytest.approx(fake_data.y.mean())


def test_custom_objective_may_return_mapping(engine, fake_data):
    handle = engine.create({}, [fake_data])
    update_one_iteration(
        engine, handle, fake_data, 0,
        obj=lambda p, d: {"grad": p - d.y, "hess": np.ones_like(p)},
    )
    assert handle["margin"] == pytest.approx(fake_data.y.mean())


def test_custom_objective_gradient_size_is_checked(engine, fake_data):
    handle = engine.create({}, [fake_data])
    with pytest.raises(ValueError, match="grad/hess"):
        update_one_iteration(engine, handle, fake_data, 0, obj=lambda p, d: (p[:3], p[:3]))


def test_builtin_evaluation_names_dataset_metric(engine, fake_data):
    handle = engine.create({}, [fake_data])
    result = evaluate_one_iteration(engine, handle, {"train": fake_data, "eval": fake_data}, 0)
    assert list(result) == ["train-rmse", "eval-rmse"]
    expected = float(np.sqrt(np.mean(fake_data.y ** 2)))
    assert result["train-rmse"] == pytest.approx(expected, abs=1e-6)


def test_custom_evaluation_runs_per_dataset(engine, fake_data):
    handle = engine.create({}, [fake_data])

    def mae(preds, data):
        return "mae", float(np.mean(np.abs(data.y - preds)))

    result = evaluate_one_iteration(engine, handle, {"train": fake_data, "test": fake_data}, 0, feval=mae)
    assert result == {"train-mae": pytest.approx(0.4), "test-mae": pytest.approx(0.4)}
    assert not any(c[0] == "eval" for c in engine.calls)


def test_custom_evaluation_with_several_metrics(engine, fake_data):
    handle = engine.create({}, [fake_data])
    result = evaluate_one_iteration(
        engine, handle, {"train": fake_data}, 0, feval=lambda p, d: [("a", 1.0), ("b", 2.0)]
    )
    assert result == {"train-a": 1.0, "train-b": 2.0}


def test_empty_watchlist_evaluates_nothing(engine, fake_data):
    handle = engine.create({}, [fake_data])
    assert evaluate_one_iteration(engine, handle, {}, 0) == {}
    assert not any(c[0] == "eval" for c in engine.calls)
