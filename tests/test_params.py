import warnings

import pytest

from boostctl.train.errors import ConfigError, ConflictError
from boostctl.train.params import canonical_name, normalize_params


def test_dotted_names_are_canonicalized():
    out = normalize_params({"max.depth": 3}, **{"min.child.weight": 2})
    assert out == {"max_depth": 3, "min_child_weight": 2}
    assert canonical_name("colsample.bytree") == "colsample_bytree"


def test_overlap_between_sources_is_a_conflict():
    with pytest.raises(ConflictError):
        normalize_params({"eta": 0.1}, eta=0.3)
    # overlap is detected after canonicalization
    with pytest.raises(ConflictError):
        normalize_params({"max.depth": 3}, max_depth=4)


def test_repeated_name_keeps_last_value_and_warns():
    pairs = [("eta", 0.1), ("max_depth", 2), ("eta", 0.5)]
    with pytest.warns(UserWarning, match="provided multiple times"):
        out = normalize_params(pairs)
    assert out["eta"] == 0.5
    assert out["max_depth"] == 2


def test_repeated_eval_metric_is_kept_without_warning():
    pairs = [("eval_metric", "auc"), ("eval_metric", "logloss")]
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        out = normalize_params(pairs, objective="binary:logistic")
    assert out["eval_metric"] == ["auc", "logloss"]
    assert out["objective"] == "binary:logistic"


def test_single_eval_metric_stays_scalar():
    assert normalize_params({"eval_metric": "rmse"})["eval_metric"] == "rmse"


@pytest.mark.parametrize("num_class", [None, 0, 1, "1"])
def test_multiclass_requires_num_class(num_class):
    params = {"objective": "multi:softprob"}
    if num_class is not None:
        params["num_class"] = num_class
    with pytest.raises(ConfigError, match="num_class"):
        normalize_params(params)


def test_multiclass_with_num_class_passes():
    out = normalize_params({"objective": "multi:softmax"}, num_class=3)
    assert out["num_class"] == 3


def test_constraints_are_encoded():
    out = normalize_params(
        {"monotone_constraints": [1, -1, 0]},
        interaction_constraints=[[0, 1], [2]],
    )
    assert out["monotone_constraints"] == "(1,-1,0)"
    assert out["interaction_constraints"] == "[[0,1],[2]]"


def test_encoded_constraint_strings_pass_through():
    out = normalize_params({"monotone_constraints": "(1,0)", "interaction_constraints": "[[0]]"})
    assert out["monotone_constraints"] == "(1,0)"
    assert out["interaction_constraints"] == "[[0]]"


def test_malformed_interaction_constraints_raise_type_error():
    with pytest.raises(TypeError):
        normalize_params({"interaction_constraints": [[0, 1], "2"]})


def test_inputs_are_not_mutated():
    params = {"max.depth": 3, "monotone_constraints": [1, 0]}
    normalize_params(params)
    assert params == {"max.depth": 3, "monotone_constraints": [1, 0]}


def test_params_must_be_mapping_or_pairs():
    with pytest.raises(TypeError):
        normalize_params("eta=0.1")
    with pytest.raises(TypeError):
        normalize_params([1, 2, 3])
