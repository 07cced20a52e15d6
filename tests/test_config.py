import pytest
from sklearn.base import clone
from treesplit import GAIN_RATIO, ENTROPY_GAIN, LearnerConfig, SplitCriterion


def test_defaults():
    cfg = LearnerConfig()
    assert cfg.split_criterion is SplitCriterion.GAIN_RATIO
    assert cfg.impurity is GAIN_RATIO
    assert cfg.min_child_size == 1.0
    assert cfg.use_average_split_points is True
    assert cfg.max_categories_exhaustive == 12
    assert cfg.max_surrogates is None
    assert cfg.weighted_agreement is True


def test_options_are_keyword_only():
    with pytest.raises(TypeError):
        LearnerConfig("Gain")


@pytest.mark.parametrize("kwargs", [
    {"min_child_size": -1},
    {"max_categories_exhaustive": 0},
    {"max_surrogates": -2},
    {"split_criterion": "Gini"},
])
def test_invalid_options(kwargs):
    with pytest.raises(ValueError):
        LearnerConfig(**kwargs)


def test_get_set_params_and_clone():
    cfg = LearnerConfig(split_criterion="Gain", max_surrogates=3)
    params = cfg.get_params()
    assert params["split_criterion"] is SplitCriterion.GAIN
    assert params["max_surrogates"] == 3
    cfg.set_params(weighted_agreement=False)
    assert cfg.weighted_agreement is False
    copy = clone(cfg)
    assert copy is not cfg
    assert copy.impurity is ENTROPY_GAIN
    assert copy.get_params() == cfg.get_params()


def test_set_params_coerces_and_validates():
    cfg = LearnerConfig()
    cfg.set_params(split_criterion="Gain", min_child_size=3)
    assert cfg.split_criterion is SplitCriterion.GAIN
    assert cfg.impurity is ENTROPY_GAIN
    assert cfg.min_child_size == 3.0
    with pytest.raises(ValueError):
        cfg.set_params(split_criterion="Gini")
    with pytest.raises(ValueError):
        cfg.set_params(max_surrogates=-1)
    with pytest.raises(ValueError):
        cfg.set_params(no_such_option=1)
    # rejected values leave the config untouched
    assert cfg.impurity is ENTROPY_GAIN
    assert cfg.max_surrogates is None
