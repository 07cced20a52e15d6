import numpy as np
import pytest
from treesplit import (ChildCondition, ColumnCondition, NominalColumn, NominalRule, NumericColumn,
                       NumericRule, RowSubsetView, TargetColumn, TreeData)


def _tiny_dataset():
    """Return a small table with a numeric and a nominal feature, both with missing values."""
    X = np.array([[1, 'A'], [2, None], [3, 'B'], [None, 'A'], [5, 'C']], dtype=object)
    y = np.array(['no', 'no', 'yes', 'yes', 'yes'])
    return X, y


def test_from_arrays_builds_typed_columns():
    X, y = _tiny_dataset()
    data = TreeData.from_arrays(X, y, feature_names=['num', 'cat'], categorical_features=['cat'])
    assert data.n_rows == 5 and data.n_columns == 2
    num, cat = data.columns
    assert num.kind == "numeric" and cat.kind == "nominal"
    assert num.name == 'num' and cat.index == 1
    assert np.array_equal(num.missing, [False, False, False, True, False])
    assert list(cat.categories_) == ['A', 'B', 'C']
    assert list(cat.codes) == [0, -1, 1, 0, 2]
    assert list(data.target.classes_) == ['no', 'yes']


def test_from_arrays_validates_inputs():
    X, y = _tiny_dataset()
    with pytest.raises(ValueError):
        TreeData.from_arrays(X, y, feature_names=['only_one'])
    with pytest.raises(ValueError):
        TreeData.from_arrays(X, y[:3])
    with pytest.raises(ValueError):
        TreeData.from_arrays(X, y, feature_names=['num', 'cat'], categorical_features=['nope'])


def test_target_rejects_missing_labels():
    with pytest.raises(ValueError):
        TargetColumn(['a', None, 'b'])


def test_target_class_counts_respect_view_weights():
    target = TargetColumn([0, 1, 1, 0, 1])
    view = RowSubsetView.root(5, row_weights=[2.0, 1.0, 0.0, 1.0, 0.5])
    counts = target.class_counts(view)
    assert np.allclose(counts.counts, [3.0, 1.5])
    only_first = target.class_counts(view, mask=[True, True, False, False])
    assert np.allclose(only_first.counts, [2.0, 1.0])


def test_missing_mask_uses_no_missing_marker():
    view = RowSubsetView.root(3)
    assert NumericColumn([1.0, 2.0, 3.0]).missing_mask(view) is None
    col = NumericColumn([1.0, np.nan, 3.0])
    assert np.array_equal(col.missing_mask(view), [False, True, False])
    # the missing row is not part of this child
    assert col.missing_mask(view.child([True, False, True])) is None


def test_numeric_rule_partition():
    col = NumericColumn([1.0, 5.0, np.nan, 2.5, 7.0])
    view = RowSubsetView.root(5)
    left, right = NumericRule(2.5).partition(col, view)
    assert list(left) == [True, False, False, True, False]
    assert list(right) == [False, True, False, False, True]


def test_nominal_rule_partition_and_unknown_categories():
    col = NominalColumn(['a', 'b', None, 'c', 'a'])
    view = RowSubsetView.root(5)
    left, right = NominalRule({'a', 'zzz'}).partition(col, view)
    assert list(left) == [True, False, False, False, True]
    assert list(right) == [False, True, False, True, False]
    assert NominalRule(['a']).left_values == frozenset({'a'})


def test_child_condition_chain_and_default():
    primary_left = ColumnCondition(0, NumericRule(3.0), True, 'x')
    surrogate_left = ColumnCondition(1, NominalRule({'u'}), True, 'c')
    cond = ChildCondition((primary_left, surrogate_left), default=False)
    assert cond.matches([1.0, 'v']) is True
    assert cond.matches([4.0, 'u']) is False
    assert cond.matches([None, 'u']) is True
    assert cond.matches([np.nan, 'v']) is False
    assert cond.matches([None, None]) is False
    assert cond.primary is primary_left and cond.surrogates == (surrogate_left,)
    assert cond.describe() == "x <= 3 | c in {u} | not default"
    with pytest.raises(ValueError):
        ChildCondition((), default=True)


def test_target_from_codes():
    target = TargetColumn.from_codes([2, 0, 2, 1], n_classes=4)
    assert target.n_classes == 4
    counts = target.class_counts(RowSubsetView.root(4))
    assert np.allclose(counts.counts, [1.0, 1.0, 2.0, 0.0])
    assert counts.majority_class() == 2


def test_numeric_rule_with_high_values_left():
    col = NumericColumn([1.0, 5.0, np.nan, 2.5, 7.0])
    rule = NumericRule(2.5, low_goes_left=False)
    left, right = rule.partition(col, RowSubsetView.root(5))
    assert list(left) == [False, True, False, False, True]
    assert list(right) == [True, False, False, True, False]
    assert rule.goes_left(3.0) and not rule.goes_left(2.5)
    assert rule.describe("x") == "x > 2.5"
    assert rule.describe("x", left=False) == "x <= 2.5"


def test_numpy_nan_cells_fall_through_to_surrogate():
    primary = ColumnCondition(0, NumericRule(3.0), True, 'x')
    surrogate = ColumnCondition(1, NumericRule(10.0), True, 'z')
    cond = ChildCondition((primary, surrogate), default=False)
    assert primary.matches([np.float32('nan'), 1.0]) is None
    assert primary.matches(np.array([np.nan, 1.0])) is None
    assert cond.matches([np.float32('nan'), np.float64(4.0)]) is True
    assert cond.matches(np.array([np.nan, np.nan])) is False
