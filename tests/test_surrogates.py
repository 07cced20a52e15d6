import numpy as np
import pytest
from treesplit import (LearnerConfig, NominalColumn, NominalRule, NumericColumn, NumericRule,
                       RowSubsetView, SurrogateFinder, candidate_from_rule, enable_logging,
                       disable_logging)

nan = np.nan


def _node():
    """Primary column with two missing rows plus a few alternative columns.

    The primary split ``x <= 3.5`` sends rows 0-2 left and rows 3-5 right;
    rows 6 and 7 are missing ``x``.
    """
    view = RowSubsetView.root(8)
    x = NumericColumn([1, 2, 3, 4, 5, 6, nan, nan], name="x", index=0)
    same = NumericColumn([1, 2, 3, 4, 5, 6, 2, 9], name="same", index=1)
    partial = NumericColumn([1, 2, 9, 4, 5, 6, 1, 1], name="partial", index=2)
    opposite = NumericColumn([6, 5, 4, 3, 2, 1, 1, 1], name="opposite", index=3)
    mostly_opposite = NumericColumn([1, 5, 4, 3, 2, 1, 1, 1], name="mostly_opposite", index=4)
    primary = candidate_from_rule(x, NumericRule(3.5), view, gain=1.0)
    cands = {c.name: candidate_from_rule(c, NumericRule(3.5), view)
             for c in (same, partial, opposite, mostly_opposite)}
    return view, primary, cands


def test_identical_column_reproduces_primary():
    view, primary, cands = _node()
    split = SurrogateFinder().find(primary, [cands["same"]], view)
    assert len(split.surrogates) == 1
    top = split.surrogates[0]
    assert top.column_index == 1
    assert top.agreement == pytest.approx(1.0)
    # majority rule misroutes 3 of 8 rows, the surrogate misroutes the 2 missing ones
    assert top.association == pytest.approx(1.0 / 3.0)


def test_ranking_places_opposite_below_partial():
    view, primary, cands = _node()
    ordered = [cands["opposite"], cands["mostly_opposite"], cands["partial"], cands["same"]]
    split = SurrogateFinder().find(primary, ordered, view)
    assert split.column_indices == [1, 2, 4]
    agreements = [s.agreement for s in split.surrogates]
    assert agreements == pytest.approx([1.0, 5.0 / 6.0, 1.0 / 6.0])
    assert [s.candidate_order for s in split.surrogates] == [3, 2, 1]


def test_ties_keep_candidate_order():
    view, primary, cands = _node()
    twin = candidate_from_rule(NumericColumn([1, 2, 3, 4, 5, 6, 9, 9], index=5), NumericRule(3.5), view)
    split = SurrogateFinder().find(primary, [twin, cands["same"]], view)
    assert split.column_indices == [5, 1]


def test_primary_column_and_primary_itself_are_skipped():
    view, primary, cands = _node()
    other_rule_same_column = candidate_from_rule(primary.column, NumericRule(1.5), view)
    split = SurrogateFinder().find(primary, [primary, other_rule_same_column, cands["partial"]], view)
    assert split.column_indices == [2]


def test_child_markers_filled_from_surrogates():
    view, primary, cands = _node()
    split = SurrogateFinder().find(primary, [cands["partial"], cands["same"]], view)
    left, right = split.child_markers
    # 'same' ranks first and routes row 6 left and row 7 right
    assert list(np.flatnonzero(left)) == [0, 1, 2, 6]
    assert list(np.flatnonzero(right)) == [3, 4, 5, 7]
    assert not (left & right).any() and (left | right).all()


def test_child_conditions_chain_surrogates():
    view, primary, cands = _node()
    split = SurrogateFinder(max_surrogates=1).find(primary, [cands["partial"], cands["same"]], view)
    assert len(split.surrogates) == 2
    left_cond, right_cond = split.left_condition, split.right_condition
    assert [c.column_index for c in left_cond.conditions] == [0, 1]
    assert left_cond.default is True and right_cond.default is False
    row_missing_x = [nan, 2.0, 9.0, 0.0, 0.0]
    assert left_cond.matches(row_missing_x) is True
    assert right_cond.matches(row_missing_x) is False
    row_missing_all = [None, None, None, None, None]
    assert left_cond.matches(row_missing_all) is True
    assert right_cond.matches(row_missing_all) is False


def test_no_agreeing_candidate_gives_empty_ranking():
    view, primary, cands = _node()
    absent = NumericColumn([nan, nan, nan, nan, nan, nan, 1, 2], index=6)
    split = SurrogateFinder().find(primary, [candidate_from_rule(absent, NumericRule(1.5), view),
                                             cands["opposite"]], view)
    assert split.surrogates == ()
    assert split.majority_goes_left is True
    left, right = split.child_markers
    assert list(np.flatnonzero(left)) == [0, 1, 2, 6, 7]
    assert [len(c.conditions) for c in split.conditions] == [1, 1]


def test_weighted_agreement():
    weights = [1, 1, 3, 1, 1, 1, 1, 1]
    view = RowSubsetView.root(8, row_weights=weights)
    x = NumericColumn([1, 2, 3, 4, 5, 6, nan, nan], index=0)
    partial = NumericColumn([1, 2, 9, 4, 5, 6, 1, 1], index=1)
    primary = candidate_from_rule(x, NumericRule(3.5), view)
    cand = candidate_from_rule(partial, NumericRule(3.5), view)
    weighted = SurrogateFinder().find(primary, [cand], view)
    counted = SurrogateFinder(weighted=False).find(primary, [cand], view)
    assert weighted.surrogates[0].agreement == pytest.approx(5.0 / 8.0)
    assert counted.surrogates[0].agreement == pytest.approx(5.0 / 6.0)
    # primary sends 5 of the 8 weight units left
    assert weighted.majority_goes_left is True


def test_with_default_direction():
    view = RowSubsetView.root(6)
    x = NumericColumn([1, 5, 6, 7, nan, nan], index=0)
    primary = candidate_from_rule(x, NumericRule(3.0), view)
    split = SurrogateFinder().with_default_direction(primary, view)
    assert split.surrogates == ()
    assert split.majority_goes_left is False
    left, right = split.child_markers
    assert list(np.flatnonzero(left)) == [0]
    assert list(np.flatnonzero(right)) == [1, 2, 3, 4, 5]


def test_with_default_direction_follows_weighting():
    view = RowSubsetView.root(6, row_weights=[10, 1, 1, 1, 1, 1])
    x = NumericColumn([1, 5, 6, 7, nan, nan], index=0)
    primary = candidate_from_rule(x, NumericRule(3.0), view)
    by_weight = SurrogateFinder().with_default_direction(primary, view)
    by_count = SurrogateFinder(weighted=False).with_default_direction(primary, view)
    assert by_weight.majority_goes_left is True
    assert by_count.majority_goes_left is False
    assert list(np.flatnonzero(by_weight.child_markers[0])) == [0, 4, 5]
    assert list(np.flatnonzero(by_count.child_markers[0])) == [0]
    # find on an empty candidate list picks the same direction
    assert SurrogateFinder(weighted=False).find(primary, [], view).majority_goes_left is False


def test_learn_derives_numeric_and_nominal_rules():
    view, primary, _ = _node()
    columns = [
        primary.column,
        NumericColumn([10, 20, 30, 40, 50, 60, 15, 70], name="scaled", index=1),
        NominalColumn(['a', 'a', 'a', 'b', 'b', 'c', 'a', None], name="cat", index=2),
        NumericColumn([5, 5, 5, 5, 5, 5, 5, 5], name="constant", index=3),
    ]
    split = SurrogateFinder().learn(primary, columns, view)
    assert split.column_indices == [1, 2]
    scaled, cat = split.surrogates
    assert scaled.rule == NumericRule(35.0)
    assert cat.rule == NominalRule(frozenset({'a'}))
    assert scaled.agreement == pytest.approx(1.0)
    assert cat.agreement == pytest.approx(1.0)
    left, right = split.child_markers
    assert list(np.flatnonzero(left)) == [0, 1, 2, 6]
    assert list(np.flatnonzero(right)) == [3, 4, 5, 7]


def test_finder_from_config():
    finder = SurrogateFinder.from_config(LearnerConfig(max_surrogates=2, weighted_agreement=False,
                                                       use_average_split_points=False))
    assert finder.max_surrogates == 2
    assert finder.weighted is False
    assert finder.use_average_split_points is False
    with pytest.raises(ValueError):
        SurrogateFinder(max_surrogates=-1)


def test_ranking_is_logged():
    view, primary, cands = _node()
    messages = []
    handler_id = enable_logging("DEBUG", sink=messages.append)
    try:
        SurrogateFinder().find(primary, [cands["same"]], view)
    finally:
        disable_logging(handler_id)
    assert any("surrogates ranked" in str(m) for m in messages)
    messages.clear()
    SurrogateFinder().find(primary, [cands["same"]], view)
    assert messages == []


def test_surrogates_worse_than_majority_are_ranked_but_not_chained():
    view, primary, cands = _node()
    split = SurrogateFinder().find(primary, [cands["mostly_opposite"]], view)
    assert split.column_indices == [4]
    assert split.surrogates[0].association == pytest.approx(-4.0 / 3.0)
    assert [c.column_index for c in split.left_condition.conditions] == [0]
    # rows 6 and 7 follow the majority direction instead of the surrogate
    left, right = split.child_markers
    assert list(np.flatnonzero(left)) == [0, 1, 2, 6, 7]
    assert list(np.flatnonzero(right)) == [3, 4, 5]


def test_zero_association_surrogate_is_skipped_in_chain():
    view, primary, cands = _node()
    split = SurrogateFinder(max_surrogates=1).find(primary, [cands["partial"], cands["same"]], view)
    partial = [s for s in split.surrogates if s.column_index == 2][0]
    assert partial.association == pytest.approx(0.0)
    split = SurrogateFinder().find(primary, [cands["partial"]], view)
    assert [c.column_index for c in split.left_condition.conditions] == [0]


def test_learn_finds_inversely_related_numeric_column():
    view, primary, _ = _node()
    inverse = NumericColumn([60, 50, 40, 30, 20, 10, 55, 5], name="inverse", index=1)
    split = SurrogateFinder().learn(primary, [primary.column, inverse], view)
    top = split.surrogates[0]
    assert top.rule == NumericRule(35.0, low_goes_left=False)
    assert top.agreement == pytest.approx(1.0)
    assert top.association == pytest.approx(1.0 / 3.0)
    left, right = split.child_markers
    assert list(np.flatnonzero(left)) == [0, 1, 2, 6]
    assert list(np.flatnonzero(right)) == [3, 4, 5, 7]
    assert split.left_condition.matches([nan, 55.0]) is True
    assert split.left_condition.describe() == "x <= 3.5 | inverse > 35 | default"
