# -*- coding: utf-8 -*-
"""
treesplit.surrogates
====================

Surrogate splits for rows whose primary split column is missing.

Given the winning split of a node, :class:`SurrogateFinder` looks for other
columns whose splits reproduce the winner's left/right partition as closely
as possible.  The surrogates are ranked by *agreement*: the share of the rows
present in both columns that the surrogate sends to the same side as the
winner.  The resulting :class:`SurrogateSplit` carries the routing predicates
for both children, chaining the winner and its surrogates and ending with the
majority direction, which always routes a row even when every surrogate
column is missing too.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from loguru import logger

from .candidates import SplitCandidate
from .conditions import ChildCondition, NominalRule, NumericRule


# -----------------------------------------------------------------------------
# Results
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class RankedSurrogate:
    """
    One surrogate of a primary split.

    Attributes
    ----------
    column_index : int
        Column of the surrogate split.
    rule : NumericRule or NominalRule
        The surrogate's split rule.
    agreement : float
        Agreeing share of the rows present in both columns, in ``(0, 1]``.
    association : float
        Improvement over the majority rule: the share of the majority rule's
        misrouted weight that the surrogate routes correctly.  May be negative.
    candidate_order : int
        Position of the surrogate in the candidates passed to the finder.
    """

    column_index: int
    rule: object
    agreement: float
    association: float
    candidate_order: int
    candidate: SplitCandidate | None = field(default=None, repr=False, compare=False)


@dataclass(frozen=True, eq=False)
class SurrogateSplit:
    """
    Ranked surrogates plus the routing of one node's rows.

    Attributes
    ----------
    surrogates : tuple of RankedSurrogate
        Surrogates by descending agreement; may be empty.
    conditions : tuple of ChildCondition
        ``(left, right)`` routing predicates.
    child_markers : tuple of ndarray of bool
        ``(left, right)`` masks over the node's view.  Every row is in exactly
        one of them; rows missing the primary value were routed through the
        surrogates or the majority direction.
    majority_goes_left : bool
        Default direction for rows missing every condition's column.
    """

    surrogates: tuple
    conditions: tuple
    child_markers: tuple
    majority_goes_left: bool

    @property
    def left_condition(self) -> ChildCondition:
        return self.conditions[0]

    @property
    def right_condition(self) -> ChildCondition:
        return self.conditions[1]

    @property
    def column_indices(self) -> list:
        return [s.column_index for s in self.surrogates]


def _association(err_majority: float, predict_prob: float) -> float:
    if err_majority <= 0:
        return 0.0
    return (err_majority - (1.0 - predict_prob)) / err_majority


def _readonly(a):
    a = np.array(a, dtype=bool)
    a.setflags(write=False)
    return a


# -----------------------------------------------------------------------------
# Finder
# -----------------------------------------------------------------------------
class SurrogateFinder:
    """
    Ranks surrogate splits for a primary split.

    Parameters
    ----------
    max_surrogates : int or None, default=None
        Maximum number of surrogates chained into the child conditions.  The
        ranked list itself is never truncated.
    weighted : bool, default=True
        Measure agreement with row weights rather than row counts.
    use_average_split_points : bool, default=True
        Used by :meth:`learn` when placing numeric thresholds.
    """

    def __init__(self, *, max_surrogates: int | None = None, weighted: bool = True,
                 use_average_split_points: bool = True):
        self.max_surrogates = None if max_surrogates is None else int(max_surrogates)
        self.weighted = bool(weighted)
        self.use_average_split_points = bool(use_average_split_points)
        if self.max_surrogates is not None and self.max_surrogates < 0:
            raise ValueError("max_surrogates must be non-negative or None")

    @classmethod
    def from_config(cls, config) -> "SurrogateFinder":
        return cls(max_surrogates=config.max_surrogates,
                   weighted=config.weighted_agreement,
                   use_average_split_points=config.use_average_split_points)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def find(self, primary: SplitCandidate, candidates, memberships) -> SurrogateSplit:
        """
        Rank ``candidates`` by how well they reproduce ``primary``.

        Parameters
        ----------
        primary : SplitCandidate
            The winning split of the node.
        candidates : sequence of SplitCandidate
            Alternative splits, in column order.  Candidates on the primary's
            column are skipped.
        memberships : RowSubsetView
            Rows of the node.

        Returns
        -------
        SurrogateSplit
            The ranked surrogates (possibly none) and the child routing.

        Notes
        -----
        Only surrogates with a positive association are chained into the
        child conditions and used to route rows missing the primary value.
        """
        view = memberships
        p_left, p_right = primary.child_markers(view)
        rw = view.row_weights if self.weighted else np.ones(view.row_count)
        node_w = float(rw.sum())
        w_left, w_right = float(rw[p_left].sum()), float(rw[p_right].sum())
        majority_goes_left = w_left >= w_right
        err_majority = (w_right if majority_goes_left else w_left) / node_w if node_w > 0 else 0.0

        ranked = []
        markers = []
        for order, cand in enumerate(candidates):
            if cand is primary or cand.column_index == primary.column_index:
                continue
            c_left, c_right = cand.child_markers(view)
            comparable = (p_left | p_right) & (c_left | c_right)
            comp_w = float(rw[comparable].sum())
            if comp_w <= 0:
                continue
            agree_w = float(rw[(p_left & c_left) | (p_right & c_right)].sum())
            if agree_w <= 0:
                continue
            ranked.append(RankedSurrogate(
                column_index=cand.column_index,
                rule=cand.rule,
                agreement=agree_w / comp_w,
                association=_association(err_majority, agree_w / node_w),
                candidate_order=order,
                candidate=cand,
            ))
            markers.append((c_left, c_right))

        # stable: ties keep the supplied candidate order
        ranking = sorted(range(len(ranked)), key=lambda k: -ranked[k].agreement)
        ranked = [ranked[k] for k in ranking]
        markers = [markers[k] for k in ranking]
        logger.debug("Primary column {}: {} surrogates ranked {}", primary.column_index,
                     len(ranked), [(s.column_index, round(s.agreement, 4)) for s in ranked])

        # only surrogates that beat the majority rule route rows
        useful = [k for k, s in enumerate(ranked) if s.association > 0]
        if self.max_surrogates is not None:
            useful = useful[:self.max_surrogates]
        chained = [ranked[k] for k in useful]
        left, right = self._fill_child_markers(primary, view, p_left, p_right,
                                               [markers[k] for k in useful], majority_goes_left)
        conditions = self._child_conditions(primary, chained, majority_goes_left)
        return SurrogateSplit(tuple(ranked), conditions, (left, right), majority_goes_left)

    def with_default_direction(self, primary: SplitCandidate, memberships) -> SurrogateSplit:
        """
        Routing without surrogates: rows missing the primary value go to the
        child receiving the larger weight (or row count when ``weighted`` is
        off).
        """
        view = memberships
        p_left, p_right = primary.child_markers(view)
        rw = view.row_weights if self.weighted else np.ones(view.row_count)
        majority_goes_left = float(rw[p_left].sum()) >= float(rw[p_right].sum())
        left, right = self._fill_child_markers(primary, view, p_left, p_right, [],
                                               majority_goes_left)
        conditions = self._child_conditions(primary, [], majority_goes_left)
        return SurrogateSplit((), conditions, (left, right), majority_goes_left)

    def learn(self, primary: SplitCandidate, columns, memberships) -> SurrogateSplit:
        """
        Derive a rule for every other column and rank them.

        The primary partition of the rows present in the primary column acts
        as the target: numeric columns get the single threshold agreeing best
        with it, sending either the low or the high values left, nominal columns send each category to
        the side holding most of its weight.  Rules that send every row to
        the same side are discarded.

        Parameters
        ----------
        primary : SplitCandidate
            The winning split of the node.
        columns : iterable of NumericColumn or NominalColumn
            Columns to consider; the primary's column is skipped.
        memberships : RowSubsetView
            Rows of the node.
        """
        view = memberships
        p_left, p_right = primary.child_markers(view)
        rw = view.row_weights if self.weighted else np.ones(view.row_count)
        majority_goes_left = float(rw[p_left].sum()) >= float(rw[p_right].sum())

        candidates = []
        for column in columns:
            if column.index == primary.column_index:
                continue
            if column.kind == "numeric":
                rule = self._best_numeric_rule(column, view, p_left, p_right, rw)
            else:
                rule = self._best_nominal_rule(column, view, p_left, p_right, rw, majority_goes_left)
            if rule is None:
                logger.debug("Column {!r}: no surrogate rule for primary column {}",
                             column.name, primary.column_index)
                continue
            candidates.append(SplitCandidate(column, rule, 0.0, column.missing_mask(view)))
        return self.find(primary, candidates, view)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _best_numeric_rule(self, column, view, p_left, p_right, rw):
        known = ~column.missing[view.original_indices] & (p_left | p_right)
        if known.sum() < 2:
            return None
        order = np.argsort(column.values_in(view)[known], kind="mergesort")
        v = column.values_in(view)[known][order]
        wl = np.where(p_left[known], rw[known], 0.0)[order]
        wr = np.where(p_right[known], rw[known], 0.0)[order]
        bd = np.nonzero(v[:-1] != v[1:])[0]
        if bd.size == 0:
            return None
        cl, cr = np.cumsum(wl)[bd], np.cumsum(wr)[bd]
        # "value <= v[i]" goes left: primary-left weight at or below, primary-right weight above
        agree_low = cl + (wr.sum() - cr)
        # mirrored: "value > v[i]" goes left
        agree_high = cr + (wl.sum() - cl)
        low_goes_left = agree_low.max() >= agree_high.max()
        i = bd[int(np.argmax(agree_low if low_goes_left else agree_high))]
        thr = float(v[i] + 0.5 * (v[i + 1] - v[i])) if self.use_average_split_points else float(v[i])
        return NumericRule(thr, low_goes_left=bool(low_goes_left))

    @staticmethod
    def _best_nominal_rule(column, view, p_left, p_right, rw, majority_goes_left):
        codes = column.codes[view.original_indices]
        known = (codes >= 0) & (p_left | p_right)
        if not known.any():
            return None
        n = column.n_categories
        wl = np.bincount(codes[known & p_left], weights=rw[known & p_left], minlength=n)
        wr = np.bincount(codes[known & p_right], weights=rw[known & p_right], minlength=n)
        present = (wl + wr) > 0
        goes_left = present & ((wl > wr) | ((wl == wr) & majority_goes_left))
        if not goes_left.any() or not (present & ~goes_left).any():
            return None
        return NominalRule(frozenset(column.categories_[goes_left].tolist()))

    @staticmethod
    def _fill_child_markers(primary, view, p_left, p_right, surrogate_markers, majority_goes_left):
        left, right = p_left.copy(), p_right.copy()
        if primary.has_missing:
            pending = primary.missed_rows(view) & ~(left | right)
            for s_left, s_right in surrogate_markers:
                take_left = pending & s_left
                take_right = pending & s_right
                left |= take_left
                right |= take_right
                pending &= ~(take_left | take_right)
            if majority_goes_left:
                left |= pending
            else:
                right |= pending
        return _readonly(left), _readonly(right)

    @staticmethod
    def _child_conditions(primary, surrogates, majority_goes_left):
        p_cond_left, p_cond_right = primary.child_conditions()
        conds_left, conds_right = [p_cond_left], [p_cond_right]
        for s in surrogates:
            s_left, s_right = s.candidate.child_conditions()
            conds_left.append(s_left)
            conds_right.append(s_right)
        return (ChildCondition(tuple(conds_left), majority_goes_left),
                ChildCondition(tuple(conds_right), not majority_goes_left))
