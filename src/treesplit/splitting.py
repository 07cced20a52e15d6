# -*- coding: utf-8 -*-
"""
treesplit.splitting
===================

Best binary split search for a single column.

The searches score every admissible partition of the non-missing rows of a
node by the reduction in impurity and return the best one as a
:class:`~treesplit.candidates.SplitCandidate`.  Rows whose column value is
missing take no part in the search; they are recorded in the candidate's
missing mask so that surrogates can route them later.

The split point is chosen by raw gain even when the criterion is gain ratio;
the configured measure only scores the chosen split.
"""

from __future__ import annotations

import itertools

import numpy as np
from loguru import logger

from .candidates import SplitCandidate
from .conditions import NominalRule, NumericRule


def _evaluate(measure, left, right, total_w):
    wl, wr = float(left.sum()), float(right.sum())
    scores = [measure.partition_impurity(left, wl), measure.partition_impurity(right, wr)]
    post = measure.post_split_impurity(scores, [wl, wr], total_w)
    return post, wl, wr


def best_numeric_split(column, target, view, measure, *, min_child_size: float = 1,
                       use_average_split_points: bool = True):
    """
    Best ``value <= threshold`` split of a numeric column.

    Parameters
    ----------
    column : NumericColumn
        Column to split.
    target : TargetColumn
        Class labels.
    view : RowSubsetView
        Rows of the current node.
    measure : ImpurityMeasure
        Criterion used to score the chosen split.
    min_child_size : float, default=1
        Minimum weight on each side of the split.
    use_average_split_points : bool, default=True
        Place the threshold halfway between neighbouring values rather than
        on the lower value.

    Returns
    -------
    SplitCandidate or None
        ``None`` if the column is constant or missing on the node, or if no
        admissible split reduces the impurity.
    """
    miss = column.missing_mask(view)
    known = np.ones(view.row_count, dtype=bool) if miss is None else ~miss
    vv = column.values_in(view)[known]
    if vv.size <= 1:
        logger.debug("Column {!r}: fewer than two known values, no split", column.name)
        return None
    y_known = target.codes[view.original_indices][known]
    w_known = view.row_weights[known]

    order = np.argsort(vv, kind="mergesort")
    v = vv[order]; yk = y_known[order]; wk = w_known[order]
    bd = np.nonzero(v[:-1] != v[1:])[0]
    if bd.size == 0:
        logger.debug("Column {!r}: constant on node, no split", column.name)
        return None

    M = np.zeros((v.size, target.n_classes), dtype=float)
    M[np.arange(v.size), yk] = wk
    SW = M.cumsum(axis=0); total = SW[-1]
    total_w = float(total.sum())
    prior = measure.partition_impurity(total, total_w)

    best_gain, best = -np.inf, None
    for i in bd:
        left = SW[i]; right = total - left
        post, wl, wr = _evaluate(measure, left, right, total_w)
        if wl < min_child_size or wr < min_child_size or post >= prior:
            continue
        if prior - post > best_gain:
            best_gain, best = prior - post, (i, post, wl, wr)
    if best is None:
        logger.debug("Column {!r}: no split improves impurity", column.name)
        return None

    i, post, wl, wr = best
    thr = float(v[i] + 0.5 * (v[i + 1] - v[i])) if use_average_split_points else float(v[i])
    gain = measure.gain(prior, post, [wl, wr], total_w)
    return SplitCandidate(column, NumericRule(thr), gain, miss)


def _category_class_counts(column, target, view) -> np.ndarray:
    dists = np.zeros((column.n_categories, target.n_classes), dtype=float)
    cursor = column.cursor(view)
    if cursor.size() == 0:
        return dists
    while True:
        if not cursor.current_is_missing():
            cls = target.codes[cursor.current_global_row()]
            dists[cursor.current_value(), cls] += cursor.current_weight()
        if not cursor.advance():
            break
    return dists


def best_nominal_split(column, target, view, measure, *, min_child_size: float = 1,
                       max_categories_exhaustive: int = 12):
    """
    Best ``value in subset`` split of a nominal column.

    Every subset of the categories present on the node is tried when there
    are at most ``max_categories_exhaustive`` of them; above that only
    one-vs-rest subsets are tried.  A subset and its complement describe the
    same split, so subsets are enumerated up to half the category count.

    Returns
    -------
    SplitCandidate or None
        ``None`` if fewer than two categories are present on the node or no
        admissible split reduces the impurity.
    """
    dists = _category_class_counts(column, target, view)
    present = np.flatnonzero(dists.sum(axis=1) > 0)
    n_cats = present.size
    if n_cats < 2:
        logger.debug("Column {!r}: fewer than two categories on node, no split", column.name)
        return None
    cand_dists = dists[present]
    parent = cand_dists.sum(axis=0)
    total_w = float(parent.sum())
    prior = measure.partition_impurity(parent, total_w)

    if n_cats <= int(max_categories_exhaustive):
        subsets = itertools.chain.from_iterable(
            itertools.combinations(range(n_cats), r) for r in range(1, n_cats // 2 + 1))
    else:
        subsets = ((k,) for k in range(n_cats))

    best_gain, best = -np.inf, None
    for subset in subsets:
        left = cand_dists[list(subset)].sum(axis=0)
        right = parent - left
        post, wl, wr = _evaluate(measure, left, right, total_w)
        if wl < min_child_size or wr < min_child_size or post >= prior:
            continue
        if prior - post > best_gain:
            best_gain, best = prior - post, (subset, post, wl, wr)
    if best is None:
        logger.debug("Column {!r}: no split improves impurity", column.name)
        return None

    subset, post, wl, wr = best
    left_values = frozenset(column.categories_[present[list(subset)]].tolist())
    gain = measure.gain(prior, post, [wl, wr], total_w)
    return SplitCandidate(column, NominalRule(left_values), gain, column.missing_mask(view))


def best_split(column, target, view, measure, config=None):
    """Dispatch to the numeric or nominal search using ``config`` options."""
    min_child = config.min_child_size if config is not None else 1
    if column.kind == "numeric":
        avg = config.use_average_split_points if config is not None else True
        return best_numeric_split(column, target, view, measure, min_child_size=min_child,
                                  use_average_split_points=avg)
    max_cats = config.max_categories_exhaustive if config is not None else 12
    return best_nominal_split(column, target, view, measure, min_child_size=min_child,
                              max_categories_exhaustive=max_cats)


def generate_candidates(data, view, config) -> list:
    """
    Best split of every column of ``data`` on the node ``view``.

    Columns without an admissible split are skipped.  Candidates are returned
    in column order; picking the winner is left to the caller.
    """
    measure = config.impurity
    candidates = []
    for column in data.columns:
        cand = best_split(column, data.target, view, measure, config)
        if cand is not None:
            candidates.append(cand)
    logger.debug("Generated {} candidates over {} columns for {} rows",
                 len(candidates), data.n_columns, view.row_count)
    return candidates
