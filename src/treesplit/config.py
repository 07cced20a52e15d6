# -*- coding: utf-8 -*-
"""Learner options read by the split-evaluation core."""

from __future__ import annotations

from sklearn.base import BaseEstimator

from .impurity import ImpurityMeasure, SplitCriterion


class LearnerConfig(BaseEstimator):
    """
    Options of one learner run, shared by every node it evaluates.

    Parameters follow the scikit-learn conventions, so ``get_params``,
    ``set_params`` and ``sklearn.base.clone`` work as for estimators.

    Parameters
    ----------
    split_criterion : {"Gain", "GainRatio"} or SplitCriterion, default="GainRatio"
        Impurity measure used to score splits.
    min_child_size : float, default=1
        Minimum weight on each side of a split.
    use_average_split_points : bool, default=True
        Place numeric thresholds halfway between neighbouring values.
    max_categories_exhaustive : int, default=12
        Maximum number of categories for exhaustive subset search on nominal
        columns.  Above this value a one-vs-rest search is used.
    max_surrogates : int or None, default=None
        Maximum number of surrogates chained into the child conditions.
        ``None`` keeps every surrogate with positive agreement.
    weighted_agreement : bool, default=True
        Measure surrogate agreement with row weights rather than row counts.

    Raises
    ------
    ValueError
        If any option is out of range or the criterion is unknown.
    """

    def __init__(
        self,
        *,
        split_criterion="GainRatio",
        min_child_size: float = 1,
        use_average_split_points: bool = True,
        max_categories_exhaustive: int = 12,
        max_surrogates: int | None = None,
        weighted_agreement: bool = True,
    ):
        self.split_criterion = SplitCriterion.parse(split_criterion)
        self.min_child_size = float(min_child_size)
        self.use_average_split_points = bool(use_average_split_points)
        self.max_categories_exhaustive = int(max_categories_exhaustive)
        self.max_surrogates = None if max_surrogates is None else int(max_surrogates)
        self.weighted_agreement = bool(weighted_agreement)

        if self.min_child_size < 0:
            raise ValueError("min_child_size must be non-negative")
        if self.max_categories_exhaustive < 1:
            raise ValueError("max_categories_exhaustive must be at least 1")
        if self.max_surrogates is not None and self.max_surrogates < 0:
            raise ValueError("max_surrogates must be non-negative or None")

    def set_params(self, **params):
        """Set options, coercing and validating them as the constructor does."""
        current = self.get_params(deep=False)
        for key in params:
            if key not in current:
                raise ValueError(f"Invalid parameter {key!r} for {type(self).__name__}")
        checked = type(self)(**{**current, **params})
        return super().set_params(**{key: getattr(checked, key) for key in params})

    @property
    def impurity(self) -> ImpurityMeasure:
        return self.split_criterion.impurity
