# -*- coding: utf-8 -*-
"""
treesplit.candidates
====================

Immutable description of one proposed binary split of a tree node.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .conditions import ColumnCondition, NominalRule, NumericRule

# ``missing_mask`` value meaning "no row of the node is missing this column".
NO_MISSINGS = None


@dataclass(frozen=True, eq=False)
class SplitCandidate:
    """
    Proposed binary split on one column.

    Parameters
    ----------
    column : NumericColumn or NominalColumn
        Column the split was derived from.
    rule : NumericRule or NominalRule
        How non-missing values are routed left or right.
    gain : float
        Score assigned by the impurity measure.
    missing_mask : ndarray of bool or None, default=NO_MISSINGS
        Positions of the node's view for which the column is missing, or
        ``NO_MISSINGS`` when there are none.
    """

    column: object
    rule: object
    gain: float
    missing_mask: np.ndarray | None = NO_MISSINGS

    def __post_init__(self):
        if isinstance(self.rule, NumericRule) != (self.column.kind == "numeric"):
            raise ValueError(
                f"{type(self.rule).__name__} does not fit {self.column.kind} column {self.column.name!r}")
        if self.missing_mask is not None:
            mask = np.array(self.missing_mask, dtype=bool)
            mask.setflags(write=False)
            object.__setattr__(self, "missing_mask", mask if mask.any() else NO_MISSINGS)
        object.__setattr__(self, "gain", float(self.gain))

    @property
    def column_index(self) -> int:
        return self.column.index

    @property
    def has_missing(self) -> bool:
        return self.missing_mask is not NO_MISSINGS

    def missed_rows(self, view) -> np.ndarray:
        """Missing flags over ``view`` (all ``False`` when there are none)."""
        if self.missing_mask is NO_MISSINGS:
            return np.zeros(view.row_count, dtype=bool)
        if self.missing_mask.shape != (view.row_count,):
            raise ValueError("missing_mask does not match the view")
        return self.missing_mask

    def child_markers(self, view):
        """Left and right masks over ``view``; missing rows are in neither."""
        return self.rule.partition(self.column, view)

    def child_conditions(self):
        """Left and right :class:`ColumnCondition` of this split."""
        idx, name = self.column.index, self.column.name
        return (ColumnCondition(idx, self.rule, True, name),
                ColumnCondition(idx, self.rule, False, name))

    def __repr__(self) -> str:
        return (f"SplitCandidate(column={self.column.name!r}, rule={self.rule!r}, "
                f"gain={self.gain:.6g}, has_missing={self.has_missing})")


def candidate_from_rule(column, rule, view, gain: float = 0.0) -> SplitCandidate:
    """Wrap ``rule`` as a candidate, computing the missing mask over ``view``."""
    if not isinstance(rule, (NumericRule, NominalRule)):
        raise ValueError(f"unsupported split rule {rule!r}")
    return SplitCandidate(column, rule, gain, column.missing_mask(view))
