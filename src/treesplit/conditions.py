# -*- coding: utf-8 -*-
"""
treesplit.conditions
====================

Split rules and the routing predicates built from them.

A *rule* partitions the non-missing values of a single column into a left
and a right side.  A :class:`ColumnCondition` applies a rule to one side of a
split, and a :class:`ChildCondition` chains the primary condition with its
surrogates: the first condition whose column is present in a row decides,
and rows missing every column fall back to the default direction.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .columns import _isnan_scalar


# -----------------------------------------------------------------------------
# Rules
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class NumericRule:
    """
    Values ``<= threshold`` go left, larger values go right.

    With ``low_goes_left=False`` the sides are swapped: values
    ``> threshold`` go left.
    """

    threshold: float
    low_goes_left: bool = True

    def goes_left(self, value) -> bool:
        return (float(value) <= self.threshold) == self.low_goes_left

    def partition(self, column, view):
        """
        Left and right masks over the positions of ``view``.

        Rows with a missing value are in neither mask.
        """
        vals = column.values_in(view)
        known = ~column.missing[view.original_indices]
        # nan compares False either way, so known rows are the only candidates
        with np.errstate(invalid="ignore"):
            low = vals <= self.threshold
        left = known & (low if self.low_goes_left else ~low)
        return left, known & ~left

    def describe(self, name: str, left: bool = True) -> str:
        op = "<=" if left == self.low_goes_left else ">"
        return f"{name} {op} {self.threshold:g}"


@dataclass(frozen=True)
class NominalRule:
    """Values contained in ``left_values`` go left, all others go right."""

    left_values: frozenset

    def __post_init__(self):
        if not isinstance(self.left_values, frozenset):
            object.__setattr__(self, "left_values", frozenset(self.left_values))

    def goes_left(self, value) -> bool:
        return value in self.left_values

    def partition(self, column, view):
        codes = column.codes[view.original_indices]
        known = codes >= 0
        in_group = np.isin(codes, column.codes_for(self.left_values))
        left = known & in_group
        return left, known & ~in_group

    def describe(self, name: str, left: bool = True) -> str:
        op = "in" if left else "not in"
        vals = ", ".join(sorted(map(str, self.left_values)))
        return f"{name} {op} {{{vals}}}"


# -----------------------------------------------------------------------------
# Conditions
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class ColumnCondition:
    """
    One side of a split on a single column.

    Parameters
    ----------
    column_index : int
        Position of the column in a row.
    rule : NumericRule or NominalRule
        The split rule.
    left : bool
        Whether this condition describes the left side of ``rule``.
    column_name : str or None
        Used by :meth:`describe` only.
    """

    column_index: int
    rule: object
    left: bool = True
    column_name: str | None = None

    def matches(self, row):
        """``True``/``False`` for a present value, ``None`` if it is missing."""
        val = row[self.column_index]
        if _isnan_scalar(val):
            return None
        return self.rule.goes_left(val) == self.left

    def describe(self) -> str:
        name = self.column_name or f"f{self.column_index}"
        return self.rule.describe(name, self.left)


@dataclass(frozen=True)
class ChildCondition:
    """
    Routing predicate of one child: primary condition, then surrogates.

    Parameters
    ----------
    conditions : tuple of ColumnCondition
        The primary condition first, followed by the surrogate conditions in
        rank order.
    default : bool
        Whether rows missing every condition's column are sent to this child
        (``True`` for the majority child).
    """

    conditions: tuple
    default: bool

    def __post_init__(self):
        object.__setattr__(self, "conditions", tuple(self.conditions))
        if not self.conditions:
            raise ValueError("a child condition needs at least the primary condition")

    @property
    def primary(self) -> ColumnCondition:
        return self.conditions[0]

    @property
    def surrogates(self) -> tuple:
        return self.conditions[1:]

    def matches(self, row) -> bool:
        for cond in self.conditions:
            hit = cond.matches(row)
            if hit is not None:
                return hit
        return self.default

    def describe(self) -> str:
        parts = [c.describe() for c in self.conditions]
        parts.append("default" if self.default else "not default")
        return " | ".join(parts)
