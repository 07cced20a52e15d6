# -*- coding: utf-8 -*-
"""
treesplit.impurity
==================

Impurity measures used to score candidate splits.

Two measures are provided, both based on the Shannon entropy of the weighted
class distribution within a partition:

* ``ENTROPY_GAIN`` scores a split by the plain reduction in entropy.
* ``GAIN_RATIO`` divides that reduction by the *split information* of the
  partition weights, which penalizes splits that fragment the rows into many
  small partitions (Quinlan's gain ratio).

The measures are stateless singletons and may be shared freely between
threads evaluating different tree nodes.  They are selected through the
:class:`SplitCriterion` enum.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum

import numpy as np


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _entropy(dist_vec: np.ndarray, tot: float) -> float:
    if tot <= 0:
        return 0.0
    p = dist_vec / tot
    p = p[p > 0]
    return float(-np.sum(p * np.log2(p)))


def split_information(partition_weights, total_weight: float) -> float:
    """Entropy of the partition weights themselves.

    Parameters
    ----------
    partition_weights : array-like of float
        Weight of the rows sent to each partition.
    total_weight : float
        Weight of all rows in the node.

    Returns
    -------
    float
        ``-sum(w_i / total * log2(w_i / total))`` over the non-empty
        partitions; ``0.0`` if ``total_weight`` is not positive.
    """
    w = np.asarray(partition_weights, dtype=float)
    return _entropy(w, float(total_weight))


# -----------------------------------------------------------------------------
# Measures
# -----------------------------------------------------------------------------
class ImpurityMeasure(ABC):
    """Shared contract of the entropy based split criteria."""

    name: str = ""

    __slots__ = ()

    def partition_impurity(self, class_counts, partition_weight: float) -> float:
        """
        Weighted entropy of the class distribution in one partition.

        Parameters
        ----------
        class_counts : array-like of float
            Weight of each target class within the partition.
        partition_weight : float
            Total weight of the partition (normally ``sum(class_counts)``).

        Returns
        -------
        float
            ``0.0`` for an empty or pure partition, ``1.0`` for an even
            two-class partition.

        Raises
        ------
        ValueError
            If ``class_counts`` is empty.
        """
        counts = np.asarray(class_counts, dtype=float)
        if counts.size == 0:
            raise ValueError("class_counts must contain at least one class")
        return _entropy(counts, float(partition_weight))

    def post_split_impurity(self, partition_scores, partition_weights,
                            total_weight: float) -> float:
        """Average of the partition impurities weighted by partition share."""
        if total_weight <= 0:
            return 0.0
        scores = np.asarray(partition_scores, dtype=float)
        weights = np.asarray(partition_weights, dtype=float)
        if scores.shape != weights.shape:
            raise ValueError("partition_scores and partition_weights must have the same length")
        return float(np.sum(weights / total_weight * scores))

    @abstractmethod
    def gain(self, prior_impurity: float, post_split_impurity: float,
             partition_weights, total_weight: float) -> float:
        """Score of a split, higher is better."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    def __reduce__(self):
        # unpickle to the module singleton
        return (_measure_for, (self.name,))


class EntropyGain(ImpurityMeasure):
    """Information gain: ``prior - post``."""

    name = "Gain"

    __slots__ = ()

    def gain(self, prior_impurity, post_split_impurity, partition_weights, total_weight):
        return float(prior_impurity - post_split_impurity)


class GainRatio(ImpurityMeasure):
    """Information gain divided by the split information of the partition.

    When the split information is zero (all weight in a single partition) the
    raw gain is returned instead of dividing by zero.
    """

    name = "GainRatio"

    __slots__ = ()

    def gain(self, prior_impurity, post_split_impurity, partition_weights, total_weight):
        raw = float(prior_impurity - post_split_impurity)
        info = split_information(partition_weights, total_weight)
        return raw / info if info > 0 else raw


ENTROPY_GAIN = EntropyGain()
GAIN_RATIO = GainRatio()


def _measure_for(name: str) -> ImpurityMeasure:
    return SplitCriterion.parse(name).impurity


# -----------------------------------------------------------------------------
# Selection
# -----------------------------------------------------------------------------
class SplitCriterion(str, Enum):
    """Configuration value selecting the impurity measure of a learner run."""

    GAIN = "Gain"
    GAIN_RATIO = "GainRatio"

    @property
    def impurity(self) -> ImpurityMeasure:
        return ENTROPY_GAIN if self is SplitCriterion.GAIN else GAIN_RATIO

    @classmethod
    def parse(cls, value) -> "SplitCriterion":
        """Resolve an enum member from a member, its value or its name.

        Raises
        ------
        ValueError
            If ``value`` does not name a supported criterion.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for member in cls:
                if value == member.value or value.upper() == member.name:
                    return member
        supported = ", ".join(repr(m.value) for m in cls)
        raise ValueError(f"Unsupported split criterion {value!r}; expected one of {supported}")


# -----------------------------------------------------------------------------
# Class counts
# -----------------------------------------------------------------------------
class WeightedClassCounts:
    """Weighted number of rows per target class within a partition.

    Parameters
    ----------
    counts : array-like of float
        Weight per class, indexed by the encoded class label.
    """

    __slots__ = ("counts",)

    def __init__(self, counts):
        counts = np.array(counts, dtype=float)
        if counts.ndim != 1 or counts.size == 0:
            raise ValueError("counts must be a non-empty 1-D array")
        self.counts = counts

    @classmethod
    def zeros(cls, n_classes: int) -> "WeightedClassCounts":
        return cls(np.zeros(int(n_classes), dtype=float))

    @property
    def total_weight(self) -> float:
        return float(self.counts.sum())

    @property
    def n_classes(self) -> int:
        return int(self.counts.size)

    def add(self, class_index: int, weight: float) -> None:
        self.counts[class_index] += weight

    def majority_class(self) -> int:
        return int(np.argmax(self.counts))

    def impurity(self, measure: ImpurityMeasure) -> float:
        return measure.partition_impurity(self.counts, self.total_weight)

    def __sub__(self, other: "WeightedClassCounts") -> "WeightedClassCounts":
        return WeightedClassCounts(self.counts - other.counts)

    def __repr__(self) -> str:
        return f"WeightedClassCounts({self.counts.tolist()})"
