"""Split-evaluation core for decision-tree learners: impurity measures and surrogate splits."""

from loguru import logger

from .candidates import NO_MISSINGS, SplitCandidate, candidate_from_rule
from .columns import NominalColumn, NumericColumn, TargetColumn, TreeData
from .conditions import ChildCondition, ColumnCondition, NominalRule, NumericRule
from .config import LearnerConfig
from .impurity import (ENTROPY_GAIN, GAIN_RATIO, EntropyGain, GainRatio, ImpurityMeasure,
                       SplitCriterion, WeightedClassCounts, split_information)
from .logging import PACKAGE_NAME, disable_logging, enable_logging
from .memberships import ColumnCursor, RowSubsetView
from .splitting import best_nominal_split, best_numeric_split, best_split, generate_candidates
from .surrogates import RankedSurrogate, SurrogateFinder, SurrogateSplit

logger.disable(PACKAGE_NAME)

__all__ = [
    "NO_MISSINGS", "SplitCandidate", "candidate_from_rule",
    "NominalColumn", "NumericColumn", "TargetColumn", "TreeData",
    "ChildCondition", "ColumnCondition", "NominalRule", "NumericRule",
    "LearnerConfig",
    "ENTROPY_GAIN", "GAIN_RATIO", "EntropyGain", "GainRatio", "ImpurityMeasure",
    "SplitCriterion", "WeightedClassCounts", "split_information",
    "disable_logging", "enable_logging",
    "ColumnCursor", "RowSubsetView",
    "best_nominal_split", "best_numeric_split", "best_split", "generate_candidates",
    "RankedSurrogate", "SurrogateFinder", "SurrogateSplit",
]
