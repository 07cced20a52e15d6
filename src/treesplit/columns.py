# -*- coding: utf-8 -*-
"""
treesplit.columns
=================

Column-oriented training data.

Each attribute column keeps its values for *all* rows of the training table,
indexed by global row id.  Tree nodes never copy these arrays; they read them
through a :class:`~treesplit.memberships.RowSubsetView`.

Missing values may be represented by ``None`` or ``numpy.nan`` in the input.
"""

from __future__ import annotations

import numpy as np
from sklearn.preprocessing import LabelEncoder
from sklearn.utils.validation import check_consistent_length

from .impurity import WeightedClassCounts
from .memberships import ColumnCursor, RowSubsetView


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _isnan_scalar(v) -> bool:
    return (v is None) or (isinstance(v, (float, np.floating)) and np.isnan(v))


def _missing_flags(values: np.ndarray) -> np.ndarray:
    if values.dtype.kind == "f":
        return np.isnan(values)
    return np.array([_isnan_scalar(v) for v in values], dtype=bool)


def _readonly(a: np.ndarray) -> np.ndarray:
    a.setflags(write=False)
    return a


# -----------------------------------------------------------------------------
# Attribute columns
# -----------------------------------------------------------------------------
class _AttributeColumn:

    kind = ""

    def __init__(self, name, index):
        self.index = int(index)
        self.name = str(name) if name is not None else f"f{self.index}"

    def __len__(self) -> int:
        return int(self.missing.size)

    @property
    def has_missing(self) -> bool:
        return bool(self.missing.any())

    def missing_mask(self, view: RowSubsetView):
        """
        Missing flags for the rows of ``view``, in view order.

        Returns ``None`` when no row of the view is missing so that callers
        can skip mask checks entirely.
        """
        if not self.has_missing:
            return None
        mask = np.zeros(view.row_count, dtype=bool)
        cursor = self.cursor(view)
        if cursor.size() == 0:
            return None
        while True:
            if cursor.current_is_missing():
                mask[cursor.current_local_index()] = True
            if not cursor.advance():
                break
        return _readonly(mask) if mask.any() else None

    def values_in(self, view: RowSubsetView) -> np.ndarray:
        return self.values[view.original_indices]


class NumericColumn(_AttributeColumn):
    """
    Numeric attribute column.

    Parameters
    ----------
    values : array-like of shape (n_rows,)
        Column values; ``None`` and ``nan`` denote missing values.
    name : str or None, default=None
        Column name used in conditions and log messages.
    index : int, default=0
        Position of the column in the table.
    """

    kind = "numeric"

    def __init__(self, values, name=None, index: int = 0):
        super().__init__(name, index)
        raw = np.asarray(values)
        if raw.ndim != 1:
            raise ValueError("column values must be one-dimensional")
        if raw.dtype.kind == "O":
            vals = np.array([np.nan if _isnan_scalar(v) else float(v) for v in raw], dtype=float)
        else:
            vals = raw.astype(float)
        self.values = _readonly(vals)
        self.missing = _readonly(np.isnan(vals))

    def cursor(self, view: RowSubsetView) -> ColumnCursor:
        return view.cursor(self.values, self.missing)

    def __repr__(self) -> str:
        return f"NumericColumn(name={self.name!r}, index={self.index}, n_rows={len(self)})"


class NominalColumn(_AttributeColumn):
    """
    Nominal (categorical) attribute column.

    Non-missing values are encoded to integer codes with
    :class:`sklearn.preprocessing.LabelEncoder`; missing values get code
    ``-1``.

    Attributes
    ----------
    values : ndarray of object
        Raw values, indexed by global row id.
    codes : ndarray of int
        Encoded values, ``-1`` for missing.
    categories_ : ndarray
        Distinct non-missing values in code order.
    """

    kind = "nominal"

    def __init__(self, values, name=None, index: int = 0):
        super().__init__(name, index)
        raw = np.asarray(values, dtype=object)
        if raw.ndim != 1:
            raise ValueError("column values must be one-dimensional")
        missing = _missing_flags(raw)
        codes = np.full(raw.size, -1, dtype=int)
        self._encoder = LabelEncoder()
        if (~missing).any():
            codes[~missing] = self._encoder.fit_transform(list(raw[~missing]))
            self.categories_ = self._encoder.classes_
        else:
            self.categories_ = np.array([], dtype=object)
        self.values = _readonly(raw)
        self.codes = _readonly(codes)
        self.missing = _readonly(missing)

    @property
    def n_categories(self) -> int:
        return int(len(self.categories_))

    def codes_for(self, values) -> np.ndarray:
        """Codes of the given raw values; values never seen are dropped."""
        seen = set(self.categories_.tolist())
        known = [v for v in values if v in seen]
        if not known:
            return np.array([], dtype=int)
        return self._encoder.transform(known)

    def cursor(self, view: RowSubsetView) -> ColumnCursor:
        return view.cursor(self.codes, self.missing)

    def __repr__(self) -> str:
        return (f"NominalColumn(name={self.name!r}, index={self.index}, "
                f"n_rows={len(self)}, n_categories={self.n_categories})")


# -----------------------------------------------------------------------------
# Target
# -----------------------------------------------------------------------------
class TargetColumn:
    """
    Nominal target column.

    Class labels are encoded with :class:`~sklearn.preprocessing.LabelEncoder`
    so that class counts can be indexed by ``0 .. n_classes - 1``.

    Raises
    ------
    ValueError
        If any label is missing.
    """

    def __init__(self, values, name: str = "target"):
        raw = np.asarray(values, dtype=object)
        if raw.ndim != 1:
            raise ValueError("target values must be one-dimensional")
        if _missing_flags(raw).any():
            raise ValueError("target column must not contain missing values")
        self.name = str(name)
        self._encoder = LabelEncoder()
        self.codes = _readonly(np.asarray(self._encoder.fit_transform(list(raw)), dtype=int))
        self.classes_ = self._encoder.classes_

    @classmethod
    def from_codes(cls, codes, n_classes: int, name: str = "target") -> "TargetColumn":
        """Target built directly from class indices ``0 .. n_classes - 1``."""
        target = cls.__new__(cls)
        target.name = str(name)
        target._encoder = LabelEncoder().fit(np.arange(int(n_classes)))
        target.codes = _readonly(np.asarray(codes, dtype=int).copy())
        target.classes_ = target._encoder.classes_
        return target

    @property
    def n_classes(self) -> int:
        return int(len(self.classes_))

    def __len__(self) -> int:
        return int(self.codes.size)

    def class_counts(self, view: RowSubsetView, mask=None) -> WeightedClassCounts:
        """Weighted class distribution of the view (optionally restricted by ``mask``)."""
        codes = self.codes[view.original_indices]
        w = view.row_weights
        if mask is not None:
            mask = np.asarray(mask, dtype=bool)
            codes, w = codes[mask], w[mask]
        return WeightedClassCounts(np.bincount(codes, weights=w, minlength=self.n_classes))

    def __repr__(self) -> str:
        return f"TargetColumn(name={self.name!r}, n_classes={self.n_classes})"


# -----------------------------------------------------------------------------
# Table
# -----------------------------------------------------------------------------
class TreeData:
    """
    Attribute columns plus target of one training table.

    Parameters
    ----------
    columns : list of NumericColumn or NominalColumn
        Attribute columns; their ``index`` must equal their list position.
    target : TargetColumn
        Class labels.
    """

    def __init__(self, columns, target: TargetColumn):
        self.columns = list(columns)
        self.target = target
        check_consistent_length(target.codes, *[c.missing for c in self.columns])
        for pos, col in enumerate(self.columns):
            if col.index != pos:
                raise ValueError(f"column {col.name!r} has index {col.index}, expected {pos}")

    @classmethod
    def from_arrays(cls, X, y, *, feature_names=None, categorical_features=None) -> "TreeData":
        """
        Build a table from a 2-D array and a label vector.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Attribute values; ``None`` and ``nan`` denote missing values.
        y : array-like of shape (n_samples,)
            Class labels.
        feature_names : list[str] or None, default=None
            Column names.  Defaults to ``f0, f1, ...``.
        categorical_features : list[int|str] or None, default=None
            Indices or names of nominal columns.  All other columns are numeric.
        """
        X = np.asarray(X, dtype=object)
        if X.ndim != 2:
            raise ValueError("X must be two-dimensional")
        n_features = X.shape[1]
        if feature_names is None:
            feature_names = [f"f{i}" for i in range(n_features)]
        elif len(feature_names) != n_features:
            raise ValueError("feature_names length must match X.shape[1]")
        cats = set()
        for c in categorical_features or []:
            if isinstance(c, str):
                if c not in feature_names:
                    raise ValueError(f"unknown categorical feature {c!r}")
                cats.add(list(feature_names).index(c))
            else:
                cats.add(int(c))
        columns = []
        for j in range(n_features):
            col_cls = NominalColumn if j in cats else NumericColumn
            columns.append(col_cls(X[:, j], name=feature_names[j], index=j))
        return cls(columns, TargetColumn(y))

    @property
    def n_rows(self) -> int:
        return len(self.target)

    @property
    def n_columns(self) -> int:
        return len(self.columns)

    def __getitem__(self, index: int):
        return self.columns[index]

    def __iter__(self):
        return iter(self.columns)

    def __repr__(self) -> str:
        return f"TreeData(n_rows={self.n_rows}, n_columns={self.n_columns})"
