# -*- coding: utf-8 -*-
"""
treesplit.memberships
=====================

Row bookkeeping for a single tree node.

A :class:`RowSubsetView` identifies which rows of the training table belong
to a node and with which weight, without copying any column data.  Child
nodes receive new views derived from their parent and a boolean inclusion
mask; views are never modified after construction, so sibling nodes can be
evaluated on different threads against the same parent.

A :class:`ColumnCursor` reads one column restricted to the rows of a view,
in view order.  Cursors are stateful and must not be shared between threads;
create one per worker instead.
"""

from __future__ import annotations

import numpy as np
from loguru import logger
from sklearn.utils.validation import check_consistent_length


def _readonly(a: np.ndarray) -> np.ndarray:
    a.setflags(write=False)
    return a


# -----------------------------------------------------------------------------
# Views
# -----------------------------------------------------------------------------
class RowSubsetView:
    """
    Weighted, indexed view over the rows of one tree node.

    Parameters
    ----------
    row_weights : array-like of shape (n_rows,)
        Weight of each row in the node.
    original_indices : array-like of shape (n_rows,)
        Global row id of each local position.
    n_rows_in_root : int or None, default=None
        Number of rows of the full table.  Defaults to ``n_rows``, which is
        only correct for root views.

    Attributes
    ----------
    row_weights : ndarray of float
        Read-only row weights.
    original_indices : ndarray of intp
        Read-only mapping from local position to global row id.
    n_rows_in_root : int
        Number of rows of the full table.
    """

    __slots__ = ("row_weights", "original_indices", "n_rows_in_root")

    def __init__(self, row_weights, original_indices, n_rows_in_root: int | None = None):
        w = np.array(row_weights, dtype=float)
        idx = np.array(original_indices, dtype=np.intp)
        check_consistent_length(w, idx)
        if w.ndim != 1:
            raise ValueError("row_weights must be one-dimensional")
        if np.any(w < 0):
            raise ValueError("row_weights must be non-negative")
        self.row_weights = _readonly(w)
        self.original_indices = _readonly(idx)
        self.n_rows_in_root = int(n_rows_in_root) if n_rows_in_root is not None else int(idx.size)

    @classmethod
    def root(cls, n_rows: int, row_weights=None) -> "RowSubsetView":
        """
        View spanning all rows of a table.

        Every row gets weight ``1.0`` unless ``row_weights`` is given (e.g. a
        bootstrap sample), in which case rows with zero weight are left out.
        """
        n_rows = int(n_rows)
        if row_weights is None:
            return cls(np.ones(n_rows), np.arange(n_rows), n_rows)
        w = np.asarray(row_weights, dtype=float)
        if w.shape != (n_rows,):
            raise ValueError("row_weights must have one entry per row")
        keep = np.flatnonzero(w > 0)
        return cls(w[keep], keep, n_rows)

    @classmethod
    def from_table(cls, data, row_weights=None) -> "RowSubsetView":
        """Root view over a :class:`~treesplit.columns.TreeData` table."""
        return cls.root(data.n_rows, row_weights)

    def child(self, in_child) -> "RowSubsetView":
        """
        Derive the view of a child node.

        Parameters
        ----------
        in_child : array-like of bool of shape (row_count,)
            Which positions of this view belong to the child.

        Returns
        -------
        RowSubsetView
            A new view; ``self`` is left untouched.
        """
        mask = np.asarray(in_child, dtype=bool)
        if mask.shape != (self.row_count,):
            raise ValueError(
                f"child mask has shape {mask.shape}, expected ({self.row_count},)")
        child = RowSubsetView(self.row_weights[mask], self.original_indices[mask],
                              self.n_rows_in_root)
        logger.debug("Derived child view with {} of {} rows", child.row_count, self.row_count)
        return child

    @property
    def row_count(self) -> int:
        return int(self.original_indices.size)

    @property
    def total_weight(self) -> float:
        return float(self.row_weights.sum())

    def weight_of(self, mask) -> float:
        """Total weight of the positions selected by ``mask``."""
        return float(self.row_weights[np.asarray(mask, dtype=bool)].sum())

    def cursor(self, values, missing=None) -> "ColumnCursor":
        return ColumnCursor(values, self, missing)

    def __len__(self) -> int:
        return self.row_count

    def __repr__(self) -> str:
        return (f"RowSubsetView(row_count={self.row_count}, "
                f"total_weight={self.total_weight:g}, n_rows_in_root={self.n_rows_in_root})")


# -----------------------------------------------------------------------------
# Cursor
# -----------------------------------------------------------------------------
class ColumnCursor:
    """
    Forward-seekable reader over one column restricted to a view.

    The cursor starts *located* on the first row of the view: read the
    current row before the first call to :meth:`advance`.

    Parameters
    ----------
    values : ndarray
        Backing values of the column, indexed by global row id.
    view : RowSubsetView
        Rows to visit, in view order.
    missing : ndarray of bool or None, default=None
        Missing-value flags of the column, indexed by global row id.
    """

    __slots__ = ("_values", "_missing", "_view", "_position")

    def __init__(self, values, view: RowSubsetView, missing=None):
        self._values = values
        self._missing = missing
        self._view = view
        self._position = 0

    def size(self) -> int:
        return self._view.row_count

    def advance(self) -> bool:
        if self._position + 1 >= self.size():
            return False
        self._position += 1
        return True

    def seek_from(self, index_in_view: int) -> bool:
        """
        Jump to ``index_in_view``.

        Negative requests clamp to the first row.  Requests past the last row
        leave the cursor where it is.

        Returns
        -------
        bool
            Whether the cursor is now located at the requested (or clamped)
            position.
        """
        n = self.size()
        if n == 0 or index_in_view >= n:
            return False
        self._position = max(0, int(index_in_view))
        return True

    def reset(self) -> None:
        self._position = 0

    def current_local_index(self) -> int:
        return self._position

    def current_global_row(self) -> int:
        return int(self._view.original_indices[self._position])

    def current_weight(self) -> float:
        return float(self._view.row_weights[self._position])

    def current_value(self):
        return self._values[self.current_global_row()]

    def current_is_missing(self) -> bool:
        if self._missing is None:
            return False
        return bool(self._missing[self.current_global_row()])

    def __repr__(self) -> str:
        return f"ColumnCursor(position={self._position}, size={self.size()})"
