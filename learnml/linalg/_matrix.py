"""
Row-major matrix with per-column metadata.
"""
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
import pandas as pd

from ..base import require
from ..common.rng import SeededRandom
from ._vector import permute

# Absolute tolerance used by Matrix.equal and the QR rank test.
ESP = 1e-15

COLUMN_KINDS = ("real", "nominal", "date")


@dataclass
class ColumnInfo:
    """Name and logical type of one matrix column."""

    name: str
    kind: str = "real"
    categories: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.kind not in COLUMN_KINDS:
            raise ValueError(
                f"Invalid column kind '{self.kind}'. Choose from {COLUMN_KINDS}.")

    def value_name(self, value) -> str:
        """Label of an enumerated nominal value, or the value as text."""
        if self.kind == "nominal" and 0 <= int(value) < len(self.categories):
            return self.categories[int(value)]
        return str(value)


class Matrix:
    """
    Dense ``rows x cols`` matrix stored row-major in one contiguous vector.

    ``row(i)`` and ``values`` are views into ``data``; numeric algorithms
    only touch the grid, while ``columns`` carries the metadata that the
    tabular I/O layer needs.

    Args:
        rows (int): Number of rows, must be positive.
        cols (int): Number of columns, must be positive.
        values (array-like, optional): ``rows * cols`` initial values in
            row-major order. Zero-filled when omitted.
    """

    def __init__(self, rows, cols, values=None):
        require(rows > 0 and cols > 0,
                f"Matrix: cannot create an empty matrix of size {rows}-by-{cols}",
                error=ValueError)
        self.rows = int(rows)
        self.cols = int(cols)
        if values is None:
            self.data = np.zeros(self.rows * self.cols)
        else:
            data = np.array(values, dtype=float).ravel()
            require(data.size == self.rows * self.cols,
                    f"Matrix: expected {self.rows * self.cols} values, got {data.size}")
            self.data = data
        self.relation = "default"
        self.columns = [ColumnInfo(f"col_{j}") for j in range(self.cols)]

    @classmethod
    def from_array(cls, array):
        """Copy a 1-D or 2-D array into a new matrix."""
        array = np.asarray(array, dtype=float)
        if array.ndim == 1:
            array = array.reshape(-1, 1)
        require(array.ndim == 2, "Matrix.from_array: expected a 2-D array")
        return cls(array.shape[0], array.shape[1], array)

    @classmethod
    def from_frame(cls, frame: pd.DataFrame, relation: Optional[str] = None):
        """
        Build a matrix from a DataFrame.

        Categorical and object columns become nominal columns holding the
        category codes; datetime columns become date columns holding Unix
        seconds; everything else is real.
        """
        m = cls(len(frame), len(frame.columns))
        m.relation = relation or "default"
        grid = m.values
        for j, name in enumerate(frame.columns):
            series = frame[name]
            if pd.api.types.is_datetime64_any_dtype(series):
                grid[:, j] = (series - pd.Timestamp(0)).dt.total_seconds().to_numpy()
                m.columns[j] = ColumnInfo(str(name), "date")
            elif (isinstance(series.dtype, pd.CategoricalDtype)
                  or not pd.api.types.is_numeric_dtype(series)):
                categorical = series.astype("category")
                grid[:, j] = categorical.cat.codes.to_numpy()
                m.columns[j] = ColumnInfo(
                    str(name), "nominal",
                    [str(c) for c in categorical.cat.categories])
            else:
                grid[:, j] = series.to_numpy(dtype=float)
                m.columns[j] = ColumnInfo(str(name))
        return m

    def to_frame(self) -> pd.DataFrame:
        """Inverse of ``from_frame``."""
        frame = {}
        for j, info in enumerate(self.columns):
            column = self.values[:, j]
            if info.kind == "nominal":
                frame[info.name] = pd.Categorical.from_codes(
                    column.astype(int), categories=info.categories)
            elif info.kind == "date":
                frame[info.name] = pd.to_datetime(column, unit="s")
            else:
                frame[info.name] = column.copy()
        return pd.DataFrame(frame)

    @property
    def shape(self):
        return self.rows, self.cols

    @property
    def values(self):
        """Writable 2-D view of the grid."""
        return self.data.reshape(self.rows, self.cols)

    def __array__(self, dtype=None, copy=None):
        if dtype is None:
            return self.values
        return self.values.astype(dtype)

    def __getitem__(self, key):
        return self.values[key]

    def __setitem__(self, key, value):
        self.values[key] = value

    def __len__(self):
        return self.rows

    def row(self, i):
        """Writable view of row ``i``."""
        return self.values[i]

    def col(self, j):
        """Copy of column ``j``."""
        return self.values[:, j].copy()

    def fill(self, value):
        self.data.fill(value)
        return self

    def fill_row(self, i, value):
        self.values[i, :] = value
        return self

    def fill_col(self, j, value):
        """Set every element of column ``j`` (negative indices allowed)."""
        self.values[:, j] = value
        return self

    def scale(self, c):
        self.data *= c
        return self

    def swap_rows(self, r1, r2):
        grid = self.values
        grid[[r1, r2]] = grid[[r2, r1]]
        return self

    def swap_cols(self, c1, c2):
        """Swap two columns together with their metadata."""
        c1, c2 = c1 % self.cols, c2 % self.cols
        grid = self.values
        grid[:, [c1, c2]] = grid[:, [c2, c1]]
        self.columns[c1], self.columns[c2] = self.columns[c2], self.columns[c1]
        return self

    def permute_rows(self, perm):
        """Reorder rows so that new row ``i`` is old row ``perm[i]``."""
        require(len(perm) == self.rows,
                "permute_rows: permutation is of the wrong size")
        permute(self.values, perm)
        return self

    def permute_cols(self, perm):
        """Reorder columns so that new column ``j`` is old column ``perm[j]``."""
        require(len(perm) == self.cols,
                "permute_cols: permutation is of the wrong size")
        permute(self.values.T, perm)
        self.columns = [self.columns[p] for p in perm]
        return self

    def transpose(self):
        t = Matrix(self.cols, self.rows, self.values.T)
        t.relation = self.relation
        return t

    def add_cols(self, n):
        """Append ``n`` zero columns, keeping existing data and metadata."""
        require(n > 0, "add_cols: n must be positive", error=ValueError)
        grid = np.zeros((self.rows, self.cols + n))
        grid[:, :self.cols] = self.values
        self.columns += [ColumnInfo(f"col_{j}")
                         for j in range(self.cols, self.cols + n)]
        self.cols += n
        self.data = grid.ravel()
        return self

    def copy(self):
        m = Matrix(self.rows, self.cols, self.data.copy())
        m.relation = self.relation
        m.columns = [ColumnInfo(c.name, c.kind, list(c.categories))
                     for c in self.columns]
        return m

    def equal(self, other, tol=ESP):
        """Elementwise comparison within an absolute tolerance."""
        other = np.asarray(other, dtype=float)
        if other.shape != self.shape:
            return False
        return bool(np.all(np.abs(self.values - other) <= tol))

    def random(self, seed=1982):
        """Fill with standard normal samples from a seeded generator."""
        self.data[:] = SeededRandom(seed).normal(self.data.size)
        return self

    def __repr__(self):
        header = ", ".join(f"{c.name}:{c.kind}" for c in self.columns)
        body = np.array2string(self.values, precision=6)
        return f"Matrix({self.rows}x{self.cols}, relation={self.relation!r}, [{header}])\n{body}"
