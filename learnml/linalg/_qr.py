"""
Pivoted Householder QR and the least-squares solver built on it.

The solver sorts rows by descending infinity norm, then runs Householder
QR with column pivoting. A column whose remaining norm drops below
``|R[0, 0]| * ESP`` stops the factorisation and reports the rank found so
far. Full-rank systems are finished by back substitution; rank-deficient
ones by a second pivoted QR on the transpose of the truncated factor,
which picks the minimum-norm member of the solution family.
"""
from dataclasses import dataclass, field
from typing import List

import numpy as np

from ..base import require
from ._matrix import ESP


@dataclass
class QRFactorization:
    """
    Result of ``householder_qr``.

    Attributes:
        rank: Number of Householder steps performed before the remaining
            columns became negligible.
        factor: Row-sorted matrix whose entry ``factor[i, col_perm[j]]`` for
            ``i <= j < rank`` is ``R[i, j]``; entries below the diagonal of
            processed columns are zero.
        vectors: Unit Householder vectors; ``vectors[k]`` acts on rows
            ``k:`` and the reflector is ``I - 2 v v^T``.
        row_perm: Sorted row ``i`` is input row ``row_perm[i]``.
        col_perm: Pivoted column ``j`` is input column ``col_perm[j]``.
    """

    rank: int
    factor: np.ndarray
    vectors: List[np.ndarray] = field(default_factory=list)
    row_perm: np.ndarray = None
    col_perm: np.ndarray = None

    @property
    def r(self):
        """Upper-trapezoidal ``rank x cols`` factor in pivoted column order."""
        return self.factor[:self.rank][:, self.col_perm]

    def apply_qt(self, b):
        """Return ``Q^T b`` for ``b`` already in sorted row order."""
        b = np.array(b, dtype=float)
        for k, v in enumerate(self.vectors):
            b[k:] -= 2.0 * np.outer(v, v @ b[k:])
        return b

    def apply_q(self, b):
        """Return ``Q b`` in sorted row order."""
        b = np.array(b, dtype=float)
        for k in range(len(self.vectors) - 1, -1, -1):
            v = self.vectors[k]
            b[k:] -= 2.0 * np.outer(v, v @ b[k:])
        return b


def householder_qr(a, tol=ESP):
    """
    Factor ``a`` with row pre-sorting and column pivoting.

    Args:
        a (array-like): Matrix of shape (m, n). Not modified.
        tol (float): Relative threshold for rank detection.

    Returns:
        QRFactorization: Factors, permutations and detected rank.
    """
    a = np.array(a, dtype=float)
    require(a.ndim == 2, f"householder_qr: expected a 2-D matrix, got shape {a.shape}")
    m, n = a.shape

    row_perm = np.argsort(-np.max(np.abs(a), axis=1), kind="stable")
    a = a[row_perm]
    col_perm = np.arange(n)

    vectors = []
    rank = min(m, n)
    r00 = 0.0
    for k in range(min(m, n)):
        # Column with largest remaining 2-norm
        sub = a[k:, col_perm[k:]]
        col_norms = np.einsum("ij,ij->j", sub, sub)
        if not np.all(np.isfinite(col_norms)):
            bad = col_perm[k + int(np.argmin(np.isfinite(col_norms)))]
            raise ValueError(f"householder_qr: the norm of column {bad} is not a number")
        j = k + int(np.argmax(col_norms))
        max_norm = col_norms[j - k]

        if max_norm == 0.0 or max_norm < (r00 * tol) ** 2:
            rank = k
            break
        col_perm[[k, j]] = col_perm[[j, k]]

        c = col_perm[k]
        v = a[k:, c].copy()
        alpha = np.sqrt(max_norm)
        if v[0] < 0:
            v[0] -= alpha
            a[k, c] = alpha
        else:
            v[0] += alpha
            a[k, c] = -alpha
        v /= np.linalg.norm(v)
        a[k + 1:, c] = 0.0
        if k == 0:
            r00 = alpha

        rest = col_perm[k + 1:]
        if rest.size:
            block = a[k:, rest]
            block -= 2.0 * np.outer(v, v @ block)
            a[k:, rest] = block
        vectors.append(v)

    return QRFactorization(rank, a, vectors, row_perm, col_perm)


def _back_substitute(r, b):
    """Solve ``r x = b`` for square upper-triangular ``r``."""
    n = r.shape[0]
    x = np.zeros((n,) + b.shape[1:])
    for i in range(n - 1, -1, -1):
        x[i] = (b[i] - r[i, i + 1:] @ x[i + 1:]) / r[i, i]
    return x


def _forward_substitute(lower, b):
    """Solve ``lower x = b`` for square lower-triangular ``lower``."""
    n = lower.shape[0]
    x = np.zeros((n,) + b.shape[1:])
    for i in range(n):
        x[i] = (b[i] - lower[i, :i] @ x[:i]) / lower[i, i]
    return x


def least_squares(a, y, tol=ESP):
    """
    Minimum-norm solution of ``min ||a x - y||_2``.

    Args:
        a (array-like): Design matrix of shape (m, n) with ``m >= n``.
        y (array-like): Targets of shape (m,) or (m, t); every column of a
            2-D ``y`` is solved independently.
        tol (float): Relative threshold for rank detection.

    Returns:
        ndarray: Solution of shape (n,) or (n, t), matching ``y``.
    """
    a = np.asarray(a, dtype=float)
    y = np.asarray(y, dtype=float)
    require(a.ndim == 2, "least_squares: expected a 2-D design matrix")
    m, n = a.shape
    require(m >= n, "least_squares: expected at least as many rows as columns")
    require(y.shape[0] == m,
            f"least_squares: dimension mismatched: {m} rows in a, {y.shape[0]} in y")
    vector_target = y.ndim == 1
    if vector_target:
        y = y.reshape(-1, 1)

    qr = householder_qr(a, tol)
    rank = qr.rank
    b = qr.apply_qt(y[qr.row_perm])

    x = np.zeros((n, y.shape[1]))
    if rank == n:
        x[qr.col_perm] = _back_substitute(qr.r[:, :n], b[:n])
    elif rank > 0:
        # Minimum-norm member of {z : R z = b[:rank]} via QR of R^T.
        second = householder_qr(qr.r.T, tol)
        r2 = second.r[:, :second.rank]
        rhs = b[:rank][second.col_perm][:second.rank]
        u = np.zeros((n, y.shape[1]))
        u[:second.rank] = _forward_substitute(r2.T, rhs)
        z = np.zeros_like(u)
        z[second.row_perm] = second.apply_q(u)
        x[qr.col_perm] = z

    return x.ravel() if vector_target else x


def ols(features, labels, l2=0.0):
    """
    Ordinary least squares with a trailing bias column.

    The returned matrix has one row per feature plus a final bias row and
    one column per label, which is exactly the weight layout of a linear
    layer with ``in = features.cols`` and ``out = labels.cols``.

    Args:
        features (array-like): Matrix of shape (N, d).
        labels (array-like): Matrix of shape (N, k) or vector of shape (N,).
        l2 (float): Ridge penalty applied to the non-bias weights.

    Returns:
        ndarray: Weights of shape (d + 1, k).
    """
    features = np.asarray(features, dtype=float)
    labels = np.asarray(labels, dtype=float)
    if features.ndim == 1:
        features = features.reshape(-1, 1)
    if labels.ndim == 1:
        labels = labels.reshape(-1, 1)
    require(features.shape[0] == labels.shape[0],
            "ols: features and labels must have the same number of rows")
    require(l2 >= 0, f"ols: l2 must be non-negative, got {l2}", error=ValueError)

    rows, cols = features.shape
    design = np.ones((rows, cols + 1))
    design[:, :cols] = features
    targets = labels
    if l2 > 0:
        penalty = np.zeros((cols, cols + 1))
        penalty[:, :cols] = np.sqrt(l2) * np.eye(cols)
        design = np.vstack([design, penalty])
        targets = np.vstack([labels, np.zeros((cols, labels.shape[1]))])
    return least_squares(design, targets)
