"""
Dense vector helpers.

Vectors are plain one-dimensional float64 numpy arrays. Slicing a vector
returns a view that aliases the parent buffer; ``copy()`` or
``new_vector`` return owning arrays.
"""
import numpy as np

from ..base import require


def new_vector(size, values=None):
    """
    Allocate an owning float64 vector.

    Args:
        size (int): Number of elements.
        values (array-like, optional): Initial contents, copied. Must have
            exactly ``size`` elements when given.
    """
    if size < 0:
        raise ValueError(f"vector size must be non-negative, got {size}")
    if values is None:
        return np.zeros(size)
    v = np.array(values, dtype=float).ravel()
    require(v.size == size,
            f"new_vector: expected {size} values, got {v.size}")
    return v


def norm(v, p=2):
    """
    p-norm of a vector, where ``p == 0`` selects the infinity norm.

    Args:
        v (ndarray): Input vector.
        p (int): 0, 1, 2, or any other positive order.
    """
    v = np.asarray(v, dtype=float)
    if v.size == 0:
        return 0.0
    if p == 0:
        return float(np.max(np.abs(v)))
    if p == 1:
        return float(np.sum(np.abs(v)))
    if p == 2:
        return float(np.sqrt(np.dot(v, v)))
    return float(np.sum(np.abs(v) ** p) ** (1.0 / p))


def outer(a, b):
    """Outer product ``a b^T`` as a row-major matrix."""
    return np.outer(np.asarray(a, dtype=float), np.asarray(b, dtype=float))


def permute(v, perm):
    """
    Reorder ``v`` in place so that ``v_new[i] == v_old[perm[i]]``.

    Args:
        v (ndarray): Vector (or leading axis of an array) to reorder.
        perm (array-like): Permutation of ``range(len(v))``.
    """
    perm = np.asarray(perm, dtype=int)
    require(perm.shape == (len(v),),
            f"permute: permutation has length {perm.size}, expected {len(v)}")
    require(np.array_equal(np.sort(perm), np.arange(len(v))),
            "permute: not a permutation", error=ValueError)
    v[...] = v[perm]
    return v
