import numpy as np


def batch_partition(rows, batch_size):
    """
    Split ``rows`` samples into batches whose sizes differ by at most one.

    Starting from the requested size, the batch size grows until the
    leftover rows can be handed out one each to distinct batches.

    Args:
        rows (int): Number of samples, must be positive.
        batch_size (int): Requested batch size, clamped to ``rows``.

    Returns:
        tuple: ``(num_batches, batch_size, remainder)`` where the first
        ``remainder`` batches hold ``batch_size + 1`` rows and the rest hold
        ``batch_size`` rows, so ``num_batches * batch_size + remainder == rows``
        and ``remainder < num_batches``.
    """
    if rows <= 0:
        raise ValueError(f"rows must be positive, got {rows}")
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    batch_size = min(int(batch_size), rows)
    num_batches = rows // batch_size
    remainder = rows % batch_size
    while remainder >= num_batches:
        batch_size += 1
        num_batches = rows // batch_size
        remainder = rows % batch_size
    return num_batches, batch_size, remainder


def batch_bounds(rows, batch_size):
    """Yield ``(start, end)`` row ranges for the partition of ``rows``."""
    num_batches, batch_size, remainder = batch_partition(rows, batch_size)
    start = 0
    for b in range(num_batches):
        end = start + batch_size + (1 if b < remainder else 0)
        yield start, end
        start = end


def fold_sizes(rows, folds):
    """Sizes of ``folds`` consecutive folds covering ``rows`` samples."""
    if folds <= 0 or folds > rows:
        raise ValueError(f"folds must be in [1, {rows}], got {folds}")
    sizes = np.full(folds, rows // folds, dtype=int)
    sizes[: rows % folds] += 1
    return sizes


def shuffled_indices(rows, rng):
    """Fisher-Yates permutation of ``range(rows)`` drawn from ``rng``."""
    indices = np.arange(rows)
    for i in range(rows - 1, 0, -1):
        j = rng.next(i + 1)
        indices[i], indices[j] = indices[j], indices[i]
    return indices
