# pylint: disable=missing-docstring
import numpy as np

from ..base import require
from .rng import SeededRandom
from .utils import fold_sizes, shuffled_indices

CV_SEED = 1982


def _as_rows(features, labels):
    features = np.asarray(features, dtype=float)
    labels = np.asarray(labels, dtype=float)
    if features.ndim == 1:
        features = features.reshape(-1, 1)
    if labels.ndim == 1:
        labels = labels.reshape(-1, 1)
    require(features.shape[0] == labels.shape[0],
            f"features and labels must have the same number of rows, "
            f"got {features.shape[0]} and {labels.shape[0]}")
    return features, labels


def sse(learner, features, labels) -> float:
    """
    Sum of squared prediction errors over every row and label column.

    Args:
        learner: Object with ``predict(row)``.
        features (array-like): Matrix of shape (N, d).
        labels (array-like): Matrix of shape (N, k).
    """
    features, labels = _as_rows(features, labels)
    total = 0.0
    for row, label in zip(features, labels):
        diff = np.asarray(learner.predict(row), dtype=float).ravel() - label
        total += float(np.dot(diff, diff))
    return total


def count_misclassifications(learner, features, labels) -> int:
    """Number of label entries whose prediction is not exactly equal."""
    features, labels = _as_rows(features, labels)
    mistakes = 0
    for row, label in zip(features, labels):
        pred = np.asarray(learner.predict(row), dtype=float).ravel()
        mistakes += int(np.count_nonzero(pred != label))
    return mistakes


def repeated_cross_validation(learner, features, labels, repetitions=1, folds=10,
                              rng=None, config=None):
    """
    Repeated n-fold cross-validation.

    Each repetition reshuffles the row order (the shuffles accumulate),
    splits it into ``folds`` consecutive folds whose sizes differ by at most
    one, trains on all other folds and sums the squared error on the
    held-out fold.

    Args:
        learner: Object with ``train(features, labels)`` and ``predict(row)``.
        features (array-like): Matrix of shape (N, d).
        labels (array-like): Matrix of shape (N, k).
        repetitions (int): Number of shuffled repetitions.
        folds (int): Number of folds, between 1 and N. With a single fold
            the learner is trained and tested on the whole data.
        rng (SeededRandom, optional): Shuffle source, seeded with 1982 when
            omitted.
        config (dict, optional): Passed to ``learner.train`` when given.

    Returns:
        ndarray: RMSE of each repetition, ``sqrt(total SSE / N)``.
    """
    features, labels = _as_rows(features, labels)
    require(repetitions >= 1, f"repetitions must be at least 1, got {repetitions}",
            error=ValueError)
    rows = features.shape[0]
    sizes = fold_sizes(rows, folds)
    if rng is None:
        rng = SeededRandom(CV_SEED)
    train_args = () if config is None else (config,)

    order = np.arange(rows)
    rmse = np.zeros(repetitions)
    for rep in range(repetitions):
        order = order[shuffled_indices(rows, rng)]
        total = 0.0
        start = 0
        for size in sizes:
            end = start + size
            test = order[start:end]
            train = np.concatenate([order[:start], order[end:]])
            if train.size == 0:
                train = test
            learner.train(features[train], labels[train], *train_args)
            total += sse(learner, features[test], labels[test])
            start = end
        rmse[rep] = np.sqrt(total / rows)
    return rmse
