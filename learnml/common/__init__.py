"""Random source, batching helpers and evaluation utilities."""

from .rng import SeededRandom
from .utils import batch_bounds, batch_partition, fold_sizes, shuffled_indices
from .validation import count_misclassifications, repeated_cross_validation, sse

__all__ = [
    'SeededRandom',
    'batch_bounds',
    'batch_partition',
    'fold_sizes',
    'shuffled_indices',
    'sse',
    'count_misclassifications',
    'repeated_cross_validation'
]
