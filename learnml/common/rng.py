"""
Seeded pseudo-random source shared by weight initialisation and shuffling.
"""
import numpy as np


class SeededRandom:
    """
    Explicitly seeded random generator.

    Every caller that needs randomness receives an instance of this class;
    nothing in the package reaches for global random state.

    Args:
        seed (int): Non-negative seed. The same seed always reproduces the
            same stream.
    """

    def __init__(self, seed):
        if seed < 0:
            raise ValueError(f"seed must be non-negative, got {seed}")
        self.seed = int(seed)
        self._rng = np.random.default_rng(self.seed)

    def next(self, bound):
        """Return a uniform integer in [0, bound)."""
        if bound <= 0:
            raise ValueError(f"bound must be positive, got {bound}")
        return int(self._rng.integers(bound))

    def uniform(self):
        """Return a uniform float in [0, 1)."""
        return float(self._rng.random())

    def normal(self, size=None):
        """
        Draw from the standard normal distribution.

        Args:
            size (int or tuple, optional): Output shape. A single float is
                returned when omitted.
        """
        if size is None:
            return float(self._rng.standard_normal())
        return self._rng.standard_normal(size)

    def __repr__(self):
        return f"SeededRandom(seed={self.seed})"
