"""
Convolution and pooling layers over flat, first-axis-fastest tensors.
"""
import numpy as np

from ..base import require
from ..linalg import Tensor, convolve
from .layers import Layer, LayerKind


def _dims(dims, label):
    dims = tuple(int(d) for d in dims)
    require(len(dims) > 0 and all(d > 0 for d in dims),
            f"{label} must be a non-empty list of positive sizes, got {dims}",
            error=ValueError)
    return dims


class ConvolutionLayer(Layer):
    """
    N-dimensional convolution layer without bias.

    The input has ``dc`` axes; filter and output have ``dc + 1``, the last
    one counting filters. Filter ``i`` (the ``i``-th contiguous block of
    ``weight``) is correlated with the whole input with stride 1 and
    centred zero padding, producing the ``i``-th block of ``activation``.

    Args:
        in_dims (sequence of int): Input shape.
        filter_dims (sequence of int): Shape of one filter plus the filter
            count as last entry.
        out_dims (sequence of int): Output shape plus the filter count as
            last entry.

    Raises:
        ValueError: If the shapes are inconsistent, or if an axis has
            ``out - 1 + filter - in`` odd (the backward pass would then not
            be the exact transpose of the forward pass).
    """

    kind = LayerKind.CONVOLUTION

    def __init__(self, in_dims, filter_dims, out_dims,
                 activation=None, blame=None, weight=None):
        self.in_dims = _dims(in_dims, "in_dims")
        self.filter_dims = _dims(filter_dims, "filter_dims")
        self.out_dims_ = _dims(out_dims, "out_dims")
        dc = len(self.in_dims)
        require(dc + 1 == len(self.out_dims_) == len(self.filter_dims),
                "ConvolutionLayer: require len(in) + 1 == len(out) == len(filter), "
                f"got {dc + 1}, {len(self.out_dims_)}, {len(self.filter_dims)}",
                error=ValueError)
        require(self.filter_dims[-1] == self.out_dims_[-1],
                "ConvolutionLayer: require filter[-1] == out[-1], "
                f"got {self.filter_dims[-1]} != {self.out_dims_[-1]}",
                error=ValueError)
        for i in range(dc):
            require((self.out_dims_[i] - 1 + self.filter_dims[i] - self.in_dims[i]) % 2 == 0,
                    f"ConvolutionLayer: axis {i} needs symmetric padding, but "
                    f"out - 1 + filter - in = "
                    f"{self.out_dims_[i] - 1 + self.filter_dims[i] - self.in_dims[i]} is odd",
                    error=ValueError)

        self._in_size = int(np.prod(self.in_dims))
        self.num_filters = self.out_dims_[-1]
        self.filter_size = int(np.prod(self.filter_dims[:-1]))
        self.map_size = int(np.prod(self.out_dims_[:-1]))
        self._bind(activation, blame, weight, self.map_size * self.num_filters,
                   self.filter_size * self.num_filters)

    @property
    def name(self):
        return "Layer Convolution"

    @property
    def out_dims(self):
        return self.out_dims_

    @property
    def fan_in(self):
        return self.filter_size

    def _filter(self, buffer, i):
        return Tensor(buffer[i * self.filter_size:(i + 1) * self.filter_size],
                      self.filter_dims[:-1])

    def _map(self, buffer, i):
        return Tensor(buffer[i * self.map_size:(i + 1) * self.map_size],
                      self.out_dims_[:-1])

    def activate(self, x):
        self._check_input(x)
        inp = Tensor(np.ascontiguousarray(x, dtype=float), self.in_dims)
        self.activation.fill(0.0)
        for i in range(self.num_filters):
            convolve(inp, self._filter(self.weight, i), self._map(self.activation, i))
        return self.activation

    # Transposed convolution: flipped filters carry blame back to the input
    def backprop(self, prev_blame):
        self._check_prev_blame(prev_blame)
        prev_blame.fill(0.0)
        out = Tensor(prev_blame, self.in_dims)
        for i in range(self.num_filters):
            convolve(self._map(self.blame, i), self._filter(self.weight, i), out,
                     flip_filter=True)
        return prev_blame

    # gradient_i += correlation of the input with blame_i
    def update_gradient(self, x, gradient):
        self._check_input(x)
        self._check_gradient(gradient)
        inp = Tensor(np.ascontiguousarray(x, dtype=float), self.in_dims)
        for i in range(self.num_filters):
            convolve(inp, self._map(self.blame, i), self._filter(gradient, i))
        return gradient

    def __repr__(self):
        return (f"ConvolutionLayer(in_dims={self.in_dims}, "
                f"filter_dims={self.filter_dims}, out_dims={self.out_dims_})")


class MaxPooling2DLayer(Layer):
    """
    2x2 max pooling with stride 2 over the first two axes.

    Remaining axes (channels) are pooled independently. The winning input
    index of each output cell is recorded during ``activate`` so that
    ``backprop`` routes each output blame to exactly that input.

    Args:
        in_dims (sequence of int): Input shape; the first two sizes must be
            even.
    """

    kind = LayerKind.MAX_POOLING_2D

    def __init__(self, in_dims, activation=None, blame=None):
        self.in_dims = _dims(in_dims, "in_dims")
        require(len(self.in_dims) >= 2,
                "MaxPooling2DLayer: expected at least two input axes",
                error=ValueError)
        require(self.in_dims[0] % 2 == 0 and self.in_dims[1] % 2 == 0,
                f"MaxPooling2DLayer: first two axes must be even, got {self.in_dims}",
                error=ValueError)
        d0, d1 = self.in_dims[0], self.in_dims[1]
        self.out_dims_ = (d0 // 2, d1 // 2) + self.in_dims[2:]
        self._in_size = int(np.prod(self.in_dims))
        out_size = self._in_size // 4

        # Flat input indices of the four window cells of every output cell,
        # in scan order (first axis fastest).
        r, c, rest = np.unravel_index(
            np.arange(out_size), (d0 // 2, d1 // 2, out_size // (d0 * d1 // 4)),
            order="F")
        corner = 2 * r + d0 * (2 * c + d1 * rest)
        self._windows = corner[:, None] + np.array([0, 1, d0, d0 + 1])
        self._bind(activation, blame, None, out_size, 0)

    def _allocate_state(self):
        self.maxid = np.zeros(self.activation.size, dtype=int)

    @property
    def name(self):
        return "Layer Max Pooling 2D"

    @property
    def out_dims(self):
        return self.out_dims_

    def activate(self, x):
        self._check_input(x)
        candidates = np.asarray(x, dtype=float)[self._windows]
        winner = np.argmax(candidates, axis=1)
        rows = np.arange(winner.size)
        self.maxid[:] = self._windows[rows, winner]
        self.activation[:] = candidates[rows, winner]
        return self.activation

    def backprop(self, prev_blame):
        self._check_prev_blame(prev_blame)
        prev_blame.fill(0.0)
        prev_blame[self.maxid] = self.blame
        return prev_blame

    def __repr__(self):
        return f"MaxPooling2DLayer(in_dims={self.in_dims})"
