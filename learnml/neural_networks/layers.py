"""
Neural network layers implementation.

Every layer owns (or, when wrapped, borrows) three flat buffers:

- ``activation``: output of the last ``activate`` call,
- ``blame``: error signal written by the downstream layer, same length as
  ``activation``,
- ``weight``: learnable parameters, empty for unparametrised layers.

Buffer sizes are fixed at construction. ``wrap`` builds a layer of the same
configuration over caller-supplied buffers so that composite layers can let
their units write straight into slices of one contiguous arena.
"""
import copy
from enum import Enum

import numpy as np

from ..base import DimensionError, require
from ..linalg import ols


class LayerKind(Enum):
    """Closed set of layer variants."""

    IDENTITY = "identity"
    LINEAR = "linear"
    TANH = "tanh"
    LEAKY_RECTIFIER = "leaky_rectifier"
    SINUSOIDAL = "sinusoidal"
    CONVOLUTION = "convolution"
    MAX_POOLING_2D = "max_pooling_2d"
    COMPOSITE = "composite"
    STACK = "stack"


def _buffer(buffer, size, label):
    """Validate a borrowed buffer or allocate a zeroed one."""
    if buffer is None:
        return np.zeros(size)
    require(isinstance(buffer, np.ndarray) and buffer.ndim == 1,
            f"{label} must be a one-dimensional numpy array")
    require(buffer.size == size,
            f"{label} has length {buffer.size}, expected {size}")
    return buffer


class Layer:
    """
    Base class for all neural network layers; on its own it is the identity.

    Args:
        size (int): Number of inputs and outputs.
        activation (ndarray, optional): Borrowed activation buffer.
        blame (ndarray, optional): Borrowed blame buffer.
    """

    kind = LayerKind.IDENTITY

    def __init__(self, size, activation=None, blame=None):
        require(size > 0, f"layer size must be positive, got {size}",
                error=ValueError)
        self._in_size = int(size)
        self._bind(activation, blame, None, int(size), 0)

    def _bind(self, activation, blame, weight, out_size, weight_size):
        self.activation = _buffer(activation, out_size, "activation")
        self.blame = _buffer(blame, out_size, "blame")
        self.weight = _buffer(weight, weight_size, "weight")
        self._allocate_state()

    def _allocate_state(self):
        """Allocate per-instance scratch buffers used between calls."""

    @property
    def name(self):
        return "Identity Layer"

    @property
    def in_size(self):
        return self._in_size

    @property
    def out_size(self):
        return self.activation.size

    @property
    def out_dims(self):
        return (self.out_size,)

    @property
    def fan_in(self):
        """Inputs feeding each output, used to scale initial weights."""
        return self.in_size

    def _check_input(self, x):
        if len(x) != self.in_size:
            raise DimensionError(
                f"{self.name}: expected input of size {self.in_size}, got {len(x)}")

    def _check_prev_blame(self, prev_blame):
        if len(prev_blame) != self.in_size:
            raise DimensionError(
                f"{self.name}: expected blame buffer of size {self.in_size}, "
                f"got {len(prev_blame)}")

    def _check_gradient(self, gradient):
        if len(gradient) != self.weight.size:
            raise DimensionError(
                f"{self.name}: expected gradient of size {self.weight.size}, "
                f"got {len(gradient)}")

    def activate(self, x):
        """
        Compute and cache this layer's output.

        Args:
            x (ndarray): Input vector of length ``in_size``.

        Returns:
            ndarray: The ``activation`` buffer.
        """
        self._check_input(x)
        self.activation[:] = x
        return self.activation

    def backprop(self, prev_blame):
        """
        Write the blame for this layer's input into ``prev_blame``.

        Args:
            prev_blame (ndarray): Buffer of length ``in_size``, overwritten.

        Returns:
            ndarray: ``prev_blame``.
        """
        self._check_prev_blame(prev_blame)
        prev_blame[:] = self.blame
        return prev_blame

    def update_gradient(self, x, gradient):
        """
        Add the weight gradient for input ``x`` into ``gradient``.

        Unparametrised layers leave ``gradient`` untouched.
        """
        self._check_gradient(gradient)
        return gradient

    def init_weight(self, rng):
        """Draw every weight from ``N(0, 1) * max(1 / fan_in, 0.03)``."""
        if self.weight.size:
            scale = max(1.0 / self.fan_in, 0.03)
            self.weight[:] = scale * rng.normal(self.weight.size)

    def wrap(self, activation, blame, weight=None):
        """
        Return a layer with this configuration over borrowed buffers.

        Buffers are shared, not copied. ``weight`` may be omitted for
        unparametrised layers or to get a fresh zeroed weight.
        """
        clone = copy.copy(self)
        clone._bind(activation, blame, weight, self.out_size, self.weight.size)
        return clone

    def copy(self):
        """Independent copy, including buffer contents."""
        return self.wrap(self.activation.copy(), self.blame.copy(),
                         self.weight.copy())

    def __repr__(self):
        return (f"{type(self).__name__}(in_size={self.in_size}, "
                f"out_size={self.out_size}, weights={self.weight.size})")


def _ratio(value, label):
    """Accept a penalty as a float or as a (numerator, denominator) pair."""
    if value is None:
        return 0.0
    if isinstance(value, (tuple, list)):
        require(len(value) == 2, f"{label} must be a (numerator, denominator) pair",
                error=ValueError)
        num, den = value
        require(den != 0, f"{label} denominator must be non-zero", error=ValueError)
        value = num / den
    value = float(value)
    require(value >= 0, f"{label} must be non-negative, got {value}",
            error=ValueError)
    return value


class LinearLayer(Layer):
    """
    Affine layer using the bias trick: ``activation = [x, 1] @ W``.

    ``W`` has ``in_size + 1`` rows and ``out_size`` columns and is stored
    row-major in ``weight``; the last row is the bias.

    Optional L1/L2 penalties shrink the non-bias weights during
    ``update_gradient``. Each is given as a float or as a ratio of two
    integers, e.g. ``l2=(3, 2)``.

    Args:
        in_size (int): Number of inputs.
        out_size (int): Number of outputs.
        l1 (float or tuple, optional): L1 penalty.
        l2 (float or tuple, optional): L2 penalty.
    """

    kind = LayerKind.LINEAR

    def __init__(self, in_size, out_size, l1=None, l2=None,
                 activation=None, blame=None, weight=None):
        require(in_size > 0 and out_size > 0,
                f"LinearLayer: sizes must be positive, got {in_size}x{out_size}",
                error=ValueError)
        self._in_size = int(in_size)
        self.l1 = _ratio(l1, "l1")
        self.l2 = _ratio(l2, "l2")
        self._bind(activation, blame, weight, int(out_size),
                   (int(in_size) + 1) * int(out_size))

    @property
    def name(self):
        return "Layer Linear"

    @property
    def weight_matrix(self):
        """``(in_size + 1, out_size)`` view of ``weight``."""
        return self.weight.reshape(self.in_size + 1, self.out_size)

    def activate(self, x):
        self._check_input(x)
        w = self.weight_matrix
        self.activation[:] = x @ w[:-1] + w[-1]
        return self.activation

    # prev_blame = W^T blame, dropping the bias row
    def backprop(self, prev_blame):
        self._check_prev_blame(prev_blame)
        prev_blame[:] = self.weight_matrix[:-1] @ self.blame
        return prev_blame

    def update_gradient(self, x, gradient):
        self._check_input(x)
        self._check_gradient(gradient)
        g = gradient.reshape(self.in_size + 1, self.out_size)
        g[:-1] += np.outer(x, self.blame)
        g[-1] += self.blame
        if self.l2:
            g[:-1] -= self.l2 * self.weight_matrix[:-1]
        if self.l1:
            g[:-1] -= self.l1 * np.sign(self.weight_matrix[:-1])
        return gradient

    def fit(self, features, labels):
        """
        Set the weight to the closed-form least-squares solution.

        The L2 penalty, if any, is applied as a ridge term; the bias is
        never penalised.
        """
        features = np.asarray(features, dtype=float)
        labels = np.asarray(labels, dtype=float)
        if labels.ndim == 1:
            labels = labels.reshape(-1, 1)
        require(features.ndim == 2 and features.shape[1] == self.in_size,
                f"LinearLayer.fit: expected {self.in_size} feature columns")
        require(labels.shape[1] == self.out_size,
                f"LinearLayer.fit: expected {self.out_size} label columns")
        self.weight[:] = ols(features, labels, l2=self.l2).ravel()
        return self

    def __repr__(self):
        return (f"LinearLayer(in_size={self.in_size}, out_size={self.out_size}, "
                f"l1={self.l1}, l2={self.l2})")


class TanhLayer(Layer):
    """Hyperbolic tangent activation layer."""

    kind = LayerKind.TANH

    @property
    def name(self):
        return "Layer Tanh"

    def activate(self, x):
        self._check_input(x)
        np.tanh(x, out=self.activation)
        return self.activation

    def backprop(self, prev_blame):
        """Tanh derivative: 1 - tanh²(x)."""
        self._check_prev_blame(prev_blame)
        np.multiply(1.0 - self.activation ** 2, self.blame, out=prev_blame)
        return prev_blame


class LeakyRectifierLayer(Layer):
    """Leaky rectifier: ``x`` for ``x >= 0``, ``0.01 x`` otherwise."""

    kind = LayerKind.LEAKY_RECTIFIER
    slope = 0.01

    @property
    def name(self):
        return "Layer Leaky Rectifier"

    def _allocate_state(self):
        # inputs below zero on the last activate, tiny ones underflow to -0.0
        self.negative = np.zeros(self.activation.size, dtype=bool)

    def activate(self, x):
        self._check_input(x)
        x = np.asarray(x, dtype=float)
        np.less(x, 0.0, out=self.negative)
        np.copyto(self.activation, x)
        self.activation[self.negative] *= self.slope
        return self.activation

    def backprop(self, prev_blame):
        self._check_prev_blame(prev_blame)
        np.copyto(prev_blame, self.blame)
        prev_blame[self.negative] *= self.slope
        return prev_blame


class SinusoidalLayer(Layer):
    """
    Sine on the first ``num_sin`` units, identity on the remaining ones.

    Args:
        num_sin (int): Number of sinusoidal units.
        num_identity (int): Number of pass-through units.
    """

    kind = LayerKind.SINUSOIDAL

    def __init__(self, num_sin, num_identity=0, activation=None, blame=None):
        require(num_sin >= 0 and num_identity >= 0 and num_sin + num_identity > 0,
                "SinusoidalLayer: unit counts must be non-negative and not both zero",
                error=ValueError)
        self.num_sin = int(num_sin)
        self._in_size = self.num_sin + int(num_identity)
        self._bind(activation, blame, None, self._in_size, 0)

    def _allocate_state(self):
        # cos(x) of the sinusoidal units, cached for backprop
        self.derivative = np.zeros(self.num_sin)

    @property
    def name(self):
        return "Layer Sinusoidal"

    def activate(self, x):
        self._check_input(x)
        n = self.num_sin
        np.sin(x[:n], out=self.activation[:n])
        np.cos(x[:n], out=self.derivative)
        self.activation[n:] = x[n:]
        return self.activation

    def backprop(self, prev_blame):
        self._check_prev_blame(prev_blame)
        n = self.num_sin
        np.multiply(self.blame[:n], self.derivative, out=prev_blame[:n])
        prev_blame[n:] = self.blame[n:]
        return prev_blame
