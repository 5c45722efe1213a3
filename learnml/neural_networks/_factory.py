"""
Build layers from a kind and dimension lists.
"""
import numpy as np

from ..base import require
from ._cnn import ConvolutionLayer, MaxPooling2DLayer
from .layers import (
    Layer,
    LayerKind,
    LeakyRectifierLayer,
    LinearLayer,
    SinusoidalLayer,
    TanhLayer,
)


def _single(dims, kind):
    require(len(dims) >= 1, f"{kind.value}: expected at least one dimension",
            error=ValueError)
    return int(np.prod(dims))


def make_layer(kind, dims, *extra):
    """
    Build a layer from its kind and dimension lists.

    Args:
        kind (LayerKind): Variant to build.
        dims (sequence of int): ``(n,)`` for identity, tanh and leaky
            rectifier (a multi-axis shape is flattened); ``(in, out)`` for
            linear; ``(num_sin[, num_identity])`` for sinusoidal; the input
            shape for convolution and max pooling.
        *extra: ``l1`` and ``l2`` ratio pairs for linear; filter and output
            shapes for convolution.

    Returns:
        Layer: The new layer.
    """
    kind = LayerKind(kind)
    dims = tuple(int(d) for d in dims)
    if kind is LayerKind.IDENTITY:
        return Layer(_single(dims, kind))
    if kind is LayerKind.TANH:
        return TanhLayer(_single(dims, kind))
    if kind is LayerKind.LEAKY_RECTIFIER:
        return LeakyRectifierLayer(_single(dims, kind))
    if kind is LayerKind.LINEAR:
        require(len(dims) == 2, f"linear: expected (in, out), got {dims}",
                error=ValueError)
        require(len(extra) <= 2, "linear: expected at most l1 and l2 ratios",
                error=ValueError)
        l1 = extra[0] if len(extra) > 0 else None
        l2 = extra[1] if len(extra) > 1 else None
        return LinearLayer(dims[0], dims[1], l1=l1, l2=l2)
    if kind is LayerKind.SINUSOIDAL:
        require(1 <= len(dims) <= 2,
                f"sinusoidal: expected (num_sin[, num_identity]), got {dims}",
                error=ValueError)
        return SinusoidalLayer(*dims)
    if kind is LayerKind.CONVOLUTION:
        require(len(extra) == 2,
                "convolution: expected input, filter and output dimensions",
                error=ValueError)
        return ConvolutionLayer(dims, extra[0], extra[1])
    if kind is LayerKind.MAX_POOLING_2D:
        return MaxPooling2DLayer(dims)
    raise NotImplementedError(
        f"{kind.value} layers are built from their units, not from dimensions")
