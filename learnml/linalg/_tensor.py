"""
N-dimensional view over a flat vector, and the correlation kernel used by
the convolution layer.

Tensors use first-axis-fastest ordering: element ``(i0, i1, ..., ik)`` lives
at ``i0 + d0 * (i1 + d1 * (i2 + ...))``. With this ordering the last axis is
the slowest, so consecutive blocks along it (one per filter) are contiguous
slices of the underlying vector.
"""
import itertools

import numpy as np

from ..base import require


class Tensor:
    """
    Wrap a caller-owned vector with a multi-dimensional shape.

    The tensor never copies: writes through ``array`` land in ``data``.

    Args:
        data (ndarray): One-dimensional float buffer.
        dims (sequence of int): Shape whose product equals ``len(data)``.
    """

    def __init__(self, data, dims):
        dims = tuple(int(d) for d in dims)
        require(len(dims) > 0 and all(d > 0 for d in dims),
                f"Tensor: dimensions must be positive, got {dims}")
        size = int(np.prod(dims))
        require(data.ndim == 1 and data.size == size,
                f"Tensor: size mismatched: Tensor ({size}) != Vector ({data.size})")
        require(data.flags.c_contiguous,
                "Tensor: data must be a contiguous vector", error=ValueError)
        self.data = data
        self.dims = dims

    @property
    def ndim(self):
        return len(self.dims)

    @property
    def array(self):
        """N-dimensional view of ``data``."""
        return self.data.reshape(self.dims, order="F")

    def __repr__(self):
        return f"Tensor(dims={self.dims})"


def _half(n):
    """Integer half rounded toward zero."""
    return n // 2 if n >= 0 else -((-n) // 2)


def conv_padding(in_dim, filter_dim, out_dim, stride=1):
    """Leading zero padding that centres ``out_dim`` outputs over ``in_dim`` inputs."""
    return _half(stride * (out_dim - 1) + filter_dim - in_dim)


def convolve(inp, filt, out, flip_filter=False, stride=1):
    """
    Accumulate the correlation of ``inp`` with ``filt`` into ``out``.

    For every output position ``x`` and filter offset ``k``::

        out[x] += filt[k] * inp[stride * x + k - padding]

    where ``padding`` comes from ``conv_padding`` per axis and input
    positions outside ``inp`` read as zero. With ``flip_filter`` the filter
    is reversed along every axis, turning the correlation into a true
    convolution.

    Args:
        inp (Tensor): Input tensor.
        filt (Tensor): Filter tensor with the same number of axes.
        out (Tensor): Output tensor, accumulated in place.
        flip_filter (bool): Reverse the filter along every axis.
        stride (int): Step between consecutive output positions.
    """
    dc = inp.ndim
    require(dc == filt.ndim and dc == out.ndim,
            "convolve: expected tensors with the same number of dimensions")
    require(stride > 0, f"convolve: stride must be positive, got {stride}",
            error=ValueError)

    pads = []
    slices_base = []
    for i in range(dc):
        p = conv_padding(inp.dims[i], filt.dims[i], out.dims[i], stride)
        reach = stride * (out.dims[i] - 1) + filt.dims[i]
        before = max(p, 0)
        after = max(reach - p - inp.dims[i], 0)
        pads.append((before, after))
        slices_base.append(before - p)

    padded = np.pad(inp.array, pads, mode="constant")
    kernel = filt.array
    if flip_filter:
        kernel = np.flip(kernel)
    target = out.array

    span = [stride * (o - 1) + 1 for o in out.dims]
    for k in itertools.product(*(range(f) for f in filt.dims)):
        weight = kernel[k]
        if weight == 0.0:
            continue
        window = tuple(
            slice(base + ki, base + ki + s, stride)
            for base, ki, s in zip(slices_base, k, span))
        target += weight * padded[window]
    return out
