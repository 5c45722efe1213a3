"""
Vectors, matrices, tensors and the least-squares solver.
"""
from ._vector import new_vector, norm, outer, permute
from ._matrix import ESP, ColumnInfo, Matrix
from ._tensor import Tensor, conv_padding, convolve
from ._qr import QRFactorization, householder_qr, least_squares, ols

__all__ = [
    'ESP',
    'new_vector',
    'norm',
    'outer',
    'permute',
    'ColumnInfo',
    'Matrix',
    'Tensor',
    'conv_padding',
    'convolve',
    'QRFactorization',
    'householder_qr',
    'least_squares',
    'ols'
]
