"""
Neural networks module: layers and the network that trains them.
"""
from .layers import (
    Layer,
    LayerKind,
    LinearLayer,
    TanhLayer,
    LeakyRectifierLayer,
    SinusoidalLayer
)
from ._cnn import (
    ConvolutionLayer,
    MaxPooling2DLayer
)
from ._composite import (
    CompositeLayer,
    StackLayer
)
from ._factory import make_layer
from ._network import NeuralNetwork

__all__ = [
    'Layer',
    'LayerKind',
    'LinearLayer',
    'TanhLayer',
    'LeakyRectifierLayer',
    'SinusoidalLayer',
    'ConvolutionLayer',
    'MaxPooling2DLayer',
    'CompositeLayer',
    'StackLayer',
    'make_layer',
    'NeuralNetwork'
]
