"""
neuralcore
==========

Dense and convolutional neural network layers implemented with NumPy.
Each layer supports:
- Forward inference through an element-wise activation
- Backward error propagation with in-place gradient descent
- Zero padding (valid / same) and strided kernels for convolution
- Saving and loading parameters as .npz archives
"""

from .activations import Sigmoid, Tanh, ReLU, LeakyReLU, Linear, get_activation
from .errors import DimensionMismatch
from .params import DenseParams, ConvParams, PaddingType
from .layers import Layer, LayerType, pad_matrix
from .serialization import save_layers, load_layers
from .utils import get_rng, get_model_summary

__version__ = "1.0.0"
__all__ = [
    # Activations
    'Sigmoid', 'Tanh', 'ReLU', 'LeakyReLU', 'Linear', 'get_activation',
    # Errors
    'DimensionMismatch',
    # Parameters
    'DenseParams', 'ConvParams', 'PaddingType',
    # Layers
    'Layer', 'LayerType', 'pad_matrix',
    # Persistence
    'save_layers', 'load_layers',
    # Utilities
    'get_rng', 'get_model_summary',
]
