"""
Layer Parameter Containers
==========================

Each layer owns exactly one of these containers. A container holds the
trainable values of one transform together with the caches filled by the most
recent forward pass, which the backward pass reads back.

- DenseParams: weight matrix + bias vector of a fully connected transform
- ConvParams: square kernel + scalar bias of a single-channel 2D convolution,
  together with the padding logic that prepares its working buffer

All trainable values are initialized uniformly in [-1.0, 1.0).
"""

from enum import Enum

import numpy as np

from .errors import DimensionMismatch
from .utils import get_rng


class PaddingType(Enum):
    """
    Border handling for convolution.

    VALID: no padding, the output shrinks by (kernel - 1)
    SAME: zero padding so a stride-1 convolution keeps the input size
    """

    VALID = 'valid'
    SAME = 'same'

    @classmethod
    def from_value(cls, value):
        """Accept a PaddingType or its (case-insensitive) name."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            available = ', '.join(p.value for p in cls)
            raise ValueError(f"Unknown padding '{value}'. Available: {available}") from None


class DenseParams:
    """
    Parameters of a fully connected transform.

    Args:
        nodes_in: Number of input nodes
        nodes_out: Number of output nodes
        rng: Random source for init (see utils.get_rng)

    Shapes:
        weights: (nodes_in, nodes_out), row = input node, column = output node
        biases: (nodes_out,)
        inputs: (nodes_in,) after a forward pass, empty before
        outputs: (nodes_out,) after a forward pass, empty before
    """

    def __init__(self, nodes_in, nodes_out, rng=None):
        if nodes_in <= 0 or nodes_out <= 0:
            raise ValueError(f"Node counts must be positive, got ({nodes_in}, {nodes_out})")

        self.nodes_in = int(nodes_in)
        self.nodes_out = int(nodes_out)

        self.weights = np.zeros((self.nodes_in, self.nodes_out))
        self.biases = np.zeros(self.nodes_out)

        # Caches for backward pass
        self.inputs = np.zeros(0)
        self.outputs = np.zeros(0)

        self.init(rng)

    def init(self, rng=None):
        """Draw every weight and bias independently from U[-1, 1)."""
        rng = get_rng(rng)
        self.weights[...] = rng.uniform(-1.0, 1.0, size=self.weights.shape)
        self.biases[...] = rng.uniform(-1.0, 1.0, size=self.biases.shape)

    def reset(self):
        """Clear the forward-pass caches."""
        self.inputs = np.zeros(0)
        self.outputs = np.zeros(0)

    def trainable(self):
        return {'weights': self.weights, 'biases': self.biases}

    def to_dict(self):
        """Structural copy of every field."""
        return {
            'nodes_in': self.nodes_in,
            'nodes_out': self.nodes_out,
            'weights': self.weights.copy(),
            'biases': self.biases.copy(),
            'inputs': self.inputs.copy(),
            'outputs': self.outputs.copy(),
        }

    @classmethod
    def from_dict(cls, data):
        """Rebuild from to_dict() output without drawing random values."""
        params = cls.__new__(cls)
        params.nodes_in = int(data['nodes_in'])
        params.nodes_out = int(data['nodes_out'])
        params.weights = np.array(data['weights'], dtype=np.float64)
        params.biases = np.array(data['biases'], dtype=np.float64)
        params.inputs = np.array(data.get('inputs', []), dtype=np.float64)
        params.outputs = np.array(data.get('outputs', []), dtype=np.float64)

        if params.weights.shape != (params.nodes_in, params.nodes_out):
            raise DimensionMismatch(
                f"weights shape {params.weights.shape} does not match "
                f"({params.nodes_in}, {params.nodes_out})")
        if params.biases.shape != (params.nodes_out,):
            raise DimensionMismatch(
                f"biases shape {params.biases.shape} does not match ({params.nodes_out},)")

        return params

    def __repr__(self):
        return f"DenseParams({self.nodes_in}, {self.nodes_out})"


class ConvParams:
    """
    Parameters of a single-channel 2D convolution.

    Args:
        kernel: Side length of the square kernel
        padding_type: PaddingType or 'valid' / 'same'
        stride: Step between kernel placements (default: 1)
        rng: Random source for init (see utils.get_rng)

    Fields:
        weights: (kernel, kernel)
        bias: scalar shared by every output cell
        inputs: last raw 2D input
        data: padded working buffer the kernel slides over
        outputs: last activated output grid

    Output size for a padded buffer of H x W:
        out_height = (H - kernel) // stride + 1
        out_width = (W - kernel) // stride + 1
    """

    def __init__(self, kernel, padding_type=PaddingType.VALID, stride=1, rng=None):
        if kernel < 1:
            raise ValueError(f"kernel must be >= 1, got {kernel}")
        if stride < 1:
            raise ValueError(f"stride must be >= 1, got {stride}")

        self.kernel = int(kernel)
        self.stride = int(stride)
        self.padding_type = PaddingType.from_value(padding_type)

        self.weights = np.zeros((self.kernel, self.kernel))
        self.bias = 0.0

        # Caches for backward pass
        self.inputs = np.zeros((0, 0))
        self.data = np.zeros((0, 0))
        self.outputs = np.zeros((0, 0))

        self.init(rng)

    def init(self, rng=None):
        """Draw every kernel weight and the bias from U[-1, 1)."""
        rng = get_rng(rng)
        self.weights[...] = rng.uniform(-1.0, 1.0, size=self.weights.shape)
        self.bias = float(rng.uniform(-1.0, 1.0))

    @property
    def padding(self):
        """(before, after) zero rows/cols added on each axis."""
        if self.padding_type is PaddingType.VALID:
            return (0, 0)
        total = self.kernel - 1
        return (total // 2, total - total // 2)

    def pad(self, inputs):
        """
        Padded copy of a 2D grid.

        VALID copies the input unchanged. SAME adds kernel - 1 zero rows and
        columns, the odd one (even kernels) going to the bottom/right.
        """
        before, after = self.padding
        if before == 0 and after == 0:
            return np.array(inputs, dtype=np.float64)
        return np.pad(inputs, ((before, after), (before, after)), mode='constant')

    def add_padding(self):
        """Build the working buffer from the cached input."""
        self.data = self.pad(self.inputs)
        return self.data

    def get_output_dims(self, data=None):
        """
        Number of valid kernel placements over the working buffer.

        Args:
            data: Padded grid to measure (default: the cached buffer)

        Returns:
            (width, height) of the output grid
        """
        h_in, w_in = (self.data if data is None else data).shape
        if h_in < self.kernel or w_in < self.kernel:
            raise DimensionMismatch(
                f"kernel {self.kernel}x{self.kernel} does not fit in padded input "
                f"{h_in}x{w_in}")

        w_out = (w_in - self.kernel) // self.stride + 1
        h_out = (h_in - self.kernel) // self.stride + 1
        return (w_out, h_out)

    def trainable(self):
        return {'weights': self.weights, 'bias': self.bias}

    def to_dict(self):
        return {
            'kernel': self.kernel,
            'stride': self.stride,
            'padding_type': self.padding_type.value,
            'weights': self.weights.copy(),
            'bias': self.bias,
            'inputs': self.inputs.copy(),
            'data': self.data.copy(),
            'outputs': self.outputs.copy(),
        }

    @classmethod
    def from_dict(cls, data):
        params = cls.__new__(cls)
        params.kernel = int(data['kernel'])
        params.stride = int(data['stride'])
        params.padding_type = PaddingType.from_value(data['padding_type'])
        params.weights = np.array(data['weights'], dtype=np.float64)
        params.bias = float(data['bias'])
        params.inputs = np.array(data.get('inputs', np.zeros((0, 0))), dtype=np.float64)
        params.data = np.array(data.get('data', np.zeros((0, 0))), dtype=np.float64)
        params.outputs = np.array(data.get('outputs', np.zeros((0, 0))), dtype=np.float64)

        if params.weights.shape != (params.kernel, params.kernel):
            raise DimensionMismatch(
                f"weights shape {params.weights.shape} does not match "
                f"({params.kernel}, {params.kernel})")

        return params

    def __repr__(self):
        return (f"ConvParams(kernel={self.kernel}, stride={self.stride}, "
                f"padding={self.padding_type.value})")
