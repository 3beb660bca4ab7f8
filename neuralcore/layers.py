"""
Layers - From Scratch Implementation
====================================

A Layer wraps one parameter container (dense or convolutional) together with
an activation function, and trains itself in place with plain gradient
descent: backward() both updates the layer's own parameters and returns the
gradient to hand to the preceding layer.

Data flow:
    forward:  input -> weighted sum -> activation -> cached + returned
    backward: errors * activation'(cached output) -> update weights/bias
              -> gradient for previous layer

Layers process one sample at a time: a 1D vector for dense layers, a 2D grid
for convolutional layers.

Numerical conventions:
- dense backward scales the upstream gradient by the cached input and uses the
  already-updated weights
- conv forward adds the bias once per kernel element (kernel^2 times)
- conv backward moves every kernel weight by the summed delta; the per-weight
  gradient is still computed and exposed in grads['weight']
- the upstream conv gradient slides the kernel without 180 degree rotation
"""

import logging
from enum import Enum

import numpy as np

from .activations import get_activation
from .errors import DimensionMismatch
from .params import ConvParams, DenseParams, PaddingType

logger = logging.getLogger(__name__)


class LayerType(Enum):
    """Kind of parameter container a Layer holds."""

    DENSE = 'dense'
    CONVOLUTIONAL = 'convolutional'


def pad_matrix(amount, matrix):
    """
    Surround a 2D grid with `amount` zero rows/columns on every side.

    Args:
        amount: Border width (>= 0)
        matrix: 2D array-like

    Returns:
        New array of shape (H + 2*amount, W + 2*amount)
    """
    if amount < 0:
        raise ValueError(f"Padding amount must be >= 0, got {amount}")

    matrix = np.asarray(matrix, dtype=np.float64)
    if matrix.ndim != 2:
        raise DimensionMismatch(f"Expected a 2D grid, got shape {matrix.shape}")

    return np.pad(matrix, ((amount, amount), (amount, amount)), mode='constant')


def _sliding_windows(x, kernel, stride, h_out, w_out):
    """
    View of every kernel placement over a 2D grid.

    Uses numpy stride tricks to build the view without copying.

    Returns:
        Read-only view of shape (h_out, w_out, kernel, kernel)
    """
    shape = (h_out, w_out, kernel, kernel)
    strides = (
        x.strides[0] * stride,  # output row (strided)
        x.strides[1] * stride,  # output column (strided)
        x.strides[0],           # kernel row
        x.strides[1],           # kernel column
    )
    return np.lib.stride_tricks.as_strided(x, shape=shape, strides=strides, writeable=False)


def _placements(size, kernel, stride):
    """Number of kernel placements along one axis of length `size`."""
    return (size - kernel) // stride + 1


class Layer:
    """
    A dense or convolutional layer with its activation.

    Build layers with Layer.dense(...) or Layer.conv(...). The layer type is
    derived from the parameter container, so a layer always holds exactly one.

    Args:
        params: DenseParams or ConvParams
        activation: Activation name or instance (default: 'sigmoid')

    Example:
        >>> layer = Layer.dense(3, 2, activation='sigmoid', rng=0)
        >>> out = layer.forward(np.array([0.5, -0.1, 0.2]))
        >>> grad = layer.backward(out - np.array([1.0, 0.0]), learning_rate=0.1)
        >>> grad.shape
        (3,)
    """

    def __init__(self, params, activation='sigmoid'):
        if not isinstance(params, (DenseParams, ConvParams)):
            raise TypeError(f"params must be DenseParams or ConvParams, got {type(params).__name__}")

        self.params = params
        self.activation = get_activation(activation)
        self.grads = {}     # Gradients from the last backward pass

    @classmethod
    def dense(cls, nodes_in, nodes_out, activation='sigmoid', rng=None):
        """
        Fully connected layer.

        Args:
            nodes_in: Number of input nodes
            nodes_out: Number of output nodes
            activation: Activation name or instance
            rng: Random source for weight init (None, int seed or Generator)
        """
        layer = cls(DenseParams(nodes_in, nodes_out, rng=rng), activation)
        logger.debug("Created %r", layer)
        return layer

    @classmethod
    def conv(cls, kernel, padding_type=PaddingType.VALID, stride=1, activation='relu', rng=None):
        """
        Single-channel convolutional layer.

        Args:
            kernel: Side length of the square kernel
            padding_type: PaddingType or 'valid' / 'same'
            stride: Step between kernel placements
            activation: Activation name or instance
            rng: Random source for weight init (None, int seed or Generator)
        """
        layer = cls(ConvParams(kernel, padding_type, stride, rng=rng), activation)
        logger.debug("Created %r", layer)
        return layer

    @property
    def layer_type(self):
        if isinstance(self.params, DenseParams):
            return LayerType.DENSE
        return LayerType.CONVOLUTIONAL

    def _dense_params(self):
        if not isinstance(self.params, DenseParams):
            raise DimensionMismatch(f"{self!r} is not a dense layer")
        return self.params

    def _conv_params(self):
        if not isinstance(self.params, ConvParams):
            raise DimensionMismatch(f"{self!r} is not a convolutional layer")
        return self.params

    # ====================================
    # Dispatch
    # ====================================

    def forward(self, inputs):
        """Forward pass for whichever kind of layer this is."""
        if self.layer_type is LayerType.DENSE:
            return self.dense_forward(inputs)
        return self.conv_forward(inputs)

    def backward(self, errors, learning_rate):
        """Backward pass and in-place update for whichever kind of layer this is."""
        if self.layer_type is LayerType.DENSE:
            return self.dense_backward(errors, learning_rate)
        return self.conv_backward(errors, learning_rate)

    def __call__(self, inputs):
        return self.forward(inputs)

    # ====================================
    # Dense
    # ====================================

    def dense_forward(self, inputs):
        """
        Forward pass: output = f(bias + inputs @ W)

        Args:
            inputs: Vector of length nodes_in

        Returns:
            Activated output, vector of length nodes_out
        """
        params = self._dense_params()

        x = np.asarray(inputs, dtype=np.float64)
        if x.shape != (params.nodes_in,):
            raise DimensionMismatch(
                f"Expected input of shape ({params.nodes_in},), got {x.shape}")

        params.inputs = x.copy()

        # weighted[i] = bias[i] + sum_j x[j] * W[j, i]
        weighted = params.biases + x @ params.weights

        output = np.asarray(self.activation.function(weighted), dtype=np.float64)
        params.outputs = output.copy()

        return output

    def dense_backward(self, errors, learning_rate):
        """
        Backward pass with in-place gradient descent.

        delta = errors * f'(output)
        W -= lr * outer(inputs, delta)
        b -= lr * delta
        next_delta = (W @ delta) * inputs, using the updated W

        Args:
            errors: Gradient w.r.t. this layer's output, length nodes_out
            learning_rate: Step size

        Returns:
            next_delta: Gradient for the previous layer, length nodes_in
        """
        params = self._dense_params()

        errors = np.asarray(errors, dtype=np.float64)
        if errors.shape != (params.nodes_out,):
            raise DimensionMismatch(
                f"Expected errors of shape ({params.nodes_out},), got {errors.shape}")
        if params.outputs.shape != (params.nodes_out,):
            raise DimensionMismatch("No cached forward pass; call dense_forward() first")

        inputs = params.inputs

        # Chain rule through the activation, from the cached output
        delta = errors * self.activation.derivative(params.outputs)

        self.grads['weights'] = np.outer(inputs, delta)
        self.grads['biases'] = delta

        params.weights -= learning_rate * self.grads['weights']
        params.biases -= learning_rate * delta

        next_delta = (params.weights @ delta) * inputs

        return next_delta

    # ====================================
    # Convolutional
    # ====================================

    def conv_forward(self, inputs):
        """
        Forward pass: slide the kernel over the padded input.

        weighted[j, k] = bias * kernel^2
                         + sum_{r,c} data[j*stride + r, k*stride + c] * W[r, c]

        Args:
            inputs: 2D grid (height, width)

        Returns:
            Activated output grid, shape (out_height, out_width)
        """
        params = self._conv_params()

        x = np.asarray(inputs, dtype=np.float64)
        if x.ndim != 2:
            raise DimensionMismatch(f"Expected a 2D input grid, got shape {x.shape}")

        # Caches change only once the kernel is known to fit
        data = params.pad(x)
        w_out, h_out = params.get_output_dims(data)

        params.inputs = x.copy()
        params.data = data
        kernel = params.kernel

        windows = _sliding_windows(data, kernel, params.stride, h_out, w_out)

        # (h_out, w_out, k, k) . (k, k) -> (h_out, w_out)
        weighted = np.tensordot(windows, params.weights, axes=([2, 3], [0, 1]))

        # Bias accumulates once per kernel element
        weighted += params.bias * kernel * kernel

        output = np.asarray(self.activation.function(weighted), dtype=np.float64)
        params.outputs = output.copy()

        return output

    def conv_backward(self, errors, learning_rate):
        """
        Backward pass with in-place gradient descent.

        1. delta = errors * f'(output)
        2. grads['weight'][r, c] = sum_{j,k} data[j*s + r, k*s + c] * delta[j, k]
        3. every weight -= lr * sum(delta)
        4. bias -= lr * mean(delta)
        5. next_delta = full convolution: pad delta by kernel - 1 and slide the
           updated kernel over it

        Args:
            errors: Gradient w.r.t. this layer's output, same shape as output
            learning_rate: Step size

        Returns:
            next_delta: Gradient grid for the previous layer
        """
        params = self._conv_params()

        errors = np.asarray(errors, dtype=np.float64)
        if params.outputs.size == 0:
            raise DimensionMismatch("No cached forward pass; call conv_forward() first")
        if errors.shape != params.outputs.shape:
            raise DimensionMismatch(
                f"Expected errors of shape {params.outputs.shape}, got {errors.shape}")

        kernel = params.kernel
        stride = params.stride

        delta = errors * self.activation.derivative(params.outputs)
        h_out, w_out = delta.shape

        data_h, data_w = params.data.shape
        if (data_h < kernel or data_w < kernel
                or _placements(data_h, kernel, stride) != h_out
                or _placements(data_w, kernel, stride) != w_out):
            raise DimensionMismatch(
                f"Cached buffer {params.data.shape} does not produce an output of "
                f"shape {delta.shape}")

        # Gradient w.r.t. weights: correlate padded input with delta
        windows = _sliding_windows(params.data, kernel, stride, h_out, w_out)
        self.grads['weight'] = np.tensordot(delta, windows, axes=([0, 1], [0, 1]))

        delta_sum = np.sum(delta)
        self.grads['bias'] = np.mean(delta)

        params.weights -= learning_rate * delta_sum
        params.bias -= learning_rate * float(self.grads['bias'])

        # Full convolution of the delta grid with the current kernel
        padded = pad_matrix(kernel - 1, delta)
        ph, pw = padded.shape
        n_h = _placements(ph, kernel, stride)
        n_w = _placements(pw, kernel, stride)

        delta_windows = _sliding_windows(padded, kernel, stride, n_h, n_w)
        next_delta = np.tensordot(delta_windows, params.weights, axes=([2, 3], [0, 1]))

        return next_delta

    # ====================================
    # Accessors
    # ====================================

    def get_weights(self):
        return self._dense_params().weights.copy()

    def get_biases(self):
        return self._dense_params().biases.copy()

    def get_nodes(self):
        """Number of output nodes."""
        return self._dense_params().nodes_out

    def get_input_nodes(self):
        return self._dense_params().nodes_in

    def get_outputs(self):
        """Output cached by the last forward pass."""
        return self.params.outputs.copy()

    def get_layer_type(self):
        return self.layer_type

    def reset(self):
        """Clear the dense input/output caches."""
        self._dense_params().reset()

    def set_params(self, weights, biases):
        """
        Overwrite dense weights and biases, e.g. with externally trained values.

        Args:
            weights: (nodes_in, nodes_out) matrix
            biases: (nodes_out,) vector
        """
        params = self._dense_params()

        weights = np.array(weights, dtype=np.float64)
        biases = np.array(biases, dtype=np.float64)

        if weights.shape != params.weights.shape:
            raise DimensionMismatch(
                f"Expected weights of shape {params.weights.shape}, got {weights.shape}")
        if biases.shape != params.biases.shape:
            raise DimensionMismatch(
                f"Expected biases of shape {params.biases.shape}, got {biases.shape}")

        params.weights = weights
        params.biases = biases

    # ====================================
    # Persistence
    # ====================================

    def to_dict(self):
        """Structural mapping of the layer, parameters and caches included."""
        return {
            'layer_type': self.layer_type.value,
            'activation': {'name': self.activation.name, **self.activation.get_config()},
            'params': self.params.to_dict(),
        }

    @classmethod
    def from_dict(cls, data):
        layer_type = LayerType(data['layer_type'])

        activation_config = dict(data['activation'])
        activation = get_activation(activation_config.pop('name'), **activation_config)

        if layer_type is LayerType.DENSE:
            params = DenseParams.from_dict(data['params'])
        else:
            params = ConvParams.from_dict(data['params'])

        return cls(params, activation)

    def __repr__(self):
        params = self.params
        if self.layer_type is LayerType.DENSE:
            return f"Dense({params.nodes_in}, {params.nodes_out})"
        return (f"Conv(kernel={params.kernel}, stride={params.stride}, "
                f"padding={params.padding_type.value})")
