"""
Activation Functions for Layers
===============================

Element-wise non-linearities applied after a layer's weighted sum.

Every activation exposes two operations:
- function(x): the non-linearity applied to the pre-activation value
- derivative(y): the slope, expressed in terms of the *activated output* y

Taking the derivative from the output instead of the pre-activation value is
what lets a layer back-propagate using only its cached outputs:

    sigmoid: y' = y * (1 - y)
    tanh:    y' = 1 - y^2

This only works for activations whose derivative can be written purely in
terms of their own output, which is why Softmax is not offered here.
"""

import numpy as np


class Activation:
    """Base class for all activation functions."""

    name = None

    def function(self, x):
        """Apply activation function."""
        raise NotImplementedError

    def derivative(self, y):
        """Compute derivative of activation from its output y."""
        raise NotImplementedError

    def get_config(self):
        """Constructor arguments needed to rebuild this activation."""
        return {}

    def __call__(self, x):
        return self.function(x)

    def __eq__(self, other):
        return type(self) is type(other) and self.get_config() == other.get_config()

    def __repr__(self):
        return f"{type(self).__name__}()"


class Sigmoid(Activation):
    """
    Sigmoid: f(x) = 1 / (1 + exp(-x))

    Squashes output to (0, 1).

    Derivative (from output):
        f'(y) = y * (1 - y)
    """

    name = 'sigmoid'

    def function(self, x):
        # Clip for numerical stability
        x_clipped = np.clip(x, -500, 500)
        return 1.0 / (1.0 + np.exp(-x_clipped))

    def derivative(self, y):
        return y * (1 - y)


class Tanh(Activation):
    """
    Hyperbolic Tangent: f(x) = tanh(x)

    Output range: (-1, 1), zero-centered.

    Derivative (from output):
        f'(y) = 1 - y^2
    """

    name = 'tanh'

    def function(self, x):
        return np.tanh(x)

    def derivative(self, y):
        return 1 - y ** 2


class ReLU(Activation):
    """
    Rectified Linear Unit: f(x) = max(0, x)

    Derivative:
        f'(y) = 1 if y > 0 else 0

    y > 0 exactly when x > 0, so the output carries the same information.
    """

    name = 'relu'

    def function(self, x):
        return np.maximum(0.0, x)

    def derivative(self, y):
        return np.where(np.asarray(y) > 0, 1.0, 0.0)


class LeakyReLU(Activation):
    """
    Leaky ReLU: f(x) = x if x > 0 else alpha * x

    Args:
        alpha: Slope for negative values (default: 0.01)

    Derivative:
        f'(y) = 1 if y > 0 else alpha
    """

    name = 'leaky_relu'

    def __init__(self, alpha=0.01):
        if alpha <= 0:
            raise ValueError(f"alpha must be positive, got {alpha}")
        self.alpha = alpha

    def function(self, x):
        return np.where(np.asarray(x) > 0, x, self.alpha * np.asarray(x))

    def derivative(self, y):
        return np.where(np.asarray(y) > 0, 1.0, self.alpha)

    def get_config(self):
        return {'alpha': self.alpha}

    def __repr__(self):
        return f"LeakyReLU(alpha={self.alpha})"


class Linear(Activation):
    """
    Linear (Identity) activation: f(x) = x, f'(y) = 1

    Used for regression outputs and for checking layer arithmetic by hand.
    """

    name = 'linear'

    def function(self, x):
        return x

    def derivative(self, y):
        return np.ones_like(y, dtype=np.float64)


# ====================================
# Activation Registry
# ====================================

ACTIVATIONS = {
    'sigmoid': Sigmoid,
    'tanh': Tanh,
    'relu': ReLU,
    'leaky_relu': LeakyReLU,
    'leakyrelu': LeakyReLU,
    'linear': Linear,
    'identity': Linear,
    'none': Linear,
}


def get_activation(name, **kwargs):
    """
    Get activation function by name.

    Args:
        name: String name ('relu', 'sigmoid', etc.), Activation instance or None
        **kwargs: Constructor arguments (e.g. alpha for 'leaky_relu')

    Returns:
        Activation instance

    Example:
        >>> act = get_activation('relu')
        >>> act(np.array([-1.0, 0.0, 1.0]))
        array([0., 0., 1.])
    """
    if isinstance(name, Activation):
        return name

    if name is None:
        return Linear()

    name_lower = name.lower().replace('-', '_')
    if name_lower not in ACTIVATIONS:
        available = ', '.join(ACTIVATIONS.keys())
        raise ValueError(f"Unknown activation '{name}'. Available: {available}")

    return ACTIVATIONS[name_lower](**kwargs)
