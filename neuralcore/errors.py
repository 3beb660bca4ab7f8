"""
Errors raised by neuralcore.

Shape and layer-type violations are programmer errors: they are raised as soon
as they are detected and are never recovered from inside the library.
"""


class DimensionMismatch(ValueError):
    """
    An array has the wrong shape for the layer it is given to, or an operation
    was called on the wrong kind of layer.

    Examples:
        - dense input length != nodes_in
        - kernel larger than the padded convolution buffer
        - dense_forward() called on a convolutional layer
    """
