"""
Utility Functions for neuralcore
================================

Helper functions for:
- Random sources for weight initialization
- Layer summaries
"""

import numpy as np


def get_rng(seed=None):
    """
    Normalize a random source into a numpy Generator.

    Args:
        seed: None (fresh OS entropy), an int seed, or an existing Generator

    Returns:
        numpy.random.Generator

    Passing the same Generator to several layers makes them draw from one
    shared stream, so a whole stack can be reproduced from a single seed.
    """
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)


def count_params(layer):
    """Number of trainable values held by a layer."""
    return int(sum(np.size(value) for value in layer.params.trainable().values()))


def get_model_summary(layers):
    """
    Generate model summary.

    Args:
        layers: List of Layer objects

    Returns:
        Summary string
    """
    lines = []
    lines.append("=" * 70)
    lines.append(f"{'Layer':<45} {'Activation':<12} {'Params':<10}")
    lines.append("=" * 70)

    total_params = 0

    for layer in layers:
        n_params = count_params(layer)
        total_params += n_params

        lines.append(f"{str(layer):<45} {layer.activation.name:<12} {n_params:,}")

    lines.append("=" * 70)
    lines.append(f"Total trainable parameters: {total_params:,}")
    lines.append("=" * 70)

    return '\n'.join(lines)
