"""
Saving and loading layers.

Layers are stored in a single .npz archive. Every field of every layer becomes
one array named layer_{i}_{field}, so the file can be inspected with np.load
and float64 parameters round-trip bit for bit.
"""

import logging

import numpy as np

from .layers import Layer

logger = logging.getLogger(__name__)

_ACTIVATION_PREFIX = 'activation_'


def _layer_arrays(layer, prefix):
    """Flatten Layer.to_dict() into named arrays."""
    state = layer.to_dict()
    activation = dict(state['activation'])

    arrays = {
        f'{prefix}layer_type': np.array(state['layer_type']),
        f'{prefix}activation': np.array(activation.pop('name')),
    }
    for name, value in activation.items():
        arrays[f'{prefix}{_ACTIVATION_PREFIX}{name}'] = np.array(value)
    for name, value in state['params'].items():
        arrays[f'{prefix}{name}'] = np.asarray(value)

    return arrays


def _layer_state(data, prefix):
    """Inverse of _layer_arrays: rebuild the Layer.to_dict() structure."""
    state = {'activation': {}, 'params': {}}

    for key in data.files:
        if not key.startswith(prefix):
            continue
        field = key[len(prefix):]
        value = data[key]
        if value.ndim == 0:
            value = value.item()

        if field == 'layer_type':
            state['layer_type'] = value
        elif field == 'activation':
            state['activation']['name'] = value
        elif field.startswith(_ACTIVATION_PREFIX):
            state['activation'][field[len(_ACTIVATION_PREFIX):]] = value
        else:
            state['params'][field] = value

    if 'layer_type' not in state:
        raise KeyError(f"No layer stored under '{prefix}'")

    return state


def save_layers(layers, filepath):
    """
    Save layers to file.

    Args:
        layers: List of Layer objects
        filepath: Path to save file (.npz)
    """
    arrays = {'num_layers': np.array(len(layers))}

    for i, layer in enumerate(layers):
        arrays.update(_layer_arrays(layer, f'layer_{i}_'))

    np.savez(filepath, **arrays)
    logger.info("Layers saved to %s", filepath)


def load_layers(filepath):
    """
    Load layers from file.

    Args:
        filepath: Path to saved layers (.npz)

    Returns:
        List of Layer objects, in the order they were saved
    """
    with np.load(filepath) as data:
        num_layers = int(data['num_layers'])
        layers = [Layer.from_dict(_layer_state(data, f'layer_{i}_'))
                  for i in range(num_layers)]

    logger.info("Layers loaded from %s", filepath)
    return layers
