"""
Tests for Layer Persistence
===========================

Round trips through Layer.to_dict() and .npz archives must reproduce forward
outputs bit for bit.
"""

import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from neuralcore.layers import Layer, LayerType
from neuralcore.activations import LeakyReLU
from neuralcore.params import PaddingType
from neuralcore.serialization import save_layers, load_layers
from neuralcore.utils import count_params, get_model_summary


def make_stack():
    rng = np.random.default_rng(42)
    return [
        Layer.conv(3, PaddingType.SAME, 1, activation='relu', rng=rng),
        Layer.conv(2, PaddingType.VALID, 2, activation=LeakyReLU(0.05), rng=rng),
        Layer.dense(9, 4, activation='tanh', rng=rng),
        Layer.dense(4, 2, activation='sigmoid', rng=rng),
    ]


def run_stack(layers, x):
    out = layers[0].forward(x)
    out = layers[1].forward(out)
    out = layers[2].forward(out.reshape(-1))
    return layers[3].forward(out)


class TestLayerDict:
    """Tests for Layer.to_dict / Layer.from_dict."""

    def test_dense_round_trip(self):
        layer = Layer.dense(5, 3, activation='tanh', rng=1)
        x = np.linspace(-1, 1, 5)

        restored = Layer.from_dict(layer.to_dict())

        assert restored.layer_type is LayerType.DENSE
        assert restored.activation == layer.activation
        np.testing.assert_array_equal(restored.forward(x), layer.forward(x))

    def test_conv_round_trip(self):
        layer = Layer.conv(3, 'same', 2, activation=LeakyReLU(0.2), rng=1)
        x = np.arange(36, dtype=np.float64).reshape(6, 6) / 10

        restored = Layer.from_dict(layer.to_dict())

        assert restored.layer_type is LayerType.CONVOLUTIONAL
        assert restored.activation.alpha == 0.2
        np.testing.assert_array_equal(restored.forward(x), layer.forward(x))

    def test_caches_are_kept(self):
        """A restored layer can continue with backward()."""
        layer = Layer.dense(3, 2, rng=0)
        layer.forward(np.array([0.1, 0.2, 0.3]))

        restored = Layer.from_dict(layer.to_dict())
        errors = np.array([0.5, -0.5])

        np.testing.assert_array_equal(restored.backward(errors, 0.1), layer.backward(errors, 0.1))

    def test_dict_layout(self):
        state = Layer.dense(2, 2, activation='relu', rng=0).to_dict()

        assert state['layer_type'] == 'dense'
        assert state['activation'] == {'name': 'relu'}
        assert set(state['params']) == {'nodes_in', 'nodes_out', 'weights', 'biases',
                                        'inputs', 'outputs'}


class TestSaveLoad:
    """Tests for .npz persistence."""

    def test_round_trip_outputs(self, tmp_path):
        """Loaded layers give bit-identical outputs."""
        layers = make_stack()
        x = np.random.default_rng(0).standard_normal((6, 6))
        expected = run_stack(layers, x)

        filepath = tmp_path / 'layers.npz'
        save_layers(layers, filepath)
        loaded = load_layers(filepath)

        assert len(loaded) == 4
        assert [layer.layer_type for layer in loaded] == [layer.layer_type for layer in layers]
        np.testing.assert_array_equal(run_stack(loaded, x), expected)

    def test_round_trip_after_training(self, tmp_path):
        layer = Layer.dense(3, 1, activation='sigmoid', rng=0)
        x = np.array([1.0, 0.0, -1.0])
        for _ in range(5):
            out = layer.forward(x)
            layer.backward(out - 1.0, learning_rate=0.3)

        filepath = tmp_path / 'trained.npz'
        save_layers([layer], filepath)
        [loaded] = load_layers(filepath)

        np.testing.assert_array_equal(loaded.get_weights(), layer.get_weights())
        np.testing.assert_array_equal(loaded.get_biases(), layer.get_biases())

    def test_archive_keys(self, tmp_path):
        filepath = tmp_path / 'layers.npz'
        save_layers(make_stack(), filepath)

        with np.load(filepath) as data:
            assert int(data['num_layers']) == 4
            assert str(data['layer_0_layer_type']) == 'convolutional'
            assert str(data['layer_1_activation']) == 'leaky_relu'
            assert float(data['layer_1_activation_alpha']) == 0.05
            assert data['layer_2_weights'].shape == (9, 4)

    def test_missing_layer(self, tmp_path):
        filepath = tmp_path / 'broken.npz'
        np.savez(filepath, num_layers=np.array(1))

        with pytest.raises(KeyError):
            load_layers(filepath)


class TestSummary:
    """Tests for get_model_summary."""

    def test_param_counts(self):
        layers = make_stack()

        assert count_params(layers[0]) == 3 * 3 + 1
        assert count_params(layers[2]) == 9 * 4 + 4

    def test_summary_text(self):
        summary = get_model_summary(make_stack())

        assert "Dense(9, 4)" in summary
        assert "Conv(kernel=3, stride=1, padding=same)" in summary
        assert "leaky_relu" in summary
        total = (9 + 1) + (4 + 1) + (36 + 4) + (8 + 2)
        assert f"Total trainable parameters: {total:,}" in summary


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
