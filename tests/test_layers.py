from __future__ import annotations

import numpy as np
import pytest

from binmlp.activations import Sigmoid, Softmax
from binmlp.exceptions import (
    ConfigurationError, MLPError, NumericInstability, ShapeMismatch, UnknownVariant,
)
from binmlp.layers import (
    HiddenLayer, InputLayer, LayerParameter, OutputLayer, ScaleFactor,
    layer_from_config, layer_sizes, validate_layers,
)


def test_layer_configs_round_trip() -> None:
    layers = [InputLayer(2, [ScaleFactor(1.0, 2.0), None]), HiddenLayer(3, Sigmoid()), OutputLayer()]
    assert [layer_from_config(layer.to_config()) for layer in layers] == layers
    assert layer_sizes(layers) == [2, 3, 2]
    with pytest.raises(UnknownVariant):
        layer_from_config({'layer_type': 'conv', 'size': 3})


def test_layer_validation() -> None:
    with pytest.raises(ConfigurationError):
        HiddenLayer(3, Softmax())
    with pytest.raises(ConfigurationError):
        OutputLayer(size=3)
    with pytest.raises(ShapeMismatch):
        InputLayer(3, [ScaleFactor(0.0, 1.0)])
    with pytest.raises(ConfigurationError):
        validate_layers([InputLayer(2), OutputLayer(), HiddenLayer(2)])
    with pytest.raises(ConfigurationError):
        validate_layers([InputLayer(2)])


def test_layer_parameter_shapes() -> None:
    param = LayerParameter(np.zeros((3, 2)), np.zeros(3))
    assert param.shape == (3, 2)
    with pytest.raises(ShapeMismatch):
        LayerParameter(np.zeros((3, 2)), np.zeros(2))


def test_error_hierarchy() -> None:
    assert issubclass(ShapeMismatch, MLPError) and issubclass(ShapeMismatch, ValueError)
    assert issubclass(UnknownVariant, ValueError)
    assert issubclass(ConfigurationError, ValueError)
    assert issubclass(NumericInstability, ArithmeticError)


def test_layers_reject_non_descriptor_activations() -> None:
    with pytest.raises(UnknownVariant):
        HiddenLayer(3, activation='relu')
    with pytest.raises(UnknownVariant):
        OutputLayer(activation='softmax')
