"""Layer descriptors and per-boundary parameters.

A network is an ``InputLayer``, any number of ``HiddenLayer`` and one
``OutputLayer``. Parameters live between adjacent layers: the weight matrix
has ``next.size`` rows and ``current.size`` columns.
"""
from __future__ import annotations
import numpy as np
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Sequence, Tuple

from .activations import Activation, ReLU, Softmax, activation_from_config
from .exceptions import ConfigurationError, ShapeMismatch, UnknownVariant


@dataclass(frozen=True)
class ScaleFactor:
    mean: float
    stddev: float

    def to_config(self) -> Dict[str, float]:
        return {'mean': self.mean, 'stddev': self.stddev}


class Layer:
    layer_type: ClassVar[str] = ''
    size: int

    def to_config(self) -> Dict[str, Any]:
        raise NotImplementedError

    def describe(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class InputLayer(Layer):
    size: int
    scale_factors: Tuple[Optional[ScaleFactor], ...] = ()
    layer_type: ClassVar[str] = 'input'

    def __post_init__(self):
        object.__setattr__(self, 'scale_factors', tuple(self.scale_factors))
        if self.size < 1:
            raise ConfigurationError(f"Input layer size must be positive, got {self.size}")
        if self.scale_factors and len(self.scale_factors) != self.size:
            raise ShapeMismatch(
                f"Input layer of size {self.size} got {len(self.scale_factors)} scale factors"
            )

    def to_config(self):
        return {
            'layer_type': self.layer_type,
            'size': self.size,
            'scale_factors': [sf.to_config() if sf is not None else None
                              for sf in self.scale_factors],
        }

    def describe(self):
        return f"(Input, {self.size})"


@dataclass(frozen=True)
class HiddenLayer(Layer):
    size: int
    activation: Activation = field(default_factory=ReLU)
    layer_type: ClassVar[str] = 'hidden'

    def __post_init__(self):
        if self.size < 1:
            raise ConfigurationError(f"Hidden layer size must be positive, got {self.size}")
        if not isinstance(self.activation, Activation):
            raise UnknownVariant(f"Unknown activation function: {self.activation!r}")
        if isinstance(self.activation, Softmax):
            raise ConfigurationError("Softmax is only allowed at the output layer")

    def to_config(self):
        return {'layer_type': self.layer_type, 'size': self.size,
                'activation': self.activation.to_config()}

    def describe(self):
        return f"(Hidden, {self.size}, {self.activation.describe()})"


@dataclass(frozen=True)
class OutputLayer(Layer):
    size: int = 2
    activation: Activation = field(default_factory=Softmax)
    layer_type: ClassVar[str] = 'output'

    def __post_init__(self):
        if self.size != 2:
            raise ConfigurationError(f"Output layer size must be 2, got {self.size}")
        if not isinstance(self.activation, Activation):
            raise UnknownVariant(f"Unknown activation function: {self.activation!r}")
        if not isinstance(self.activation, Softmax):
            raise ConfigurationError("Output layer activation must be softmax")

    def to_config(self):
        return {'layer_type': self.layer_type, 'size': self.size,
                'activation': self.activation.to_config()}

    def describe(self):
        return f"(Output, {self.size}, {self.activation.describe()})"


def validate_layers(layers: Sequence[Layer]) -> None:
    """Check the input / hidden* / output structure."""
    if len(layers) < 2:
        raise ConfigurationError(f"A network needs at least 2 layers, got {len(layers)}")
    for i, layer in enumerate(layers):
        if i == 0:
            expected = InputLayer
        elif i == len(layers) - 1:
            expected = OutputLayer
        else:
            expected = HiddenLayer
        if not isinstance(layer, Layer):
            raise UnknownVariant(f"Layer {i} is not a layer descriptor: {layer!r}")
        if not isinstance(layer, expected):
            raise ConfigurationError(
                f"Layer {i} must be {expected.layer_type}, got {layer.layer_type}"
            )


NAME2LAYER = {cls.layer_type: cls for cls in [InputLayer, HiddenLayer, OutputLayer]}


def layer_from_config(config: Dict[str, Any]) -> Layer:
    layer_type = config.get('layer_type')
    cls = NAME2LAYER.get(layer_type)
    if cls is None:
        raise UnknownVariant(f"Unknown layer type: {layer_type!r}")
    if cls is InputLayer:
        factors = tuple(ScaleFactor(**sf) if sf is not None else None
                        for sf in config.get('scale_factors') or ())
        return InputLayer(size=int(config['size']), scale_factors=factors)
    return cls(size=int(config['size']), activation=activation_from_config(config['activation']))


class LayerParameter:
    """Weight matrix and bias vector for one layer boundary."""

    def __init__(self, weights: np.ndarray, biases: np.ndarray):
        weights = np.ascontiguousarray(weights, dtype=np.float64)
        biases = np.ascontiguousarray(biases, dtype=np.float64)
        if weights.ndim != 2 or biases.ndim != 1 or weights.shape[0] != biases.shape[0]:
            raise ShapeMismatch(
                f"Weights {weights.shape} and biases {biases.shape} do not form a layer"
            )
        self.weights = weights
        self.biases = biases

    @property
    def shape(self) -> Tuple[int, int]:
        return self.weights.shape

    def copy(self) -> 'LayerParameter':
        return LayerParameter(self.weights.copy(), self.biases.copy())

    def __repr__(self):
        rows, cols = self.weights.shape
        return f"<LayerParameter weights={rows}x{cols} biases={self.biases.shape[0]}>"


def layer_sizes(layers: Sequence[Layer]) -> List[int]:
    return [layer.size for layer in layers]
