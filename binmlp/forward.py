"""Forward propagation."""
from __future__ import annotations
import numpy as np
from dataclasses import dataclass
from typing import List, TYPE_CHECKING

from . import kernel
from .activations import softmax
from .exceptions import ShapeMismatch, UnknownVariant
from .layers import HiddenLayer, OutputLayer

if TYPE_CHECKING:
    from .model import Model


@dataclass
class ForwardResult:
    """Activations ``a`` and pre-activations ``z`` for every layer.

    ``activations[0]`` is the input batch; ``pre_activations[0]`` is an
    empty ``(n, 0)`` matrix since the input layer has no transform.
    """
    activations: List[np.ndarray]
    pre_activations: List[np.ndarray]

    @property
    def output(self) -> np.ndarray:
        return self.activations[-1]


def forward_pass(inputs, model: 'Model') -> ForwardResult:
    """Propagate a batch of feature rows through the network.

    Args:
        inputs: Matrix of shape (n, input size), label column already removed
        model: Model whose layers and parameters are used

    Returns:
        ForwardResult with one entry per layer

    Raises:
        ShapeMismatch: If a weight matrix does not fit the previous activation
            or its bias vector
        UnknownVariant: If a non-input layer is neither hidden nor output
    """
    a = kernel.as_matrix(inputs)
    activations = [a]
    pre_activations = [np.empty((a.shape[0], 0), dtype=np.float64)]
    for k in range(1, len(model.layers)):
        layer = model.layers[k]
        param = model.parameters[k - 1]
        W, b = param.weights, param.biases
        if W.shape[1] != a.shape[1]:
            raise ShapeMismatch(
                f"Layer {k}: weight columns {W.shape[1]} do not match previous activation width {a.shape[1]}"
            )
        if W.shape[0] != b.shape[0]:
            raise ShapeMismatch(
                f"Layer {k}: weight rows {W.shape[0]} do not match bias length {b.shape[0]}"
            )
        z = kernel.mat_tmat(a, W) + b
        pre_activations.append(z)
        if isinstance(layer, OutputLayer):
            a = softmax(z)
        elif isinstance(layer, HiddenLayer):
            a = layer.activation.f(z)
        else:
            raise UnknownVariant(f"Unknown layer type at position {k}: {layer!r}")
        activations.append(a)
    return ForwardResult(activations, pre_activations)
