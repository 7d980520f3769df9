"""Backward propagation.

Walks the layers from the output back to the first hidden layer. At the
output the error is the loss gradient against the softmax output, which is
the softmax/cross-entropy shortcut: no softmax Jacobian is ever formed. The
error handed to the previous layer is computed with the weights as they were
before this call's update, so every boundary sees the gradient of the same
forward pass.
"""
from __future__ import annotations
import logging
import math
import numpy as np
from typing import Callable, Optional, Sequence, Tuple, TYPE_CHECKING

from . import kernel
from .exceptions import NumericInstability, ShapeMismatch, UnknownVariant
from .layers import HiddenLayer, OutputLayer
from .losses import one_hot

if TYPE_CHECKING:
    from .model import Model
    from .regularization import Regularization

logger = logging.getLogger(__name__)

GRADIENT_CLIP_NORM = 5.0

UpdateFn = Callable[[np.ndarray, np.ndarray, np.ndarray, np.ndarray, int], None]


def clip_gradients(dW: np.ndarray, db: np.ndarray,
                   max_norm: float = GRADIENT_CLIP_NORM) -> Tuple[np.ndarray, np.ndarray, float]:
    """Rescale ``(dW, db)`` jointly so their L2 norm is at most ``max_norm``.

    Returns:
        (dW, db, norm) where norm is the norm before clipping
    """
    norm = math.sqrt(kernel.sum_squares(dW) + kernel.sum_squares(db))
    if norm > max_norm:
        factor = max_norm / norm
        dW = dW * factor
        db = db * factor
    return dW, db, norm


def _answers_matrix(answers, n: int) -> np.ndarray:
    arr = np.asarray(answers, dtype=np.float64)
    if arr.ndim == 2 and arr.shape[1] == 2:
        y = arr
    else:
        y = one_hot(arr)
    if y.shape[0] != n:
        raise ShapeMismatch(f"Got {y.shape[0]} answers for a batch of {n}")
    return y


def output_error(answers: np.ndarray, outputs: np.ndarray, loss) -> np.ndarray:
    """Per-sample loss gradient at the output layer, one row per sample."""
    err = np.empty_like(outputs)
    for l in range(outputs.shape[0]):
        err[l] = loss.gradient(outputs[l], answers[l])
    return err


def backward_pass(answers, model: 'Model', batch_size: int,
                  activations: Sequence[np.ndarray], pre_activations: Sequence[np.ndarray],
                  optimizer_update: UpdateFn,
                  regularization: Optional['Regularization'] = None,
                  max_norm: float = GRADIENT_CLIP_NORM) -> None:
    """Compute parameter gradients layer by layer and apply them.

    Args:
        answers: 0/1 labels, or a one-hot (n, 2) matrix with column 0 positive
        model: Model whose parameters are updated in place
        batch_size: Divisor for the summed gradients
        activations: ``ForwardResult.activations`` of this batch
        pre_activations: ``ForwardResult.pre_activations`` of this batch
        optimizer_update: Callable ``(W, b, dW, db, k)`` mutating W and b
        regularization: Optional descriptor contributing ``gradient(W)``
        max_norm: Joint gradient norm threshold per boundary

    Raises:
        ShapeMismatch: If inputs disagree with the topology
        NumericInstability: If a gradient is not finite
        UnknownVariant: If a non-input layer is neither hidden nor output
    """
    n_layers = len(model.layers)
    if len(activations) != n_layers or len(pre_activations) != n_layers:
        raise ShapeMismatch(
            f"Expected {n_layers} activation matrices, got {len(activations)} / {len(pre_activations)}"
        )
    if batch_size <= 0:
        raise ShapeMismatch(f"Batch size must be positive, got {batch_size}")
    outputs = activations[-1]
    y = _answers_matrix(answers, outputs.shape[0])

    if not isinstance(model.layers[-1], OutputLayer):
        raise UnknownVariant(f"Last layer is not an output layer: {model.layers[-1]!r}")
    error = output_error(y, outputs, model.loss)

    for k in range(n_layers - 1, 0, -1):
        param = model.parameters[k - 1]
        W, b = param.weights, param.biases
        a_prev = activations[k - 1]

        dW = kernel.tmat_mat(error, a_prev)
        if regularization is not None:
            kernel.add_x(dW, regularization.gradient(W))
        db = np.array([kernel.kahan_sum(error[:, i]) for i in range(error.shape[1])],
                      dtype=np.float64)
        dW /= batch_size
        db /= batch_size
        if not (np.all(np.isfinite(dW)) and np.all(np.isfinite(db))):
            raise NumericInstability(f"Non-finite gradient at layer boundary {k - 1}")

        dW, db, norm = clip_gradients(dW, db, max_norm)
        if norm > max_norm:
            logger.debug("Clipped gradient at boundary %d from %.4f to %.1f", k - 1, norm, max_norm)

        if k > 1:
            prev_layer = model.layers[k - 1]
            if not isinstance(prev_layer, HiddenLayer):
                raise UnknownVariant(f"Unknown layer type at position {k - 1}: {prev_layer!r}")
            propagated = kernel.mat_mat(error, W)
            error = kernel.hadamard(prev_layer.activation.df(pre_activations[k - 1]), propagated)

        optimizer_update(W, b, dW, db, k - 1)
