"""Activation functions.

Pointwise activations expose ``f`` and ``df`` evaluated on pre-activation
values. Softmax is vector level and only used at the output layer; it has no
pointwise derivative because the output error is taken directly from the
loss gradient (see ``backward.py``).
"""
from __future__ import annotations
import math
import numpy as np
from dataclasses import dataclass
from typing import Any, ClassVar, Dict

from .exceptions import ConfigurationError, UnknownVariant


class Activation:
    method: ClassVar[str] = ''

    def f(self, x: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def df(self, x: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def to_config(self) -> Dict[str, Any]:
        return {'method': self.method}

    def describe(self) -> str:
        return self.__class__.__name__


@dataclass(frozen=True)
class Linear(Activation):
    method: ClassVar[str] = 'linear'

    def f(self, x):
        return np.asarray(x, dtype=np.float64).copy()

    def df(self, x):
        return np.ones_like(x, dtype=np.float64)


@dataclass(frozen=True)
class Sigmoid(Activation):
    method: ClassVar[str] = 'sigmoid'

    def f(self, x):
        return 1.0 / (1.0 + np.exp(-np.asarray(x, dtype=np.float64)))

    def df(self, x):
        s = self.f(x)
        return s * (1.0 - s)


@dataclass(frozen=True)
class Tanh(Activation):
    method: ClassVar[str] = 'tanh'

    def f(self, x):
        return np.tanh(np.asarray(x, dtype=np.float64))

    def df(self, x):
        t = self.f(x)
        return 1.0 - t * t


@dataclass(frozen=True)
class ReLU(Activation):
    method: ClassVar[str] = 'ReLU'

    def f(self, x):
        return np.maximum(0.0, np.asarray(x, dtype=np.float64))

    def df(self, x):
        # subgradient 1 at x == 0
        return (np.asarray(x) >= 0).astype(np.float64)


@dataclass(frozen=True)
class LeakyReLU(Activation):
    alpha: float = 0.01
    method: ClassVar[str] = 'LeakyReLU'

    def __post_init__(self):
        if not math.isfinite(self.alpha):
            raise ConfigurationError(f"LeakyReLU alpha must be finite, got {self.alpha}")

    def f(self, x):
        x = np.asarray(x, dtype=np.float64)
        return np.where(x >= 0, x, self.alpha * x)

    def df(self, x):
        x = np.asarray(x, dtype=np.float64)
        return np.where(x >= 0, 1.0, self.alpha)

    def to_config(self):
        return {'method': self.method, 'alpha': self.alpha}

    def describe(self):
        return f"LeakyReLU(alpha={self.alpha})"


@dataclass(frozen=True)
class Softmax(Activation):
    method: ClassVar[str] = 'softmax'

    def f(self, x):
        return softmax(x)

    def df(self, x):
        raise ConfigurationError(
            "Softmax has no pointwise derivative; the output error comes from the loss gradient"
        )


def softmax(z) -> np.ndarray:
    """Row-wise softmax with max subtraction.

    Entries lie strictly inside (0, 1) while the logit gap within a row stays
    below about 36. Past that the larger entry rounds to 1.0, and past a gap
    of about 745 the smaller one underflows to 0.0. The losses clamp their
    inputs, so a saturated row still gives a finite loss.

    Args:
        z: Vector of logits or matrix with one sample per row

    Returns:
        Array of the same shape whose rows sum to 1
    """
    z = np.asarray(z, dtype=np.float64)
    shifted = z - z.max(axis=-1, keepdims=True)
    e = np.exp(shifted)
    return e / e.sum(axis=-1, keepdims=True)


NAME2ACTIVATION = {cls.method: cls for cls in [Linear, Sigmoid, Tanh, ReLU, LeakyReLU, Softmax]}


def activation_from_config(config: Dict[str, Any]) -> Activation:
    method = config.get('method')
    cls = NAME2ACTIVATION.get(method)
    if cls is None:
        raise UnknownVariant(f"Unknown activation function: {method!r}")
    kwargs = {k: v for k, v in config.items() if k != 'method'}
    return cls(**kwargs)
