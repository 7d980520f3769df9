"""Optimizers (pure numpy).

Each optimizer descriptor is an immutable set of hyperparameters. ``build``
binds it to a layer topology and returns an ``Optimizer`` that owns the
zero-initialized per-layer accumulators for one training run. Updates mutate
the weight matrix and bias vector they are handed, in place.
"""
from __future__ import annotations
import math
import numpy as np
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, List, Sequence, Tuple

from . import kernel
from .exceptions import ConfigurationError, ShapeMismatch, UnknownVariant

Slots = Dict[str, np.ndarray]


def _check_lr(lr: float) -> None:
    if not (lr > 0) or not math.isfinite(lr):
        raise ConfigurationError(f"Learning rate must be positive, got {lr}")


def _check_unit(name: str, value: float) -> None:
    if not (0.0 <= value < 1.0):
        raise ConfigurationError(f"{name} must lie in [0, 1), got {value}")


def _check_eps(eps: float) -> None:
    if not (eps > 0):
        raise ConfigurationError(f"eps must be positive, got {eps}")


# ============================================================================
# update rules on a single tensor
# ============================================================================

def sgd_update(p: np.ndarray, g: np.ndarray, lr: float) -> None:
    kernel.add_factor_x(p, -lr, g)


def momentum_update(p, g, v, lr: float, alpha: float) -> None:
    kernel.mul_x(v, alpha)
    kernel.add_factor_x(v, -lr, g)
    kernel.add_x(p, v)


def adagrad_update(p, g, G, lr: float, eps: float) -> None:
    kernel.add_x(G, g * g)
    p -= lr * g / np.sqrt(G + eps)


def rmsprop_update(p, g, r, rho: float, lr: float, eps: float) -> None:
    kernel.mul_x(r, rho)
    kernel.add_factor_x(r, 1 - rho, g * g)
    p -= lr * g / np.sqrt(r + eps)


def adam_update(p, g, m, v, t: int, lr: float, beta1: float, beta2: float,
                eps: float, weight_decay: float = 0.0) -> None:
    kernel.mul_x(m, beta1)
    kernel.add_factor_x(m, 1 - beta1, g)
    kernel.mul_x(v, beta2)
    kernel.add_factor_x(v, 1 - beta2, g * g)
    m_hat = m / (1 - beta1 ** t)
    v_hat = v / (1 - beta2 ** t)
    step = lr * m_hat / (np.sqrt(v_hat) + eps)
    if weight_decay:
        # decoupled decay uses the weights from before this step
        step += lr * weight_decay * p
    p -= step


# ============================================================================
# descriptors
# ============================================================================

class OptimizationMethod:
    method: ClassVar[str] = ''
    slot_names: ClassVar[Tuple[str, ...]] = ()

    def apply(self, p: np.ndarray, g: np.ndarray, slots: Slots, t: int, is_bias: bool) -> None:
        raise NotImplementedError

    def build(self, layer_sizes: Sequence[int]) -> 'Optimizer':
        return Optimizer(self, layer_sizes)

    def to_config(self) -> Dict[str, Any]:
        raise NotImplementedError

    def describe(self) -> str:
        params = ', '.join(f"{k}={v}" for k, v in self.to_config().items() if k != 'method')
        return f"{self.method} ({params})"


@dataclass(frozen=True)
class SGD(OptimizationMethod):
    lr: float = 0.01
    method: ClassVar[str] = 'SGD'

    def __post_init__(self):
        _check_lr(self.lr)

    def apply(self, p, g, slots, t, is_bias):
        sgd_update(p, g, self.lr)

    def to_config(self):
        return {'method': self.method, 'lr': self.lr}


@dataclass(frozen=True)
class MomentumSGD(OptimizationMethod):
    lr: float = 0.01
    alpha: float = 0.9
    method: ClassVar[str] = 'MomentumSGD'
    slot_names: ClassVar[Tuple[str, ...]] = ('velocity',)

    def __post_init__(self):
        _check_lr(self.lr)
        _check_unit('alpha', self.alpha)

    def apply(self, p, g, slots, t, is_bias):
        momentum_update(p, g, slots['velocity'], self.lr, self.alpha)

    def to_config(self):
        return {'method': self.method, 'lr': self.lr, 'alpha': self.alpha}


@dataclass(frozen=True)
class AdaGrad(OptimizationMethod):
    lr: float = 0.01
    eps: float = 1e-8
    method: ClassVar[str] = 'AdaGrad'
    slot_names: ClassVar[Tuple[str, ...]] = ('sum_sq',)

    def __post_init__(self):
        _check_lr(self.lr)
        _check_eps(self.eps)

    def apply(self, p, g, slots, t, is_bias):
        adagrad_update(p, g, slots['sum_sq'], self.lr, self.eps)

    def to_config(self):
        return {'method': self.method, 'lr': self.lr, 'eps': self.eps}


@dataclass(frozen=True)
class RMSProp(OptimizationMethod):
    rho: float = 0.9
    lr: float = 0.001
    eps: float = 1e-8
    method: ClassVar[str] = 'RMSProp'
    slot_names: ClassVar[Tuple[str, ...]] = ('mean_sq',)

    def __post_init__(self):
        _check_unit('rho', self.rho)
        _check_lr(self.lr)
        _check_eps(self.eps)

    def apply(self, p, g, slots, t, is_bias):
        rmsprop_update(p, g, slots['mean_sq'], self.rho, self.lr, self.eps)

    def to_config(self):
        return {'method': self.method, 'rho': self.rho, 'lr': self.lr, 'eps': self.eps}


@dataclass(frozen=True)
class Adam(OptimizationMethod):
    lr: float = 0.001
    beta1: float = 0.9
    beta2: float = 0.999
    eps: float = 1e-8
    method: ClassVar[str] = 'Adam'
    slot_names: ClassVar[Tuple[str, ...]] = ('m', 'v')

    def __post_init__(self):
        _check_lr(self.lr)
        _check_unit('beta1', self.beta1)
        _check_unit('beta2', self.beta2)
        _check_eps(self.eps)

    def apply(self, p, g, slots, t, is_bias):
        adam_update(p, g, slots['m'], slots['v'], t,
                    self.lr, self.beta1, self.beta2, self.eps)

    def to_config(self):
        return {'method': self.method, 'lr': self.lr, 'beta1': self.beta1,
                'beta2': self.beta2, 'eps': self.eps}


@dataclass(frozen=True)
class AdamW(Adam):
    weight_decay: float = 1e-4
    method: ClassVar[str] = 'AdamW'

    def __post_init__(self):
        super().__post_init__()
        if not (self.weight_decay >= 0):
            raise ConfigurationError(
                f"weight_decay must be non-negative, got {self.weight_decay}"
            )

    def apply(self, p, g, slots, t, is_bias):
        adam_update(p, g, slots['m'], slots['v'], t,
                    self.lr, self.beta1, self.beta2, self.eps,
                    weight_decay=0.0 if is_bias else self.weight_decay)

    def to_config(self):
        conf = super().to_config()
        conf['method'] = self.method
        conf['weight_decay'] = self.weight_decay
        return conf


NAME2OPT = {cls.method: cls for cls in [SGD, MomentumSGD, AdaGrad, RMSProp, Adam, AdamW]}


def optimization_from_config(config: Dict[str, Any]) -> OptimizationMethod:
    method = config.get('method')
    cls = NAME2OPT.get(method)
    if cls is None:
        raise UnknownVariant(f"Unknown optimization method: {method!r}")
    return cls(**{k: v for k, v in config.items() if k != 'method'})


# ============================================================================
# per-run state
# ============================================================================

class Optimizer:
    """Per-layer accumulators bound to one layer topology.

    ``update(W, b, dW, db, k)`` advances the step counter of boundary ``k``
    and applies the method's rule to the weights, then to the biases.
    """

    def __init__(self, method: OptimizationMethod, layer_sizes: Sequence[int]):
        if not isinstance(method, OptimizationMethod):
            raise UnknownVariant(f"Unknown optimization method: {method!r}")
        self.method = method
        self.shapes: List[Tuple[int, int]] = [
            (fan_out, fan_in) for fan_in, fan_out in zip(layer_sizes[:-1], layer_sizes[1:])
        ]
        self.weight_slots: List[Slots] = []
        self.bias_slots: List[Slots] = []
        for rows, cols in self.shapes:
            self.weight_slots.append({name: kernel.zero_mat(rows, cols) for name in method.slot_names})
            self.bias_slots.append({name: kernel.zero_vec(rows) for name in method.slot_names})
        self.steps = [0] * len(self.shapes)

    def update(self, W: np.ndarray, b: np.ndarray, dW: np.ndarray, db: np.ndarray, k: int) -> None:
        if not 0 <= k < len(self.shapes):
            raise ShapeMismatch(f"Layer index {k} out of range for {len(self.shapes)} boundaries")
        rows, cols = self.shapes[k]
        if W.shape != (rows, cols) or dW.shape != (rows, cols):
            raise ShapeMismatch(
                f"Layer {k}: expected weights of shape {(rows, cols)}, got {W.shape} / {dW.shape}"
            )
        if b.shape != (rows,) or db.shape != (rows,):
            raise ShapeMismatch(
                f"Layer {k}: expected biases of length {rows}, got {b.shape} / {db.shape}"
            )
        self.steps[k] += 1
        t = self.steps[k]
        self.method.apply(W, dW, self.weight_slots[k], t, is_bias=False)
        self.method.apply(b, db, self.bias_slots[k], t, is_bias=True)

    __call__ = update

    def reset(self) -> None:
        for slots in self.weight_slots + self.bias_slots:
            for buf in slots.values():
                buf.fill(0.0)
        self.steps = [0] * len(self.shapes)
