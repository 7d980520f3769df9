"""Weight regularization."""
from __future__ import annotations
import numpy as np
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Iterable, Optional

from . import kernel
from .exceptions import ConfigurationError, UnknownVariant


class Regularization:
    method: ClassVar[str] = ''

    def penalty(self, weights: Iterable[np.ndarray]) -> float:
        raise NotImplementedError

    def gradient(self, weight: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def to_config(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class L2(Regularization):
    """Weight decay penalty ``(lambda / 2) * sum(W ** 2)``.

    ``gradient`` returns ``lambda * W``. The backward pass adds it to the
    weight gradient summed over the batch, before the division by the batch
    size, so the effective contribution per step is ``lambda / B * W``.
    Biases are never penalized.
    """
    lam: float = 0.01
    method: ClassVar[str] = 'L2'

    def __post_init__(self):
        if not (self.lam >= 0):
            raise ConfigurationError(f"L2 lambda must be non-negative, got {self.lam}")

    def penalty(self, weights):
        total = np.array([kernel.sum_squares(w) for w in weights], dtype=np.float64)
        return self.lam / 2 * kernel.kahan_sum(total)

    def gradient(self, weight):
        return kernel.scale(weight, self.lam)

    def to_config(self):
        return {'method': self.method, 'lambda': self.lam}


NAME2REGULARIZATION = {'L2': L2}


def regularization_from_config(config: Optional[Dict[str, Any]]) -> Optional[Regularization]:
    if config is None:
        return None
    method = config.get('method')
    cls = NAME2REGULARIZATION.get(method)
    if cls is None:
        raise UnknownVariant(f"Unknown regularization method: {method!r}")
    return cls(lam=config['lambda'])
