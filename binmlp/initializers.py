"""Parameter initialization schemes."""
from __future__ import annotations
import logging
import math
import numpy as np
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Dict, List, Sequence

from .exceptions import ConfigurationError, UnknownVariant
from .layers import Layer, LayerParameter
from .random import Rng

logger = logging.getLogger(__name__)

DISTRIBUTIONS = ('uniform', 'normal')


class Initialization:
    method: ClassVar[str] = ''

    def sampler(self, fan_in: int, fan_out: int, rng: Rng) -> Callable[[], float]:
        raise NotImplementedError

    def to_config(self) -> Dict[str, Any]:
        return {'method': self.method}

    def describe(self) -> str:
        return self.method


@dataclass(frozen=True)
class Uniform(Initialization):
    """Draws from [-0.5, 0.5)."""
    method: ClassVar[str] = 'Uniform'

    def sampler(self, fan_in, fan_out, rng):
        return lambda: rng.uniform() - 0.5


@dataclass(frozen=True)
class _FanScaled(Initialization):
    dist: str = 'uniform'

    def __post_init__(self):
        if self.dist not in DISTRIBUTIONS:
            raise ConfigurationError(f"Unknown {self.method} distribution: {self.dist!r}")

    def _fan(self, fan_in: int, fan_out: int) -> float:
        raise NotImplementedError

    def sampler(self, fan_in, fan_out, rng):
        fan = self._fan(fan_in, fan_out)
        if self.dist == 'uniform':
            limit = math.sqrt(6.0 / fan)
            return lambda: rng.uniform() * 2 * limit - limit
        if self.dist == 'normal':
            stddev = math.sqrt(2.0 / fan)
            return lambda: rng.normal(0.0, stddev)
        raise ConfigurationError(f"Unknown {self.method} distribution: {self.dist!r}")

    def to_config(self):
        return {'method': self.method, 'dist': self.dist}

    def describe(self):
        return f"{self.method} (dist={self.dist})"


@dataclass(frozen=True)
class He(_FanScaled):
    method: ClassVar[str] = 'He'

    def _fan(self, fan_in, fan_out):
        return fan_in


@dataclass(frozen=True)
class Xavier(_FanScaled):
    method: ClassVar[str] = 'Xavier'

    def _fan(self, fan_in, fan_out):
        return fan_in + fan_out


NAME2INIT = {cls.method: cls for cls in [Uniform, He, Xavier]}


def initialization_from_config(config: Dict[str, Any]) -> Initialization:
    method = config.get('method')
    cls = NAME2INIT.get(method)
    if cls is None:
        raise UnknownVariant(f"Unknown initialization method: {method!r}")
    return cls(**{k: v for k, v in config.items() if k != 'method'})


def initialize_params(layers: Sequence[Layer], initialization: Initialization,
                      rng: Rng) -> List[LayerParameter]:
    """Create one LayerParameter per adjacent layer pair.

    Weights are drawn row by row (output unit, then input unit) from the
    scheme's sampler; biases start at zero.

    Args:
        layers: Layer descriptors in network order
        initialization: Scheme descriptor
        rng: Seeded random source, advanced in place

    Returns:
        Parameters in layer order
    """
    if not isinstance(initialization, Initialization):
        raise UnknownVariant(f"Unknown initialization method: {initialization!r}")
    logger.debug("Initializing parameters with %s", initialization.describe())
    params: List[LayerParameter] = []
    for prev, curr in zip(layers[:-1], layers[1:]):
        fan_in, fan_out = prev.size, curr.size
        draw = initialization.sampler(fan_in, fan_out, rng)
        weights = np.empty((fan_out, fan_in), dtype=np.float64)
        for i in range(fan_out):
            for j in range(fan_in):
                weights[i, j] = draw()
        params.append(LayerParameter(weights, np.zeros((fan_out,), dtype=np.float64)))
    return params
