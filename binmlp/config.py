"""Parse the compact comma separated descriptor strings used on the command line.

Examples::

    parse_optimization("adam,0.001,0.9,0.999,1e-8")
    parse_initialization("he,normal")
    parse_early_stopping("f1score", 5)

Method names are case insensitive. Missing trailing values keep their
defaults.
"""
from __future__ import annotations
from typing import Dict, List, Optional, Tuple

from .activations import Activation, NAME2ACTIVATION
from .early_stopping import EarlyStopping
from .exceptions import ConfigurationError, UnknownVariant
from .initializers import Initialization, NAME2INIT
from .losses import CategoricalCrossEntropy, Loss, WeightedBinaryCrossEntropy
from .optim import NAME2OPT, OptimizationMethod
from .regularization import L2, Regularization

OPT_ALIASES = {'msgd': 'momentumsgd'}
METRIC_ALIASES = {'f1score': 'f1'}

# positional argument order of each optimizer string
OPT_ARGS: Dict[str, Tuple[str, ...]] = {
    'SGD': ('lr',),
    'MomentumSGD': ('lr', 'alpha'),
    'AdaGrad': ('lr', 'eps'),
    'RMSProp': ('rho', 'lr', 'eps'),
    'Adam': ('lr', 'beta1', 'beta2', 'eps'),
    'AdamW': ('weight_decay', 'lr', 'beta1', 'beta2', 'eps'),
}


def _split(text: str) -> Tuple[str, List[str]]:
    parts = [p.strip() for p in text.split(',')]
    if not parts[0]:
        raise ConfigurationError(f"Missing method name in {text!r}")
    return parts[0].lower(), parts[1:]


def _floats(name: str, values: List[str], max_count: int) -> List[float]:
    if len(values) > max_count:
        raise ConfigurationError(f"{name} takes at most {max_count} values, got {len(values)}")
    try:
        return [float(v) for v in values]
    except ValueError as exc:
        raise ConfigurationError(f"Invalid number for {name}: {exc}") from exc


def _lookup(registry: Dict[str, type], name: str, kind: str):
    by_lower = {key.lower(): cls for key, cls in registry.items()}
    cls = by_lower.get(name)
    if cls is None:
        raise UnknownVariant(f"Unknown {kind}: {name!r}")
    return cls


def parse_activation(text: str) -> Activation:
    name, values = _split(text)
    cls = _lookup(NAME2ACTIVATION, name, 'activation')
    if cls.method == 'LeakyReLU':
        return cls(*_floats(cls.method, values, 1))
    _floats(cls.method, values, 0)
    return cls()


def parse_initialization(text: str) -> Initialization:
    name, values = _split(text)
    cls = _lookup(NAME2INIT, name, 'initialization')
    if cls.method == 'Uniform':
        if values:
            raise ConfigurationError("Uniform initialization takes no arguments")
        return cls()
    if len(values) > 1:
        raise ConfigurationError(f"{cls.method} takes a single distribution argument")
    return cls(values[0].lower()) if values else cls()


def parse_loss(text: str) -> Loss:
    name, values = _split(text)
    if name in ('cce', 'categoricalcrossentropy'):
        return CategoricalCrossEntropy(*_floats('CCE', values, 1))
    if name in ('weightedbce', 'wbce'):
        return WeightedBinaryCrossEntropy(*_floats('WeightedBCE', values, 3))
    raise UnknownVariant(f"Unknown loss: {name!r}")


def parse_regularization(text: Optional[str]) -> Optional[Regularization]:
    if text is None or not text.strip() or text.strip().lower() == 'none':
        return None
    name, values = _split(text)
    if name != 'l2':
        raise UnknownVariant(f"Unknown regularization: {name!r}")
    return L2(*_floats('L2', values, 1))


def parse_optimization(text: str) -> OptimizationMethod:
    name, values = _split(text)
    name = OPT_ALIASES.get(name, name)
    cls = _lookup(NAME2OPT, name, 'optimization method')
    arg_names = OPT_ARGS[cls.method]
    numbers = _floats(cls.method, values, len(arg_names))
    return cls(**dict(zip(arg_names, numbers)))


def parse_early_stopping(metric: Optional[str], patience: int = 0) -> Optional[EarlyStopping]:
    """None when disabled by an empty metric or a patience of 0."""
    if not metric or not metric.strip() or patience == 0:
        return None
    metric = metric.strip().lower()
    return EarlyStopping(metric=METRIC_ALIASES.get(metric, metric), patience=int(patience))


def parse_hidden_sizes(text: str) -> List[int]:
    try:
        sizes = [int(p) for p in text.split(',') if p.strip()]
    except ValueError as exc:
        raise ConfigurationError(f"Invalid hidden layer sizes {text!r}: {exc}") from exc
    if any(s <= 0 for s in sizes):
        raise ConfigurationError(f"Hidden layer sizes must be positive, got {sizes}")
    return sizes
