"""binmlp - Small feed-forward binary classifier trained with numpy+numba.

Provides:
- Layer descriptors (input with standardization factors, hidden, softmax output)
- Model class with forward, predict, fit, summary, copy and record conversion
- Optimizers (SGD, MomentumSGD, AdaGrad, RMSProp, Adam, AdamW)
- Losses (categorical cross entropy, weighted binary cross entropy) and metrics
- L2 regularization, gradient clipping and early stopping
- Deterministic seeded random source and Kahan-summed matrix kernels
- HDF5 model save/load via h5py
"""
from . import (  # noqa: F401
    activations, backward, config, data, early_stopping, forward, initializers,
    io, kernel, layers, logger, losses, optim, progress, random, regularization, trainer,
)
from .data import Dataset, standardize
from .exceptions import ConfigurationError, MLPError, NumericInstability, ShapeMismatch, UnknownVariant
from .model import Model, build_model
from .random import Rng
from .trainer import Trainer, train_model

__version__ = '1.0.0'

__all__ = [
    'activations', 'backward', 'config', 'data', 'early_stopping', 'forward', 'initializers',
    'io', 'kernel', 'layers', 'logger', 'losses', 'optim', 'progress', 'random',
    'regularization', 'trainer',
    'Dataset', 'standardize', 'Model', 'build_model', 'Rng', 'Trainer', 'train_model',
    'MLPError', 'ShapeMismatch', 'UnknownVariant', 'ConfigurationError', 'NumericInstability',
]
