"""Model class holding the topology, parameters, configuration and history."""
from __future__ import annotations
import logging
import numpy as np
from typing import Any, Dict, List, Optional, Sequence

from .activations import Activation, ReLU
from .data import apply_standardization
from .early_stopping import EarlyStopping, early_stopping_from_config
from .exceptions import ConfigurationError, ShapeMismatch, UnknownVariant
from .forward import forward_pass
from .initializers import Initialization, Xavier, initialization_from_config, initialize_params
from .layers import (
    HiddenLayer, InputLayer, Layer, LayerParameter, OutputLayer, ScaleFactor,
    layer_from_config, layer_sizes, validate_layers,
)
from .losses import CategoricalCrossEntropy, EpochMetrics, Loss, loss_from_config
from .optim import SGD, OptimizationMethod, optimization_from_config
from .random import Rng
from .regularization import Regularization, regularization_from_config

logger = logging.getLogger(__name__)

FORMAT_VERSION = '1.0.0'


def _check_variant(value, base: type, kind: str) -> None:
    if not isinstance(value, base):
        raise UnknownVariant(f"Unknown {kind}: {value!r}")


class Model:
    def __init__(self, layers: Sequence[Layer], parameters: Sequence[LayerParameter],
                 initialization: Initialization, loss: Loss, optimization: OptimizationMethod,
                 regularization: Optional[Regularization] = None,
                 early_stopping: Optional[EarlyStopping] = None,
                 seed: int = 123, max_epochs: int = 100, batch_size: int = 8,
                 split_ratio: float = 0.8, best_epoch: int = 0,
                 train_metrics: Optional[List[EpochMetrics]] = None,
                 val_metrics: Optional[List[EpochMetrics]] = None,
                 version: str = FORMAT_VERSION):
        validate_layers(layers)
        if len(parameters) != len(layers) - 1:
            raise ShapeMismatch(
                f"{len(layers)} layers need {len(layers) - 1} parameter sets, got {len(parameters)}"
            )
        for k, (prev, curr, param) in enumerate(zip(layers[:-1], layers[1:], parameters)):
            if param.weights.shape != (curr.size, prev.size):
                raise ShapeMismatch(
                    f"Boundary {k}: expected weights {(curr.size, prev.size)}, got {param.weights.shape}"
                )
        _check_variant(initialization, Initialization, 'initialization method')
        _check_variant(loss, Loss, 'loss function')
        _check_variant(optimization, OptimizationMethod, 'optimization method')
        if regularization is not None:
            _check_variant(regularization, Regularization, 'regularization method')
        if early_stopping is not None:
            _check_variant(early_stopping, EarlyStopping, 'early stopping configuration')
        if max_epochs < 1:
            raise ConfigurationError(f"max_epochs must be positive, got {max_epochs}")
        if batch_size < 0:
            raise ConfigurationError(f"batch_size must be non-negative, got {batch_size}")
        if not (0.0 < split_ratio <= 1.0):
            raise ConfigurationError(f"split_ratio must lie in (0, 1], got {split_ratio}")
        self.layers: List[Layer] = list(layers)
        self.parameters: List[LayerParameter] = list(parameters)
        self.initialization = initialization
        self.loss = loss
        self.optimization = optimization
        self.regularization = regularization
        self.early_stopping = early_stopping
        self.seed = seed
        self.max_epochs = max_epochs
        self.batch_size = batch_size
        self.split_ratio = split_ratio
        self.best_epoch = best_epoch
        self.train_metrics: List[EpochMetrics] = list(train_metrics or [])
        self.val_metrics: List[EpochMetrics] = list(val_metrics or [])
        self.version = version

    @property
    def layer_sizes(self) -> List[int]:
        return layer_sizes(self.layers)

    @property
    def weights(self) -> List[np.ndarray]:
        return [p.weights for p in self.parameters]

    @property
    def input_layer(self) -> InputLayer:
        return self.layers[0]

    def copy(self) -> 'Model':
        """Snapshot: parameter arrays and history lists are copied, the
        immutable descriptors are shared."""
        return Model(
            layers=self.layers,
            parameters=[p.copy() for p in self.parameters],
            initialization=self.initialization,
            loss=self.loss,
            optimization=self.optimization,
            regularization=self.regularization,
            early_stopping=self.early_stopping,
            seed=self.seed,
            max_epochs=self.max_epochs,
            batch_size=self.batch_size,
            split_ratio=self.split_ratio,
            best_epoch=self.best_epoch,
            train_metrics=list(self.train_metrics),
            val_metrics=list(self.val_metrics),
            version=self.version,
        )

    def forward(self, x):
        return forward_pass(x, self)

    def predict_proba(self, x, standardized: bool = True) -> np.ndarray:
        """Softmax output for each row; column 0 is the positive class."""
        x = np.asarray(x, dtype=np.float64)
        if not standardized:
            x = apply_standardization(x, self.input_layer.scale_factors)
        return self.forward(x).output

    def predict(self, x, standardized: bool = True) -> np.ndarray:
        return (self.predict_proba(x, standardized=standardized)[:, 0] >= 0.5).astype(np.int64)

    def fit(self, train, val, rng: Optional[Rng] = None, verbose: bool = True,
            progress_log=None) -> 'Model':
        from .trainer import Trainer
        return Trainer(self, rng=rng, verbose=verbose, progress_log=progress_log).fit(train, val)

    def summary(self) -> str:
        lines = [
            f"B (Batch Size): {'ALL' if self.batch_size == 0 else self.batch_size}",
            f"Layers: {len(self.layers)}",
        ]
        for i, layer in enumerate(self.layers):
            lines.append(f" Layer {i}: {layer.describe()}")
        lines.append(f"Parameters Initialization Method: {self.initialization.describe()}")
        lines.append(f"Loss Function: {self.loss.method}")
        if self.regularization is not None:
            lines.append(f"Regularization Method: {self.regularization.method} "
                         f"(lambda={self.regularization.lam})")
        lines.append(f"Optimization Method: {self.optimization.describe()}")
        lines.append(f"Early Stopping: "
                     f"{self.early_stopping.describe() if self.early_stopping else 'Disabled'}")
        total = sum(p.weights.size + p.biases.size for p in self.parameters)
        lines.append(f"Total params: {total}")
        text = '\n'.join(lines)
        for line in lines:
            logger.info(line)
        return text

    def to_record(self) -> Dict[str, Any]:
        return {
            'version': self.version,
            'seed': self.seed,
            'split_ratio': self.split_ratio,
            'max_epochs': self.max_epochs,
            'batch_size': self.batch_size,
            'layers': [layer.to_config() for layer in self.layers],
            'initialization': self.initialization.to_config(),
            'loss': self.loss.to_config(),
            'regularization': self.regularization.to_config() if self.regularization else None,
            'optimization': self.optimization.to_config(),
            'early_stopping': self.early_stopping.to_config() if self.early_stopping else None,
            'best_epoch': self.best_epoch,
            'parameters': [
                {'weights': p.weights.tolist(), 'biases': p.biases.tolist()}
                for p in self.parameters
            ],
            'train_metrics': [m.to_dict() for m in self.train_metrics],
            'val_metrics': [m.to_dict() for m in self.val_metrics],
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> 'Model':
        return cls(
            layers=[layer_from_config(c) for c in record['layers']],
            parameters=[LayerParameter(np.array(p['weights'], dtype=np.float64),
                                       np.array(p['biases'], dtype=np.float64))
                        for p in record['parameters']],
            initialization=initialization_from_config(record['initialization']),
            loss=loss_from_config(record['loss']),
            optimization=optimization_from_config(record['optimization']),
            regularization=regularization_from_config(record.get('regularization')),
            early_stopping=early_stopping_from_config(record.get('early_stopping')),
            seed=int(record['seed']),
            max_epochs=int(record['max_epochs']),
            batch_size=int(record['batch_size']),
            split_ratio=float(record['split_ratio']),
            best_epoch=int(record.get('best_epoch', 0)),
            train_metrics=[EpochMetrics(**m) for m in record.get('train_metrics', [])],
            val_metrics=[EpochMetrics(**m) for m in record.get('val_metrics', [])],
            version=record.get('version', FORMAT_VERSION),
        )

    def __repr__(self):
        return f"<Model layers={self.layer_sizes} best_epoch={self.best_epoch}>"


def build_model(n_features: Optional[int] = None,
                scale_factors: Optional[Sequence[Optional[ScaleFactor]]] = None,
                hidden_sizes: Sequence[int] = (24, 24),
                activation: Optional[Activation] = None,
                initialization: Optional[Initialization] = None,
                loss: Optional[Loss] = None,
                optimization: Optional[OptimizationMethod] = None,
                regularization: Optional[Regularization] = None,
                early_stopping: Optional[EarlyStopping] = None,
                seed: Optional[int] = None, max_epochs: int = 100,
                batch_size: int = 8, split_ratio: float = 0.8,
                rng: Optional[Rng] = None) -> Model:
    """Assemble a freshly initialized model.

    Either ``n_features`` or ``scale_factors`` (one entry per feature) sets
    the input width. Unset descriptors fall back to ReLU hidden units,
    Xavier-uniform initialization, cross entropy and SGD.
    """
    if scale_factors is None:
        if n_features is None:
            raise ConfigurationError("Either n_features or scale_factors is required")
        scale_factors = ()
    else:
        scale_factors = tuple(scale_factors)
        if n_features is None:
            n_features = len(scale_factors)
    activation = activation or ReLU()
    layers: List[Layer] = [InputLayer(size=n_features, scale_factors=scale_factors)]
    layers += [HiddenLayer(size=size, activation=activation) for size in hidden_sizes]
    layers.append(OutputLayer())
    seed = 123 if seed is None else seed
    initialization = initialization or Xavier('uniform')
    rng = rng or Rng(seed)
    parameters = initialize_params(layers, initialization, rng)
    return Model(
        layers=layers,
        parameters=parameters,
        initialization=initialization,
        loss=loss or CategoricalCrossEntropy(),
        optimization=optimization or SGD(),
        regularization=regularization,
        early_stopping=early_stopping,
        seed=seed,
        max_epochs=max_epochs,
        batch_size=batch_size,
        split_ratio=split_ratio,
    )
