"""Tabular dataset container, standardization and deterministic batching."""
from __future__ import annotations
import numpy as np
from typing import Iterator, List, Optional, Sequence, Tuple

from . import kernel
from .exceptions import ConfigurationError, ShapeMismatch
from .layers import ScaleFactor
from .random import Rng


def standardize(features) -> Tuple[np.ndarray, List[ScaleFactor]]:
    """Standardize every column to zero mean and unit variance.

    A column with zero standard deviation is only centered.

    Args:
        features: Matrix of shape (n, d)

    Returns:
        (standardized copy, one ScaleFactor per column)
    """
    x = kernel.as_matrix(features)
    n = x.shape[0]
    if n == 0:
        raise ShapeMismatch("Cannot standardize an empty feature matrix")
    out = x.copy()
    factors: List[ScaleFactor] = []
    for j in range(x.shape[1]):
        col = x[:, j]
        mean = kernel.kahan_sum(col) / n
        mean_sq = kernel.sum_squares(col) / n
        stddev = float(np.sqrt(max(mean_sq - mean * mean, 0.0)))
        if stddev > 0:
            out[:, j] = (col - mean) / stddev
        else:
            out[:, j] = col - mean
        factors.append(ScaleFactor(mean=mean, stddev=stddev))
    return out, factors


def apply_standardization(features, scale_factors: Sequence[Optional[ScaleFactor]]) -> np.ndarray:
    """Apply stored scale factors; ``None`` leaves a column unchanged."""
    x = kernel.as_matrix(features).copy()
    if not scale_factors:
        return x
    if len(scale_factors) != x.shape[1]:
        raise ShapeMismatch(
            f"{len(scale_factors)} scale factors for {x.shape[1]} feature columns"
        )
    for j, sf in enumerate(scale_factors):
        if sf is None:
            continue
        if sf.stddev > 0:
            x[:, j] = (x[:, j] - sf.mean) / sf.stddev
        else:
            x[:, j] = x[:, j] - sf.mean
    return x


class Dataset:
    """Feature matrix plus 0/1 labels.

    Attributes:
        features: Matrix of shape (n, d), label column removed
        labels: Vector of length n with values in {0, 1}
    """

    def __init__(self, features, labels) -> None:
        features = kernel.as_matrix(features)
        labels = np.asarray(labels, dtype=np.float64).reshape(-1)
        if features.shape[0] != labels.shape[0]:
            raise ShapeMismatch(
                f"Features and labels must have same length, got {features.shape[0]} and {labels.shape[0]}"
            )
        if not np.all((labels == 0) | (labels == 1)):
            raise ConfigurationError("Labels must be 0 or 1")
        self.features: np.ndarray = features
        self.labels: np.ndarray = labels

    @classmethod
    def from_rows(cls, rows) -> 'Dataset':
        """Build from rows whose first column is the label."""
        rows = kernel.as_matrix(rows)
        return cls(rows[:, 1:], rows[:, 0])

    def __len__(self) -> int:
        return self.features.shape[0]

    @property
    def n_features(self) -> int:
        return self.features.shape[1]

    def subset(self, idx) -> 'Dataset':
        return Dataset(self.features[idx], self.labels[idx])

    def split(self, ratio: float, rng: Rng) -> Tuple['Dataset', 'Dataset']:
        """Shuffle, then put the first ``floor(n * ratio)`` rows in training."""
        if not (0.0 < ratio <= 1.0):
            raise ConfigurationError(f"Split ratio must lie in (0, 1], got {ratio}")
        perm = rng.permutation(len(self))
        n_train = int(np.floor(len(self) * ratio))
        return self.subset(perm[:n_train]), self.subset(perm[n_train:])

    def batches(self, batch_size: int, rng: Optional[Rng] = None,
                shuffle: bool = True) -> Iterator[Tuple[np.ndarray, np.ndarray]]:
        """Yield contiguous (features, labels) slices of a shuffled order.

        A batch size of 0 yields the whole set as one batch.
        """
        n = len(self)
        if batch_size < 0:
            raise ConfigurationError(f"batch_size must be non-negative, got {batch_size}")
        if shuffle:
            if rng is None:
                raise ConfigurationError("Shuffling requires an explicit Rng")
            idx = rng.permutation(n)
        else:
            idx = np.arange(n)
        size = batch_size or n
        if n == 0:
            return
        for start in range(0, n, size):
            sel = idx[start:start + size]
            yield self.features[sel], self.labels[sel]

    def num_batches(self, batch_size: int) -> int:
        size = batch_size or len(self)
        return (len(self) + size - 1) // size if size else 0
