from __future__ import annotations

import numpy as np
import pytest

from binmlp.data import Dataset, standardize


def make_blobs(n: int = 120, n_features: int = 3, seed: int = 0):
    gen = np.random.default_rng(seed)
    labels = (np.arange(n) % 2).astype(np.float64)
    centers = np.where(labels[:, None] == 1, 1.5, -1.5)
    features = centers + gen.normal(size=(n, n_features))
    return features, labels


@pytest.fixture
def blobs() -> Dataset:
    features, labels = make_blobs()
    features, _ = standardize(features)
    return Dataset(features, labels)
