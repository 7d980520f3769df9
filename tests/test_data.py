from __future__ import annotations

import numpy as np
import pytest

from binmlp.data import Dataset, apply_standardization, standardize
from binmlp.exceptions import ConfigurationError, ShapeMismatch
from binmlp.layers import ScaleFactor
from binmlp.random import Rng


def test_standardize_zero_mean_unit_variance() -> None:
    raw = np.array([[1.0, 10.0, 3.0], [2.0, 20.0, 3.0], [3.0, 60.0, 3.0], [6.0, 30.0, 3.0]])
    out, factors = standardize(raw)
    np.testing.assert_allclose(out[:, :2].mean(axis=0), 0.0, atol=1e-12)
    np.testing.assert_allclose(out[:, :2].std(axis=0), 1.0)
    # constant column is only centered
    np.testing.assert_array_equal(out[:, 2], 0.0)
    assert factors[2] == ScaleFactor(mean=3.0, stddev=0.0)
    assert factors[0].mean == pytest.approx(3.0)
    np.testing.assert_array_equal(raw[0], [1.0, 10.0, 3.0])


def test_apply_standardization_reproduces_fit() -> None:
    raw = np.random.default_rng(0).normal(3.0, 2.0, size=(20, 4))
    out, factors = standardize(raw)
    np.testing.assert_allclose(apply_standardization(raw, factors), out)
    partial = apply_standardization(raw, [None, factors[1], None, None])
    np.testing.assert_array_equal(partial[:, 0], raw[:, 0])
    with pytest.raises(ShapeMismatch):
        apply_standardization(raw, factors[:2])


def test_dataset_validation() -> None:
    with pytest.raises(ShapeMismatch):
        Dataset(np.zeros((3, 2)), [0, 1])
    with pytest.raises(ConfigurationError):
        Dataset(np.zeros((2, 2)), [0, 2])
    ds = Dataset.from_rows([[1, 0.5, 0.2], [0, 0.1, 0.9]])
    assert len(ds) == 2 and ds.n_features == 2
    np.testing.assert_array_equal(ds.labels, [1.0, 0.0])


def test_split_uses_floor_of_ratio(blobs) -> None:
    train, val = blobs.split(0.75, Rng(3))
    assert len(train) == 90 and len(val) == 30
    train, val = Dataset(np.zeros((7, 1)), np.zeros(7)).split(0.8, Rng(3))
    assert (len(train), len(val)) == (5, 2)


def test_split_is_seeded(blobs) -> None:
    a, _ = blobs.split(0.8, Rng(11))
    b, _ = blobs.split(0.8, Rng(11))
    np.testing.assert_array_equal(a.features, b.features)


def test_batches_cover_every_row_once(blobs) -> None:
    seen = []
    for X, y in blobs.batches(16, Rng(2)):
        assert len(X) == len(y) <= 16
        seen.extend(map(tuple, X))
    assert len(seen) == len(blobs)
    assert sorted(seen) == sorted(map(tuple, blobs.features))
    assert blobs.num_batches(16) == 8


def test_whole_set_batch_and_shuffle_requires_rng(blobs) -> None:
    batches = list(blobs.batches(0, shuffle=False))
    assert len(batches) == 1
    np.testing.assert_array_equal(batches[0][0], blobs.features)
    with pytest.raises(ConfigurationError):
        list(blobs.batches(8))


def test_empty_dataset_yields_no_batches() -> None:
    empty = Dataset(np.zeros((0, 2)), np.zeros(0))
    assert list(empty.batches(0, shuffle=False)) == []
    assert list(empty.batches(4, Rng(1))) == []
    assert empty.num_batches(0) == 0
