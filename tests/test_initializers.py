from __future__ import annotations

import math

import numpy as np
import pytest

from binmlp.exceptions import ConfigurationError, UnknownVariant
from binmlp.initializers import He, Uniform, Xavier, initialization_from_config, initialize_params
from binmlp.layers import HiddenLayer, InputLayer, OutputLayer
from binmlp.random import Rng


LAYERS = [InputLayer(6), HiddenLayer(10), OutputLayer()]


def test_shapes_and_zero_biases() -> None:
    params = initialize_params(LAYERS, Xavier('uniform'), Rng(1))
    assert [p.shape for p in params] == [(10, 6), (2, 10)]
    for p in params:
        np.testing.assert_array_equal(p.biases, 0.0)


def test_bounds() -> None:
    params = initialize_params(LAYERS, Uniform(), Rng(2))
    assert np.all(np.abs(params[0].weights) <= 0.5)
    params = initialize_params(LAYERS, He('uniform'), Rng(2))
    assert np.all(np.abs(params[0].weights) <= math.sqrt(6.0 / 6))
    params = initialize_params(LAYERS, Xavier('uniform'), Rng(2))
    assert np.all(np.abs(params[0].weights) <= math.sqrt(6.0 / 16))


def test_same_seed_same_parameters() -> None:
    a = initialize_params(LAYERS, He('normal'), Rng(11))
    b = initialize_params(LAYERS, He('normal'), Rng(11))
    for pa, pb in zip(a, b):
        np.testing.assert_array_equal(pa.weights, pb.weights)


def test_config() -> None:
    assert initialization_from_config({'method': 'He', 'dist': 'normal'}) == He('normal')
    assert initialization_from_config({'method': 'Uniform'}) == Uniform()
    with pytest.raises(UnknownVariant):
        initialization_from_config({'method': 'Orthogonal'})
    with pytest.raises(ConfigurationError):
        Xavier('cauchy')
