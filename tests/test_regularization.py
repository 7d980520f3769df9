from __future__ import annotations

import numpy as np
import pytest

from binmlp.exceptions import ConfigurationError, UnknownVariant
from binmlp.regularization import L2, regularization_from_config


def test_penalty_is_half_lambda_sum_of_squares() -> None:
    weights = [np.array([[1.0, 2.0]]), np.array([[3.0]])]
    assert L2(0.2).penalty(weights) == pytest.approx(0.1 * 14)


def test_penalty_grows_with_lambda_and_weight_scale() -> None:
    gen = np.random.default_rng(3)
    weights = [gen.normal(size=(4, 3)), gen.normal(size=(2, 4))]
    lambdas = [0.0, 0.001, 0.01, 0.1, 1.0]
    penalties = [L2(lam).penalty(weights) for lam in lambdas]
    assert penalties[0] == 0.0
    assert all(a < b for a, b in zip(penalties, penalties[1:]))
    scaled = [L2(0.1).penalty([w * s for w in weights]) for s in (0.5, 1.0, 2.0)]
    assert scaled[0] < scaled[1] < scaled[2]


def test_gradient_is_lambda_times_weights() -> None:
    W = np.array([[1.0, -2.0], [0.5, 0.0]])
    np.testing.assert_allclose(L2(0.3).gradient(W), 0.3 * W)


def test_config() -> None:
    assert L2(0.05).to_config() == {'method': 'L2', 'lambda': 0.05}
    assert regularization_from_config({'method': 'L2', 'lambda': 0.05}) == L2(0.05)
    assert regularization_from_config(None) is None
    with pytest.raises(UnknownVariant):
        regularization_from_config({'method': 'L1', 'lambda': 0.1})
    with pytest.raises(ConfigurationError):
        L2(-1.0)
