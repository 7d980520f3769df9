from __future__ import annotations

import math

import numpy as np
import pytest

from binmlp.exceptions import ConfigurationError, ShapeMismatch, UnknownVariant
from binmlp.losses import (
    CategoricalCrossEntropy, EpochMetrics, LossSummary, WeightedBinaryCrossEntropy,
    compute_loss, compute_metrics, loss_from_config, merge_summaries, one_hot,
)
from binmlp.regularization import L2


def test_one_hot_puts_positive_class_first() -> None:
    np.testing.assert_array_equal(one_hot([1, 0]), [[1.0, 0.0], [0.0, 1.0]])


def test_clamped_loss_is_finite_for_confident_mistakes() -> None:
    cce = CategoricalCrossEntropy()
    value = cce.forward(np.array([1.0, 0.0]), np.array([0.0, 1.0]))
    assert math.isfinite(value)
    assert value == pytest.approx(-math.log(1e-9))
    summary = compute_loss([1, 0], np.array([[0.0, 1.0], [1.0, 0.0]]), [], cce)
    assert math.isfinite(summary.mean_loss)
    assert summary.fn == 1 and summary.fp == 1 and summary.correct == 0


def test_cce_gradient_is_output_minus_answer() -> None:
    grad = CategoricalCrossEntropy().gradient(np.array([0.7, 0.3]), np.array([1.0, 0.0]))
    np.testing.assert_allclose(grad, [-0.3, 0.3])


def test_weighted_bce_scales_by_class_weight() -> None:
    loss = WeightedBinaryCrossEntropy(pos_weight=2.0, neg_weight=1.0)
    pos = loss.forward(np.array([1.0, 0.0]), np.array([0.5, 0.5]))
    neg = loss.forward(np.array([0.0, 1.0]), np.array([0.5, 0.5]))
    assert pos == pytest.approx(2 * neg)
    np.testing.assert_allclose(loss.gradient(np.array([0.5, 0.5]), np.array([1.0, 0.0])), [-1.0, 1.0])


def test_loss_validation() -> None:
    with pytest.raises(ConfigurationError):
        CategoricalCrossEntropy(eps=0.6)
    with pytest.raises(ConfigurationError):
        WeightedBinaryCrossEntropy(pos_weight=0.0)
    with pytest.raises(UnknownVariant):
        loss_from_config({'method': 'MSE'})
    assert loss_from_config(WeightedBinaryCrossEntropy(3.0, 1.0).to_config()) == WeightedBinaryCrossEntropy(3.0, 1.0)


def test_compute_loss_counts_and_penalty() -> None:
    outputs = np.array([[0.9, 0.1], [0.2, 0.8], [0.6, 0.4], [0.3, 0.7]])
    labels = [1, 0, 0, 1]
    W = [np.ones((2, 2))]
    plain = compute_loss(labels, outputs, W, CategoricalCrossEntropy())
    assert (plain.tp, plain.tn, plain.fp, plain.fn) == (1, 1, 1, 1)
    penalized = compute_loss(labels, outputs, W, CategoricalCrossEntropy(), L2(0.5))
    assert penalized.mean_loss == pytest.approx(plain.mean_loss + 0.5 / 2 * 4)


def test_compute_loss_rejects_mismatched_outputs() -> None:
    with pytest.raises(ShapeMismatch):
        compute_loss([1, 0], np.array([[0.5, 0.5]]), [], CategoricalCrossEntropy())


def test_metrics_with_empty_denominators_are_zero() -> None:
    m = compute_metrics(0.4, tp=0, tn=5, fp=0, fn=0)
    assert m == EpochMetrics(0.4, 1.0, 0.0, 0.0, 1.0, 0.0)


def test_metrics_values() -> None:
    m = compute_metrics(1.0, tp=3, tn=4, fp=1, fn=2)
    assert m.accuracy == pytest.approx(0.7)
    assert m.precision == pytest.approx(0.75)
    assert m.recall == pytest.approx(0.6)
    assert m.specificity == pytest.approx(0.8)
    assert m.f1 == pytest.approx(2 * 0.75 * 0.6 / 1.35)


def test_merge_summaries_weights_by_batch_size() -> None:
    a = LossSummary(mean_loss=1.0, correct=2, tp=1, tn=1, fp=1, fn=1)
    b = LossSummary(mean_loss=4.0, correct=1, tp=1, tn=0, fp=0, fn=1)
    merged = merge_summaries([a, b])
    assert merged.mean_loss == pytest.approx((4 * 1.0 + 2 * 4.0) / 6)
    assert merged.count == 6
    assert merge_summaries([]) is None
