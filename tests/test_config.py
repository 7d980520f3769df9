from __future__ import annotations

import pytest

from binmlp.activations import LeakyReLU, ReLU, Tanh
from binmlp.config import (
    parse_activation, parse_early_stopping, parse_hidden_sizes, parse_initialization,
    parse_loss, parse_optimization, parse_regularization,
)
from binmlp.early_stopping import EarlyStopping
from binmlp.exceptions import ConfigurationError, UnknownVariant
from binmlp.initializers import He, Uniform, Xavier
from binmlp.losses import CategoricalCrossEntropy, WeightedBinaryCrossEntropy
from binmlp.optim import SGD, AdaGrad, Adam, AdamW, MomentumSGD, RMSProp
from binmlp.regularization import L2


@pytest.mark.parametrize("text, expected", [
    ("sgd", SGD()),
    ("SGD,0.1", SGD(0.1)),
    ("msgd,0.05,0.8", MomentumSGD(lr=0.05, alpha=0.8)),
    ("momentumsgd", MomentumSGD()),
    ("adagrad,0.02", AdaGrad(lr=0.02)),
    ("rmsprop,0.9,0.001", RMSProp(rho=0.9, lr=0.001)),
    ("adam,0.001,0.9,0.999,1e-8", Adam()),
    ("adamw,1e-4,0.001", AdamW(weight_decay=1e-4, lr=0.001)),
])
def test_parse_optimization(text, expected) -> None:
    assert parse_optimization(text) == expected


def test_parse_optimization_errors() -> None:
    with pytest.raises(UnknownVariant):
        parse_optimization("nadam")
    with pytest.raises(ConfigurationError):
        parse_optimization("sgd,0.1,0.2")
    with pytest.raises(ConfigurationError):
        parse_optimization("sgd,fast")
    with pytest.raises(ConfigurationError):
        parse_optimization("sgd,0")


def test_parse_descriptors() -> None:
    assert parse_activation("relu") == ReLU()
    assert parse_activation("Tanh") == Tanh()
    assert parse_activation("leakyrelu,0.02") == LeakyReLU(0.02)
    assert parse_initialization("he,normal") == He('normal')
    assert parse_initialization("xavier") == Xavier('uniform')
    assert parse_initialization("uniform") == Uniform()
    assert parse_loss("cce") == CategoricalCrossEntropy()
    assert parse_loss("weightedbce,2,1") == WeightedBinaryCrossEntropy(2.0, 1.0)
    assert parse_regularization("l2,0.01") == L2(0.01)
    assert parse_regularization("none") is None
    assert parse_regularization(None) is None
    with pytest.raises(UnknownVariant):
        parse_activation("gelu")
    with pytest.raises(UnknownVariant):
        parse_loss("hinge")


def test_parse_early_stopping() -> None:
    assert parse_early_stopping("f1score", 5) == EarlyStopping('f1', 5)
    assert parse_early_stopping("Loss", 3) == EarlyStopping('loss', 3)
    assert parse_early_stopping("loss", 0) is None
    assert parse_early_stopping("", 4) is None
    with pytest.raises(UnknownVariant):
        parse_early_stopping("auc", 4)


def test_parse_hidden_sizes() -> None:
    assert parse_hidden_sizes("24,24") == [24, 24]
    with pytest.raises(ConfigurationError):
        parse_hidden_sizes("24,0")
