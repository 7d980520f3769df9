"""Loss functions and classification metrics.

Both losses work on 2-vectors whose column 0 is the positive class
probability. Gradients are taken with respect to the softmax output and are
only valid when the output layer is softmax.
"""
from __future__ import annotations
import math
import numpy as np
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Iterable, Optional, Sequence

from . import kernel
from .exceptions import ConfigurationError, NumericInstability, ShapeMismatch, UnknownVariant


def one_hot(labels) -> np.ndarray:
    """Map 0/1 labels to rows ``[label, 1 - label]``."""
    y = np.asarray(labels, dtype=np.float64).reshape(-1)
    return np.stack([y, 1.0 - y], axis=1)


def _check_eps(eps: float) -> None:
    if not (0.0 < eps < 0.5):
        raise ConfigurationError(f"Loss eps must lie in (0, 0.5), got {eps}")


class Loss:
    method: ClassVar[str] = ''

    def forward(self, answer: np.ndarray, predicted: np.ndarray) -> float:
        """Loss of a single sample."""
        raise NotImplementedError

    def gradient(self, predicted: np.ndarray, answer: np.ndarray) -> np.ndarray:
        """d loss / d output activation for a single sample."""
        raise NotImplementedError

    def to_config(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class CategoricalCrossEntropy(Loss):
    eps: float = 1e-9
    method: ClassVar[str] = 'CCE'

    def __post_init__(self):
        _check_eps(self.eps)

    def forward(self, answer, predicted):
        p_pos = min(max(predicted[0], self.eps), 1 - self.eps)
        p_neg = min(max(1 - predicted[0], self.eps), 1 - self.eps)
        return -(answer[0] * math.log(p_pos) + (1 - answer[0]) * math.log(p_neg))

    def gradient(self, predicted, answer):
        return kernel.sub(predicted, answer)

    def to_config(self):
        return {'method': self.method, 'eps': self.eps}


@dataclass(frozen=True)
class WeightedBinaryCrossEntropy(Loss):
    pos_weight: float = 1.0
    neg_weight: float = 1.0
    eps: float = 1e-9
    method: ClassVar[str] = 'WeightedBCE'

    def __post_init__(self):
        if self.pos_weight <= 0 or self.neg_weight <= 0:
            raise ConfigurationError(
                f"WeightedBCE weights must be positive, got {self.pos_weight}, {self.neg_weight}"
            )
        _check_eps(self.eps)

    def forward(self, answer, predicted):
        p_pos = min(max(predicted[0], self.eps), 1 - self.eps)
        return -(self.pos_weight * answer[0] * math.log(p_pos)
                 + self.neg_weight * (1 - answer[0]) * math.log(1 - p_pos))

    def gradient(self, predicted, answer):
        weight = answer[0] * self.pos_weight + (1 - answer[0]) * self.neg_weight
        return kernel.sub(predicted, answer) * weight

    def to_config(self):
        return {
            'method': self.method, 'pos_weight': self.pos_weight,
            'neg_weight': self.neg_weight, 'eps': self.eps,
        }


NAME2LOSS = {
    'CCE': CategoricalCrossEntropy,
    'WeightedBCE': WeightedBinaryCrossEntropy,
}


def loss_from_config(config: Dict[str, Any]) -> Loss:
    method = config.get('method')
    cls = NAME2LOSS.get(method)
    if cls is None:
        raise UnknownVariant(f"Unknown loss function: {method!r}")
    return cls(**{k: v for k, v in config.items() if k != 'method'})


# ============================================================================
# aggregation
# ============================================================================

METRIC_NAMES = ('loss', 'accuracy', 'precision', 'recall', 'specificity', 'f1')


@dataclass(frozen=True)
class EpochMetrics:
    loss: float
    accuracy: float
    precision: float
    recall: float
    specificity: float
    f1: float

    def as_tuple(self):
        return tuple(getattr(self, name) for name in METRIC_NAMES)

    def to_dict(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in METRIC_NAMES}

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> 'EpochMetrics':
        if len(values) != len(METRIC_NAMES):
            raise ShapeMismatch(f"Expected {len(METRIC_NAMES)} metric values, got {len(values)}")
        return cls(*(float(v) for v in values))


@dataclass(frozen=True)
class LossSummary:
    """Mean loss plus confusion counts for one batch."""
    mean_loss: float
    correct: int
    tp: int
    tn: int
    fp: int
    fn: int

    @property
    def count(self) -> int:
        return self.tp + self.tn + self.fp + self.fn


def compute_loss(labels, outputs, weights: Iterable[np.ndarray], loss: Loss,
                 regularization=None) -> LossSummary:
    """Evaluate mean loss and confusion counts for a batch.

    Args:
        labels: 0/1 answers, one per row of ``outputs``
        outputs: Softmax output matrix of shape (n, 2)
        weights: Weight matrices, used only for the regularization penalty
        loss: Loss descriptor
        regularization: Optional regularization descriptor

    Returns:
        LossSummary with the penalty already added to ``mean_loss``

    Raises:
        ShapeMismatch: If labels and outputs disagree in length
        NumericInstability: If the loss is not finite
    """
    labels = np.asarray(labels, dtype=np.float64).reshape(-1)
    outputs = kernel.as_matrix(outputs)
    if outputs.shape[0] != labels.shape[0] or outputs.shape[1] != 2:
        raise ShapeMismatch(
            f"Outputs of shape {outputs.shape} do not match {labels.shape[0]} labels"
        )
    answers = one_hot(labels)
    per_sample = np.empty((labels.shape[0],), dtype=np.float64)
    tp = tn = fp = fn = 0
    for k in range(labels.shape[0]):
        answer_pos = labels[k] == 1
        pred_pos = outputs[k, 0] >= 0.5
        if answer_pos and pred_pos:
            tp += 1
        elif not answer_pos and not pred_pos:
            tn += 1
        elif pred_pos:
            fp += 1
        else:
            fn += 1
        per_sample[k] = loss.forward(answers[k], outputs[k])
    n = labels.shape[0]
    mean_loss = kernel.kahan_sum(per_sample) / n if n else 0.0
    if regularization is not None:
        mean_loss += regularization.penalty(weights)
    if not math.isfinite(mean_loss):
        raise NumericInstability(f"Loss is not finite: {mean_loss}")
    return LossSummary(mean_loss=mean_loss, correct=tp + tn, tp=tp, tn=tn, fp=fp, fn=fn)


def compute_metrics(loss: float, tp: int, tn: int, fp: int, fn: int) -> EpochMetrics:
    total = tp + tn + fp + fn
    accuracy = (tp + tn) / total if total else 0.0
    precision = tp / (tp + fp) if tp + fp else 0.0
    recall = tp / (tp + fn) if tp + fn else 0.0
    specificity = tn / (tn + fp) if tn + fp else 0.0
    f1 = 2 * precision * recall / (precision + recall) if precision + recall else 0.0
    return EpochMetrics(
        loss=float(loss), accuracy=accuracy, precision=precision,
        recall=recall, specificity=specificity, f1=f1,
    )


def metrics_from_summary(summary: LossSummary) -> EpochMetrics:
    return compute_metrics(summary.mean_loss, summary.tp, summary.tn, summary.fp, summary.fn)


def merge_summaries(summaries: Sequence[LossSummary]) -> Optional[LossSummary]:
    """Combine batch summaries, weighting each mean loss by its batch size."""
    if not summaries:
        return None
    total = sum(s.count for s in summaries)
    weighted = np.array([s.mean_loss * s.count for s in summaries], dtype=np.float64)
    return LossSummary(
        mean_loss=kernel.kahan_sum(weighted) / total if total else 0.0,
        correct=sum(s.correct for s in summaries),
        tp=sum(s.tp for s in summaries),
        tn=sum(s.tn for s in summaries),
        fp=sum(s.fp for s in summaries),
        fn=sum(s.fn for s in summaries),
    )
