"""Early stopping on validation metrics.

Scores are "lower is better": the loss is used as is, the other metrics as
``1 - metric``.
"""
from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, TYPE_CHECKING

from .exceptions import ConfigurationError, UnknownVariant
from .losses import EpochMetrics

if TYPE_CHECKING:
    from .model import Model

IMPROVEMENT_EPS = 1e-5
MAX_EPOCHS_SINCE_BEST = 100
REGRESSION_FACTOR = 2.0

METRICS = ('loss', 'accuracy', 'precision', 'recall', 'f1')


@dataclass(frozen=True)
class EarlyStopping:
    metric: str = 'loss'
    patience: int = 10

    def __post_init__(self):
        if self.metric not in METRICS:
            raise UnknownVariant(f"Unknown early stopping metric: {self.metric!r}")
        if self.patience < 0:
            raise ConfigurationError(f"patience must be non-negative, got {self.patience}")

    def score(self, metrics: EpochMetrics) -> float:
        if self.metric == 'loss':
            return metrics.loss
        if self.metric == 'accuracy':
            return 1 - metrics.accuracy
        if self.metric == 'precision':
            return 1 - metrics.precision
        if self.metric == 'recall':
            return 1 - metrics.recall
        if self.metric == 'f1':
            return 1 - metrics.f1
        raise UnknownVariant(f"Unknown early stopping metric: {self.metric!r}")

    def to_config(self) -> Dict[str, Any]:
        return {'metric': self.metric, 'patience': self.patience}

    def describe(self) -> str:
        return f"Enabled (metric={self.metric}, patience={self.patience})"


def early_stopping_from_config(config: Optional[Dict[str, Any]]) -> Optional[EarlyStopping]:
    if config is None:
        return None
    return EarlyStopping(metric=config['metric'], patience=int(config['patience']))


@dataclass
class BestModelSnapshot:
    epoch: int = 0
    score: float = math.inf
    model: Optional['Model'] = None


class EarlyStoppingMonitor:
    """Decides, once per epoch, whether training should stop.

    ``check`` replaces the snapshot when the score improves by at least
    ``IMPROVEMENT_EPS`` and otherwise counts a deteriorating epoch. It
    returns a human readable stop reason, or None to keep going. It never
    ends training itself.
    """

    def __init__(self, config: EarlyStopping):
        self.config = config
        self.deterioration = 0

    @property
    def improving(self) -> bool:
        return self.deterioration == 0

    def check(self, model: 'Model', best: BestModelSnapshot, epoch: int,
              metrics: EpochMetrics) -> Optional[str]:
        score = self.config.score(metrics)
        if best.score - score >= IMPROVEMENT_EPS:
            self.deterioration = 0
            best.epoch = epoch
            best.score = score
            best.model = model.copy()
            return None

        self.deterioration += 1
        if self.deterioration >= self.config.patience:
            return (f"Early stopping: {self.config.metric} did not improve in "
                    f"{self.config.patience} epochs; best score: {best.score:.6f} at epoch {best.epoch}.")
        if score > best.score and score >= REGRESSION_FACTOR * best.score:
            return f"Early stopping: {self.config.metric} deteriorated significantly."
        if epoch - best.epoch > MAX_EPOCHS_SINCE_BEST:
            return "Early stopping: too many epochs since last improvement."
        return None

