"""Training loop: epochs, batches, validation and the best-model snapshot."""
from __future__ import annotations
import logging
from typing import IO, Optional, Union, TYPE_CHECKING

from tqdm import tqdm

from .backward import backward_pass
from .data import Dataset
from .early_stopping import BestModelSnapshot, EarlyStoppingMonitor
from .exceptions import ConfigurationError
from .forward import forward_pass
from .logger import log_progress
from .losses import EpochMetrics, LossSummary, compute_loss, merge_summaries, metrics_from_summary
from .progress import ProgressLog
from .random import Rng

if TYPE_CHECKING:
    from .model import Model

logger = logging.getLogger(__name__)


class Trainer:
    """Drives one training run of ``model``.

    The model is mutated in place batch by batch. ``fit`` returns a copy of
    the best snapshot carrying the complete metric history, so the history
    always covers every epoch run even when the parameters come from an
    earlier one.
    """

    def __init__(self, model: 'Model', rng: Optional[Rng] = None, verbose: bool = True,
                 progress_log: Union[ProgressLog, IO[str], None] = None):
        self.model = model
        self.rng = rng or Rng(model.seed)
        self.verbose = verbose
        if isinstance(progress_log, ProgressLog):
            self.progress = progress_log
        else:
            self.progress = ProgressLog(progress_log)
        self.optimizer = model.optimization.build(model.layer_sizes)
        self.monitor = EarlyStoppingMonitor(model.early_stopping) if model.early_stopping else None
        self.best = BestModelSnapshot()
        self.stop_reason: Optional[str] = None

    def train_batch(self, X, y) -> LossSummary:
        model = self.model
        result = forward_pass(X, model)
        summary = compute_loss(y, result.output, model.weights, model.loss, model.regularization)
        backward_pass(y, model, len(y), result.activations, result.pre_activations,
                      self.optimizer.update, model.regularization)
        return summary

    def run_epoch(self, train: Dataset, epoch: int) -> EpochMetrics:
        batch_size = self.model.batch_size
        pbar = tqdm(
            train.batches(batch_size, self.rng),
            total=train.num_batches(batch_size),
            desc=f"Epoch {epoch}/{self.model.max_epochs}",
            disable=not self.verbose,
            leave=False,
        )
        summaries = []
        for X, y in pbar:
            summaries.append(self.train_batch(X, y))
            running = merge_summaries(summaries)
            pbar.set_postfix(loss=running.mean_loss, acc=running.correct / running.count)
        return metrics_from_summary(merge_summaries(summaries))

    def evaluate(self, dataset: Dataset) -> EpochMetrics:
        model = self.model
        output = forward_pass(dataset.features, model).output
        summary = compute_loss(dataset.labels, output, model.weights, model.loss, model.regularization)
        return metrics_from_summary(summary)

    def fit(self, train: Dataset, val: Dataset) -> 'Model':
        if len(train) == 0:
            raise ConfigurationError("Training set is empty")
        model = self.model
        if train.n_features != model.layers[0].size:
            raise ConfigurationError(
                f"Model expects {model.layers[0].size} features, training set has {train.n_features}"
            )
        epoch = 0
        for epoch in range(1, model.max_epochs + 1):
            train_metrics = self.run_epoch(train, epoch)
            val_metrics = self.evaluate(val)
            model.train_metrics.append(train_metrics)
            model.val_metrics.append(val_metrics)
            self.progress.record(epoch, train_metrics, val_metrics)
            log_progress(
                logger,
                f"loss: {train_metrics.loss:.6f} - acc: {train_metrics.accuracy:.4f} - "
                f"val_loss: {val_metrics.loss:.6f} - val_acc: {val_metrics.accuracy:.4f}",
                epoch, model.max_epochs,
            )
            if self.monitor is None:
                continue
            self.stop_reason = self.monitor.check(model, self.best, epoch, val_metrics)
            if self.stop_reason:
                logger.info(self.stop_reason)
                break

        if self.best.model is None:
            # no early stopping configured: the last epoch is the result
            self.best.epoch = epoch
            self.best.model = model.copy()
        result = self.best.model.copy()
        result.best_epoch = self.best.epoch
        result.train_metrics = list(model.train_metrics)
        result.val_metrics = list(model.val_metrics)
        logger.info("Training finished after %d epochs; best epoch %d", epoch, self.best.epoch)
        return result


def train_model(model: 'Model', dataset: Dataset, rng: Optional[Rng] = None,
                verbose: bool = True, progress_log=None) -> 'Model':
    """Split ``dataset`` by ``model.split_ratio`` and train on it."""
    rng = rng or Rng(model.seed)
    train, val = dataset.split(model.split_ratio, rng)
    logger.info("Training rows: %d, validation rows: %d", len(train), len(val))
    return Trainer(model, rng=rng, verbose=verbose, progress_log=progress_log).fit(train, val)
