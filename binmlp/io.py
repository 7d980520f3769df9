"""Saving and loading models as HDF5 files via h5py.

Layout::

    /                    attrs['architecture'] = JSON descriptor record
    /parameters/<k>/weights, /parameters/<k>/biases
    /history/train, /history/val   (epochs, 6) metric rows
"""
from __future__ import annotations
import json
import logging
from typing import List

import h5py
import numpy as np

from .exceptions import ShapeMismatch
from .losses import METRIC_NAMES, EpochMetrics
from .model import Model

logger = logging.getLogger(__name__)


def _history_array(history: List[EpochMetrics]) -> np.ndarray:
    if not history:
        return np.zeros((0, len(METRIC_NAMES)), dtype=np.float64)
    return np.array([m.as_tuple() for m in history], dtype=np.float64)


def _history_from_array(data: np.ndarray) -> List[EpochMetrics]:
    data = np.asarray(data, dtype=np.float64)
    if data.size == 0:
        return []
    if data.ndim != 2 or data.shape[1] != len(METRIC_NAMES):
        raise ShapeMismatch(f"Metric history must have shape (epochs, {len(METRIC_NAMES)}), got {data.shape}")
    return [EpochMetrics.from_sequence(row) for row in data]


def save_model(path: str, model: Model) -> None:
    record = model.to_record()
    parameters = record.pop('parameters')
    record.pop('train_metrics')
    record.pop('val_metrics')
    with h5py.File(path, 'w') as f:
        f.attrs['architecture'] = json.dumps(record)
        group = f.create_group('parameters')
        for k, param in enumerate(model.parameters):
            sub = group.create_group(str(k))
            sub.create_dataset('weights', data=param.weights)
            sub.create_dataset('biases', data=param.biases)
        history = f.create_group('history')
        history.create_dataset('train', data=_history_array(model.train_metrics))
        history.create_dataset('val', data=_history_array(model.val_metrics))
    logger.info("Saved model with %d parameter sets to %s", len(parameters), path)


def load_model(path: str) -> Model:
    with h5py.File(path, 'r') as f:
        record = json.loads(f.attrs['architecture'])
        group = f['parameters']
        record['parameters'] = [
            {'weights': group[str(k)]['weights'][()], 'biases': group[str(k)]['biases'][()]}
            for k in range(len(group))
        ]
        train = _history_from_array(f['history']['train'][()])
        val = _history_from_array(f['history']['val'][()])
    model = Model.from_record(record)
    model.train_metrics = train
    model.val_metrics = val
    logger.info("Loaded model %s from %s", model.layer_sizes, path)
    return model
