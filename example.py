"""Example usage of binmlp: train on two synthetic Gaussian blobs, save,
reload and predict.
"""
import os
import tempfile

import numpy as np

from binmlp import Dataset, build_model, standardize, train_model
from binmlp import io
from binmlp.config import parse_activation, parse_early_stopping, parse_optimization, parse_regularization
from binmlp.logger import DEFAULT_LOG_FILENAME, setup_logging


def make_blobs(n=400, n_features=4, seed=0):
    """Two Gaussian clouds; label 1 is centered at +1, label 0 at -1."""
    gen = np.random.default_rng(seed)
    labels = (np.arange(n) % 2).astype(np.float64)
    centers = np.where(labels[:, None] == 1, 1.0, -1.0)
    features = centers + gen.normal(scale=1.2, size=(n, n_features)) + 5.0
    return features, labels


def main():
    out_dir = tempfile.gettempdir()
    logger = setup_logging(filename=os.path.join(out_dir, DEFAULT_LOG_FILENAME), stdout=True)
    raw, labels = make_blobs()
    features, scale_factors = standardize(raw)

    model = build_model(
        scale_factors=scale_factors,
        hidden_sizes=(16, 8),
        activation=parse_activation("leakyrelu,0.02"),
        optimization=parse_optimization("adam,0.005"),
        regularization=parse_regularization("l2,0.001"),
        early_stopping=parse_early_stopping("loss", 10),
        max_epochs=60,
        batch_size=16,
        seed=42,
    )
    model.summary()

    with open(os.path.join(out_dir, 'binmlp_progress.txt'), 'w') as progress:
        best = train_model(model, Dataset(features, labels), progress_log=progress)

    path = os.path.join(out_dir, 'binmlp_example.hdf5')
    io.save_model(path, best)
    restored = io.load_model(path)

    preds = restored.predict(raw[:10], standardized=False)
    logger.info("Best epoch: %d", restored.best_epoch)
    logger.info("Predictions: %s", preds.tolist())
    logger.info("Labels:      %s", labels[:10].astype(int).tolist())


if __name__ == '__main__':
    main()
