"""Logging setup for scripts driving the training core.

The library itself only calls ``logging.getLogger(__name__)``; handlers are
installed here, on demand.
"""
import logging
import os


DEFAULT_LOG_FILENAME = 'log.txt'
LOGGER_NAME = 'binmlp'


def setup_logging(filename=None, stdout=True, level=logging.INFO):
    """Attach a formatter to the package logger.

    Args:
        filename: Log file path; no file handler when None
        stdout: Also log to the console
        level: Logger level

    Returns:
        The configured ``binmlp`` logger
    """
    fmt = '[%(asctime)s] %(levelname)-8s %(message)s'
    datefmt = '%Y-%m-%d %H:%M:%S'
    formatter = logging.Formatter(fmt=fmt, datefmt=datefmt)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if filename is not None:
        dirname = os.path.dirname(filename)
        if dirname:
            os.makedirs(dirname, exist_ok=True)
        fhandler = logging.FileHandler(filename, mode='w')
        fhandler.setFormatter(formatter)
        logger.addHandler(fhandler)

    if stdout:
        shandler = logging.StreamHandler()
        shandler.setFormatter(formatter)
        logger.addHandler(shandler)

    return logger


def log_progress(logger, msg, i, n):
    logger.info("(%0*d / %d) %s", len(str(n)), i, n, msg)
