"""Exception types raised by the training core."""


class MLPError(Exception):
    """Base class for every error raised by binmlp."""


class ShapeMismatch(MLPError, ValueError):
    """Raised when weight, bias or activation dimensions disagree."""


class UnknownVariant(MLPError, ValueError):
    """Raised for an unrecognized layer, activation, loss, optimizer,
    initialization, regularization or early stopping tag.
    """


class ConfigurationError(MLPError, ValueError):
    """Raised for an invalid hyperparameter value."""


class NumericInstability(MLPError, ArithmeticError):
    """Raised when a loss or gradient stops being finite."""
