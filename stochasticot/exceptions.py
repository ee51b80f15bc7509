"""
Errors raised by the stochastic optimal transport solvers.
"""


class StochasticOTError(Exception):
    """Base class of every error raised by stochasticot."""


class InvalidConfigurationError(StochasticOTError, ValueError):
    """A solver parameter (iterations, step size, tolerances, eps...) is
    outside of its admissible range."""


class InvalidMeasureError(StochasticOTError, ValueError):
    """A measure is malformed (empty support, weights not a probability
    vector) or the pair of measures cannot be handled by any solver."""


class NumericInstabilityError(StochasticOTError, ArithmeticError):
    """Non finite values appeared while aggregating or updating potentials."""
