"""
Stochastic estimation of (entropic) Wasserstein distances by dual ascent.
"""

import logging

__version__ = 0.1

from .exceptions import StochasticOTError, InvalidConfigurationError, \
    InvalidMeasureError, NumericInstabilityError
from .measures import DiscreteMeasure, SampleableMeasure
from .utils import stable_logsumexp, SoftMin, HardMin, make_aggregator, \
    euclidean, sqeuclidean, generate_measure
from .convergence import ConvergenceMonitor
from .sag_solver import SAGSolver
from .sga_solver import SGASolver
from .wasserstein import wasserstein

logging.getLogger(__name__).addHandler(logging.NullHandler())
