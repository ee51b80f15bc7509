import logging
import numbers
import math

from .convergence import ConvergenceMonitor
from .exceptions import InvalidConfigurationError, InvalidMeasureError

logger = logging.getLogger(__name__)


def check_maxiters(maxiters):
    if isinstance(maxiters, bool) or not isinstance(maxiters, numbers.Integral):
        raise InvalidConfigurationError('maxiters must be an integer, got {!r}'.format(maxiters))
    if maxiters < 0:
        raise InvalidConfigurationError('maxiters must be nonnegative, got {}'.format(maxiters))


def check_stepsize(stepsize):
    if not (stepsize > 0 and math.isfinite(stepsize)):
        raise InvalidConfigurationError('stepsize must be positive, got {}'.format(stepsize))


def check_warmup_phase(warmup_phase):
    if not (warmup_phase > 0 and math.isfinite(warmup_phase)):
        raise InvalidConfigurationError('warmup_phase must be positive, got {}'.format(warmup_phase))


def check_montecarlo_samples(montecarlo_samples):
    if isinstance(montecarlo_samples, bool) or not isinstance(montecarlo_samples, numbers.Integral) \
            or montecarlo_samples < 0:
        raise InvalidConfigurationError(
            'montecarlo_samples must be a nonnegative integer, got {!r}'.format(montecarlo_samples))


class StochasticSolver(object):
    """Common configuration of the stochastic dual ascent solvers.

    After a call to ``dual_v`` the attributes ``v`` (dual potential),
    ``converged`` and ``niters`` describe the outcome of the last solve.
    ``converged=False`` means that ``maxiters`` was exhausted.
    """

    def __init__(self, maxiters=10000, stepsize=1., atol=0., rtol=None):
        """
        :param maxiters: Maximum number of stochastic gradient steps
        :param stepsize: Constant step size (SAG) or initial step size (SGA)
        :param atol: Absolute tolerance between successive potentials
        :param rtol: Relative tolerance, defaults to 1e-4 if atol is zero and 0 otherwise
        """
        self.set_maxiters(maxiters)
        self.set_stepsize(stepsize)
        self.set_tolerances(atol, rtol)
        self.v = None
        self.converged = False
        self.niters = 0

    def get_maxiters(self):
        return self.maxiters

    def set_maxiters(self, maxiters):
        check_maxiters(maxiters)
        self.maxiters = int(maxiters)

    def get_stepsize(self):
        return self.stepsize

    def set_stepsize(self, stepsize):
        check_stepsize(stepsize)
        self.stepsize = float(stepsize)

    def get_tolerances(self):
        return (self.monitor.atol, self.monitor.rtol)

    def set_tolerances(self, atol=0., rtol=None):
        self.monitor = ConvergenceMonitor(atol, rtol)

    #####################################################
    # Solve
    #####################################################

    def dual_v(self, generator, c, mu, nu, eps=None):
        raise NotImplementedError

    def dual_cost(self, generator, c, v, mu, nu, eps=None):
        raise NotImplementedError

    def solve(self, generator, c, mu, nu, eps=None):
        """Optimizes the dual potential and returns the resulting transport cost."""
        v = self.dual_v(generator, c, mu, nu, eps)
        return self.dual_cost(generator, c, v, mu, nu, eps)

    def _finish(self, v, niters, converged):
        self.v, self.niters, self.converged = v, niters, converged
        if converged:
            logger.debug('%s converged after %d iterations', type(self).__name__, niters)
        elif self.maxiters > 0:
            logger.info('%s stopped after maxiters=%d iterations without converging',
                        type(self).__name__, self.maxiters)
        return v

    @staticmethod
    def _check_potential(v, nu):
        if v.dim() != 1 or v.shape[0] != len(nu):
            raise InvalidMeasureError(
                'The dual potential has shape {}, expected ({},)'.format(tuple(v.shape), len(nu)))
